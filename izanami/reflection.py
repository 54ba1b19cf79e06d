"""Reflection strategies — what runs once failures reach the error threshold."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Awaitable, List, Protocol, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class ReflectionStrategy(Protocol):
    """Async callable that receives the run's errors in chronological order.

    Whatever it raises is contained by the runner and sent to the error
    sink; it never aborts the run.
    """

    def __call__(self, errors: Sequence[BaseException]) -> Awaitable[None]: ...


def unique_messages(errors: Sequence[BaseException]) -> List[str]:
    """Return the distinct error messages, first-seen order preserved."""
    return list(dict.fromkeys(str(error) for error in errors))


async def default_reflection(errors: Sequence[BaseException]) -> None:
    """Surface each recurring issue for operator review.

    Takes no corrective action and never raises.
    """
    logger.warning("Reflect on the following recurring issues:")
    for index, message in enumerate(unique_messages(errors), start=1):
        logger.warning("%d. %s", index, message)
    logger.warning("Adjust your settings or input parameters to avoid these issues.")
