"""Named lifecycle notifications published by the runner."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Union

Listener = Callable[..., Any]


class RunEvent(str, Enum):
    """Lifecycle events, in the order a run can publish them."""

    BEFORE_ATTEMPT = "before-attempt"
    SUCCESS = "success"
    ERROR = "error"
    REFLECTION = "reflection"
    REFLECTION_EXIT = "reflection-exit"
    FAILURE = "failure"


@dataclass(frozen=True)
class AttemptError:
    """Payload of :attr:`RunEvent.ERROR`."""

    attempt: int
    error: BaseException


@dataclass
class _Registration:
    listener: Listener
    once: bool = False


class EventBus:
    """Synchronous publish/subscribe keyed by :class:`RunEvent`.

    Listeners run in registration order, inside ``emit``, before the
    publisher continues.  An exception raised by a listener propagates to
    the publisher.  Event names may be given as plain strings
    (``"before-attempt"``); unknown names raise ``ValueError``.

    Each ``on``/``once`` call adds one registration carrying its own
    one-shot flag, so the same listener may be registered several times in
    either mode.
    """

    def __init__(self) -> None:
        self._registrations: Dict[RunEvent, List[_Registration]] = {}

    def on(self, event: Union[RunEvent, str], listener: Listener) -> "EventBus":
        """Register *listener* and return ``self`` for chaining."""
        self._registrations.setdefault(RunEvent(event), []).append(
            _Registration(listener)
        )
        return self

    def once(self, event: Union[RunEvent, str], listener: Listener) -> "EventBus":
        """Register *listener* for the next publication of *event* only."""
        self._registrations.setdefault(RunEvent(event), []).append(
            _Registration(listener, once=True)
        )
        return self

    def off(self, event: Union[RunEvent, str], listener: Listener) -> "EventBus":
        """Remove the most recent registration of *listener*, if any."""
        registered = self._registrations.get(RunEvent(event), [])
        for i in range(len(registered) - 1, -1, -1):
            if registered[i].listener == listener:
                del registered[i]
                break
        return self

    def emit(self, event: Union[RunEvent, str], *payload: Any) -> bool:
        """Deliver *payload* to every listener of *event*.

        Returns ``True`` if at least one listener was called.
        """
        key = RunEvent(event)
        registered = self._registrations.get(key, [])
        if not registered:
            return False

        # One-shot registrations are dropped before any listener runs so a
        # re-entrant emit cannot deliver them twice.
        delivering = list(registered)
        self._registrations[key] = [r for r in registered if not r.once]

        for registration in delivering:
            registration.listener(*payload)
        return True

    def listener_count(self, event: Union[RunEvent, str]) -> int:
        return len(self._registrations.get(RunEvent(event), []))

    def clear(self, event: Optional[Union[RunEvent, str]] = None) -> None:
        """Remove all listeners of *event*, or of every event when ``None``."""
        if event is None:
            self._registrations.clear()
            return
        self._registrations.pop(RunEvent(event), None)
