"""RunConfiguration — immutable options for an IzanamiRunner."""

from __future__ import annotations

import math
import os
from dataclasses import dataclass
from typing import Any, Callable, Optional

from .errors import ConfigurationError
from .reflection import ReflectionStrategy, default_reflection
from .sink import DEFAULT_LOG_FILE, ErrorSinkLike, FileErrorSink

# Environment variable suffix → (field name, parser)
_ENV_FIELDS: dict[str, tuple[str, Callable[[str], Any]]] = {
    "MAX_ATTEMPTS": ("max_attempts", int),
    "ERROR_THRESHOLD": ("error_threshold", int),
    "BACKOFF_FACTOR": ("backoff_factor", float),
    "INITIAL_DELAY": ("initial_delay", float),
}


def _require_positive_int(name: str, value: Any) -> None:
    # bool is an int subclass; True must not pass as 1
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ConfigurationError(f"{name} must be a positive integer, got {value!r}.")


def _require_number(name: str, value: Any, *, allow_zero: bool) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigurationError(f"{name} must be a number, got {value!r}.")
    if not math.isfinite(value):
        raise ConfigurationError(f"{name} must be finite, got {value!r}.")
    if value < 0 or (value == 0 and not allow_zero):
        qualifier = "non-negative" if allow_zero else "positive"
        raise ConfigurationError(f"{name} must be {qualifier}, got {value!r}.")


@dataclass(frozen=True)
class RunConfiguration:
    """Options resolved against defaults once, at construction.

    ``initial_delay`` is in milliseconds.  ``reflection_strategy`` and
    ``error_sink`` left as ``None`` resolve to :func:`default_reflection`
    and a :class:`FileErrorSink` on ``logs/error.log``.

    Raises ``ConfigurationError`` when ``task`` is missing or not callable,
    or when a numeric option is out of range.
    """

    task: Optional[Callable[..., Any]] = None
    max_attempts: int = 5
    error_threshold: int = 3
    backoff_factor: float = 2.0
    initial_delay: float = 1000
    reflection_strategy: Optional[ReflectionStrategy] = None
    error_sink: Optional[ErrorSinkLike] = None

    def __post_init__(self) -> None:
        if self.task is None or not callable(self.task):
            raise ConfigurationError("A valid task function must be provided.")
        _require_positive_int("max_attempts", self.max_attempts)
        _require_positive_int("error_threshold", self.error_threshold)
        _require_number("backoff_factor", self.backoff_factor, allow_zero=False)
        _require_number("initial_delay", self.initial_delay, allow_zero=True)

        if self.reflection_strategy is None:
            object.__setattr__(self, "reflection_strategy", default_reflection)
        elif not callable(self.reflection_strategy):
            raise ConfigurationError("reflection_strategy must be callable.")

        if self.error_sink is None:
            object.__setattr__(self, "error_sink", FileErrorSink(DEFAULT_LOG_FILE))
        elif not callable(getattr(self.error_sink, "record", None)):
            raise ConfigurationError(
                f"error_sink must provide a record() method, got {self.error_sink!r}."
            )

    def delay_for(self, attempt: int) -> float:
        """Backoff in milliseconds after failed attempt number *attempt*."""
        return self.initial_delay * self.backoff_factor ** (attempt - 1)

    @classmethod
    def from_env(
        cls,
        task: Callable[..., Any],
        *,
        prefix: str = "IZANAMI_",
        **overrides: Any,
    ) -> "RunConfiguration":
        """Build a configuration from ``<prefix>*`` environment variables.

        Recognised suffixes: ``MAX_ATTEMPTS``, ``ERROR_THRESHOLD``,
        ``BACKOFF_FACTOR``, ``INITIAL_DELAY`` and ``LOG_FILE`` (path for a
        :class:`FileErrorSink`).  Keyword *overrides* win over the
        environment.  Call ``dotenv.load_dotenv()`` first to pick up a
        ``.env`` file.
        """
        options: dict[str, Any] = {}
        for suffix, (field_name, parse) in _ENV_FIELDS.items():
            raw = os.environ.get(prefix + suffix)
            if raw is None or raw.strip() == "":
                continue
            try:
                options[field_name] = parse(raw.strip())
            except ValueError as exc:
                raise ConfigurationError(
                    f"{prefix + suffix}={raw!r} is not a valid {parse.__name__}."
                ) from exc

        log_file = os.environ.get(prefix + "LOG_FILE")
        if log_file:
            options["error_sink"] = FileErrorSink(log_file)

        options.update(overrides)
        return cls(task=task, **options)
