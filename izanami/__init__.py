"""Bounded retry with exponential backoff and a one-shot reflection escalation.

Public surface::

    from izanami import (
        IzanamiRunner,
        RunConfiguration,
        RunResult,
        RunOutcome,
        RunState,
        RunEvent,
        EventBus,
        AttemptError,
        ErrorRecord,
        FileErrorSink,
        MemoryErrorSink,
        default_reflection,
        ConfigurationError,
    )
"""

from .config import RunConfiguration
from .errors import ConfigurationError
from .events import AttemptError, EventBus, RunEvent
from .reflection import ReflectionStrategy, default_reflection, unique_messages
from .runner import IzanamiRunner, RunOutcome, RunResult
from .sink import (
    DEFAULT_LOG_FILE,
    ErrorRecord,
    ErrorSinkLike,
    FileErrorSink,
    MemoryErrorSink,
    describe_error,
)
from .state import RunState

__all__ = [
    "IzanamiRunner",
    "RunConfiguration",
    "RunResult",
    "RunOutcome",
    "RunState",
    "RunEvent",
    "EventBus",
    "AttemptError",
    "ReflectionStrategy",
    "default_reflection",
    "unique_messages",
    "ErrorRecord",
    "ErrorSinkLike",
    "FileErrorSink",
    "MemoryErrorSink",
    "describe_error",
    "DEFAULT_LOG_FILE",
    "ConfigurationError",
]
