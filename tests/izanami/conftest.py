"""Shared fixtures and reusable dummy tasks for izanami tests.

Every task here is a plain async callable that counts its invocations, so
tests can assert on call counts without a mocking library.
"""

from __future__ import annotations

from typing import Any

import pytest

from izanami import EventBus, MemoryErrorSink, RunEvent

# ---------------------------------------------------------------------------
# Reusable dummy tasks
# ---------------------------------------------------------------------------


class Succeeds:
    """Always returns *value*; records the arguments of every call."""

    def __init__(self, value: Any = "Success"):
        self.value = value
        self.calls: list[tuple[tuple, dict]] = []

    async def __call__(self, *args: Any, **kwargs: Any) -> Any:
        self.calls.append((args, kwargs))
        return self.value

    @property
    def call_count(self) -> int:
        return len(self.calls)


class Fails:
    """Always raises ``RuntimeError(message)``."""

    def __init__(self, message: str = "Test Error"):
        self.message = message
        self.call_count = 0

    async def __call__(self, *args: Any, **kwargs: Any) -> Any:
        self.call_count += 1
        raise RuntimeError(self.message)


class FailsThenSucceeds:
    """Raises for the first *failures* calls, then returns ``"ok"``."""

    def __init__(self, failures: int):
        self.failures = failures
        self.call_count = 0

    async def __call__(self, *args: Any, **kwargs: Any) -> Any:
        self.call_count += 1
        if self.call_count <= self.failures:
            raise ValueError(f"failure {self.call_count}")
        return "ok"


class Cycling:
    """Raises messages from *messages* in turn, forever."""

    def __init__(self, messages: list[str]):
        self.messages = messages
        self.call_count = 0

    async def __call__(self, *args: Any, **kwargs: Any) -> Any:
        message = self.messages[self.call_count % len(self.messages)]
        self.call_count += 1
        raise RuntimeError(message)


class BrokenSink:
    """Error sink whose ``record`` raises ``OSError``.

    With *only_unattributed* set, it fails only for records without an
    attempt number (reflection failures) and keeps the others.
    """

    def __init__(self, only_unattributed: bool = False):
        self.only_unattributed = only_unattributed
        self.kept: list[tuple] = []

    def record(self, attempt, message, trace):
        if self.only_unattributed and attempt is not None:
            self.kept.append((attempt, message))
            return
        raise OSError("log dir not writable")


class SleepRecorder:
    """Stand-in for ``asyncio.sleep`` that records requested seconds."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


class ReflectionRecorder:
    """Reflection strategy that records the errors it receives."""

    def __init__(self, raises: Exception | None = None):
        self.raises = raises
        self.received: list[list[BaseException]] = []

    async def __call__(self, errors):
        self.received.append(list(errors))
        if self.raises is not None:
            raise self.raises


class EventLog:
    """Subscribes to every RunEvent and keeps ``(event, payload)`` pairs."""

    def __init__(self, bus: EventBus):
        self.entries: list[tuple[RunEvent, tuple]] = []
        for event in RunEvent:
            bus.on(event, self._listener_for(event))

    def _listener_for(self, event: RunEvent):
        def listener(*payload):
            self.entries.append((event, payload))

        return listener

    @property
    def names(self) -> list[str]:
        return [event.value for event, _ in self.entries]

    def payloads(self, event: RunEvent) -> list[tuple]:
        return [payload for e, payload in self.entries if e is event]


# ---------------------------------------------------------------------------
# Pytest fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def sink():
    return MemoryErrorSink()


@pytest.fixture
def sleep():
    return SleepRecorder()


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def event_log(bus):
    return EventLog(bus)
