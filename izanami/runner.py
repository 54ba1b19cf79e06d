"""IzanamiRunner — bounded retry with exponential backoff and reflection.

A run drives sequential attempts of one task::

    attempt 1 ──fail──> sleep(initial_delay) ──> attempt 2 ──fail──> ...
        │                                             │
     success                                errors >= error_threshold
        │                                             │
      return                             reflection ──> reset ──> return

and ends in exactly one of three ways:

- ``SUCCESS``: the task returned; state is left as is.
- ``FAILURE``: ``max_attempts`` consumed below the threshold; state is
  left populated so callers can inspect ``error_log`` afterwards.
- ``REFLECTION``: the threshold was reached; the reflection strategy ran
  once and the state was reset.

Only the reflection path resets.  A runner whose previous run failed
resumes from its populated state on the next call; call :meth:`reset`
first for a fresh run.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Union

from .config import RunConfiguration
from .errors import ConfigurationError
from .events import AttemptError, EventBus, Listener, RunEvent
from .sink import describe_error
from .state import RunState

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[Any]]


class RunOutcome(str, Enum):
    """How a run ended."""

    SUCCESS = "success"
    FAILURE = "failure"
    REFLECTION = "reflection"


@dataclass(frozen=True)
class RunResult:
    """Outcome of one ``run_task`` call.

    ``attempts`` and ``errors`` are captured before any reset, so a
    reflection-terminated run still reports what happened.  ``value`` holds
    the task's return value on success and is ``None`` otherwise.
    """

    outcome: RunOutcome
    attempts: int
    errors: tuple[BaseException, ...] = ()
    value: Any = None

    @property
    def succeeded(self) -> bool:
        return self.outcome is RunOutcome.SUCCESS


class IzanamiRunner:
    """Run a task with retries, escalating to reflection on repeated errors.

    Build from a ready configuration or from keyword options::

        runner = IzanamiRunner(task=fetch, max_attempts=5, error_threshold=3)
        runner.on("failure", lambda errors: alert(errors))
        result = await runner.run_task_async("https://example.org")

    One runner owns one :class:`RunState`.  Concurrent ``run_task_async``
    calls on the same instance share that state and are not supported; use
    one runner per concurrently running task.

    Args:
        config: A :class:`RunConfiguration`.  Mutually exclusive with
            *options*.
        events: Event bus to publish on (a fresh one by default).
        sleep: Awaitable sleep taking seconds (``asyncio.sleep`` by
            default).
        **options: Fields of :class:`RunConfiguration`.
    """

    def __init__(
        self,
        config: Optional[RunConfiguration] = None,
        *,
        events: Optional[EventBus] = None,
        sleep: Sleep = asyncio.sleep,
        **options: Any,
    ) -> None:
        if config is not None and options:
            raise ConfigurationError(
                "Pass either a RunConfiguration or keyword options, not both."
            )
        if config is None:
            config = RunConfiguration(**options)
        elif not isinstance(config, RunConfiguration):
            raise ConfigurationError(
                f"config must be a RunConfiguration, got {type(config).__name__}."
            )
        self.config = config
        self.events = events if events is not None else EventBus()
        self._sleep = sleep
        self._state = RunState()

    # ------------------------------------------------------------------
    # State views
    # ------------------------------------------------------------------

    @property
    def state(self) -> RunState:
        return self._state

    @property
    def attempt_count(self) -> int:
        return self._state.attempt_count

    @property
    def error_log(self) -> tuple[BaseException, ...]:
        return self._state.snapshot()

    @property
    def reflecting(self) -> bool:
        return self._state.reflecting

    def reset(self) -> None:
        """Clear attempts, errors and the reflection flag."""
        self._state.reset()

    # ------------------------------------------------------------------
    # Listener registration (delegates to the event bus)
    # ------------------------------------------------------------------

    def on(self, event: Union[RunEvent, str], listener: Listener) -> "IzanamiRunner":
        self.events.on(event, listener)
        return self

    def once(self, event: Union[RunEvent, str], listener: Listener) -> "IzanamiRunner":
        self.events.once(event, listener)
        return self

    def off(self, event: Union[RunEvent, str], listener: Listener) -> "IzanamiRunner":
        self.events.off(event, listener)
        return self

    # ------------------------------------------------------------------
    # run_task() — sync entry point
    # ------------------------------------------------------------------

    def run_task(self, *args: Any, **kwargs: Any) -> RunResult:
        """Run the task to completion from synchronous code.

        Must not be called from inside a running event loop; use
        :meth:`run_task_async` there.
        """
        return asyncio.run(self.run_task_async(*args, **kwargs))

    # ------------------------------------------------------------------
    # run_task_async() — the attempt loop
    # ------------------------------------------------------------------

    async def run_task_async(self, *args: Any, **kwargs: Any) -> RunResult:
        """Attempt the task until it succeeds, attempts run out, or the
        error threshold triggers reflection.

        *args* and *kwargs* are forwarded verbatim on every attempt.  Task
        exceptions never escape; they are retried or escalated.
        """
        cfg = self.config
        state = self._state

        while state.attempt_count < cfg.max_attempts and not state.reflecting:
            state.attempt_count += 1
            attempt = state.attempt_count
            self.events.emit(RunEvent.BEFORE_ATTEMPT, attempt)
            logger.info("Attempt %d: executing task", attempt)
            try:
                value = cfg.task(*args, **kwargs)
                if inspect.isawaitable(value):
                    value = await value
            except Exception as exc:
                self._record_failure(attempt, exc)
                if len(state.error_log) >= cfg.error_threshold:
                    await self._enter_reflection()
                else:
                    delay = cfg.delay_for(attempt)
                    logger.info("Retrying in %.3f seconds", delay / 1000)
                    await self._sleep(delay / 1000)
                continue

            logger.info("Task completed successfully on attempt %d", attempt)
            self.events.emit(RunEvent.SUCCESS, attempt)
            return RunResult(
                outcome=RunOutcome.SUCCESS,
                attempts=attempt,
                errors=state.snapshot(),
                value=value,
            )

        attempts, errors = state.attempt_count, state.snapshot()
        if state.reflecting:
            logger.info("Exiting reflection phase after %d attempt(s)", attempts)
            self.events.emit(RunEvent.REFLECTION_EXIT)
            state.reset()
            return RunResult(RunOutcome.REFLECTION, attempts=attempts, errors=errors)

        logger.warning("Max attempts reached (%d); task failed", attempts)
        self.events.emit(RunEvent.FAILURE, errors)
        return RunResult(RunOutcome.FAILURE, attempts=attempts, errors=errors)

    def _record_failure(self, attempt: int, error: Exception) -> None:
        self._state.error_log.append(error)
        message, trace = describe_error(error)
        self._write_to_sink(attempt, message, trace)
        logger.info("Error on attempt %d: %s", attempt, message)
        self.events.emit(RunEvent.ERROR, AttemptError(attempt, error))

    def _write_to_sink(self, attempt: Optional[int], message: str, trace: str) -> None:
        """Forward one record to the error sink; a failing sink never stops a run."""
        try:
            self.config.error_sink.record(attempt, message, trace)
        except Exception:
            logger.exception(
                "Error sink %r failed to record attempt %s", self.config.error_sink, attempt
            )

    # ------------------------------------------------------------------
    # Reflection
    # ------------------------------------------------------------------

    async def _enter_reflection(self) -> None:
        """Run the reflection strategy once; its failures never escape.

        ``reflecting`` is set before the strategy is awaited so the attempt
        loop stops even if the strategy raises.
        """
        state = self._state
        state.reflecting = True
        errors = state.snapshot()
        logger.info(
            "Entering reflection phase after %d error(s)", len(errors)
        )
        try:
            outcome = self.config.reflection_strategy(list(errors))
            if inspect.isawaitable(outcome):
                await outcome
        except Exception as exc:
            message, trace = describe_error(exc)
            logger.warning("Error during reflection phase: %s", message)
            self._write_to_sink(None, f"Reflection phase failed: {message}", trace)
        else:
            self.events.emit(RunEvent.REFLECTION, errors)
