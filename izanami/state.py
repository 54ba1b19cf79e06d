"""RunState — the mutable counters owned by one runner."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class RunState:
    """Attempt count, accumulated errors and the reflection flag.

    Mutated only by the runner's attempt loop.  ``error_log`` keeps the raw
    exceptions in the order they were raised.
    """

    attempt_count: int = 0
    error_log: list[BaseException] = field(default_factory=list)
    reflecting: bool = False

    def reset(self) -> None:
        """Return every field to its initial value in one step."""
        self.attempt_count, self.error_log, self.reflecting = 0, [], False

    def snapshot(self) -> tuple[BaseException, ...]:
        """Immutable copy of ``error_log`` for event payloads and results."""
        return tuple(self.error_log)
