"""Error sinks — append-only destinations for structured failure records."""

from __future__ import annotations

import traceback
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Protocol, Tuple, runtime_checkable

from pydantic import BaseModel, Field

DEFAULT_LOG_FILE = "logs/error.log"


class ErrorRecord(BaseModel):
    """One failure, as written to an error sink."""

    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the record was created (UTC)",
    )
    level: str = Field(default="error", description="Log level of the record")
    attempt: Optional[int] = Field(
        default=None,
        description="Attempt number; None for failures outside an attempt",
    )
    message: str = Field(..., description="Human-readable failure message")
    trace: str = Field(default="", description="Formatted traceback")


@runtime_checkable
class ErrorSinkLike(Protocol):
    """Structural interface for error sinks.

    ``record`` must not suspend: the runner calls it synchronously between
    an attempt and the next notification.
    """

    def record(self, attempt: Optional[int], message: str, trace: str) -> None: ...


def describe_error(error: BaseException) -> Tuple[str, str]:
    """Return ``(message, trace)`` for *error*.

    Exceptions raised without arguments stringify to ``""``; the class name
    is used instead so records never carry an empty message.
    """
    message = str(error) or type(error).__name__
    trace = "".join(
        traceback.format_exception(type(error), error, error.__traceback__)
    )
    return message, trace


class FileErrorSink:
    """Append records to a JSON-lines file.

    The file and its parent directories are created on the first write, so
    constructing a sink for a run that never fails leaves no trace on disk.
    """

    def __init__(self, path: str | Path = DEFAULT_LOG_FILE) -> None:
        self.path = Path(path)

    def record(self, attempt: Optional[int], message: str, trace: str) -> None:
        entry = ErrorRecord(attempt=attempt, message=message, trace=trace)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("a", encoding="utf-8") as f:
            f.write(entry.model_dump_json() + "\n")

    def read_records(self) -> List[ErrorRecord]:
        """Parse every record written so far (empty if the file is absent)."""
        if not self.path.exists():
            return []
        with self.path.open("r", encoding="utf-8") as f:
            return [
                ErrorRecord.model_validate_json(line)
                for line in f
                if line.strip()
            ]

    def __repr__(self) -> str:
        return f"FileErrorSink({str(self.path)!r})"


class MemoryErrorSink:
    """Keep records in a list, handy for embedding and tests."""

    def __init__(self) -> None:
        self.records: List[ErrorRecord] = []

    def record(self, attempt: Optional[int], message: str, trace: str) -> None:
        self.records.append(ErrorRecord(attempt=attempt, message=message, trace=trace))

    def __len__(self) -> int:
        return len(self.records)
