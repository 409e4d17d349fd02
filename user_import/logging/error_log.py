from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime
from pathlib import Path

from ..models.error_record import ErrorRecord

"""Rejected-row log for one import run.

Records are kept in memory while a file is processed and written as JSON
Lines (one ErrorRecord per line) to ``logs/errors-YYYYMMDD-HHMMSS.log``. The
file name carries the UTC start time of the run; the directory and file only
appear once there is something to write.
"""

__all__ = [
    "ErrorRecord",
    "ErrorLogBuffer",
]

LOGS_DIR = Path("./logs")
TIMESTAMP_FMT = "%Y%m%d-%H%M%S"


class ErrorLogBuffer:
    """Buffered JSON Lines writer for ErrorRecord entries."""

    def __init__(self, logs_dir: Path | None = None) -> None:
        self._logs_dir = logs_dir or LOGS_DIR
        self._started = datetime.now(UTC)
        self._pending: list[ErrorRecord] = []

    @property
    def file_path(self) -> Path:
        return self._logs_dir / f"errors-{self._started.strftime(TIMESTAMP_FMT)}.log"

    @property
    def records(self) -> list[ErrorRecord]:
        """Records not yet flushed."""
        return list(self._pending)

    def append(self, record: ErrorRecord) -> None:
        self._pending.append(record)

    def extend(self, records: Iterable[ErrorRecord]) -> None:
        self._pending.extend(records)

    def __len__(self) -> int:
        return len(self._pending)

    def flush(self) -> Path | None:
        """Write pending records and return the log path.

        Returns None without touching the filesystem when nothing is pending,
        so a clean run leaves no log file behind. Repeated flushes append to
        the same file.
        """
        if not self._pending:
            return None
        self._logs_dir.mkdir(parents=True, exist_ok=True)
        path = self.file_path
        payload = "".join(f"{r.to_json_line()}\n" for r in self._pending)
        with path.open("a", encoding="utf-8") as f:
            f.write(payload)
        self._pending = []
        return path
