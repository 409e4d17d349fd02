from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

"""Import summary model for the CSV -> PostgreSQL user import tool.

Aggregates the outcome of one file run for the SUMMARY output line and the
CLI exit code.
"""


@dataclass(frozen=True)
class ImportSummary:
    """Aggregated results of importing a single CSV file."""
    file_name: str
    total_rows: int  # data rows read (parse error row excluded)
    valid_rows: int  # rows without validation errors
    invalid_rows: int  # rows rejected by validation
    saved_rows: int  # rows persisted by the store
    skipped_rows: int  # valid rows not saved (duplicates)
    parse_failed: bool  # a structural parse error was reported
    start_time: datetime
    end_time: datetime
    elapsed_seconds: float
    throughput_rows_per_sec: float  # total_rows / elapsed

    @property
    def has_rejections(self) -> bool:
        return self.parse_failed or self.invalid_rows > 0
