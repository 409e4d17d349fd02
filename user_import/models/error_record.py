from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

from .candidate_user import CandidateUser

"""ErrorRecord: one JSON Lines entry of the rejected-row log.

Row 0 is the file-level channel for parse errors, where no data row can be
blamed.
"""

__all__ = [
    "ErrorRecord",
    "PARSE_ERROR",
    "VALIDATION_ERROR",
]

PARSE_ERROR = "PARSE_ERROR"
VALIDATION_ERROR = "VALIDATION_ERROR"


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        file: CSV file name
        row: data row number (1-based), 0 for parse errors
        error_type: PARSE_ERROR or VALIDATION_ERROR
        message: validation messages joined with "; ", or the parse failure
    """
    timestamp: str
    file: str
    row: int
    error_type: str
    message: str

    @staticmethod
    def create(file: str, row: int, error_type: str, message: str) -> ErrorRecord:
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(timestamp=ts, file=file, row=row, error_type=error_type, message=message)

    @classmethod
    def for_rejected_row(cls, file: str, user: CandidateUser) -> ErrorRecord:
        """Record for a row whose validation_errors is non-empty."""
        return cls.create(
            file=file,
            row=user.row_number,
            error_type=PARSE_ERROR if user.is_parse_error else VALIDATION_ERROR,
            message="; ".join(user.validation_errors),
        )

    def to_json_line(self) -> str:
        """Serialize to one JSON line with exactly the five schema keys."""
        return json.dumps(asdict(self), ensure_ascii=False)
