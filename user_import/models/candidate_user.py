from __future__ import annotations

from dataclasses import dataclass, field, replace

"""CandidateUser model for the CSV -> PostgreSQL user import tool.

A CandidateUser is one CSV data row after column-alias resolution. The reader
produces it with no validation errors; the validator returns a new instance
carrying the recomputed error list. Instances are frozen so the row number
assigned by the reader can never change afterwards.
"""

__all__ = [
    "CandidateUser",
    "PARSE_ERROR_ROW",
]

# Row number reserved for file-level parse failures
PARSE_ERROR_ROW = 0


@dataclass(frozen=True)
class CandidateUser:
    """Logical representation of one user row read from CSV.

    The row_number is the 1-based position among data rows (header excluded).
    row_number == 0 marks a synthetic row reporting a structural parse failure.
    """
    row_number: int
    full_name: str | None = None
    username: str | None = None
    email: str | None = None
    password: str | None = None
    validation_errors: tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_valid(self) -> bool:
        return not self.validation_errors

    @property
    def is_parse_error(self) -> bool:
        return self.row_number == PARSE_ERROR_ROW

    @staticmethod
    def parse_error(message: str) -> CandidateUser:
        """Build the synthetic row used to report a parse failure."""
        return CandidateUser(
            row_number=PARSE_ERROR_ROW,
            validation_errors=(f"CSV parsing error: {message}",),
        )

    def with_errors(self, errors: list[str] | tuple[str, ...]) -> CandidateUser:
        """Return a copy whose error list is replaced (never appended)."""
        return replace(self, validation_errors=tuple(errors))

    def __repr__(self) -> str:  # keep plaintext passwords out of logs
        return (
            f"CandidateUser(row_number={self.row_number!r}, full_name={self.full_name!r}, "
            f"username={self.username!r}, email={self.email!r}, password='***', "
            f"validation_errors={self.validation_errors!r})"
        )
