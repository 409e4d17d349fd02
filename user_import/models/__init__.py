"""Domain models for the CSV -> PostgreSQL user import tool.

This package contains the value types passed between the reader, the
validator, the import coordinator and the user store.
"""

from .candidate_user import PARSE_ERROR_ROW, CandidateUser
from .error_record import ErrorRecord
from .import_summary import ImportSummary
from .persisted_user import PersistedUser

__all__ = [
    # Pipeline models
    "CandidateUser",
    "PARSE_ERROR_ROW",
    "PersistedUser",
    # Reporting models
    "ErrorRecord",
    "ImportSummary",
]
