from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

"""PersistedUser model: a user row as stored in the users table."""

__all__ = [
    "PersistedUser",
    "USER_COLUMNS",
]

# Insert column order (id and created_at default are owned by the table)
USER_COLUMNS: tuple[str, ...] = ("full_name", "username", "email", "password", "created_at")


@dataclass(frozen=True)
class PersistedUser:
    full_name: str
    username: str
    email: str
    password: str  # opaque hash, never plaintext
    created_at: datetime  # UTC
    id: int | None = None  # assigned by the store

    def to_row(self) -> tuple[Any, ...]:
        """Values in USER_COLUMNS order for batch insert."""
        return (self.full_name, self.username, self.email, self.password, self.created_at)

    @staticmethod
    def from_row(row: tuple[Any, ...]) -> PersistedUser:
        """Build from a (id, full_name, username, email, password, created_at) row."""
        user_id, full_name, username, email, password, created_at = row
        return PersistedUser(
            id=user_id,
            full_name=full_name,
            username=username,
            email=email,
            password=password,
            created_at=created_at,
        )
