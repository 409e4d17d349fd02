from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from typing import Any, Protocol

import psycopg2

from ..models.persisted_user import USER_COLUMNS, PersistedUser
from .batch_insert import BatchInsertError, batch_insert

"""User store backed by a PostgreSQL table.

The import coordinator only needs three store operations (existence check by
field, batch insert, full scan ordered by creation), captured by the
UserStore protocol. PostgresUserStore implements them on a psycopg2
connection; username and email uniqueness is enforced by the table itself.
"""

__all__ = [
    "LOOKUP_FIELDS",
    "PostgresUserStore",
    "StoreError",
    "UserStore",
]

logger = logging.getLogger(__name__)

LOOKUP_FIELDS = frozenset({"username", "email"})

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?$")

# PersistedUser.from_row order
_SELECT_COLUMNS = ("id",) + USER_COLUMNS


class StoreError(Exception):
    """Raised when the store rejects or fails a write."""


class UserStore(Protocol):
    def exists(self, field: str, value: str) -> bool: ...

    def insert_batch(self, records: Sequence[PersistedUser]) -> list[PersistedUser]: ...

    def list_all_ordered(self) -> list[PersistedUser]: ...


class PostgresUserStore:
    """UserStore on a psycopg2 connection (autocommit off).

    insert_batch commits on success and rolls back before raising StoreError,
    so a batch is either fully stored or not at all.
    """

    def __init__(self, connection: Any, table: str = "users", page_size: int = 1000) -> None:
        if not _IDENTIFIER.match(table):
            raise ValueError(f"invalid table name: {table!r}")
        self.connection = connection
        self.table = table
        self.page_size = page_size

    def ensure_schema(self) -> None:
        """Create the users table and its unique indexes if they do not exist."""
        ddl = (
            f"CREATE TABLE IF NOT EXISTS {self.table} ("
            "id SERIAL PRIMARY KEY, "
            "full_name VARCHAR(100) NOT NULL, "
            "username VARCHAR(100) NOT NULL UNIQUE, "
            "email VARCHAR(100) NOT NULL UNIQUE, "
            "password TEXT NOT NULL, "
            "created_at TIMESTAMPTZ NOT NULL DEFAULT now())"
        )
        try:
            with self.connection.cursor() as cur:
                cur.execute(ddl)
            self.connection.commit()
        except psycopg2.Error as e:
            self.connection.rollback()
            raise StoreError(f"schema creation failed: {e}") from e
        logger.debug(f"schema ready table={self.table}")

    def exists(self, field: str, value: str) -> bool:
        if field not in LOOKUP_FIELDS:
            raise ValueError(f"unsupported lookup field: {field!r}")
        sql = f'SELECT EXISTS (SELECT 1 FROM {self.table} WHERE "{field}" = %s)'
        with self.connection.cursor() as cur:
            cur.execute(sql, (value,))
            row = cur.fetchone()
        return bool(row and row[0])

    def insert_batch(self, records: Sequence[PersistedUser]) -> list[PersistedUser]:
        if not records:
            return []
        try:
            with self.connection.cursor() as cur:
                result = batch_insert(
                    cur,
                    self.table,
                    USER_COLUMNS,
                    [r.to_row() for r in records],
                    returning_columns=_SELECT_COLUMNS,
                    page_size=self.page_size,
                    metrics_callback=lambda m: logger.debug(
                        f"batch insert rows={m.batch_size} elapsed_sec={m.elapsed_seconds:.4f}"
                    ),
                )
            self.connection.commit()
        except (BatchInsertError, psycopg2.Error) as e:
            self.connection.rollback()
            raise StoreError(f"batch insert into {self.table} failed: {e}") from e
        return [PersistedUser.from_row(tuple(r)) for r in result.returned_values or []]

    def list_all_ordered(self) -> list[PersistedUser]:
        cols = ",".join(f'"{c}"' for c in _SELECT_COLUMNS)
        sql = f"SELECT {cols} FROM {self.table} ORDER BY created_at, id"
        with self.connection.cursor() as cur:
            cur.execute(sql)
            rows = cur.fetchall()
        return [PersistedUser.from_row(tuple(r)) for r in rows]
