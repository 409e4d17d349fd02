# Shared pytest fixtures
from __future__ import annotations

import logging
import tempfile
from collections.abc import Sequence
from contextlib import contextmanager
from dataclasses import replace
from pathlib import Path

import pytest

from user_import.db.user_store import StoreError
from user_import.logging.init import reset_logging
from user_import.models.persisted_user import PersistedUser


class InMemoryUserStore:
    """UserStore double with the table's unique constraints."""

    def __init__(self, users: Sequence[PersistedUser] = ()) -> None:
        self.users: list[PersistedUser] = []
        self.calls: list[tuple[str, ...]] = []
        self.insert_batches: list[list[PersistedUser]] = []
        self.fail_insert: Exception | None = None
        self.seed(*users)

    def seed(self, *users: PersistedUser) -> None:
        for u in users:
            self._add(u)

    def _add(self, user: PersistedUser) -> PersistedUser:
        stored = replace(user, id=len(self.users) + 1)
        self.users.append(stored)
        return stored

    def exists(self, field: str, value: str) -> bool:
        self.calls.append(("exists", field, value))
        return any(getattr(u, field) == value for u in self.users)

    def insert_batch(self, records: Sequence[PersistedUser]) -> list[PersistedUser]:
        self.calls.append(("insert_batch",))
        self.insert_batches.append(list(records))
        if self.fail_insert is not None:
            raise self.fail_insert
        usernames = [r.username for r in records] + [u.username for u in self.users]
        emails = [r.email for r in records] + [u.email for u in self.users]
        if len(set(usernames)) != len(usernames) or len(set(emails)) != len(emails):
            raise StoreError("duplicate key value violates unique constraint")
        return [self._add(r) for r in records]

    def list_all_ordered(self) -> list[PersistedUser]:
        self.calls.append(("list_all_ordered",))
        return sorted(self.users, key=lambda u: (u.created_at, u.id))

    def ensure_schema(self) -> None:
        self.calls.append(("ensure_schema",))


class FakeHasher:
    """Deterministic PasswordHasher double."""

    def hash(self, plaintext: str) -> str:
        return f"hashed:{plaintext[::-1]}"

    def verify(self, hashed: str, plaintext: str) -> bool:
        return hashed == self.hash(plaintext)


@pytest.fixture(autouse=True)
def _clean_logging():
    reset_logging()
    yield
    reset_logging()
    # let caplog see package loggers again after setup_logging() ran
    app_logger = logging.getLogger("user_import")
    for handler in app_logger.handlers[:]:
        app_logger.removeHandler(handler)
    app_logger.propagate = True
    app_logger.setLevel(logging.NOTSET)


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        monkeypatch.chdir(p)
        # keep the developer's real connection settings out of the tests
        for var in ("DATABASE_URL", "PGDSN", "PGHOST", "PGPORT", "PGUSER", "PGPASSWORD", "PGDATABASE"):
            monkeypatch.delenv(var, raising=False)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """table: users
dedupe_within_batch: true
password_hashing:
  iterations: 1000
database:
  host: localhost
  port: 5432
  user: appuser
  password: secret
  database: appdb
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "import.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def write_csv(temp_workdir: Path):
    def _write(content: str, name: str = "users.csv") -> Path:
        path = temp_workdir / "data" / name
        path.write_bytes(content.encode("utf-8"))
        return path
    return _write


@pytest.fixture()
def fake_store() -> InMemoryUserStore:
    return InMemoryUserStore()


@pytest.fixture()
def fake_hasher() -> FakeHasher:
    return FakeHasher()


@pytest.fixture()
def patched_db(monkeypatch, fake_store):
    """Route the CLI's database connection to the in-memory store."""
    @contextmanager
    def fake_connection(cfg):
        yield object()

    monkeypatch.setattr("user_import.cli._db_connection", fake_connection)
    monkeypatch.setattr("user_import.cli.PostgresUserStore", lambda conn, table="users": fake_store)
    return fake_store
