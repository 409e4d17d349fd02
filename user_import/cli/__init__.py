from __future__ import annotations

import argparse
import os
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import psycopg2
from dotenv import load_dotenv

from ..config.loader import DEFAULT_CONFIG_PATH, ConfigError, ImportConfig, load_config
from ..db.user_store import PostgresUserStore, StoreError
from ..logging.error_log import ErrorLogBuffer
from ..logging.init import log_summary, set_debug, setup_logging
from ..services.hashing import Pbkdf2PasswordHasher
from ..services.importer import UserImportService
from ..services.orchestrator import ProcessingError, process_file
from ..services.summary import render_summary_line

"""CLI entrypoint.

Flow:
- Load .env and the YAML config
- Connect to PostgreSQL (skipped for --dry-run)
- Optionally create the users table (--init-schema) or list users (--list-users)
- Import the given CSV file and print one SUMMARY line

Exit codes: 0 all rows saved or skipped as duplicates, 2 some rows rejected,
1 fatal (config, file, database).
"""

EXIT_SUCCESS_ALL = 0
EXIT_FATAL = 1
EXIT_ROWS_REJECTED = 2


def _resolve_dsn(cfg: ImportConfig) -> str:
    """Connection string, by priority:

    1. DATABASE_URL / PGDSN (environment, .env already loaded with override)
    2. PGHOST / PGPORT / PGUSER / PGPASSWORD / PGDATABASE, each falling back
       to the config database section
    3. database.dsn from the config
    """
    db_cfg = cfg.database
    dsn_env = os.getenv("DATABASE_URL") or os.getenv("PGDSN") or db_cfg.dsn
    if dsn_env:
        return dsn_env
    host = os.getenv("PGHOST", db_cfg.host or "localhost")
    port = os.getenv("PGPORT", str(db_cfg.port) if db_cfg.port else "5432")
    user = os.getenv("PGUSER", db_cfg.user or "postgres")
    password = os.getenv("PGPASSWORD", db_cfg.password or "")
    database = os.getenv("PGDATABASE", db_cfg.database or "postgres")
    dsn = f"host={host} port={port} user={user} dbname={database}"
    if password:
        dsn += f" password={password}"
    return dsn


@contextmanager
def _db_connection(cfg: ImportConfig) -> Iterator[Any]:  # pragma: no cover (thin wrapper)
    """psycopg2 connection with explicit transactions (autocommit off)."""
    conn = psycopg2.connect(_resolve_dsn(cfg))
    conn.autocommit = False
    try:
        yield conn
    finally:
        conn.close()


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env so its connection settings win over the process environment."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="CSV -> PostgreSQL user importer")
    p.add_argument("csv_file", nargs="?", type=Path, help="CSV file with a header line")
    p.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="YAML config path")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--dry-run", action="store_true", help="Validate the file without saving")
    p.add_argument("--init-schema", action="store_true", help="Create the users table if missing")
    p.add_argument("--list-users", action="store_true", help="Print stored users, oldest first")
    return p.parse_args(argv)


def _print_users(service: UserImportService) -> None:
    for u in service.list_all_users():
        print(f"{u.id}\t{u.created_at.isoformat()}\t{u.username}\t{u.email}\t{u.full_name}")


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # None only: an explicit [] from tests must not pick up pytest's argv
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    _load_env_file(Path(".env"), override=True)

    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    if args.debug:
        set_debug(logger)
        logger.debug("debug mode enabled")

    if args.dry_run and (args.init_schema or args.list_users):
        logger.error("--dry-run cannot be combined with --init-schema or --list-users")
        return EXIT_FATAL

    if args.csv_file is None and not (args.list_users or args.init_schema):
        logger.error("no CSV file given")
        return EXIT_FATAL

    error_log = ErrorLogBuffer()
    try:
        if args.dry_run:
            summary = process_file(args.csv_file, None, error_log, dry_run=True)
        else:
            with _db_connection(cfg) as conn:
                store = PostgresUserStore(conn, table=cfg.table)
                if args.init_schema:
                    store.ensure_schema()
                    logger.info(f"table ready: {cfg.table}")
                service = UserImportService(
                    store,
                    Pbkdf2PasswordHasher(cfg.hash_iterations),
                    dedupe_within_batch=cfg.dedupe_within_batch,
                )
                if args.csv_file is None:
                    if args.list_users:
                        _print_users(service)
                    return EXIT_SUCCESS_ALL
                logger.info(f"Importing users from: {args.csv_file}")
                summary = process_file(args.csv_file, service, error_log)
                if args.list_users:
                    _print_users(service)
    except ProcessingError as e:
        logger.error(f"processing: {e}")
        return EXIT_FATAL
    except StoreError as e:
        logger.error(f"store: {e}")
        return EXIT_FATAL
    except psycopg2.Error as e:
        logger.error(f"database: {e}")
        return EXIT_FATAL
    finally:
        log_path = error_log.flush()
        if log_path is not None:
            logger.info(f"rejected rows written to {log_path}")

    # log_summary adds the "SUMMARY " prefix itself
    log_summary(render_summary_line(summary)[len("SUMMARY "):])

    if summary.has_rejections:
        return EXIT_ROWS_REJECTED
    return EXIT_SUCCESS_ALL
