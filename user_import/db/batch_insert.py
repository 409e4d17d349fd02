from __future__ import annotations

import time
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from typing import Any

from psycopg2.extras import execute_values

"""DB batch insert.

Rows are sent as a single multi-row INSERT through
psycopg2.extras.execute_values. When returning_columns is given the generated
values (ids, defaults) of every page are collected with fetch=True.

Driver errors are wrapped in BatchInsertError; callers decide on rollback.
"""


class BatchInsertError(Exception):
    pass


@dataclass(frozen=True)
class BatchMetrics:
    """Timing data for a single batch insert operation."""
    batch_size: int  # Number of rows in this batch
    elapsed_seconds: float  # Time spent on execute_values call
    start_time: float  # Start timestamp (time.time())
    end_time: float  # End timestamp (time.time())


@dataclass(frozen=True)
class InsertResult:
    inserted_rows: int
    returned_values: list[tuple[Any, ...]] | None = None


def batch_insert(
    cursor: Any,
    table: str,
    columns: Sequence[str],
    rows: Iterable[Sequence[Any]],
    returning_columns: Sequence[str] | None = None,
    page_size: int = 1000,
    metrics_callback: Callable[[BatchMetrics], None] | None = None,
) -> InsertResult:
    """Perform a batched INSERT using psycopg2.extras.execute_values.

    Parameters
    ----------
    cursor: psycopg2 cursor
    table: target table name (validated identifier)
    columns: insert columns
    rows: row sequences in column order
    returning_columns: columns for a RETURNING clause (None = no RETURNING)
    page_size: execute_values page size
    metrics_callback: receives BatchMetrics after the statement ran.
        Not invoked when rows is empty (the function returns early).
    """
    rows_list = list(rows)
    if not rows_list:
        return InsertResult(inserted_rows=0, returned_values=[] if returning_columns else None)

    cols_sql = ",".join(f'"{c}"' for c in columns)
    base_sql = f"INSERT INTO {table} ({cols_sql}) VALUES %s"
    if returning_columns:
        base_sql += " RETURNING " + ",".join(f'"{c}"' for c in returning_columns)

    returned = None
    start_time = time.time()
    try:
        returned = execute_values(
            cursor, base_sql, rows_list, page_size=page_size, fetch=bool(returning_columns)
        )
    except Exception as e:
        raise BatchInsertError(str(e)) from e
    finally:
        end_time = time.time()
        if metrics_callback is not None:
            metrics_callback(
                BatchMetrics(
                    batch_size=len(rows_list),
                    elapsed_seconds=end_time - start_time,
                    start_time=start_time,
                    end_time=end_time,
                )
            )

    if returning_columns:
        return InsertResult(inserted_rows=len(rows_list), returned_values=list(returned or []))
    return InsertResult(inserted_rows=len(rows_list))
