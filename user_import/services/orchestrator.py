from __future__ import annotations

import logging
from datetime import UTC, datetime
from pathlib import Path

from ..csvfile.reader import parse_csv
from ..logging.error_log import ErrorLogBuffer
from ..models.candidate_user import CandidateUser
from ..models.error_record import ErrorRecord
from ..models.import_summary import ImportSummary
from .importer import UserImportService

"""Service orchestration for one CSV import run.

process_file() ties the pipeline together: read and validate the file, record
every rejected row in the error log, hand the rows to the import coordinator
(unless dry_run) and return an ImportSummary.
"""

logger = logging.getLogger(__name__)


class ProcessingError(Exception):
    """Fatal error that prevents a file from being processed."""


def _record_rejections(
    rows: list[CandidateUser], file_name: str, error_log: ErrorLogBuffer | None
) -> None:
    for row in rows:
        if row.is_valid:
            continue
        record = ErrorRecord.for_rejected_row(file_name, row)
        if row.is_parse_error:
            logger.warning(f"{file_name}: {record.message}")
        else:
            logger.warning(f"{file_name} row {row.row_number}: {record.message}")
        if error_log is not None:
            error_log.append(record)


def process_file(
    path: Path,
    service: UserImportService | None,
    error_log: ErrorLogBuffer | None = None,
    *,
    dry_run: bool = False,
) -> ImportSummary:
    """Import the users of one CSV file.

    Args:
        path: CSV file to read
        service: import coordinator (may be None when dry_run is set)
        error_log: buffer receiving one ErrorRecord per rejected row
        dry_run: parse and validate only, do not touch the store

    Returns:
        ImportSummary with row counts and timing

    Raises:
        ProcessingError: the file does not exist or cannot be opened
        StoreError: the store failed while saving (propagated unchanged)
    """
    if not path.is_file():
        raise ProcessingError(f"CSV file not found: {path}")
    if service is None and not dry_run:
        raise ProcessingError("an import service is required unless dry_run is set")

    start_time = datetime.now(UTC)
    try:
        with path.open("rb") as f:
            rows = parse_csv(f)
    except OSError as e:
        raise ProcessingError(f"cannot read {path}: {e}") from e

    data_rows = [r for r in rows if not r.is_parse_error]
    valid_rows = sum(1 for r in data_rows if r.is_valid)
    _record_rejections(rows, path.name, error_log)
    logger.info(f"{path.name}: read rows={len(data_rows)} valid={valid_rows}")

    saved = 0
    if dry_run:
        logger.info("dry run: nothing saved")
    else:
        saved = service.import_users(rows)

    end_time = datetime.now(UTC)
    elapsed = (end_time - start_time).total_seconds()
    throughput = len(data_rows) / elapsed if elapsed > 0 else 0.0

    return ImportSummary(
        file_name=path.name,
        total_rows=len(data_rows),
        valid_rows=valid_rows,
        invalid_rows=len(data_rows) - valid_rows,
        saved_rows=saved,
        skipped_rows=0 if dry_run else valid_rows - saved,
        parse_failed=len(data_rows) != len(rows),
        start_time=start_time,
        end_time=end_time,
        elapsed_seconds=elapsed,
        throughput_rows_per_sec=throughput,
    )
