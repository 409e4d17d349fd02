from __future__ import annotations

from ..models.import_summary import ImportSummary

"""Summary line rendering for the CSV -> PostgreSQL user import tool."""


def _format_number(value: float) -> str:
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        # avoid scientific notation
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return f"{value:.3f}".rstrip("0").rstrip(".")


def render_summary_line(summary: ImportSummary) -> str:
    """Render the SUMMARY line for one import run.

    Format:
    SUMMARY file={name} rows={total} valid={valid} invalid={invalid}
    saved={saved} skipped={skipped} elapsed_sec={elapsed} throughput_rps={rps}

    Examples:
        >>> from datetime import datetime, timezone
        >>> t = datetime(2024, 1, 1, tzinfo=timezone.utc)
        >>> s = ImportSummary(
        ...     file_name="users.csv", total_rows=4, valid_rows=3, invalid_rows=1,
        ...     saved_rows=2, skipped_rows=1, parse_failed=False, start_time=t,
        ...     end_time=t, elapsed_seconds=2.0, throughput_rows_per_sec=2.0,
        ... )
        >>> render_summary_line(s)
        'SUMMARY file=users.csv rows=4 valid=3 invalid=1 saved=2 skipped=1 elapsed_sec=2 throughput_rps=2'
    """
    line = (
        f"SUMMARY file={summary.file_name} "
        f"rows={summary.total_rows} "
        f"valid={summary.valid_rows} "
        f"invalid={summary.invalid_rows} "
        f"saved={summary.saved_rows} "
        f"skipped={summary.skipped_rows} "
        f"elapsed_sec={_format_number(summary.elapsed_seconds)} "
        f"throughput_rps={_format_number(summary.throughput_rows_per_sec)}"
    )
    if summary.parse_failed:
        line += " parse_error=1"
    return line
