from __future__ import annotations

import re
from datetime import UTC, datetime

from user_import.models.import_summary import ImportSummary
from user_import.services.summary import render_summary_line

"""SUMMARY line format contract."""

SUMMARY_PATTERN = re.compile(
    r"^SUMMARY\s+file=(\S+)\s+rows=([0-9]+)\s+valid=([0-9]+)\s+invalid=([0-9]+)\s+"
    r"saved=([0-9]+)\s+skipped=([0-9]+)\s+elapsed_sec=([0-9]+\.?[0-9]*)\s+"
    r"throughput_rps=([0-9]+\.?[0-9]*)(\s+parse_error=1)?$"
)


def _summary(**overrides) -> ImportSummary:
    t = datetime(2024, 1, 1, tzinfo=UTC)
    values = dict(
        file_name="users.csv",
        total_rows=4,
        valid_rows=3,
        invalid_rows=1,
        saved_rows=2,
        skipped_rows=1,
        parse_failed=False,
        start_time=t,
        end_time=t,
        elapsed_seconds=0.84,
        throughput_rows_per_sec=4.7619,
    )
    values.update(overrides)
    return ImportSummary(**values)


def test_summary_pattern_example_line():
    line = (
        "SUMMARY file=users.csv rows=4 valid=3 invalid=1 saved=2 skipped=1 "
        "elapsed_sec=0.84 throughput_rps=4761.9"
    )
    assert SUMMARY_PATTERN.match(line), "SUMMARY line should match contract regex"


def test_rendered_line_matches_contract():
    m = SUMMARY_PATTERN.match(render_summary_line(_summary()))

    assert m
    assert m.group(2, 3, 4, 5, 6) == ("4", "3", "1", "2", "1")
    assert m.group(9) is None


def test_rendered_line_with_parse_error_matches_contract():
    line = render_summary_line(_summary(total_rows=0, valid_rows=0, invalid_rows=0,
                                        saved_rows=0, skipped_rows=0, parse_failed=True,
                                        elapsed_seconds=0.0, throughput_rows_per_sec=0.0))

    m = SUMMARY_PATTERN.match(line)
    assert m
    assert m.group(9) == " parse_error=1"


def test_valid_rows_split_into_saved_and_skipped():
    m = SUMMARY_PATTERN.match(render_summary_line(_summary()))

    valid, saved, skipped = int(m.group(3)), int(m.group(5)), int(m.group(6))
    assert saved + skipped == valid
