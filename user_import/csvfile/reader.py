from __future__ import annotations

import codecs
import csv
import io
import re
from collections.abc import Iterable, Iterator, Sequence
from typing import BinaryIO

from ..models.candidate_user import CandidateUser
from ..services.validator import validate

"""CSV reader for user import files.

- The 1st line is the header; every following non-blank line is a data row.
- Columns are located by name, never by position: each canonical field has a
  fixed set of accepted header spellings (case, space and underscore
  insensitive).
- Structural failures (bad UTF-8, malformed CSV, I/O errors) never raise; they
  are reported as one synthetic row 0 appended after the rows already read.
"""

__all__ = [
    "FIELD_ALIASES",
    "resolve_columns",
    "map_rows",
    "parse_csv",
]

# canonical field -> accepted header spellings
FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "full_name": ("fullname", "full_name"),
    "username": ("username", "user_name"),
    "email": ("email", "email_address"),
    "password": ("password", "pwd"),
}

HEADER_MISSING = "CSV file must have headers"

_HEADER_NOISE = re.compile(r"[\s_]+")


def _normalize_header(name: str) -> str:
    return _HEADER_NOISE.sub("", name.lower())


def resolve_columns(headers: Sequence[str]) -> dict[str, int | None]:
    """Map each canonical field to its column index (None when absent)."""
    normalized = [_normalize_header(h) for h in headers]
    columns: dict[str, int | None] = {}
    for field_name, aliases in FIELD_ALIASES.items():
        wanted = {_normalize_header(a) for a in aliases}
        columns[field_name] = next(
            (i for i, h in enumerate(normalized) if h in wanted), None
        )
    return columns


def _cell(row: Sequence[str], index: int | None) -> str:
    if index is None or index >= len(row):
        return ""
    return (row[index] or "").strip()


def _decoded_lines(source: bytes | BinaryIO) -> Iterator[str]:
    """Decode the input one physical line at a time.

    A decoding fault surfaces at the line that holds the bad bytes, after the
    earlier lines were handed to the csv reader. Line endings are kept so
    quoted values spanning lines survive.
    """
    stream = io.BytesIO(source) if isinstance(source, (bytes, bytearray)) else source
    first = True
    for chunk in stream:
        for raw in chunk.splitlines(keepends=True):
            if first:
                raw = raw.removeprefix(codecs.BOM_UTF8)
                first = False
            yield raw.decode("utf-8")


def _read_rows(reader: Iterable[list[str]], columns: dict[str, int | None]) -> Iterable[CandidateUser]:
    row_number = 0
    for raw in reader:
        if not raw:  # blank line
            continue
        row_number += 1
        yield CandidateUser(
            row_number=row_number,
            full_name=_cell(raw, columns["full_name"]),
            username=_cell(raw, columns["username"]),
            email=_cell(raw, columns["email"]),
            password=_cell(raw, columns["password"]),
        )


def map_rows(source: bytes | BinaryIO) -> list[CandidateUser]:
    """Read CSV content into unvalidated CandidateUser rows.

    Parameters
    ----------
    source: raw CSV bytes or a binary stream (UTF-8)

    Returns
    -------
    Rows in file order with row numbers 1..N. On a structural failure the rows
    read so far are kept and one parse-error row (row_number 0) is appended.
    """
    users: list[CandidateUser] = []
    try:
        reader = csv.reader(_decoded_lines(source))
        # blank lines before the header are skipped like blank data lines
        headers = next((r for r in reader if r), None)
        if headers is None:
            users.append(CandidateUser.parse_error(HEADER_MISSING))
            return users
        columns = resolve_columns([h.strip() for h in headers])
        for user in _read_rows(reader, columns):
            users.append(user)
    except (csv.Error, OSError, ValueError) as e:
        # UnicodeDecodeError is a ValueError
        users.append(CandidateUser.parse_error(str(e)))
    return users


def parse_csv(source: bytes | BinaryIO) -> list[CandidateUser]:
    """Read CSV content and validate every data row.

    The parse-error row (row_number 0) is passed through untouched so its
    message is not replaced by field validation errors.
    """
    return [u if u.is_parse_error else validate(u) for u in map_rows(source)]
