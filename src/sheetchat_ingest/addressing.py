"""Column-letter and range-address helpers.

Pure functions converting between zero-based column indices and spreadsheet
column letters, and between range-address strings and their row/column
bounds.  Nothing here touches the host or the network.
"""

from __future__ import annotations

import re
from typing import NamedTuple

from sheetchat_ingest.errors import FormatError

_CELL = r"\$?([A-Za-z]+)\$?(\d+)"
_RANGE_RE = re.compile(rf"^{_CELL}(?::{_CELL})?$")


class RangeBounds(NamedTuple):
    """Inclusive bounds of a rectangular range.  Rows are 1-based."""

    start_col: str
    start_row: int
    end_col: str
    end_row: int


def column_index_to_letter(index: int) -> str:
    """Return the bijective base-26 letters for a zero-based column index.

    ``0 -> "A"``, ``25 -> "Z"``, ``26 -> "AA"``, ``701 -> "ZZ"``.
    """
    if index < 0:
        raise ValueError(f"Column index must be non-negative, got {index}")

    letters: list[str] = []
    while index >= 0:
        letters.append(chr(ord("A") + index % 26))
        index = index // 26 - 1
    return "".join(reversed(letters))


def column_letter_to_index(letters: str) -> int:
    """Inverse of :func:`column_index_to_letter`."""
    if not letters or not letters.isalpha():
        raise ValueError(f"Invalid column letters: {letters!r}")

    index = 0
    for char in letters.upper():
        index = index * 26 + (ord(char) - ord("A") + 1)
    return index - 1


def parse_range_address(address: str) -> RangeBounds:
    """Parse ``<colLetters><rowDigits>:<colLetters><rowDigits>`` into bounds.

    The sheet-qualified form hosts report (``Sheet1!A1:C9`` or
    ``'My Sheet'!A1:C9``) and ``$`` absolute markers are accepted.  A single
    cell (``B4``) is a one-cell range.

    Raises:
        FormatError: If the address does not match the pattern.
    """
    raw = address.strip() if isinstance(address, str) else ""
    if "!" in raw:
        raw = raw.rsplit("!", 1)[1]

    match = _RANGE_RE.match(raw)
    if match is None:
        raise FormatError(f"Malformed range address: {address!r}")

    start_col, start_row, end_col, end_row = match.groups()
    if end_col is None:
        end_col, end_row = start_col, start_row

    return RangeBounds(
        start_col=start_col.upper(),
        start_row=int(start_row),
        end_col=end_col.upper(),
        end_row=int(end_row),
    )


def build_range_address(
    start_col: str, start_row: int, end_col: str, end_row: int
) -> str:
    """Build an unqualified ``A1:C9`` address from its bounds."""
    return f"{start_col}{start_row}:{end_col}{end_row}"


def plan_row_windows(
    first_row: int, row_count: int, max_rows: int
) -> list[tuple[int, int]]:
    """Split ``row_count`` rows starting at ``first_row`` into windows.

    Returns inclusive ``(start_row, end_row)`` pairs of at most ``max_rows``
    rows each; only the last window may be shorter.
    """
    if max_rows < 1:
        raise ValueError(f"max_rows must be positive, got {max_rows}")

    windows: list[tuple[int, int]] = []
    last_row = first_row + row_count - 1
    start = first_row
    while start <= last_row:
        end = min(start + max_rows - 1, last_row)
        windows.append((start, end))
        start = end + 1
    return windows
