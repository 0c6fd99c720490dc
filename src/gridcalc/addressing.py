"""A1-style cell address helpers.

Rows and columns are 0-based internally; labels use base-26 column
letters (A=0, Z=25, AA=26) and 1-based row numbers.
"""

from __future__ import annotations

import re

from gridcalc.formulas.errors import FormulaRefError

_ADDR_RE = re.compile(r"^([A-Z]+)(\d+)$")


def col_letter_to_index(letters: str) -> int:
    """Convert column letter(s) to 0-based index.  A=0, B=1, ..., Z=25, AA=26."""
    idx = 0
    for ch in letters:
        idx = idx * 26 + (ord(ch) - ord("A") + 1)
    return idx - 1


def index_to_col_letter(idx: int) -> str:
    """Convert 0-based column index to letter(s).  0=A, 25=Z, 26=AA."""
    result = ""
    n = idx + 1
    while n > 0:
        n, rem = divmod(n - 1, 26)
        result = chr(65 + rem) + result
    return result


def parse_addr(addr: str) -> tuple[int, int]:
    """Parse 'B12' -> (row_0based, col_0based) = (11, 1).

    Raises:
        FormulaRefError: If *addr* is not letters followed by a row >= 1.
    """
    m = _ADDR_RE.match(addr.strip().upper())
    if not m or int(m.group(2)) < 1:
        raise FormulaRefError(addr)
    col = col_letter_to_index(m.group(1))
    row = int(m.group(2)) - 1
    return row, col


def make_addr(row: int, col: int) -> str:
    """Build cell address from 0-based row/col."""
    return f"{index_to_col_letter(col)}{row + 1}"


def parse_range(text: str) -> tuple[tuple[int, int], tuple[int, int]]:
    """Parse 'A1:C3' into normalised (top-left, bottom-right) corners.

    Corners may be written in any order; ``C3:A1`` gives the same result
    as ``A1:C3``.
    """
    start, sep, end = text.partition(":")
    if not sep:
        raise FormulaRefError(text)
    r0, c0 = parse_addr(start)
    r1, c1 = parse_addr(end)
    # Normalise so r0 <= r1, c0 <= c1
    if r0 > r1:
        r0, r1 = r1, r0
    if c0 > c1:
        c0, c1 = c1, c0
    return (r0, c0), (r1, c1)


def expand_range(text: str) -> list[tuple[int, int]]:
    """Expand a rectangular range into (row, col) pairs, row-major."""
    (r0, c0), (r1, c1) = parse_range(text)
    return [(r, c) for r in range(r0, r1 + 1) for c in range(c0, c1 + 1)]
