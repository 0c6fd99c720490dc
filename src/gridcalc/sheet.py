"""On-demand cell evaluator over a grid of raw cell strings.

A cell is computed only when requested or referenced.  Cycles are detected
with an in-progress set and reported with the path that closes the loop;
reference chains are bounded by ``max_depth``.  Results are not cached
between cells unless the sheet is created with ``memoize=True``.
"""

from __future__ import annotations

import datetime
import logging
import random
import sys
import time
from contextlib import contextmanager
from typing import Any, Callable, Iterator, Sequence

from gridcalc.addressing import expand_range, make_addr, parse_addr
from gridcalc.config import DEFAULT_CONFIG, validate_config
from gridcalc.formulas.errors import (
    CircularReferenceError,
    FormulaDepthError,
    FormulaError,
    FormulaNameError,
)
from gridcalc.formulas.evaluator import EvalContext, evaluate_formula
from gridcalc.formulas.parser import parse_body
from gridcalc.formulas.values import Value, format_display, try_number
from gridcalc.logging.events import EventType, emit_error, emit_info, emit_warning

logger = logging.getLogger(__name__)

Grid = Sequence[Sequence[Any]]

GENERIC_ERROR = "#ERROR!"

# Interpreter frames used per nested cell resolution, with room to spare
_FRAMES_PER_CELL = 16
_RECURSION_HEADROOM = 1000
_MAX_RECURSION_LIMIT = 1_000_000


def is_formula(raw: Any) -> bool:
    """Check if a raw cell string is a formula."""
    return isinstance(raw, str) and raw.startswith("=")


def read_cell(grid: Grid, row: int, col: int) -> str:
    """Raw text of a cell; anything outside the grid reads as ``""``."""
    if row < 0 or col < 0 or row >= len(grid):
        return ""
    cells = grid[row]
    if cells is None or col >= len(cells):
        return ""
    raw = cells[col]
    return "" if raw is None else str(raw)


def literal_value(raw: str) -> Value:
    """Value of a non-formula cell: a number if it reads as one, else the text."""
    if raw == "":
        return ""
    n = try_number(raw)
    return raw if n is None else n


@contextmanager
def _recursion_limit(limit: int) -> Iterator[None]:
    """Raise the interpreter recursion limit to at least *limit* for a block."""
    previous = sys.getrecursionlimit()
    if limit > previous:
        sys.setrecursionlimit(limit)
    try:
        yield
    finally:
        sys.setrecursionlimit(previous)


class Sheet:
    """Evaluator for the formula cells of one grid snapshot.

    Usage::

        sheet = Sheet([["1", "2", "=A1+B1"]])
        sheet.evaluate_cell(0, 2)   # 3.0
        sheet.display_value(0, 2)   # "3"
        sheet.display_grid()        # [["1", "2", "3"]]

    Parameters
    ----------
    grid : Sequence[Sequence[Any]]
        Rows of raw cell strings.  Treated as read-only.
    config : dict[str, Any] | None
        Engine settings (see ``gridcalc.config``); missing keys take defaults.
    rng : random.Random | None
        Random source for RAND and RANDBETWEEN.
    clock : Callable[[], datetime.datetime] | None
        Clock for TODAY and NOW.
    memoize : bool | None
        Overrides the ``memoize`` config setting.
    """

    def __init__(
        self,
        grid: Grid,
        *,
        config: dict[str, Any] | None = None,
        rng: random.Random | None = None,
        clock: Callable[[], datetime.datetime] | None = None,
        memoize: bool | None = None,
    ) -> None:
        cfg = {**DEFAULT_CONFIG, **(config or {})}
        validate_config(cfg)
        self._grid = grid
        self.max_depth: int = cfg["max_depth"]
        self.display_decimals: int = cfg["display_decimals"]
        self.memoize: bool = cfg["memoize"] if memoize is None else memoize
        self._ctx = EvalContext(
            resolver=self,
            rng=rng or random.Random(),
            clock=clock or datetime.datetime.now,
        )
        self._cache: dict[tuple[int, int], Value] = {}
        self._in_progress: set[tuple[int, int]] = set()
        self._eval_stack: list[tuple[int, int]] = []
        self._errors: dict[str, str] = {}

    # ------------------------------------------------------------------
    # CellResolver protocol implementation
    # ------------------------------------------------------------------

    def resolve_cell(self, addr: str) -> Value:
        """Resolve a cell value, triggering recursive evaluation if needed."""
        row, col = parse_addr(addr)
        return self.evaluate_cell(row, col)

    def resolve_range(self, ref: str) -> list[Value]:
        """Resolve a range like ``A1:C3`` to a flat list of values (row-major)."""
        return [self.evaluate_cell(r, c) for r, c in expand_range(ref)]

    # ------------------------------------------------------------------
    # Core evaluation
    # ------------------------------------------------------------------

    def evaluate_cell(self, row: int, col: int) -> Value:
        """Evaluate a single cell, with cycle detection.

        Returns:
            The computed value: a float, or text.  Empty cells give ``""``.

        Raises:
            CircularReferenceError: If the cell is already being evaluated.
            FormulaDepthError: If the reference chain exceeds ``max_depth``.
            FormulaError: Any other evaluation failure.
        """
        key = (row, col)

        if key in self._cache:
            return self._cache[key]

        # Cycle detection
        if key in self._in_progress:
            cycle_start = self._eval_stack.index(key)
            cycle_path = [make_addr(r, c) for r, c in self._eval_stack[cycle_start:] + [key]]
            raise CircularReferenceError(cycle_path)

        if len(self._eval_stack) >= self.max_depth:
            raise FormulaDepthError(self.max_depth)

        raw = read_cell(self._grid, row, col)
        self._in_progress.add(key)
        self._eval_stack.append(key)
        try:
            if is_formula(raw):
                logger.debug("evaluating %s: %s", make_addr(row, col), raw)
                value = evaluate_formula(parse_body(raw[1:]), self._ctx)
            else:
                value = literal_value(raw)
        finally:
            self._in_progress.discard(key)
            self._eval_stack.pop()

        # Successes only; errors are re-raised on every visit
        if self.memoize:
            self._cache[key] = value
        return value

    def display_value(self, row: int, col: int) -> str:
        """Display string for a cell.

        Literal cells are returned verbatim.  Formula cells show their
        formatted value, or an error code such as ``#DIV/0!``.
        """
        raw = read_cell(self._grid, row, col)
        if not is_formula(raw):
            return raw

        limit = min(self.max_depth * _FRAMES_PER_CELL + _RECURSION_HEADROOM, _MAX_RECURSION_LIMIT)
        try:
            with _recursion_limit(limit):
                value = self.evaluate_cell(row, col)
        except FormulaError as exc:
            self._record_error(row, col, raw, exc)
            return exc.display
        except RecursionError as exc:
            self._record_error(row, col, raw, exc)
            return GENERIC_ERROR
        except Exception as exc:
            logger.exception("unexpected failure evaluating %s", make_addr(row, col))
            self._record_error(row, col, raw, exc)
            return GENERIC_ERROR
        return format_display(value, self.display_decimals)

    def display_grid(self) -> list[list[str]]:
        """Display strings for every cell, padded to a rectangle."""
        n_rows = len(self._grid)
        n_cols = max((len(r) for r in self._grid if r is not None), default=0)
        emit_info(
            EventType.recalc_started,
            f"Recalculating {n_rows}x{n_cols} grid",
            {"rows": n_rows, "cols": n_cols},
        )
        t0 = time.monotonic()
        errors_before = len(self._errors)
        out = [
            [self.display_value(r, c) for c in range(n_cols)]
            for r in range(n_rows)
        ]
        emit_info(
            EventType.recalc_completed,
            f"Recalculated {n_rows * n_cols} cells",
            {
                "rows": n_rows,
                "cols": n_cols,
                "errors": len(self._errors) - errors_before,
                "duration_ms": round((time.monotonic() - t0) * 1000, 3),
            },
        )
        return out

    def get_errors(self) -> dict[str, str]:
        """Return evaluation errors seen by ``display_value``.

        Returns:
            Dict of cell label -> error message.
        """
        return dict(self._errors)

    def invalidate(self) -> None:
        """Clear all cached values and errors.

        Call this when cells have been edited and need re-evaluation.
        """
        self._cache.clear()
        self._in_progress.clear()
        self._eval_stack.clear()
        self._errors.clear()

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _record_error(self, row: int, col: int, raw: str, exc: Exception) -> None:
        label = make_addr(row, col)
        self._errors[label] = str(exc) or GENERIC_ERROR
        context: dict[str, Any] = {"cell": label, "formula": raw}

        if isinstance(exc, CircularReferenceError):
            context["cycle"] = exc.cycle_path
            emit_warning(EventType.circular_reference, str(exc), context, error_code=exc.code)
        elif isinstance(exc, FormulaNameError):
            context["function"] = exc.func_name
            emit_warning(EventType.unknown_function, str(exc), context, error_code=exc.code)
        elif isinstance(exc, FormulaError):
            emit_warning(EventType.cell_error, str(exc), context, error_code=exc.code)
        else:
            context["exception"] = type(exc).__name__
            emit_error(EventType.cell_error, str(exc) or GENERIC_ERROR, context, error_code=GENERIC_ERROR)


# ---------------------------------------------------------------------------
# Public compute API
# ---------------------------------------------------------------------------


def compute_cell(grid: Grid, row: int, col: int, **kwargs: Any) -> str:
    """Display string for one cell of *grid*, evaluated from scratch.

    Keyword arguments are passed to :class:`Sheet`.
    """
    return Sheet(grid, **kwargs).display_value(row, col)


def compute_grid(grid: Grid, **kwargs: Any) -> list[list[str]]:
    """Display strings for every cell of *grid*.

    Keyword arguments are passed to :class:`Sheet`.
    """
    return Sheet(grid, **kwargs).display_grid()
