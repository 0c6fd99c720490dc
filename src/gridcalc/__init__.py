"""gridcalc -- Excel-like formula engine for grids of raw cell text."""

from gridcalc.addressing import index_to_col_letter, make_addr, parse_addr
from gridcalc.config import load_config
from gridcalc.sheet import Sheet, compute_cell, compute_grid, is_formula

__version__ = "0.1.0"

__all__ = [
    "Sheet",
    "__version__",
    "compute_cell",
    "compute_grid",
    "index_to_col_letter",
    "is_formula",
    "load_config",
    "make_addr",
    "parse_addr",
]
