"""Lookup formula functions: VLOOKUP.

A range argument arrives as a flat row-major list without its shape, so
VLOOKUP cannot locate a column and is reported as unsupported.
"""

from __future__ import annotations

from typing import Any

from gridcalc.formulas.errors import FormulaFunctionError


def _fn_vlookup(args: list, ctx: Any) -> Any:
    """VLOOKUP(key, range, col_index [, approximate])."""
    raise FormulaFunctionError("VLOOKUP", "VLOOKUP requires range context")


LOOKUP_FUNCTIONS: dict[str, Any] = {
    "VLOOKUP": _fn_vlookup,
}

LOOKUP_ALIASES: dict[str, str] = {
    "RECHERCHEV": "VLOOKUP",
}
