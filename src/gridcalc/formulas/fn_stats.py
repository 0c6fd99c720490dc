"""Statistical formula functions: MEDIAN, STDEV."""

from __future__ import annotations

import statistics
from typing import Any

from gridcalc.formulas.errors import FormulaDivZeroError
from gridcalc.formulas.values import numeric_values


def _fn_median(args: list, ctx: Any) -> float:
    """MEDIAN(values...): 0 when there are no numeric values."""
    nums = numeric_values(args)
    if not nums:
        return 0.0
    return float(statistics.median(nums))


def _fn_stdev(args: list, ctx: Any) -> float:
    """STDEV(values...): sample standard deviation (n - 1 denominator)."""
    nums = numeric_values(args)
    if len(nums) < 2:
        raise FormulaDivZeroError("STDEV requires at least 2 numeric values")
    return float(statistics.stdev(nums))


STATS_FUNCTIONS: dict[str, Any] = {
    "MEDIAN": _fn_median,
    "STDEV": _fn_stdev,
}

STATS_ALIASES: dict[str, str] = {
    "MEDIANE": "MEDIAN",
}

STATS_FLAT_FUNCTIONS: set[str] = {"MEDIAN", "STDEV"}
