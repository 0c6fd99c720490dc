"""Conditional aggregates: COUNTIF, SUMIF, AVERAGEIF.

Each takes a criteria range, a criteria string and, for SUMIF/AVERAGEIF,
an optional target range aligned index-for-index with the criteria range.
"""

from __future__ import annotations

from typing import Any

from gridcalc.formulas.criteria import matches_criteria
from gridcalc.formulas.errors import FormulaDivZeroError
from gridcalc.formulas.values import as_list, check_arity, nth_arg, to_text, try_number


def _matching_targets(name: str, args: list) -> list[float]:
    """Target values (as numbers) at every index where the criteria matches.

    Positions past the end of the target range, and non-numeric targets,
    contribute 0.
    """
    check_arity(name, args, 3)
    values = as_list(nth_arg(args, 0))
    criteria = to_text(nth_arg(args, 1))
    targets = as_list(args[2]) if len(args) > 2 else values

    out: list[float] = []
    for i, v in enumerate(values):
        if not matches_criteria(v, criteria):
            continue
        n = try_number(targets[i]) if i < len(targets) else 0.0
        out.append(n if n is not None else 0.0)
    return out


def _fn_countif(args: list, ctx: Any) -> float:
    """COUNTIF(range, criteria): number of values matching criteria."""
    check_arity("COUNTIF", args, 2)
    values = as_list(nth_arg(args, 0))
    criteria = to_text(nth_arg(args, 1))
    return float(sum(1 for v in values if matches_criteria(v, criteria)))


def _fn_sumif(args: list, ctx: Any) -> float:
    """SUMIF(range, criteria [, sum_range])."""
    return float(sum(_matching_targets("SUMIF", args)))


def _fn_averageif(args: list, ctx: Any) -> float:
    """AVERAGEIF(range, criteria [, average_range]): ``#DIV/0!`` on no match."""
    matched = _matching_targets("AVERAGEIF", args)
    if not matched:
        raise FormulaDivZeroError("AVERAGEIF matched no values")
    return sum(matched) / len(matched)


CRITERIA_FUNCTIONS: dict[str, Any] = {
    "COUNTIF": _fn_countif,
    "SUMIF": _fn_sumif,
    "AVERAGEIF": _fn_averageif,
}

CRITERIA_ALIASES: dict[str, str] = {
    "NB.SI": "COUNTIF",
    "SOMME.SI": "SUMIF",
    "MOYENNE.SI": "AVERAGEIF",
}
