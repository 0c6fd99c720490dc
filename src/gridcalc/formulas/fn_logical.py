"""Logical formula functions: IF, IFERROR, AND, OR, NOT.

Truthiness is numeric: a value is true when it coerces to a non-zero
number.  Results are ``1`` or ``0``.
"""

from __future__ import annotations

from typing import Any

from gridcalc.formulas.errors import CircularReferenceError, FormulaError
from gridcalc.formulas.values import check_arity, nth_arg, numeric_values, to_number


def _truthy(value: Any) -> bool:
    return to_number(value) != 0


def _as_scalar(value: Any) -> Any:
    # A bare range argument reads as the sum of its numbers
    if isinstance(value, list):
        return float(sum(numeric_values(value)))
    return value


def _fn_if(args: list, ctx: Any) -> Any:
    """IF(condition [, then_value [, else_value]]).

    Every argument is evaluated before a branch is chosen, so an error or
    circular reference in either branch reaches the cell.  A missing
    then-branch yields 1 and a missing else-branch yields 0.
    """
    check_arity("IF", args, 3)
    if _truthy(_as_scalar(nth_arg(args, 0))):
        return _as_scalar(args[1]) if len(args) > 1 else 1.0
    return _as_scalar(args[2]) if len(args) > 2 else 0.0


def _fn_iferror(raw_args: list, ctx: Any) -> Any:
    """IFERROR(value, fallback): fallback when value raises a formula error.

    Circular references are not caught: ``#CIRC!`` always reaches the cell.
    """
    check_arity("IFERROR", raw_args, 2)
    from gridcalc.formulas.evaluator import _eval

    if not raw_args:
        return ""
    try:
        return _eval(raw_args[0], ctx)
    except CircularReferenceError:
        raise
    except FormulaError:
        return _eval(raw_args[1], ctx) if len(raw_args) > 1 else ""


def _fn_and(args: list, ctx: Any) -> float:
    """AND(val1, val2, ...): 1 if every argument is truthy."""
    return 1.0 if all(_truthy(a) for a in args) else 0.0


def _fn_or(args: list, ctx: Any) -> float:
    """OR(val1, val2, ...): 1 if any argument is truthy."""
    return 1.0 if any(_truthy(a) for a in args) else 0.0


def _fn_not(args: list, ctx: Any) -> float:
    """NOT(val): 1 if the value is zero, else 0."""
    check_arity("NOT", args, 1)
    return 0.0 if _truthy(nth_arg(args, 0)) else 1.0


LOGICAL_FUNCTIONS: dict[str, Any] = {
    "IF": _fn_if,
    "IFERROR": _fn_iferror,
    "AND": _fn_and,
    "OR": _fn_or,
    "NOT": _fn_not,
}

LOGICAL_ALIASES: dict[str, str] = {
    "SI": "IF",
    "ET": "AND",
    "OU": "OR",
    "NON": "NOT",
}

LOGICAL_LAZY_FUNCTIONS: set[str] = {"IFERROR"}

LOGICAL_FLAT_FUNCTIONS: set[str] = {"AND", "OR"}
