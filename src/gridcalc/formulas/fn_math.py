"""Math formula functions: SUM, AVERAGE, ROUND, LOG, RAND, ...

Aggregates (SUM, AVERAGE, MIN, MAX, COUNT, COUNTA, PRODUCT) receive their
arguments flattened; text and blank values are skipped when summing.
"""

from __future__ import annotations

import math
from typing import Any, Callable

from gridcalc.formulas.errors import FormulaDivZeroError, FormulaNumError
from gridcalc.formulas.values import (
    check_arity,
    is_blank,
    nth_arg,
    numeric_values,
    to_number,
)


def checked(func: Callable[..., float], *operands: float) -> float:
    """Call a ``math`` function, mapping domain errors and overflow to ``#NUM!``."""
    try:
        return float(func(*operands))
    except (ValueError, OverflowError) as exc:
        raise FormulaNumError(f"{func.__name__}{operands}: {exc}") from exc


def power(base: float, exponent: float) -> float:
    """``base ^ exponent`` with ``math.pow`` semantics."""
    return checked(math.pow, base, exponent)


def _fn_sum(args: list, ctx: Any) -> float:
    return float(sum(numeric_values(args)))


def _fn_average(args: list, ctx: Any) -> float:
    nums = numeric_values(args)
    if not nums:
        raise FormulaDivZeroError("AVERAGE of no numeric values")
    return sum(nums) / len(nums)


def _fn_min(args: list, ctx: Any) -> float:
    nums = numeric_values(args)
    return min(nums) if nums else 0.0


def _fn_max(args: list, ctx: Any) -> float:
    nums = numeric_values(args)
    return max(nums) if nums else 0.0


def _fn_count(args: list, ctx: Any) -> float:
    return float(len(numeric_values(args)))


def _fn_counta(args: list, ctx: Any) -> float:
    return float(sum(1 for a in args if not is_blank(a)))


def _fn_product(args: list, ctx: Any) -> float:
    return float(math.prod(numeric_values(args)))


def _fn_abs(args: list, ctx: Any) -> float:
    check_arity("ABS", args, 1)
    return abs(to_number(nth_arg(args, 0)))


def _fn_sqrt(args: list, ctx: Any) -> float:
    """SQRT(x): ``#NUM!`` for negative x."""
    check_arity("SQRT", args, 1)
    x = to_number(nth_arg(args, 0))
    if x < 0:
        raise FormulaNumError(f"SQRT of negative number {x}")
    return checked(math.sqrt, x)


def _fn_power(args: list, ctx: Any) -> float:
    check_arity("POWER", args, 2)
    return power(to_number(nth_arg(args, 0)), to_number(nth_arg(args, 1)))


def _fn_mod(args: list, ctx: Any) -> float:
    """MOD(a, b): remainder with the sign of a (truncated division)."""
    check_arity("MOD", args, 2)
    a = to_number(nth_arg(args, 0))
    b = to_number(nth_arg(args, 1))
    if b == 0:
        raise FormulaDivZeroError("MOD by zero")
    return checked(math.fmod, a, b)


def _fn_int(args: list, ctx: Any) -> float:
    check_arity("INT", args, 1)
    return checked(math.floor, to_number(nth_arg(args, 0)))


def _digits_factor(args: list) -> tuple[float, float]:
    value = to_number(nth_arg(args, 0))
    digits = to_number(nth_arg(args, 1))
    return value, power(10.0, digits)


def _fn_round(args: list, ctx: Any) -> float:
    """ROUND(x [, digits]): halves round up (towards +infinity)."""
    check_arity("ROUND", args, 2)
    value, factor = _digits_factor(args)
    return checked(math.floor, value * factor + 0.5) / factor


def _fn_roundup(args: list, ctx: Any) -> float:
    check_arity("ROUNDUP", args, 2)
    value, factor = _digits_factor(args)
    return checked(math.ceil, value * factor) / factor


def _fn_rounddown(args: list, ctx: Any) -> float:
    check_arity("ROUNDDOWN", args, 2)
    value, factor = _digits_factor(args)
    return checked(math.floor, value * factor) / factor


def _significance(name: str, args: list) -> tuple[float, float]:
    check_arity(name, args, 2)
    value = to_number(nth_arg(args, 0))
    sig = to_number(nth_arg(args, 1, 1.0))
    if sig == 0:
        raise FormulaDivZeroError(f"{name} with zero significance")
    return value, sig


def _fn_ceiling(args: list, ctx: Any) -> float:
    """CEILING(x [, significance]): round up to a multiple of significance."""
    value, sig = _significance("CEILING", args)
    return checked(math.ceil, value / sig) * sig


def _fn_floor(args: list, ctx: Any) -> float:
    """FLOOR(x [, significance]): round down to a multiple of significance."""
    value, sig = _significance("FLOOR", args)
    return checked(math.floor, value / sig) * sig


def _fn_log(args: list, ctx: Any) -> float:
    """LOG(x [, base]): base defaults to 10."""
    check_arity("LOG", args, 2)
    value = to_number(nth_arg(args, 0))
    base = to_number(nth_arg(args, 1, 10.0))
    denominator = checked(math.log, base)
    if denominator == 0:
        raise FormulaDivZeroError("LOG with base 1")
    return checked(math.log, value) / denominator


def _fn_ln(args: list, ctx: Any) -> float:
    check_arity("LN", args, 1)
    return checked(math.log, to_number(nth_arg(args, 0)))


def _fn_exp(args: list, ctx: Any) -> float:
    check_arity("EXP", args, 1)
    return checked(math.exp, to_number(nth_arg(args, 0)))


def _fn_pi(args: list, ctx: Any) -> float:
    check_arity("PI", args, 0)
    return math.pi


def _fn_rand(args: list, ctx: Any) -> float:
    """RAND(): uniform in [0, 1) from the context's random source."""
    check_arity("RAND", args, 0)
    return ctx.rng.random()


def _fn_randbetween(args: list, ctx: Any) -> float:
    """RANDBETWEEN(lo, hi): integer in [lo, hi] for integral bounds."""
    check_arity("RANDBETWEEN", args, 2)
    lo = to_number(nth_arg(args, 0))
    hi = to_number(nth_arg(args, 1))
    return checked(math.floor, ctx.rng.random() * (hi - lo + 1)) + lo


def _fn_sign(args: list, ctx: Any) -> float:
    check_arity("SIGN", args, 1)
    x = to_number(nth_arg(args, 0))
    if math.isnan(x):
        return x
    return float((x > 0) - (x < 0))


MATH_FUNCTIONS: dict[str, Any] = {
    "SUM": _fn_sum,
    "AVERAGE": _fn_average,
    "MIN": _fn_min,
    "MAX": _fn_max,
    "COUNT": _fn_count,
    "COUNTA": _fn_counta,
    "PRODUCT": _fn_product,
    "ABS": _fn_abs,
    "SQRT": _fn_sqrt,
    "POWER": _fn_power,
    "MOD": _fn_mod,
    "INT": _fn_int,
    "ROUND": _fn_round,
    "ROUNDUP": _fn_roundup,
    "ROUNDDOWN": _fn_rounddown,
    "CEILING": _fn_ceiling,
    "FLOOR": _fn_floor,
    "LOG": _fn_log,
    "LN": _fn_ln,
    "EXP": _fn_exp,
    "PI": _fn_pi,
    "RAND": _fn_rand,
    "RANDBETWEEN": _fn_randbetween,
    "SIGN": _fn_sign,
}

MATH_ALIASES: dict[str, str] = {
    "MOYENNE": "AVERAGE",
    "RACINE": "SQRT",
    "PUISSANCE": "POWER",
    "ENT": "INT",
    "ARRONDI": "ROUND",
    "PLAFOND": "CEILING",
    "PLANCHER": "FLOOR",
    "PRODUIT": "PRODUCT",
}

MATH_FLAT_FUNCTIONS: set[str] = {
    "SUM", "AVERAGE", "MIN", "MAX", "COUNT", "COUNTA", "PRODUCT",
}
