"""Scalar coercion rules shared by operators and functions.

A computed value is either a ``float`` or a ``str``.  Text is turned into
a number with the same rules as JavaScript's ``Number()`` so that grids
behave identically in the browser editor and here.
"""

from __future__ import annotations

import math
import re
from decimal import Decimal
from typing import Any, Iterable

from gridcalc.formulas.errors import FormulaFunctionError, FormulaValueError

Value = float | str

_DECIMAL_RE = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?$")
_INFINITY_RE = re.compile(r"^[+-]?Infinity$")
_RADIX_RE = re.compile(r"^0(?:[xX][0-9a-fA-F]+|[oO][0-7]+|[bB][01]+)$")


def try_number(value: Any) -> float | None:
    """Coerce *value* to a float, or return None when it is not numeric.

    ``None`` and empty (or blank) strings coerce to 0.
    """
    if value is None:
        return 0.0
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, (int, float)):
        return float(value)
    text = str(value).strip()
    if text == "":
        return 0.0
    if _DECIMAL_RE.match(text) or _INFINITY_RE.match(text):
        return float(text)
    if _RADIX_RE.match(text):
        return float(int(text, 0))
    return None


def to_number(value: Any) -> float:
    """Coerce *value* to a float, raising ``#VALUE!`` if it is not numeric.

    A one-value list (a single-cell range) coerces to its only value.
    """
    if isinstance(value, list):
        if len(value) != 1:
            raise FormulaValueError("Range used where a single value is expected")
        value = value[0]
    n = try_number(value)
    if n is None:
        raise FormulaValueError(f"Not a number: {value!r}")
    return n


def scalar(value: Any) -> Value:
    """Reduce a function argument to one scalar (lists must hold one value)."""
    if isinstance(value, list):
        if len(value) != 1:
            raise FormulaValueError("Range used where a single value is expected")
        return value[0]
    if value is None:
        return ""
    return value


def to_text(value: Any) -> str:
    """Stringify a scalar the way the spreadsheet displays it in text."""
    value = scalar(value)
    if isinstance(value, float):
        return number_to_text(value)
    return str(value)


def is_blank(value: Any) -> bool:
    return value is None or value == ""


def numeric_values(values: Iterable[Any]) -> list[float]:
    """Numbers among *values*: blanks and non-numeric text are skipped."""
    out: list[float] = []
    for v in values:
        if is_blank(v):
            continue
        n = try_number(v)
        if n is not None:
            out.append(n)
    return out


def number_to_text(x: float) -> str:
    """Shortest round-trip text for *x*, laid out like JavaScript ``String(x)``.

    Integers below 1e21 print without a decimal point (digits beyond the
    shortest representation become zeros); exponent notation is used for
    magnitudes >= 1e21 or < 1e-6.
    """
    if math.isnan(x):
        return "NaN"
    if math.isinf(x):
        return "Infinity" if x > 0 else "-Infinity"
    if x == 0:
        return "0"
    if x.is_integer() and abs(x) < 2**53:
        return str(int(x))

    sign = "-" if x < 0 else ""
    _, digit_tuple, exponent = Decimal(repr(abs(x))).normalize().as_tuple()
    digits = "".join(str(d) for d in digit_tuple)
    k = len(digits)
    n = exponent + k  # position of the decimal point

    if k <= n <= 21:
        body = digits + "0" * (n - k)
    elif 0 < n <= 21:
        body = f"{digits[:n]}.{digits[n:]}"
    elif -6 < n <= 0:
        body = "0." + "0" * (-n) + digits
    else:
        e = n - 1
        mantissa = digits if k == 1 else f"{digits[0]}.{digits[1:]}"
        body = f"{mantissa}e{'+' if e >= 0 else '-'}{abs(e)}"
    return sign + body


def format_display(value: Value, decimals: int = 10) -> str:
    """Display string for a computed cell value.

    Integers print as-is; other finite numbers are rounded half-up to
    *decimals* places to hide float noise (``0.1+0.2`` shows ``0.3``).
    """
    if isinstance(value, float):
        if math.isfinite(value) and not value.is_integer():
            factor = 10.0 ** decimals
            value = math.floor(value * factor + 0.5) / factor
        return number_to_text(value)
    return str(value)


# ---------------------------------------------------------------------------
# Function argument helpers
# ---------------------------------------------------------------------------


def nth_arg(args: list, index: int, default: Any = "") -> Any:
    """Argument *index*, or *default* when the call supplied fewer."""
    return args[index] if index < len(args) else default


def as_list(value: Any) -> list:
    """A range argument as a list; a scalar becomes a one-value list."""
    if isinstance(value, list):
        return value
    return [scalar(value)]


def check_arity(name: str, args: list, max_args: int) -> None:
    """Reject calls with more than *max_args* arguments."""
    if len(args) > max_args:
        plural = "argument" if max_args == 1 else "arguments"
        raise FormulaFunctionError(name, f"{name} takes at most {max_args} {plural}")
