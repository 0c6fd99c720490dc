"""Date formula functions: TODAY, NOW, YEAR, MONTH, DAY.

Dates are plain text (``YYYY-MM-DD``); there is no date value type and no
date arithmetic.
"""

from __future__ import annotations

import datetime
import math
from typing import Any

from gridcalc.formulas.errors import FormulaValueError
from gridcalc.formulas.values import check_arity, nth_arg, scalar, try_number

# Excel epoch: 1899-12-30 (Excel incorrectly treats 1900 as a leap year,
# so serial number 1 = 1900-01-01 only from March 1900 onwards)
_EXCEL_EPOCH = datetime.date(1899, 12, 30)


def _coerce_date(val: Any) -> datetime.date:
    """Convert a value to a datetime.date.

    Accepts:
    - Excel serial numbers, including numeric text such as "45000"
    - ISO format strings ("YYYY-MM-DD", or a datetime "YYYY-MM-DD HH:MM:SS")
    """
    val = scalar(val)
    if isinstance(val, str) and val.strip():
        n = try_number(val)
        if n is not None:
            val = n
    if isinstance(val, str):
        text = val.strip()
        try:
            return datetime.date.fromisoformat(text)
        except ValueError:
            pass
        try:
            return datetime.datetime.fromisoformat(text).date()
        except ValueError:
            raise FormulaValueError(f"Cannot parse date string: {val!r}")
    if not math.isfinite(val) or val < 1:
        raise FormulaValueError(f"Invalid Excel serial number: {val}")
    try:
        return _EXCEL_EPOCH + datetime.timedelta(days=int(val))
    except OverflowError:
        raise FormulaValueError(f"Invalid Excel serial number: {val}")


def _fn_today(args: list, ctx: Any) -> str:
    """TODAY(): the context clock's date as ``YYYY-MM-DD``."""
    check_arity("TODAY", args, 0)
    return ctx.clock().date().isoformat()


def _fn_now(args: list, ctx: Any) -> str:
    """NOW(): the context clock as ``YYYY-MM-DD HH:MM:SS``."""
    check_arity("NOW", args, 0)
    return ctx.clock().strftime("%Y-%m-%d %H:%M:%S")


def _fn_year(args: list, ctx: Any) -> float:
    """YEAR(date): extract year from a date."""
    check_arity("YEAR", args, 1)
    return float(_coerce_date(nth_arg(args, 0)).year)


def _fn_month(args: list, ctx: Any) -> float:
    """MONTH(date): extract month from a date."""
    check_arity("MONTH", args, 1)
    return float(_coerce_date(nth_arg(args, 0)).month)


def _fn_day(args: list, ctx: Any) -> float:
    """DAY(date): extract day from a date."""
    check_arity("DAY", args, 1)
    return float(_coerce_date(nth_arg(args, 0)).day)


DATE_FUNCTIONS: dict[str, Any] = {
    "TODAY": _fn_today,
    "NOW": _fn_now,
    "YEAR": _fn_year,
    "MONTH": _fn_month,
    "DAY": _fn_day,
}

DATE_ALIASES: dict[str, str] = {
    "AUJOURDHUI": "TODAY",
    "MAINTENANT": "NOW",
    "ANNEE": "YEAR",
    "MOIS": "MONTH",
    "JOUR": "DAY",
}
