"""Text formula functions: LEN, LEFT, MID, SUBSTITUTE, FIND, REPT, ..."""

from __future__ import annotations

import math
from typing import Any

from gridcalc.formulas.errors import FormulaValueError
from gridcalc.formulas.values import check_arity, nth_arg, to_number, to_text


def _count_arg(name: str, args: list, index: int, default: Any = "") -> int:
    """A non-negative character count, truncated towards zero."""
    n = to_number(nth_arg(args, index, default))
    if not math.isfinite(n) or n < 0:
        raise FormulaValueError(f"{name}: invalid count {n}")
    return int(n)


def _start_arg(name: str, args: list, index: int) -> int:
    """A 1-based start position, returned 0-based."""
    n = to_number(nth_arg(args, index, 1.0))
    if not math.isfinite(n) or n < 1:
        raise FormulaValueError(f"{name}: invalid start position {n}")
    return int(n) - 1


def _fn_len(args: list, ctx: Any) -> float:
    check_arity("LEN", args, 1)
    return float(len(to_text(nth_arg(args, 0))))


def _fn_left(args: list, ctx: Any) -> str:
    """LEFT(text [, n]): first n characters (default 1)."""
    check_arity("LEFT", args, 2)
    text = to_text(nth_arg(args, 0))
    return text[: _count_arg("LEFT", args, 1, 1.0)]


def _fn_right(args: list, ctx: Any) -> str:
    """RIGHT(text [, n]): last n characters (default 1)."""
    check_arity("RIGHT", args, 2)
    text = to_text(nth_arg(args, 0))
    n = _count_arg("RIGHT", args, 1, 1.0)
    return text[-n:] if n else ""


def _fn_mid(args: list, ctx: Any) -> str:
    """MID(text, start, count): count characters from 1-based start."""
    check_arity("MID", args, 3)
    text = to_text(nth_arg(args, 0))
    start = _start_arg("MID", args, 1)
    count = _count_arg("MID", args, 2)
    return text[start : start + count]


def _fn_upper(args: list, ctx: Any) -> str:
    check_arity("UPPER", args, 1)
    return to_text(nth_arg(args, 0)).upper()


def _fn_lower(args: list, ctx: Any) -> str:
    check_arity("LOWER", args, 1)
    return to_text(nth_arg(args, 0)).lower()


def _fn_trim(args: list, ctx: Any) -> str:
    check_arity("TRIM", args, 1)
    return to_text(nth_arg(args, 0)).strip()


def _fn_concatenate(args: list, ctx: Any) -> str:
    return "".join(to_text(a) for a in args)


def _fn_substitute(args: list, ctx: Any) -> str:
    """SUBSTITUTE(text, old, new): replace every occurrence of old."""
    check_arity("SUBSTITUTE", args, 3)
    text = to_text(nth_arg(args, 0))
    old = to_text(nth_arg(args, 1))
    new = to_text(nth_arg(args, 2))
    if not old:
        return text
    return text.replace(old, new)


def _fn_text(args: list, ctx: Any) -> str:
    """TEXT(value [, format]): the format is accepted but not applied."""
    check_arity("TEXT", args, 2)
    return to_text(nth_arg(args, 0))


def _fn_value(args: list, ctx: Any) -> float:
    check_arity("VALUE", args, 1)
    return to_number(nth_arg(args, 0))


def _locate(name: str, args: list, fold_case: bool) -> float:
    check_arity(name, args, 3)
    needle = to_text(nth_arg(args, 0))
    haystack = to_text(nth_arg(args, 1))
    start = _start_arg(name, args, 2)
    if fold_case:
        needle, haystack = needle.lower(), haystack.lower()
    idx = haystack.find(needle, start)
    if idx == -1:
        raise FormulaValueError(f"{name}: {needle!r} not found")
    return float(idx + 1)


def _fn_find(args: list, ctx: Any) -> float:
    """FIND(needle, haystack [, start]): case-sensitive, 1-based."""
    return _locate("FIND", args, fold_case=False)


def _fn_search(args: list, ctx: Any) -> float:
    """SEARCH(needle, haystack [, start]): case-insensitive, 1-based."""
    return _locate("SEARCH", args, fold_case=True)


def _fn_rept(args: list, ctx: Any) -> str:
    check_arity("REPT", args, 2)
    text = to_text(nth_arg(args, 0))
    return text * _count_arg("REPT", args, 1)


TEXT_FUNCTIONS: dict[str, Any] = {
    "LEN": _fn_len,
    "LEFT": _fn_left,
    "RIGHT": _fn_right,
    "MID": _fn_mid,
    "UPPER": _fn_upper,
    "LOWER": _fn_lower,
    "TRIM": _fn_trim,
    "CONCATENATE": _fn_concatenate,
    "SUBSTITUTE": _fn_substitute,
    "TEXT": _fn_text,
    "VALUE": _fn_value,
    "FIND": _fn_find,
    "SEARCH": _fn_search,
    "REPT": _fn_rept,
}

TEXT_ALIASES: dict[str, str] = {
    "NBCAR": "LEN",
    "GAUCHE": "LEFT",
    "DROITE": "RIGHT",
    "STXT": "MID",
    "MAJUSCULE": "UPPER",
    "MINUSCULE": "LOWER",
    "SUPPRESPACE": "TRIM",
    "CONCATENER": "CONCATENATE",
    "SUBSTITUE": "SUBSTITUTE",
    "TEXTE": "TEXT",
    "CNUM": "VALUE",
    "TROUVE": "FIND",
    "CHERCHE": "SEARCH",
}

TEXT_FLAT_FUNCTIONS: set[str] = {"CONCATENATE"}
