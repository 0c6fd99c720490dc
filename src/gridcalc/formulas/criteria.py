"""Criteria predicate shared by COUNTIF, SUMIF and AVERAGEIF.

A criteria string is one of:

- an operator prefix followed by an operand: ``">5"``, ``"<=10"``, ``"<>cat"``
- a wildcard pattern using ``*`` (any run) and ``?`` (one character)
- a plain value, matched numerically or case-insensitively
"""

from __future__ import annotations

import re
from functools import lru_cache
from typing import Any

from gridcalc.formulas.values import to_text, try_number

_OP_RE = re.compile(r"^(<>|>=|<=|>|<|=)(.*)$", re.DOTALL)

_NUMERIC_OPS = {
    "=": lambda a, b: a == b,
    "<>": lambda a, b: a != b,
    ">": lambda a, b: a > b,
    "<": lambda a, b: a < b,
    ">=": lambda a, b: a >= b,
    "<=": lambda a, b: a <= b,
}


@lru_cache(maxsize=256)
def _wildcard_regex(pattern: str) -> re.Pattern[str]:
    parts = []
    for ch in pattern:
        if ch == "*":
            parts.append(".*")
        elif ch == "?":
            parts.append(".")
        else:
            parts.append(re.escape(ch))
    return re.compile("".join(parts), re.IGNORECASE | re.DOTALL)


def matches_criteria(value: Any, criteria: str) -> bool:
    """Return True if *value* satisfies *criteria*.

    With an operator prefix, both sides are compared as numbers when both
    coerce; otherwise ``=``/``<>`` compare the text exactly and the
    ordering operators never match.
    """
    text = to_text(value)

    m = _OP_RE.match(criteria)
    if m:
        op, operand = m.group(1), m.group(2)
        num_crit = try_number(operand)
        num_val = try_number(value)
        if num_crit is not None and num_val is not None:
            return _NUMERIC_OPS[op](num_val, num_crit)
        if op == "=":
            return text == operand
        if op == "<>":
            return text != operand
        return False

    if "*" in criteria or "?" in criteria:
        return _wildcard_regex(criteria).fullmatch(text) is not None

    num_crit = try_number(criteria)
    num_val = try_number(value)
    if num_crit is not None and num_val is not None:
        return num_val == num_crit
    return text.lower() == criteria.lower()
