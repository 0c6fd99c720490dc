"""Tree-walking evaluator for parsed formula expressions.

Supports:
- Arithmetic, concatenation and comparison over number/text scalars
- Cell references and ranges via a resolver callback
- Built-in functions (with French aliases), some with lazy arguments
"""

from __future__ import annotations

import datetime
import math
import random
from dataclasses import dataclass, field
from typing import Any, Callable, Protocol

from lark import Token, Tree

from gridcalc.formulas.errors import (
    FormulaDivZeroError,
    FormulaError,
    FormulaNameError,
    FormulaValueError,
)
from gridcalc.formulas.fn_criteria import CRITERIA_ALIASES, CRITERIA_FUNCTIONS
from gridcalc.formulas.fn_date import DATE_ALIASES, DATE_FUNCTIONS
from gridcalc.formulas.fn_logical import (
    LOGICAL_ALIASES,
    LOGICAL_FLAT_FUNCTIONS,
    LOGICAL_FUNCTIONS,
    LOGICAL_LAZY_FUNCTIONS,
)
from gridcalc.formulas.fn_lookup import LOOKUP_ALIASES, LOOKUP_FUNCTIONS
from gridcalc.formulas.fn_math import (
    MATH_ALIASES,
    MATH_FLAT_FUNCTIONS,
    MATH_FUNCTIONS,
    checked,
    power,
)
from gridcalc.formulas.fn_stats import STATS_ALIASES, STATS_FLAT_FUNCTIONS, STATS_FUNCTIONS
from gridcalc.formulas.fn_text import TEXT_ALIASES, TEXT_FLAT_FUNCTIONS, TEXT_FUNCTIONS
from gridcalc.formulas.parser import parse_number, string_value
from gridcalc.formulas.values import (
    Value,
    numeric_values,
    to_number,
    to_text,
    try_number,
)


# ---------------------------------------------------------------------------
# Resolver protocol: callback into the grid for cell and range values
# ---------------------------------------------------------------------------


class CellResolver(Protocol):
    """Protocol for resolving cell references and ranges."""

    def resolve_cell(self, addr: str) -> Value:
        """Resolve a cell value (may trigger recursive evaluation)."""
        ...

    def resolve_range(self, ref: str) -> list[Value]:
        """Resolve a range like ``A1:C3`` to a flat list of values (row-major)."""
        ...


@dataclass
class EvalContext:
    """Everything a formula may read besides its own text.

    Attributes:
        resolver: Source of cell and range values.
        rng: Random source for RAND and RANDBETWEEN.
        clock: Zero-argument callable returning the current datetime.
    """

    resolver: CellResolver
    rng: random.Random = field(default_factory=random.Random)
    clock: Callable[[], datetime.datetime] = datetime.datetime.now


def evaluate_formula(tree: Tree, ctx: EvalContext) -> Value:
    """Evaluate a parsed formula tree.

    Args:
        tree: Parse tree from ``parse_formula()``.
        ctx: Evaluation context carrying the resolver, random source and clock.

    Returns:
        The computed scalar value (``float`` or ``str``).
    """
    return _eval(tree, ctx)


def _eval(node: Tree | Token, ctx: EvalContext) -> Value:
    """Recursively evaluate a tree node to a scalar."""
    if isinstance(node, Token):
        raise FormulaError(f"Unexpected bare token: {node.type}")

    rule = node.data

    # Start rule just wraps expr
    if rule == "start":
        return _eval(node.children[0], ctx)

    # Arithmetic
    if rule in _BINARY_OPS:
        left = _eval(node.children[0], ctx)
        right = _eval(node.children[1], ctx)
        return _BINARY_OPS[rule](left, right)
    if rule == "neg":
        return -to_number(_eval(node.children[0], ctx))
    if rule == "pos":
        return to_number(_eval(node.children[0], ctx))

    # Literals
    if rule == "number":
        value = parse_number(str(node.children[0]))
        if value is None:
            raise FormulaValueError(f"Malformed number: {str(node.children[0])!r}")
        return value
    if rule == "string":
        return string_value(node.children[0])
    if rule == "word":
        return str(node.children[0])
    if rule == "boolean":
        return 1.0 if str(node.children[0]).upper() == "TRUE" else 0.0

    # References
    if rule == "cell_ref":
        return ctx.resolver.resolve_cell(str(node.children[0]).upper())
    if rule == "range_ref":
        # Bare range used as a scalar: sum of its numeric values
        return float(sum(numeric_values(_eval_range(node, ctx))))

    # Function call
    if rule == "func_call":
        return _eval_func(node, ctx)

    raise FormulaError(f"Unknown node type: {rule}")


def _eval_range(node: Tree, ctx: EvalContext) -> list[Value]:
    return ctx.resolver.resolve_range(str(node.children[0]).upper())


# ---------- Operators ----------


def _equals(left: Value, right: Value) -> bool:
    ln, rn = try_number(left), try_number(right)
    if ln is not None and rn is not None:
        return ln == rn
    return to_text(left) == to_text(right)


def _div(left: Value, right: Value) -> float:
    divisor = to_number(right)
    if divisor == 0:
        raise FormulaDivZeroError("Division by zero in formula")
    return to_number(left) / divisor


def _mod(left: Value, right: Value) -> float:
    divisor = to_number(right)
    if divisor == 0:
        raise FormulaDivZeroError("Modulo by zero in formula")
    return checked(math.fmod, to_number(left), divisor)


def _bool(flag: bool) -> float:
    return 1.0 if flag else 0.0


_BINARY_OPS: dict[str, Callable[[Value, Value], Value]] = {
    "eq": lambda a, b: _bool(_equals(a, b)),
    "ne": lambda a, b: _bool(not _equals(a, b)),
    "lt": lambda a, b: _bool(to_number(a) < to_number(b)),
    "gt": lambda a, b: _bool(to_number(a) > to_number(b)),
    "le": lambda a, b: _bool(to_number(a) <= to_number(b)),
    "ge": lambda a, b: _bool(to_number(a) >= to_number(b)),
    "concat": lambda a, b: to_text(a) + to_text(b),
    "add": lambda a, b: to_number(a) + to_number(b),
    "sub": lambda a, b: to_number(a) - to_number(b),
    "mul": lambda a, b: to_number(a) * to_number(b),
    "div": _div,
    "mod": _mod,
    "pow": lambda a, b: power(to_number(a), to_number(b)),
}


# ---------- Function dispatch ----------

_FUNC_TABLE: dict[str, Any] = {
    **MATH_FUNCTIONS,
    **STATS_FUNCTIONS,
    **LOGICAL_FUNCTIONS,
    **CRITERIA_FUNCTIONS,
    **TEXT_FUNCTIONS,
    **LOOKUP_FUNCTIONS,
    **DATE_FUNCTIONS,
}

_ALIASES: dict[str, str] = {
    **MATH_ALIASES,
    **STATS_ALIASES,
    **LOGICAL_ALIASES,
    **CRITERIA_ALIASES,
    **TEXT_ALIASES,
    **LOOKUP_ALIASES,
    **DATE_ALIASES,
}

# Lazy functions receive unevaluated argument nodes
_LAZY_FUNCTIONS = LOGICAL_LAZY_FUNCTIONS

# Flat functions receive range arguments spliced into the argument list
_FLAT_FUNCTIONS = MATH_FLAT_FUNCTIONS | STATS_FLAT_FUNCTIONS | LOGICAL_FLAT_FUNCTIONS | TEXT_FLAT_FUNCTIONS


def canonical_name(name: str) -> str:
    """Upper-cased function name with any French alias mapped to English."""
    upper = name.upper()
    return _ALIASES.get(upper, upper)


def function_names() -> dict[str, list[str]]:
    """Built-in function names mapped to their (sorted) aliases."""
    out: dict[str, list[str]] = {name: [] for name in sorted(_FUNC_TABLE)}
    for alias, target in sorted(_ALIASES.items()):
        out[target].append(alias)
    return out


def _eval_arg(node: Tree | Token, ctx: EvalContext) -> Value | list[Value]:
    """Evaluate one function argument; a bare range stays a list."""
    if isinstance(node, Tree) and node.data == "range_ref":
        return _eval_range(node, ctx)
    return _eval(node, ctx)


def _flatten_args(args: list) -> list:
    """Flatten one level of lists in argument list."""
    result = []
    for a in args:
        if isinstance(a, list):
            result.extend(a)
        else:
            result.append(a)
    return result


def _eval_func(node: Tree, ctx: EvalContext) -> Value:
    """Evaluate a function call node."""
    raw_name = str(node.children[0]).upper()
    func_name = canonical_name(raw_name)
    raw_args = node.children[1].children

    # Lazy functions receive unevaluated AST nodes
    if func_name in _LAZY_FUNCTIONS:
        return _FUNC_TABLE[func_name](raw_args, ctx)

    evaluated_args = [_eval_arg(arg, ctx) for arg in raw_args]

    # Arguments are evaluated first so their errors take precedence
    if func_name not in _FUNC_TABLE:
        raise FormulaNameError(raw_name)

    if func_name in _FLAT_FUNCTIONS:
        evaluated_args = _flatten_args(evaluated_args)
    return _FUNC_TABLE[func_name](evaluated_args, ctx)
