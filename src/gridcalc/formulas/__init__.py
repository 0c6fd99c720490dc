"""Excel-like formula tokenizing, parsing and evaluation.

Public API::

    from gridcalc.formulas import parse_formula, extract_refs, evaluate_formula
"""

from gridcalc.formulas.criteria import matches_criteria
from gridcalc.formulas.errors import (
    CircularReferenceError,
    FormulaDepthError,
    FormulaDivZeroError,
    FormulaError,
    FormulaFunctionError,
    FormulaNameError,
    FormulaNumError,
    FormulaParseError,
    FormulaRefError,
    FormulaValueError,
)
from gridcalc.formulas.evaluator import (
    CellResolver,
    EvalContext,
    canonical_name,
    evaluate_formula,
    function_names,
)
from gridcalc.formulas.parser import (
    FormulaToken,
    TokenKind,
    extract_refs,
    parse_body,
    parse_formula,
    tokenize,
)
from gridcalc.formulas.values import format_display, number_to_text, to_number, to_text

__all__ = [
    "CellResolver",
    "CircularReferenceError",
    "EvalContext",
    "FormulaDepthError",
    "FormulaDivZeroError",
    "FormulaError",
    "FormulaFunctionError",
    "FormulaNameError",
    "FormulaNumError",
    "FormulaParseError",
    "FormulaRefError",
    "FormulaToken",
    "FormulaValueError",
    "TokenKind",
    "canonical_name",
    "evaluate_formula",
    "extract_refs",
    "format_display",
    "function_names",
    "matches_criteria",
    "number_to_text",
    "parse_body",
    "parse_formula",
    "to_number",
    "to_text",
    "tokenize",
]
