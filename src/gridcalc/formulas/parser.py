"""Lark-based tokenizer and parser for Excel-like cell formulas.

Supports:
- Cell references ``B12`` and ranges ``A1:C3`` (case-insensitive)
- Function calls ``SUM(...)``, including dotted names such as ``NB.SI(...)``
- Arithmetic ``+ - * / ^``, modulo ``%``, concatenation ``&``, comparisons
- Number, string and boolean literals; bare words evaluate as text
- ``,`` or ``;`` as argument separator

The lexer is deliberately permissive: characters that start no token are
skipped rather than reported.
"""

from __future__ import annotations

import re
from enum import Enum
from functools import lru_cache
from typing import Any, NamedTuple

from lark import Lark, Token, Tree, Visitor
from lark.exceptions import LarkError, UnexpectedToken

from gridcalc.formulas.errors import FormulaParseError

# LALR(1) grammar over a basic (context-free) lexer.
# Operator precedence (lowest to highest), all binary levels left-associative:
#   1. Comparison: = <> < > <= >=
#   2. Concatenation: &
#   3. Addition/subtraction: + -
#   4. Multiplication/division/modulo: * / %
#   5. Exponentiation: ^
#   6. Unary plus/minus: + -
#   7. Atoms: number, string, word, bool, cell, range, function call, (expr)
#
# Terminal priorities order the lexer's alternatives.  Identifier terminals
# end with a negative lookahead so each one matches a whole identifier run
# (BOOL, then RANGE, FUNC, CELL, WORD).  STRAY has the lowest priority and
# swallows any character no other terminal starts with.
GRAMMAR = r"""
start: expr

?expr: comparison

?comparison: concatenation
    | comparison _EQ concatenation   -> eq
    | comparison _NE concatenation   -> ne
    | comparison _LT concatenation   -> lt
    | comparison _GT concatenation   -> gt
    | comparison _LE concatenation   -> le
    | comparison _GE concatenation   -> ge

?concatenation: additive
    | concatenation _AMP additive    -> concat

?additive: multiplicative
    | additive _PLUS multiplicative  -> add
    | additive _MINUS multiplicative -> sub

?multiplicative: power
    | multiplicative _STAR power     -> mul
    | multiplicative _SLASH power    -> div
    | multiplicative _PERCENT power  -> mod

?power: unary
    | power _CARET unary             -> pow

?unary: atom
    | _MINUS unary                  -> neg
    | _PLUS unary                   -> pos

?atom: NUMBER                       -> number
    | STRING                        -> string
    | WORD                          -> word
    | BOOL                          -> boolean
    | CELL                          -> cell_ref
    | RANGE                         -> range_ref
    | FUNC _LPAR args _RPAR         -> func_call
    | _LPAR expr _RPAR

args: (expr (_COMMA expr)*)?

BOOL.9: /(?:TRUE|FALSE)(?![A-Za-z0-9_$])/i
RANGE.8: /[A-Za-z]+[0-9]+:[A-Za-z0-9]*/
FUNC.7: /[A-Za-z_$][A-Za-z0-9_$.]*(?=\()/
CELL.6: /[A-Za-z]+[0-9]+(?![A-Za-z0-9_$])/
WORD.5: /[A-Za-z_$][A-Za-z0-9_$]*/

STRING.4: /"[^"]*"?/
NUMBER.4: /[0-9.]+/

_NE.3: "<>"
_LE.3: "<="
_GE.3: ">="
_EQ.2: "="
_LT.2: "<"
_GT.2: ">"
_PLUS.2: "+"
_MINUS.2: "-"
_STAR.2: "*"
_SLASH.2: "/"
_CARET.2: "^"
_PERCENT.2: "%"
_AMP.2: "&"
_LPAR.2: "("
_RPAR.2: ")"
_COMMA.2: /[,;]/

WS.1: /[ \t]+/
STRAY: /[\s\S]/

%ignore WS
%ignore STRAY
"""

_parser = Lark(GRAMMAR, parser="lalr", lexer="basic", start="start")


# ---------------------------------------------------------------------------
# Tokens
# ---------------------------------------------------------------------------


class TokenKind(str, Enum):
    NUMBER = "NUMBER"
    STRING = "STRING"
    CELL = "CELL"
    RANGE = "RANGE"
    FUNC = "FUNC"
    OP = "OP"
    PAREN = "PAREN"
    COMMA = "COMMA"
    BOOL = "BOOL"


class FormulaToken(NamedTuple):
    """One lexed token: its kind and its decoded value."""

    kind: TokenKind
    value: Any


_OP_TERMINALS = frozenset(
    {"_EQ", "_NE", "_LT", "_GT", "_LE", "_GE", "_AMP", "_PLUS", "_MINUS",
     "_STAR", "_SLASH", "_PERCENT", "_CARET"}
)

_NUMBER_PREFIX_RE = re.compile(r"\d*\.?\d*")


def parse_number(text: str) -> float | None:
    """Value of a NUMBER token: its longest leading decimal prefix.

    ``"1.2.3"`` gives 1.2; a run without digits (``"."``) gives None.
    """
    prefix = _NUMBER_PREFIX_RE.match(text).group(0)
    if not any(ch.isdigit() for ch in prefix):
        return None
    return float(prefix)


def string_value(token: Token) -> str:
    """Text of a STRING token without its quotes."""
    raw = str(token)
    if raw.endswith('"') and len(raw) > 1:
        return raw[1:-1]
    return raw[1:]


def _to_formula_token(tok: Token) -> FormulaToken:
    kind = tok.type
    text = str(tok)
    if kind == "NUMBER":
        return FormulaToken(TokenKind.NUMBER, parse_number(text))
    if kind == "STRING":
        return FormulaToken(TokenKind.STRING, string_value(tok))
    if kind == "WORD":
        return FormulaToken(TokenKind.STRING, text)
    if kind == "BOOL":
        return FormulaToken(TokenKind.BOOL, text.upper() == "TRUE")
    if kind in ("CELL", "RANGE", "FUNC"):
        return FormulaToken(TokenKind(kind), text.upper())
    if kind in _OP_TERMINALS:
        return FormulaToken(TokenKind.OP, text)
    if kind in ("_LPAR", "_RPAR"):
        return FormulaToken(TokenKind.PAREN, text)
    if kind == "_COMMA":
        return FormulaToken(TokenKind.COMMA, ",")
    raise FormulaParseError(f"Unexpected token type {kind!r}", position=tok.start_pos)


def tokenize(body: str) -> list[FormulaToken]:
    """Lex a formula body (the text after ``=``) into tokens.

    Whitespace and unrecognised characters produce no tokens.
    """
    return [_to_formula_token(tok) for tok in _parser.lex(body)]


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


@lru_cache(maxsize=1024)
def parse_body(body: str) -> Tree:
    """Parse a formula body (without the leading ``=``) into a Lark Tree.

    Parsing is greedy: it stops at the first token that cannot continue the
    expression read so far, and everything from that token on is ignored.
    ``1 2`` parses as ``1`` and ``SUM(A1:A2))`` as ``SUM(A1:A2)``.

    Trees are cached by body text and must be treated as read-only.

    Raises:
        FormulaParseError: If no complete expression starts the body.
    """
    tokens = list(_parser.lex(body))
    if not tokens:
        raise FormulaParseError("Unexpected end of formula", position=len(body))

    ip = _parser.parse_interactive(body)
    last = tokens[0]
    try:
        for tok in tokens:
            before = ip.copy()
            try:
                ip.feed_token(tok)
            except UnexpectedToken:
                ip = before
                break
            last = tok
        return ip.feed_eof(last)
    except LarkError as exc:
        # Extract position info from Lark exception if available
        pos = getattr(exc, "pos_in_stream", None)
        raise FormulaParseError(str(exc), position=pos) from exc


def parse_formula(text: str) -> Tree:
    """Parse a formula string (must start with ``=``) into a Lark Tree.

    Args:
        text: The formula text, e.g. ``"=SUM(A1:A3) * 2"``.

    Returns:
        A Lark parse tree.

    Raises:
        FormulaParseError: If the formula has invalid syntax.
    """
    if not text.startswith("="):
        raise FormulaParseError("Formula must start with '='", position=0)
    return parse_body(text[1:])


class _RefCollector(Visitor):
    """Visitor that collects cell and range references from a parse tree."""

    def __init__(self) -> None:
        self.cell_refs: set[str] = set()
        self.range_refs: set[str] = set()

    def cell_ref(self, tree: Tree) -> None:
        self.cell_refs.add(str(tree.children[0]).upper())

    def range_ref(self, tree: Tree) -> None:
        self.range_refs.add(str(tree.children[0]).upper())


def extract_refs(tree: Tree) -> tuple[set[str], set[str]]:
    """Extract all references from a parsed formula tree.

    Returns:
        Tuple of (cell_refs, range_refs), e.g. ``({"A1"}, {"B1:B3"})``.
    """
    collector = _RefCollector()
    collector.visit(tree)
    return collector.cell_refs, collector.range_refs
