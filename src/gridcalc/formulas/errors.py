"""Error types for formula parsing and evaluation.

Every error carries a spreadsheet error code (``#DIV/0!``, ``#VALUE!`` ...)
that becomes the display string of the failing cell.
"""

from __future__ import annotations


class FormulaError(Exception):
    """Base class for all formula-related errors.

    Attributes:
        code: Error code shown in place of the cell value.
    """

    code = "#ERROR!"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.code)

    @property
    def display(self) -> str:
        """Display string for a cell whose evaluation raised this error."""
        return self.code


class FormulaParseError(FormulaError):
    """Syntax error in a formula expression.

    Attributes:
        position: Character position where the error was detected.
    """

    def __init__(self, message: str, position: int | None = None) -> None:
        self.position = position
        full = f"Formula parse error: {message}"
        if position is not None:
            full += f" (at position {position})"
        super().__init__(full)


class FormulaRefError(FormulaError):
    """Malformed cell or range reference.

    Attributes:
        ref: The reference text that could not be parsed.
    """

    def __init__(self, ref: str) -> None:
        self.ref = ref
        super().__init__(f"Invalid reference: {ref!r}")


class FormulaFunctionError(FormulaError):
    """Function that cannot be evaluated (unsupported, or bad arguments).

    Attributes:
        func_name: The function that caused the error.
    """

    def __init__(self, func_name: str, message: str | None = None) -> None:
        self.func_name = func_name
        super().__init__(message or f"Cannot evaluate function: {func_name!r}")


class FormulaDepthError(FormulaError):
    """Reference chain nested deeper than the configured maximum."""

    def __init__(self, max_depth: int) -> None:
        self.max_depth = max_depth
        super().__init__(f"Reference chain deeper than {max_depth} cells")


class FormulaValueError(FormulaError):
    """Operand of the wrong type, e.g. text where a number is needed."""

    code = "#VALUE!"


class FormulaDivZeroError(FormulaError):
    """Division (or modulo) by zero, or an average over nothing."""

    code = "#DIV/0!"


class FormulaNumError(FormulaError):
    """Numeric domain error or overflow."""

    code = "#NUM!"


class FormulaNameError(FormulaError):
    """Unknown function name.

    Attributes:
        func_name: The unknown name, embedded in the display string.
    """

    code = "#NAME?"

    def __init__(self, func_name: str) -> None:
        self.func_name = func_name
        super().__init__(f"Unknown function: {func_name!r}")

    @property
    def display(self) -> str:
        return f"{self.code} ({self.func_name})"


class CircularReferenceError(FormulaError):
    """Raised when a cell is reached again while it is being evaluated.

    Attributes:
        cycle_path: Cell labels from the first repeated cell back to itself.
    """

    code = "#CIRC!"

    def __init__(self, cycle_path: list[str]) -> None:
        self.cycle_path = cycle_path
        super().__init__(f"Circular cell reference: {' -> '.join(cycle_path)}")

