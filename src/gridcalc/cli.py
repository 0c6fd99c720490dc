"""Command-line interface for gridcalc."""

from __future__ import annotations

import json

import click

from gridcalc import __version__


@click.group()
@click.version_option(version=__version__, prog_name="gridcalc")
def main() -> None:
    """gridcalc -- Excel-like formula engine for grids of cell text."""


# ---------------------------------------------------------------------------
# helpers
# ---------------------------------------------------------------------------


def _parse_cells(items: tuple[str, ...]) -> dict[tuple[int, int], str]:
    from gridcalc.addressing import parse_addr
    from gridcalc.formulas.errors import FormulaRefError

    cells: dict[tuple[int, int], str] = {}
    for item in items:
        if "=" not in item:
            raise click.ClickException(f"Invalid --cell format: {item!r}. Use A1=value.")
        label, value = item.split("=", 1)
        try:
            cells[parse_addr(label)] = value
        except FormulaRefError as e:
            raise click.ClickException(str(e))
    return cells


def _build_grid(cells: dict[tuple[int, int], str], scratch_row: int) -> list[list[str]]:
    n_rows = scratch_row + 1
    n_cols = max((c for _, c in cells), default=0) + 1
    grid = [[""] * n_cols for _ in range(n_rows)]
    for (r, c), value in cells.items():
        grid[r][c] = value
    return grid


def _as_formula(text: str) -> str:
    return text if text.startswith("=") else "=" + text


# ---------------------------------------------------------------------------
# eval
# ---------------------------------------------------------------------------


@main.command("eval")
@click.argument("formula")
@click.option("--cell", "cell_items", multiple=True, help="Set a cell as A1=value (repeatable).")
@click.option("--config", "config_path", default=None, type=click.Path(exists=True), help="gridcalc.yaml file or directory.")
@click.option("--log-dir", "log_dir", default=None, type=click.Path(), help="Write NDJSON events to this directory.")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
def eval_cmd(
    formula: str,
    cell_items: tuple[str, ...],
    config_path: str | None,
    log_dir: str | None,
    as_json: bool,
) -> None:
    """Evaluate FORMULA against the given cells and print its display value.

    The formula is placed in column A of the first row below every given cell.
    """
    from gridcalc.addressing import make_addr
    from gridcalc.config import load_config
    from gridcalc.logging import set_log_dir
    from gridcalc.sheet import Sheet

    try:
        config = load_config(config_path)
    except (OSError, ValueError) as e:
        raise click.ClickException(str(e))

    cells = _parse_cells(cell_items)
    scratch_row = max((r for r, _ in cells), default=-1) + 1
    grid = _build_grid(cells, scratch_row)
    grid[scratch_row][0] = _as_formula(formula)

    if log_dir:
        set_log_dir(log_dir, config)
    try:
        sheet = Sheet(grid, config=config)
        display = sheet.display_value(scratch_row, 0)
    finally:
        if log_dir:
            set_log_dir(None)

    if as_json:
        out = {
            "cell": make_addr(scratch_row, 0),
            "display": display,
            "errors": sheet.get_errors(),
        }
        click.echo(json.dumps(out, indent=2))
    else:
        click.echo(display)


# ---------------------------------------------------------------------------
# tokens / refs / functions
# ---------------------------------------------------------------------------


def _token_text(value: object) -> str:
    from gridcalc.formulas.values import number_to_text

    if value is None:
        return "(invalid)"
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, float):
        return number_to_text(value)
    return str(value)


@main.command()
@click.argument("formula")
def tokens(formula: str) -> None:
    """Print the tokens of FORMULA, one 'KIND value' per line."""
    from gridcalc.formulas.parser import TokenKind, tokenize

    body = formula[1:] if formula.startswith("=") else formula
    for tok in tokenize(body):
        text = json.dumps(tok.value) if tok.kind is TokenKind.STRING else _token_text(tok.value)
        click.echo(f"{tok.kind.value} {text}")


@main.command()
@click.argument("formula")
def refs(formula: str) -> None:
    """Print the cells and ranges FORMULA references."""
    from gridcalc.formulas.errors import FormulaParseError
    from gridcalc.formulas.parser import extract_refs, parse_formula

    try:
        tree = parse_formula(_as_formula(formula))
    except FormulaParseError as e:
        raise click.ClickException(str(e))
    cell_refs, range_refs = extract_refs(tree)
    for ref in sorted(cell_refs):
        click.echo(f"cell  {ref}")
    for ref in sorted(range_refs):
        click.echo(f"range {ref}")


@main.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
def functions(as_json: bool) -> None:
    """List built-in functions and their aliases."""
    from gridcalc.formulas.evaluator import function_names

    names = function_names()
    if as_json:
        click.echo(json.dumps(names, indent=2))
        return
    for name, aliases in names.items():
        click.echo(f"{name:12s} {', '.join(aliases)}".rstrip())
