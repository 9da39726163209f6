import asyncio
from collections.abc import Sequence
from pathlib import Path
from typing import Annotated, Any

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from accessor_nav.config import load_settings
from accessor_nav.core.completion import completions
from accessor_nav.core.document import SourceDocument
from accessor_nav.core.references import find_references
from accessor_nav.core.resolver import AccessorResolver, ResolverContext
from accessor_nav.models import Position, ResolvedLocation

console = Console()

RootOption = Annotated[
    list[Path] | None,
    typer.Option("--root", "-r", help="Workspace root (repeatable). Defaults to ACCESSOR_NAV_ROOTS or cwd."),
]


def _render_table(headers: Sequence[str], rows: Sequence[tuple[Any, ...]]) -> None:
    table = Table(show_lines=False)
    for h in headers:
        table.add_column(h)
    for row in rows:
        table.add_row(*(str(v) for v in row))
    console.print(table)
    console.print(f"({len(rows)} rows)")


def _load_document(file: Path) -> SourceDocument:
    try:
        text = file.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        console.print(f"[red]Cannot read {file}: {escape(str(exc))}[/red]")
        raise typer.Exit(1) from None
    return SourceDocument(str(file.resolve()), text)


def _resolver(roots: list[Path] | None) -> AccessorResolver:
    return AccessorResolver(ResolverContext(load_settings(roots)))


def _position(line: int, column: int) -> Position:
    # 1-based on the command line, like editors display them
    return Position(row=max(line - 1, 0), column=max(column - 1, 0))


def _location_row(location: ResolvedLocation) -> tuple[str, int, int, str]:
    return (location.file_path, location.position.row + 1, location.position.column + 1, location.symbol or "")


def resolve(
    file: Annotated[Path, typer.Argument(help="PHP file containing the reference.")],
    line: Annotated[int, typer.Argument(help="1-based line number.")],
    column: Annotated[int, typer.Argument(help="1-based column number.")],
    root: RootOption = None,
) -> None:
    """Resolve the accessor or property at FILE:LINE:COLUMN to its declaration."""
    document = _load_document(file)
    resolver = _resolver(root)
    location = asyncio.run(resolver.find_definition(document, _position(line, column)))
    if location is None:
        console.print("[yellow]No declaration found.[/yellow]")
        return
    console.print(
        f"{location.file_path}:{location.position.row + 1}:{location.position.column + 1}", soft_wrap=True
    )


def references(
    file: Annotated[Path, typer.Argument(help="PHP file containing the symbol.")],
    line: Annotated[int, typer.Argument(help="1-based line number.")],
    column: Annotated[int, typer.Argument(help="1-based column number.")],
    root: RootOption = None,
) -> None:
    """List declarations and call sites related to the symbol at FILE:LINE:COLUMN."""
    document = _load_document(file)
    resolver = _resolver(root)
    locations = asyncio.run(find_references(resolver, document, _position(line, column)))
    _render_table(["file", "line", "column", "symbol"], [_location_row(loc) for loc in locations])


def complete(
    file: Annotated[Path, typer.Argument(help="PHP file being edited.")],
    line: Annotated[int, typer.Argument(help="1-based line number.")],
    column: Annotated[int, typer.Argument(help="1-based column just after '->' or a partial name.")],
    root: RootOption = None,
) -> None:
    """Show member completions for the expression before '->' at FILE:LINE:COLUMN."""
    document = _load_document(file)
    resolver = _resolver(root)
    items = asyncio.run(completions(resolver, document, _position(line, column)))
    _render_table(["label", "detail"], [(item.label, item.detail) for item in items])
