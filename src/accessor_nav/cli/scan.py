from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from accessor_nav.core import scanner
from accessor_nav.core.document import SourceDocument
from accessor_nav.core.proxy import decode_proxy_name, is_proxy_file

console = Console()


def scan(
    file: Annotated[Path, typer.Argument(help="PHP file to scan.")],
) -> None:
    """Print what the source scanner extracts from FILE."""
    try:
        text = file.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        console.print(f"[red]Cannot read {file}: {escape(str(exc))}[/red]")
        raise typer.Exit(1) from None

    document = SourceDocument(str(file), text)
    span = scanner.find_first_class(text)
    descriptor = scanner.describe_class(text, str(file))
    console.print(f"[bold]namespace[/bold]  {scanner.find_namespace(text) or '-'}")
    if span is None or descriptor is None:
        console.print("[bold]class[/bold]      -")
    else:
        start = document.position_at(span.start).row + 1
        end = document.position_at(span.end).row + 1
        console.print(f"[bold]class[/bold]      {descriptor.fully_qualified_name} (lines {start}-{end})")
        console.print(f"[bold]extends[/bold]    {span.extends or '-'}")
    console.print(f"[bold]convention[/bold] {scanner.detect_naming_convention(text).value}")

    aliases = scanner.use_aliases(text)
    if aliases:
        table = Table(title="imports")
        table.add_column("alias")
        table.add_column("fully qualified name")
        for alias in aliases:
            table.add_row(alias.alias_name, alias.fully_qualified_name)
        console.print(table)

    table = Table(title="properties")
    for header in ("name", "form", "visibility", "type", "line"):
        table.add_column(header)
    for prop in scanner.find_properties(text):
        table.add_row(
            prop.name, prop.form, prop.visibility, prop.type or "", str(document.position_at(prop.offset).row + 1)
        )
    console.print(table)


def proxy(
    name: Annotated[str, typer.Argument(help="Proxy file name or path, e.g. _Proxy_App_UserAccessor.php.")],
) -> None:
    """Decode a generated proxy file name into candidate class names."""
    decodings = decode_proxy_name(name)
    if not decodings:
        console.print(f"[red]{name} is not a proxy file name[/red]")
        raise typer.Exit(1)
    if "/" in name and not is_proxy_file(name):
        console.print("[yellow]warning: file is not under an accessor directory[/yellow]")
    for index, fqn in enumerate(decodings):
        marker = "[green]*[/green]" if index == 0 else " "
        console.print(f"{marker} {fqn}")
