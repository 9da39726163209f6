from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

serve_app = typer.Typer(help="Start servers.")
console = Console()


@serve_app.command("api")
def api(
    host: str = "127.0.0.1",
    port: int = 8000,
    watch: Annotated[bool, typer.Option(help="Invalidate caches when workspace files change.")] = True,
) -> None:
    """Start the FastAPI REST API server."""
    import uvicorn

    from accessor_nav.api.app import create_app

    app = create_app(watch=watch)
    console.print(f"[green]Starting API server on {host}:{port}[/green]")
    uvicorn.run(app, host=host, port=port)


@serve_app.command("mcp")
def mcp(
    transport: str = "stdio",
    root: Annotated[list[Path] | None, typer.Option("--root", "-r", help="Workspace root (repeatable).")] = None,
) -> None:
    """Start the MCP server."""
    from accessor_nav.config import load_settings
    from accessor_nav.core.resolver import ResolverContext
    from accessor_nav.mcp.server import create_mcp_server

    server = create_mcp_server(ResolverContext(load_settings(root)))
    console.print(f"[green]Starting MCP server (transport: {transport})[/green]")
    server.run(transport=transport)  # type: ignore[arg-type]
