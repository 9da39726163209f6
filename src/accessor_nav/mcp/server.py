"""FastMCP server exposing accessor-nav tools."""

from __future__ import annotations

from fastmcp import FastMCP

from accessor_nav.core.completion import completions as _completions
from accessor_nav.core.document import SourceDocument
from accessor_nav.core.references import find_references as _find_references
from accessor_nav.core.resolver import AccessorResolver, ResolverContext
from accessor_nav.models import Position, ResolvedLocation


def _location_dict(location: ResolvedLocation) -> dict[str, str | int]:
    return {
        "file_path": location.file_path,
        "row": location.position.row,
        "column": location.position.column,
        "symbol": location.symbol or "",
    }


def create_mcp_server(context: ResolverContext) -> FastMCP:
    """Create a FastMCP server wired to the given resolver context."""

    mcp = FastMCP("accessor-nav", instructions="Navigate PHP accessors, generated proxies and property declarations.")
    resolver = AccessorResolver(context)

    async def _document(path: str, text: str | None) -> SourceDocument | None:
        if text is None:
            text = await context.store.read_text(path)
        return None if text is None else SourceDocument(path, text)

    @mcp.tool()
    async def find_definition(path: str, row: int, column: int, text: str | None = None) -> dict[str, str | int] | str:
        """Resolve the accessor or property at a 0-based position to its declaration."""
        document = await _document(path, text)
        if document is None:
            return f"Error: cannot read '{path}'."
        location = await resolver.find_definition(document, Position(row=row, column=column))
        if location is None:
            return "No declaration found."
        return _location_dict(location)

    @mcp.tool()
    async def find_references(
        path: str, row: int, column: int, text: str | None = None
    ) -> list[dict[str, str | int]] | str:
        """List declarations and call sites related to the symbol at a 0-based position."""
        document = await _document(path, text)
        if document is None:
            return f"Error: cannot read '{path}'."
        locations = await _find_references(resolver, document, Position(row=row, column=column))
        return [_location_dict(loc) for loc in locations]

    @mcp.tool()
    async def completions(path: str, row: int, column: int, text: str | None = None) -> list[dict[str, str]] | str:
        """Member completions for the expression before '->' at a 0-based position."""
        document = await _document(path, text)
        if document is None:
            return f"Error: cannot read '{path}'."
        items = await _completions(resolver, document, Position(row=row, column=column))
        return [{"label": item.label, "detail": item.detail} for item in items]

    @mcp.tool()
    async def invalidate_cache(paths: list[str] | None = None) -> str:
        """Drop cached resolutions for changed files, or everything when no paths are given."""
        if not paths:
            context.clear()
            return "Cleared all cached resolutions."
        dropped = context.invalidate(paths)
        return f"Invalidated {dropped} cached result(s)."

    return mcp
