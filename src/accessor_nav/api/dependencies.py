from __future__ import annotations

from collections.abc import AsyncIterator

from accessor_nav.config import load_settings
from accessor_nav.core.resolver import AccessorResolver, ResolverContext

_context: ResolverContext | None = None


def get_context_instance() -> ResolverContext:
    """The process-wide resolver context, created lazily from the environment."""
    global _context  # noqa: PLW0603
    if _context is None:
        _context = ResolverContext(load_settings())
    return _context


async def get_context() -> AsyncIterator[ResolverContext]:
    yield get_context_instance()


async def get_resolver() -> AsyncIterator[AccessorResolver]:
    yield AccessorResolver(get_context_instance())


def reset_context() -> None:
    global _context  # noqa: PLW0603
    _context = None
