from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI

from accessor_nav.api.dependencies import get_context_instance, reset_context
from accessor_nav.watcher.watchfiles_adapter import WatchfilesWatcher


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    watcher: WatchfilesWatcher | None = None
    if getattr(app.state, "watch", False):
        context = get_context_instance()

        async def _invalidate(paths: set[Path]) -> None:
            context.invalidate(paths)

        watcher = WatchfilesWatcher(context.settings.roots, _invalidate)
        await watcher.start()
    yield
    if watcher is not None:
        await watcher.stop()
    reset_context()
