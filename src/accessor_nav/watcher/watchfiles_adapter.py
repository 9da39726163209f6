from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable, Coroutine, Iterable
from pathlib import Path
from typing import Any

from watchfiles import awatch

logger = logging.getLogger(__name__)

# PHP sources, generated proxies and sidecar metadata
_WATCHED_SUFFIXES: frozenset[str] = frozenset({".php", ".json"})


def _is_watched_file(path: Path) -> bool:
    return path.suffix in _WATCHED_SUFFIXES


class WatchfilesWatcher:
    """Watch workspace roots for PHP/sidecar changes and trigger a callback.

    Implements the ``FileWatcherPort`` protocol.
    """

    def __init__(
        self,
        directories: str | Path | Iterable[str | Path],
        on_change: Callable[[set[Path]], Coroutine[Any, Any, None]],
    ) -> None:
        if isinstance(directories, (str, Path)):
            directories = [directories]
        self._directories = [Path(d) for d in directories]
        self._on_change = on_change
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None

    async def start(self) -> None:
        if self._task is not None:
            return
        self._task = asyncio.create_task(self._watch())
        logger.info("Watcher started for %s", ", ".join(str(d) for d in self._directories))

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.info("Watcher stopped")

    async def _watch(self) -> None:
        async for changes in awatch(*self._directories):
            paths = {Path(p) for _, p in changes if _is_watched_file(Path(p))}
            if paths:
                logger.info("Detected changes in %d file(s)", len(paths))
                try:
                    await self._on_change(paths)
                except Exception:
                    logger.exception("Error in watcher callback")
