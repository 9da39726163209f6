from __future__ import annotations

import asyncio
import logging
from pathlib import Path

logger = logging.getLogger(__name__)


def _read(path: str) -> str | None:
    try:
        return Path(path).read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning("Could not read %s: %s", path, exc)
        return None


def _list(path: str) -> list[str]:
    try:
        return sorted(entry.name for entry in Path(path).iterdir())
    except OSError as exc:
        logger.warning("Could not list %s: %s", path, exc)
        return []


class LocalSourceStore:
    """File-system backed ``SourceStore``; blocking calls run in a worker thread."""

    async def read_text(self, path: str) -> str | None:
        return await asyncio.to_thread(_read, path)

    async def exists(self, path: str) -> bool:
        return await asyncio.to_thread(Path(path).is_file)

    async def is_dir(self, path: str) -> bool:
        return await asyncio.to_thread(Path(path).is_dir)

    async def list_dir(self, path: str) -> list[str]:
        return await asyncio.to_thread(_list, path)
