"""Tests for the watchfiles watcher adapter."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, patch

import pytest

from accessor_nav.watcher.watchfiles_adapter import (
    WatchfilesWatcher,
    _is_watched_file,
)


class TestIsWatchedFile:
    def test_php_file(self) -> None:
        assert _is_watched_file(Path("Widget.php")) is True

    def test_sidecar_json(self) -> None:
        assert _is_watched_file(Path("_Proxy_App_WidgetAccessor.json")) is True

    def test_unwatched_txt(self) -> None:
        assert _is_watched_file(Path("readme.txt")) is False

    def test_unwatched_no_extension(self) -> None:
        assert _is_watched_file(Path("Makefile")) is False


class TestWatchfilesWatcher:
    def test_implements_protocol(self) -> None:
        from accessor_nav.core.ports.watcher import FileWatcherPort

        callback = AsyncMock()
        watcher: FileWatcherPort = WatchfilesWatcher("/tmp", callback)
        assert hasattr(watcher, "start")
        assert hasattr(watcher, "stop")
        assert watcher.running is False

    def test_accepts_several_roots(self) -> None:
        watcher = WatchfilesWatcher(["/ws/a", Path("/ws/b")], AsyncMock())
        assert watcher._directories == [Path("/ws/a"), Path("/ws/b")]

    @pytest.mark.asyncio
    async def test_start_creates_task(self) -> None:
        callback = AsyncMock()
        watcher = WatchfilesWatcher("/tmp", callback)

        with patch("accessor_nav.watcher.watchfiles_adapter.awatch") as mock_awatch:
            mock_awatch.return_value = _empty_async_iter()
            await watcher.start()
            assert watcher.running is True
            await watcher.stop()
            assert watcher.running is False

    @pytest.mark.asyncio
    async def test_stop_without_start_is_noop(self) -> None:
        watcher = WatchfilesWatcher("/tmp", AsyncMock())
        await watcher.stop()

    @pytest.mark.asyncio
    async def test_double_start_is_noop(self) -> None:
        watcher = WatchfilesWatcher("/tmp", AsyncMock())

        with patch("accessor_nav.watcher.watchfiles_adapter.awatch") as mock_awatch:
            mock_awatch.return_value = _empty_async_iter()
            await watcher.start()
            task1 = watcher._task
            await watcher.start()
            assert watcher._task is task1
            await watcher.stop()

    @pytest.mark.asyncio
    async def test_callback_receives_watched_files(self) -> None:
        callback = AsyncMock()
        watcher = WatchfilesWatcher("/ws", callback)

        changes = {(1, "/ws/app/Widget.php"), (2, "/ws/notes.txt"), (1, "/ws/meta/widget.json")}

        with patch("accessor_nav.watcher.watchfiles_adapter.awatch") as mock_awatch:
            mock_awatch.return_value = _single_change_iter(changes)
            await watcher.start()
            await asyncio.sleep(0.05)
            await watcher.stop()

        callback.assert_called_once()
        assert callback.call_args[0][0] == {Path("/ws/app/Widget.php"), Path("/ws/meta/widget.json")}

    @pytest.mark.asyncio
    async def test_callback_not_called_for_unwatched_only(self) -> None:
        callback = AsyncMock()
        watcher = WatchfilesWatcher("/ws", callback)

        with patch("accessor_nav.watcher.watchfiles_adapter.awatch") as mock_awatch:
            mock_awatch.return_value = _single_change_iter({(1, "/ws/readme.txt"), (2, "/ws/Makefile")})
            await watcher.start()
            await asyncio.sleep(0.05)
            await watcher.stop()

        callback.assert_not_called()

    @pytest.mark.asyncio
    async def test_callback_errors_do_not_stop_the_loop(self) -> None:
        callback = AsyncMock(side_effect=RuntimeError("boom"))
        watcher = WatchfilesWatcher("/ws", callback)

        with patch("accessor_nav.watcher.watchfiles_adapter.awatch") as mock_awatch:
            mock_awatch.return_value = _single_change_iter({(1, "/ws/app/Widget.php")})
            await watcher.start()
            await asyncio.sleep(0.05)
            assert watcher.running is True
            await watcher.stop()

        callback.assert_called_once()


async def _empty_async_iter() -> AsyncIterator[Any]:
    """Async iterator that never yields, just blocks until cancelled."""
    try:
        await asyncio.sleep(3600)
    except asyncio.CancelledError:
        return
    yield  # pragma: no cover


async def _single_change_iter(changes: set[tuple[int, str]]) -> AsyncIterator[set[tuple[int, str]]]:
    """Async iterator that yields one set of changes then blocks."""
    yield changes
    try:
        await asyncio.sleep(3600)
    except asyncio.CancelledError:
        return
