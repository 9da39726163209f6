"""Tests for the source stores."""

from __future__ import annotations

from pathlib import Path

import pytest

from accessor_nav.store import InMemorySourceStore, LocalSourceStore


class TestLocalSourceStore:
    @pytest.mark.asyncio
    async def test_read_and_list(self, tmp_path: Path) -> None:
        (tmp_path / "b").mkdir()
        (tmp_path / "a.php").write_text("<?php\n", encoding="utf-8")
        store = LocalSourceStore()
        assert await store.read_text(str(tmp_path / "a.php")) == "<?php\n"
        assert await store.list_dir(str(tmp_path)) == ["a.php", "b"]
        assert await store.exists(str(tmp_path / "a.php")) is True
        assert await store.exists(str(tmp_path / "b")) is False
        assert await store.is_dir(str(tmp_path / "b")) is True

    @pytest.mark.asyncio
    async def test_missing_paths(self, tmp_path: Path) -> None:
        store = LocalSourceStore()
        assert await store.read_text(str(tmp_path / "nope.php")) is None
        assert await store.list_dir(str(tmp_path / "nope")) == []

    @pytest.mark.asyncio
    async def test_undecodable_file(self, tmp_path: Path) -> None:
        (tmp_path / "bin.php").write_bytes(b"\xff\xfe\x00")
        assert await LocalSourceStore().read_text(str(tmp_path / "bin.php")) is None


class TestInMemorySourceStore:
    @pytest.mark.asyncio
    async def test_directories_are_implied(self) -> None:
        store = InMemorySourceStore({"/ws/app/A.php": "a", "/ws/app/sub/B.php": "b"})
        assert await store.list_dir("/ws/app") == ["A.php", "sub"]
        assert await store.is_dir("/ws/app/sub") is True
        assert await store.is_dir("/ws/app/A.php") is False
        assert await store.exists("/ws/app/sub") is False

    @pytest.mark.asyncio
    async def test_counts_reads(self) -> None:
        store = InMemorySourceStore({"/ws/A.php": "a"})
        await store.read_text("/ws/A.php")
        await store.read_text("/ws/missing.php")
        await store.list_dir("/ws")
        assert store.total_reads == 3
        store.reset_counters()
        assert store.total_reads == 0

    @pytest.mark.asyncio
    async def test_put_and_remove(self) -> None:
        store = InMemorySourceStore()
        store.put("/ws/./A.php", "a")
        assert await store.read_text("/ws/A.php") == "a"
        store.remove("/ws/A.php")
        assert await store.exists("/ws/A.php") is False
