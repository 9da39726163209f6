from __future__ import annotations

from collections import Counter
from pathlib import PurePosixPath


def _norm(path: str) -> str:
    return str(PurePosixPath(path.replace("\\", "/")))


class InMemorySourceStore:
    """Dict-backed ``SourceStore``.

    Every ``read_text``/``list_dir`` call is counted so tests can assert that a
    cached resolution touched no files.
    """

    def __init__(self, files: dict[str, str] | None = None) -> None:
        self.files: dict[str, str] = {}
        self.reads: Counter[str] = Counter()
        self.listings: Counter[str] = Counter()
        for path, text in (files or {}).items():
            self.put(path, text)

    def put(self, path: str, text: str) -> None:
        self.files[_norm(path)] = text

    def remove(self, path: str) -> None:
        self.files.pop(_norm(path), None)

    @property
    def total_reads(self) -> int:
        return sum(self.reads.values()) + sum(self.listings.values())

    def reset_counters(self) -> None:
        self.reads.clear()
        self.listings.clear()

    async def read_text(self, path: str) -> str | None:
        key = _norm(path)
        self.reads[key] += 1
        return self.files.get(key)

    async def exists(self, path: str) -> bool:
        return _norm(path) in self.files

    async def is_dir(self, path: str) -> bool:
        prefix = _norm(path).rstrip("/") + "/"
        return any(name.startswith(prefix) for name in self.files)

    async def list_dir(self, path: str) -> list[str]:
        key = _norm(path)
        self.listings[key] += 1
        prefix = key.rstrip("/") + "/"
        entries = {name[len(prefix) :].split("/", 1)[0] for name in self.files if name.startswith(prefix)}
        return sorted(entries)
