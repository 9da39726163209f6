from typing import Protocol


class SourceStore(Protocol):
    """Read-only view of workspace files.

    ``read_text`` returns None when a file is missing or unreadable; callers treat
    that as "candidate unavailable" and move on.
    """

    async def read_text(self, path: str) -> str | None: ...

    async def exists(self, path: str) -> bool: ...

    async def is_dir(self, path: str) -> bool: ...

    async def list_dir(self, path: str) -> list[str]: ...
