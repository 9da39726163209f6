"""Map fully-qualified PHP class names to the files that declare them."""

from __future__ import annotations

import logging
import os
from collections import deque

from accessor_nav.config import ResolverSettings
from accessor_nav.core import scanner
from accessor_nav.core.cache import BoundedCache
from accessor_nav.core.ports.source import SourceStore

logger = logging.getLogger(__name__)


def split_fqn(fqn: str) -> tuple[list[str], str]:
    parts = [p for p in fqn.strip("\\").split("\\") if p]
    if not parts:
        return [], ""
    return parts[:-1], parts[-1]


def candidate_paths(fqn: str, settings: ResolverSettings) -> list[str]:
    """Direct layout-convention paths for ``fqn``, in priority order, de-duplicated."""
    namespace, class_name = split_fqn(fqn)
    if not class_name:
        return []
    filename = class_name + settings.source_extension

    paths: list[str] = []
    for root in settings.roots:
        base = str(root)
        if namespace:
            paths.append(os.path.join(base, namespace[0].lower(), *namespace[1:], filename))
        paths.append(os.path.join(base, *namespace, filename))
        for prefix in settings.layout_prefixes:
            if namespace:
                paths.append(os.path.join(base, prefix, *namespace[1:], filename))
            paths.append(os.path.join(base, prefix, *namespace, filename))

    seen: set[str] = set()
    return [p for p in paths if not (p in seen or seen.add(p))]


def declares(text: str, fqn: str) -> bool:
    """True when ``text`` declares the class named by ``fqn`` in the matching namespace."""
    namespace, class_name = split_fqn(fqn)
    if scanner.find_class(text, class_name) is None:
        return False
    if not namespace:
        return True
    declared = scanner.find_namespace(text) or ""
    return declared.lower() == "\\".join(namespace).lower()


class PathResolver:
    """Resolve class names to verified file paths.

    Direct conventions are tried first; then a bounded, sorted walk of each
    workspace root. Every hit is verified by content before it is accepted.
    """

    def __init__(
        self,
        store: SourceStore,
        settings: ResolverSettings,
        cache: BoundedCache[str, str] | None = None,
    ) -> None:
        self._store = store
        self._settings = settings
        self.cache: BoundedCache[str, str] = cache or BoundedCache(settings.class_file_cache_size, "class-file")

    async def resolve(self, fqn: str, store: SourceStore | None = None) -> str | None:
        key = fqn.strip("\\")
        if not key:
            return None
        entry = self.cache.lookup(key)
        if entry is not None:
            return entry.value

        source = store or self._store
        listed: set[str] = set()
        path = await self._resolve_direct(key, source)
        if path is None:
            path = await self._resolve_by_search(key, source, listed)
        if path is None:
            logger.debug("No file found for %s", key)
        self.cache.set(key, path, dependencies=[path] if path else (), listings=listed)
        return path

    async def resolve_first(self, candidates: list[str], store: SourceStore | None = None) -> tuple[str, str] | None:
        """Resolve the first of several name hypotheses; returns ``(fqn, path)``."""
        for fqn in candidates:
            path = await self.resolve(fqn, store)
            if path is not None:
                return fqn.strip("\\"), path
        return None

    async def _verify(self, path: str, fqn: str, source: SourceStore) -> bool:
        text = await source.read_text(path)
        if text is None:
            return False
        if not declares(text, fqn):
            logger.debug("Rejected %s: does not declare %s", path, fqn)
            return False
        return True

    async def _resolve_direct(self, fqn: str, source: SourceStore) -> str | None:
        for path in candidate_paths(fqn, self._settings):
            if not await source.exists(path):
                continue
            if await self._verify(path, fqn, source):
                return path
        return None

    async def _resolve_by_search(self, fqn: str, source: SourceStore, listed: set[str]) -> str | None:
        _, class_name = split_fqn(fqn)
        exact_name = class_name + self._settings.source_extension
        exact: list[str] = []
        fuzzy: list[str] = []

        for root in self._settings.roots:
            await self._walk(str(root), class_name, exact_name, exact, fuzzy, source, listed)

        for path in [*exact, *fuzzy]:
            if await self._verify(path, fqn, source):
                return path
        return None

    async def _walk(
        self,
        root: str,
        class_name: str,
        exact_name: str,
        exact: list[str],
        fuzzy: list[str],
        source: SourceStore,
        listed: set[str],
    ) -> None:
        settings = self._settings
        excluded = set(settings.excluded_dirs)
        proxy_root = os.path.normpath(os.path.join(root, settings.proxy_dir))
        visited = 0
        queue: deque[tuple[str, int]] = deque([(root, 0)])

        while queue:
            directory, depth = queue.popleft()
            listed.add(os.path.normpath(directory))
            for name in await source.list_dir(directory):
                path = os.path.join(directory, name)
                if name.endswith(settings.source_extension):
                    visited += 1
                    if visited > settings.max_files_visited:
                        logger.debug("File budget exhausted while searching for %s", class_name)
                        return
                    if name == exact_name:
                        exact.append(path)
                    elif class_name in name:
                        fuzzy.append(path)
                    continue
                if name in excluded or depth >= settings.max_search_depth:
                    continue
                if os.path.normpath(path) == proxy_root:
                    continue
                if await source.is_dir(path):
                    queue.append((path, depth + 1))
