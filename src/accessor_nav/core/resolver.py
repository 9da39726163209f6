"""Accessor/property resolution: reference in, declaration site out."""

from __future__ import annotations

import asyncio
import logging
import os
import re
from collections.abc import Iterable
from pathlib import Path

from accessor_nav.config import ResolverSettings
from accessor_nav.core import scanner
from accessor_nav.core.cache import BoundedCache
from accessor_nav.core.document import SourceDocument
from accessor_nav.core.inference import HeadKind, TypeInferenceEngine, find_chain_head
from accessor_nav.core.locator import PropertyLocator
from accessor_nav.core.naming import accessor_names, build_candidates, is_accessor_name
from accessor_nav.core.paths import PathResolver, split_fqn
from accessor_nav.core.ports.source import SourceStore
from accessor_nav.core.proxy import (
    ProxyMetadataLoader,
    build_proxy_file_name,
    decode_proxy_name,
    is_proxy_file,
)
from accessor_nav.models import Position, Reference, ReferenceKind, ResolvedLocation

logger = logging.getLogger(__name__)

_INCLUDE_RE = re.compile(r"include_once\s*\(?\s*['\"]([^'\"]*accessor/[^'\"]+\.php)['\"]")
_DECLARATION_LINE_RE = re.compile(r"^\s*(?:#\[[^\]]*\]\s*)*(?:public|protected|private|var)\b")

ResolutionKey = tuple[str, str]


def _norm(path: str | Path) -> str:
    return os.path.normpath(str(path))


class TrackingStore:
    """``SourceStore`` wrapper that records every path it reads and directory it lists."""

    def __init__(self, inner: SourceStore) -> None:
        self._inner = inner
        self.touched: set[str] = set()
        self.listed: set[str] = set()

    async def read_text(self, path: str) -> str | None:
        self.touched.add(_norm(path))
        return await self._inner.read_text(path)

    async def exists(self, path: str) -> bool:
        self.touched.add(_norm(path))
        return await self._inner.exists(path)

    async def is_dir(self, path: str) -> bool:
        return await self._inner.is_dir(path)

    async def list_dir(self, path: str) -> list[str]:
        self.listed.add(_norm(path))
        return await self._inner.list_dir(path)


class ResolverContext:
    """Everything one workspace session shares: settings, store and caches."""

    def __init__(self, settings: ResolverSettings, store: SourceStore | None = None) -> None:
        if store is None:
            from accessor_nav.store.local import LocalSourceStore

            store = LocalSourceStore()
        self.settings = settings
        self.store = store
        self.resolution_cache: BoundedCache[ResolutionKey, ResolvedLocation] = BoundedCache(
            settings.resolution_cache_size, "resolution"
        )
        self.paths = PathResolver(store, settings)
        self.proxies = ProxyMetadataLoader(store, settings)
        self.engine = TypeInferenceEngine(
            annotation_window=settings.annotation_window,
            chain_lookback=settings.chain_lookback,
        )
        self.locator = PropertyLocator(store, settings, self.paths)

    def invalidate(self, paths: Iterable[str | Path]) -> int:
        changed = {_norm(p) for p in paths}
        dropped = self.resolution_cache.invalidate(changed) + self.paths.cache.invalidate(changed)
        logger.info("Invalidated %d cached result(s) for %d changed file(s)", dropped, len(changed))
        return dropped

    def clear(self) -> None:
        self.resolution_cache.clear()
        self.paths.cache.clear()
        logger.info("Resolution caches cleared")

    def stats(self) -> dict[str, dict[str, int]]:
        return {"resolution": self.resolution_cache.stats(), "class_file": self.paths.cache.stats()}


def build_reference(document: SourceDocument, position: Position) -> Reference | None:
    """Classify the word under ``position`` as accessor, property or unknown."""
    span = document.word_range_at(position)
    if span is None:
        return None
    line = document.line_text(position.row)
    word = line[span[0] : span[1]]
    before, after = line[: span[0]], line[span[1] :]

    if is_accessor_name(word):
        kind = ReferenceKind.ACCESSOR
    elif word.startswith("$") and word != "$this":
        kind = ReferenceKind.PROPERTY
    elif before.rstrip().endswith("->") and not after.lstrip().startswith("("):
        kind = ReferenceKind.PROPERTY
    else:
        kind = ReferenceKind.UNKNOWN

    return Reference(
        symbol_text=word,
        kind=kind,
        source_file=document.path,
        source_position=position,
        surrounding_line=line,
        start_column=span[0],
        end_column=span[1],
    )


def type_hypotheses(type_name: str, namespace: str | None) -> list[str]:
    if "\\" in type_name or not namespace:
        return [type_name]
    return [f"{namespace}\\{type_name}", type_name]


def _document_fqn(document: SourceDocument) -> str | None:
    descriptor = scanner.describe_class(document.text, document.path)
    return descriptor.fully_qualified_name if descriptor else None


class AccessorResolver:
    def __init__(self, context: ResolverContext) -> None:
        self.context = context

    @property
    def settings(self) -> ResolverSettings:
        return self.context.settings

    async def find_definition(self, document: SourceDocument, position: Position) -> ResolvedLocation | None:
        reference = build_reference(document, position)
        if reference is None or reference.kind is ReferenceKind.UNKNOWN:
            return None

        key = (_norm(document.path), reference.symbol_text)
        entry = self.context.resolution_cache.lookup(key)
        if entry is not None:
            logger.debug("Cache hit for %s in %s", reference.symbol_text, document.path)
            return entry.value

        store = TrackingStore(self.context.store)
        try:
            result = await asyncio.wait_for(
                self._resolve(document, reference, store),
                timeout=self.settings.timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning("Resolving %s in %s timed out", reference.symbol_text, document.path)
            return None

        store.touched.add(key[0])
        self.context.resolution_cache.set(key, result, store.touched, store.listed)
        return result

    async def _resolve(
        self, document: SourceDocument, reference: Reference, store: SourceStore
    ) -> ResolvedLocation | None:
        if reference.kind is ReferenceKind.ACCESSOR:
            return await self._resolve_accessor(document, reference, store)
        return await self._resolve_property(document, reference, store)

    # -- accessors ----------------------------------------------------------

    async def _resolve_accessor(
        self, document: SourceDocument, reference: Reference, store: SourceStore
    ) -> ResolvedLocation | None:
        word = reference.symbol_text
        text = document.text

        if is_proxy_file(document.path, text, self.settings):
            logger.debug("%s is a proxy; resolving %s on its original class", document.path, word)
            return await self._from_proxy(document.path, word, store)

        offset = document.offset_at(Position(row=reference.source_position.row, column=reference.start_column))
        head = find_chain_head(document, offset, self.settings.chain_lookback)

        if (head is None or head.kind is HeadKind.THIS) and scanner.find_method(text, word) is not None:
            fqn = _document_fqn(document)
            if fqn:
                result = await self._locate_accessor(fqn, document.path, word, store)
                if result is not None:
                    return result

        type_usable = False
        if head is not None:
            ctx = self.context.engine.context(document, offset, head)
            inferred = self.context.engine.infer(ctx)
            if inferred:
                resolved = await self.context.paths.resolve_first(type_hypotheses(inferred, ctx.namespace), store)
                if resolved is not None:
                    type_usable = True
                    fqn, path = resolved
                    result = await self._locate_accessor(fqn, path, word, store)
                    if result is not None:
                        return result
                else:
                    logger.debug("Inferred type %s has no source file", inferred)

        if not type_usable and self.settings.proxy_scan_fallback:
            return await self._scan_proxies(word, store)
        return None

    async def _locate_accessor(
        self,
        fqn: str,
        class_path: str,
        method_name: str,
        store: SourceStore,
        proxy_path: str | None = None,
    ) -> ResolvedLocation | None:
        class_text = await store.read_text(class_path)
        if class_text is None:
            return None
        convention = scanner.detect_naming_convention(class_text)
        proxy_path = proxy_path or await self.context.proxies.find_proxy(fqn, store)
        mapped = None
        if proxy_path:
            mapped = await self.context.proxies.load_mapping(proxy_path, method_name, fqn, store)
        candidates = build_candidates(method_name, convention, mapped)
        _, class_name = split_fqn(fqn)
        return await self.context.locator.locate(class_path, class_name, candidates, store=store)

    async def _from_proxy(self, proxy_path: str, word: str, store: SourceStore) -> ResolvedLocation | None:
        for fqn in decode_proxy_name(proxy_path, self.settings):
            class_path = await self.context.paths.resolve(fqn, store)
            if class_path is None:
                continue
            return await self._locate_accessor(fqn, class_path, word, store, proxy_path)
        logger.debug("No original class found for proxy %s", proxy_path)
        return None

    async def _scan_proxies(self, word: str, store: SourceStore) -> ResolvedLocation | None:
        declares = re.compile(rf"function\s+{re.escape(word)}\s*\(", re.IGNORECASE)
        scanned = 0
        for proxy_root in self.settings.proxy_roots():
            root = str(proxy_root)
            for name in await store.list_dir(root):
                if not is_proxy_file(os.path.join(root, name), None, self.settings):
                    continue
                scanned += 1
                if scanned > self.settings.proxy_scan_limit:
                    logger.debug("Proxy scan budget exhausted looking for %s", word)
                    return None
                path = os.path.join(root, name)
                text = await store.read_text(path)
                if text is None or not declares.search(text):
                    continue
                result = await self._from_proxy(path, word, store)
                if result is not None:
                    return result
        return None

    # -- properties ---------------------------------------------------------

    async def _resolve_property(
        self, document: SourceDocument, reference: Reference, store: SourceStore
    ) -> ResolvedLocation | None:
        if reference.symbol_text.startswith("$"):
            if not _DECLARATION_LINE_RE.match(reference.surrounding_line):
                return None
            accessors = await self._accessor_declarations(document, reference.symbol_text, store)
            return accessors[0] if accessors else None

        offset = document.offset_at(Position(row=reference.source_position.row, column=reference.start_column))
        resolved = await self.resolve_receiver(document, offset, store)
        if resolved is None:
            return None
        fqn, path = resolved
        _, class_name = split_fqn(fqn)
        return await self.context.locator.locate(path, class_name, [reference.symbol_text], store=store)

    async def find_accessors(self, document: SourceDocument, position: Position) -> list[ResolvedLocation]:
        """Getter/setter declarations generated for the property under ``position``."""
        reference = build_reference(document, position)
        if reference is None or reference.kind is not ReferenceKind.PROPERTY:
            return []
        return await self._accessor_declarations(document, reference.symbol_text, self.context.store)

    async def _accessor_declarations(
        self, document: SourceDocument, property_name: str, store: SourceStore
    ) -> list[ResolvedLocation]:
        name = property_name.lstrip("$")
        wanted = list(accessor_names(name))
        locations: list[ResolvedLocation] = []

        for method_name in wanted:
            method = scanner.find_method(document.text, method_name)
            if method is not None:
                locations.append(
                    ResolvedLocation(
                        file_path=document.path,
                        position=document.position_at(method.offset),
                        offset=method.offset,
                        symbol=method.name,
                    )
                )

        proxy_path = await self.proxy_for_document(document, store)
        if proxy_path is None:
            return locations
        proxy_text = await store.read_text(proxy_path)
        if proxy_text is None:
            return locations

        fqn = _document_fqn(document)
        linkage = await self.context.proxies.load_linkage(proxy_path, fqn, store)
        if linkage is not None:
            wanted.extend(m for m, f in linkage.field_mapping.items() if f == name and m not in wanted)

        proxy_document = SourceDocument(proxy_path, proxy_text)
        for method_name in wanted:
            method = scanner.find_method(proxy_text, method_name)
            if method is not None:
                locations.append(
                    ResolvedLocation(
                        file_path=proxy_path,
                        position=proxy_document.position_at(method.offset),
                        offset=method.offset,
                        symbol=method.name,
                    )
                )
        return locations

    async def proxy_for_document(self, document: SourceDocument, store: SourceStore | None = None) -> str | None:
        """Proxy trait of the class declared in ``document``.

        Looked up via an ``include_once 'accessor/...'`` line, then a sibling
        ``accessor/`` directory, then the workspace proxy roots.
        """
        source = store or self.context.store
        directory = os.path.dirname(document.path)
        include = _INCLUDE_RE.search(document.text)
        if include:
            path = os.path.normpath(os.path.join(directory, include.group(1)))
            if await source.exists(path):
                return path

        fqn = _document_fqn(document)
        if fqn is None:
            return None
        sibling = os.path.join(directory, "accessor", build_proxy_file_name(fqn, self.settings))
        if await source.exists(sibling):
            return sibling
        return await self.context.proxies.find_proxy(fqn, source)

    async def resolve_receiver(
        self, document: SourceDocument, offset: int, store: SourceStore | None = None
    ) -> tuple[str, str] | None:
        """``(fqn, path)`` of the receiver whose member name starts at ``offset``."""
        head = find_chain_head(document, offset, self.settings.chain_lookback)
        if head is None:
            return None
        ctx = self.context.engine.context(document, offset, head)
        inferred = self.context.engine.infer(ctx)
        if not inferred:
            return None
        return await self.context.paths.resolve_first(type_hypotheses(inferred, ctx.namespace), store)
