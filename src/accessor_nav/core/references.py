from __future__ import annotations

import logging
import re

from accessor_nav.core import scanner
from accessor_nav.core.document import SourceDocument
from accessor_nav.core.naming import accessor_names
from accessor_nav.core.resolver import AccessorResolver, build_reference
from accessor_nav.models import Position, ReferenceKind, ResolvedLocation

logger = logging.getLogger(__name__)


def call_sites(document: SourceDocument, method_names: list[str]) -> list[ResolvedLocation]:
    """Every ``->method(`` / ``?->method(`` call of one of ``method_names``."""
    if not method_names:
        return []
    alternatives = "|".join(re.escape(m) for m in method_names)
    pattern = re.compile(rf"\??->\s*(?P<name>{alternatives})\s*\(")
    locations = []
    for match in pattern.finditer(document.text):
        offset = match.start("name")
        if not scanner.is_code_offset(document.text, offset):
            continue
        locations.append(
            ResolvedLocation(
                file_path=document.path,
                position=document.position_at(offset),
                offset=offset,
                symbol=match.group("name"),
            )
        )
    return locations


async def _proxy_document(resolver: AccessorResolver, document: SourceDocument) -> SourceDocument | None:
    proxy_path = await resolver.proxy_for_document(document)
    if proxy_path is None or proxy_path == document.path:
        return None
    text = await resolver.context.store.read_text(proxy_path)
    return SourceDocument(proxy_path, text) if text is not None else None


def _dedupe(locations: list[ResolvedLocation]) -> list[ResolvedLocation]:
    seen: set[tuple[str, int]] = set()
    unique = []
    for location in locations:
        key = (location.file_path, location.offset)
        if key not in seen:
            seen.add(key)
            unique.append(location)
    return unique


async def find_references(
    resolver: AccessorResolver, document: SourceDocument, position: Position
) -> list[ResolvedLocation]:
    """Declarations and call sites related to the property or accessor under ``position``."""
    reference = build_reference(document, position)
    if reference is None or reference.kind is ReferenceKind.UNKNOWN:
        return []

    store = resolver.context.store
    if reference.kind is ReferenceKind.PROPERTY:
        declarations = await resolver.find_accessors(document, position)
        names = list(accessor_names(reference.symbol_text))
        names.extend(loc.symbol for loc in declarations if loc.symbol and loc.symbol not in names)
        locations = [*declarations, *call_sites(document, names)]
        proxy_document = await _proxy_document(resolver, document)
        if proxy_document is not None:
            locations.extend(call_sites(proxy_document, names))
        return _dedupe(locations)

    word = reference.symbol_text
    locations = []
    proxy_document = None
    definition = await resolver.find_definition(document, position)
    if definition is not None:
        locations.append(definition)
        definition_text = await store.read_text(definition.file_path)
        if definition_text is not None:
            proxy_document = await _proxy_document(resolver, SourceDocument(definition.file_path, definition_text))
        method = scanner.find_method(proxy_document.text, word) if proxy_document else None
        if proxy_document is not None and method is not None:
            locations.append(
                ResolvedLocation(
                    file_path=proxy_document.path,
                    position=proxy_document.position_at(method.offset),
                    offset=method.offset,
                    symbol=method.name,
                )
            )
    locations.extend(call_sites(document, [word]))
    if proxy_document is not None and proxy_document.path != document.path:
        locations.extend(call_sites(proxy_document, [word]))
    logger.debug("Found %d reference(s) for %s", len(locations), word)
    return _dedupe(locations)
