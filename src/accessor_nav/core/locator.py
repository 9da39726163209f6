from __future__ import annotations

import logging
import re
from collections.abc import Callable

from accessor_nav.config import ResolverSettings
from accessor_nav.core import scanner
from accessor_nav.core.document import SourceDocument
from accessor_nav.core.paths import PathResolver, split_fqn
from accessor_nav.core.ports.source import SourceStore
from accessor_nav.models import ResolvedLocation

logger = logging.getLogger(__name__)

_MODIFIERS = r"(?:\s+(?:static|readonly))*"
_TYPE = rf"(?:{scanner.TYPE_TOKEN}\s+)?"


def _plain(name: str) -> str:
    return rf"(?P<decl>{scanner.VISIBILITY}){_MODIFIERS}\s+{_TYPE}\${name}\b"


def _documented(name: str) -> str:
    return rf"/\*\*(?:(?!\*/).)*\*/\s*(?P<decl>{scanner.VISIBILITY}){_MODIFIERS}\s+{_TYPE}\${name}\b"


def _with_default(name: str) -> str:
    return rf"(?P<decl>{scanner.VISIBILITY}){_MODIFIERS}\s+{_TYPE}\${name}\s*="


def _promoted(name: str) -> str:
    return (
        rf"function\s+__construct\s*\((?:(?!\)\s*[{{:;]).)*?"
        rf"(?P<decl>public|protected|private)(?:\s+readonly)?\s+{_TYPE}\${name}\b"
    )


def _constant(name: str) -> str:
    return rf"(?P<decl>(?:(?:public|protected|private)\s+)?(?:final\s+)?const)\s+{_TYPE}{name}\s*="


# Tried in this order for every candidate; candidate order dominates pattern order.
DECLARATION_FORMS: list[tuple[str, Callable[[str], str]]] = [
    ("plain", _plain),
    ("documented", _documented),
    ("default", _with_default),
    ("promoted", _promoted),
    ("const", _constant),
]


def find_declaration(body: str, name: str) -> tuple[int, str] | None:
    """Offset (within ``body``) and form of the first declaration of ``name``."""
    escaped = re.escape(name.lstrip("$"))
    for form, build in DECLARATION_FORMS:
        for match in re.finditer(build(escaped), body, re.DOTALL):
            offset = match.start("decl")
            if scanner.is_code_offset(body, offset):
                return offset, form
    return None


class PropertyLocator:
    """Find the declaration of the first matching candidate in a class or its ancestors."""

    def __init__(self, store: SourceStore, settings: ResolverSettings, paths: PathResolver) -> None:
        self._store = store
        self._settings = settings
        self._paths = paths

    async def locate(
        self,
        file_path: str,
        class_name: str,
        candidates: list[str],
        depth: int = 0,
        store: SourceStore | None = None,
    ) -> ResolvedLocation | None:
        if not candidates:
            return None
        if depth > self._settings.max_inheritance_depth:
            logger.debug("Inheritance depth bound reached at %s in %s", class_name, file_path)
            return None

        source = store or self._store
        text = await source.read_text(file_path)
        if text is None:
            return None
        span = scanner.find_class(text, class_name)
        if span is None:
            logger.debug("%s does not declare class %s", file_path, class_name)
            return None

        body = text[span.body_start : span.end + 1]
        for candidate in candidates:
            found = find_declaration(body, candidate)
            if found is None:
                continue
            offset, form = found
            absolute = span.body_start + offset
            logger.debug("Matched %s (%s) in %s::%s", candidate, form, file_path, class_name)
            return ResolvedLocation(
                file_path=file_path,
                position=SourceDocument(file_path, text).position_at(absolute),
                offset=absolute,
                symbol=candidate,
            )

        parent = span.extends
        if not parent:
            return None
        parent_names = scanner.qualify(parent, scanner.extract_use_aliases(text), scanner.find_namespace(text))
        resolved = await self._paths.resolve_first(parent_names, source)
        if resolved is None:
            logger.debug("Parent %s of %s could not be resolved", parent, class_name)
            return None
        parent_fqn, parent_path = resolved
        _, parent_class = split_fqn(parent_fqn)
        return await self.locate(parent_path, parent_class, candidates, depth + 1, source)
