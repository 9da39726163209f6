"""Generated accessor proxies and their sidecar metadata.

The php-accessor generator writes one trait per data class::

    .php-accessor/proxy/accessor/_Proxy_App_Domain_WidgetAccessor.php
    .php-accessor/proxy/meta/_Proxy_App_Domain_WidgetAccessor.json

The file name encodes the original class name with ``\\`` replaced by ``_``.
"""

from __future__ import annotations

import logging
import os
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from accessor_nav.config import ResolverSettings
from accessor_nav.core import scanner
from accessor_nav.core.ports.source import SourceStore
from accessor_nav.models import ProxyLinkage

logger = logging.getLogger(__name__)


class SidecarMethod(BaseModel):
    method_name: str = Field(alias="methodName", min_length=1)
    field_name: str = Field(alias="fieldName", min_length=1)

    model_config = ConfigDict(populate_by_name=True)


class SidecarDocument(BaseModel):
    class_name: str | None = Field(default=None, alias="className")
    methods: list[SidecarMethod] = []

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @field_validator("methods", mode="before")
    @classmethod
    def _drop_malformed(cls, value: Any) -> list[Any]:
        if not isinstance(value, list):
            return []
        return [
            record
            for record in value
            if isinstance(record, dict)
            and isinstance(record.get("methodName"), str)
            and isinstance(record.get("fieldName"), str)
            and record["methodName"]
            and record["fieldName"]
        ]

    def field_for(self, method_name: str) -> str | None:
        wanted = method_name.lower()
        for record in self.methods:
            if record.method_name.lower() == wanted:
                return record.field_name
        return None


def proxy_stem(settings: ResolverSettings, fqn: str) -> str:
    encoded = fqn.strip("\\").replace("\\", "_")
    return f"{settings.proxy_prefix}{encoded}{settings.proxy_suffix}"


def build_proxy_file_name(fqn: str, settings: ResolverSettings | None = None) -> str:
    """``App\\Domain\\Widget`` -> ``_Proxy_App_Domain_WidgetAccessor.php``."""
    settings = settings or ResolverSettings()
    return proxy_stem(settings, fqn) + settings.source_extension


def _encoded_part(file_name: str, settings: ResolverSettings) -> str | None:
    stem, ext = os.path.splitext(os.path.basename(file_name))
    if ext != settings.source_extension:
        return None
    if not stem.startswith(settings.proxy_prefix) or not stem.endswith(settings.proxy_suffix):
        return None
    encoded = stem[len(settings.proxy_prefix) : len(stem) - len(settings.proxy_suffix)]
    return encoded or None


def is_proxy_file(path: str, text: str | None = None, settings: ResolverSettings | None = None) -> bool:
    """Name, location and (when ``text`` is given) content check for a generated proxy."""
    settings = settings or ResolverSettings()
    if _encoded_part(path, settings) is None:
        return False
    if "accessor" not in os.path.normpath(path).split(os.sep)[:-1]:
        return False
    if text is not None:
        stem = os.path.splitext(os.path.basename(path))[0]
        return scanner.declares_trait(text, stem)
    return True


def decode_proxy_name(file_name: str, settings: ResolverSettings | None = None) -> list[str]:
    """All readings of a proxy file name as a class name, most likely first.

    The naive reading treats the last ``_`` segment as the class; later readings
    let the class name absorb trailing segments, for classes named ``Foo_Bar``.
    """
    settings = settings or ResolverSettings()
    encoded = _encoded_part(file_name, settings)
    if encoded is None:
        return []
    segments = encoded.split("_")
    if any(not s for s in segments):
        return [encoded]
    decodings: list[str] = []
    for split in range(len(segments) - 1, -1, -1):
        namespace = "\\".join(segments[:split])
        class_name = "_".join(segments[split:])
        decodings.append(f"{namespace}\\{class_name}" if namespace else class_name)
    return decodings


class ProxyMetadataLoader:
    def __init__(self, store: SourceStore, settings: ResolverSettings) -> None:
        self._store = store
        self._settings = settings

    def meta_dir(self, proxy_path: str) -> str:
        return os.path.join(os.path.dirname(os.path.dirname(proxy_path)), self._settings.meta_dir_name)

    async def find_proxy(self, fqn: str, store: SourceStore | None = None) -> str | None:
        """Proxy trait generated for ``fqn`` under any workspace proxy root."""
        source = store or self._store
        file_name = build_proxy_file_name(fqn, self._settings)
        for proxy_root in self._settings.proxy_roots():
            path = os.path.join(str(proxy_root), file_name)
            if await source.exists(path):
                return path
        return None

    async def _documents(self, proxy_path: str, fqn: str, source: SourceStore) -> list[SidecarDocument]:
        meta_dir = self.meta_dir(proxy_path)
        names = [n for n in await source.list_dir(meta_dir) if n.endswith(".json")]
        if not names:
            return []

        own_stems = {
            os.path.splitext(os.path.basename(proxy_path))[0].lower(),
            proxy_stem(self._settings, fqn).lower(),
            fqn.strip("\\").replace("\\", "_").lower(),
        }
        scoped: list[SidecarDocument] = []
        unscoped: list[SidecarDocument] = []
        for name in sorted(names):
            path = os.path.join(meta_dir, name)
            raw = await source.read_text(path)
            if raw is None:
                continue
            try:
                document = SidecarDocument.model_validate_json(raw)
            except ValidationError as exc:
                logger.warning("Skipping malformed sidecar %s: %s", path, exc.errors()[:1])
                continue

            stem = os.path.splitext(name)[0].lower()
            if document.class_name is not None:
                if document.class_name.strip("\\").lower() == fqn.strip("\\").lower():
                    scoped.append(document)
            elif stem in own_stems:
                scoped.append(document)
            elif not stem.startswith(self._settings.proxy_prefix.lower()):
                unscoped.append(document)
        return [*scoped, *unscoped]

    async def load_mapping(
        self,
        proxy_path: str,
        method_name: str,
        fqn: str | None = None,
        store: SourceStore | None = None,
    ) -> str | None:
        """Original field name recorded for ``method_name``, or None."""
        fqn = fqn or next(iter(decode_proxy_name(proxy_path, self._settings)), None)
        if not fqn:
            return None
        for document in await self._documents(proxy_path, fqn, store or self._store):
            field = document.field_for(method_name)
            if field:
                logger.debug("Sidecar maps %s -> %s", method_name, field)
                return field
        return None

    async def load_linkage(
        self,
        proxy_path: str,
        fqn: str | None = None,
        store: SourceStore | None = None,
    ) -> ProxyLinkage | None:
        fqn = fqn or next(iter(decode_proxy_name(proxy_path, self._settings)), None)
        if not fqn:
            return None
        mapping: dict[str, str] = {}
        for document in await self._documents(proxy_path, fqn, store or self._store):
            for record in document.methods:
                mapping.setdefault(record.method_name, record.field_name)
        return ProxyLinkage(proxy_file_path=proxy_path, original_fully_qualified_name=fqn, field_mapping=mapping)
