"""Tests for reference search."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from accessor_nav.core.document import SourceDocument
from accessor_nav.core.references import call_sites, find_references
from accessor_nav.core.resolver import AccessorResolver
from accessor_nav.models import Position
from accessor_nav.store.memory import InMemorySourceStore
from tests.conftest import WIDGET_PROXY, SampleWorkspace

PositionOf = Callable[..., Position]


class TestCallSites:
    def test_finds_calls_outside_comments(self) -> None:
        document = SourceDocument("/x.php", "<?php\n$a->getName();\n// $a->getName();\n$b?->getName ();\n")
        sites = call_sites(document, ["getName"])
        assert [site.position.row for site in sites] == [1, 3]
        assert all(site.symbol == "getName" for site in sites)

    def test_property_fetch_is_not_a_call(self) -> None:
        document = SourceDocument("/x.php", "<?php\n$a->getName;\n")
        assert call_sites(document, ["getName"]) == []

    def test_no_names(self) -> None:
        assert call_sites(SourceDocument("/x.php", "<?php\n"), []) == []


class TestFindReferences:
    @pytest.mark.asyncio
    async def test_accessor(
        self, resolver: AccessorResolver, sample: SampleWorkspace, position_of: PositionOf
    ) -> None:
        document = sample.document(sample.service_path)
        locations = await find_references(resolver, document, position_of(document, "getName"))
        assert [loc.file_path for loc in locations] == [
            sample.widget_path,
            sample.proxy_path,
            sample.service_path,
        ]
        assert locations[0].symbol == "name"

    @pytest.mark.asyncio
    async def test_property_declaration(
        self, resolver: AccessorResolver, sample: SampleWorkspace, position_of: PositionOf
    ) -> None:
        document = sample.document(sample.widget_path)
        locations = await find_references(resolver, document, position_of(document, "$fooBar"))
        assert [(loc.file_path, loc.symbol) for loc in locations] == [(sample.proxy_path, "setFooBar")]

    @pytest.mark.asyncio
    async def test_property_in_class_with_calls(self, resolver: AccessorResolver, position_of: PositionOf) -> None:
        document = SourceDocument(
            "/ws/app/Domain/Note.php",
            "<?php\nnamespace App\\Domain;\nclass Note\n{\n    private $body;\n\n"
            "    public function getBody()\n    {\n        return $this->body;\n    }\n\n"
            "    public function copy(Note $other)\n    {\n        $this->setBody($other->getBody());\n    }\n}\n",
        )
        locations = await find_references(resolver, document, position_of(document, "$body"))
        assert [loc.symbol for loc in locations] == ["getBody", "setBody", "getBody"]

    @pytest.mark.asyncio
    async def test_call_sites_inside_proxy_trait(
        self,
        resolver: AccessorResolver,
        store: InMemorySourceStore,
        sample: SampleWorkspace,
        position_of: PositionOf,
    ) -> None:
        store.put(sample.proxy_path, WIDGET_PROXY.replace("return $this->id;", "return $this->getName();"))
        document = sample.document(sample.widget_path)
        locations = await find_references(resolver, document, position_of(document, "$name"))
        assert [(loc.file_path, loc.symbol) for loc in locations] == [
            (sample.proxy_path, "getName"),
            (sample.proxy_path, "getName"),
        ]
        assert locations[0].offset != locations[1].offset

    @pytest.mark.asyncio
    async def test_unknown_word(
        self, resolver: AccessorResolver, sample: SampleWorkspace, position_of: PositionOf
    ) -> None:
        document = sample.document(sample.service_path)
        assert await find_references(resolver, document, position_of(document, "calculate")) == []
