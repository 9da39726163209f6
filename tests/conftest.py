"""Shared fixtures and helpers for tests."""

from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

import pytest

from accessor_nav.config import ResolverSettings
from accessor_nav.core.document import SourceDocument
from accessor_nav.core.resolver import AccessorResolver, ResolverContext
from accessor_nav.models import Position
from accessor_nav.store.memory import InMemorySourceStore

_REPO_ROOT = Path(__file__).parent.parent


# ---------------------------------------------------------------------------
# Auto-marker: tag tests as "unit" or "integration" based on directory
# ---------------------------------------------------------------------------


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        test_path = Path(str(item.fspath))
        rel = test_path.relative_to(_REPO_ROOT / "tests")
        parts = rel.parts
        if parts and parts[0] == "integration":
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)


# ---------------------------------------------------------------------------
# Sample PHP workspace
# ---------------------------------------------------------------------------

WIDGET = """<?php

namespace App\\Domain;

use PhpAccessor\\Attribute\\Data;
use PhpAccessor\\Attribute\\Map\\NamingConvention;

#[Data(namingConvention: NamingConvention::LOWER_CAMEL_CASE)]
class Widget extends BaseEntity
{
    private string $name;

    /**
     * @var string
     */
    private $internalCode;

    private ?int $fooBar = null;

    private string $code;
}
"""

BASE_ENTITY = """<?php

namespace App\\Domain;

abstract class BaseEntity
{
    protected int $id;
}
"""

GADGET = """<?php

namespace App\\Domain;

use PhpAccessor\\Attribute\\Data;
use PhpAccessor\\Attribute\\Map\\NamingConvention;

#[Data(namingConvention: NamingConvention::UPPER_CAMEL_CASE)]
class Gadget
{
    private $fooBar;

    private $FooBar;
}
"""

ACCOUNT = """<?php

namespace App\\Domain;

class Account
{
    private string $email;

    public function getEmail(): string
    {
        return $this->email;
    }
}
"""

WIDGET_PROXY = """<?php

namespace App\\Domain;

trait _Proxy_App_Domain_WidgetAccessor
{
    public function getName(): string
    {
        return $this->name;
    }

    public function getCode(): mixed
    {
        return $this->internalCode;
    }

    public function setFooBar(?int $fooBar): static
    {
        $this->fooBar = $fooBar;
        return $this;
    }

    public function getId(): int
    {
        return $this->id;
    }
}
"""

WIDGET_META = """{
    "className": "App\\\\Domain\\\\Widget",
    "methods": [
        {"methodName": "getCode", "fieldName": "internalCode"}
    ]
}
"""

SERVICE = """<?php

namespace App\\Service;

use App\\Domain\\Gadget;
use App\\Domain\\Widget;

class WidgetService
{
    public function handle(Widget $widget, Gadget $gadget): string
    {
        $widget->setFooBar(1);
        $gadget->getFooBar();
        $widget->getId();
        $widget->getCode();
        $this->calculate();
        return $widget->getName();
    }

    private function calculate(): int
    {
        return 1;
    }
}
"""


@dataclass
class SampleWorkspace:
    root: str = "/ws"
    widget_path: str = "/ws/app/Domain/Widget.php"
    base_path: str = "/ws/app/Domain/BaseEntity.php"
    gadget_path: str = "/ws/app/Domain/Gadget.php"
    account_path: str = "/ws/app/Domain/Account.php"
    service_path: str = "/ws/app/Service/WidgetService.php"
    proxy_path: str = "/ws/.php-accessor/proxy/accessor/_Proxy_App_Domain_WidgetAccessor.php"
    meta_path: str = "/ws/.php-accessor/proxy/meta/_Proxy_App_Domain_WidgetAccessor.json"
    files: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.files = {
            self.widget_path: WIDGET,
            self.base_path: BASE_ENTITY,
            self.gadget_path: GADGET,
            self.account_path: ACCOUNT,
            self.service_path: SERVICE,
            self.proxy_path: WIDGET_PROXY,
            self.meta_path: WIDGET_META,
        }

    def document(self, path: str) -> SourceDocument:
        return SourceDocument(path, self.files[path])


@pytest.fixture
def sample() -> SampleWorkspace:
    return SampleWorkspace()


@pytest.fixture
def store(sample: SampleWorkspace) -> InMemorySourceStore:
    return InMemorySourceStore(sample.files)


@pytest.fixture
def settings(sample: SampleWorkspace) -> ResolverSettings:
    return ResolverSettings(roots=[Path(sample.root)])


@pytest.fixture
def context(settings: ResolverSettings, store: InMemorySourceStore) -> ResolverContext:
    return ResolverContext(settings, store)


@pytest.fixture
def resolver(context: ResolverContext) -> AccessorResolver:
    return AccessorResolver(context)


def _position_of(document: SourceDocument, needle: str, occurrence: int = 0) -> Position:
    offset = -1
    for _ in range(occurrence + 1):
        offset = document.text.index(needle, offset + 1)
    return document.position_at(offset)


@pytest.fixture
def position_of() -> Callable[..., Position]:
    """Position of the ``occurrence``-th ``needle`` in a document."""
    return _position_of
