from accessor_nav.store.local import LocalSourceStore
from accessor_nav.store.memory import InMemorySourceStore

__all__ = [
    "InMemorySourceStore",
    "LocalSourceStore",
]
