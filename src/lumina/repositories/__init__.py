"""Content store implementations."""

from .remote import HttpContentStore, HybridContentStore
from .sql_store import SqlContentStore
from .store import ContentStore, MemoryContentStore

__all__ = [
    "ContentStore",
    "HttpContentStore",
    "HybridContentStore",
    "MemoryContentStore",
    "SqlContentStore",
]
