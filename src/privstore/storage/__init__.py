"""Storage package for key-value backends."""

from .base import KeyValueStore
from .factory import make_key_value_store
from .fs import FilesystemKeyValueStore
from .memory import MemoryKeyValueStore
from .sqlite import SqliteKeyValueStore

__all__ = [
    "KeyValueStore",
    "FilesystemKeyValueStore",
    "MemoryKeyValueStore",
    "SqliteKeyValueStore",
    "make_key_value_store",
]
