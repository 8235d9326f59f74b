"""
Storage Services Package

Provides the abstract registry storage interface and its two
implementations: a SQLite table pair and a single JSON document.
"""

from src.services.storage.interface import (
    RegistryStorage,
    StorageBackend,
    StorageError,
    StoreCorruptError,
    StoreMissingError,
    StoreWriteError,
)
from src.services.storage.json_store import JSONRegistryStorage
from src.services.storage.sqlite_store import SQLiteRegistryStorage

__all__ = [
    # Interface
    "RegistryStorage",
    "StorageBackend",
    # Exceptions
    "StorageError",
    "StoreCorruptError",
    "StoreMissingError",
    "StoreWriteError",
    # Implementations
    "JSONRegistryStorage",
    "SQLiteRegistryStorage",
]
