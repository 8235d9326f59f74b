"""Services package."""

from src.services.storage import (
    JSONRegistryStorage,
    RegistryStorage,
    SQLiteRegistryStorage,
    StorageBackend,
    StorageError,
    StoreCorruptError,
    StoreMissingError,
    StoreWriteError,
)

__all__ = [
    # Storage services
    "JSONRegistryStorage",
    "RegistryStorage",
    "SQLiteRegistryStorage",
    "StorageBackend",
    "StorageError",
    "StoreCorruptError",
    "StoreMissingError",
    "StoreWriteError",
]
