"""
Main Orchestrator for User Ledger

This module ties the components together and defines the two store
checkpoints of a process run:
1. Load (storage → registry, or bootstrap a fresh registry)
2. Save (registry → storage, full snapshot)

DESIGN DECISION: The orchestrator owns the recovery policy:
- A missing store is bootstrapped with the default account and saved
- A corrupt store is moved aside, bootstrapped and saved, and the data
  loss is reported LOUDLY (warning log + audit event), never hidden
- A failed save is reported and not retried; the registry in memory
  stays valid so the caller can try again or export elsewhere
"""

from pathlib import Path
from typing import Optional, Union

import structlog

from src.audit import AuditLogger
from src.commands import OperationExecutor
from src.config import get_settings
from src.registry import DEFAULT_ADMIN_PASSWORD, UserRegistry
from src.services.storage import (
    JSONRegistryStorage,
    RegistryStorage,
    SQLiteRegistryStorage,
    StorageBackend,
    StoreCorruptError,
    StoreMissingError,
    StoreWriteError,
)

logger = structlog.get_logger(__name__)

STORAGE_CLASSES: dict[StorageBackend, type[RegistryStorage]] = {
    StorageBackend.SQLITE: SQLiteRegistryStorage,
    StorageBackend.JSON: JSONRegistryStorage,
}


def create_storage(
    backend: Union[StorageBackend, str],
    path: Union[str, Path],
) -> RegistryStorage:
    """Build the storage adapter for a configured backend."""
    return STORAGE_CLASSES[StorageBackend(backend)](path)


class RegistryStoreFlow:
    """
    Orchestrates loading and saving the registry.

    Flow:
    1. load() → registry from storage, bootstrapping when needed
    2. ... caller runs operations ...
    3. save() → snapshot back to storage (at shutdown or on interrupt)
    """

    def __init__(
        self,
        storage: RegistryStorage,
        audit_logger: Optional[AuditLogger] = None,
        bootstrap_password: str = DEFAULT_ADMIN_PASSWORD,
    ):
        self._storage = storage
        self._audit_logger = audit_logger or AuditLogger()
        self._bootstrap_password = bootstrap_password

    @property
    def storage(self) -> RegistryStorage:
        return self._storage

    def load(self) -> UserRegistry:
        """
        Load the registry, falling back to a bootstrapped one.

        Never raises for a missing or corrupt store. A failure to write
        the fresh store (StoreWriteError) does propagate.
        """
        location = self._storage.location
        try:
            registry = self._storage.load()
        except StoreMissingError:
            logger.info("store_missing", location=location)
            return self._bootstrap(reason="no store found")
        except StoreCorruptError as e:
            logger.warning(
                "store_corrupt_data_discarded",
                location=location,
                error=str(e),
            )
            moved_to = self._storage.quarantine()
            self._audit_logger.log_store_corrupt(
                location,
                str(e),
                str(moved_to) if moved_to else None,
            )
            return self._bootstrap(reason="store was corrupt")

        self._audit_logger.log_store_loaded(
            location,
            self._storage.backend.value,
            len(registry),
        )
        return registry

    def _bootstrap(self, reason: str) -> UserRegistry:
        registry = UserRegistry.bootstrapped(self._bootstrap_password)
        self._storage.save(registry)
        self._audit_logger.log_store_bootstrapped(self._storage.location, reason)
        return registry

    def save(self, registry: UserRegistry) -> bool:
        """
        Save the registry.

        Returns True on success. On failure the error is logged and
        audited and False is returned; nothing is retried.
        """
        try:
            self._storage.save(registry)
        except StoreWriteError as e:
            logger.error("store_save_failed", location=self._storage.location, error=str(e))
            self._audit_logger.log_save_failed(self._storage.location, str(e))
            return False

        self._audit_logger.log_store_saved(
            self._storage.location,
            self._storage.backend.value,
            len(registry),
        )
        return True


def convert_store(source: RegistryStorage, destination: RegistryStorage) -> UserRegistry:
    """
    Copy a store into another format.

    Loads the full snapshot from `source` and saves it with
    `destination`. Salts and digests are carried over byte for byte, so
    every password keeps verifying.

    Raises:
        StoreMissingError / StoreCorruptError: Source unreadable
        StoreWriteError: Destination not writable
    """
    registry = source.load()
    destination.save(registry)
    logger.info(
        "store_converted",
        source=source.location,
        source_backend=source.backend.value,
        destination=destination.location,
        destination_backend=destination.backend.value,
        users=len(registry),
    )
    return registry


def create_app_components(
    path: Optional[Union[str, Path]] = None,
    backend: Optional[Union[StorageBackend, str]] = None,
) -> tuple[RegistryStoreFlow, UserRegistry, OperationExecutor]:
    """
    Factory function to create all application components.

    Args:
        path: Storage location. Falls back to LEDGER_STORAGE_PATH.
        backend: Storage format. Falls back to LEDGER_STORAGE_BACKEND.

    Returns:
        (store_flow, registry, executor)

    Raises:
        ValueError: If no storage location is configured anywhere
    """
    settings = get_settings()
    storage_settings = settings.storage

    path = path or storage_settings.path
    if not path:
        raise ValueError("A storage location is required")
    backend = backend or storage_settings.backend

    audit_logger = AuditLogger()
    store_flow = RegistryStoreFlow(
        create_storage(backend, path),
        audit_logger=audit_logger,
        bootstrap_password=settings.bootstrap.password,
    )
    registry = store_flow.load()
    executor = OperationExecutor(registry, audit_logger)

    return store_flow, registry, executor
