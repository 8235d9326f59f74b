"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for registry storage.
This allows us to:
1. Pick SQLite or a JSON document by configuration
2. Convert a store from one format to the other
3. Keep the registry decoupled from any storage format

The interface is intentionally simple - whole-snapshot load and save.
There are no incremental writes: save() replaces everything.
"""

import shutil
from abc import ABC, abstractmethod
from enum import Enum
from pathlib import Path
from typing import Optional, Union

import structlog

from src.models.errors import ErrorKind, LedgerError
from src.registry import UserRegistry

logger = structlog.get_logger(__name__)


class StorageBackend(str, Enum):
    """Supported storage formats."""
    SQLITE = "sqlite"
    JSON = "json"


class RegistryStorage(ABC):
    """
    Abstract interface for registry storage.

    Any storage implementation must implement load() and save().
    Both are blocking and open/close their resources per call.
    """

    backend: StorageBackend

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    @property
    def location(self) -> str:
        return str(self.path)

    def exists(self) -> bool:
        """Does the backing store exist at all?"""
        return self.path.exists()

    @abstractmethod
    def load(self) -> UserRegistry:
        """
        Load a full registry snapshot.

        Returns:
            The rebuilt registry, users in stored order

        Raises:
            StoreMissingError: Nothing stored at this location
            StoreCorruptError: Store exists but cannot be parsed
        """
        pass

    @abstractmethod
    def save(self, registry: UserRegistry) -> bool:
        """
        Replace the stored snapshot with `registry`.

        Returns:
            True if saved successfully

        Raises:
            StoreWriteError: If the write fails
        """
        pass

    def quarantine(self) -> Optional[Path]:
        """
        Move an unreadable store out of the way.

        Returns the new path of the old store, or None if there was
        nothing to move. Earlier quarantined copies are never overwritten:
        the first goes to `<name>.corrupt`, later ones to `<name>.corrupt.1`,
        `<name>.corrupt.2` and so on.
        """
        if not self.exists():
            return None
        target = self._quarantine_target()
        try:
            shutil.move(str(self.path), str(target))
        except OSError as e:
            raise StoreWriteError(f"Failed to move corrupt store aside: {e}")
        logger.warning("store_quarantined", location=self.location, moved_to=str(target))
        return target

    def _quarantine_target(self) -> Path:
        target = self.path.with_name(self.path.name + ".corrupt")
        counter = 0
        while target.exists():
            counter += 1
            target = self.path.with_name(f"{self.path.name}.corrupt.{counter}")
        return target

    def _require_exists(self) -> None:
        if not self.exists():
            raise StoreMissingError(f"No store at {self.location}")


class StorageError(LedgerError):
    """Base exception for storage operations. Defaults to an I/O failure."""
    kind = ErrorKind.STORE_WRITE_ERROR


class StoreMissingError(StorageError):
    """Nothing stored at the given location."""
    kind = ErrorKind.STORE_MISSING


class StoreCorruptError(StorageError):
    """Store exists but cannot be parsed into a valid registry."""
    kind = ErrorKind.STORE_CORRUPT


class StoreWriteError(StorageError):
    """I/O failure while saving."""
    kind = ErrorKind.STORE_WRITE_ERROR
