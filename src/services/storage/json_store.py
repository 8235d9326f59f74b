"""
JSON Document Storage Implementation

The whole registry is one JSON array of user records:

    [
      {
        "id": "2b0c...",
        "username": "alice",
        "salt": "<base64>",
        "password_digest": "<base64>",
        "balance": 100.00,
        "items": [{"name": "Lamp", "price": 12.50}]
      }
    ]

DESIGN DECISION: The document is parsed in one go and validated against
pydantic record models. Any schema violation (missing field, wrong
type, bad base64, wrong byte length) makes the whole store corrupt.
We never skip a bad record and load the rest.

Money is written as the Decimal's own text in JSON number position and
read back straight into Decimal, so any finite amount round-trips
exactly. Neither step goes through float.
"""

import base64
import binascii
import os
import stat
import tempfile
from decimal import Decimal
from typing import Any
from uuid import UUID

import simplejson
import structlog
from pydantic import (
    BaseModel,
    Field,
    TypeAdapter,
    ValidationError,
    field_serializer,
    field_validator,
)

from src.auth.credentials import DIGEST_SIZE, SALT_SIZE
from src.models.errors import LedgerError
from src.models.user import Item, LedgerAccount, User
from src.registry import UserRegistry
from src.services.storage.interface import (
    RegistryStorage,
    StorageBackend,
    StoreCorruptError,
    StoreWriteError,
)

logger = structlog.get_logger(__name__)


def _require_number(v: Any) -> Any:
    # JSON strings and booleans are not amounts, even if pydantic could coerce them
    if isinstance(v, (str, bool)):
        raise ValueError("must be a JSON number")
    return v


class ItemRecord(BaseModel):
    """Stored form of an Item."""

    name: str
    price: Decimal

    @field_validator("price", mode="before")
    @classmethod
    def price_is_number(cls, v: Any) -> Any:
        return _require_number(v)


class UserRecord(BaseModel):
    """Stored form of a User."""

    id: UUID
    username: str
    salt: bytes = Field(..., min_length=SALT_SIZE, max_length=SALT_SIZE)
    password_digest: bytes = Field(..., min_length=DIGEST_SIZE, max_length=DIGEST_SIZE)
    balance: Decimal
    items: list[ItemRecord]

    @field_validator("salt", "password_digest", mode="before")
    @classmethod
    def decode_base64(cls, v: Any) -> Any:
        if isinstance(v, bytes):
            return v
        if not isinstance(v, str):
            raise ValueError("must be a base64 string")
        try:
            return base64.b64decode(v, validate=True)
        except (binascii.Error, ValueError):
            raise ValueError("malformed base64")

    @field_validator("balance", mode="before")
    @classmethod
    def balance_is_number(cls, v: Any) -> Any:
        return _require_number(v)

    @field_serializer("id")
    def id_to_text(self, v: UUID) -> str:
        return str(v)

    @field_serializer("salt", "password_digest")
    def encode_base64(self, v: bytes) -> str:
        return base64.b64encode(v).decode("ascii")

    @classmethod
    def from_user(cls, user: User) -> "UserRecord":
        return cls(
            id=user.id,
            username=user.username,
            salt=user.salt,
            password_digest=user.password_digest,
            balance=user.balance,
            items=[ItemRecord(name=item.name, price=item.price) for item in user.items],
        )

    def to_user(self) -> User:
        return User(
            id=self.id,
            username=self.username,
            salt=self.salt,
            password_digest=self.password_digest,
            account=LedgerAccount(balance=self.balance),
            items=[Item(name=item.name, price=item.price) for item in self.items],
        )


DOCUMENT_ADAPTER = TypeAdapter(list[UserRecord])


def encode_document(records: list[UserRecord]) -> bytes:
    """Serialize records; Decimals are emitted as exact JSON numbers."""
    # python mode keeps Decimal values intact for simplejson
    data = DOCUMENT_ADAPTER.dump_python(records)
    return simplejson.dumps(data, use_decimal=True, indent=2).encode("utf-8")


def decode_document(raw: str) -> list[UserRecord]:
    data = simplejson.loads(raw, use_decimal=True)
    return DOCUMENT_ADAPTER.validate_python(data)


class JSONRegistryStorage(RegistryStorage):
    """
    JSON document implementation of registry storage.

    save() writes to a temporary file next to the target and replaces
    the target in one step, so readers see the old or the new snapshot.
    An existing document keeps its permission bits across saves.
    """

    backend = StorageBackend.JSON

    def load(self) -> UserRegistry:
        """Parse the whole document into a registry."""
        self._require_exists()
        try:
            raw = self.path.read_text(encoding="utf-8")
            records = decode_document(raw)
            registry = UserRegistry(record.to_user() for record in records)
        except (OSError, UnicodeDecodeError) as e:
            raise StoreCorruptError(f"Failed to read document {self.location}: {e}")
        except simplejson.JSONDecodeError as e:
            raise StoreCorruptError(f"Document {self.location} is not valid JSON: {e}")
        except (ValidationError, LedgerError) as e:
            raise StoreCorruptError(f"Document {self.location} has invalid records: {e}")

        logger.info("store_loaded", location=self.location, users=len(registry))
        return registry

    def save(self, registry: UserRegistry) -> bool:
        """Overwrite the document with a fresh snapshot."""
        records = [UserRecord.from_user(user) for user in registry]
        payload = encode_document(records)

        tmp_name = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=self.path.name, dir=self.path.parent)
            with os.fdopen(fd, "wb") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            # mkstemp creates 0600; an existing document keeps its mode
            if self.path.exists():
                os.chmod(tmp_name, stat.S_IMODE(self.path.stat().st_mode))
            os.replace(tmp_name, self.path)
        except OSError as e:
            raise StoreWriteError(f"Failed to save document {self.location}: {e}")
        finally:
            if tmp_name and os.path.exists(tmp_name):
                os.remove(tmp_name)

        logger.info("store_saved", location=self.location, users=len(records))
        return True
