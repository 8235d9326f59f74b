"""
SQLite Storage Implementation

Two tables:
    users(id, username, salt, password_digest, balance)
    items(user_id -> users.id, name, price)

Money is stored as TEXT so Decimal values survive exactly; SQLite has
no decimal column type.

TRADEOFFS:
- save() is a full replace (delete everything, insert everything).
  It runs in one transaction, so a failed save rolls back instead of
  leaving half a snapshot behind.
- load() rebuilds users from a single LEFT OUTER JOIN. Row order follows
  insertion order (rowid), which keeps users and items in registry order.
"""

import sqlite3
from contextlib import closing
from decimal import Decimal, InvalidOperation
from itertools import groupby
from uuid import UUID

import structlog

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


USERS_DDL = """
CREATE TABLE IF NOT EXISTS users (
    id TEXT PRIMARY KEY,
    username TEXT NOT NULL UNIQUE,
    salt BLOB NOT NULL,
    password_digest BLOB NOT NULL,
    balance TEXT NOT NULL
)
"""

ITEMS_DDL = """
CREATE TABLE IF NOT EXISTS items (
    user_id TEXT NOT NULL REFERENCES users(id),
    name TEXT NOT NULL,
    price TEXT NOT NULL
)
"""

LOAD_QUERY = """
SELECT u.id, u.username, u.salt, u.password_digest, u.balance,
       i.name AS item_name, i.price AS item_price
FROM users u
LEFT OUTER JOIN items i ON i.user_id = u.id
ORDER BY u.rowid, i.rowid
"""


def ensure_schema(conn: sqlite3.Connection) -> None:
    """Create the users/items tables if missing (non-destructive)."""
    conn.execute(USERS_DDL)
    conn.execute(ITEMS_DDL)


class SQLiteRegistryStorage(RegistryStorage):
    """
    SQLite implementation of registry storage.

    One row per user, one row per owned item.
    """

    backend = StorageBackend.SQLITE

    def _connect(self, read_only: bool = False) -> sqlite3.Connection:
        if read_only:
            # mode=ro keeps load() from creating or touching the file
            conn = sqlite3.connect(self.path.resolve().as_uri() + "?mode=ro", uri=True)
        else:
            conn = sqlite3.connect(self.path)
        conn.execute("PRAGMA foreign_keys = ON")
        conn.row_factory = sqlite3.Row
        return conn

    def _rows_to_user(self, rows: list[sqlite3.Row]) -> User:
        """Build one User from the contiguous join rows that share its id."""
        first = rows[0]
        items = [
            Item(name=row["item_name"], price=Decimal(row["item_price"]))
            for row in rows
            if row["item_name"] is not None
        ]
        return User(
            id=UUID(first["id"]),
            username=first["username"],
            salt=bytes(first["salt"]),
            password_digest=bytes(first["password_digest"]),
            account=LedgerAccount(balance=Decimal(first["balance"])),
            items=items,
        )

    def load(self) -> UserRegistry:
        """Load every user and their items."""
        self._require_exists()
        registry = UserRegistry()
        try:
            with closing(self._connect(read_only=True)) as conn:
                rows = conn.execute(LOAD_QUERY).fetchall()
            for _, user_rows in groupby(rows, key=lambda row: row["id"]):
                registry.add(self._rows_to_user(list(user_rows)))
        except sqlite3.Error as e:
            raise StoreCorruptError(f"Failed to read database {self.location}: {e}")
        except (ValueError, TypeError, InvalidOperation, LedgerError) as e:
            raise StoreCorruptError(f"Invalid data in database {self.location}: {e}")

        logger.info("store_loaded", location=self.location, users=len(registry))
        return registry

    def save(self, registry: UserRegistry) -> bool:
        """Replace the whole database content with `registry`."""
        user_rows = []
        item_rows = []
        for user in registry:
            user_rows.append((
                str(user.id),
                user.username,
                user.salt,
                user.password_digest,
                str(user.balance),
            ))
            item_rows.extend(
                (str(user.id), item.name, str(item.price))
                for item in user.items
            )

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with closing(self._connect()) as conn:
                with conn:
                    ensure_schema(conn)
                    conn.execute("DELETE FROM items")
                    conn.execute("DELETE FROM users")
                    conn.executemany(
                        "INSERT INTO users (id, username, salt, password_digest, balance) "
                        "VALUES (?, ?, ?, ?, ?)",
                        user_rows,
                    )
                    conn.executemany(
                        "INSERT INTO items (user_id, name, price) VALUES (?, ?, ?)",
                        item_rows,
                    )
        except (sqlite3.Error, OSError) as e:
            raise StoreWriteError(f"Failed to save database {self.location}: {e}")

        logger.info(
            "store_saved",
            location=self.location,
            users=len(user_rows),
            items=len(item_rows),
        )
        return True
