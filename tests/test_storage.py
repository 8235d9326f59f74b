"""
Tests for the registry storage adapters

Both adapters must satisfy the same round-trip law: load(save(r))
equals r in usernames, ids, balances, credentials and item order.
Corrupt stores must fail loudly with StoreCorruptError and never load
partially.
"""

import base64
import json
import sqlite3
import stat
from decimal import Decimal

import pytest

from src.registry import UserRegistry
from src.services.storage import (
    JSONRegistryStorage,
    SQLiteRegistryStorage,
    StorageBackend,
    StorageError,
    StoreCorruptError,
    StoreMissingError,
    StoreWriteError,
)
from conftest import PASSWORDS, snapshot

ADAPTERS = {
    "sqlite": (SQLiteRegistryStorage, "users.db"),
    "json": (JSONRegistryStorage, "users.json"),
}


@pytest.fixture(params=sorted(ADAPTERS))
def storage(request, tmp_path):
    """Each test using this fixture runs once per adapter."""
    cls, filename = ADAPTERS[request.param]
    return cls(tmp_path / filename)


class TestRoundTrip:
    """Tests shared by both adapters."""

    def test_round_trip_preserves_registry(self, storage, registry):
        storage.save(registry)
        loaded = storage.load()
        assert snapshot(loaded) == snapshot(registry)

    def test_round_trip_preserves_credentials(self, storage, registry):
        """Test salts and digests survive byte for byte."""
        storage.save(registry)
        loaded = storage.load()

        for user in registry:
            reloaded = loaded.get(user.username)
            assert reloaded.salt == user.salt
            assert reloaded.password_digest == user.password_digest

        for username, password in PASSWORDS.items():
            assert loaded.authenticate(username, password)

    def test_round_trip_preserves_item_order(self, storage):
        """Test that item order is kept, not sorted."""
        registry = UserRegistry()
        user = registry.register("alice", "Passw0rd!")
        for name in ["b", "a", "c", "a"]:
            user.add_item(name, Decimal("1"))

        storage.save(registry)

        assert [i.name for i in storage.load().get("alice").items] == ["b", "a", "c", "a"]

    def test_user_without_items(self, storage):
        registry = UserRegistry.bootstrapped()
        storage.save(registry)
        assert storage.load().get("admin").items == []

    def test_empty_registry(self, storage):
        storage.save(UserRegistry())
        assert len(storage.load()) == 0

    def test_save_replaces_previous_snapshot(self, storage, registry):
        storage.save(registry)
        registry.remove("bob")
        registry.get("alice").increment_balance(Decimal("5.25"))

        storage.save(registry)
        loaded = storage.load()

        assert "bob" not in loaded
        assert loaded.get("alice").balance == Decimal("105.25")

    def test_save_creates_parent_directories(self, tmp_path, registry):
        storage = JSONRegistryStorage(tmp_path / "nested" / "dir" / "users.json")
        assert storage.save(registry) is True
        assert storage.exists()

    def test_missing_store(self, storage):
        assert not storage.exists()
        with pytest.raises(StoreMissingError):
            storage.load()

    def test_load_does_not_create_store(self, storage):
        with pytest.raises(StoreMissingError):
            storage.load()
        assert not storage.exists()

    def test_save_failure_raises_write_error(self, tmp_path, registry):
        """Test that an unwritable location gives StoreWriteError."""
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("file in the way")
        for cls, filename in ADAPTERS.values():
            with pytest.raises(StoreWriteError):
                cls(blocker / filename).save(registry)

    def test_quarantine_moves_store_aside(self, storage, registry):
        storage.save(registry)
        moved = storage.quarantine()
        assert moved.name == storage.path.name + ".corrupt"
        assert moved.exists()
        assert not storage.exists()

    def test_quarantine_without_store(self, storage):
        assert storage.quarantine() is None

    def test_quarantine_keeps_earlier_copies(self, storage, registry):
        """Test that a second quarantine does not overwrite the first."""
        storage.save(registry)
        first = storage.quarantine()
        first_bytes = first.read_bytes()

        storage.save(UserRegistry.bootstrapped())
        second = storage.quarantine()

        assert second != first
        assert second.name == storage.path.name + ".corrupt.1"
        assert first.read_bytes() == first_bytes
        assert second.exists()

    def test_long_decimals_round_trip_exactly(self, storage):
        """Test that amounts with many significant digits are not rounded."""
        registry = UserRegistry()
        user = registry.register("alice", "Passw0rd!", Decimal("12345678901234567.89"))
        user.add_item("Dust", Decimal("0.12345678901234567890"))

        storage.save(registry)
        loaded = storage.load().get("alice")

        assert loaded.balance == Decimal("12345678901234567.89")
        assert loaded.items[0].price == Decimal("0.12345678901234567890")

    def test_huge_finite_balance_round_trips(self, storage):
        registry = UserRegistry()
        user = registry.register("alice", "Passw0rd!")
        user.increment_balance(Decimal("1e400"))

        storage.save(registry)

        assert storage.load().get("alice").balance == Decimal("1e400")


class TestJSONDocument:
    """Tests specific to the JSON document adapter."""

    @pytest.fixture
    def json_storage(self, tmp_path, registry) -> JSONRegistryStorage:
        storage = JSONRegistryStorage(tmp_path / "users.json")
        storage.save(registry)
        return storage

    def _records(self, storage) -> list:
        return json.loads(storage.path.read_text())

    def _write(self, storage, data) -> None:
        storage.path.write_text(json.dumps(data))

    def test_document_layout(self, json_storage, registry):
        """Test the stored field names and encodings."""
        records = self._records(json_storage)
        alice = records[1]

        assert json_storage.backend == StorageBackend.JSON
        assert set(alice) == {"id", "username", "salt", "password_digest", "balance", "items"}
        assert alice["username"] == "alice"
        assert alice["id"] == str(registry.get("alice").id)
        assert base64.b64decode(alice["salt"]) == registry.get("alice").salt
        assert alice["balance"] == 100.0
        assert alice["items"] == [
            {"name": "Lamp", "price": 12.5},
            {"name": "Desk", "price": 80.0},
        ]

    def test_decimal_values_load_exactly(self, json_storage):
        """Test that 0.1 stored as a number reloads as Decimal('0.1')."""
        records = self._records(json_storage)
        records[2]["balance"] = 0.1
        self._write(json_storage, records)

        assert json_storage.load().get("bob").balance == Decimal("0.1")

    def test_invalid_json(self, json_storage):
        json_storage.path.write_text("{not json")
        with pytest.raises(StoreCorruptError):
            json_storage.load()

    def test_top_level_must_be_a_list(self, json_storage):
        self._write(json_storage, {"users": self._records(json_storage)})
        with pytest.raises(StoreCorruptError):
            json_storage.load()

    @pytest.mark.parametrize("field", ["id", "username", "salt", "password_digest", "balance", "items"])
    def test_missing_field(self, json_storage, field):
        records = self._records(json_storage)
        del records[1][field]
        self._write(json_storage, records)
        with pytest.raises(StoreCorruptError):
            json_storage.load()

    @pytest.mark.parametrize("field,value", [
        ("salt", "!!not base64!!"),
        ("salt", base64.b64encode(b"short").decode()),
        ("password_digest", base64.b64encode(b"x" * 31).decode()),
        ("balance", "100.00"),
        ("balance", True),
        ("id", "not-a-uuid"),
        ("username", "   "),
        ("items", [{"name": "Lamp", "price": -1}]),
        ("items", [{"name": "Lamp", "price": "12.50"}]),
        ("items", [{"name": "", "price": 1}]),
    ])
    def test_invalid_field_values(self, json_storage, field, value):
        """Test that one bad record makes the whole store corrupt."""
        records = self._records(json_storage)
        records[1][field] = value
        self._write(json_storage, records)
        with pytest.raises(StoreCorruptError):
            json_storage.load()

    def test_duplicate_usernames(self, json_storage):
        records = self._records(json_storage)
        records[2]["username"] = "alice"
        self._write(json_storage, records)
        with pytest.raises(StoreCorruptError):
            json_storage.load()

    def test_failed_save_leaves_no_temp_files(self, tmp_path, registry, monkeypatch):
        storage = JSONRegistryStorage(tmp_path / "users.json")

        def broken_replace(src, dst):
            raise OSError("disk full")

        monkeypatch.setattr("src.services.storage.json_store.os.replace", broken_replace)
        with pytest.raises(StoreWriteError):
            storage.save(registry)

        assert list(tmp_path.iterdir()) == []

    def test_amounts_are_written_as_exact_numbers(self, tmp_path):
        storage = JSONRegistryStorage(tmp_path / "users.json")
        registry = UserRegistry()
        registry.register("alice", "Passw0rd!", Decimal("12345678901234567.89"))

        storage.save(registry)

        text = storage.path.read_text()
        assert '"balance": 12345678901234567.89' in text
        assert json.loads(text)[0]["balance"] > 0

    def test_save_keeps_existing_file_mode(self, json_storage, registry):
        """Test that replacing the document keeps its permission bits."""
        json_storage.path.chmod(0o644)

        json_storage.save(registry)

        assert stat.S_IMODE(json_storage.path.stat().st_mode) == 0o644


class TestSQLiteStore:
    """Tests specific to the SQLite adapter."""

    @pytest.fixture
    def sqlite_storage(self, tmp_path, registry) -> SQLiteRegistryStorage:
        storage = SQLiteRegistryStorage(tmp_path / "users.db")
        storage.save(registry)
        return storage

    def test_schema(self, sqlite_storage):
        """Test users/items tables and the foreign key between them."""
        conn = sqlite3.connect(sqlite_storage.path)
        try:
            user_columns = [row[1] for row in conn.execute("PRAGMA table_info(users)")]
            item_columns = [row[1] for row in conn.execute("PRAGMA table_info(items)")]
            foreign_keys = conn.execute("PRAGMA foreign_key_list(items)").fetchall()
        finally:
            conn.close()

        assert sqlite_storage.backend == StorageBackend.SQLITE
        assert user_columns == ["id", "username", "salt", "password_digest", "balance"]
        assert item_columns == ["user_id", "name", "price"]
        assert [(fk[2], fk[3], fk[4]) for fk in foreign_keys] == [("users", "user_id", "id")]

    def test_one_row_per_item(self, sqlite_storage):
        conn = sqlite3.connect(sqlite_storage.path)
        try:
            (count,) = conn.execute("SELECT COUNT(*) FROM items").fetchone()
        finally:
            conn.close()
        assert count == 6

    def test_garbage_file_is_corrupt(self, tmp_path):
        path = tmp_path / "users.db"
        path.write_bytes(b"this is not a database " * 100)
        with pytest.raises(StoreCorruptError):
            SQLiteRegistryStorage(path).load()

    def test_missing_tables_is_corrupt(self, tmp_path):
        path = tmp_path / "users.db"
        conn = sqlite3.connect(path)
        with conn:
            conn.execute("CREATE TABLE unrelated (x INTEGER)")
        conn.close()

        with pytest.raises(StoreCorruptError):
            SQLiteRegistryStorage(path).load()

    @pytest.mark.parametrize("statement", [
        "UPDATE users SET salt = x'00' WHERE username = 'alice'",
        "UPDATE users SET balance = 'lots' WHERE username = 'alice'",
        "UPDATE users SET id = 'not-a-uuid' WHERE username = 'admin'",
        "UPDATE items SET price = '-1' WHERE name = 'Lamp'",
    ])
    def test_bad_rows_are_corrupt(self, sqlite_storage, statement):
        conn = sqlite3.connect(sqlite_storage.path)
        with conn:
            conn.execute(statement)
        conn.close()

        with pytest.raises(StoreCorruptError):
            sqlite_storage.load()

    def test_balances_are_stored_exactly(self, tmp_path):
        registry = UserRegistry()
        registry.register("alice", "Passw0rd!", Decimal("0.1"))
        registry.get("alice").increment_balance(Decimal("0.2"))
        storage = SQLiteRegistryStorage(tmp_path / "users.db")

        storage.save(registry)

        assert storage.load().get("alice").balance == Decimal("0.3")


class TestStorageErrors:
    """Tests for the storage exception hierarchy."""

    def test_base_error_has_a_kind(self):
        error = StorageError()
        assert error.kind.value == "store_write_error"
        assert str(error) == "Store write error"

    def test_subclasses_override_kind(self):
        assert StoreMissingError().kind.value == "store_missing"
        assert StoreCorruptError().kind.value == "store_corrupt"
