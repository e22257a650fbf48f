# =============================================================================
# tests/unit/test_local_store.py
# Unit Tests for Local Storage and the Local Fallback Store
# =============================================================================

import json

import pytest

from health_store.storage import LocalFallbackStore, MemoryStorage, SQLiteStorage


class TestMemoryStorage:
    """Test dict-backed key/value storage"""

    def test_set_get_remove(self):
        storage = MemoryStorage()

        storage.set_item("k", "v")
        assert storage.get_item("k") == "v"

        storage.remove_item("k")
        assert storage.get_item("k") is None

    def test_remove_missing_key_is_noop(self):
        MemoryStorage().remove_item("absent")

    def test_keys_sorted(self):
        storage = MemoryStorage({"b": "1", "a": "2"})

        assert storage.keys() == ["a", "b"]


class TestSQLiteStorage:
    """Test SQLite-backed key/value storage"""

    @pytest.fixture
    def storage(self, tmp_path):
        storage = SQLiteStorage(tmp_path / "nested" / "store.db")
        yield storage
        storage.close()

    def test_creates_parent_directory(self, storage, tmp_path):
        assert (tmp_path / "nested").is_dir()

    def test_set_get_overwrite(self, storage):
        storage.set_item("tibrah_db_products", "[]")
        storage.set_item("tibrah_db_products", '[{"id": "1"}]')

        assert storage.get_item("tibrah_db_products") == '[{"id": "1"}]'
        assert storage.keys() == ["tibrah_db_products"]

    def test_missing_key_returns_none(self, storage):
        assert storage.get_item("nothing") is None

    def test_remove_item(self, storage):
        storage.set_item("a", "1")
        storage.remove_item("a")

        assert storage.get_item("a") is None

    def test_persists_across_instances(self, tmp_path):
        path = tmp_path / "store.db"
        first = SQLiteStorage(path)
        first.set_item("k", "persisted")
        first.close()

        second = SQLiteStorage(path)
        assert second.get_item("k") == "persisted"
        second.close()


class TestLocalFallbackStore:
    """Test whole-array persistence per collection"""

    @pytest.mark.asyncio
    async def test_absent_key_reads_empty(self, memory_storage):
        store = LocalFallbackStore("widgets", memory_storage)

        assert await store.read_all() == []

    @pytest.mark.asyncio
    async def test_write_then_read(self, memory_storage):
        store = LocalFallbackStore("widgets", memory_storage)
        items = [{"id": "w1", "name": "A", "tags": ["x"], "meta": {"n": 1}}]

        await store.write_all(items)

        assert await store.read_all() == items

    @pytest.mark.asyncio
    async def test_storage_key_uses_prefix(self, memory_storage):
        store = LocalFallbackStore("widgets", memory_storage, key_prefix="app_")

        await store.write_all([{"id": "1"}])

        assert memory_storage.keys() == ["app_widgets"]
        assert json.loads(memory_storage.get_item("app_widgets")) == [{"id": "1"}]

    @pytest.mark.asyncio
    async def test_default_prefix(self, memory_storage):
        store = LocalFallbackStore("widgets", memory_storage)

        assert store.storage_key == "tibrah_db_widgets"

    @pytest.mark.asyncio
    async def test_corrupt_json_reads_empty(self, memory_storage):
        memory_storage.set_item("tibrah_db_widgets", "{not json")
        store = LocalFallbackStore("widgets", memory_storage)

        assert await store.read_all() == []

    @pytest.mark.asyncio
    async def test_non_array_json_reads_empty(self, memory_storage):
        memory_storage.set_item("tibrah_db_widgets", '{"id": "1"}')
        store = LocalFallbackStore("widgets", memory_storage)

        assert await store.read_all() == []

    @pytest.mark.asyncio
    async def test_collections_do_not_collide(self, memory_storage):
        widgets = LocalFallbackStore("widgets", memory_storage)
        gadgets = LocalFallbackStore("gadgets", memory_storage)

        await widgets.write_all([{"id": "w"}])
        await gadgets.write_all([{"id": "g"}])

        assert await widgets.read_all() == [{"id": "w"}]
        assert await gadgets.read_all() == [{"id": "g"}]

    @pytest.mark.asyncio
    async def test_clear_removes_key(self, memory_storage):
        store = LocalFallbackStore("widgets", memory_storage)
        await store.write_all([{"id": "1"}])

        await store.clear()

        assert memory_storage.get_item("tibrah_db_widgets") is None

    @pytest.mark.asyncio
    async def test_non_ascii_round_trip_on_sqlite(self, tmp_path):
        storage = SQLiteStorage(tmp_path / "store.db")
        store = LocalFallbackStore("articles", storage)

        await store.write_all([{"id": "1", "title": "الطب الشعوري"}])

        assert (await store.read_all())[0]["title"] == "الطب الشعوري"
