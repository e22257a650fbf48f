# =============================================================================
# tests/unit/test_migration.py
# Unit Tests for Local-to-Remote Migration
# =============================================================================

import pytest

from health_store.errors import ConfigurationError
from health_store.storage import migrate_all, migrate_local_to_remote


class NoUpsertRemote:
    """Remote without bulk upsert support"""

    collection = "widgets"

    async def list_all(self):
        return []


async def seed_offline(make_store, remote, names):
    """Create entities while the remote is down; returns the store."""
    store = make_store(remote=remote)
    remote.available = False
    for name in names:
        await store.create({"name": name})
    remote.available = True
    return store


class TestMigrateLocalToRemote:
    """Test pushing one collection"""

    @pytest.mark.asyncio
    async def test_pushes_with_ids_preserved(self, make_store, remote):
        store = await seed_offline(make_store, remote, ["A", "B"])
        local_ids = sorted(item["id"] for item in await store.local.read_all())

        result = await migrate_local_to_remote(store)

        assert result.pushed == 2
        assert result.cleared is False
        assert sorted(item["id"] for item in await store.list()) == local_ids
        assert len(await store.local.read_all()) == 2

    @pytest.mark.asyncio
    async def test_clear_local(self, make_store, remote):
        store = await seed_offline(make_store, remote, ["A"])

        result = await migrate_local_to_remote(store, clear_local=True)

        assert result.cleared is True
        assert await store.local.read_all() == []

    @pytest.mark.asyncio
    async def test_rerun_is_idempotent(self, make_store, remote):
        store = await seed_offline(make_store, remote, ["A", "B"])

        await migrate_local_to_remote(store)
        await migrate_local_to_remote(store)

        assert len(remote.backend) == 2

    @pytest.mark.asyncio
    async def test_nothing_to_push(self, make_store, remote):
        store = make_store(remote=remote)

        result = await migrate_local_to_remote(store)

        assert result.pushed == 0
        assert "upsert_many" not in remote.calls

    @pytest.mark.asyncio
    async def test_requires_remote(self, make_store):
        with pytest.raises(ConfigurationError):
            await migrate_local_to_remote(make_store())

    @pytest.mark.asyncio
    async def test_requires_upsert_capability(self, make_store):
        with pytest.raises(ConfigurationError) as exc_info:
            await migrate_local_to_remote(make_store(remote=NoUpsertRemote()))

        assert exc_info.value.details["expected_type"] == "SupportsUpsert"

    @pytest.mark.asyncio
    async def test_remote_failure_keeps_local(self, make_store, remote):
        store = await seed_offline(make_store, remote, ["A"])
        remote.available = False

        with pytest.raises(ConnectionError):
            await migrate_local_to_remote(store, clear_local=True)

        assert len(await store.local.read_all()) == 1


class TestMigrateAll:
    """Test pushing several collections"""

    @pytest.mark.asyncio
    async def test_failure_does_not_stop_others(self, make_store, remote):
        widgets = await seed_offline(make_store, remote, ["A"])
        local_only = make_store("gadgets")

        results = await migrate_all([local_only, widgets])

        assert list(results) == ["widgets"]
        assert results["widgets"].pushed == 1
