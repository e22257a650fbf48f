# =============================================================================
# tests/conftest.py
# Pytest Configuration and Fixtures
# =============================================================================

import itertools
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional
from unittest.mock import MagicMock

import pytest

from health_store.storage import (
    EntityStore,
    InMemoryRemoteBackend,
    LocalFallbackStore,
    MemoryStorage,
)


# =============================================================================
# REMOTE DOUBLES
# =============================================================================

class SwitchableRemote:
    """
    In-memory remote that can be taken offline.

    While `available` is False every primitive raises ConnectionError, the
    way a dropped network connection would.
    """

    def __init__(self, collection: str):
        self.collection = collection
        self.backend = InMemoryRemoteBackend(collection)
        self.available = True
        self.calls: List[str] = []

    def _check(self, operation: str) -> None:
        self.calls.append(operation)
        if not self.available:
            raise ConnectionError(f"remote unreachable during {operation}")

    async def list_all(self):
        self._check("list_all")
        return await self.backend.list_all()

    async def get_by_id(self, entity_id):
        self._check("get_by_id")
        return await self.backend.get_by_id(entity_id)

    async def create_with_generated_id(self, data):
        self._check("create_with_generated_id")
        return await self.backend.create_with_generated_id(data)

    async def update_by_id(self, entity_id, patch):
        self._check("update_by_id")
        await self.backend.update_by_id(entity_id, patch)

    async def delete_by_id(self, entity_id):
        self._check("delete_by_id")
        await self.backend.delete_by_id(entity_id)

    async def upsert_many(self, entities):
        self._check("upsert_many")
        return await self.backend.upsert_many(entities)


# =============================================================================
# STORE FIXTURES
# =============================================================================

@pytest.fixture
def memory_storage():
    """Fresh dict-backed local storage"""
    return MemoryStorage()


@pytest.fixture
def make_remote():
    """Factory for SwitchableRemote doubles"""
    return SwitchableRemote


@pytest.fixture
def remote():
    """Online remote for the 'widgets' collection"""
    return SwitchableRemote("widgets")


@pytest.fixture
def offline_remote():
    """Remote for 'widgets' that fails every call"""
    backend = SwitchableRemote("widgets")
    backend.available = False
    return backend


@pytest.fixture
def make_store(memory_storage):
    """Factory for EntityStores sharing one local storage"""
    def _make(
        collection: str = "widgets",
        remote: Optional[Any] = None,
        serialize_local_writes: bool = True,
    ) -> EntityStore:
        return EntityStore(
            collection,
            local=LocalFallbackStore(collection, memory_storage),
            remote=remote,
            serialize_local_writes=serialize_local_writes,
        )

    return _make


@pytest.fixture
def fixed_clock(monkeypatch):
    """Deterministic, strictly increasing timestamps for entity_store"""
    from health_store.storage import entity_store as entity_store_module

    start = datetime(2026, 10, 17, 8, 0, 0, tzinfo=timezone.utc)
    ticks = itertools.count()

    def fake_now() -> str:
        moment = start + timedelta(seconds=next(ticks))
        return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")

    monkeypatch.setattr(entity_store_module, "utc_now_iso", fake_now)
    return start


# =============================================================================
# MOCK FIXTURES
# =============================================================================

@pytest.fixture
def mock_supabase():
    """Mock Supabase client"""
    mock_client = MagicMock()
    mock_client.table.return_value.select.return_value.range.return_value.execute.return_value.data = []
    mock_client.table.return_value.insert.return_value.execute.return_value = MagicMock(data=[])
    return mock_client


# =============================================================================
# SAMPLE DATA FIXTURES
# =============================================================================

@pytest.fixture
def sample_metrics() -> List[Dict[str, Any]]:
    """Health metric payloads"""
    return [
        {"metric_type": "weight", "value": 72.5, "unit": "kg", "recorded_at": "2026-10-01"},
        {"metric_type": "heart_rate", "value": 64, "unit": "bpm", "recorded_at": "2026-10-02"},
        {"metric_type": "weight", "value": 71.9, "unit": "kg", "recorded_at": "2026-10-08"},
        {"metric_type": "glucose", "value": 5.4, "unit": "mmol/L", "recorded_at": "2026-10-03"},
    ]
