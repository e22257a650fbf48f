# =============================================================================
# health_store/storage/remote_backend.py
# Remote Backend Adapter Contract + In-Memory Implementation
# =============================================================================
"""
Remote backend interface for one collection.

The entity store depends on exactly five primitives. Any raised exception is
treated as "remote degraded"; `get_by_id` returns None for a genuine
not-found instead of raising.
"""

from __future__ import annotations
import copy
import uuid
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

from health_store.errors import RemoteBackendError
from health_store.storage.loop_lock import LoopLocalLock

Entity = Dict[str, Any]


@runtime_checkable
class RemoteBackend(Protocol):
    """Protocol for per-collection remote storage."""

    collection: str

    async def list_all(self) -> List[Entity]:
        """Return every entity in the collection, each carrying its id."""
        ...

    async def get_by_id(self, entity_id: str) -> Optional[Entity]:
        """Return the entity, or None if it does not exist."""
        ...

    async def create_with_generated_id(self, data: Entity) -> Entity:
        """Store data under a backend-minted id and return the stored entity."""
        ...

    async def update_by_id(self, entity_id: str, patch: Entity) -> None:
        """Merge patch into an existing entity; raise if it does not exist."""
        ...

    async def delete_by_id(self, entity_id: str) -> None:
        """Remove the entity; missing ids are not an error."""
        ...


@runtime_checkable
class SupportsUpsert(Protocol):
    """Optional capability used by explicit local-to-remote migration."""

    async def upsert_many(self, entities: List[Entity]) -> int:
        ...


class InMemoryRemoteBackend:
    """
    Dict-backed remote backend with asyncio locking.

    Mirrors document-database semantics (copies in, copies out) and is
    suitable for development, demos and tests.

    Attributes:
        collection: Collection name this backend serves
        _documents: Mapping of id to stored document (without the id key)
        _lock: Per-event-loop asyncio lock guarding _documents
    """

    def __init__(self, collection: str, documents: Optional[Dict[str, Entity]] = None):
        self.collection = collection
        self._documents: Dict[str, Entity] = {
            key: copy.deepcopy(value) for key, value in (documents or {}).items()
        }
        self._lock = LoopLocalLock()

    def _as_entity(self, entity_id: str, document: Entity) -> Entity:
        entity = copy.deepcopy(document)
        entity["id"] = entity_id
        return entity

    async def list_all(self) -> List[Entity]:
        async with self._lock:
            return [
                self._as_entity(entity_id, document)
                for entity_id, document in self._documents.items()
            ]

    async def get_by_id(self, entity_id: str) -> Optional[Entity]:
        async with self._lock:
            document = self._documents.get(entity_id)
            if document is None:
                return None
            return self._as_entity(entity_id, document)

    async def create_with_generated_id(self, data: Entity) -> Entity:
        async with self._lock:
            entity_id = uuid.uuid4().hex
            document = copy.deepcopy(data)
            document.pop("id", None)
            self._documents[entity_id] = document
            return self._as_entity(entity_id, document)

    async def update_by_id(self, entity_id: str, patch: Entity) -> None:
        async with self._lock:
            if entity_id not in self._documents:
                raise RemoteBackendError(
                    f"No document {entity_id} to update",
                    collection=self.collection,
                    operation="update",
                )
            changes = copy.deepcopy(patch)
            changes.pop("id", None)
            self._documents[entity_id].update(changes)

    async def delete_by_id(self, entity_id: str) -> None:
        async with self._lock:
            self._documents.pop(entity_id, None)

    async def upsert_many(self, entities: List[Entity]) -> int:
        async with self._lock:
            for entity in entities:
                document = copy.deepcopy(entity)
                entity_id = document.pop("id", None) or uuid.uuid4().hex
                self._documents[entity_id] = document
            return len(entities)

    def __len__(self) -> int:
        return len(self._documents)
