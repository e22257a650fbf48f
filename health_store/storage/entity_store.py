# =============================================================================
# health_store/storage/entity_store.py
# Entity Store - Remote-Preferred CRUD with Local Fallback
# =============================================================================
"""
EntityStore - the per-collection CRUD + query API.

Every operation tries the remote backend first. Any exception from the
remote is logged and the same operation is replayed against the local
fallback store. Writes land in exactly one backend and are never queued for
the other; a record created locally during an outage stays local.

Usage:
------
store = EntityStore("health_metrics", remote=backend, local=local_store)

metric = await store.create({"metric_type": "weight", "value": 72})
recent = await store.list(order_by="-created_at", limit=10)
weights = await store.filter({"metric_type": "weight"})
await store.update(metric["id"], {"value": 71.5})
await store.delete(metric["id"])
"""

from __future__ import annotations
import random
import string
import time
from contextlib import asynccontextmanager, nullcontext
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, List, Mapping, Optional, TypeVar
import logging

import pandas as pd

from health_store.errors import EntityNotFoundError, RemoteBackendError
from health_store.logging import log_fallback
from health_store.storage.backend_status import BackendStatusTracker
from health_store.storage.dataframes import entities_to_dataframe
from health_store.storage.local_store import LocalFallbackStore
from health_store.storage.query_engine import (
    apply_limit,
    describe_criteria,
    filter_entities,
    run_query,
)
from health_store.storage.remote_backend import RemoteBackend

logger = logging.getLogger(__name__)

T = TypeVar("T")
Entity = Dict[str, Any]

RESERVED_FIELDS = ("id", "created_at", "updated_at")
_ID_ALPHABET = string.digits + string.ascii_lowercase


def utc_now_iso() -> str:
    """Current UTC time as ISO-8601 with milliseconds and a Z suffix."""
    return (
        datetime.now(timezone.utc)
        .isoformat(timespec="milliseconds")
        .replace("+00:00", "Z")
    )


def generate_local_id(collection: str) -> str:
    """Local id: collection, epoch millis and 9 random base-36 characters."""
    suffix = "".join(random.choices(_ID_ALPHABET, k=9))
    return f"{collection}_{int(time.time() * 1000)}_{suffix}"


class EntityStore:
    """
    Remote-preferred, local-fallback store for one collection.

    Args:
        collection: Collection name
        local: LocalFallbackStore for this collection
        remote: RemoteBackend for this collection, or None for local-only
        serialize_local_writes: Hold the local store's lock around each
            read-modify-write cycle. When False, concurrent local writes
            race and the last writer wins.
    """

    def __init__(
        self,
        collection: str,
        local: LocalFallbackStore,
        remote: Optional[RemoteBackend] = None,
        serialize_local_writes: bool = True,
    ):
        self.collection = collection
        self.local = local
        self.remote = remote
        self.serialize_local_writes = serialize_local_writes
        self._tracker = BackendStatusTracker(has_remote=remote is not None)

    def __repr__(self) -> str:
        mode = "remote+local" if self.remote is not None else "local-only"
        return f"EntityStore({self.collection!r}, {mode})"

    # =========================================================================
    # STATUS
    # =========================================================================

    @property
    def has_remote(self) -> bool:
        return self.remote is not None

    @property
    def status(self) -> Dict[str, Any]:
        """Which backend served recent calls (for display only)."""
        return self._tracker.get_status_display()

    @property
    def backend_state(self):
        return self._tracker.state

    # =========================================================================
    # FALLBACK POLICY
    # =========================================================================

    async def _with_fallback(
        self,
        operation: str,
        remote_op: Callable[[RemoteBackend], Awaitable[T]],
        local_op: Callable[[], Awaitable[T]],
    ) -> T:
        """
        Run remote_op; on any exception run local_op instead.

        Errors raised by local_op propagate to the caller.
        """
        if self.remote is None:
            self._tracker.record_fallback(operation)
            return await local_op()

        try:
            result = await remote_op(self.remote)
        except Exception as e:
            log_fallback(logger, self.collection, operation, e)
            self._tracker.record_fallback(operation, e)
            return await local_op()

        self._tracker.record_success(operation)
        return result

    @asynccontextmanager
    async def _local_write(self) -> AsyncIterator[None]:
        """Serialize a local read-modify-write cycle when configured."""
        guard = self.local.write_lock if self.serialize_local_writes else nullcontext()
        async with guard:
            yield

    # =========================================================================
    # QUERY OPERATIONS
    # =========================================================================

    async def list(
        self,
        order_by: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[Entity]:
        """
        Fetch the whole collection, then sort and truncate in memory.

        Args:
            order_by: Field name, "-field" for descending
            limit: Maximum number of entities (None/0 for all)

        Returns:
            List of entities
        """
        async def remote_list(remote: RemoteBackend) -> List[Entity]:
            return run_query(await remote.list_all(), order_by, limit)

        async def local_list() -> List[Entity]:
            return run_query(await self.local.read_all(), order_by, limit)

        return await self._with_fallback("list", remote_list, local_list)

    async def filter(
        self,
        criteria: Mapping[str, Any],
        order_by: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[Entity]:
        """
        List the collection and keep entities matching every criterion.

        Args:
            criteria: {field: value}, {field: {"$in": [...]}} or
                      {field: {"$ne": value}}; all must hold
            order_by: Field name, "-field" for descending
            limit: Maximum number of matches (None/0 for all)

        Returns:
            Matching entities
        """
        items = await self.list(order_by)
        matched = filter_entities(items, criteria)
        logger.debug(
            f"Filter {describe_criteria(criteria)} on {self.collection}: "
            f"{len(matched)}/{len(items)} matched"
        )
        return apply_limit(matched, limit)

    async def get(self, entity_id: str) -> Optional[Entity]:
        """
        Fetch one entity by id.

        Returns:
            The entity, or None if absent from whichever backend answered
        """
        async def remote_get(remote: RemoteBackend) -> Optional[Entity]:
            return await remote.get_by_id(entity_id)

        async def local_get() -> Optional[Entity]:
            for item in await self.local.read_all():
                if item.get("id") == entity_id:
                    return item
            return None

        return await self._with_fallback("get", remote_get, local_get)

    async def list_dataframe(
        self,
        order_by: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> pd.DataFrame:
        """list() loaded into a DataFrame."""
        return entities_to_dataframe(await self.list(order_by, limit))

    # =========================================================================
    # WRITE OPERATIONS
    # =========================================================================

    async def create(self, data: Mapping[str, Any]) -> Entity:
        """
        Create an entity with fresh timestamps.

        The remote mints the id; if the remote fails, a local id of the form
        "<collection>_<millis>_<random>" is used instead.

        Returns:
            The stored entity
        """
        now = utc_now_iso()
        new_item: Entity = {k: v for k, v in data.items() if k not in RESERVED_FIELDS}
        new_item["created_at"] = now
        new_item["updated_at"] = now

        async def remote_create(remote: RemoteBackend) -> Entity:
            created = await remote.create_with_generated_id(dict(new_item))
            if not created or not created.get("id"):
                raise RemoteBackendError(
                    "Remote create returned no id",
                    collection=self.collection,
                    operation="create",
                )
            return created

        async def local_create() -> Entity:
            item = dict(new_item)
            item["id"] = generate_local_id(self.collection)
            async with self._local_write():
                items = await self.local.read_all()
                items.append(item)
                await self.local.write_all(items)
            return item

        return await self._with_fallback("create", remote_create, local_create)

    async def create_many(self, records: List[Mapping[str, Any]]) -> List[Entity]:
        """create() each record in order."""
        created = []
        for record in records:
            created.append(await self.create(record))
        return created

    async def update(self, entity_id: str, data: Mapping[str, Any]) -> Entity:
        """
        Shallow-merge data into an existing entity.

        Returns:
            The merged entity ({"id": entity_id} alone when the remote
            accepted the update but the re-fetch came back empty)

        Raises:
            EntityNotFoundError: If the remote failed and the local store
                does not hold entity_id
        """
        update_data: Entity = {
            k: v for k, v in data.items() if k not in ("id", "created_at")
        }
        update_data["updated_at"] = utc_now_iso()

        async def remote_update(remote: RemoteBackend) -> Entity:
            await remote.update_by_id(entity_id, dict(update_data))
            updated = await remote.get_by_id(entity_id)
            if updated is None:
                # The write landed remotely; replaying it locally would write twice
                logger.warning(
                    f"{self.collection} {entity_id} updated remotely but re-fetch found nothing"
                )
                return {"id": entity_id}
            return updated

        async def local_update() -> Entity:
            async with self._local_write():
                items = await self.local.read_all()
                index = next(
                    (i for i, item in enumerate(items) if item.get("id") == entity_id),
                    None,
                )
                if index is None:
                    raise EntityNotFoundError(self.collection, entity_id)

                items[index] = {**items[index], **update_data}
                await self.local.write_all(items)
                return items[index]

        return await self._with_fallback("update", remote_update, local_update)

    async def delete(self, entity_id: str) -> None:
        """Delete an entity; deleting an unknown id is a no-op."""
        async def remote_delete(remote: RemoteBackend) -> None:
            await remote.delete_by_id(entity_id)

        async def local_delete() -> None:
            async with self._local_write():
                items = await self.local.read_all()
                remaining = [item for item in items if item.get("id") != entity_id]
                await self.local.write_all(remaining)

        await self._with_fallback("delete", remote_delete, local_delete)
