# =============================================================================
# health_store/storage/supabase_backend.py
# Supabase Remote Backend Adapter
# =============================================================================

from __future__ import annotations
import asyncio
import uuid
from typing import Any, Callable, Dict, List, Optional
import logging

from health_store.errors import RemoteBackendError

logger = logging.getLogger(__name__)

Entity = Dict[str, Any]


class SupabaseBackend:
    """
    Remote backend for one Supabase table.

    The supabase client is synchronous; every request runs in a worker
    thread so the event loop stays free while the network call is pending.
    Failures are re-raised as RemoteBackendError.

    Usage:
        client = get_supabase_client(settings)
        backend = SupabaseBackend(client, "health_metrics")
        rows = await backend.list_all()
    """

    BATCH_SIZE = 1000  # Supabase default max rows per request
    ID_COLUMN = "id"

    def __init__(self, client: Any, table_name: str, collection: Optional[str] = None):
        """
        Args:
            client: supabase.Client
            table_name: Name of the Supabase table
            collection: Collection name (defaults to table_name)
        """
        if client is None:
            raise RemoteBackendError(
                "Supabase client is not configured",
                collection=collection or table_name,
                operation="connect",
            )
        self.client = client
        self.table_name = table_name
        self.collection = collection or table_name

    async def _run(self, operation: str, request: Callable[[], Any]) -> Any:
        """Execute a blocking request in a worker thread."""
        try:
            return await asyncio.to_thread(request)
        except RemoteBackendError:
            raise
        except Exception as e:
            raise RemoteBackendError.from_exception(
                e,
                collection=self.collection,
                operation=operation,
                target=self.table_name,
            ) from e

    def _table(self):
        return self.client.table(self.table_name)

    # =========================================================================
    # REMOTE BACKEND PRIMITIVES
    # =========================================================================

    async def list_all(self) -> List[Entity]:
        """
        Fetch ALL rows from the table (handles the 1000 row limit).

        Returns:
            List of row dicts
        """
        def fetch() -> List[Entity]:
            all_data: List[Entity] = []
            offset = 0

            while True:
                response = (
                    self._table()
                    .select("*")
                    .range(offset, offset + self.BATCH_SIZE - 1)
                    .execute()
                )

                if response.data:
                    all_data.extend(response.data)
                    # Fewer than a full batch means we've reached the end
                    if len(response.data) < self.BATCH_SIZE:
                        break
                    offset += self.BATCH_SIZE
                else:
                    break

            return all_data

        rows = await self._run("list", fetch)
        logger.debug(f"Fetched {len(rows)} rows from Supabase: {self.table_name}")
        return rows

    async def get_by_id(self, entity_id: str) -> Optional[Entity]:
        response = await self._run(
            "get",
            lambda: self._table()
            .select("*")
            .eq(self.ID_COLUMN, entity_id)
            .limit(1)
            .execute(),
        )
        return response.data[0] if response.data else None

    async def create_with_generated_id(self, data: Entity) -> Entity:
        record = dict(data)
        record[self.ID_COLUMN] = uuid.uuid4().hex

        response = await self._run(
            "create",
            lambda: self._table().insert(record).execute(),
        )
        return response.data[0] if response.data else record

    async def update_by_id(self, entity_id: str, patch: Entity) -> None:
        changes = {k: v for k, v in patch.items() if k != self.ID_COLUMN}

        response = await self._run(
            "update",
            lambda: self._table()
            .update(changes)
            .eq(self.ID_COLUMN, entity_id)
            .execute(),
        )
        if not response.data:
            raise RemoteBackendError(
                f"No row {entity_id} to update in {self.table_name}",
                collection=self.collection,
                operation="update",
            )

    async def delete_by_id(self, entity_id: str) -> None:
        await self._run(
            "delete",
            lambda: self._table()
            .delete()
            .eq(self.ID_COLUMN, entity_id)
            .execute(),
        )

    # =========================================================================
    # MIGRATION SUPPORT
    # =========================================================================

    async def upsert_many(self, entities: List[Entity]) -> int:
        """
        Insert or update rows keyed by id (bulk).

        Args:
            entities: Row dicts, each including its id

        Returns:
            Number of rows sent
        """
        if not entities:
            return 0

        await self._run(
            "upsert",
            lambda: self._table().upsert(list(entities)).execute(),
        )
        return len(entities)
