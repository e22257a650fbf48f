# =============================================================================
# health_store/storage/local_store.py
# Local Fallback Store (one JSON array per collection)
# =============================================================================

from __future__ import annotations
import asyncio
import json
from typing import Any, Dict, List
import logging

from health_store.storage.local_database import KeyValueStorage
from health_store.storage.loop_lock import LoopLocalLock

logger = logging.getLogger(__name__)

Entity = Dict[str, Any]


class LocalFallbackStore:
    """
    Per-collection entity array persisted in device-local storage.

    Only whole-array reads and writes are offered; callers do their own
    read-modify-write. `write_lock` (one asyncio.Lock per event loop) is
    available to serialize those cycles.
    """

    def __init__(
        self,
        collection: str,
        storage: KeyValueStorage,
        key_prefix: str = "tibrah_db_",
    ):
        self.collection = collection
        self.storage = storage
        self.storage_key = f"{key_prefix}{collection}"
        self.write_lock = LoopLocalLock()

    async def read_all(self) -> List[Entity]:
        """
        Load the collection's entity array.

        Returns:
            List of entities; empty when the key is absent or the stored
            value is not a valid JSON array.
        """
        raw = await asyncio.to_thread(self.storage.get_item, self.storage_key)
        if raw is None:
            return []

        try:
            items = json.loads(raw)
        except (json.JSONDecodeError, TypeError) as e:
            logger.warning(f"Corrupt local data for {self.collection}, treating as empty: {e}")
            return []

        if not isinstance(items, list):
            logger.warning(
                f"Local data for {self.collection} is {type(items).__name__}, not a list; "
                f"treating as empty"
            )
            return []

        return [item for item in items if isinstance(item, dict)]

    async def write_all(self, entities: List[Entity]) -> None:
        """Serialize and overwrite the collection's entity array."""
        raw = json.dumps(entities, ensure_ascii=False)
        await asyncio.to_thread(self.storage.set_item, self.storage_key, raw)

    async def clear(self) -> None:
        """Remove the collection's key entirely."""
        await asyncio.to_thread(self.storage.remove_item, self.storage_key)
