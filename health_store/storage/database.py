# =============================================================================
# health_store/storage/database.py
# Database - Registry of Entity Stores per Collection
# =============================================================================
"""
Database - builds and caches one EntityStore per collection.

The remote handle is injected (a supabase client, a backend factory, or
nothing for local-only operation); there is no module-level "remote ready"
state.

Usage:
------
from health_store import Database, load_settings

db = Database.from_settings(load_settings())

await db.health_metrics.create({"metric_type": "weight", "value": 72})
logs = await db.daily_logs.filter({"mood": {"$in": [4, 5]}}, "-date", 7)
products = await db.collection("products").list()

print(db.get_status())
"""

from __future__ import annotations
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional
import logging

from health_store.config import StoreSettings, get_supabase_client
from health_store.storage.entity_store import EntityStore
from health_store.storage.local_database import KeyValueStorage, SQLiteStorage
from health_store.storage.local_store import LocalFallbackStore
from health_store.storage.remote_backend import RemoteBackend
from health_store.storage.supabase_backend import SupabaseBackend

logger = logging.getLogger(__name__)

RemoteFactory = Callable[[str], Optional[RemoteBackend]]


# Collections used by the application; any other name works via collection()
KNOWN_COLLECTIONS = (
    # Health & medical
    "users",
    "user_health",
    "health_metrics",
    "daily_logs",
    "symptom_logs",
    "lab_results",
    "diagnostic_results",
    # Medication, water, sleep, fasting, weight
    "medications",
    "medication_logs",
    "dose_logs",
    "water_logs",
    "sleep_logs",
    "fasting_sessions",
    "weight_logs",
    # Appointments & reminders
    "appointments",
    "reminders",
    "doctor_recommendations",
    # Learning & content
    "courses",
    "lessons",
    "course_enrollments",
    "knowledge_articles",
    "health_programs",
    "comments",
    # Shop & meals
    "products",
    "cart_items",
    "foods",
    "recipes",
)


class Database:
    """
    Entry point for all collections.

    Args:
        storage: Local key/value medium shared by all collections
        remote_factory: Callable returning the RemoteBackend for a
            collection name (or None); omit for local-only
        key_prefix: Prefix for each collection's local storage key
        serialize_local_writes: Passed to every EntityStore
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        remote_factory: Optional[RemoteFactory] = None,
        key_prefix: str = "tibrah_db_",
        serialize_local_writes: bool = True,
    ):
        self.storage = storage
        self.remote_factory = remote_factory
        self.key_prefix = key_prefix
        self.serialize_local_writes = serialize_local_writes
        self._stores: Dict[str, EntityStore] = {}

    @classmethod
    def from_settings(
        cls,
        settings: StoreSettings,
        client: Any = None,
        storage: Optional[KeyValueStorage] = None,
    ) -> Database:
        """
        Wire a Database from settings.

        Args:
            settings: StoreSettings
            client: Existing supabase client (created from settings when
                omitted and credentials are configured)
            storage: Local medium (SQLiteStorage at settings.local_db_path
                when omitted)

        Returns:
            Database
        """
        if storage is None:
            storage = SQLiteStorage(Path(settings.local_db_path))

        if client is None and settings.has_remote:
            try:
                client = get_supabase_client(settings)
            except Exception as e:
                logger.warning(f"Supabase unavailable, running local-only: {e}")
                client = None

        remote_factory: Optional[RemoteFactory] = None
        if client is not None:
            def remote_factory(collection: str) -> RemoteBackend:
                return SupabaseBackend(client, settings.remote_table(collection), collection)

        logger.info(f"Database configured. Remote: {client is not None}")
        return cls(
            storage=storage,
            remote_factory=remote_factory,
            key_prefix=settings.key_prefix,
            serialize_local_writes=settings.serialize_local_writes,
        )

    # =========================================================================
    # COLLECTION ACCESS
    # =========================================================================

    def collection(self, name: str) -> EntityStore:
        """Get (or build) the EntityStore for a collection."""
        if not name:
            raise ValueError("Collection name must be a non-empty string")

        store = self._stores.get(name)
        if store is None:
            remote = self.remote_factory(name) if self.remote_factory else None
            store = EntityStore(
                name,
                local=LocalFallbackStore(name, self.storage, self.key_prefix),
                remote=remote,
                serialize_local_writes=self.serialize_local_writes,
            )
            self._stores[name] = store
        return store

    def __getattr__(self, name: str) -> EntityStore:
        if name in KNOWN_COLLECTIONS:
            return self.collection(name)
        raise AttributeError(f"{type(self).__name__!s} has no attribute {name!r}")

    def __getitem__(self, name: str) -> EntityStore:
        return self.collection(name)

    @property
    def collections(self) -> List[str]:
        """Names of collections opened so far."""
        return sorted(self._stores)

    # =========================================================================
    # STATUS & DIAGNOSTICS
    # =========================================================================

    def get_status(self) -> Dict[str, Any]:
        """
        Get status information for every opened collection.

        Returns:
            Dict with remote configuration and per-collection status
        """
        return {
            "remote_configured": self.remote_factory is not None,
            "collections": {
                name: store.status for name, store in sorted(self._stores.items())
            },
        }
