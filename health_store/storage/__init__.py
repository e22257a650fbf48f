# =============================================================================
# health_store/storage/__init__.py
# Remote-Preferred, Local-Fallback Entity Storage
# =============================================================================
"""
Entity Storage Module

Architecture:
------------
┌─────────────────────────────────────────────────────────────────┐
│                      ENTITY STORAGE LAYOUT                       │
├─────────────────────────────────────────────────────────────────┤
│                                                                  │
│   ┌──────────────────────────────────────────────────────────┐  │
│   │                       Database                            │  │
│   │          (one EntityStore per collection name)            │  │
│   └──────────────────────────────────────────────────────────┘  │
│                            │                                     │
│   ┌──────────────────────────────────────────────────────────┐  │
│   │                     EntityStore                           │  │
│   │   list / filter / get / create / update / delete          │  │
│   │   remote first, local on any remote exception             │  │
│   └──────────────────────────────────────────────────────────┘  │
│              │                 │                 │               │
│              ▼                 ▼                 ▼               │
│   ┌────────────────┐ ┌──────────────────┐ ┌────────────────┐    │
│   │ RemoteBackend  │ │   Query Engine   │ │ LocalFallback  │    │
│   │ (Supabase /    │ │ (sort, limit,    │ │ Store (JSON    │    │
│   │  in-memory)    │ │  $in/$ne/eq)     │ │ array per key) │    │
│   └────────────────┘ └──────────────────┘ └────────────────┘    │
│                                                  │               │
│                                         ┌────────────────┐      │
│                                         │ SQLite / memory│      │
│                                         │ key/value      │      │
│                                         └────────────────┘      │
└─────────────────────────────────────────────────────────────────┘
"""

from health_store.storage.backend_status import (
    BackendStatus,
    BackendState,
    BackendStatusTracker,
)

from health_store.storage.local_database import (
    KeyValueStorage,
    SQLiteStorage,
    MemoryStorage,
)

from health_store.storage.local_store import LocalFallbackStore

from health_store.storage.loop_lock import LoopLocalLock

from health_store.storage.remote_backend import (
    RemoteBackend,
    SupportsUpsert,
    InMemoryRemoteBackend,
)

from health_store.storage.supabase_backend import SupabaseBackend

from health_store.storage.query_engine import (
    Equals,
    In,
    NotEquals,
    FilterOp,
    parse_criteria,
    filter_entities,
    sort_entities,
    apply_limit,
)

from health_store.storage.entity_store import (
    EntityStore,
    generate_local_id,
    utc_now_iso,
)

from health_store.storage.database import Database, KNOWN_COLLECTIONS

from health_store.storage.migration import (
    MigrationResult,
    migrate_local_to_remote,
    migrate_all,
)

from health_store.storage.dataframes import (
    dataframe_to_records,
    entities_to_dataframe,
)

__all__ = [
    # Status
    "BackendStatus",
    "BackendState",
    "BackendStatusTracker",
    # Local storage
    "KeyValueStorage",
    "SQLiteStorage",
    "MemoryStorage",
    "LocalFallbackStore",
    "LoopLocalLock",
    # Remote backends
    "RemoteBackend",
    "SupportsUpsert",
    "InMemoryRemoteBackend",
    "SupabaseBackend",
    # Query engine
    "Equals",
    "In",
    "NotEquals",
    "FilterOp",
    "parse_criteria",
    "filter_entities",
    "sort_entities",
    "apply_limit",
    # Stores
    "EntityStore",
    "generate_local_id",
    "utc_now_iso",
    "Database",
    "KNOWN_COLLECTIONS",
    # Migration
    "MigrationResult",
    "migrate_local_to_remote",
    "migrate_all",
    # DataFrames
    "dataframe_to_records",
    "entities_to_dataframe",
]
