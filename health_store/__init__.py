# =============================================================================
# health_store/__init__.py
# Entity Persistence for the Health Platform
# =============================================================================
"""
health_store - uniform async CRUD + query over named collections.

Each collection prefers the remote Supabase backend and degrades to
device-local storage when the remote call fails.

Usage:
------
from health_store import Database, load_settings, setup_logging

setup_logging()
db = Database.from_settings(load_settings())
entry = await db.daily_logs.create({"date": "2026-10-17", "mood": 4})
"""

from health_store.config import StoreSettings, load_settings, get_supabase_client
from health_store.errors import (
    HealthStoreError,
    RemoteBackendError,
    EntityNotFoundError,
    InvalidQueryError,
    ConfigurationError,
)
from health_store.logging import setup_logging, get_logger
from health_store.storage import (
    Database,
    EntityStore,
    LocalFallbackStore,
    SQLiteStorage,
    MemoryStorage,
    SupabaseBackend,
    InMemoryRemoteBackend,
    Equals,
    In,
    NotEquals,
    migrate_local_to_remote,
)

__version__ = "1.0.0"

__all__ = [
    "StoreSettings",
    "load_settings",
    "get_supabase_client",
    "HealthStoreError",
    "RemoteBackendError",
    "EntityNotFoundError",
    "InvalidQueryError",
    "ConfigurationError",
    "setup_logging",
    "get_logger",
    "Database",
    "EntityStore",
    "LocalFallbackStore",
    "SQLiteStorage",
    "MemoryStorage",
    "SupabaseBackend",
    "InMemoryRemoteBackend",
    "Equals",
    "In",
    "NotEquals",
    "migrate_local_to_remote",
]
