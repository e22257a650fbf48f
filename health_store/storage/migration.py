# =============================================================================
# health_store/storage/migration.py
# Explicit Local-to-Remote Migration
# =============================================================================
"""
Copies a collection's locally held entities to its remote backend.

Entity stores never reconcile on their own: records written locally during a
remote outage stay local until a caller runs this migration. Ids are kept,
so re-running is an idempotent upsert. Nothing is merged or compared; remote
rows with the same id are overwritten.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, List
import logging

from health_store.errors import ConfigurationError
from health_store.logging import LogContext
from health_store.storage.entity_store import EntityStore
from health_store.storage.remote_backend import SupportsUpsert

logger = logging.getLogger(__name__)


@dataclass
class MigrationResult:
    """Outcome of one collection migration."""
    collection: str
    pushed: int = 0
    cleared: bool = False


async def migrate_local_to_remote(
    store: EntityStore,
    clear_local: bool = False,
) -> MigrationResult:
    """
    Push every local entity of a collection to its remote.

    Args:
        store: EntityStore whose local array should be pushed
        clear_local: Empty the local array after a successful push

    Returns:
        MigrationResult

    Raises:
        ConfigurationError: If the store has no remote or the remote
            cannot upsert
        Exception: Whatever the remote raises; the local array is left
            untouched in that case
    """
    remote = store.remote
    if remote is None:
        raise ConfigurationError(
            f"No remote backend configured for {store.collection}",
            config_key="remote",
        )
    if not isinstance(remote, SupportsUpsert):
        raise ConfigurationError(
            f"Remote backend for {store.collection} does not support upsert_many",
            config_key="remote",
            expected_type="SupportsUpsert",
        )

    result = MigrationResult(collection=store.collection)

    async with LogContext(logger, f"Migrating local {store.collection} to remote"):
        async with store.local.write_lock:
            entities = await store.local.read_all()
            if not entities:
                logger.info(f"No local entities to migrate for {store.collection}")
                return result

            result.pushed = await remote.upsert_many(entities)

            if clear_local:
                await store.local.write_all([])
                result.cleared = True

    logger.info(f"Migrated {result.pushed} {store.collection} entities")
    return result


async def migrate_all(
    stores: List[EntityStore],
    clear_local: bool = False,
) -> Dict[str, MigrationResult]:
    """
    Migrate several collections; a failure in one does not stop the others.

    Returns:
        Dict of collection name to MigrationResult (collections that failed
        are absent and logged)
    """
    results: Dict[str, MigrationResult] = {}
    for store in stores:
        try:
            results[store.collection] = await migrate_local_to_remote(store, clear_local)
        except Exception as e:
            logger.error(f"Error migrating {store.collection}: {e}")
    return results
