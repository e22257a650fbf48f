# =============================================================================
# scripts/migrate_local_data.py
# Pushes locally stored entities to Supabase
# =============================================================================
"""
Copies entities written to local storage during a Supabase outage up to
their Supabase tables. Ids are preserved (upsert), so running twice is safe.

Usage:
    python scripts/migrate_local_data.py --list
    python scripts/migrate_local_data.py health_metrics daily_logs
    python scripts/migrate_local_data.py --all --clear

Requirements:
    - Supabase credentials in .streamlit/secrets.toml or SUPABASE_URL/SUPABASE_KEY
    - Target tables must exist with an "id" text primary key
"""

import sys
import asyncio
import argparse
from pathlib import Path

# Add project root to path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from health_store import Database, load_settings, setup_logging
from health_store.storage import migrate_all


def local_collections(db: Database) -> list:
    """Collections that currently hold a local array."""
    prefix = db.key_prefix
    return [key[len(prefix):] for key in db.storage.keys() if key.startswith(prefix)]


async def run(collections: list, clear: bool) -> int:
    settings = load_settings()
    if not settings.has_remote:
        print("Error: Supabase credentials not configured")
        return 1

    db = Database.from_settings(settings)
    stores = [db.collection(name) for name in collections]
    results = await migrate_all(stores, clear_local=clear)

    print()
    print("=" * 60)
    for name in collections:
        result = results.get(name)
        if result is None:
            print(f"  {name:<30} FAILED (see log)")
        else:
            cleared = " (local cleared)" if result.cleared else ""
            print(f"  {name:<30} {result.pushed} pushed{cleared}")
    print("=" * 60)

    return 0 if len(results) == len(collections) else 1


def main():
    parser = argparse.ArgumentParser(description="Push local entities to Supabase")
    parser.add_argument("collections", nargs="*", help="Collections to migrate")
    parser.add_argument("--all", action="store_true", help="Migrate every collection with local data")
    parser.add_argument("--list", action="store_true", help="List collections with local data and exit")
    parser.add_argument("--clear", action="store_true", help="Empty local arrays after a successful push")

    args = parser.parse_args()
    setup_logging()

    if args.list or args.all:
        db = Database.from_settings(load_settings().with_overrides(supabase_url=None))
        found = local_collections(db)
        if args.list:
            for name in found:
                print(name)
            return
        collections = found
    else:
        collections = args.collections

    if not collections:
        parser.print_help()
        sys.exit(1)

    sys.exit(asyncio.run(run(collections, args.clear)))


if __name__ == "__main__":
    main()
