#!/usr/bin/env python3
"""
One-shot sync of the item-serial counter to the number of existing items.

Run once after importing items created before the counter existed, so that
the next allocated uniqueid does not collide with a legacy one.  The counter
is only ever raised, never lowered.

Usage:
  python3 scripts/init_sequence_counter.py [--db-url URL] [--config PATH] [--dry-run]

The database URL defaults to the active configuration (INVENTORY_DATABASE_URL
overrides it).
"""

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        description="Sync the item-serial counter up to the current item count"
    )
    p.add_argument("--db-url", default=None, help="Database URL (default: from config)")
    p.add_argument("--config", default=None, help="Path to a configuration YAML set")
    p.add_argument(
        "--dry-run",
        action="store_true",
        help="Only report the current and next serial; change nothing (no tables are created)",
    )
    return p.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)

    from dataclasses import replace

    from sqlalchemy import inspect

    from inventory_config import get_active_config
    from inventory_kernel.db.engine import create_tables, get_engine
    from inventory_kernel.models import InventoryItem, SequenceCounter
    from inventory_services import InventoryOrchestrator

    config = get_active_config(Path(args.config) if args.config else None)
    if args.db_url:
        config = replace(config, database=replace(config.database, url=args.db_url))

    print()
    print("  [1/3] Connecting...")
    orchestrator = InventoryOrchestrator.from_config(config)
    if args.dry_run:
        existing = set(inspect(get_engine()).get_table_names())
        needed = {InventoryItem.__tablename__, SequenceCounter.__tablename__}
        if not needed <= existing:
            print("  [2/3] No inventory tables yet; nothing to read.")
            print("  [3/3] Dry run, nothing changed.")
            return 0
    else:
        create_tables()

    print("  [2/3] Reading counter...")
    preview = orchestrator.preview_next_serial()
    print(f"        current sequence: {preview.current_sequence}")
    print(f"        next serial:      {preview.next_serial_formatted}")

    if args.dry_run:
        print("  [3/3] Dry run, nothing changed.")
        return 0

    print("  [3/3] Syncing counter to item count...")
    before, after = orchestrator.sync_item_serial_counter()
    if before == after:
        print(f"        counter already at {after}, nothing to do.")
    else:
        print(f"        counter raised from {before} to {after}.")
    print()
    return 0


if __name__ == "__main__":
    sys.exit(main())
