#!/usr/bin/env python3
"""Reset script for adarchive.

This script will:
1. Delete the data directory (database and logs)
2. Run migrations to create a fresh database
3. Optionally recreate the default categories (--with-defaults)
"""

import argparse
import shutil
import sys

from config import load_config
from db.manager import DatabaseManager
from cli.migrate import apply_pending
from services.base import Services


def reset(with_defaults: bool = False):
    """Reset the application state."""
    print("adarchive Reset Script")
    print("=" * 50)

    config = load_config()

    print(f"\nData directory: {config.base_dir}")
    print(f"Database: {config.db_path}")
    print(f"Logs: {config.log_dir}")

    response = input("\nThis will delete ALL data. Continue? (yes/no): ")
    if response.lower() != "yes":
        print("Reset cancelled.")
        sys.exit(0)

    if config.base_dir.exists():
        print(f"\nDeleting {config.base_dir}...")
        shutil.rmtree(config.base_dir)
        print("✓ Data directory deleted")
    else:
        print(f"\n✓ Data directory does not exist: {config.base_dir}")

    print("\nRunning migrations...")
    db_manager = DatabaseManager(config)
    applied = apply_pending(db_manager)
    print(f"✓ Applied {applied} migration(s)")

    if with_defaults:
        created = Services(config, db_manager=db_manager).categories.init_defaults()
        print(f"✓ Created {created} default categories")

    print("\n" + "=" * 50)
    print("Reset complete! Database has been recreated.")
    print(f"Database location: {config.db_path}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Delete all adarchive data")
    parser.add_argument(
        "--with-defaults",
        action="store_true",
        help="Recreate the default categories after resetting",
    )
    reset(parser.parse_args().with_defaults)
