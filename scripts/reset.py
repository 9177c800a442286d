#!/usr/bin/env python3
"""Reset script for Cifra.

This script will:
1. Delete the data directory (database and logs)
2. Run migrations to create a fresh database
3. Register the configured default user, if any
"""

import shutil
import sys

from cli.migrate import apply_pending
from config import load_config
from db.manager import DatabaseManager
from services.base import Services


def reset():
    """Reset the application state."""
    print("Cifra Reset Script")
    print("=" * 50)

    config = load_config()

    if not config.enable_reset:
        print("\nReset is disabled in configuration (enable_reset=false).")
        print("To enable reset, set enable_reset=true in ~/.config/cifra.toml")
        sys.exit(1)

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
    print(f"✓ Applied {len(applied)} migration(s)")

    if config.default_user:
        services = Services(config, db_manager=db_manager)
        user = services.users.create(
            config.default_user, currency=config.default_currency
        )
        print(f"✓ Registered default user {user.email}")

    print("\n" + "=" * 50)
    print("Reset complete! Database has been recreated.")
    print(f"Database location: {config.db_path}")


if __name__ == "__main__":
    reset()
