#!/usr/bin/env python3
"""
Database Setup Runner

Usage:
    quillpress-db              # Create tables and seed defaults
    quillpress-db --status     # Show database status
    quillpress-db --reset      # Drop all tables and set up again

Environment:
    QUILLPRESS_RUNTIME - server | edge (probed from the variables below if unset)
    DATABASE_URL       - PostgreSQL connection string (server runtime)
    SQLITE_PATH        - SQLite database file (edge runtime)
    ADMIN_EMAIL / ADMIN_PASSWORD - Initial admin account
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from contextlib import asynccontextmanager
from typing import AsyncIterator

from .core.auth.hasher import get_password_hasher
from .core.database import DatabaseAdapter, DatabaseConfig, DatabaseError, EnvironmentUnavailableError
from .core.database.factory import close_database, edge_database, get_database
from .core.observability import configure_logging
from .core.runtime import RuntimeEnvironment, get_runtime
from .core.setup import database_status, reset_database, setup_database


@asynccontextmanager
async def open_database(config: DatabaseConfig) -> AsyncIterator[DatabaseAdapter]:
    """Adapter for the configured runtime, closed on exit."""
    if get_runtime(config) is RuntimeEnvironment.SERVER:
        try:
            yield await get_database(config)
        finally:
            await close_database()
    else:
        async with edge_database(config) as db:
            yield db


async def show_status(config: DatabaseConfig) -> int:
    print("=" * 60)
    print("Database Status")
    print("=" * 60)
    print(f"\n{config}\n")

    async with open_database(config) as db:
        status = await database_status(db)

    print(f"  Connected:   {status['connected']}")
    print(f"  Initialized: {status['initialized']}")
    if status.get("missing_tables"):
        print(f"  Missing:     {', '.join(status['missing_tables'])}")
    print(f"\n{status['message']}")
    return 0 if status["initialized"] else 1


async def run_setup(config: DatabaseConfig, reset: bool) -> int:
    print("=" * 60)
    print("QuillPress Database Setup")
    print("=" * 60)
    print(f"\n{config}\n")

    hasher = get_password_hasher(config)
    async with open_database(config) as db:
        if reset:
            print("  Dropping all tables...")
            result = await reset_database(db, hasher)
        else:
            result = await setup_database(db, hasher)

    print(f"  Default settings added: {result['settings_added']}")
    print(f"  Admin account created:  {result['admin_created']}")
    print("\n" + "=" * 60)
    print("Database setup complete!")
    print("=" * 60)
    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="QuillPress database setup")
    group = parser.add_mutually_exclusive_group()
    group.add_argument("--status", action="store_true", help="Show database status")
    group.add_argument("--reset", action="store_true", help="Drop all tables and set up again")
    args = parser.parse_args(argv)

    configure_logging(structured=False)

    config = DatabaseConfig()
    try:
        if args.status:
            return asyncio.run(show_status(config))
        return asyncio.run(run_setup(config, reset=args.reset))
    except (DatabaseError, EnvironmentUnavailableError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
