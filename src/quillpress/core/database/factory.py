"""
Database Factory

Builds the adapter for the process runtime.

CRITICAL RULES:
1. SERVER runtime: one process-wide adapter over a pooled PostgresDriver
2. EDGE runtime: one adapter per request over a freshly opened handle;
   handles are never cached across requests
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from ..runtime import RuntimeEnvironment, get_runtime
from .adapter import DatabaseAdapter
from .config import DatabaseConfig
from .drivers.postgres import PostgresDriver
from .drivers.sqlite import SqliteDriver, open_sqlite_handle
from .errors import EnvironmentUnavailableError

logger = logging.getLogger(__name__)

# Global instance (server runtime only)
_db: Optional[DatabaseAdapter] = None


def create_server_driver(config: DatabaseConfig) -> PostgresDriver:
    """Create the pooled PostgreSQL driver from configuration."""
    if not config.database_url:
        raise EnvironmentUnavailableError("Server runtime requires DATABASE_URL")
    return PostgresDriver(
        config.database_url,
        min_size=config.pool_min_size,
        max_size=config.pool_max_size,
        command_timeout=config.command_timeout,
    )


@asynccontextmanager
async def edge_database(config: Optional[DatabaseConfig] = None) -> AsyncIterator[DatabaseAdapter]:
    """
    Open a request-scoped adapter for the edge runtime.

    Usage:
        async with edge_database(config) as db:
            rows = await db.query("SELECT * FROM tags")
    """
    config = config or DatabaseConfig()
    if not config.sqlite_path:
        raise EnvironmentUnavailableError("Edge runtime requires SQLITE_PATH")
    handle = await open_sqlite_handle(config.sqlite_path)
    adapter = DatabaseAdapter(SqliteDriver(handle))
    try:
        yield adapter
    finally:
        await adapter.close()


async def get_database(config: Optional[DatabaseConfig] = None) -> DatabaseAdapter:
    """
    Get the global database adapter instance (server runtime).

    Raises:
        EnvironmentUnavailableError: Under the edge runtime, where the
            handle is request scoped (use edge_database instead)
    """
    global _db
    if _db is None:
        config = config or DatabaseConfig()
        runtime = get_runtime(config)
        if runtime is not RuntimeEnvironment.SERVER:
            raise EnvironmentUnavailableError(
                "No process-wide database under the edge runtime; use edge_database()"
            )
        driver = create_server_driver(config)
        await driver.connect()
        _db = DatabaseAdapter(driver)
        logger.info(f"Database ready: {config}")
    return _db


async def close_database() -> None:
    """Close the global database connection."""
    global _db
    if _db:
        await _db.close()
        _db = None
