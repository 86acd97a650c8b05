"""
Database abstraction layer supporting PostgreSQL and SQLite.

This module provides a unified interface for database operations that works
with both PostgreSQL (server runtime) and SQLite (edge runtime) backends.

Usage:
    from quillpress.core.database import get_database, DatabaseAdapter

    # Server runtime: the global database instance
    db = await get_database()

    # Edge runtime: a request-scoped instance
    async with edge_database() as db:
        ...

    # Queries work the same with both backends
    rows = await db.query("SELECT * FROM posts WHERE author_id = ?", [author_id])
    await db.update("UPDATE posts SET status = ? WHERE id = ?", [status, post_id])
"""

from .adapter import DatabaseAdapter
from .config import DatabaseConfig
from .drivers import (
    DatabaseDriver,
    DriverBackend,
    DriverResult,
    PostgresDriver,
    SqliteDriver,
    Statement,
    open_sqlite_handle,
)
from .errors import (
    DatabaseError,
    EnvironmentUnavailableError,
    IntegrityConstraintError,
    QueryError,
)
from .factory import (
    close_database,
    create_server_driver,
    edge_database,
    get_database,
)

__all__ = [
    "DatabaseAdapter",
    "DatabaseConfig",
    "DatabaseDriver",
    "DriverBackend",
    "DriverResult",
    "PostgresDriver",
    "SqliteDriver",
    "Statement",
    "open_sqlite_handle",
    "DatabaseError",
    "EnvironmentUnavailableError",
    "IntegrityConstraintError",
    "QueryError",
    "close_database",
    "create_server_driver",
    "edge_database",
    "get_database",
]
