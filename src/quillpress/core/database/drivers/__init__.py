# Primitive Database Drivers
#
# Two interchangeable backends behind one surface:
# - PostgresDriver (server runtime, pooled asyncpg)
# - SqliteDriver (edge runtime, injected aiosqlite handle)

from .base import (
    DatabaseDriver,
    Dialect,
    DriverBackend,
    DriverResult,
    Statement,
    count_placeholders,
)
from .postgres import PostgresDialect, PostgresDriver
from .sqlite import SqliteDialect, SqliteDriver, open_sqlite_handle

__all__ = [
    "DatabaseDriver",
    "Dialect",
    "DriverBackend",
    "DriverResult",
    "Statement",
    "count_placeholders",
    "PostgresDialect",
    "PostgresDriver",
    "SqliteDialect",
    "SqliteDriver",
    "open_sqlite_handle",
]
