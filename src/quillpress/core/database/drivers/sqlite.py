"""
SQLite Driver (edge runtime)

Wraps a request-scoped aiosqlite connection handed in by the host. The
driver never opens or caches the handle itself; open_sqlite_handle() is
the host-side helper that produces one.
"""

from __future__ import annotations

import logging
import sqlite3
import time
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

import aiosqlite

from ..errors import DatabaseError, IntegrityConstraintError
from .base import DatabaseDriver, Dialect, DriverBackend, DriverResult, Statement

logger = logging.getLogger(__name__)

# Matches SQLite's CURRENT_TIMESTAMP text so stored values sort together
SQLITE_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


class SqliteDialect(Dialect):
    """SQLite flavour: '?' placeholders, text timestamps."""

    name = "sqlite"

    primary_key = "INTEGER PRIMARY KEY AUTOINCREMENT"
    boolean_type = "INTEGER"
    timestamp_type = "TEXT"

    def year(self, column: str) -> str:
        return f"CAST(strftime('%Y', {column}) AS INTEGER)"

    def month(self, column: str) -> str:
        return f"CAST(strftime('%m', {column}) AS INTEGER)"


async def open_sqlite_handle(path: str) -> aiosqlite.Connection:
    """
    Open a connection suitable for SqliteDriver.

    Args:
        path: Database file path (or ":memory:")

    Returns:
        aiosqlite connection with dict-like rows and foreign keys enforced
    """
    conn = await aiosqlite.connect(path)
    conn.row_factory = aiosqlite.Row
    await conn.execute("PRAGMA foreign_keys = ON")
    return conn


class SqliteDriver(DatabaseDriver):
    """
    Embedded SQLite implementation of DatabaseDriver.

    Usage:
        handle = await open_sqlite_handle("/data/quillpress.db")
        driver = SqliteDriver(handle)
        rows = (await driver.all(driver.prepare("SELECT * FROM tags"))).rows
    """

    dialect = SqliteDialect()

    def __init__(self, handle: aiosqlite.Connection):
        self._conn = handle

    @property
    def backend_type(self) -> DriverBackend:
        return DriverBackend.SQLITE

    @property
    def handle(self) -> aiosqlite.Connection:
        """The injected connection."""
        return self._conn

    def normalize_param(self, value: Any) -> Any:
        if isinstance(value, bool):
            return 1 if value else 0
        if isinstance(value, datetime):
            if value.tzinfo is not None:
                value = value.astimezone(timezone.utc)
            return value.strftime(SQLITE_TIMESTAMP_FORMAT)
        if isinstance(value, date):
            return value.isoformat()
        return value

    async def first(self, stmt: Statement) -> Optional[Dict[str, Any]]:
        try:
            async with self._conn.execute(stmt.sql, stmt.params) as cursor:
                row = await cursor.fetchone()
        except sqlite3.Error as e:
            raise self._wrap(e, stmt.sql) from e
        return dict(row) if row is not None else None

    async def all(self, stmt: Statement) -> DriverResult:
        started = time.perf_counter()
        try:
            async with self._conn.execute(stmt.sql, stmt.params) as cursor:
                rows = await cursor.fetchall()
        except sqlite3.Error as e:
            raise self._wrap(e, stmt.sql) from e
        return DriverResult(
            success=True,
            rows=[dict(row) for row in rows],
            duration_ms=(time.perf_counter() - started) * 1000,
        )

    async def run(self, stmt: Statement) -> DriverResult:
        started = time.perf_counter()
        try:
            cursor = await self._conn.execute(stmt.sql, stmt.params)
            changes = cursor.rowcount if cursor.rowcount is not None and cursor.rowcount >= 0 else 0
            last_row_id = cursor.lastrowid
            await cursor.close()
            await self._conn.commit()
        except sqlite3.Error as e:
            await self._conn.rollback()
            raise self._wrap(e, stmt.sql) from e
        return DriverResult(
            success=True,
            changes=changes,
            last_row_id=last_row_id if stmt.returning_id else None,
            duration_ms=(time.perf_counter() - started) * 1000,
        )

    async def exec(self, script: str) -> None:
        try:
            await self._conn.executescript(script)
            await self._conn.commit()
        except sqlite3.Error as e:
            raise self._wrap(e, script) from e

    async def batch(self, statements: Sequence[Statement]) -> List[DriverResult]:
        results: List[DriverResult] = []
        try:
            for stmt in statements:
                cursor = await self._conn.execute(stmt.sql, stmt.params)
                rows = await cursor.fetchall()
                results.append(DriverResult(
                    success=True,
                    rows=[dict(row) for row in rows],
                    changes=max(cursor.rowcount or 0, 0),
                    last_row_id=cursor.lastrowid if stmt.returning_id else None,
                ))
                await cursor.close()
            await self._conn.commit()
        except sqlite3.Error as e:
            await self._conn.rollback()
            raise self._wrap(e, "batch") from e
        return results

    async def get_info(self) -> Dict[str, Any]:
        tables = await self.all(self.prepare(
            "SELECT name FROM sqlite_master WHERE type = 'table' AND name NOT LIKE 'sqlite_%' ORDER BY name"
        ))
        version = await self.first(self.prepare("SELECT sqlite_version() AS version"))
        return {
            "connected": True,
            "type": "SQLite",
            "version": version["version"] if version else None,
            "tables": [row["name"] for row in tables.rows],
        }

    async def close(self) -> None:
        await self._conn.close()

    def _wrap(self, exc: sqlite3.Error, sql: str) -> DatabaseError:
        logger.error(f"SQLite error: {exc}", extra={"sql": sql[:200]})
        if isinstance(exc, sqlite3.IntegrityError):
            return IntegrityConstraintError(str(exc), sql=sql)
        return DatabaseError(str(exc), sql=sql)
