"""
Database Adapter - Universal Query Interface

One query/insert/update/delete surface for every domain model,
regardless of which primitive driver backs it.

Features:
- Explicit driver injection (no runtime introspection at call time)
- '?' placeholders everywhere, rendered per engine by the driver
- Booleans and timestamps always bound as parameters, never as SQL text
- Uniform failure contract: driver failure -> DatabaseError
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .drivers.base import DatabaseDriver, Dialect, DriverBackend, DriverResult
from .errors import DatabaseError

logger = logging.getLogger(__name__)

Params = Sequence[Any]


class DatabaseAdapter:
    """
    Universal database adapter over a single primitive driver.

    Usage:
        db = DatabaseAdapter(driver)

        rows = await db.query("SELECT * FROM posts WHERE status = ?", ["published"])
        post_id = await db.insert("INSERT INTO tags (name, slug) VALUES (?, ?)", [name, slug])
        changed = await db.update("UPDATE users SET is_active = ? WHERE id = ?", [False, user_id])

    Each call is independently atomic at the driver level only. There are
    no retries and no transactions spanning calls (use batch() for that).
    """

    def __init__(self, driver: DatabaseDriver):
        self._driver = driver

    @property
    def driver(self) -> DatabaseDriver:
        return self._driver

    @property
    def backend_type(self) -> DriverBackend:
        return self._driver.backend_type

    @property
    def dialect(self) -> Dialect:
        return self._driver.dialect

    async def query(self, sql: str, params: Params = ()) -> List[Dict[str, Any]]:
        """
        Fetch multiple rows.

        Args:
            sql: SQL query with ? placeholders
            params: Query parameters

        Returns:
            List of dictionaries representing rows (empty if none)
        """
        stmt = self._driver.prepare(sql, params)
        result = await self._driver.all(stmt)
        self._check(result, "query", sql)
        logger.debug(f"query: {len(result.rows)} row(s) in {result.duration_ms:.1f}ms: {_short(sql)}")
        return result.rows

    async def query_one(self, sql: str, params: Params = ()) -> Optional[Dict[str, Any]]:
        """Fetch a single row, or None."""
        stmt = self._driver.prepare(sql, params)
        return await self._driver.first(stmt)

    async def insert(self, sql: str, params: Params = ()) -> int:
        """
        Execute an INSERT.

        Returns:
            The generated row id

        Raises:
            DatabaseError: If the driver reports failure or no id
        """
        stmt = self._driver.prepare(sql, params, returning_id=True)
        result = await self._driver.run(stmt)
        self._check(result, "insert", sql)
        if result.last_row_id is None:
            raise DatabaseError("Database insert returned no id", sql=sql)
        logger.debug(f"insert: id={result.last_row_id} in {result.duration_ms:.1f}ms: {_short(sql)}")
        return int(result.last_row_id)

    async def update(self, sql: str, params: Params = ()) -> int:
        """Execute an UPDATE and return the number of affected rows."""
        return await self._write("update", sql, params)

    async def delete(self, sql: str, params: Params = ()) -> int:
        """Execute a DELETE and return the number of affected rows."""
        return await self._write("delete", sql, params)

    async def execute(self, sql: str, params: Params = ()) -> int:
        """Execute any other write (no generated id) and return affected rows."""
        return await self._write("execute", sql, params)

    async def execute_script(self, script: str) -> None:
        """Execute raw SQL (schema DDL); may contain several statements."""
        await self._driver.exec(script)

    async def batch(self, statements: Sequence[Tuple[str, Params]]) -> List[DriverResult]:
        """
        Execute several statements in one transaction.

        Args:
            statements: (sql, params) pairs

        Returns:
            One DriverResult per statement
        """
        prepared = [self._driver.prepare(sql, params) for sql, params in statements]
        results = await self._driver.batch(prepared)
        for result, (sql, _) in zip(results, statements):
            self._check(result, "batch", sql)
        return results

    async def test_connection(self) -> bool:
        return await self._driver.test_connection()

    async def get_info(self) -> Dict[str, Any]:
        return await self._driver.get_info()

    async def close(self) -> None:
        await self._driver.close()

    async def _write(self, operation: str, sql: str, params: Params) -> int:
        stmt = self._driver.prepare(sql, params)
        result = await self._driver.run(stmt)
        self._check(result, operation, sql)
        logger.debug(f"{operation}: {result.changes} row(s) in {result.duration_ms:.1f}ms: {_short(sql)}")
        return result.changes

    @staticmethod
    def _check(result: DriverResult, operation: str, sql: str) -> None:
        if not result.success:
            raise DatabaseError(f"Database {operation} failed", sql=sql)


def _short(sql: str, limit: int = 80) -> str:
    flat = " ".join(sql.split())
    return flat if len(flat) <= limit else flat[:limit] + "..."
