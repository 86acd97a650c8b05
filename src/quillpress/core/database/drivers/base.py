"""
Database Driver Abstract Base Class

Defines the primitive surface every database backend provides:

- prepare: validate and bind a statement
- first / all: read one row / all rows
- run: execute a write, reporting affected rows and generated id
- exec: run raw multi-statement SQL (schema DDL)
- batch: run several statements atomically on one connection
- test_connection / get_info: availability self-test

Query Syntax:
    All callers write positional '?' placeholders. Each driver's Dialect
    renders them into the engine's own style.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..errors import QueryError

logger = logging.getLogger(__name__)


class DriverBackend(str, Enum):
    """Supported database engines."""
    POSTGRESQL = "postgresql"
    SQLITE = "sqlite"


@dataclass(frozen=True)
class Statement:
    """
    A prepared query: dialect-rendered SQL plus its bind values.

    Built per call, consumed once by a driver.
    """

    sql: str
    params: Tuple[Any, ...] = ()
    returning_id: bool = False


@dataclass(frozen=True)
class DriverResult:
    """
    Structured outcome of a primitive call.

    Zero rows or zero changes are successful results.
    """

    success: bool
    rows: List[Dict[str, Any]] = field(default_factory=list)
    changes: int = 0
    last_row_id: Optional[int] = None
    duration_ms: float = 0.0


def count_placeholders(sql: str) -> int:
    """
    Count '?' placeholders outside quoted literals and identifiers.

    Args:
        sql: SQL text with '?' placeholders

    Returns:
        Number of placeholders
    """
    count = 0
    quote: Optional[str] = None
    for char in sql:
        if quote:
            if char == quote:
                quote = None
        elif char in ("'", '"'):
            quote = char
        elif char == "?":
            count += 1
    return count


class Dialect(ABC):
    """
    Engine-specific SQL that cannot travel as a bound parameter.

    Booleans and timestamps are always bound, so only placeholder style,
    date-part extraction and DDL column types live here.
    """

    name = "sql"

    # DDL column types
    primary_key = "INTEGER PRIMARY KEY"
    boolean_type = "BOOLEAN"
    timestamp_type = "TIMESTAMP"

    def render_placeholders(self, sql: str) -> str:
        return sql

    @abstractmethod
    def year(self, column: str) -> str:
        """SQL extracting the year of a timestamp column as an integer."""

    @abstractmethod
    def month(self, column: str) -> str:
        """SQL extracting the month (1-12) of a timestamp column."""


class DatabaseDriver(ABC):
    """
    Abstract base class for primitive database drivers.

    A driver throws only for genuine execution failure; expected "nothing
    there" conditions are reported through DriverResult.
    """

    dialect: Dialect

    @property
    @abstractmethod
    def backend_type(self) -> DriverBackend:
        """Return the database engine type."""
        ...

    def prepare(
        self,
        sql: str,
        params: Sequence[Any] = (),
        *,
        returning_id: bool = False,
    ) -> Statement:
        """
        Validate and bind a statement.

        Args:
            sql: SQL text with '?' placeholders
            params: Ordered bind values
            returning_id: The caller needs the generated row id

        Returns:
            Statement ready for first/all/run

        Raises:
            QueryError: If placeholder count and param count differ
        """
        params = tuple(params or ())
        expected = count_placeholders(sql)
        if expected != len(params):
            raise QueryError(
                f"Statement expects {expected} parameter(s), got {len(params)}",
                sql=sql,
            )
        rendered = self.dialect.render_placeholders(sql)
        if returning_id:
            rendered = self._render_returning_id(rendered)
        return Statement(
            sql=rendered,
            params=tuple(self.normalize_param(p) for p in params),
            returning_id=returning_id,
        )

    def normalize_param(self, value: Any) -> Any:
        """Convert a Python value into something the engine binds natively."""
        return value

    def _render_returning_id(self, sql: str) -> str:
        return sql

    @abstractmethod
    async def first(self, stmt: Statement) -> Optional[Dict[str, Any]]:
        """
        Fetch the first row.

        Returns:
            Row as a dictionary, or None if there are no rows
        """
        ...

    @abstractmethod
    async def all(self, stmt: Statement) -> DriverResult:
        """Fetch all rows."""
        ...

    @abstractmethod
    async def run(self, stmt: Statement) -> DriverResult:
        """
        Execute a write.

        Returns:
            DriverResult with changes and, for returning_id statements,
            last_row_id
        """
        ...

    @abstractmethod
    async def exec(self, script: str) -> None:
        """Execute raw SQL that may contain several statements."""
        ...

    @abstractmethod
    async def batch(self, statements: Sequence[Statement]) -> List[DriverResult]:
        """Execute statements in one transaction; all or nothing."""
        ...

    @abstractmethod
    async def get_info(self) -> Dict[str, Any]:
        """Return engine name, version and table list."""
        ...

    async def test_connection(self) -> bool:
        """
        Check that the database answers.

        Returns:
            True if a trivial query succeeds; never raises
        """
        try:
            await self.first(self.prepare("SELECT 1 AS test"))
            return True
        except Exception as e:
            logger.error(f"{self.backend_type.value} connection test failed: {e}")
            return False

    async def close(self) -> None:
        """Release driver-owned resources (no-op by default)."""
        return None
