"""
Shared model plumbing: row -> record conversion and common lookups.
"""

from __future__ import annotations

from dataclasses import fields
from datetime import date, datetime, timezone
from typing import Any, Dict, Mapping, Optional, Sequence, Type, TypeVar

from ..database.adapter import DatabaseAdapter

R = TypeVar("R")


def utcnow() -> datetime:
    """Current UTC datetime (bound as a parameter, never as SQL text)."""
    return datetime.now(timezone.utc)


def iso(value: Any) -> Optional[str]:
    """Serialize a timestamp column; SQLite already returns text."""
    if value is None:
        return None
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def from_row(cls: Type[R], row: Mapping[str, Any]) -> R:
    """Build a dataclass record from a row, ignoring columns it doesn't declare."""
    values = {f.name: row[f.name] for f in fields(cls) if f.init and f.name in row}
    return cls(**values)


class Model:
    """Base for domain models; holds the injected adapter."""

    table: str = ""

    def __init__(self, db: DatabaseAdapter):
        self.db = db

    async def _count(self, sql: str, params: Sequence[Any] = ()) -> int:
        row = await self.db.query_one(sql, params)
        return int(row["count"] or 0) if row else 0

    async def slug_exists(self, slug: str, exclude_id: Optional[int] = None) -> bool:
        """Check if a slug is already used in this model's table."""
        if exclude_id is not None:
            return await self._count(
                f"SELECT COUNT(*) AS count FROM {self.table} WHERE slug = ? AND id != ?",
                [slug, exclude_id],
            ) > 0
        return await self._count(
            f"SELECT COUNT(*) AS count FROM {self.table} WHERE slug = ?",
            [slug],
        ) > 0


def pick(data: Mapping[str, Any], allowed: Sequence[str]) -> Dict[str, Any]:
    """Keep only the updatable columns present in data."""
    return {key: data[key] for key in allowed if key in data}
