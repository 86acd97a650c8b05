"""
Tests for DatabaseAdapter over the SQLite driver.
"""

from datetime import datetime, timezone

import pytest

from quillpress.core.database import DriverBackend, IntegrityConstraintError, QueryError
from quillpress.core.database.factory import edge_database, get_database
from quillpress.core.database.config import DatabaseConfig
from quillpress.core.database.errors import EnvironmentUnavailableError


class TestQueries:
    """Reads return plain dicts; nothing-found is not an error."""

    async def test_query_one_missing_row(self, db):
        assert await db.query_one("SELECT * FROM tags WHERE id = ?", [999]) is None

    async def test_query_empty_table(self, db):
        assert await db.query("SELECT * FROM tags") == []

    async def test_insert_returns_id(self, db):
        first = await db.insert("INSERT INTO tags (name, slug) VALUES (?, ?)", ["One", "one"])
        second = await db.insert("INSERT INTO tags (name, slug) VALUES (?, ?)", ["Two", "two"])
        assert second == first + 1

        row = await db.query_one("SELECT name, slug FROM tags WHERE id = ?", [first])
        assert row == {"name": "One", "slug": "one"}

    async def test_update_and_delete_report_changes(self, db):
        await db.insert("INSERT INTO tags (name, slug) VALUES (?, ?)", ["One", "one"])
        assert await db.update("UPDATE tags SET name = ? WHERE slug = ?", ["Uno", "one"]) == 1
        assert await db.update("UPDATE tags SET name = ? WHERE slug = ?", ["X", "missing"]) == 0
        assert await db.delete("DELETE FROM tags WHERE slug = ?", ["one"]) == 1

    async def test_parameter_mismatch(self, db):
        with pytest.raises(QueryError):
            await db.query("SELECT * FROM tags WHERE id = ?", [])

    async def test_unique_violation(self, db):
        await db.insert("INSERT INTO tags (name, slug) VALUES (?, ?)", ["One", "one"])
        with pytest.raises(IntegrityConstraintError):
            await db.insert("INSERT INTO tags (name, slug) VALUES (?, ?)", ["Again", "one"])

    async def test_booleans_and_timestamps_round_trip(self, db):
        stamp = datetime(2024, 3, 9, 8, 7, 6, tzinfo=timezone.utc)
        await db.insert(
            "INSERT INTO users (email, name, password_hash, is_active, created_at, updated_at) VALUES (?, ?, ?, ?, ?, ?)",
            ["a@example.com", "A", "pbkdf2:x", False, stamp, stamp],
        )
        row = await db.query_one("SELECT is_active, created_at FROM users WHERE is_active = ?", [False])
        assert row == {"is_active": 0, "created_at": "2024-03-09 08:07:06"}


class TestBatch:
    """Batches are all-or-nothing."""

    async def test_batch_results(self, db):
        results = await db.batch([
            ("INSERT INTO tags (name, slug) VALUES (?, ?)", ["A", "a"]),
            ("INSERT INTO tags (name, slug) VALUES (?, ?)", ["B", "b"]),
            ("UPDATE tags SET name = ? WHERE slug IN (?, ?)", ["Z", "a", "b"]),
        ])
        assert [r.changes for r in results] == [1, 1, 2]

    async def test_failed_batch_rolls_back(self, db):
        with pytest.raises(IntegrityConstraintError):
            await db.batch([
                ("INSERT INTO tags (name, slug) VALUES (?, ?)", ["A", "a"]),
                ("INSERT INTO tags (name, slug) VALUES (?, ?)", ["A again", "a"]),
            ])
        assert await db.query("SELECT * FROM tags") == []


class TestSelfTest:
    async def test_connection_and_info(self, db):
        assert await db.test_connection() is True
        info = await db.get_info()
        assert info["type"] == "SQLite"
        assert {"users", "posts", "categories", "tags", "post_tags", "settings"} <= set(info["tables"])
        assert db.backend_type is DriverBackend.SQLITE
        assert db.dialect.name == "sqlite"


class TestFactory:
    """Edge adapters are request scoped; there is no process-wide one."""

    async def test_edge_database_opens_and_closes(self, tmp_path):
        config = DatabaseConfig(runtime="edge", sqlite_path=str(tmp_path / "edge.db"))
        async with edge_database(config) as db:
            assert await db.test_connection() is True

    async def test_edge_database_needs_a_path(self):
        with pytest.raises(EnvironmentUnavailableError):
            async with edge_database(DatabaseConfig(runtime="edge", sqlite_path="")):
                pass

    async def test_no_global_database_under_edge(self):
        with pytest.raises(EnvironmentUnavailableError):
            await get_database(DatabaseConfig(runtime="edge", sqlite_path=":memory:"))
