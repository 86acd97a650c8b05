"""
Database Errors

Failures raised by the drivers and the adapter. Absence of data is never
an error here: reads return None or an empty list.
"""

from typing import Optional


class DatabaseError(Exception):
    """
    A primitive driver reported failure.

    The engine's own exception (asyncpg / sqlite3) is kept as __cause__.
    """

    def __init__(self, message: str = "A database error occurred", sql: Optional[str] = None):
        self.message = message
        self.sql = sql
        super().__init__(message)


class IntegrityConstraintError(DatabaseError):
    """Unique, foreign-key or not-null constraint violation."""


class QueryError(DatabaseError):
    """The statement itself is malformed (e.g. placeholder/param mismatch)."""


class EnvironmentUnavailableError(RuntimeError):
    """
    No supported runtime could be established.

    Raised when neither the server database nor the embedded database is
    configured. Not recoverable.
    """
