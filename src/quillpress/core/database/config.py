"""
Database Configuration

Reads database and hashing settings from environment variables.
"""

import os
from typing import Optional


def _int_env(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return int(value)


class DatabaseConfig:
    """Database configuration from environment variables."""

    def __init__(
        self,
        runtime: Optional[str] = None,
        database_url: Optional[str] = None,
        sqlite_path: Optional[str] = None,
    ):
        # Explicit QUILLPRESS_RUNTIME always wins over probing
        self.runtime = (runtime if runtime is not None else os.getenv("QUILLPRESS_RUNTIME", "")).strip().lower()
        self.database_url = database_url if database_url is not None else os.getenv("DATABASE_URL", "")
        self.sqlite_path = sqlite_path if sqlite_path is not None else os.getenv("SQLITE_PATH", "")

        self.pool_min_size = _int_env("DB_POOL_MIN_SIZE", 2)
        self.pool_max_size = _int_env("DB_POOL_MAX_SIZE", 10)
        self.command_timeout = _int_env("DB_COMMAND_TIMEOUT", 60)

        self.bcrypt_rounds = _int_env("BCRYPT_ROUNDS", 12)

    def __repr__(self) -> str:
        return (
            f"DatabaseConfig(runtime={self.runtime or 'auto'}, "
            f"postgres={'set' if self.database_url else 'unset'}, "
            f"sqlite_path={self.sqlite_path or 'unset'})"
        )
