"""
Runtime Environment

Decides, once per process, which database driver and which native
password-hashing strategy the process runs with:

    SERVER - PostgreSQL through an asyncpg pool, bcrypt hashes
    EDGE   - SQLite through a per-request aiosqlite handle, PBKDF2 hashes

Selection is explicit (QUILLPRESS_RUNTIME) or, failing that, a
deterministic probe of the configuration. Nothing here inspects
interpreter globals or imports drivers.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Optional

from .database.config import DatabaseConfig
from .database.errors import EnvironmentUnavailableError

logger = logging.getLogger(__name__)


class RuntimeEnvironment(str, Enum):
    """Supported runtimes."""
    SERVER = "server"
    EDGE = "edge"


def detect_runtime(config: Optional[DatabaseConfig] = None) -> RuntimeEnvironment:
    """
    Determine the runtime from configuration.

    Args:
        config: Database configuration (read from env if not provided)

    Returns:
        RuntimeEnvironment

    Raises:
        EnvironmentUnavailableError: If no runtime can be established
    """
    config = config or DatabaseConfig()

    if config.runtime:
        try:
            return RuntimeEnvironment(config.runtime)
        except ValueError:
            raise EnvironmentUnavailableError(
                f"Unknown QUILLPRESS_RUNTIME '{config.runtime}' (expected 'server' or 'edge')"
            ) from None

    if config.database_url:
        return RuntimeEnvironment.SERVER
    if config.sqlite_path:
        return RuntimeEnvironment.EDGE

    raise EnvironmentUnavailableError(
        "Unsupported environment: set QUILLPRESS_RUNTIME, DATABASE_URL or SQLITE_PATH"
    )


# Process-wide runtime, fixed after first resolution
_runtime: Optional[RuntimeEnvironment] = None


def get_runtime(config: Optional[DatabaseConfig] = None) -> RuntimeEnvironment:
    """Get the process runtime, detecting it on first call."""
    global _runtime
    if _runtime is None:
        _runtime = detect_runtime(config)
        logger.info(f"Runtime environment established: {_runtime.value}")
    return _runtime


def reset_runtime() -> None:
    """
    Forget the detected runtime.

    Only for tests; a running process never switches runtime.
    """
    global _runtime
    _runtime = None
