"""
Database Setup

Creates the schema for the adapter's dialect, seeds default settings and,
on an empty users table, an initial admin account.

Environment:
    ADMIN_EMAIL    - Email for the seeded admin (default: admin@example.com)
    ADMIN_PASSWORD - Password for the seeded admin; no admin is seeded without it
"""

import logging
import os
from typing import Any, Dict, Optional

from .auth.hasher import PasswordHasher
from .database.adapter import DatabaseAdapter
from .database.errors import DatabaseError
from .database.schema import TABLES_IN_DROP_ORDER, drop_script, schema_script
from .models.settings import SettingsModel
from .models.user import UserModel

logger = logging.getLogger(__name__)


async def setup_database(
    db: DatabaseAdapter,
    hasher: PasswordHasher,
    admin_email: Optional[str] = None,
    admin_password: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Create tables (idempotent) and seed initial data.

    Args:
        db: Adapter to set up
        hasher: Hasher for the seeded admin's password
        admin_email: Seed admin email (ADMIN_EMAIL if not given)
        admin_password: Seed admin password (ADMIN_PASSWORD if not given)

    Returns:
        Summary: {"initialized", "settings_added", "admin_created"}

    Raises:
        DatabaseError: If the database is unreachable or DDL fails
    """
    if not await db.test_connection():
        raise DatabaseError("Cannot connect to database")

    logger.info(f"Setting up {db.dialect.name} schema")
    await db.execute_script(schema_script(db.dialect))

    settings_added = await SettingsModel(db).initialize_defaults()

    admin_email = admin_email or os.getenv("ADMIN_EMAIL", "admin@example.com")
    admin_password = admin_password or os.getenv("ADMIN_PASSWORD", "")

    admin_created = False
    users = UserModel(db, hasher)
    _, user_count = await users.get_all(limit=1)
    if user_count == 0:
        if admin_password:
            await users.create(email=admin_email, name="Administrator", password=admin_password, role="admin")
            admin_created = True
            logger.info(f"Seeded admin account {admin_email}")
        else:
            logger.warning("Users table is empty and ADMIN_PASSWORD is unset; no admin seeded")

    logger.info("Database setup complete")
    return {
        "initialized": True,
        "settings_added": settings_added,
        "admin_created": admin_created,
    }


async def reset_database(
    db: DatabaseAdapter,
    hasher: PasswordHasher,
    admin_email: Optional[str] = None,
    admin_password: Optional[str] = None,
) -> Dict[str, Any]:
    """Drop every CMS table, then set up from scratch. All content is lost."""
    logger.warning(f"Resetting database: dropping {', '.join(TABLES_IN_DROP_ORDER)}")
    await db.execute_script(drop_script())
    return await setup_database(db, hasher, admin_email, admin_password)


async def database_status(db: DatabaseAdapter) -> Dict[str, Any]:
    """Report whether the database is reachable and has the CMS schema."""
    if not await db.test_connection():
        return {
            "connected": False,
            "initialized": False,
            "message": "Cannot connect to database",
        }

    info = await db.get_info()
    missing = sorted(set(TABLES_IN_DROP_ORDER) - set(info.get("tables", [])))
    if missing:
        return {
            "connected": True,
            "initialized": False,
            "backend": info.get("type"),
            "missing_tables": missing,
            "message": "Database connected but not initialized",
        }
    return {
        "connected": True,
        "initialized": True,
        "backend": info.get("type"),
        "message": "Database is connected and initialized",
    }
