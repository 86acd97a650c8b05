"""
User Model

CMS accounts. The stored password hash is loaded only for credential
checks and is never part of a serialized user.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from ..auth.hasher import PasswordHasher
from ..database.adapter import DatabaseAdapter
from .base import Model, from_row, iso, pick, utcnow

logger = logging.getLogger(__name__)

ROLES = ("admin", "editor", "author")

_USER_COLUMNS = "id, email, name, role, avatar_url, is_active, created_at, updated_at, last_login"

UPDATABLE_COLUMNS = ("email", "name", "role", "avatar_url", "is_active")


@dataclass
class User:
    id: int
    email: str
    name: str
    role: str = "author"
    avatar_url: Optional[str] = None
    is_active: bool = True
    created_at: Any = None
    updated_at: Any = None
    last_login: Any = None
    password_hash: Optional[str] = field(default=None, repr=False)

    def __post_init__(self):
        # SQLite stores booleans as 0/1
        self.is_active = bool(self.is_active)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "role": self.role,
            "avatar_url": self.avatar_url,
            "is_active": self.is_active,
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
            "last_login": iso(self.last_login),
        }


class UserModel(Model):
    """Queries over users; password hashing goes through the injected hasher."""

    table = "users"

    def __init__(self, db: DatabaseAdapter, hasher: PasswordHasher):
        super().__init__(db)
        self.hasher = hasher

    async def get_all(self, page: int = 1, limit: int = 10) -> Tuple[List[User], int]:
        """Active users, newest first."""
        offset = (max(page, 1) - 1) * limit
        rows = await self.db.query(
            f"""
            SELECT {_USER_COLUMNS}
            FROM users
            WHERE is_active = ?
            ORDER BY created_at DESC, id DESC
            LIMIT ? OFFSET ?
            """,
            [True, limit, offset],
        )
        total = await self._count("SELECT COUNT(*) AS count FROM users WHERE is_active = ?", [True])
        return [from_row(User, row) for row in rows], total

    async def get_by_id(self, user_id: int, include_inactive: bool = False) -> Optional[User]:
        if include_inactive:
            row = await self.db.query_one(f"SELECT {_USER_COLUMNS} FROM users WHERE id = ?", [user_id])
        else:
            row = await self.db.query_one(
                f"SELECT {_USER_COLUMNS} FROM users WHERE id = ? AND is_active = ?",
                [user_id, True],
            )
        return from_row(User, row) if row else None

    async def get_by_email(self, email: str) -> Optional[User]:
        """Active user by email, including password_hash (login only)."""
        row = await self.db.query_one(
            f"SELECT {_USER_COLUMNS}, password_hash FROM users WHERE email = ? AND is_active = ?",
            [email.strip().lower(), True],
        )
        return from_row(User, row) if row else None

    async def get_password_hash(self, user_id: int) -> Optional[str]:
        row = await self.db.query_one(
            "SELECT password_hash FROM users WHERE id = ? AND is_active = ?",
            [user_id, True],
        )
        return row["password_hash"] if row else None

    async def get_by_role(self, role: str) -> List[User]:
        rows = await self.db.query(
            f"SELECT {_USER_COLUMNS} FROM users WHERE role = ? AND is_active = ? ORDER BY name ASC",
            [role, True],
        )
        return [from_row(User, row) for row in rows]

    async def create(
        self,
        *,
        email: str,
        name: str,
        password: str,
        role: str = "author",
        avatar_url: Optional[str] = None,
        is_active: bool = True,
    ) -> User:
        """
        Create a user, hashing the password in the runtime's native format.

        Raises:
            IntegrityConstraintError: If the email is already registered
        """
        password_hash = await self.hasher.hash(password)
        now = utcnow()
        user_id = await self.db.insert(
            """
            INSERT INTO users (email, name, password_hash, role, avatar_url, is_active, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            [email.strip().lower(), name, password_hash, role, avatar_url, is_active, now, now],
        )
        logger.info(f"Created user {user_id} ({role})")

        user = await self.get_by_id(user_id, include_inactive=True)
        if user is None:
            raise LookupError(f"User {user_id} vanished after insert")
        return user

    async def update(self, user_id: int, changes: Dict[str, Any]) -> Optional[User]:
        """
        Apply a partial update.

        A "password" key is hashed afresh before storing.
        """
        values = pick(changes, UPDATABLE_COLUMNS)
        if "email" in values:
            values["email"] = values["email"].strip().lower()
        if changes.get("password"):
            values["password_hash"] = await self.hasher.hash(changes["password"])

        if not values:
            return await self.get_by_id(user_id, include_inactive=True)

        assignments = [f"{column} = ?" for column in values] + ["updated_at = ?"]
        await self.db.update(
            f"UPDATE users SET {', '.join(assignments)} WHERE id = ?",
            [*values.values(), utcnow(), user_id],
        )
        return await self.get_by_id(user_id, include_inactive=True)

    async def update_password_hash(self, user_id: int, password_hash: str) -> None:
        """Store an already computed hash (login-time migration)."""
        await self.db.update(
            "UPDATE users SET password_hash = ?, updated_at = ? WHERE id = ?",
            [password_hash, utcnow(), user_id],
        )

    async def update_last_login(self, user_id: int) -> None:
        await self.db.update(
            "UPDATE users SET last_login = ? WHERE id = ?",
            [utcnow(), user_id],
        )

    async def deactivate(self, user_id: int) -> bool:
        """Soft delete: the row and the user's posts stay."""
        changed = await self.db.update(
            "UPDATE users SET is_active = ?, updated_at = ? WHERE id = ?",
            [False, utcnow(), user_id],
        )
        return changed > 0

    async def hard_delete(self, user_id: int) -> bool:
        """Remove the row. The posts FK cascades, so the user's posts go too."""
        deleted = await self.db.delete("DELETE FROM users WHERE id = ?", [user_id])
        if deleted:
            logger.warning(f"Hard-deleted user {user_id} and their posts")
        return deleted > 0

    async def email_exists(self, email: str, exclude_id: Optional[int] = None) -> bool:
        # Inactive accounts still hold their email under the UNIQUE constraint
        email = email.strip().lower()
        if exclude_id is not None:
            return await self._count(
                "SELECT COUNT(*) AS count FROM users WHERE email = ? AND id != ?",
                [email, exclude_id],
            ) > 0
        return await self._count("SELECT COUNT(*) AS count FROM users WHERE email = ?", [email]) > 0

    async def verify_password(self, password: str, stored_hash: str) -> bool:
        """
        Check a password against a stored hash.

        Raises:
            PasswordResetRequired: If the hash cannot be checked in this runtime
        """
        return await self.hasher.verify(password, stored_hash)

    async def count_by_hash_format(self) -> Dict[str, int]:
        """
        Count users per stored hash format.

        Shows how many accounts are still waiting for migrate-on-login
        (or a reset) before a runtime switch.
        """
        rows = await self.db.query("SELECT password_hash FROM users")
        counts = {"bcrypt": 0, "pbkdf2": 0, "unknown": 0}
        for row in rows:
            format_name = self.hasher.hash_format(row["password_hash"]) or "unknown"
            counts[format_name] = counts.get(format_name, 0) + 1
        return counts
