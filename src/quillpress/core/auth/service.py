"""
Authentication Service

Email/password login with migrate-on-login: a password verified against
a hash in a non-native format is rehashed into the runtime's native
format before the login completes.
"""

import logging

from ..models.user import User, UserModel
from .session import AuthUser

logger = logging.getLogger(__name__)


class InvalidCredentialsError(Exception):
    """Unknown email, inactive account or wrong password."""

    def __init__(self, message: str = "Invalid email or password"):
        self.message = message
        super().__init__(message)


def to_auth_user(user: User) -> AuthUser:
    return AuthUser(id=user.id, email=user.email, name=user.name, role=user.role)


class AuthService:
    """
    Usage:
        service = AuthService(UserModel(db, hasher))
        user = await service.login("editor@example.com", "s3cret")
    """

    def __init__(self, users: UserModel):
        self.users = users
        self.hasher = users.hasher

    async def login(self, email: str, password: str) -> AuthUser:
        """
        Authenticate a user by email and password.

        Returns:
            The authenticated user

        Raises:
            InvalidCredentialsError: Unknown/inactive user or wrong password
            PasswordResetRequired: The stored hash can't be checked in this
                runtime (never reported as a wrong password)
        """
        user = await self.users.get_by_email(email)
        if user is None or not user.password_hash:
            logger.info("Login failed: unknown or inactive account")
            raise InvalidCredentialsError()

        if not await self.users.verify_password(password, user.password_hash):
            logger.info(f"Login failed for user {user.id}: wrong password")
            raise InvalidCredentialsError()

        if self.hasher.needs_rehash(user.password_hash):
            await self._migrate_hash(user, password)

        await self.users.update_last_login(user.id)
        logger.info(f"User {user.id} logged in")
        return to_auth_user(user)

    async def _migrate_hash(self, user: User, password: str) -> None:
        old_format = self.hasher.hash_format(user.password_hash)
        new_hash = await self.hasher.hash(password)
        await self.users.update_password_hash(user.id, new_hash)
        logger.info(
            f"Migrated password hash for user {user.id}: {old_format} -> {self.hasher.native_format}"
        )

    async def register(
        self,
        email: str,
        name: str,
        password: str,
        role: str = "author",
    ) -> AuthUser:
        """Create an account and return it as an authenticated user."""
        user = await self.users.create(email=email, name=name, password=password, role=role)
        return to_auth_user(user)

    async def change_password(self, user_id: int, current_password: str, new_password: str) -> None:
        """
        Replace a user's password after checking the current one.

        Raises:
            InvalidCredentialsError: If the current password is wrong
            PasswordResetRequired: If the stored hash can't be checked here
        """
        stored_hash = await self.users.get_password_hash(user_id)
        if not stored_hash:
            raise InvalidCredentialsError()
        if not await self.users.verify_password(current_password, stored_hash):
            raise InvalidCredentialsError("Current password is incorrect")
        await self.users.update_password_hash(user_id, await self.hasher.hash(new_password))
        logger.info(f"User {user_id} changed password")
