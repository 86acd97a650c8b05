"""
Authentication Module

Password hashing, server-side sessions and role permissions.
The login flow lives in quillpress.core.auth.service.

Usage:
    from quillpress.core.auth import create_session, validate_session, get_password_hasher

Configuration:
    AUTH_REQUIRED=true/false - Enable/disable auth requirement (default: true)
    SESSION_EXPIRY_HOURS=24 - Session expiry in hours
    ALLOW_REGISTRATION=true/false - Allow new user registration
"""

from .hasher import (
    BcryptStrategy,
    HashFormatUnrecognizedError,
    HashIncompatibleError,
    PasswordHasher,
    PasswordResetRequired,
    Pbkdf2Strategy,
    get_password_hasher,
    reset_password_hasher,
)
from .permissions import (
    ROLE_LEVELS,
    ROLE_PERMISSIONS,
    Permission,
    can_delete_post,
    can_edit_post,
    get_permissions_for_role,
    has_permission,
    has_role,
)
from .session import (
    SESSION_COOKIE_NAME,
    AuthUser,
    SessionData,
    cleanup_expired_sessions,
    create_session,
    get_active_sessions,
    invalidate_all_sessions,
    invalidate_session,
    validate_session,
)

__all__ = [
    # Hashing
    "BcryptStrategy",
    "HashFormatUnrecognizedError",
    "HashIncompatibleError",
    "PasswordHasher",
    "PasswordResetRequired",
    "Pbkdf2Strategy",
    "get_password_hasher",
    "reset_password_hasher",
    # Permissions
    "ROLE_LEVELS",
    "ROLE_PERMISSIONS",
    "Permission",
    "can_delete_post",
    "can_edit_post",
    "get_permissions_for_role",
    "has_permission",
    "has_role",
    # Session
    "SESSION_COOKIE_NAME",
    "AuthUser",
    "SessionData",
    "cleanup_expired_sessions",
    "create_session",
    "get_active_sessions",
    "invalidate_all_sessions",
    "invalidate_session",
    "validate_session",
]
