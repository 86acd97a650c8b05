"""
Authentication Middleware

Validates the session (cookie or Bearer token) and loads the
authenticated user into request state. Endpoints enforce access through
the require_* dependencies below.
"""

import os
from typing import Callable, Optional

from fastapi import Depends, Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from ....core.auth.permissions import Permission, has_permission
from ....core.auth.session import SESSION_COOKIE_NAME, AuthUser, validate_session
from ..exceptions import ForbiddenError, UnauthorizedError


def is_auth_required() -> bool:
    """Check if authentication is required (AUTH_REQUIRED, default true)."""
    return os.getenv("AUTH_REQUIRED", "true").lower() == "true"


def session_id_from_request(request: Request) -> Optional[str]:
    """Session id from the session cookie or an Authorization: Bearer header."""
    session_id = request.cookies.get(SESSION_COOKIE_NAME)
    if session_id:
        return session_id

    authorization = request.headers.get("authorization", "")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() == "bearer" and token.strip():
        return token.strip()
    return None


class AuthMiddleware(BaseHTTPMiddleware):
    """
    Middleware that:
    1. Validates the session cookie / bearer token
    2. Loads the session's user into request.state.user
    3. With AUTH_REQUIRED=false, falls back to a development admin
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request.state.user = None

        session_id = session_id_from_request(request)
        if session_id:
            session = validate_session(session_id)
            if session is not None:
                request.state.user = session.user

        if request.state.user is None and not is_auth_required():
            request.state.user = _create_dev_user()

        return await call_next(request)


def _create_dev_user() -> AuthUser:
    """Development admin; assumes the seeded admin has id 1."""
    return AuthUser(
        id=int(os.getenv("DEV_USER_ID", "1")),
        email="dev@quillpress.local",
        name="Development User",
        role="admin",
    )


def get_current_user(request: Request) -> Optional[AuthUser]:
    """
    Get the current user from request state.

    Returns:
        AuthUser if authenticated, None otherwise
    """
    return getattr(request.state, "user", None)


def require_auth(request: Request) -> AuthUser:
    """
    Require authentication and return the user.

    Raises:
        UnauthorizedError: If not authenticated
    """
    user = get_current_user(request)
    if user is None:
        raise UnauthorizedError()
    return user


def require_permission(permission: Permission):
    """
    Dependency factory requiring a permission.

    Usage:
        @router.post("/api/categories")
        async def create_category(user: AuthUser = Depends(require_permission(Permission.CATEGORIES_WRITE))):
            ...
    """
    def dependency(user: AuthUser = Depends(require_auth)) -> AuthUser:
        if not has_permission(user.role, permission):
            raise ForbiddenError(f"Permission denied: {permission.value} required")
        return user
    return dependency

