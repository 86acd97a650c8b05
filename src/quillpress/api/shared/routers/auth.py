"""
Authentication API Endpoints

Provides login, logout, registration and session management.
"""

import logging
import os

from fastapi import APIRouter, Depends, Request, Response
from pydantic import BaseModel, EmailStr, Field

from ....core.auth.service import AuthService
from ....core.auth.session import (
    SESSION_COOKIE_NAME,
    AuthUser,
    cleanup_expired_sessions,
    create_session,
    get_active_sessions,
    invalidate_all_sessions,
    invalidate_session,
)
from ....core.models import UserModel
from ..dependencies import get_auth_service, get_user_model
from ..error_codes import ErrorCode
from ..exceptions import ConflictError, ForbiddenError
from ..middleware.auth import get_current_user, require_auth, session_id_from_request
from ..responses import SuccessResponse
from ..security import get_client_ip

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


class LoginRequest(BaseModel):
    """Login request body."""
    email: EmailStr
    password: str


class RegisterRequest(BaseModel):
    """Registration request body."""
    email: EmailStr
    password: str = Field(..., min_length=8)
    name: str = Field(..., min_length=1, max_length=255)


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str = Field(..., min_length=8)


def _set_session_cookie(response: Response, session) -> None:
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=session.session_id,
        httponly=True,
        secure=os.getenv("COOKIE_SECURE", "false").lower() == "true",
        samesite="lax",
        max_age=int((session.expires_at - session.created_at).total_seconds()),
    )


def _start_session(request: Request, response: Response, user: AuthUser) -> dict:
    expired = cleanup_expired_sessions()
    if expired:
        logger.debug(f"Pruned {expired} expired session(s)")

    session = create_session(
        user,
        ip_address=get_client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )
    _set_session_cookie(response, session)
    return {
        "user": user.to_dict(),
        "token": session.session_id,
        "expires_at": session.expires_at.isoformat(),
    }


@router.post("/login")
async def login(
    request: Request,
    response: Response,
    body: LoginRequest,
    auth: AuthService = Depends(get_auth_service),
):
    """
    Login with email and password.

    Returns the user and session token, and sets the session cookie.
    A stored hash this runtime can't verify answers 409
    PASSWORD_RESET_REQUIRED rather than 401.
    """
    user = await auth.login(body.email, body.password)
    return SuccessResponse.create(_start_session(request, response, user), message="Login successful")


@router.post("/logout")
async def logout(request: Request, response: Response):
    """Logout and invalidate the session."""
    session_id = session_id_from_request(request)
    if session_id:
        invalidate_session(session_id)

    response.delete_cookie(SESSION_COOKIE_NAME)
    return SuccessResponse.create(None, message="Logged out successfully")


@router.get("/me")
async def me(user: AuthUser = Depends(require_auth)):
    """Get the current authenticated user."""
    return SuccessResponse.create(user.to_dict())


@router.get("/sessions")
async def list_sessions(user: AuthUser = Depends(require_auth)):
    """The current user's active sessions."""
    return SuccessResponse.create([
        {key: value for key, value in session.to_dict().items() if key != "user"}
        for session in get_active_sessions(user.id)
    ])


@router.post("/register", status_code=201)
async def register(
    request: Request,
    response: Response,
    body: RegisterRequest,
    auth: AuthService = Depends(get_auth_service),
    users: UserModel = Depends(get_user_model),
):
    """
    Register a new author account and sign it in.

    Disabled unless ALLOW_REGISTRATION=true.
    """
    if os.getenv("ALLOW_REGISTRATION", "false").lower() != "true":
        raise ForbiddenError("Registration is disabled", code=ErrorCode.REGISTRATION_DISABLED)

    if await users.email_exists(body.email):
        raise ConflictError("Email already registered", code=ErrorCode.EMAIL_ALREADY_REGISTERED)

    user = await auth.register(body.email, body.name, body.password)
    logger.info(f"Registered user {user.id}")
    return SuccessResponse.create(_start_session(request, response, user), message="Registration successful")


@router.post("/change-password")
async def change_password(
    request: Request,
    body: ChangePasswordRequest,
    user: AuthUser = Depends(require_auth),
    auth: AuthService = Depends(get_auth_service),
):
    """Change the password and sign out every other session."""
    await auth.change_password(user.id, body.current_password, body.new_password)
    ended = invalidate_all_sessions(user.id, keep=session_id_from_request(request))
    logger.debug(f"Ended {ended} other session(s) for user {user.id}")
    return SuccessResponse.create(None, message="Password changed")


@router.get("/check")
async def check_auth(request: Request):
    """Authentication status, without requiring auth."""
    user = get_current_user(request)
    return {
        "authenticated": user is not None,
        "user": user.to_dict() if user else None,
    }
