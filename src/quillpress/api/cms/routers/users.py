"""
User Management Endpoints (admin only)
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ....core.auth.permissions import Permission
from ....core.auth.session import AuthUser, invalidate_all_sessions
from ....core.models import UserModel
from ...shared.dependencies import get_user_model
from ...shared.error_codes import ErrorCode
from ...shared.exceptions import BadRequestError, ConflictError, NotFoundError
from ...shared.middleware.auth import require_permission
from ...shared.responses import SuccessResponse, paginated
from ..schemas import Role, UserCreate, UserUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["users"])

admin = require_permission(Permission.USERS_MANAGE)

SESSION_BOUND_FIELDS = {"role", "email", "is_active", "password"}


@router.get("")
async def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    role: Optional[Role] = None,
    user: AuthUser = Depends(admin),
    users: UserModel = Depends(get_user_model),
):
    """Active users, newest first, or every active user with one role."""
    if role:
        items = await users.get_by_role(role)
        return SuccessResponse.create([found.to_dict() for found in items])
    items, total = await users.get_all(page, limit)
    return paginated(items, total, page, limit)


@router.get("/hash-formats")
async def hash_formats(
    user: AuthUser = Depends(admin),
    users: UserModel = Depends(get_user_model),
):
    """
    Stored password hash formats across all accounts.

    Accounts in a non-native format are rehashed at their next login;
    check this before moving a database between runtimes.
    """
    return SuccessResponse.create({
        "native": users.hasher.native_format,
        "counts": await users.count_by_hash_format(),
    })


@router.get("/{user_id}")
async def get_user(
    user_id: int,
    user: AuthUser = Depends(admin),
    users: UserModel = Depends(get_user_model),
):
    found = await users.get_by_id(user_id, include_inactive=True)
    if found is None:
        raise NotFoundError("User", str(user_id))
    return SuccessResponse.create(found.to_dict())


@router.post("", status_code=201)
async def create_user(
    body: UserCreate,
    user: AuthUser = Depends(admin),
    users: UserModel = Depends(get_user_model),
):
    if await users.email_exists(body.email):
        raise ConflictError("Email already registered", code=ErrorCode.EMAIL_ALREADY_REGISTERED)

    created = await users.create(**body.model_dump())
    return SuccessResponse.create(created.to_dict(), message="User created successfully")


@router.put("/{user_id}")
async def update_user(
    user_id: int,
    body: UserUpdate,
    user: AuthUser = Depends(admin),
    users: UserModel = Depends(get_user_model),
):
    if await users.get_by_id(user_id, include_inactive=True) is None:
        raise NotFoundError("User", str(user_id))

    changes = body.model_dump(exclude_unset=True)
    if changes.get("email") and await users.email_exists(changes["email"], exclude_id=user_id):
        raise ConflictError("Email already registered", code=ErrorCode.EMAIL_ALREADY_REGISTERED)
    if user_id == user.id and (changes.get("is_active") is False or changes.get("role", "admin") != "admin"):
        raise BadRequestError("You cannot demote or deactivate your own account")

    updated = await users.update(user_id, changes)
    # Sessions hold a snapshot of the account
    if SESSION_BOUND_FIELDS.intersection(changes):
        ended = invalidate_all_sessions(user_id)
        logger.info(f"Account {user_id} changed, ended {ended} session(s)")
    return SuccessResponse.create(updated.to_dict(), message="User updated successfully")


@router.delete("/{user_id}")
async def delete_user(
    user_id: int,
    hard: bool = Query(False, description="Remove the row and the user's posts"),
    user: AuthUser = Depends(admin),
    users: UserModel = Depends(get_user_model),
):
    """Deactivate a user (or hard delete with ?hard=true) and end their sessions."""
    if user_id == user.id:
        raise BadRequestError("You cannot delete your own account")

    deleted = await users.hard_delete(user_id) if hard else await users.deactivate(user_id)
    if not deleted:
        raise NotFoundError("User", str(user_id))

    ended = invalidate_all_sessions(user_id)
    logger.info(f"{'Deleted' if hard else 'Deactivated'} user {user_id}, ended {ended} session(s)")
    return SuccessResponse.create({"id": user_id, "hard": hard}, message="User deleted successfully")
