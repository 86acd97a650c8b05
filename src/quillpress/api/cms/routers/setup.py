"""
Database Setup Endpoints

A fresh install has no accounts, so setup is open until the schema
exists and holds at least one user. After that it needs an admin.
"""

import logging

from fastapi import APIRouter, Depends, Request

from ....core.auth.hasher import PasswordHasher
from ....core.auth.permissions import Permission, has_permission
from ....core.database.adapter import DatabaseAdapter
from ....core.models import UserModel
from ....core.setup import database_status, reset_database, setup_database
from ...shared.dependencies import get_db, get_hasher
from ...shared.exceptions import ForbiddenError, UnauthorizedError
from ...shared.middleware.auth import get_current_user
from ...shared.responses import SuccessResponse
from ..schemas import SetupRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/setup", tags=["setup"])


async def _is_bootstrapping(db: DatabaseAdapter, hasher: PasswordHasher) -> bool:
    status = await database_status(db)
    if not status["initialized"]:
        return True
    _, user_count = await UserModel(db, hasher).get_all(limit=1)
    return user_count == 0


@router.get("")
async def setup_status(db: DatabaseAdapter = Depends(get_db)):
    return SuccessResponse.create(await database_status(db))


@router.post("")
async def run_setup(
    request: Request,
    body: SetupRequest,
    db: DatabaseAdapter = Depends(get_db),
    hasher: PasswordHasher = Depends(get_hasher),
):
    """Create the schema ("setup") or drop and recreate it ("reset")."""
    if not await _is_bootstrapping(db, hasher):
        user = get_current_user(request)
        if user is None:
            raise UnauthorizedError()
        if not has_permission(user.role, Permission.SYSTEM_SETUP):
            raise ForbiddenError(f"Permission denied: {Permission.SYSTEM_SETUP.value} required")

    if body.action == "reset":
        result = await reset_database(db, hasher)
    else:
        result = await setup_database(db, hasher)

    logger.info(f"Database {body.action} finished: {result}")
    return SuccessResponse.create(result, message=f"Database {body.action} complete")
