"""
Request Dependencies

Resolves the database adapter for the process runtime and builds the
domain models on top of it.

SERVER runtime: the process-wide pooled adapter.
EDGE runtime: a fresh adapter per request, closed when the response is done.
"""

from typing import AsyncIterator

from fastapi import Depends, Request

from ...core.auth.hasher import PasswordHasher
from ...core.auth.service import AuthService
from ...core.database.adapter import DatabaseAdapter
from ...core.database.factory import edge_database, get_database
from ...core.models import CategoryModel, PostModel, SettingsModel, TagModel, UserModel
from ...core.runtime import RuntimeEnvironment


async def get_db(request: Request) -> AsyncIterator[DatabaseAdapter]:
    """Yield the adapter for this request."""
    config = request.app.state.config
    if request.app.state.runtime is RuntimeEnvironment.SERVER:
        yield await get_database(config)
    else:
        async with edge_database(config) as db:
            yield db


def get_hasher(request: Request) -> PasswordHasher:
    return request.app.state.hasher


def get_post_model(db: DatabaseAdapter = Depends(get_db)) -> PostModel:
    return PostModel(db)


def get_category_model(db: DatabaseAdapter = Depends(get_db)) -> CategoryModel:
    return CategoryModel(db)


def get_tag_model(db: DatabaseAdapter = Depends(get_db)) -> TagModel:
    return TagModel(db)


def get_settings_model(db: DatabaseAdapter = Depends(get_db)) -> SettingsModel:
    return SettingsModel(db)


def get_user_model(
    db: DatabaseAdapter = Depends(get_db),
    hasher: PasswordHasher = Depends(get_hasher),
) -> UserModel:
    return UserModel(db, hasher)


def get_auth_service(users: UserModel = Depends(get_user_model)) -> AuthService:
    return AuthService(users)
