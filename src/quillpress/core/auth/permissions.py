"""
Permissions System

Role-based access control. Roles are ordered admin > editor > author:
authors manage their own posts, editors manage all content, admins also
manage users, settings and the schema.
"""

from enum import Enum
from typing import Any, Dict, Set


class Permission(str, Enum):
    """Available permissions."""

    # Posts
    POSTS_READ = "posts:read"
    POSTS_WRITE = "posts:write"
    POSTS_EDIT_ANY = "posts:edit_any"
    POSTS_DELETE_ANY = "posts:delete_any"

    # Taxonomy
    CATEGORIES_WRITE = "categories:write"
    TAGS_WRITE = "tags:write"

    # Admin
    USERS_MANAGE = "users:manage"
    SETTINGS_MANAGE = "settings:manage"
    SYSTEM_SETUP = "system:setup"


ROLE_LEVELS: Dict[str, int] = {
    "author": 1,
    "editor": 2,
    "admin": 3,
}

_AUTHOR = {Permission.POSTS_READ, Permission.POSTS_WRITE, Permission.TAGS_WRITE}
_EDITOR = _AUTHOR | {
    Permission.POSTS_EDIT_ANY,
    Permission.POSTS_DELETE_ANY,
    Permission.CATEGORIES_WRITE,
}
_ADMIN = _EDITOR | {
    Permission.USERS_MANAGE,
    Permission.SETTINGS_MANAGE,
    Permission.SYSTEM_SETUP,
}

# Role to permissions mapping
ROLE_PERMISSIONS: Dict[str, Set[Permission]] = {
    "admin": _ADMIN,
    "editor": _EDITOR,
    "author": _AUTHOR,
}


def get_permissions_for_role(role: str) -> Set[Permission]:
    return ROLE_PERMISSIONS.get(role, set())


def has_permission(role: str, permission: Permission) -> bool:
    """
    Check if a role has a specific permission.

    Args:
        role: Role name
        permission: Permission to check

    Returns:
        True if role has the permission
    """
    return permission in get_permissions_for_role(role)


def has_role(role: str, minimum: str) -> bool:
    """Whether role ranks at or above minimum; unknown roles rank below everything."""
    return ROLE_LEVELS.get(role, 0) >= ROLE_LEVELS.get(minimum, 0) > 0


def can_edit_post(user: Any, post: Any) -> bool:
    """Authors may edit their own posts; editors and admins any post."""
    if has_permission(user.role, Permission.POSTS_EDIT_ANY):
        return True
    return has_permission(user.role, Permission.POSTS_WRITE) and post.author_id == user.id


def can_delete_post(user: Any, post: Any) -> bool:
    if has_permission(user.role, Permission.POSTS_DELETE_ANY):
        return True
    return has_permission(user.role, Permission.POSTS_WRITE) and post.author_id == user.id
