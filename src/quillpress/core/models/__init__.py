"""
Domain models for the CMS.

Each model wraps a DatabaseAdapter; construct one per adapter (per
request under the edge runtime).

Usage:
    from quillpress.core.models import PostModel, PostQuery

    posts, total = await PostModel(db).get_all(PostQuery(status="published"))
"""

from .category import Category, CategoryModel, CategoryQuery
from .post import Post, PostModel, PostQuery
from .settings import Setting, SettingsModel
from .slug import create_with_unique_slug, ensure_unique_slug, slugify
from .tag import Tag, TagModel
from .user import User, UserModel

__all__ = [
    "Category",
    "CategoryModel",
    "CategoryQuery",
    "Post",
    "PostModel",
    "PostQuery",
    "Setting",
    "SettingsModel",
    "Tag",
    "TagModel",
    "User",
    "UserModel",
    "create_with_unique_slug",
    "ensure_unique_slug",
    "slugify",
]
