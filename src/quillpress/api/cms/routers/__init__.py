"""
CMS API Routers
"""

from .categories import router as categories_router
from .posts import router as posts_router
from .settings import router as settings_router
from .setup import router as setup_router
from .tags import router as tags_router
from .users import router as users_router

__all__ = [
    "posts_router",
    "categories_router",
    "tags_router",
    "users_router",
    "settings_router",
    "setup_router",
]
