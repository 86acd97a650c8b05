"""
Slug Generation

URL slugs shared by posts, categories and tags, plus the sequential
uniqueness probe (slug, slug-1, slug-2, ...).
"""

import logging
import re
import unicodedata
from typing import Awaitable, Callable, Optional, TypeVar

from ..database.errors import IntegrityConstraintError

logger = logging.getLogger(__name__)

T = TypeVar("T")

_DISALLOWED = re.compile(r"[^a-z0-9\s_-]")
_SEPARATORS = re.compile(r"[\s_-]+")

# Bound on insert retries after losing a slug race
MAX_SLUG_ATTEMPTS = 5


def slugify(text: str) -> str:
    """
    Generate a slug from free text.

    "Hello, World!" -> "hello-world"; "Crème brûlée" -> "creme-brulee"
    """
    normalized = unicodedata.normalize("NFKD", text or "")
    ascii_text = normalized.encode("ascii", "ignore").decode("ascii")
    slug = _DISALLOWED.sub("", ascii_text.lower().strip())
    slug = _SEPARATORS.sub("-", slug)
    return slug.strip("-")


async def ensure_unique_slug(
    slug_exists: Callable[[str, Optional[int]], Awaitable[bool]],
    base_slug: str,
    exclude_id: Optional[int] = None,
) -> str:
    """
    Probe base_slug, base_slug-1, base_slug-2, ... until one is free.

    Args:
        slug_exists: Model lookup (slug, exclude_id) -> bool
        base_slug: Desired slug
        exclude_id: Row being updated (its own slug doesn't count)

    Returns:
        First unused candidate
    """
    slug = base_slug
    counter = 1
    while await slug_exists(slug, exclude_id):
        slug = f"{base_slug}-{counter}"
        counter += 1
    return slug


async def create_with_unique_slug(
    slug_exists: Callable[[str, Optional[int]], Awaitable[bool]],
    base_slug: str,
    create: Callable[[str], Awaitable[T]],
) -> T:
    """
    Insert a row under a unique slug.

    The probe alone leaves a window between "slug free" and "slug
    inserted"; the UNIQUE constraint closes it and a violation re-probes.

    Args:
        slug_exists: Model lookup (slug, exclude_id) -> bool
        base_slug: Desired slug
        create: Coroutine inserting the row with the chosen slug

    Returns:
        Whatever create returns
    """
    last_error: Optional[IntegrityConstraintError] = None
    for _ in range(MAX_SLUG_ATTEMPTS):
        slug = await ensure_unique_slug(slug_exists, base_slug)
        try:
            return await create(slug)
        except IntegrityConstraintError as e:
            logger.warning(f"Slug '{slug}' taken concurrently, retrying")
            last_error = e
    raise last_error
