"""
Tag Model

Flat tags and the post_tags association. A post's tag set is replaced
wholesale on every write rather than diffed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional, Tuple

from .base import Model, from_row, iso
from .slug import create_with_unique_slug, ensure_unique_slug, slugify

logger = logging.getLogger(__name__)

_TAG_WITH_COUNT = """
    SELECT t.*, COUNT(p.id) AS post_count
    FROM tags t
    LEFT JOIN post_tags pt ON t.id = pt.tag_id
    LEFT JOIN posts p ON pt.post_id = p.id AND p.status = 'published'
"""


@dataclass
class Tag:
    """Tag record."""

    id: int
    name: str
    slug: str
    created_at: Any = None
    post_count: Optional[int] = None

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "name": self.name,
            "slug": self.slug,
            "created_at": iso(self.created_at),
        }
        if self.post_count is not None:
            data["post_count"] = int(self.post_count)
        return data


class TagModel(Model):
    """Queries over tags and post_tags."""

    table = "tags"

    async def get_all(self, page: int = 1, limit: int = 100) -> Tuple[List[Tag], int]:
        """Get tags with published-post counts, most used first."""
        offset = (page - 1) * limit
        rows = await self.db.query(
            f"""{_TAG_WITH_COUNT}
            GROUP BY t.id
            ORDER BY post_count DESC, t.name ASC
            LIMIT ? OFFSET ?""",
            [limit, offset],
        )
        total = await self._count("SELECT COUNT(*) AS count FROM tags")
        return [from_row(Tag, row) for row in rows], total

    async def get_by_id(self, tag_id: int) -> Optional[Tag]:
        row = await self.db.query_one(
            f"{_TAG_WITH_COUNT} WHERE t.id = ? GROUP BY t.id",
            [tag_id],
        )
        return from_row(Tag, row) if row else None

    async def get_by_slug(self, slug: str) -> Optional[Tag]:
        row = await self.db.query_one(
            f"{_TAG_WITH_COUNT} WHERE t.slug = ? GROUP BY t.id",
            [slug],
        )
        return from_row(Tag, row) if row else None

    async def get_by_post_id(self, post_id: int) -> List[Tag]:
        """Get the tags attached to a post, alphabetically."""
        rows = await self.db.query(
            """
            SELECT t.*
            FROM tags t
            INNER JOIN post_tags pt ON t.id = pt.tag_id
            WHERE pt.post_id = ?
            ORDER BY t.name ASC
            """,
            [post_id],
        )
        return [from_row(Tag, row) for row in rows]

    async def get_popular(self, limit: int = 20) -> List[Tag]:
        """Tags ordered by number of published posts (unused tags omitted)."""
        rows = await self.db.query(
            """
            SELECT t.*, COUNT(p.id) AS post_count
            FROM tags t
            INNER JOIN post_tags pt ON t.id = pt.tag_id
            INNER JOIN posts p ON pt.post_id = p.id AND p.status = 'published'
            GROUP BY t.id
            HAVING COUNT(p.id) > 0
            ORDER BY post_count DESC, t.name ASC
            LIMIT ?
            """,
            [limit],
        )
        return [from_row(Tag, row) for row in rows]

    async def search(self, query: str, limit: int = 10) -> List[Tag]:
        """Case-insensitive substring search on tag names."""
        rows = await self.db.query(
            f"""{_TAG_WITH_COUNT}
            WHERE LOWER(t.name) LIKE ?
            GROUP BY t.id
            ORDER BY post_count DESC, t.name ASC
            LIMIT ?""",
            [f"%{query.lower()}%", limit],
        )
        return [from_row(Tag, row) for row in rows]

    async def create(self, name: str, slug: Optional[str] = None) -> Tag:
        """Create a tag under a unique slug (derived from name if not given)."""
        async def insert(unique_slug: str) -> int:
            return await self.db.insert(
                "INSERT INTO tags (name, slug) VALUES (?, ?)",
                [name, unique_slug],
            )

        tag_id = await create_with_unique_slug(self.slug_exists, slugify(slug or name) or "tag", insert)
        tag = await self.get_by_id(tag_id)
        if tag is None:
            raise LookupError(f"Tag {tag_id} vanished after insert")
        return tag

    async def update(self, tag_id: int, name: str, slug: str) -> Optional[Tag]:
        await self.db.update(
            "UPDATE tags SET name = ?, slug = ? WHERE id = ?",
            [name, slug, tag_id],
        )
        return await self.get_by_id(tag_id)

    async def delete(self, tag_id: int) -> bool:
        """Delete a tag and detach it from every post."""
        await self.db.delete("DELETE FROM post_tags WHERE tag_id = ?", [tag_id])
        return await self.db.delete("DELETE FROM tags WHERE id = ?", [tag_id]) > 0

    async def ensure_unique_slug(self, base_slug: str, exclude_id: Optional[int] = None) -> str:
        return await ensure_unique_slug(self.slug_exists, base_slug, exclude_id)

    async def find_or_create(self, name: str) -> Tag:
        """Find a tag by the slug of its name, creating it if missing."""
        slug = slugify(name) or "tag"
        row = await self.db.query_one("SELECT * FROM tags WHERE slug = ?", [slug])
        if row:
            return from_row(Tag, row)
        return await self.create(name, slug)

    async def find_or_create_many(self, names: Iterable[str]) -> List[Tag]:
        tags = []
        for name in names:
            if name.strip():
                tags.append(await self.find_or_create(name.strip()))
        return tags

    def post_tag_statements(self, post_id: int, tag_ids: Iterable[int]) -> List[Tuple[str, List[Any]]]:
        """
        Statements replacing a post's tag set, for use inside a batch.

        All existing associations are deleted and the new set inserted;
        duplicate ids in tag_ids are collapsed.
        """
        unique_ids = list(dict.fromkeys(int(t) for t in tag_ids))
        statements: List[Tuple[str, List[Any]]] = [
            ("DELETE FROM post_tags WHERE post_id = ?", [post_id]),
        ]
        if unique_ids:
            values_sql = ", ".join("(?, ?)" for _ in unique_ids)
            params: List[Any] = []
            for tag_id in unique_ids:
                params.extend([post_id, tag_id])
            statements.append((f"INSERT INTO post_tags (post_id, tag_id) VALUES {values_sql}", params))
        return statements

    async def set_post_tags(self, post_id: int, tag_ids: Iterable[int]) -> None:
        """Replace a post's tag set in one transaction."""
        tag_ids = list(tag_ids)
        await self.db.batch(self.post_tag_statements(post_id, tag_ids))
        logger.debug(f"Post {post_id} tags set to {tag_ids}")

    async def missing_ids(self, tag_ids: Iterable[int]) -> List[int]:
        """The ids in tag_ids that match no tag."""
        unique_ids = list(dict.fromkeys(int(t) for t in tag_ids))
        if not unique_ids:
            return []
        placeholders = ", ".join("?" for _ in unique_ids)
        rows = await self.db.query(f"SELECT id FROM tags WHERE id IN ({placeholders})", unique_ids)
        found = {int(row["id"]) for row in rows}
        return [tag_id for tag_id in unique_ids if tag_id not in found]

    async def remove_from_post(self, post_id: int, tag_id: int) -> bool:
        return await self.db.delete(
            "DELETE FROM post_tags WHERE post_id = ? AND tag_id = ?",
            [post_id, tag_id],
        ) > 0

    async def get_unused(self) -> List[Tag]:
        """Tags attached to no post."""
        rows = await self.db.query(
            """
            SELECT t.*
            FROM tags t
            LEFT JOIN post_tags pt ON t.id = pt.tag_id
            WHERE pt.tag_id IS NULL
            ORDER BY t.name ASC
            """
        )
        return [from_row(Tag, row) for row in rows]

    async def delete_unused(self) -> int:
        """Delete tags attached to no post; returns how many went."""
        return await self.db.delete(
            "DELETE FROM tags WHERE id NOT IN (SELECT DISTINCT tag_id FROM post_tags)"
        )
