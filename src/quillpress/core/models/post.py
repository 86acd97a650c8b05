"""
Post Model

Posts with their author, category and tags. Listing supports filtering
by status, category, author, tag and a free-text search, with a
whitelisted sort column.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..database.errors import DatabaseError
from .base import Model, from_row, iso, pick, utcnow
from .slug import create_with_unique_slug, ensure_unique_slug, slugify
from .tag import Tag, TagModel

logger = logging.getLogger(__name__)

POST_STATUSES = ("draft", "published", "archived")

SORT_COLUMNS = {
    "created_at": "p.created_at",
    "updated_at": "p.updated_at",
    "published_at": "p.published_at",
    "title": "p.title",
    "view_count": "p.view_count",
}

UPDATABLE_COLUMNS = (
    "title",
    "slug",
    "excerpt",
    "content",
    "status",
    "featured_image",
    "category_id",
    "published_at",
    "seo_title",
    "seo_description",
)

_SELECT_POST = """
    SELECT
        p.*,
        u.name AS author_name,
        u.email AS author_email,
        c.name AS category_name,
        c.slug AS category_slug,
        c.color AS category_color
    FROM posts p
    LEFT JOIN users u ON p.author_id = u.id
    LEFT JOIN categories c ON p.category_id = c.id
"""


@dataclass
class Post:
    """Post record joined with author and category display fields."""

    id: int
    title: str
    slug: str
    content: str
    author_id: int
    status: str = "draft"
    excerpt: Optional[str] = None
    featured_image: Optional[str] = None
    category_id: Optional[int] = None
    view_count: int = 0
    published_at: Any = None
    seo_title: Optional[str] = None
    seo_description: Optional[str] = None
    created_at: Any = None
    updated_at: Any = None
    author_name: Optional[str] = None
    author_email: Optional[str] = None
    category_name: Optional[str] = None
    category_slug: Optional[str] = None
    category_color: Optional[str] = None
    tags: List[Tag] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "slug": self.slug,
            "excerpt": self.excerpt,
            "content": self.content,
            "status": self.status,
            "featured_image": self.featured_image,
            "author_id": self.author_id,
            "category_id": self.category_id,
            "view_count": self.view_count,
            "published_at": iso(self.published_at),
            "seo_title": self.seo_title,
            "seo_description": self.seo_description,
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
            "author_name": self.author_name,
            "author_email": self.author_email,
            "category_name": self.category_name,
            "category_slug": self.category_slug,
            "category_color": self.category_color,
            "tags": [tag.to_dict() for tag in self.tags],
        }


@dataclass
class PostQuery:
    """Listing filters; None means "don't filter"."""

    page: int = 1
    limit: int = 10
    status: Optional[str] = None
    category_id: Optional[int] = None
    author_id: Optional[int] = None
    tag_id: Optional[int] = None
    search: Optional[str] = None
    sort: str = "created_at"
    order: str = "desc"


class PostModel(Model):
    """Queries over posts."""

    table = "posts"

    def __init__(self, db):
        super().__init__(db)
        self.tags = TagModel(db)

    async def _hydrate(self, rows: Sequence[Dict[str, Any]]) -> List[Post]:
        posts = []
        for row in rows:
            post = from_row(Post, row)
            post.tags = await self.tags.get_by_post_id(post.id)
            posts.append(post)
        return posts

    async def get_all(self, query: Optional[PostQuery] = None) -> Tuple[List[Post], int]:
        """
        List posts.

        Args:
            query: Filters, sort and paging (defaults: newest first, 10 per page)

        Returns:
            (posts for the page, total matching posts)
        """
        query = query or PostQuery()

        conditions: List[str] = []
        params: List[Any] = []

        if query.status:
            conditions.append("p.status = ?")
            params.append(query.status)
        if query.category_id is not None:
            conditions.append("p.category_id = ?")
            params.append(query.category_id)
        if query.author_id is not None:
            conditions.append("p.author_id = ?")
            params.append(query.author_id)
        if query.tag_id is not None:
            conditions.append(
                "EXISTS (SELECT 1 FROM post_tags pt WHERE pt.post_id = p.id AND pt.tag_id = ?)"
            )
            params.append(query.tag_id)
        if query.search:
            term = f"%{query.search.lower()}%"
            conditions.append(
                "(LOWER(p.title) LIKE ? OR LOWER(p.content) LIKE ? OR LOWER(p.excerpt) LIKE ?)"
            )
            params.extend([term, term, term])

        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""

        # Unknown sort keys fall back rather than reaching the SQL text
        sort_column = SORT_COLUMNS.get(query.sort, SORT_COLUMNS["created_at"])
        direction = "ASC" if (query.order or "").lower() == "asc" else "DESC"

        page = max(query.page, 1)
        offset = (page - 1) * query.limit

        rows = await self.db.query(
            f"""{_SELECT_POST}
            {where}
            ORDER BY {sort_column} {direction}, p.id {direction}
            LIMIT ? OFFSET ?""",
            [*params, query.limit, offset],
        )
        total = await self._count(
            f"SELECT COUNT(*) AS count FROM posts p {where}",
            params,
        )
        return await self._hydrate(rows), total

    async def get_by_id(self, post_id: int) -> Optional[Post]:
        row = await self.db.query_one(f"{_SELECT_POST} WHERE p.id = ?", [post_id])
        if not row:
            return None
        return (await self._hydrate([row]))[0]

    async def get_by_slug(self, slug: str) -> Optional[Post]:
        row = await self.db.query_one(f"{_SELECT_POST} WHERE p.slug = ?", [slug])
        if not row:
            return None
        return (await self._hydrate([row]))[0]

    async def get_published(self, page: int = 1, limit: int = 10) -> Tuple[List[Post], int]:
        """Published posts, newest publication first."""
        return await self.get_all(PostQuery(
            page=page,
            limit=limit,
            status="published",
            sort="published_at",
            order="desc",
        ))

    async def get_featured(self, limit: int = 5) -> List[Post]:
        """Latest published posts for the front page."""
        posts, _ = await self.get_published(page=1, limit=limit)
        return posts

    async def get_related(self, post_id: int, limit: int = 3) -> List[Post]:
        """Published posts sharing the post's category or any of its tags."""
        rows = await self.db.query(
            f"""{_SELECT_POST}
            WHERE p.status = 'published' AND p.id != ?
            AND (
                p.category_id = (SELECT category_id FROM posts WHERE id = ?)
                OR EXISTS (
                    SELECT 1 FROM post_tags pt
                    WHERE pt.post_id = p.id
                    AND pt.tag_id IN (SELECT tag_id FROM post_tags WHERE post_id = ?)
                )
            )
            ORDER BY p.published_at DESC
            LIMIT ?""",
            [post_id, post_id, post_id, limit],
        )
        return await self._hydrate(rows)

    async def create(
        self,
        *,
        title: str,
        content: str,
        author_id: int,
        slug: Optional[str] = None,
        excerpt: Optional[str] = None,
        status: str = "draft",
        featured_image: Optional[str] = None,
        category_id: Optional[int] = None,
        published_at: Optional[datetime] = None,
        seo_title: Optional[str] = None,
        seo_description: Optional[str] = None,
        tag_ids: Optional[Sequence[int]] = None,
    ) -> Post:
        """
        Create a post.

        The slug is derived from the title when not given and made unique
        with -1, -2, ... suffixes. Publishing without a published_at stamps
        the current time.
        """
        now = utcnow()
        if status == "published" and published_at is None:
            published_at = now

        async def insert(unique_slug: str) -> int:
            return await self.db.insert(
                """
                INSERT INTO posts (
                    title, slug, excerpt, content, status, featured_image,
                    author_id, category_id, published_at, seo_title, seo_description,
                    created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                [
                    title, unique_slug, excerpt, content, status, featured_image,
                    author_id, category_id, published_at, seo_title, seo_description,
                    now, now,
                ],
            )

        base_slug = slugify(slug or title) or "post"
        post_id = await create_with_unique_slug(self.slug_exists, base_slug, insert)

        if tag_ids:
            try:
                await self.tags.set_post_tags(post_id, tag_ids)
            except DatabaseError:
                await self.db.delete("DELETE FROM posts WHERE id = ?", [post_id])
                raise

        logger.info(f"Created post {post_id} ({status})")
        post = await self.get_by_id(post_id)
        if post is None:
            raise LookupError(f"Post {post_id} vanished after insert")
        return post

    async def update(self, post_id: int, changes: Dict[str, Any]) -> Optional[Post]:
        """
        Apply a partial update.

        Args:
            post_id: Post to change
            changes: Column -> value for present fields only; "tag_ids"
                replaces the tag set

        Returns:
            Updated post, or None if it doesn't exist
        """
        values = pick(changes, UPDATABLE_COLUMNS)

        if "slug" in values:
            values["slug"] = await self.ensure_unique_slug(
                slugify(values["slug"]) or "post", exclude_id=post_id
            )

        assignments = [f"{column} = ?" for column in values]
        params: List[Any] = list(values.values())

        # First publication stamps published_at unless one was given
        if values.get("status") == "published" and "published_at" not in values:
            assignments.append("published_at = COALESCE(published_at, ?)")
            params.append(utcnow())

        statements: List[Tuple[str, List[Any]]] = []
        if assignments:
            assignments.append("updated_at = ?")
            params.append(utcnow())
            statements.append((
                f"UPDATE posts SET {', '.join(assignments)} WHERE id = ?",
                [*params, post_id],
            ))

        if "tag_ids" in changes and changes["tag_ids"] is not None:
            statements.extend(self.tags.post_tag_statements(post_id, changes["tag_ids"]))

        # Column changes and the tag set land together or not at all
        if statements:
            await self.db.batch(statements)

        return await self.get_by_id(post_id)

    async def delete(self, post_id: int) -> bool:
        await self.db.delete("DELETE FROM post_tags WHERE post_id = ?", [post_id])
        deleted = await self.db.delete("DELETE FROM posts WHERE id = ?", [post_id])
        if deleted:
            logger.info(f"Deleted post {post_id}")
        return deleted > 0

    async def increment_view_count(self, post_id: int) -> None:
        await self.db.update(
            "UPDATE posts SET view_count = view_count + 1 WHERE id = ?",
            [post_id],
        )

    async def ensure_unique_slug(self, base_slug: str, exclude_id: Optional[int] = None) -> str:
        return await ensure_unique_slug(self.slug_exists, base_slug, exclude_id)

    async def get_stats(self) -> Dict[str, int]:
        """Post counts by status plus total views."""
        row = await self.db.query_one(
            """
            SELECT
                COUNT(*) AS total,
                COALESCE(SUM(CASE WHEN status = 'published' THEN 1 ELSE 0 END), 0) AS published,
                COALESCE(SUM(CASE WHEN status = 'draft' THEN 1 ELSE 0 END), 0) AS draft,
                COALESCE(SUM(CASE WHEN status = 'archived' THEN 1 ELSE 0 END), 0) AS archived,
                COALESCE(SUM(view_count), 0) AS total_views
            FROM posts
            """
        )
        row = row or {}
        return {
            key: int(row.get(key) or 0)
            for key in ("total", "published", "draft", "archived", "total_views")
        }

    async def search(self, query: str, limit: int = 10) -> List[Post]:
        """Search published posts by title, content or excerpt."""
        posts, _ = await self.get_all(PostQuery(
            limit=limit,
            status="published",
            search=query,
            sort="published_at",
        ))
        return posts

    async def get_archive(self) -> List[Dict[str, int]]:
        """Published post counts per (year, month), newest first."""
        year = self.db.dialect.year("published_at")
        month = self.db.dialect.month("published_at")
        rows = await self.db.query(
            f"""
            SELECT {year} AS year, {month} AS month, COUNT(*) AS count
            FROM posts
            WHERE status = 'published' AND published_at IS NOT NULL
            GROUP BY {year}, {month}
            ORDER BY year DESC, month DESC
            """
        )
        return [
            {"year": int(row["year"]), "month": int(row["month"]), "count": int(row["count"])}
            for row in rows
        ]
