"""
Category Model

Categories form a tree through parent_id. Deleting a category never
deletes posts or subcategories: posts lose their category and children
move up to the top level.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .base import Model, from_row, iso, pick, utcnow
from .slug import create_with_unique_slug, ensure_unique_slug, slugify

logger = logging.getLogger(__name__)

DEFAULT_COLOR = "#3b82f6"

SORT_COLUMNS = {
    "sort_order": "c.sort_order",
    "name": "c.name",
    "created_at": "c.created_at",
    "post_count": "post_count",
}

UPDATABLE_COLUMNS = ("name", "slug", "description", "color", "parent_id", "sort_order")

_SELECT_CATEGORY = """
    SELECT c.*, COUNT(p.id) AS post_count
    FROM categories c
    LEFT JOIN posts p ON c.id = p.category_id AND p.status = 'published'
"""


@dataclass
class Category:
    id: int
    name: str
    slug: str
    description: Optional[str] = None
    color: str = DEFAULT_COLOR
    parent_id: Optional[int] = None
    sort_order: int = 0
    created_at: Any = None
    updated_at: Any = None
    post_count: int = 0
    children: List["Category"] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "name": self.name,
            "slug": self.slug,
            "description": self.description,
            "color": self.color,
            "parent_id": self.parent_id,
            "sort_order": self.sort_order,
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
            "post_count": int(self.post_count or 0),
        }
        if self.children:
            data["children"] = [child.to_dict() for child in self.children]
        return data


@dataclass
class CategoryQuery:
    """
    Category listing options.

    parent_id filters to one parent's children; root_only to top-level
    categories. Neither set lists everything.
    """

    page: int = 1
    limit: int = 100
    parent_id: Optional[int] = None
    root_only: bool = False
    sort: str = "sort_order"
    order: str = "asc"


class CategoryModel(Model):
    """Queries over categories."""

    table = "categories"

    async def get_all(self, query: Optional[CategoryQuery] = None) -> Tuple[List[Category], int]:
        query = query or CategoryQuery()

        where = ""
        params: List[Any] = []
        if query.root_only:
            where = "WHERE c.parent_id IS NULL"
        elif query.parent_id is not None:
            where = "WHERE c.parent_id = ?"
            params.append(query.parent_id)

        sort_column = SORT_COLUMNS.get(query.sort, SORT_COLUMNS["sort_order"])
        direction = "DESC" if (query.order or "").lower() == "desc" else "ASC"
        offset = (max(query.page, 1) - 1) * query.limit

        rows = await self.db.query(
            f"""{_SELECT_CATEGORY}
            {where}
            GROUP BY c.id
            ORDER BY {sort_column} {direction}, c.name ASC
            LIMIT ? OFFSET ?""",
            [*params, query.limit, offset],
        )
        total = await self._count(f"SELECT COUNT(*) AS count FROM categories c {where}", params)
        return [from_row(Category, row) for row in rows], total

    async def get_by_id(self, category_id: int) -> Optional[Category]:
        row = await self.db.query_one(
            f"{_SELECT_CATEGORY} WHERE c.id = ? GROUP BY c.id",
            [category_id],
        )
        return from_row(Category, row) if row else None

    async def get_by_slug(self, slug: str) -> Optional[Category]:
        row = await self.db.query_one(
            f"{_SELECT_CATEGORY} WHERE c.slug = ? GROUP BY c.id",
            [slug],
        )
        return from_row(Category, row) if row else None

    async def get_tree(self) -> List[Category]:
        """
        Build the category hierarchy.

        Returns:
            Top-level categories, each with nested children. A category
            whose parent is missing is treated as top-level.
        """
        rows = await self.db.query(
            f"""{_SELECT_CATEGORY}
            GROUP BY c.id
            ORDER BY c.sort_order ASC, c.name ASC"""
        )
        categories = [from_row(Category, row) for row in rows]
        by_id = {category.id: category for category in categories}

        roots: List[Category] = []
        for category in categories:
            parent = by_id.get(category.parent_id) if category.parent_id is not None else None
            if parent is not None:
                parent.children.append(category)
            else:
                roots.append(category)
        return roots

    async def get_children(self, parent_id: int) -> List[Category]:
        rows = await self.db.query(
            f"""{_SELECT_CATEGORY}
            WHERE c.parent_id = ?
            GROUP BY c.id
            ORDER BY c.sort_order ASC, c.name ASC""",
            [parent_id],
        )
        return [from_row(Category, row) for row in rows]

    async def create(
        self,
        *,
        name: str,
        slug: Optional[str] = None,
        description: Optional[str] = None,
        color: Optional[str] = None,
        parent_id: Optional[int] = None,
        sort_order: int = 0,
    ) -> Category:
        now = utcnow()

        async def insert(unique_slug: str) -> int:
            return await self.db.insert(
                """
                INSERT INTO categories (name, slug, description, color, parent_id, sort_order, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                [name, unique_slug, description, color or DEFAULT_COLOR, parent_id, sort_order, now, now],
            )

        base_slug = slugify(slug or name) or "category"
        category_id = await create_with_unique_slug(self.slug_exists, base_slug, insert)
        logger.info(f"Created category {category_id} ({base_slug})")

        category = await self.get_by_id(category_id)
        if category is None:
            raise LookupError(f"Category {category_id} vanished after insert")
        return category

    async def update(self, category_id: int, changes: Dict[str, Any]) -> Optional[Category]:
        """Apply a partial update; only keys present in changes are written."""
        values = pick(changes, UPDATABLE_COLUMNS)
        if not values:
            return await self.get_by_id(category_id)

        if "slug" in values:
            values["slug"] = await self.ensure_unique_slug(
                slugify(values["slug"]) or "category", exclude_id=category_id
            )

        assignments = [f"{column} = ?" for column in values] + ["updated_at = ?"]
        await self.db.update(
            f"UPDATE categories SET {', '.join(assignments)} WHERE id = ?",
            [*values.values(), utcnow(), category_id],
        )
        return await self.get_by_id(category_id)

    async def delete(self, category_id: int) -> bool:
        """
        Delete a category.

        Its posts become uncategorised and its children become top-level,
        all in one transaction.
        """
        results = await self.db.batch([
            ("UPDATE posts SET category_id = NULL WHERE category_id = ?", [category_id]),
            ("UPDATE categories SET parent_id = NULL WHERE parent_id = ?", [category_id]),
            ("DELETE FROM categories WHERE id = ?", [category_id]),
        ])
        deleted = results[-1].changes > 0
        if deleted:
            logger.info(f"Deleted category {category_id}")
        return deleted

    async def ensure_unique_slug(self, base_slug: str, exclude_id: Optional[int] = None) -> str:
        return await ensure_unique_slug(self.slug_exists, base_slug, exclude_id)

    async def get_with_post_count(self) -> List[Category]:
        """All categories, busiest first."""
        rows = await self.db.query(
            f"""{_SELECT_CATEGORY}
            GROUP BY c.id
            ORDER BY post_count DESC, c.name ASC"""
        )
        return [from_row(Category, row) for row in rows]

    async def reorder(self, orders: Sequence[Tuple[int, int]]) -> None:
        """
        Set sort_order for several categories at once.

        Args:
            orders: (category_id, sort_order) pairs
        """
        if not orders:
            return
        await self.db.batch([
            ("UPDATE categories SET sort_order = ? WHERE id = ?", [sort_order, category_id])
            for category_id, sort_order in orders
        ])
