"""
Schema Definition

Normalized CMS schema rendered for either dialect. Column types come
from the driver's Dialect; everything else is shared SQL.
"""

from typing import List

from .drivers.base import Dialect

# Drop order respects foreign keys
TABLES_IN_DROP_ORDER = ["post_tags", "settings", "tags", "posts", "categories", "users"]


def schema_statements(dialect: Dialect) -> List[str]:
    """
    Render CREATE TABLE / CREATE INDEX statements.

    Args:
        dialect: Target engine dialect

    Returns:
        Ordered list of DDL statements (idempotent)
    """
    pk = dialect.primary_key
    boolean = dialect.boolean_type
    ts = dialect.timestamp_type

    return [
        f"""
        CREATE TABLE IF NOT EXISTS users (
            id {pk},
            email VARCHAR(255) NOT NULL UNIQUE,
            name VARCHAR(255) NOT NULL,
            password_hash VARCHAR(255) NOT NULL,
            role VARCHAR(20) NOT NULL DEFAULT 'author'
                CHECK (role IN ('admin', 'editor', 'author')),
            avatar_url VARCHAR(500),
            is_active {boolean} NOT NULL DEFAULT TRUE,
            last_login {ts},
            created_at {ts} NOT NULL DEFAULT CURRENT_TIMESTAMP,
            updated_at {ts} NOT NULL DEFAULT CURRENT_TIMESTAMP
        )
        """,
        f"""
        CREATE TABLE IF NOT EXISTS categories (
            id {pk},
            name VARCHAR(100) NOT NULL,
            slug VARCHAR(100) NOT NULL UNIQUE,
            description TEXT,
            color VARCHAR(7) NOT NULL DEFAULT '#3b82f6',
            parent_id INTEGER REFERENCES categories(id) ON DELETE SET NULL,
            sort_order INTEGER NOT NULL DEFAULT 0,
            created_at {ts} NOT NULL DEFAULT CURRENT_TIMESTAMP,
            updated_at {ts} NOT NULL DEFAULT CURRENT_TIMESTAMP
        )
        """,
        f"""
        CREATE TABLE IF NOT EXISTS posts (
            id {pk},
            title VARCHAR(255) NOT NULL,
            slug VARCHAR(255) NOT NULL UNIQUE,
            excerpt TEXT,
            content TEXT NOT NULL,
            status VARCHAR(20) NOT NULL DEFAULT 'draft'
                CHECK (status IN ('draft', 'published', 'archived')),
            featured_image VARCHAR(500),
            author_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            category_id INTEGER REFERENCES categories(id) ON DELETE SET NULL,
            view_count INTEGER NOT NULL DEFAULT 0,
            published_at {ts},
            seo_title VARCHAR(255),
            seo_description TEXT,
            created_at {ts} NOT NULL DEFAULT CURRENT_TIMESTAMP,
            updated_at {ts} NOT NULL DEFAULT CURRENT_TIMESTAMP
        )
        """,
        f"""
        CREATE TABLE IF NOT EXISTS tags (
            id {pk},
            name VARCHAR(50) NOT NULL,
            slug VARCHAR(50) NOT NULL UNIQUE,
            created_at {ts} NOT NULL DEFAULT CURRENT_TIMESTAMP
        )
        """,
        """
        CREATE TABLE IF NOT EXISTS post_tags (
            post_id INTEGER NOT NULL REFERENCES posts(id) ON DELETE CASCADE,
            tag_id INTEGER NOT NULL REFERENCES tags(id) ON DELETE CASCADE,
            PRIMARY KEY (post_id, tag_id)
        )
        """,
        f"""
        CREATE TABLE IF NOT EXISTS settings (
            key VARCHAR(100) PRIMARY KEY,
            value TEXT,
            type VARCHAR(10) NOT NULL DEFAULT 'string'
                CHECK (type IN ('string', 'number', 'boolean', 'json')),
            description TEXT,
            updated_at {ts} NOT NULL DEFAULT CURRENT_TIMESTAMP
        )
        """,
        "CREATE INDEX IF NOT EXISTS idx_posts_status ON posts (status)",
        "CREATE INDEX IF NOT EXISTS idx_posts_category ON posts (category_id)",
        "CREATE INDEX IF NOT EXISTS idx_posts_author ON posts (author_id)",
        "CREATE INDEX IF NOT EXISTS idx_posts_published_at ON posts (published_at)",
        "CREATE INDEX IF NOT EXISTS idx_categories_parent ON categories (parent_id)",
        "CREATE INDEX IF NOT EXISTS idx_post_tags_tag ON post_tags (tag_id)",
    ]


def schema_script(dialect: Dialect) -> str:
    """Join the DDL into one script for DatabaseAdapter.execute_script."""
    return ";\n".join(s.strip() for s in schema_statements(dialect)) + ";"


def drop_script() -> str:
    """DROP TABLE statements in foreign-key order."""
    return ";\n".join(f"DROP TABLE IF EXISTS {table}" for table in TABLES_IN_DROP_ORDER) + ";"
