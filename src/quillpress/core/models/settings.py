"""
Settings Model

Typed key/value site settings. Values are stored as text alongside a
type tag (string, number, boolean, json) and parsed on read.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .base import Model, from_row, iso, utcnow

logger = logging.getLogger(__name__)

SETTING_TYPES = ("string", "number", "boolean", "json")

DEFAULT_SETTINGS = [
    ("site_name", "QuillPress", "string", "The name of your website"),
    ("site_description", "A flexible blog CMS", "string", "Description of your website"),
    ("posts_per_page", 10, "number", "Number of posts to show per page"),
    ("allow_registration", False, "boolean", "Allow new user registration"),
    ("default_post_status", "draft", "string", "Default status for new posts"),
    ("featured_posts_count", 5, "number", "Number of featured posts to show"),
    ("enable_comments", False, "boolean", "Enable comments on posts"),
    ("site_url", "http://localhost:8000", "string", "Base URL of the website"),
    ("admin_email", "admin@example.com", "string", "Administrator email address"),
    ("timezone", "UTC", "string", "Default timezone"),
]

WEBSITE_CONFIG_KEYS = (
    "site_name",
    "site_description",
    "site_url",
    "posts_per_page",
    "featured_posts_count",
    "admin_email",
    "timezone",
)

_UPSERT = """
    INSERT INTO settings (key, value, type, description, updated_at)
    VALUES (?, ?, ?, ?, ?)
    ON CONFLICT (key) DO UPDATE SET
        value = excluded.value,
        type = excluded.type,
        description = COALESCE(excluded.description, settings.description),
        updated_at = excluded.updated_at
"""


@dataclass
class Setting:
    key: str
    value: Optional[str]
    type: str = "string"
    description: Optional[str] = None
    updated_at: Any = None

    @property
    def parsed(self) -> Any:
        return parse_value(self.value, self.type)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key,
            "value": self.value,
            "type": self.type,
            "description": self.description,
            "updated_at": iso(self.updated_at),
        }


def parse_value(raw: Optional[str], setting_type: str) -> Any:
    """
    Convert a stored string to its typed value.

    Malformed numbers and JSON parse to None rather than raising.
    """
    if raw is None:
        return None
    if setting_type == "number":
        try:
            return int(raw)
        except ValueError:
            pass
        try:
            return float(raw)
        except ValueError:
            return None
    if setting_type == "boolean":
        return raw == "true"
    if setting_type == "json":
        try:
            return json.loads(raw)
        except ValueError:
            return None
    return raw


def serialize_value(value: Any, setting_type: str) -> Optional[str]:
    """Convert a typed value to its stored string."""
    if value is None:
        return None
    if setting_type == "boolean":
        if isinstance(value, str):
            return "true" if value.strip().lower() in ("true", "1", "yes", "on") else "false"
        return "true" if value else "false"
    if setting_type == "json":
        return json.dumps(value)
    return str(value)


class SettingsModel(Model):
    """Queries over settings."""

    table = "settings"

    async def get_all(self) -> List[Setting]:
        rows = await self.db.query("SELECT * FROM settings ORDER BY key ASC")
        return [from_row(Setting, row) for row in rows]

    async def get(self, key: str) -> Optional[Setting]:
        row = await self.db.query_one("SELECT * FROM settings WHERE key = ?", [key])
        return from_row(Setting, row) if row else None

    async def get_value(self, key: str, default: Any = None) -> Any:
        """Typed value for key, or default when the key is missing."""
        setting = await self.get(key)
        if setting is None:
            return default
        return setting.parsed

    async def set(
        self,
        key: str,
        value: Any,
        setting_type: str = "string",
        description: Optional[str] = None,
    ) -> None:
        """
        Insert or replace a setting.

        An omitted description keeps the existing one.
        """
        if setting_type not in SETTING_TYPES:
            raise ValueError(f"Unknown setting type: {setting_type}")
        await self._upsert(key, serialize_value(value, setting_type), setting_type, description)

    async def _upsert(self, key: str, raw: Optional[str], setting_type: str, description: Optional[str]) -> None:
        await self.db.execute(_UPSERT, [key, raw, setting_type, description, utcnow()])

    async def delete(self, key: str) -> bool:
        return await self.db.delete("DELETE FROM settings WHERE key = ?", [key]) > 0

    async def get_many(self, keys: Iterable[str]) -> Dict[str, Any]:
        """Typed values for the keys that exist."""
        keys = list(keys)
        if not keys:
            return {}
        placeholders = ", ".join("?" for _ in keys)
        rows = await self.db.query(
            f"SELECT * FROM settings WHERE key IN ({placeholders})",
            keys,
        )
        return {row["key"]: from_row(Setting, row).parsed for row in rows}

    async def set_many(self, settings: Mapping[str, Mapping[str, Any]]) -> None:
        """
        Set several settings.

        Args:
            settings: key -> {"value": ..., "type": ..., "description": ...}
        """
        for key, data in settings.items():
            await self.set(
                key,
                data.get("value"),
                data.get("type") or "string",
                data.get("description"),
            )

    async def get_all_as_dict(self) -> Dict[str, Any]:
        return {setting.key: setting.parsed for setting in await self.get_all()}

    async def initialize_defaults(self) -> int:
        """Insert any default setting that's missing; returns how many were added."""
        added = 0
        for key, value, setting_type, description in DEFAULT_SETTINGS:
            if await self.get(key) is None:
                await self.set(key, value, setting_type, description)
                added += 1
        if added:
            logger.info(f"Initialized {added} default setting(s)")
        return added

    async def get_website_config(self) -> Dict[str, Any]:
        """Commonly used settings with fallbacks for missing ones."""
        config = await self.get_many(WEBSITE_CONFIG_KEYS)
        defaults = {key: value for key, value, _, _ in DEFAULT_SETTINGS}
        return {
            key: config[key] if config.get(key) is not None else defaults[key]
            for key in WEBSITE_CONFIG_KEYS
        }

    async def backup(self) -> List[Dict[str, Any]]:
        return [setting.to_dict() for setting in await self.get_all()]

    async def restore(self, settings: Iterable[Mapping[str, Any]]) -> int:
        """
        Restore settings from backup().

        Values are written back as stored, not re-serialized.
        """
        count = 0
        for entry in settings:
            setting_type = entry.get("type") or "string"
            if setting_type not in SETTING_TYPES:
                raise ValueError(f"Unknown setting type: {setting_type}")
            raw = entry.get("value")
            await self._upsert(entry["key"], None if raw is None else str(raw), setting_type, entry.get("description"))
            count += 1
        logger.info(f"Restored {count} setting(s)")
        return count
