"""
Tests for slug generation and the uniqueness probe.
"""

import pytest

from quillpress.core.database.errors import IntegrityConstraintError
from quillpress.core.models.slug import (
    MAX_SLUG_ATTEMPTS,
    create_with_unique_slug,
    ensure_unique_slug,
    slugify,
)


def existing(*taken):
    async def slug_exists(slug, exclude_id=None):
        return slug in taken
    return slug_exists


class TestSlugify:
    """Test slugify()."""

    @pytest.mark.parametrize("text,expected", [
        ("Hello, World!", "hello-world"),
        ("  Leading and trailing  ", "leading-and-trailing"),
        ("snake_case_title", "snake-case-title"),
        ("many   spaces -- and dashes", "many-spaces-and-dashes"),
        ("Crème brûlée", "creme-brulee"),
        ("C++ & Python 3.12", "c-python-312"),
    ])
    def test_slugify(self, text, expected):
        assert slugify(text) == expected

    def test_only_symbols_gives_empty_slug(self):
        """Callers fall back to a default when nothing survives."""
        assert slugify("!!!") == ""
        assert slugify("") == ""


class TestEnsureUniqueSlug:
    """Test the sequential probe."""

    async def test_free_slug_is_kept(self):
        assert await ensure_unique_slug(existing(), "foo") == "foo"

    async def test_probes_numeric_suffixes_in_order(self):
        slug = await ensure_unique_slug(existing("foo", "foo-1", "foo-2"), "foo")
        assert slug == "foo-3"

    async def test_gaps_are_reused(self):
        """The first free candidate wins, even below a taken one."""
        slug = await ensure_unique_slug(existing("foo", "foo-2"), "foo")
        assert slug == "foo-1"

    async def test_exclude_id_is_passed_through(self):
        seen = []

        async def slug_exists(slug, exclude_id=None):
            seen.append(exclude_id)
            return False

        await ensure_unique_slug(slug_exists, "foo", exclude_id=7)
        assert seen == [7]


class TestCreateWithUniqueSlug:
    """Test insert-and-retry on a lost slug race."""

    async def test_retries_after_integrity_error(self):
        taken = {"foo"}
        attempts = []

        async def slug_exists(slug, exclude_id=None):
            return slug in taken

        async def create(slug):
            attempts.append(slug)
            if len(attempts) == 1:
                # Another writer took foo-1 between probe and insert
                taken.add(slug)
                raise IntegrityConstraintError("UNIQUE constraint failed: posts.slug")
            return slug

        assert await create_with_unique_slug(slug_exists, "foo", create) == "foo-2"
        assert attempts == ["foo-1", "foo-2"]

    async def test_gives_up_after_max_attempts(self):
        calls = []

        async def create(slug):
            calls.append(slug)
            raise IntegrityConstraintError("UNIQUE constraint failed")

        with pytest.raises(IntegrityConstraintError):
            await create_with_unique_slug(existing(), "foo", create)
        assert len(calls) == MAX_SLUG_ATTEMPTS
