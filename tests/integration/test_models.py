"""
Tests for the CMS domain models against SQLite.
"""

from datetime import datetime, timezone

import pytest

from quillpress.core.database import IntegrityConstraintError
from quillpress.core.models import PostQuery
from quillpress.core.models.category import CategoryQuery


async def make_post(posts, author, title, **fields):
    return await posts.create(title=title, content=f"Body of {title}", author_id=author.id, **fields)


class TestPostModel:
    """Test PostModel."""

    async def test_empty_listing(self, posts):
        items, total = await posts.get_all()
        assert items == []
        assert total == 0

    async def test_create_derives_slug_and_joins_author(self, posts, author):
        post = await make_post(posts, author, "Hello, World!")
        assert post.slug == "hello-world"
        assert post.status == "draft"
        assert post.published_at is None
        assert post.author_name == "Ada Author"
        assert post.view_count == 0

    async def test_duplicate_titles_get_suffixes(self, posts, author):
        slugs = [(await make_post(posts, author, "Foo")).slug for _ in range(4)]
        assert slugs == ["foo", "foo-1", "foo-2", "foo-3"]

    async def test_symbol_only_title_falls_back(self, posts, author):
        post = await make_post(posts, author, "???")
        assert post.slug == "post"

    async def test_publishing_stamps_published_at(self, posts, author):
        post = await make_post(posts, author, "Live", status="published")
        assert post.published_at is not None

    async def test_first_publication_keeps_original_date(self, posts, author):
        post = await make_post(posts, author, "Draft")
        published = await posts.update(post.id, {"status": "published"})
        first_stamp = published.published_at
        assert first_stamp is not None

        await posts.update(post.id, {"status": "draft"})
        republished = await posts.update(post.id, {"status": "published"})
        assert republished.published_at == first_stamp

    async def test_explicit_published_at(self, posts, author):
        when = datetime(2023, 1, 15, 9, 30, tzinfo=timezone.utc)
        post = await make_post(posts, author, "Backdated", status="published", published_at=when)
        assert post.published_at == "2023-01-15 09:30:00"

    async def test_partial_update_leaves_other_fields(self, posts, author):
        post = await make_post(posts, author, "Original", excerpt="Keep me")
        updated = await posts.update(post.id, {"title": "Renamed"})
        assert updated.title == "Renamed"
        assert updated.excerpt == "Keep me"
        assert updated.slug == "original"

    async def test_update_slug_is_made_unique(self, posts, author):
        await make_post(posts, author, "Taken")
        other = await make_post(posts, author, "Other")
        updated = await posts.update(other.id, {"slug": "Taken"})
        assert updated.slug == "taken-1"

    async def test_update_missing_post(self, posts):
        assert await posts.update(404, {"title": "x"}) is None

    async def test_filters_and_pagination(self, posts, author, categories, tags):
        news = await categories.create(name="News")
        python = await tags.create("Python")
        for i in range(5):
            await make_post(posts, author, f"Draft {i}")
        for i in range(3):
            await make_post(
                posts, author, f"Python news {i}",
                status="published", category_id=news.id, tag_ids=[python.id],
            )

        page, total = await posts.get_all(PostQuery(status="published", limit=2, page=2))
        assert total == 3
        assert len(page) == 1

        _, total = await posts.get_all(PostQuery(category_id=news.id))
        assert total == 3
        _, total = await posts.get_all(PostQuery(tag_id=python.id))
        assert total == 3
        found, total = await posts.get_all(PostQuery(search="PYTHON NEWS 1"))
        assert total == 1
        assert found[0].tags[0].name == "Python"

    async def test_sort_whitelist(self, posts, author):
        await make_post(posts, author, "B")
        await make_post(posts, author, "A")
        items, _ = await posts.get_all(PostQuery(sort="title", order="asc"))
        assert [p.title for p in items] == ["A", "B"]

        # Unknown sort keys fall back to created_at instead of reaching SQL
        items, _ = await posts.get_all(PostQuery(sort="title; DROP TABLE posts", order="asc"))
        assert len(items) == 2

    async def test_tag_set_is_replaced(self, posts, author, tags):
        a, b, c = [await tags.create(name) for name in ("A", "B", "C")]
        post = await make_post(posts, author, "Tagged", tag_ids=[a.id, b.id, a.id])
        assert [t.name for t in post.tags] == ["A", "B"]

        updated = await posts.update(post.id, {"tag_ids": [c.id]})
        assert [t.name for t in updated.tags] == ["C"]

        cleared = await posts.update(post.id, {"tag_ids": []})
        assert cleared.tags == []

    async def test_failed_tag_update_changes_nothing(self, posts, author, tags):
        alpha, beta = await tags.create("Alpha"), await tags.create("Beta")
        post = await make_post(posts, author, "Original", tag_ids=[alpha.id, beta.id])

        with pytest.raises(IntegrityConstraintError):
            await posts.update(post.id, {"title": "New", "tag_ids": [beta.id, 99999]})

        unchanged = await posts.get_by_id(post.id)
        assert unchanged.title == "Original"
        assert [t.name for t in unchanged.tags] == ["Alpha", "Beta"]

    async def test_create_with_unknown_tag_leaves_no_post(self, posts, author):
        with pytest.raises(IntegrityConstraintError):
            await make_post(posts, author, "Orphan", tag_ids=[4242])

        _, total = await posts.get_all()
        assert total == 0

    async def test_view_count_and_delete(self, posts, author):
        post = await make_post(posts, author, "Counted")
        await posts.increment_view_count(post.id)
        await posts.increment_view_count(post.id)
        assert (await posts.get_by_slug("counted")).view_count == 2

        assert await posts.delete(post.id) is True
        assert await posts.delete(post.id) is False
        assert await posts.get_by_id(post.id) is None

    async def test_stats(self, posts, author):
        assert await posts.get_stats() == {
            "total": 0, "published": 0, "draft": 0, "archived": 0, "total_views": 0,
        }
        live = await make_post(posts, author, "Live", status="published")
        await make_post(posts, author, "Draft")
        await make_post(posts, author, "Old", status="archived")
        await posts.increment_view_count(live.id)

        assert await posts.get_stats() == {
            "total": 3, "published": 1, "draft": 1, "archived": 1, "total_views": 1,
        }

    async def test_archive(self, posts, author):
        for month, day in ((1, 5), (1, 20), (3, 2)):
            await make_post(
                posts, author, f"Post {month}-{day}", status="published",
                published_at=datetime(2024, month, day, tzinfo=timezone.utc),
            )
        await make_post(posts, author, "Unpublished")

        assert await posts.get_archive() == [
            {"year": 2024, "month": 3, "count": 1},
            {"year": 2024, "month": 1, "count": 2},
        ]

    async def test_featured_and_related(self, posts, author, categories):
        news = await categories.create(name="News")
        older = await make_post(
            posts, author, "Older", status="published", category_id=news.id,
            published_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
        )
        newer = await make_post(
            posts, author, "Newer", status="published", category_id=news.id,
            published_at=datetime(2024, 6, 1, tzinfo=timezone.utc),
        )
        await make_post(posts, author, "Hidden draft", category_id=news.id)

        assert [p.id for p in await posts.get_featured(limit=5)] == [newer.id, older.id]
        assert [p.id for p in await posts.get_related(older.id)] == [newer.id]

    async def test_search_only_published(self, posts, author):
        await make_post(posts, author, "Secret draft about cats")
        await make_post(posts, author, "Public cats", status="published")
        assert [p.title for p in await posts.search("cats")] == ["Public cats"]


class TestCategoryModel:
    """Test CategoryModel."""

    async def test_create_defaults(self, categories):
        category = await categories.create(name="Tech & Science")
        assert category.slug == "tech-science"
        assert category.color == "#3b82f6"
        assert category.post_count == 0

    async def test_tree(self, categories):
        root = await categories.create(name="Root", sort_order=1)
        child = await categories.create(name="Child", parent_id=root.id)
        await categories.create(name="Grandchild", parent_id=child.id)
        await categories.create(name="Another root", sort_order=0)

        tree = await categories.get_tree()
        assert [c.name for c in tree] == ["Another root", "Root"]
        assert tree[1].children[0].name == "Child"
        assert tree[1].children[0].children[0].name == "Grandchild"

    async def test_listing_filters(self, categories):
        root = await categories.create(name="Root")
        await categories.create(name="Child", parent_id=root.id)

        roots, total = await categories.get_all(CategoryQuery(root_only=True))
        assert total == 1
        assert roots[0].name == "Root"

        children, _ = await categories.get_all(CategoryQuery(parent_id=root.id))
        assert [c.name for c in children] == ["Child"]

    async def test_post_count_only_published(self, categories, posts, author):
        news = await categories.create(name="News")
        await make_post(posts, author, "Live", status="published", category_id=news.id)
        await make_post(posts, author, "Draft", category_id=news.id)
        assert (await categories.get_by_id(news.id)).post_count == 1

    async def test_delete_detaches_posts_and_children(self, categories, posts, author):
        parent = await categories.create(name="Parent")
        child = await categories.create(name="Child", parent_id=parent.id)
        post = await make_post(posts, author, "Filed", category_id=parent.id)

        assert await categories.delete(parent.id) is True

        assert await categories.get_by_id(parent.id) is None
        assert (await categories.get_by_id(child.id)).parent_id is None
        assert (await posts.get_by_id(post.id)).category_id is None

    async def test_delete_missing(self, categories):
        assert await categories.delete(12345) is False

    async def test_reorder(self, categories):
        a = await categories.create(name="A")
        b = await categories.create(name="B")
        await categories.reorder([(a.id, 2), (b.id, 1)])
        items, _ = await categories.get_all()
        assert [c.name for c in items] == ["B", "A"]


class TestTagModel:
    """Test TagModel."""

    async def test_find_or_create_reuses_slug(self, tags):
        first = await tags.find_or_create("Machine Learning")
        again = await tags.find_or_create("machine learning")
        assert first.id == again.id

    async def test_find_or_create_many_skips_blank(self, tags):
        created = await tags.find_or_create_many(["a", "  ", "b "])
        assert [t.name for t in created] == ["a", "b"]

    async def test_symbol_only_name_falls_back(self, tags):
        first = await tags.create("!!!")
        second = await tags.create("???")
        assert (first.slug, second.slug) == ("tag", "tag-1")
        assert (await tags.find_or_create("***")).id == first.id

    async def test_missing_ids(self, tags):
        known = await tags.create("Known")
        assert await tags.missing_ids([known.id, 777, known.id, 778]) == [777, 778]
        assert await tags.missing_ids([]) == []

    async def test_popular_and_unused(self, tags, posts, author):
        used = await tags.create("Used")
        draft_only = await tags.create("Draft only")
        unused = await tags.create("Unused")
        await make_post(posts, author, "Live", status="published", tag_ids=[used.id])
        await make_post(posts, author, "Draft", tag_ids=[draft_only.id])

        assert [t.name for t in await tags.get_popular()] == ["Used"]
        assert [t.id for t in await tags.get_unused()] == [unused.id]
        assert await tags.delete_unused() == 1
        assert await tags.get_by_id(unused.id) is None

    async def test_search(self, tags):
        await tags.create("Python")
        await tags.create("Rust")
        assert [t.name for t in await tags.search("PYT")] == ["Python"]

    async def test_delete_detaches_from_posts(self, tags, posts, author):
        tag = await tags.create("Temp")
        post = await make_post(posts, author, "Tagged", tag_ids=[tag.id])
        assert await tags.delete(tag.id) is True
        assert (await posts.get_by_id(post.id)).tags == []


class TestSettingsModel:
    """Test SettingsModel."""

    async def test_typed_round_trip(self, settings):
        await settings.set("posts_per_page", 25, "number")
        await settings.set("maintenance", True, "boolean")
        await settings.set("menu", [{"label": "Home", "url": "/"}], "json")

        assert await settings.get_value("posts_per_page") == 25
        assert await settings.get_value("maintenance") is True
        assert await settings.get_value("menu") == [{"label": "Home", "url": "/"}]
        assert await settings.get_value("missing", "fallback") == "fallback"

    async def test_upsert_keeps_description(self, settings):
        await settings.set("site_name", "First", description="The site name")
        await settings.set("site_name", "Second")
        setting = await settings.get("site_name")
        assert setting.value == "Second"
        assert setting.description == "The site name"

    async def test_unknown_type(self, settings):
        with pytest.raises(ValueError):
            await settings.set("x", 1, "integer")

    async def test_defaults_are_idempotent(self, settings):
        first = await settings.initialize_defaults()
        assert first == 10
        assert await settings.initialize_defaults() == 0

    async def test_website_config_falls_back(self, settings):
        await settings.set("site_name", "My Blog")
        config = await settings.get_website_config()
        assert config["site_name"] == "My Blog"
        assert config["posts_per_page"] == 10

    async def test_backup_and_restore(self, settings):
        await settings.set("menu", {"items": []}, "json", "Navigation")
        await settings.set("posts_per_page", 5, "number")
        backup = await settings.backup()

        await settings.delete("menu")
        await settings.set("posts_per_page", 99, "number")

        assert await settings.restore(backup) == 2
        assert await settings.get_value("menu") == {"items": []}
        assert await settings.get_value("posts_per_page") == 5
        assert (await settings.get("menu")).description == "Navigation"


class TestUserModel:
    """Test UserModel."""

    async def test_email_is_normalized(self, users):
        user = await users.create(email="  Mixed@Example.COM ", name="Mixed", password="password123")
        assert user.email == "mixed@example.com"
        assert (await users.get_by_email("MIXED@example.com")).id == user.id

    async def test_hash_is_never_serialized(self, users, author):
        found = await users.get_by_email(author.email)
        assert found.password_hash.startswith("pbkdf2:")
        assert "password_hash" not in found.to_dict()
        assert "password" not in repr(found)

    async def test_deactivated_users_are_hidden(self, users, author):
        assert await users.deactivate(author.id) is True
        assert await users.get_by_id(author.id) is None
        assert await users.get_by_email(author.email) is None
        assert (await users.get_by_id(author.id, include_inactive=True)).is_active is False
        # The email stays reserved
        assert await users.email_exists(author.email) is True

    async def test_password_update_rehashes(self, users, author):
        before = await users.get_password_hash(author.id)
        await users.update(author.id, {"password": "new-password-1"})
        after = await users.get_password_hash(author.id)
        assert before != after
        assert await users.verify_password("new-password-1", after) is True

    async def test_hard_delete_cascades_posts(self, users, posts, author):
        post = await make_post(posts, author, "Doomed")
        assert await users.hard_delete(author.id) is True
        assert await posts.get_by_id(post.id) is None

    async def test_count_by_hash_format(self, users, author, db):
        await db.update("UPDATE users SET password_hash = ? WHERE id = ?", ["$2b$04$" + "x" * 53, author.id])
        await users.create(email="p@example.com", name="P", password="password123")
        await users.create(email="q@example.com", name="Q", password="password123")
        await db.insert(
            "INSERT INTO users (email, name, password_hash) VALUES (?, ?, ?)",
            ["legacy@example.com", "Legacy", "md5$abc"],
        )
        assert await users.count_by_hash_format() == {"bcrypt": 1, "pbkdf2": 2, "unknown": 1}
