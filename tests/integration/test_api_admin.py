"""
Tests for the user, settings and setup endpoints.
"""

import pytest

from quillpress.api.cms.main import create_app
from quillpress.api.shared.dependencies import get_db
from quillpress.core.auth.session import get_active_sessions
from quillpress.core.database.config import DatabaseConfig
from quillpress.core.models import UserModel


class TestUsers:
    """Account management is admin only."""

    async def test_non_admin_forbidden(self, client, author, auth_headers):
        assert (await client.get("/api/users", headers=auth_headers(author))).status_code == 403

    async def test_create_and_list(self, client, admin, auth_headers):
        headers = auth_headers(admin)
        response = await client.post(
            "/api/users",
            json={"email": "writer@example.com", "name": "Writer", "password": "password123", "role": "editor"},
            headers=headers,
        )
        assert response.status_code == 201
        created = response.json()["data"]
        assert created["role"] == "editor"
        assert "password_hash" not in created

        listing = (await client.get("/api/users", headers=headers)).json()
        assert listing["meta"]["total"] == 2

    async def test_filter_by_role(self, client, admin, author, auth_headers):
        data = (await client.get("/api/users", params={"role": "author"}, headers=auth_headers(admin))).json()["data"]
        assert [found["email"] for found in data] == [author.email]

    async def test_duplicate_email(self, client, admin, author, auth_headers):
        response = await client.post(
            "/api/users",
            json={"email": author.email, "name": "Dup", "password": "password123"},
            headers=auth_headers(admin),
        )
        assert response.status_code == 409

    async def test_short_password(self, client, admin, auth_headers):
        response = await client.post(
            "/api/users",
            json={"email": "x@example.com", "name": "X", "password": "short"},
            headers=auth_headers(admin),
        )
        assert response.status_code == 400

    async def test_deactivate_ends_sessions(self, client, admin, author, auth_headers):
        author_headers = auth_headers(author)
        response = await client.delete(f"/api/users/{author.id}", headers=auth_headers(admin))
        assert response.status_code == 200

        assert get_active_sessions(author.id) == []
        assert (await client.get("/api/auth/me", headers=author_headers)).status_code == 401

        # Soft delete: the account is still there, inactive
        found = (await client.get(f"/api/users/{author.id}", headers=auth_headers(admin))).json()["data"]
        assert found["is_active"] is False

    async def test_demotion_ends_sessions(self, client, admin, users, auth_headers):
        other_admin = await users.create(
            email="second@example.com", name="Second Admin", password="password123", role="admin"
        )
        stale_headers = auth_headers(other_admin)

        response = await client.put(
            f"/api/users/{other_admin.id}", json={"role": "author"}, headers=auth_headers(admin)
        )
        assert response.status_code == 200
        assert get_active_sessions(other_admin.id) == []
        assert (await client.get("/api/users", headers=stale_headers)).status_code == 401

    async def test_rename_keeps_sessions(self, client, admin, author, auth_headers):
        author_headers = auth_headers(author)
        await client.put(f"/api/users/{author.id}", json={"name": "Ada Renamed"}, headers=auth_headers(admin))
        assert (await client.get("/api/auth/me", headers=author_headers)).status_code == 200

    async def test_hard_delete(self, client, admin, author, auth_headers):
        headers = auth_headers(admin)
        response = await client.delete(f"/api/users/{author.id}", params={"hard": "true"}, headers=headers)
        assert response.status_code == 200
        assert (await client.get(f"/api/users/{author.id}", headers=headers)).status_code == 404

    async def test_cannot_delete_self(self, client, admin, auth_headers):
        response = await client.delete(f"/api/users/{admin.id}", headers=auth_headers(admin))
        assert response.status_code == 400

    async def test_hash_formats(self, client, admin, auth_headers):
        data = (await client.get("/api/users/hash-formats", headers=auth_headers(admin))).json()["data"]
        assert data == {"native": "pbkdf2", "counts": {"bcrypt": 0, "pbkdf2": 1, "unknown": 0}}


class TestSettings:
    async def test_public_site_config(self, client, settings):
        await settings.set("site_name", "My Blog")
        data = (await client.get("/api/settings/site")).json()["data"]
        assert data["site_name"] == "My Blog"
        assert data["posts_per_page"] == 10

    async def test_management_needs_admin(self, client, author, auth_headers):
        assert (await client.get("/api/settings")).status_code == 401
        assert (await client.get("/api/settings", headers=auth_headers(author))).status_code == 403

    async def test_put_and_get(self, client, admin, auth_headers):
        headers = auth_headers(admin)
        response = await client.put(
            "/api/settings/posts_per_page",
            json={"value": 20, "type": "number", "description": "Page size"},
            headers=headers,
        )
        assert response.json()["data"]["value"] == "20"

        setting = (await client.get("/api/settings/posts_per_page", headers=headers)).json()["data"]
        assert setting["type"] == "number"

    async def test_bulk_update(self, client, admin, auth_headers):
        response = await client.put(
            "/api/settings",
            json={
                "enable_comments": {"value": True, "type": "boolean"},
                "menu": {"value": ["home", "about"], "type": "json"},
            },
            headers=auth_headers(admin),
        )
        assert response.json()["data"] == {"enable_comments": True, "menu": ["home", "about"]}

    async def test_typed_listing(self, client, admin, settings, auth_headers):
        await settings.set("posts_per_page", 25, "number")
        await settings.set("enable_comments", True, "boolean")
        data = (await client.get("/api/settings", params={"typed": "true"}, headers=auth_headers(admin))).json()["data"]
        assert data == {"enable_comments": True, "posts_per_page": 25}

    async def test_backup_restore(self, client, admin, settings, auth_headers):
        headers = auth_headers(admin)
        await settings.set("site_name", "Before")
        backup = (await client.get("/api/settings/backup", headers=headers)).json()["data"]

        await settings.set("site_name", "After")
        response = await client.post("/api/settings/restore", json=backup, headers=headers)
        assert response.json()["data"] == {"restored": 1}
        assert await settings.get_value("site_name") == "Before"

    async def test_delete_missing(self, client, admin, auth_headers):
        response = await client.delete("/api/settings/nope", headers=auth_headers(admin))
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "SETTING_NOT_FOUND"


class TestSetup:
    """Setup is open on a fresh install and admin-only afterwards."""

    @pytest.fixture
    def app(self, bare_db, edge_hasher):
        application = create_app(DatabaseConfig(runtime="edge", sqlite_path=":memory:"), hasher=edge_hasher)

        async def override_get_db():
            yield bare_db

        application.dependency_overrides[get_db] = override_get_db
        return application

    async def test_fresh_install(self, client, monkeypatch):
        monkeypatch.setenv("ADMIN_PASSWORD", "first-admin-pass")

        status = (await client.get("/api/setup")).json()["data"]
        assert status["initialized"] is False

        response = await client.post("/api/setup", json={"action": "setup"})
        assert response.status_code == 200
        assert response.json()["data"]["admin_created"] is True

        login = await client.post(
            "/api/auth/login",
            json={"email": "admin@example.com", "password": "first-admin-pass"},
        )
        assert login.status_code == 200

    async def test_locked_after_install(self, client, bare_db, edge_hasher, monkeypatch, auth_headers):
        monkeypatch.setenv("ADMIN_PASSWORD", "first-admin-pass")
        await client.post("/api/setup", json={"action": "setup"})

        assert (await client.post("/api/setup", json={"action": "reset"})).status_code == 401

        admin = await UserModel(bare_db, edge_hasher).get_by_email("admin@example.com")
        response = await client.post("/api/setup", json={"action": "reset"}, headers=auth_headers(admin))
        assert response.status_code == 200

    async def test_unknown_action(self, client):
        assert (await client.post("/api/setup", json={"action": "drop"})).status_code == 400
