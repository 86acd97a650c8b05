"""
Tests for the authentication and health endpoints.
"""

import bcrypt


class TestHealth:
    async def test_health(self, client):
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    async def test_ready(self, client):
        response = await client.get("/health/ready")
        assert response.status_code == 200
        assert response.json()["checks"]["database"] == "healthy"

    async def test_version_reports_runtime(self, client):
        assert (await client.get("/api/version")).json()["runtime"] == "edge"

    async def test_trace_header_echoed(self, client):
        response = await client.get("/health", headers={"X-Trace-ID": "trace-abc"})
        assert response.headers["X-Trace-ID"] == "trace-abc"
        assert response.headers["X-Content-Type-Options"] == "nosniff"


class TestLogin:
    """POST /api/auth/login"""

    async def test_login_sets_cookie_and_token(self, client, author):
        response = await client.post(
            "/api/auth/login",
            json={"email": author.email, "password": "password123"},
        )
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["user"]["email"] == author.email
        assert response.cookies.get("quillpress_session") == data["token"]

        me = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {data['token']}"})
        assert me.status_code == 200
        assert me.json()["data"]["id"] == author.id

    async def test_cookie_session(self, client, author):
        await client.post("/api/auth/login", json={"email": author.email, "password": "password123"})
        # The client keeps the cookie
        assert (await client.get("/api/auth/me")).status_code == 200

        await client.post("/api/auth/logout")
        client.cookies.clear()
        assert (await client.get("/api/auth/me")).status_code == 401

    async def test_wrong_password(self, client, author):
        response = await client.post(
            "/api/auth/login",
            json={"email": author.email, "password": "wrong-password"},
        )
        assert response.status_code == 401
        assert response.json()["error"]["code"] == "INVALID_CREDENTIALS"

    async def test_unverifiable_hash_needs_reset(self, client, db):
        stored = bcrypt.hashpw(b"password123", bcrypt.gensalt(rounds=4)).decode()
        await db.insert(
            "INSERT INTO users (email, name, password_hash) VALUES (?, ?, ?)",
            ["server@example.com", "Server User", stored],
        )
        response = await client.post(
            "/api/auth/login",
            json={"email": "server@example.com", "password": "password123"},
        )
        assert response.status_code == 409
        assert response.json()["error"]["code"] == "PASSWORD_RESET_REQUIRED"

    async def test_validation_error(self, client):
        response = await client.post("/api/auth/login", json={"email": "not-an-email"})
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"


class TestCheck:
    async def test_anonymous(self, client):
        assert (await client.get("/api/auth/check")).json() == {"authenticated": False, "user": None}

    async def test_dev_user_when_auth_disabled(self, client, monkeypatch):
        monkeypatch.setenv("AUTH_REQUIRED", "false")
        body = (await client.get("/api/auth/check")).json()
        assert body["authenticated"] is True
        assert body["user"]["role"] == "admin"


class TestRegister:
    async def test_disabled_by_default(self, client):
        response = await client.post(
            "/api/auth/register",
            json={"email": "new@example.com", "password": "password123", "name": "New"},
        )
        assert response.status_code == 403
        assert response.json()["error"]["code"] == "REGISTRATION_DISABLED"

    async def test_register(self, client, monkeypatch):
        monkeypatch.setenv("ALLOW_REGISTRATION", "true")
        response = await client.post(
            "/api/auth/register",
            json={"email": "new@example.com", "password": "password123", "name": "New"},
        )
        assert response.status_code == 201
        assert response.json()["data"]["user"]["role"] == "author"

    async def test_duplicate_email(self, client, author, monkeypatch):
        monkeypatch.setenv("ALLOW_REGISTRATION", "true")
        response = await client.post(
            "/api/auth/register",
            json={"email": author.email, "password": "password123", "name": "Dup"},
        )
        assert response.status_code == 409
        assert response.json()["error"]["code"] == "EMAIL_ALREADY_REGISTERED"


class TestChangePassword:
    async def test_change_password(self, client, author, auth_headers):
        response = await client.post(
            "/api/auth/change-password",
            json={"current_password": "password123", "new_password": "another-pass"},
            headers=auth_headers(author),
        )
        assert response.status_code == 200

        login = await client.post(
            "/api/auth/login",
            json={"email": author.email, "password": "another-pass"},
        )
        assert login.status_code == 200

    async def test_other_sessions_end(self, client, author, auth_headers):
        current = auth_headers(author)
        elsewhere = auth_headers(author)

        response = await client.post(
            "/api/auth/change-password",
            json={"current_password": "password123", "new_password": "another-pass"},
            headers=current,
        )
        assert response.status_code == 200

        assert (await client.get("/api/auth/me", headers=current)).status_code == 200
        assert (await client.get("/api/auth/me", headers=elsewhere)).status_code == 401


class TestSessions:
    async def test_lists_own_sessions(self, client, author, admin, auth_headers):
        headers = auth_headers(author)
        auth_headers(author)
        auth_headers(admin)

        sessions = (await client.get("/api/auth/sessions", headers=headers)).json()["data"]
        assert len(sessions) == 2
        assert all("user" not in session for session in sessions)
