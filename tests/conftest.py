"""
Shared Test Fixtures

Every test gets a fresh in-memory SQLite database with the CMS schema,
so models, setup and the HTTP API run without a database server.
"""

import pytest

from quillpress.core.auth import session as session_store
from quillpress.core.auth.hasher import PasswordHasher, reset_password_hasher
from quillpress.core.auth.session import AuthUser, create_session
from quillpress.core.database import DatabaseAdapter, SqliteDriver, open_sqlite_handle
from quillpress.core.database.schema import schema_script
from quillpress.core.models import CategoryModel, PostModel, SettingsModel, TagModel, UserModel
from quillpress.core.runtime import RuntimeEnvironment, reset_runtime


@pytest.fixture(autouse=True)
def clean_process_state(monkeypatch):
    """Reset process-wide singletons and auth-related env between tests."""
    for name in ("QUILLPRESS_RUNTIME", "DATABASE_URL", "SQLITE_PATH", "ADMIN_EMAIL", "ADMIN_PASSWORD"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("AUTH_REQUIRED", "true")
    monkeypatch.setenv("ALLOW_REGISTRATION", "false")
    monkeypatch.setenv("LOG_STRUCTURED", "false")

    reset_runtime()
    reset_password_hasher()
    session_store._sessions.clear()
    yield
    reset_runtime()
    reset_password_hasher()
    session_store._sessions.clear()


@pytest.fixture
async def bare_db():
    """In-memory SQLite adapter without any tables."""
    handle = await open_sqlite_handle(":memory:")
    adapter = DatabaseAdapter(SqliteDriver(handle))
    yield adapter
    await adapter.close()


@pytest.fixture
async def db(bare_db):
    """In-memory SQLite adapter with the CMS schema."""
    await bare_db.execute_script(schema_script(bare_db.dialect))
    return bare_db


@pytest.fixture
def edge_hasher():
    return PasswordHasher(RuntimeEnvironment.EDGE)


@pytest.fixture
def server_hasher():
    # Minimum bcrypt cost keeps the suite fast
    return PasswordHasher(RuntimeEnvironment.SERVER, bcrypt_rounds=4)


@pytest.fixture
def users(db, edge_hasher):
    return UserModel(db, edge_hasher)


@pytest.fixture
def posts(db):
    return PostModel(db)


@pytest.fixture
def categories(db):
    return CategoryModel(db)


@pytest.fixture
def tags(db):
    return TagModel(db)


@pytest.fixture
def settings(db):
    return SettingsModel(db)


@pytest.fixture
async def author(users):
    return await users.create(email="author@example.com", name="Ada Author", password="password123")


@pytest.fixture
async def admin(users):
    return await users.create(
        email="admin@example.com",
        name="Alan Admin",
        password="password123",
        role="admin",
    )


@pytest.fixture
def auth_headers():
    """Build an Authorization header for a fresh session of a user."""
    def build(user) -> dict:
        session = create_session(AuthUser(id=user.id, email=user.email, name=user.name, role=user.role))
        return {"Authorization": f"Bearer {session.session_id}"}
    return build
