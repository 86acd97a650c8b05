"""
Integration Test Fixtures
"""

import pytest
from httpx import ASGITransport, AsyncClient

from quillpress.api.cms.main import create_app
from quillpress.api.shared.dependencies import get_db
from quillpress.core.database.config import DatabaseConfig


@pytest.fixture
def app(db, edge_hasher):
    """CMS app on the edge runtime, every request sharing the test database."""
    application = create_app(
        DatabaseConfig(runtime="edge", sqlite_path=":memory:"),
        hasher=edge_hasher,
    )

    async def override_get_db():
        yield db

    application.dependency_overrides[get_db] = override_get_db
    return application


@pytest.fixture
async def client(app):
    """Create async test client."""
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
