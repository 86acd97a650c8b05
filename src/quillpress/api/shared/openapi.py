"""
OpenAPI Schema Configuration

Adds the API overview, tag descriptions and the session security schemes
to the generated schema.
"""

from typing import Any, Dict

from fastapi import FastAPI
from fastapi.openapi.utils import get_openapi

from ... import __version__
from ...core.auth.session import SESSION_COOKIE_NAME

DESCRIPTION = """
# QuillPress API

JSON API for a blog CMS: posts, categories, tags, users and site settings.

## Authentication

Log in with `POST /api/auth/login`. The session id comes back both as the
`quillpress_session` cookie and as `data.token`, which can be sent as
`Authorization: Bearer <token>`.

In development mode (`AUTH_REQUIRED=false`), requests without a session
act as an admin.

## Response Format

Success: `{"data": ..., "message": ..., "meta": {"trace_id", "timestamp"}}`.
Lists add `total`, `page`, `limit`, `pages`, `has_next`, `has_prev` to `meta`.
Errors: `{"error": {"code", "message", "details", "trace_id", "timestamp"}}`.

## Tracing

Send `X-Trace-ID` / `X-Correlation-ID` to correlate logs; both are echoed
back on every response.
"""

TAGS = [
    {"name": "health", "description": "Health and readiness checks"},
    {"name": "auth", "description": "Authentication and session management"},
    {"name": "posts", "description": "Blog posts"},
    {"name": "categories", "description": "Hierarchical categories"},
    {"name": "tags", "description": "Post tags"},
    {"name": "users", "description": "Account management (admin)"},
    {"name": "settings", "description": "Site settings"},
    {"name": "setup", "description": "Schema creation and reset"},
]


def customize_openapi(app: FastAPI) -> Dict[str, Any]:
    """
    Build (once) and cache the customized OpenAPI schema.

    Call this in your FastAPI app:
        app.openapi = lambda: customize_openapi(app)
    """
    if app.openapi_schema:
        return app.openapi_schema

    openapi_schema = get_openapi(
        title="QuillPress API",
        version=__version__,
        description=DESCRIPTION,
        routes=app.routes,
        tags=TAGS,
    )

    components = openapi_schema.setdefault("components", {})
    components["securitySchemes"] = {
        "sessionAuth": {
            "type": "apiKey",
            "in": "cookie",
            "name": SESSION_COOKIE_NAME,
            "description": "Session cookie obtained from /api/auth/login",
        },
        "bearerAuth": {
            "type": "http",
            "scheme": "bearer",
            "description": "Session token obtained from /api/auth/login",
        },
    }

    app.openapi_schema = openapi_schema
    return app.openapi_schema


def setup_openapi(app: FastAPI) -> None:
    app.openapi = lambda: customize_openapi(app)
