#!/usr/bin/env python3
"""
QuillPress CMS API
==================

FastAPI application factory and server entry point.

Environment:
    QUILLPRESS_RUNTIME / DATABASE_URL / SQLITE_PATH - see core.runtime
    API_HOST, API_PORT - Bind address for quillpress-api (default 0.0.0.0:8000)
    CORS_ORIGINS       - Comma-separated allowed origins (default *)
"""

import argparse
import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ... import __version__
from ...core.auth.hasher import PasswordHasher
from ...core.database.config import DatabaseConfig
from ...core.database.factory import close_database, get_database
from ...core.observability import configure_logging
from ...core.runtime import RuntimeEnvironment, get_runtime
from ..shared.middleware import AuthMiddleware, TraceMiddleware, register_error_handlers
from ..shared.openapi import setup_openapi
from ..shared.routers import auth_router, health_router
from ..shared.security import SecurityMiddleware
from .routers import (
    categories_router,
    posts_router,
    settings_router,
    setup_router,
    tags_router,
    users_router,
)

logger = logging.getLogger(__name__)


def cors_origins() -> list:
    raw = os.getenv("CORS_ORIGINS", "*")
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan - startup and shutdown."""
    runtime = app.state.runtime
    logger.info(f"Starting QuillPress {__version__} ({runtime.value} runtime)")

    # Edge handles are opened per request; only the server pool lives here
    if runtime is RuntimeEnvironment.SERVER:
        await get_database(app.state.config)

    yield

    if runtime is RuntimeEnvironment.SERVER:
        await close_database()
        logger.info("Database pool closed")


def create_app(
    config: Optional[DatabaseConfig] = None,
    *,
    hasher: Optional[PasswordHasher] = None,
) -> FastAPI:
    """
    Build the application.

    Args:
        config: Database configuration (read from env if not provided)
        hasher: Password hasher (built for the detected runtime if not provided)

    Raises:
        EnvironmentUnavailableError: If no runtime can be established
    """
    config = config or DatabaseConfig()
    runtime = get_runtime(config)

    app = FastAPI(
        title="QuillPress API",
        description="REST API for the QuillPress blog CMS",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.runtime = runtime
    app.state.hasher = hasher or PasswordHasher(runtime, bcrypt_rounds=config.bcrypt_rounds)

    register_error_handlers(app)

    # Last added runs first: CORS, security headers, trace, then auth
    app.add_middleware(AuthMiddleware)
    app.add_middleware(TraceMiddleware)
    app.add_middleware(SecurityMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(posts_router)
    app.include_router(categories_router)
    app.include_router(tags_router)
    app.include_router(users_router)
    app.include_router(settings_router)
    app.include_router(setup_router)

    setup_openapi(app)
    return app


def main():
    parser = argparse.ArgumentParser(description="QuillPress API Server")
    parser.add_argument("--host", default=os.getenv("API_HOST", "0.0.0.0"), help="Host to bind to")
    parser.add_argument("--port", type=int, default=int(os.getenv("API_PORT", "8000")), help="Port to bind to")
    parser.add_argument("--reload", action="store_true", help="Enable auto-reload")
    args = parser.parse_args()

    configure_logging()
    logger.info(f"Starting QuillPress API on {args.host}:{args.port}")
    uvicorn.run(
        "quillpress.api.cms.main:create_app",
        factory=True,
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_config=None,
    )


if __name__ == "__main__":
    main()
