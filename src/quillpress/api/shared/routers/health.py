"""
Health Check Endpoints

Provides health, readiness, and liveness endpoints for container orchestration.
"""

import os
import platform
import sys
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request, Response

from ....core.database.adapter import DatabaseAdapter
from ..dependencies import get_db

router = APIRouter(tags=["health"])


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("/health")
async def health_check() -> Dict[str, Any]:
    """
    Basic health check.

    Returns 200 if the service is running.
    """
    return {
        "status": "healthy",
        "timestamp": _now(),
        "version": os.getenv("APP_VERSION", "0.1.0"),
    }


@router.get("/health/live")
async def liveness_check() -> Dict[str, str]:
    """Liveness probe: 200 while the process is alive."""
    return {"status": "alive"}


@router.get("/health/ready")
async def readiness_check(response: Response, db: DatabaseAdapter = Depends(get_db)) -> Dict[str, Any]:
    """
    Readiness probe.

    Returns 200 if the database answers its self-test, 503 otherwise.
    """
    healthy = await db.test_connection()
    if not healthy:
        response.status_code = 503

    return {
        "status": "ready" if healthy else "not_ready",
        "checks": {"database": "healthy" if healthy else "unhealthy"},
        "timestamp": _now(),
    }


@router.get("/api/version")
async def get_version(request: Request) -> Dict[str, Any]:
    """Build version and runtime, for deployment verification."""
    return {
        "version": os.getenv("APP_VERSION", "0.1.0"),
        "commit": os.getenv("GIT_COMMIT", "unknown"),
        "runtime": request.app.state.runtime.value,
    }


@router.get("/health/detailed")
async def detailed_health_check(request: Request, db: DatabaseAdapter = Depends(get_db)) -> Dict[str, Any]:
    """
    Detailed health check with database and system information.

    Note: Should be protected in production.
    """
    database = await db.get_info() if await db.test_connection() else {"connected": False}
    return {
        "status": "healthy" if database.get("connected") else "degraded",
        "timestamp": _now(),
        "version": os.getenv("APP_VERSION", "0.1.0"),
        "runtime": request.app.state.runtime.value,
        "python_version": sys.version,
        "platform": platform.platform(),
        "database": database,
        "config": {
            "auth_required": os.getenv("AUTH_REQUIRED", "true"),
            "password_hash_format": request.app.state.hasher.native_format,
        },
    }
