"""
Security Middleware and Utilities

Response hardening headers and client address resolution.
"""

import os
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
}


class SecurityMiddleware(BaseHTTPMiddleware):
    """Adds security headers to every response and hides the server header."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)

        if "server" in response.headers:
            del response.headers["server"]

        return response


def trust_proxy_headers() -> bool:
    return os.getenv("TRUST_PROXY", "false").lower() == "true"


def get_client_ip(request: Request) -> str:
    """
    Get the client IP address for a request.

    X-Forwarded-For / X-Real-IP are honoured only with TRUST_PROXY=true,
    since any client can send them.
    """
    if trust_proxy_headers():
        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded:
            # First IP in the chain
            return forwarded.split(",")[0].strip()

        real_ip = request.headers.get("X-Real-IP")
        if real_ip:
            return real_ip

    if request.client:
        return request.client.host

    return "unknown"
