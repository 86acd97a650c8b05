"""
Shared API Middleware

Provides cross-cutting concerns for all API endpoints:
- Error handling with standardized responses
- Trace ID propagation for log correlation
- Authentication and session management
"""

from .auth import (
    AuthMiddleware,
    get_current_user,
    is_auth_required,
    require_auth,
    require_permission,
)
from .error_handler import register_error_handlers
from .trace import TraceMiddleware

__all__ = [
    # Error handling
    "register_error_handlers",
    # Trace
    "TraceMiddleware",
    # Auth
    "AuthMiddleware",
    "get_current_user",
    "is_auth_required",
    "require_auth",
    "require_permission",
]
