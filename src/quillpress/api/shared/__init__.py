"""
Shared API Utilities

Common responses, errors, middleware and routers for all API endpoints.
"""

from .error_codes import (
    ErrorCode,
    get_status_code,
    is_server_error,
)
from .exceptions import (
    APIException,
    BadRequestError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from .middleware import (
    AuthMiddleware,
    TraceMiddleware,
    register_error_handlers,
)
from .responses import (
    ErrorBody,
    ErrorDetail,
    ErrorResponse,
    ListMeta,
    ListResponse,
    ResponseMeta,
    SuccessResponse,
)

__all__ = [
    # Responses
    "ResponseMeta",
    "SuccessResponse",
    "ListMeta",
    "ListResponse",
    "ErrorDetail",
    "ErrorBody",
    "ErrorResponse",
    # Error codes
    "ErrorCode",
    "get_status_code",
    "is_server_error",
    # Exceptions
    "APIException",
    "BadRequestError",
    "ConflictError",
    "ForbiddenError",
    "NotFoundError",
    "UnauthorizedError",
    "ValidationError",
    # Middleware
    "AuthMiddleware",
    "TraceMiddleware",
    "register_error_handlers",
]
