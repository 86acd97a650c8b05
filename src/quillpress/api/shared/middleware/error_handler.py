"""
Global Error Handler Middleware

Catches exceptions and returns standardized error responses, including
the core (non-HTTP) errors raised by the database and auth layers.
"""

import logging
import traceback
from typing import List, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ....core.auth.hasher import HashIncompatibleError, PasswordResetRequired
from ....core.auth.service import InvalidCredentialsError
from ....core.database.errors import (
    DatabaseError,
    EnvironmentUnavailableError,
    IntegrityConstraintError,
)
from ....core.observability.context import get_trace_id
from ..error_codes import ErrorCode, get_status_code, is_server_error
from ..exceptions import APIException
from ..responses import ErrorBody, ErrorDetail

logger = logging.getLogger(__name__)


def _error_response(
    code: ErrorCode,
    message: str,
    trace_id: str,
    details: Optional[List[ErrorDetail]] = None,
    status_code: Optional[int] = None,
) -> JSONResponse:
    error_body = ErrorBody(
        code=code.value,
        message=message,
        details=details,
        trace_id=trace_id,
    )
    return JSONResponse(
        status_code=status_code or get_status_code(code),
        content={"error": error_body.model_dump(mode="json")},
    )


def register_error_handlers(app: FastAPI):
    """
    Register all error handlers on the FastAPI app.

    This function sets up exception handlers for:
    - APIException (custom API errors)
    - RequestValidationError (FastAPI validation)
    - Core auth errors (bad credentials, password reset required)
    - Core database errors (constraint violations, driver failures)
    - Generic Exception (catch-all for unexpected errors)
    """

    @app.exception_handler(APIException)
    async def api_exception_handler(request: Request, exc: APIException):
        """Handle custom API exceptions."""
        trace_id = exc.trace_id or get_trace_id()
        code = exc.code if isinstance(exc.code, ErrorCode) else ErrorCode.INTERNAL_ERROR

        log = logger.error if is_server_error(code) else logger.warning
        log(
            f"API Error: {code.value} - {exc.message}",
            extra={
                "trace_id": trace_id,
                "error_code": code.value,
                "path": request.url.path
            }
        )

        return _error_response(
            code,
            exc.message,
            trace_id,
            details=exc.details,
            status_code=exc.status_code,
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Handle FastAPI validation errors."""
        trace_id = get_trace_id()

        details = []
        for error in exc.errors():
            field = ".".join(str(loc) for loc in error["loc"])
            details.append(ErrorDetail(
                field=field,
                message=error["msg"],
                code=error["type"]
            ))

        logger.warning(
            f"Validation Error: {len(details)} field(s)",
            extra={
                "trace_id": trace_id,
                "path": request.url.path,
                "errors": [d.model_dump() for d in details]
            }
        )

        return _error_response(
            ErrorCode.VALIDATION_ERROR,
            "Request validation failed",
            trace_id,
            details=details,
        )

    @app.exception_handler(InvalidCredentialsError)
    async def invalid_credentials_handler(request: Request, exc: InvalidCredentialsError):
        return _error_response(ErrorCode.INVALID_CREDENTIALS, exc.message, get_trace_id())

    @app.exception_handler(PasswordResetRequired)
    async def password_reset_handler(request: Request, exc: PasswordResetRequired):
        """Stored hash can't be verified here; distinct from a wrong password."""
        trace_id = get_trace_id()
        logger.warning(
            f"Password reset required: {exc}",
            extra={"trace_id": trace_id, "path": request.url.path}
        )
        if isinstance(exc, HashIncompatibleError):
            message = "This account's password must be reset before it can sign in here"
        else:
            message = "This account's stored password is unreadable and must be reset"
        return _error_response(ErrorCode.PASSWORD_RESET_REQUIRED, message, trace_id)

    @app.exception_handler(IntegrityConstraintError)
    async def integrity_error_handler(request: Request, exc: IntegrityConstraintError):
        trace_id = get_trace_id()
        logger.warning(
            f"Constraint violation: {exc.message}",
            extra={"trace_id": trace_id, "path": request.url.path}
        )
        return _error_response(ErrorCode.CONFLICT, "The request conflicts with existing data", trace_id)

    @app.exception_handler(DatabaseError)
    async def database_error_handler(request: Request, exc: DatabaseError):
        trace_id = get_trace_id()
        logger.error(
            f"Database Error: {exc.message}",
            extra={
                "trace_id": trace_id,
                "path": request.url.path,
                "sql": (exc.sql or "")[:200],
            }
        )
        return _error_response(ErrorCode.DATABASE_ERROR, "A database error occurred", trace_id)

    @app.exception_handler(EnvironmentUnavailableError)
    async def environment_error_handler(request: Request, exc: EnvironmentUnavailableError):
        trace_id = get_trace_id()
        logger.error(f"Runtime unavailable: {exc}", extra={"trace_id": trace_id})
        return _error_response(ErrorCode.SERVICE_UNAVAILABLE, "Database is not configured", trace_id)

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        """Handle unexpected exceptions."""
        trace_id = get_trace_id()

        logger.error(
            f"Unhandled Exception: {type(exc).__name__}: {exc}",
            extra={
                "trace_id": trace_id,
                "path": request.url.path,
                "traceback": traceback.format_exc()
            }
        )

        # Don't expose internal details
        return _error_response(ErrorCode.INTERNAL_ERROR, "An internal error occurred", trace_id)
