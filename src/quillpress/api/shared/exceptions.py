"""
API Exception Classes

Custom exceptions that map to standard error responses.
"""

from typing import List, Optional

from .error_codes import ErrorCode, get_status_code
from .responses import ErrorDetail


class APIException(Exception):
    """
    Base exception for API errors.

    All custom API exceptions should inherit from this class.
    The error handler middleware will catch these and return
    standardized error responses.
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        details: Optional[List[ErrorDetail]] = None,
        trace_id: Optional[str] = None
    ):
        self.code = code
        self.message = message
        self.details = details
        self.trace_id = trace_id
        self.status_code = get_status_code(code)
        super().__init__(message)


class ValidationError(APIException):
    """
    Validation error for invalid request data.

    HTTP Status: 400
    """

    def __init__(
        self,
        message: str,
        details: Optional[List[ErrorDetail]] = None,
        trace_id: Optional[str] = None
    ):
        super().__init__(
            code=ErrorCode.VALIDATION_ERROR,
            message=message,
            details=details,
            trace_id=trace_id
        )


class NotFoundError(APIException):
    """
    Resource not found error.

    HTTP Status: 404
    """

    def __init__(
        self,
        resource: str,
        resource_id: Optional[str] = None,
        trace_id: Optional[str] = None
    ):
        message = f"{resource} not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' not found"

        # Use specific error code if available
        code_map = {
            "Post": ErrorCode.POST_NOT_FOUND,
            "Category": ErrorCode.CATEGORY_NOT_FOUND,
            "Tag": ErrorCode.TAG_NOT_FOUND,
            "User": ErrorCode.USER_NOT_FOUND,
            "Setting": ErrorCode.SETTING_NOT_FOUND,
        }
        code = code_map.get(resource, ErrorCode.NOT_FOUND)

        super().__init__(code=code, message=message, trace_id=trace_id)
        self.resource = resource
        self.resource_id = resource_id


class ConflictError(APIException):
    """
    Conflict error (e.g., duplicate email).

    HTTP Status: 409
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.CONFLICT,
        trace_id: Optional[str] = None
    ):
        super().__init__(code=code, message=message, trace_id=trace_id)


class UnauthorizedError(APIException):
    """
    Authentication required error.

    HTTP Status: 401
    """

    def __init__(
        self,
        message: str = "Authentication required",
        code: ErrorCode = ErrorCode.UNAUTHORIZED,
        trace_id: Optional[str] = None
    ):
        super().__init__(code=code, message=message, trace_id=trace_id)


class ForbiddenError(APIException):
    """
    Permission denied error.

    HTTP Status: 403
    """

    def __init__(
        self,
        message: str = "Permission denied",
        code: ErrorCode = ErrorCode.FORBIDDEN,
        trace_id: Optional[str] = None
    ):
        super().__init__(code=code, message=message, trace_id=trace_id)


class BadRequestError(APIException):
    """
    Malformed or unsupported request.

    HTTP Status: 400
    """

    def __init__(self, message: str, trace_id: Optional[str] = None):
        super().__init__(code=ErrorCode.BAD_REQUEST, message=message, trace_id=trace_id)
