"""
Standard API Response Models

Provides consistent response shapes across all endpoints.
"""

from datetime import datetime, timezone
from typing import Any, Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field

from ...core.observability.context import get_correlation_id, get_trace_id

T = TypeVar("T")


def _utcnow() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(timezone.utc)


class ResponseMeta(BaseModel):
    """Metadata included in all responses."""

    trace_id: str = Field(default_factory=get_trace_id)
    correlation_id: Optional[str] = None
    timestamp: datetime = Field(default_factory=_utcnow)


class SuccessResponse(BaseModel, Generic[T]):
    """
    Standard success response wrapper.

    Response shape:
    {
        "data": { ... },
        "message": "Post created",
        "meta": {
            "trace_id": "abc-123",
            "timestamp": "2026-01-19T12:00:00Z"
        }
    }
    """

    data: T
    message: Optional[str] = None
    meta: ResponseMeta = Field(default_factory=ResponseMeta)

    @classmethod
    def create(
        cls,
        data: T,
        message: Optional[str] = None,
        trace_id: Optional[str] = None,
    ) -> "SuccessResponse[T]":
        meta = ResponseMeta(
            trace_id=trace_id or get_trace_id(),
            correlation_id=get_correlation_id(),
        )
        return cls(data=data, message=message, meta=meta)


class ListMeta(ResponseMeta):
    """Metadata for list responses with page-based pagination."""

    total: int = 0
    page: int = 1
    limit: int = 10
    pages: int = 0
    has_next: bool = False
    has_prev: bool = False


class ListResponse(BaseModel, Generic[T]):
    """
    Standard list response with pagination.

    Response shape:
    {
        "data": [ ... ],
        "meta": {
            "total": 42,
            "page": 2,
            "limit": 10,
            "pages": 5,
            "has_next": true,
            "has_prev": true,
            "trace_id": "abc-123"
        }
    }
    """

    data: List[T]
    meta: ListMeta

    @classmethod
    def create(
        cls,
        data: List[T],
        total: int,
        page: int = 1,
        limit: int = 10,
        trace_id: Optional[str] = None,
    ) -> "ListResponse[T]":
        pages = (total + limit - 1) // limit if limit > 0 else 0
        meta = ListMeta(
            trace_id=trace_id or get_trace_id(),
            correlation_id=get_correlation_id(),
            total=total,
            page=page,
            limit=limit,
            pages=pages,
            has_next=page < pages,
            has_prev=page > 1,
        )
        return cls(data=data, meta=meta)


class ErrorDetail(BaseModel):
    """Detailed error information for validation errors."""

    field: Optional[str] = None
    message: str
    code: Optional[str] = None


class ErrorBody(BaseModel):
    """Error body with code, message, and details."""

    code: str
    message: str
    details: Optional[List[ErrorDetail]] = None
    trace_id: str = Field(default_factory=get_trace_id)
    timestamp: datetime = Field(default_factory=_utcnow)


class ErrorResponse(BaseModel):
    """
    Standard error response.

    Response shape:
    {
        "error": {
            "code": "VALIDATION_ERROR",
            "message": "Human-readable error message",
            "details": [...],
            "trace_id": "abc-123",
            "timestamp": "2026-01-19T12:00:00Z"
        }
    }
    """

    error: ErrorBody

    @classmethod
    def create(
        cls,
        code: str,
        message: str,
        details: Optional[List[ErrorDetail]] = None,
        trace_id: Optional[str] = None,
    ) -> "ErrorResponse":
        return cls(
            error=ErrorBody(
                code=code,
                message=message,
                details=details,
                trace_id=trace_id or get_trace_id(),
            )
        )


def paginated(items: List[Any], total: int, page: int, limit: int) -> ListResponse:
    """ListResponse of serialized records."""
    return ListResponse.create(
        data=[item.to_dict() for item in items],
        total=total,
        page=page,
        limit=limit,
    )
