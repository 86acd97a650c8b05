"""
Request Context

Request-scoped trace and correlation ids, set by the HTTP trace
middleware and read by the log formatter.
"""

import contextvars
from typing import Optional
from uuid import uuid4

trace_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("trace_id", default="")
correlation_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("correlation_id", default="")


def get_trace_id() -> str:
    """Current trace id, or a fresh one outside a request."""
    return trace_id_var.get() or str(uuid4())


def current_trace_id() -> Optional[str]:
    """Current trace id, or None outside a request."""
    return trace_id_var.get() or None


def get_correlation_id() -> Optional[str]:
    return correlation_id_var.get() or None


def set_trace_id(trace_id: str) -> None:
    trace_id_var.set(trace_id)


def set_correlation_id(correlation_id: str) -> None:
    correlation_id_var.set(correlation_id)
