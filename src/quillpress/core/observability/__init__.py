"""
Observability: structured logging and request trace context.
"""

from .context import (
    get_correlation_id,
    get_trace_id,
    set_correlation_id,
    set_trace_id,
)
from .logging import StructuredFormatter, TraceContextFilter, configure_logging

__all__ = [
    "configure_logging",
    "StructuredFormatter",
    "TraceContextFilter",
    "get_trace_id",
    "get_correlation_id",
    "set_trace_id",
    "set_correlation_id",
]
