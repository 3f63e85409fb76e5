"""Trace ID logging context for following one inbound message across modules.

Provides a trace_id-aware logger that attaches the sender of the message
currently being handled to every log record, so a buyer's turn (or a
supplier's reply) can be traced through the engine, matcher, broker, and
dispatcher even when many webhooks are in flight.

Usage:
    from src.logging_context import get_trace_logger, set_trace_id

    set_trace_id("+919800000001")
    logger = get_trace_logger(__name__)
    logger.info("Handling turn")  # record.trace_id == "+919800000001"
"""

import logging
from contextvars import ContextVar

_trace_id: ContextVar[str] = ContextVar("trace_id", default="NO_TRACE_ID")


def set_trace_id(trace_id: str) -> None:
    """Set the trace ID for the current async context."""
    _trace_id.set(trace_id)


def get_trace_id() -> str:
    """Retrieve the current trace ID."""
    return _trace_id.get()


class TraceIdFilter(logging.Filter):
    """Injects trace_id into every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.trace_id = _trace_id.get()  # type: ignore[attr-defined]
        return True


def get_trace_logger(name: str) -> logging.Logger:
    """Return a logger with the TraceIdFilter attached.

    The filter adds ``trace_id`` to each record so formatters can
    include ``%(trace_id)s`` in their format string.
    """
    logger = logging.getLogger(name)
    if not any(isinstance(f, TraceIdFilter) for f in logger.filters):
        logger.addFilter(TraceIdFilter())
    return logger
