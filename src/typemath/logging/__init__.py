"""Structured event logging for typemath.

Provides the event schema, a filesystem NDJSON sink, and emit helpers
that never raise.
"""

from typemath.logging.events import (
    EventLevel,
    EventType,
    TypeMathEvent,
    emit,
    emit_error,
    emit_info,
    emit_warning,
    set_log_dir,
    truncate_context,
)
from typemath.logging.sink import EventSink

__all__ = [
    "EventLevel",
    "EventSink",
    "EventType",
    "TypeMathEvent",
    "emit",
    "emit_error",
    "emit_info",
    "emit_warning",
    "set_log_dir",
    "truncate_context",
]
