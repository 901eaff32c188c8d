"""Trace id context variable for logging."""

import contextvars

# Set per request by TraceIDMiddleware, read by the loguru filter
trace_id_context: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "trace_id", default=None
)
