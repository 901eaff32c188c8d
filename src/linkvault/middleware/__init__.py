"""
Middleware to add trace_id to each request.

The trace_id allows tracking logs from the same HTTP request throughout
the entire application, facilitating debugging and observability.
"""

import re
import uuid
from collections.abc import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from linkvault.core.logging import logger
from linkvault.core.trace_context import trace_id_context

TRACE_HEADER = "X-Trace-ID"
# Upstream ids are echoed into logs, so only short opaque tokens are reused
TRACE_ID_PATTERN = re.compile(r"^[A-Za-z0-9-]{8,64}$")


class TraceIDMiddleware(BaseHTTPMiddleware):
    """
    Middleware that assigns a trace_id to each request.

    Flow:
    1. Request arrives → reuses a well-formed X-Trace-ID or generates a UUID
    2. Stores trace_id in contextvars
    3. All logs automatically include the trace_id
    4. Response includes X-Trace-ID header
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """
        Processes the request by adding trace_id.

        Args:
            request: HTTP request
            call_next: Next middleware/handler

        Returns:
            Response with X-Trace-ID header
        """
        incoming = request.headers.get(TRACE_HEADER, "")
        trace_id = incoming if TRACE_ID_PATTERN.fullmatch(incoming) else str(uuid.uuid4())
        token = trace_id_context.set(trace_id)

        logger.info(f"Request started: {request.method} {request.url.path}")

        try:
            response = await call_next(request)
            response.headers[TRACE_HEADER] = trace_id
            logger.info(
                f"Request completed: {request.method} {request.url.path} - Status: {response.status_code}",  # noqa: E501
            )
            return response

        except Exception:
            logger.exception(f"Request failed: {request.method} {request.url.path}")
            raise

        finally:
            trace_id_context.reset(token)


__all__ = ["TraceIDMiddleware"]
