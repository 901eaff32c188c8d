"""
Loguru configuration for the application.

Every record carries the trace id of the request that produced it, and
standard library loggers (uvicorn, httpx, redis) are routed through
loguru so the whole service logs in one format.
"""

import logging
import sys
from typing import Any

from loguru import logger

from linkvault.config import settings
from linkvault.core.trace_context import trace_id_context
from linkvault.core.uvicorn_filters import HealthCheckFilter


def add_trace_id(record: dict[str, Any]) -> bool:
    """
    Adds the trace_id to the log record.

    Args:
        record: Loguru record

    Returns:
        True to indicate that the filter passed
    """
    trace_id = trace_id_context.get()
    record["extra"]["trace_id"] = trace_id if trace_id else "N/A"
    return True


def configure_logger() -> None:
    """Replace loguru's default handler with the configured stderr sink."""
    logger.remove()

    logger.add(
        sink=sys.stderr,
        level=settings.log_level.upper(),
        format=settings.log_format,
        filter=add_trace_id,
        colorize=True,
        serialize=False,
        backtrace=True,
        # Variable values in tracebacks could include tokens or API keys
        diagnose=settings.debug,
        enqueue=settings.logger_enqueue,
    )


configure_logger()


__all__ = ["logger", "InterceptHandler", "intercept_standard_logging"]


class InterceptHandler(logging.Handler):
    """Handler to redirect standard logging records to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        """
        Redirects a standard logging record to loguru.

        Args:
            record: logging.LogRecord record
        """
        loguru_logger = logger.opt(depth=6, exception=record.exc_info)
        loguru_logger.log(record.levelname, record.getMessage())


def intercept_standard_logging() -> None:
    """
    Configures redirection of standard logging to loguru.

    Intercepts logs from uvicorn, httpx, redis and fastapi. Health check
    hits are dropped from the uvicorn access log.

    Call this function in main.py when initializing the app.
    """
    logging.basicConfig(handlers=[InterceptHandler()], level=logging.INFO)

    for logger_name in [
        "uvicorn",
        "uvicorn.access",
        "uvicorn.error",
        "httpx",
        "redis",
        "fastapi",
    ]:
        logging_logger = logging.getLogger(logger_name)
        logging_logger.handlers = [InterceptHandler()]
        logging_logger.propagate = False

    logging.getLogger("uvicorn.access").addFilter(HealthCheckFilter())

    # httpx logs full URLs at INFO; some provider calls carry secrets in the query
    logging.getLogger("httpx").setLevel(logging.WARNING)
