"""
Application lifecycle management.

Handles startup and shutdown events for the FastAPI application.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from loguru import logger

from linkvault.config import get_settings
from linkvault.di import get_infrastructure_factory


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan context manager.

    Logs which backends are active and releases shared connections on
    shutdown.

    Args:
        app: FastAPI application instance
    """
    # Startup
    settings = get_settings()
    logger.info(" Starting linkvault...")
    logger.info(f"Application version: {app.version}")
    logger.info(
        f"Identity backend: {settings.identity_backend}, "
        f"rate limit backend: {settings.rate_limit_backend}, "
        f"audit sink: {settings.audit_sink}"
    )
    if not settings.api_key_encryption_secret:
        logger.warning("API_KEY_ENCRYPTION_SECRET is not set; key vault is disabled")
    if not settings.jwt_secret:
        logger.warning("JWT_SECRET is not set; workflow triggers are disabled")

    yield

    # Shutdown
    logger.info(" Shutting down linkvault...")
    await get_infrastructure_factory().aclose()
