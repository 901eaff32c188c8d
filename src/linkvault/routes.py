"""
Routes registration for the FastAPI application.

Centralizes all router registrations for clean application setup.
"""

from fastapi import FastAPI

from linkvault.api.v1.connections.router import router as connections_router
from linkvault.api.v1.health.router import router as health_router
from linkvault.api.v1.keys.router import router as keys_router
from linkvault.api.v1.workflows.router import router as workflows_router


def register_routes(app: FastAPI) -> None:
    """
    Register all application routers.

    Args:
        app: FastAPI application instance
    """
    # Health check endpoints (no prefix, public)
    app.include_router(health_router)

    # OAuth connections (authorize/refresh gated, callback public)
    app.include_router(connections_router)

    # API key vault (gated)
    app.include_router(keys_router)

    # Workflow triggers (gated)
    app.include_router(workflows_router)
