"""
Application setup utilities.

Provides common setup functions for both main.py and lambda_main.py
to avoid code duplication.
"""

from fastapi import FastAPI

from linkvault import __version__
from linkvault.config import get_settings


def add_root_endpoint(app: FastAPI) -> None:
    """
    Add root endpoint to the application.

    Args:
        app: FastAPI application instance
    """
    settings = get_settings()

    @app.get("/", include_in_schema=False)
    async def root() -> dict[str, str | None]:
        """Root endpoint with API information."""
        return {
            "message": "linkvault",
            "version": __version__,
            "docs": "/docs" if settings.enable_docs else None,
        }
