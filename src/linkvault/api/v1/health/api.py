"""
Health check endpoints.

Provides health check endpoints for monitoring service status.
"""

from fastapi import APIRouter

from linkvault import __version__
from linkvault.api.v1.health.models import HealthResponse

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """
    Health check endpoint.

    Public and unauthenticated; excluded from uvicorn access logs.

    Returns:
        Service status and version
    """
    return HealthResponse(
        status="ok", version=__version__, message="Service is healthy"
    )
