"""Connection API Routes - Route registration only."""

from fastapi import APIRouter

from linkvault.api.v1 import CONNECTIONS_PREFIX
from linkvault.api.v1.connections import api

router = APIRouter()
router.include_router(api.router, prefix=CONNECTIONS_PREFIX, tags=["Connections"])
