"""API Key API Routes - Route registration only."""

from fastapi import APIRouter

from linkvault.api.v1 import KEYS_PREFIX
from linkvault.api.v1.keys import api

router = APIRouter()
router.include_router(api.router, prefix=KEYS_PREFIX, tags=["API Keys"])
