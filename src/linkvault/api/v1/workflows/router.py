"""Workflow API Routes - Route registration only."""

from fastapi import APIRouter

from linkvault.api.v1 import WORKFLOWS_PREFIX
from linkvault.api.v1.workflows import api

router = APIRouter()
router.include_router(api.router, prefix=WORKFLOWS_PREFIX, tags=["Workflows"])
