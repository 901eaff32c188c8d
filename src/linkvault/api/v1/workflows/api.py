"""
Workflow trigger endpoint.

Forwards a JSON payload to a configured workflow webhook, authenticated
with a short-lived service token minted for the caller.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends
from pydantic import BaseModel, Field

from linkvault.di import WorkflowClientDep, require_gate
from linkvault.models import ProblemDetail
from linkvault.security import GateContext, GateOptions

router = APIRouter()

TRIGGER_OPTIONS = GateOptions(
    rate_limit_key="workflow-trigger",
    rate_limit_max=10,
    audit_action="workflow_triggered",
    resource_type="workflow",
)

TriggerGate = Annotated[GateContext, Depends(require_gate(TRIGGER_OPTIONS))]


class TriggerResponse(BaseModel):
    """Workflow engine acknowledgement."""

    success: bool = Field(default=True)
    workflow: str = Field(..., description="Workflow name")
    result: dict[str, Any] = Field(
        default_factory=dict, description="Engine response body"
    )


@router.post(
    "/{workflow}/trigger",
    response_model=TriggerResponse,
    responses={
        401: {"model": ProblemDetail},
        403: {"model": ProblemDetail},
        404: {"model": ProblemDetail},
        429: {"model": ProblemDetail},
        502: {"model": ProblemDetail},
    },
)
async def trigger_workflow(
    workflow: str,
    gate: TriggerGate,
    client: WorkflowClientDep,
    payload: Annotated[dict[str, Any] | None, Body()] = None,
) -> TriggerResponse:
    """
    Triggers a workflow for the authenticated user.

    The service token is sent to the engine only; it is not part of the
    response.
    """
    result = await client.dispatch(gate.user_id, workflow, payload or {})
    gate.resource_id = workflow
    return TriggerResponse(workflow=workflow, result=result)
