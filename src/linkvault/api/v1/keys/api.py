"""
API key vault endpoints.

Keys are accepted in plaintext once, encrypted at rest, and only ever
returned as their last four characters.
"""

from typing import Annotated

from fastapi import APIRouter, Depends

from linkvault.api.v1.keys.request import ProviderKeyRequest, SaveKeyRequest
from linkvault.api.v1.keys.response import (
    DeleteKeyResponse,
    KeySummary,
    ListKeysResponse,
    SaveKeyResponse,
    ValidateKeyResponse,
)
from linkvault.di import ApiKeyVaultDep, require_gate
from linkvault.models import ProblemDetail
from linkvault.security import GateContext, GateOptions

router = APIRouter()

SAVE_OPTIONS = GateOptions(
    rate_limit_key="api-key-save", rate_limit_max=10, audit_action="api_key_saved"
)
VALIDATE_OPTIONS = GateOptions(
    rate_limit_key="api-key-validate",
    rate_limit_max=20,
    audit_action="api_key_validated",
)
DELETE_OPTIONS = GateOptions(
    rate_limit_key="api-key-delete", rate_limit_max=10, audit_action="api_key_deleted"
)
LIST_OPTIONS = GateOptions(rate_limit_key="api-key-list", rate_limit_max=100)

SaveGate = Annotated[GateContext, Depends(require_gate(SAVE_OPTIONS))]
ValidateGate = Annotated[GateContext, Depends(require_gate(VALIDATE_OPTIONS))]
DeleteGate = Annotated[GateContext, Depends(require_gate(DELETE_OPTIONS))]
ListGate = Annotated[GateContext, Depends(require_gate(LIST_OPTIONS))]

GATE_ERRORS = {
    400: {"model": ProblemDetail},
    401: {"model": ProblemDetail},
    403: {"model": ProblemDetail},
    429: {"model": ProblemDetail},
}


@router.post("/save", response_model=SaveKeyResponse, responses=GATE_ERRORS)
async def save_key(
    body: SaveKeyRequest, gate: SaveGate, vault: ApiKeyVaultDep
) -> SaveKeyResponse:
    """
    Encrypts and stores an API key, replacing the previous one.

    Returns:
        Provider, last four characters and validity flag
    """
    stored = await vault.save(
        gate.user_id, body.provider, body.api_key, body.skip_validation
    )
    gate.resource_id = stored.provider
    gate.metadata = {"last_four": stored.last_four}
    return SaveKeyResponse(
        provider=stored.provider,
        last_four=stored.last_four,
        is_valid=stored.is_valid,
    )


@router.post(
    "/validate",
    response_model=ValidateKeyResponse,
    responses={**GATE_ERRORS, 404: {"model": ProblemDetail}},
)
async def validate_key(
    body: ProviderKeyRequest, gate: ValidateGate, vault: ApiKeyVaultDep
) -> ValidateKeyResponse:
    """
    Checks the stored key against the provider and records the result.

    Returns:
        Validity and a human-readable message
    """
    result = await vault.validate(gate.user_id, body.provider)
    gate.resource_id = result.provider
    gate.metadata = {"is_valid": result.is_valid}
    return ValidateKeyResponse(
        provider=result.provider,
        is_valid=result.is_valid,
        message=result.message,
    )


@router.post(
    "/delete",
    response_model=DeleteKeyResponse,
    responses={**GATE_ERRORS, 404: {"model": ProblemDetail}},
)
async def delete_key(
    body: ProviderKeyRequest, gate: DeleteGate, vault: ApiKeyVaultDep
) -> DeleteKeyResponse:
    """Deletes a stored key."""
    await vault.delete(gate.user_id, body.provider)
    gate.resource_id = body.provider
    return DeleteKeyResponse(provider=body.provider)


@router.get("/list", response_model=ListKeysResponse, responses=GATE_ERRORS)
async def list_keys(gate: ListGate, vault: ApiKeyVaultDep) -> ListKeysResponse:
    """Lists the user's keys, masked, ordered by provider."""
    stored = await vault.list(gate.user_id)
    return ListKeysResponse(keys=[KeySummary.from_stored(key) for key in stored])
