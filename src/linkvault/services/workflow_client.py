"""
Client for the downstream workflow engine.

Each configured workflow is a webhook URL. Calls carry a freshly minted
service token as the bearer credential; the token is used once and
discarded.
"""

from typing import Any

import httpx
from loguru import logger

from linkvault.domain.errors import NotFound, ProviderError, Unauthorized
from linkvault.domain.models import utcnow
from linkvault.services.service_token import ServiceTokenMinter


class WorkflowClient:
    """Dispatches JSON payloads to workflow webhooks on behalf of a subject."""

    def __init__(
        self,
        webhooks: dict[str, str],
        minter: ServiceTokenMinter,
        timeout: float = 10.0,
    ):
        """
        Initialize the client.

        Args:
            webhooks: Workflow name to webhook URL
            minter: Service token minter
            timeout: Timeout in seconds for each dispatch
        """
        self.webhooks = webhooks
        self.minter = minter
        self.timeout = timeout

    async def dispatch(
        self, subject_id: str, workflow: str, payload: dict[str, Any]
    ) -> dict[str, Any]:
        """
        Trigger a workflow.

        Args:
            subject_id: Subject the workflow acts for
            workflow: Configured workflow name
            payload: JSON body forwarded to the webhook

        Returns:
            The engine's JSON response (empty if it returned none)

        Raises:
            NotFound: If the workflow is not configured
            ProviderError: On timeout, transport failure or non-success status
            Unauthorized: If the engine rejected the service token
        """
        url = self.webhooks.get(workflow)
        if not url:
            raise NotFound(f"Unknown workflow: {workflow}")

        token = self.minter.mint(subject_id)
        body = {**payload, "userId": subject_id, "timestamp": utcnow().isoformat()}

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    url,
                    json=body,
                    headers={"Authorization": f"Bearer {token}"},
                )
        except httpx.TimeoutException as e:
            logger.warning(f"Workflow {workflow} timed out")
            raise ProviderError(
                "Workflow engine timed out", provider="workflow", retryable=True
            ) from e
        except httpx.HTTPError as e:
            logger.warning(f"Workflow {workflow} request failed: {e}")
            raise ProviderError(
                "Workflow engine unreachable", provider="workflow", retryable=True
            ) from e

        if not response.is_success:
            logger.error(f"Workflow {workflow} returned {response.status_code}")
            raise ProviderError(
                f"Workflow engine returned status {response.status_code}",
                provider="workflow",
            )

        try:
            result = response.json()
        except ValueError:
            result = {}
        if not isinstance(result, dict):
            result = {"result": result}

        if result.get("validated") is False:
            logger.warning(f"Workflow {workflow} rejected the service token")
            raise Unauthorized("Workflow engine rejected the service token")

        logger.info(f"Triggered workflow {workflow} for user {subject_id}")
        return result
