"""OpenAPI schema customization for the linkvault API."""

from typing import Any

from fastapi import FastAPI
from fastapi.openapi.utils import get_openapi


def custom_openapi(app: FastAPI) -> dict[str, Any]:
    """Generate customized OpenAPI schema for the API.

    Args:
        app: The FastAPI application instance.

    Returns:
        Customized OpenAPI schema dictionary.
    """
    if app.openapi_schema:
        return app.openapi_schema

    openapi_schema = get_openapi(
        title="linkvault API",
        version=app.version,
        description="""
# linkvault API

Connected social accounts and an encrypted API key vault for automation
workflows.

## Features

- **Account connections**: OAuth 2.0 for TikTok (PKCE), Facebook, Instagram,
  LinkedIn and Google, with long-lived token exchange where the provider has one
- **Token refresh**: Stored tokens are refreshed shortly before they expire
- **API key vault**: AES-256-GCM encryption at rest, validation probes
- **Workflow triggers**: Calls to the workflow engine carry a five-minute
  service token

## Security gate

Every endpoint except `/health` and the provider callbacks runs through:

1. **Origin check**: `Origin` (or `Referer`) must match an allowed origin
2. **Bearer authentication**: `Authorization: Bearer <user token>`
3. **Rate limit**: fixed 15-minute window per user and action
4. **Audit**: successful privileged calls are recorded

## API Endpoints

### Connections
- `GET /connections/{provider}/authorize` - Get authorization URL
- `GET /connections/{provider}/callback` - Provider redirect target (popup page)
- `POST /connections/{provider}/refresh` - Refresh the stored access token

### API Keys
- `POST /keys/save` - Encrypt and store a key
- `POST /keys/validate` - Probe the provider with the stored key
- `POST /keys/delete` - Delete a stored key
- `GET /keys/list` - List keys (last four characters only)

### Workflows
- `POST /workflows/{workflow}/trigger` - Trigger a workflow

## Error Handling

All errors follow [RFC 7807 Problem Details](https://datatracker.ietf.org/doc/html/rfc7807) format:

```json
{
  "type": "https://datatracker.ietf.org/doc/html/rfc6585#section-4",
  "title": "Rate Limit Exceeded",
  "status": 429,
  "detail": "Rate Limit Exceeded",
  "instance": "/keys/validate",
  "code": "rate_limited",
  "error": "Rate Limit Exceeded",
  "resetIn": 873
}
```
        """,
        routes=app.routes,
        license_info={
            "name": "MIT License",
            "url": "https://opensource.org/licenses/MIT",
        },
    )

    # Add custom tags metadata
    openapi_schema["tags"] = [
        {
            "name": "Health",
            "description": "Health check endpoints for monitoring",
        },
        {
            "name": "Connections",
            "description": "OAuth 2.0 account connections and token refresh",
        },
        {
            "name": "API Keys",
            "description": "Encrypted storage and validation of provider API keys",
        },
        {
            "name": "Workflows",
            "description": "Workflow engine triggers",
        },
    ]

    # Add security schemes
    openapi_schema.setdefault("components", {})["securitySchemes"] = {
        "BearerAuth": {
            "type": "http",
            "scheme": "bearer",
            "bearerFormat": "JWT",
            "description": "User access token issued by the identity service",
        },
    }

    # Add RFC 7807 error response to all endpoints
    for path in openapi_schema["paths"].values():
        for operation in path.values():
            if isinstance(operation, dict) and "responses" in operation:
                operation["responses"]["500"] = {
                    "description": "Internal Server Error",
                    "content": {
                        "application/json": {
                            "schema": {"$ref": "#/components/schemas/ProblemDetail"}
                        }
                    },
                }

    app.openapi_schema = openapi_schema
    return app.openapi_schema


def configure_openapi(app: FastAPI) -> None:
    """Configure the FastAPI app to use custom OpenAPI schema.

    Args:
        app: The FastAPI application instance.
    """
    app.openapi = lambda: custom_openapi(app)  # type: ignore[method-assign]
