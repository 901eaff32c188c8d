"""
API v1 endpoints.

Route prefix constants for consistent API versioning.
"""

# Routes are served at the root of the backend's own domain
API_V1_PREFIX: str = ""

# Module-specific prefixes
CONNECTIONS_PREFIX: str = f"{API_V1_PREFIX}/connections"
KEYS_PREFIX: str = f"{API_V1_PREFIX}/keys"
WORKFLOWS_PREFIX: str = f"{API_V1_PREFIX}/workflows"

__all__ = [
    "API_V1_PREFIX",
    "CONNECTIONS_PREFIX",
    "KEYS_PREFIX",
    "WORKFLOWS_PREFIX",
]
