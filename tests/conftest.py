"""Global pytest configuration and fixtures for all tests."""

import json
import os
import tempfile
import time

import jwt
import pytest
from fastapi.testclient import TestClient

from linkvault.config import get_settings
from linkvault.di import clear_dependency_caches

IDENTITY_SECRET = "test-identity-secret-for-user-tokens-only"
APP_ORIGIN = "http://localhost:3000"
WORKFLOW_URL = "https://workflows.example.test/webhook/post-now"


@pytest.fixture(scope="session", autouse=True)
def set_test_env_vars():
    """
    Set environment variables for testing.

    This fixture runs automatically before any tests and provides
    dummy provider credentials and secrets so tests don't fail due to
    missing configuration.

    These are NOT real credentials - just placeholders for testing.
    """
    # Store original values to restore after tests
    original_env = {}
    base_dir = tempfile.mkdtemp(prefix="linkvault-tests-")

    test_env_vars = {
        # Server secrets
        "SECRET_KEY": "test-secret-key-minimum-32-characters-long-for-testing",
        "API_KEY_ENCRYPTION_SECRET": "test-encryption-secret-at-least-32-characters",
        "JWT_SECRET": "test-service-token-secret-for-workflows",
        "ENABLE_DOCS": "false",  # Keep docs disabled in tests
        # Identity: verify user tokens locally
        "IDENTITY_BACKEND": "jwt",
        "IDENTITY_JWT_SECRET": IDENTITY_SECRET,
        "IDENTITY_JWT_AUDIENCE": "authenticated",
        # Origins
        "ALLOWED_ORIGINS": f"{APP_ORIGIN},https://app.example.test",
        "APP_ORIGIN": APP_ORIGIN,
        "BASE_APP_URI": "http://localhost:8000",
        # Infrastructure (in-process stores, log audit sink)
        "RATE_LIMIT_BACKEND": "memory",
        "AUDIT_SINK": "log",
        "INFRASTRUCTURE_BASE_DIR": base_dir,
        "AUDIT_LOG_PATH": os.path.join(base_dir, "audit.jsonl"),
        # Provider credentials (dummy values for testing)
        "TIKTOK_CLIENT_KEY": "test-tiktok-client-key",
        "TIKTOK_CLIENT_SECRET": "test-tiktok-client-secret",
        "FACEBOOK_APP_ID": "test-facebook-app-id",
        "FACEBOOK_APP_SECRET": "test-facebook-app-secret",
        "INSTAGRAM_APP_ID": "test-instagram-app-id",
        "INSTAGRAM_APP_SECRET": "test-instagram-app-secret",
        "LINKEDIN_CLIENT_ID": "test-linkedin-client-id",
        "LINKEDIN_CLIENT_SECRET": "test-linkedin-client-secret",
        "GOOGLE_CLIENT_ID": "test-google-client-id.apps.googleusercontent.com",
        "GOOGLE_CLIENT_SECRET": "GOCSPX-test-secret-for-testing-only",
        # Workflow engine
        "WORKFLOW_WEBHOOKS": json.dumps({"post-now": WORKFLOW_URL}),
    }

    # Set test environment variables
    for key, value in test_env_vars.items():
        original_env[key] = os.environ.get(key)
        os.environ[key] = value

    get_settings.cache_clear()

    yield

    # Restore original environment after all tests
    for key, original_value in original_env.items():
        if original_value is None:
            os.environ.pop(key, None)
        else:
            os.environ[key] = original_value


@pytest.fixture(autouse=True)
def isolated_infrastructure(tmp_path, monkeypatch):
    """
    Give every test its own storage directory and fresh collaborators.

    Rate limit counters and nonces live in the cached factory, so clearing
    the caches also resets them.
    """
    monkeypatch.setenv("INFRASTRUCTURE_BASE_DIR", str(tmp_path / "store"))
    monkeypatch.setenv("AUDIT_LOG_PATH", str(tmp_path / "audit.jsonl"))
    get_settings.cache_clear()
    clear_dependency_caches()

    yield tmp_path

    get_settings.cache_clear()
    clear_dependency_caches()


@pytest.fixture
def make_user_token():
    """Build HS256 user tokens the way the identity service issues them."""

    def _make(subject: str = "user-1", expires_in: int = 3600, **claims) -> str:
        now = int(time.time())
        payload = {
            "sub": subject,
            "aud": "authenticated",
            "iat": now,
            "exp": now + expires_in,
            **claims,
        }
        return jwt.encode(payload, IDENTITY_SECRET, algorithm="HS256")

    return _make


@pytest.fixture
def auth_headers(make_user_token):
    """Headers that pass the origin check and authentication."""
    return {
        "Authorization": f"Bearer {make_user_token('user-1')}",
        "Origin": APP_ORIGIN,
    }


@pytest.fixture
def client():
    """Create test client."""
    from linkvault.application import create_app

    return TestClient(create_app())
