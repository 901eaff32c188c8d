"""
Unit tests for bearer token verifiers.
"""

import time

import httpx
import jwt
import pytest
import respx

from linkvault.domain.errors import ConfigurationError, Unauthorized
from linkvault.security import JwtIdentityVerifier, RemoteIdentityVerifier

SECRET = "identity-test-secret"
IDENTITY_URL = "https://project.identity.test"


def user_token(secret: str = SECRET, **overrides) -> str:
    now = int(time.time())
    claims = {"sub": "user-1", "aud": "authenticated", "iat": now, "exp": now + 60}
    claims.update(overrides)
    return jwt.encode({k: v for k, v in claims.items() if v is not None}, secret, algorithm="HS256")


@pytest.mark.asyncio
async def test_jwt_verifier_returns_subject():
    assert await JwtIdentityVerifier(SECRET).verify(user_token()) == "user-1"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "token",
    [
        user_token(secret="wrong-secret"),
        user_token(exp=int(time.time()) - 10),
        user_token(aud="anon"),
        user_token(sub=None),
        user_token(sub="user|admin"),
        "not-a-jwt",
    ],
)
async def test_jwt_verifier_rejects(token):
    with pytest.raises(Unauthorized):
        await JwtIdentityVerifier(SECRET).verify(token)


def test_jwt_verifier_requires_secret():
    with pytest.raises(ConfigurationError):
        JwtIdentityVerifier("")


@respx.mock
@pytest.mark.asyncio
async def test_remote_verifier_returns_user_id():
    route = respx.get(f"{IDENTITY_URL}/auth/v1/user").mock(
        return_value=httpx.Response(200, json={"id": "user-1", "email": "u@example.com"})
    )

    user_id = await RemoteIdentityVerifier(IDENTITY_URL + "/", "anon-key").verify("token-1")

    headers = route.calls.last.request.headers
    assert user_id == "user-1"
    assert headers["Authorization"] == "Bearer token-1"
    assert headers["apikey"] == "anon-key"


@respx.mock
@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [httpx.Response(401), httpx.Response(200, json={}), httpx.Response(200, text="oops")],
)
async def test_remote_verifier_rejects(response):
    respx.get(f"{IDENTITY_URL}/auth/v1/user").mock(return_value=response)

    with pytest.raises(Unauthorized):
        await RemoteIdentityVerifier(IDENTITY_URL, "anon-key").verify("token-1")


@respx.mock
@pytest.mark.asyncio
async def test_remote_verifier_unreachable_is_unauthorized():
    respx.get(f"{IDENTITY_URL}/auth/v1/user").mock(side_effect=httpx.ConnectError("down"))

    with pytest.raises(Unauthorized):
        await RemoteIdentityVerifier(IDENTITY_URL, "anon-key").verify("token-1")


def test_remote_verifier_requires_configuration():
    with pytest.raises(ConfigurationError):
        RemoteIdentityVerifier("", "")
