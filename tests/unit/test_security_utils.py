"""
Unit tests for security utilities.

Tests OAuth state signing, verification and subject id checks.
"""

import pytest
from itsdangerous import URLSafeTimedSerializer

from linkvault.domain.errors import InvalidState
from linkvault.utils.security import (
    STATE_SALT,
    generate_nonce,
    is_valid_subject_id,
    sign_state,
    verify_state,
)

SECRET = "unit-test-state-secret-with-32-characters"


def test_generate_nonce():
    """Test nonce generation produces unique random strings."""
    # Act
    nonces = {generate_nonce() for _ in range(5)}

    # Assert
    assert len(nonces) == 5
    assert all(len(nonce) >= 40 for nonce in nonces)


@pytest.mark.parametrize(
    "subject_id",
    ["user-1", "0f8fad5b-d9cb-469f-a165-70867728950e", "a.b_c-d"],
)
def test_is_valid_subject_id_accepts_identifiers(subject_id):
    """Test UUIDs and slug ids are accepted."""
    assert is_valid_subject_id(subject_id) is True


@pytest.mark.parametrize(
    "subject_id",
    ["", "user|admin", "../etc", "user 1", "-leading", None, 12345, "x" * 200],
)
def test_is_valid_subject_id_rejects_malformed(subject_id):
    """Test delimiters, paths and non-strings are rejected."""
    assert is_valid_subject_id(subject_id) is False


def test_sign_and_verify_state():
    """Test a signed state decodes to its subject, provider and nonce."""
    # Arrange
    token = sign_state("user-1", "google", "nonce-123", secret_key=SECRET)

    # Act
    payload = verify_state(token, secret_key=SECRET)

    # Assert
    assert payload["sub"] == "user-1"
    assert payload["provider"] == "google"
    assert payload["nonce"] == "nonce-123"
    assert "cv" not in payload


def test_sign_state_carries_code_verifier():
    """Test the PKCE verifier travels inside the state."""
    token = sign_state(
        "user-1", "tiktok", "nonce-123", code_verifier="v" * 43, secret_key=SECRET
    )

    assert verify_state(token, secret_key=SECRET)["cv"] == "v" * 43


def test_verify_state_rejects_tampered_token():
    """Test a modified token fails signature verification."""
    token = sign_state("user-1", "google", "nonce-123", secret_key=SECRET)
    tampered = token[:-2] + ("AA" if token[-2:] != "AA" else "BB")

    with pytest.raises(InvalidState, match="signature"):
        verify_state(tampered, secret_key=SECRET)


def test_verify_state_rejects_other_key():
    """Test a token signed with another key is rejected."""
    token = sign_state("user-1", "google", "nonce-123", secret_key=SECRET)

    with pytest.raises(InvalidState):
        verify_state(token, secret_key="another-secret-of-sufficient-length!!")


def test_verify_state_rejects_expired_token():
    """Test max_age is enforced."""
    token = sign_state("user-1", "google", "nonce-123", secret_key=SECRET)

    with pytest.raises(InvalidState, match="expired"):
        verify_state(token, max_age=-1, secret_key=SECRET)


def test_verify_state_rejects_unknown_version():
    """Test payloads of another version are rejected."""
    serializer = URLSafeTimedSerializer(SECRET, salt=STATE_SALT)
    token = serializer.dumps({"v": 99, "sub": "user-1", "nonce": "n"})

    with pytest.raises(InvalidState, match="version"):
        verify_state(token, secret_key=SECRET)


def test_verify_state_rejects_malformed_subject():
    """Test a signed but ill-formed subject id is rejected."""
    serializer = URLSafeTimedSerializer(SECRET, salt=STATE_SALT)
    token = serializer.dumps({"v": 1, "sub": "user|admin", "nonce": "n"})

    with pytest.raises(InvalidState, match="user id"):
        verify_state(token, secret_key=SECRET)


def test_verify_state_requires_nonce():
    """Test a payload without a nonce is rejected."""
    serializer = URLSafeTimedSerializer(SECRET, salt=STATE_SALT)
    token = serializer.dumps({"v": 1, "sub": "user-1"})

    with pytest.raises(InvalidState, match="nonce"):
        verify_state(token, secret_key=SECRET)


def test_verify_state_rejects_garbage():
    """Test a non-token string is rejected."""
    with pytest.raises(InvalidState):
        verify_state("not-a-state-token", secret_key=SECRET)
