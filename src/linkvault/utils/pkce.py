"""
PKCE (Proof Key for Code Exchange) utilities.
"""

import base64
import hashlib
import secrets

# base64url of 32 random bytes without padding
CODE_VERIFIER_LENGTH = 43


def generate_code_verifier() -> str:
    """
    Generates a random code verifier for PKCE.

    Returns:
        43-character code verifier in base64url format
    """
    verifier = base64.urlsafe_b64encode(secrets.token_bytes(32)).decode("utf-8")
    return verifier.rstrip("=")


def generate_code_challenge(code_verifier: str) -> str:
    """
    Generates an S256 code challenge from the code verifier.

    Args:
        code_verifier: Generated code verifier

    Returns:
        Code challenge in base64url format
    """
    digest = hashlib.sha256(code_verifier.encode("utf-8")).digest()
    return base64.urlsafe_b64encode(digest).decode("utf-8").rstrip("=")


def is_well_formed_verifier(code_verifier: object) -> bool:
    """
    Checks that a verifier recovered from state has the expected length.

    Args:
        code_verifier: Value embedded in the OAuth state

    Returns:
        True if it is a 43-character string
    """
    return isinstance(code_verifier, str) and len(code_verifier) == CODE_VERIFIER_LENGTH
