"""
Unit tests for the secret cipher.
"""

import base64

import pytest

from linkvault.domain.errors import ConfigurationError, IntegrityError
from linkvault.services.cipher import (
    IV_LENGTH,
    TAG_LENGTH,
    SecretCipher,
    last_four,
    mask,
    validate_format,
)

SECRET = "cipher-test-secret-that-is-at-least-32-chars"


@pytest.fixture(scope="module")
def cipher():
    """Cipher with a fixed secret (key derivation is slow, share it)."""
    return SecretCipher(SECRET)


def test_encrypt_decrypt_roundtrip(cipher):
    """Test decrypt(encrypt(p)) == p."""
    plaintext = "sk-" + "a" * 48
    assert cipher.decrypt(cipher.encrypt(plaintext)) == plaintext


def test_encrypt_handles_unicode(cipher):
    """Test non-ASCII secrets survive the roundtrip."""
    assert cipher.decrypt(cipher.encrypt("clé-ñ-秘密")) == "clé-ñ-秘密"


def test_encrypt_uses_fresh_iv(cipher):
    """Test the same plaintext encrypts to different blobs."""
    first = cipher.encrypt("same-secret")
    second = cipher.encrypt("same-secret")

    assert first != second
    assert base64.b64decode(first)[:IV_LENGTH] != base64.b64decode(second)[:IV_LENGTH]


def test_blob_layout(cipher):
    """Test the blob is IV || tag || ciphertext."""
    blob = base64.b64decode(cipher.encrypt("abcd"))
    assert len(blob) == IV_LENGTH + TAG_LENGTH + len("abcd")


def test_same_secret_decrypts_across_instances(cipher):
    """Test the derived key is deterministic for a given secret."""
    blob = cipher.encrypt("portable")
    assert SecretCipher(SECRET).decrypt(blob) == "portable"


def test_decrypt_detects_flipped_last_byte(cipher):
    """Test flipping the last ciphertext byte fails authentication."""
    raw = bytearray(base64.b64decode(cipher.encrypt("tamper-me")))
    raw[-1] ^= 0x01
    tampered = base64.b64encode(bytes(raw)).decode()

    with pytest.raises(IntegrityError):
        cipher.decrypt(tampered)


def test_decrypt_detects_modified_tag(cipher):
    """Test modifying the tag fails authentication."""
    raw = bytearray(base64.b64decode(cipher.encrypt("tamper-me")))
    raw[IV_LENGTH] ^= 0xFF
    tampered = base64.b64encode(bytes(raw)).decode()

    with pytest.raises(IntegrityError):
        cipher.decrypt(tampered)


def test_decrypt_rejects_other_key(cipher):
    """Test a blob from another secret does not decrypt."""
    other = SecretCipher("another-secret-that-is-also-32-characters")
    with pytest.raises(IntegrityError):
        cipher.decrypt(other.encrypt("secret"))


@pytest.mark.parametrize("blob", ["not base64!!", "", base64.b64encode(b"short").decode()])
def test_decrypt_rejects_malformed_blob(cipher, blob):
    """Test malformed or truncated blobs raise IntegrityError."""
    with pytest.raises(IntegrityError):
        cipher.decrypt(blob)


@pytest.mark.parametrize("secret", [None, "", "too-short-secret"])
def test_missing_or_short_secret_is_configuration_error(secret):
    """Test the cipher refuses to start without a strong secret."""
    with pytest.raises(ConfigurationError):
        SecretCipher(secret)


def test_last_four():
    """Test display suffix is fixed width."""
    assert last_four("sk-abcdef1234") == "1234"
    assert last_four("abc") == "****"
    assert last_four(None) == "****"


def test_mask():
    """Test masked view keeps only four characters at each end."""
    assert mask("sk-abcdefghijklmnop") == "sk-a...mnop"
    assert mask("short") == "****-****"


@pytest.mark.parametrize(
    "provider,key,expected",
    [
        ("openai", "sk-" + "a" * 48, True),
        ("openai", "sk-" + "a" * 10, False),
        ("gemini", "AIza" + "b" * 35, True),
        ("gemini", "AIzb" + "b" * 35, False),
        ("perplexity", "pplx-" + "c" * 40, True),
        ("perplexity", "pplx-short", False),
        ("anthropic", "sk-ant-" + "d" * 95, True),
        ("anthropic", "sk-ant-" + "d" * 20, False),
        ("unknown", "anything", True),
    ],
)
def test_validate_format(provider, key, expected):
    """Test shape checks per provider."""
    assert validate_format(provider, key) is expected
