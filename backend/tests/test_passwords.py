"""Unit tests for the PBKDF2 credential store."""
import pytest

from rollcall.passwords import hash_password, verify_password


def test_hash_then_verify_round_trip() -> None:
    """A password verifies against its own hash and not against a neighbour."""

    stored = hash_password("abcd")

    assert verify_password("abcd", stored) is True
    assert verify_password("abcde", stored) is False


def test_hash_format_is_hex_salt_and_hex_key() -> None:
    salt_hex, key_hex = hash_password("secret").split(":")

    assert len(salt_hex) == 32
    assert len(key_hex) == 64
    int(salt_hex, 16)
    int(key_hex, 16)


def test_each_hash_uses_a_fresh_salt() -> None:
    first = hash_password("same-password")
    second = hash_password("same-password")

    assert first != second
    assert verify_password("same-password", first)
    assert verify_password("same-password", second)


@pytest.mark.parametrize(
    "stored",
    ["", "no-separator", ":", "abcd:", ":abcd", "zz:zz", "00ff:not-hex", "a:b:c"],
)
def test_malformed_hashes_never_verify(stored: str) -> None:
    assert verify_password("anything", stored) is False


def test_known_vector_matches_standard_pbkdf2() -> None:
    """Hashes stay compatible with any PBKDF2-HMAC-SHA256 implementation."""

    import hashlib

    salt = bytes(range(16))
    key = hashlib.pbkdf2_hmac("sha256", b"password", salt, 100_000, 32)

    assert verify_password("password", f"{salt.hex()}:{key.hex()}") is True
