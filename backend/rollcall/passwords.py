"""Salted PBKDF2 password hashing.

Stored hashes have the form ``hex(salt):hex(derived_key)`` so they stay
readable by any PBKDF2-HMAC-SHA256 implementation using the same parameters.
"""
import secrets

from passlib.crypto.digest import pbkdf2_hmac
from passlib.utils import consteq

PBKDF2_ITERATIONS = 100_000
PBKDF2_KEY_LENGTH = 32
SALT_LENGTH = 16


def _derive(password: str, salt: bytes) -> bytes:
    return pbkdf2_hmac("sha256", password.encode("utf-8"), salt, PBKDF2_ITERATIONS, PBKDF2_KEY_LENGTH)


def hash_password(password: str) -> str:
    """Hash a password for storage."""
    salt = secrets.token_bytes(SALT_LENGTH)
    return f"{salt.hex()}:{_derive(password, salt).hex()}"


def verify_password(password: str, stored_hash: str) -> bool:
    """Check a plain password against the stored hash; malformed hashes never match."""
    salt_hex, sep, key_hex = (stored_hash or "").partition(":")
    if not sep or not salt_hex or not key_hex:
        return False
    try:
        salt = bytes.fromhex(salt_hex)
        expected = bytes.fromhex(key_hex)
    except ValueError:
        return False
    return consteq(_derive(password, salt), expected)
