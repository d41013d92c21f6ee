"""Unit tests for the session token codec."""
import base64
import hashlib
import hmac
import json
import time

import pytest

from rollcall.models import Role
from rollcall.tokens import issue_token, verify_token

SECRET = "unit-test-signing-secret-0123456789abcdef"


def _b64(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def _sign(signing_input: str, secret: str = SECRET) -> str:
    return _b64(hmac.new(secret.encode(), signing_input.encode(), hashlib.sha256).digest())


def _flip(segment: str, index: int) -> str:
    replacement = "A" if segment[index] != "A" else "B"
    return segment[:index] + replacement + segment[index + 1 :]


def test_issued_token_verifies_to_original_claims() -> None:
    token = issue_token({"userId": "user-1", "role": "ADMIN"}, SECRET)

    claims = verify_token(token, SECRET)

    assert claims is not None
    assert claims.userId == "user-1"
    assert claims.role is Role.ADMIN
    assert claims.exp - claims.iat == 86400


def test_token_has_three_unpadded_url_safe_segments() -> None:
    token = issue_token({"userId": "user-1", "role": "SCANNER"}, SECRET, ttl_seconds=60)

    segments = token.split(".")
    assert len(segments) == 3
    assert all("=" not in segment for segment in segments)
    header = json.loads(base64.urlsafe_b64decode(segments[0] + "=="))
    assert header["alg"] == "HS256"


def test_expired_token_is_rejected() -> None:
    issued_long_ago = time.time() - 2 * 3600
    token = issue_token({"userId": "user-1", "role": "SCANNER"}, SECRET, ttl_seconds=3600, now=issued_long_ago)

    assert verify_token(token, SECRET) is None


def test_token_within_lifetime_is_accepted() -> None:
    issued_recently = time.time() - 3000
    token = issue_token({"userId": "user-1", "role": "SCANNER"}, SECRET, ttl_seconds=3600, now=issued_recently)

    assert verify_token(token, SECRET) is not None


@pytest.mark.parametrize("segment_index", [1, 2])
def test_tampered_segments_are_rejected(segment_index: int) -> None:
    token = issue_token({"userId": "user-1", "role": "SCANNER"}, SECRET)
    segments = token.split(".")
    segments[segment_index] = _flip(segments[segment_index], 0)

    assert verify_token(".".join(segments), SECRET) is None


def test_role_escalation_in_payload_is_rejected() -> None:
    token = issue_token({"userId": "user-1", "role": "SCANNER"}, SECRET)
    header, payload, signature = token.split(".")
    claims = json.loads(base64.urlsafe_b64decode(payload + "=="))
    claims["role"] = "ADMIN"
    forged = ".".join([header, _b64(json.dumps(claims).encode()), signature])

    assert verify_token(forged, SECRET) is None


def test_wrong_secret_is_rejected() -> None:
    token = issue_token({"userId": "user-1", "role": "SCANNER"}, SECRET)

    assert verify_token(token, "another-secret-of-sufficient-length-xyz") is None


@pytest.mark.parametrize("token", ["", "a.b", "a.b.c.d", "not a token", None])
def test_malformed_tokens_are_rejected(token) -> None:
    assert verify_token(token, SECRET) is None


def test_signed_non_json_payload_is_rejected() -> None:
    header = _b64(json.dumps({"alg": "HS256", "typ": "JWT"}).encode())
    payload = _b64(b"this is not json")
    token = f"{header}.{payload}.{_sign(f'{header}.{payload}')}"

    assert verify_token(token, SECRET) is None


def test_signed_payload_with_unknown_role_is_rejected() -> None:
    now = int(time.time())
    header = _b64(json.dumps({"alg": "HS256", "typ": "JWT"}).encode())
    payload = _b64(json.dumps({"userId": "u", "role": "ROOT", "iat": now, "exp": now + 60}).encode())
    token = f"{header}.{payload}.{_sign(f'{header}.{payload}')}"

    assert verify_token(token, SECRET) is None


@pytest.mark.parametrize("secret", ["", None])
def test_issuing_without_a_secret_fails(secret) -> None:
    with pytest.raises(ValueError):
        issue_token({"userId": "user-1", "role": "ADMIN"}, secret)


def test_verifying_without_a_secret_fails_closed() -> None:
    token = issue_token({"userId": "user-1", "role": "ADMIN"}, SECRET)

    assert verify_token(token, "") is None
