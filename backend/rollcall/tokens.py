"""Signed, time-limited session tokens (HS256 JWT)."""
from __future__ import annotations

import logging
import time
from typing import Any

import jwt
from pydantic import BaseModel, ValidationError

from .models import Role

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
DEFAULT_TTL_SECONDS = 60 * 60 * 24


class TokenClaims(BaseModel):
    """Information encoded into session tokens."""

    userId: str
    role: Role
    iat: int
    exp: int


def issue_token(
    claims: dict[str, Any],
    secret: str | None,
    ttl_seconds: int = DEFAULT_TTL_SECONDS,
    *,
    now: float | None = None,
) -> str:
    """Sign ``claims`` plus ``iat``/``exp`` into a three-segment token."""

    if not secret:
        raise ValueError("A signing secret is required to issue tokens")
    issued_at = int(now if now is not None else time.time())
    payload = {**claims, "iat": issued_at, "exp": issued_at + ttl_seconds}
    return jwt.encode(payload, secret, algorithm=ALGORITHM)


def verify_token(token: str | None, secret: str | None) -> TokenClaims | None:
    """Return the token's claims, or None if it is malformed, tampered or expired."""

    if not token or not secret:
        return None
    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[ALGORITHM],
            options={"require": ["exp", "iat"]},
        )
        return TokenClaims(**payload)
    except jwt.PyJWTError as exc:
        logger.debug("Rejected session token: %s", exc)
        return None
    except ValidationError:
        logger.debug("Rejected session token with unexpected claims")
        return None
