"""Reusable FastAPI dependencies: settings, store session and the caller."""
from __future__ import annotations

from collections.abc import AsyncGenerator, Awaitable, Callable

from fastapi import Depends, Request
from fastapi.security import APIKeyCookie
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .config import Settings
from .database import get_session
from .errors import Forbidden, Unauthorized
from .models import Role, User
from .schemas import CurrentUser
from .tokens import verify_token

SESSION_COOKIE = "session"

# Read the token from the session cookie instead of an Authorization header
session_cookie = APIKeyCookie(name=SESSION_COOKIE, auto_error=False)


def get_app_settings(request: Request) -> Settings:
    """Return the Settings the running application was built with."""
    return request.app.state.settings


async def get_db_session(
    session: AsyncSession = Depends(get_session),
) -> AsyncGenerator[AsyncSession, None]:
    """Dependency that yields an AsyncSession."""
    yield session


async def resolve_caller(
    session: AsyncSession, token: str | None, secret: str
) -> CurrentUser | None:
    """
    Map a session token onto an active user.

    Returns None when the token is missing, invalid or expired, or when the
    referenced user no longer exists or has been disabled.
    """

    claims = verify_token(token, secret)
    if claims is None:
        return None

    result = await session.execute(select(User).where(User.id == claims.userId))
    user = result.scalar_one_or_none()
    if user is None or not user.is_active:
        return None
    return CurrentUser.model_validate(user)


async def get_optional_user(
    token: str | None = Depends(session_cookie),
    session: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_app_settings),
) -> CurrentUser | None:
    return await resolve_caller(session, token, settings.secret_key)


async def get_current_user(
    caller: CurrentUser | None = Depends(get_optional_user),
) -> CurrentUser:
    """Return the authenticated caller or fail with 401."""

    if caller is None:
        raise Unauthorized()
    return caller


def ensure_role(caller: CurrentUser, role: Role) -> CurrentUser:
    """Raise Forbidden unless ``caller`` holds exactly ``role``."""

    if caller.role != role:
        raise Forbidden()
    return caller


def require_role(role: Role) -> Callable[..., Awaitable[CurrentUser]]:
    """Build a dependency that admits only callers holding ``role``."""

    async def dependency(caller: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        return ensure_role(caller, role)

    dependency.__name__ = f"require_{role.value.lower()}"
    return dependency


require_admin = require_role(Role.ADMIN)
require_scanner = require_role(Role.SCANNER)
