"""User account operations: login, scanner provisioning and admin bootstrap."""
from __future__ import annotations

import logging
import secrets
from functools import lru_cache
from typing import Sequence

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from ..errors import Conflict, Forbidden, InvalidInput, NotFound, Unauthorized
from ..models import Role, User
from ..passwords import hash_password, verify_password

logger = logging.getLogger(__name__)


@lru_cache
def _unknown_user_hash() -> str:
    # Checked against when the username does not exist so both paths pay for PBKDF2
    return hash_password(secrets.token_hex(16))


def _password_matches(user: User | None, password: str) -> bool:
    stored_hash = user.password_hash if user is not None else _unknown_user_hash()
    return verify_password(password, stored_hash)


async def authenticate(session: AsyncSession, username: str, password: str) -> User:
    """Return the user for valid credentials; disabled accounts are refused."""

    result = await session.execute(select(User).where(User.username == username))
    user = result.scalar_one_or_none()
    # PBKDF2 is deliberately slow; keep it off the event loop
    password_ok = await run_in_threadpool(_password_matches, user, password)
    if user is None or not password_ok:
        logger.info("Failed login for username=%r", username)
        raise Unauthorized("Invalid credentials")
    if not user.is_active:
        logger.info("Refused login for disabled user id=%s", user.id)
        raise Forbidden("Account is disabled")
    logger.info("User id=%s logged in", user.id)
    return user


async def list_users(session: AsyncSession) -> Sequence[User]:
    result = await session.execute(select(User).order_by(User.created_at.desc()))
    return list(result.scalars().all())


async def get_user(session: AsyncSession, user_id: str) -> User | None:
    return await session.get(User, user_id)


async def get_user_by_username(session: AsyncSession, username: str) -> User | None:
    result = await session.execute(select(User).where(User.username == username))
    return result.scalar_one_or_none()


async def create_user(
    session: AsyncSession, username: str, password: str, role: Role = Role.SCANNER
) -> User:
    """Insert a new account; a taken username raises Conflict."""

    user = User(
        username=username,
        password_hash=await run_in_threadpool(hash_password, password),
        role=role,
        is_active=True,
    )
    session.add(user)
    try:
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        raise Conflict("Username already exists") from exc
    await session.refresh(user)
    logger.info("Created %s user id=%s username=%r", role.value, user.id, username)
    return user


async def update_user(
    session: AsyncSession,
    user_id: str,
    *,
    is_active: bool | None = None,
    password: str | None = None,
) -> User:
    """Toggle activation and/or reset the password of an account."""

    user = await get_user(session, user_id)
    if user is None:
        raise NotFound("User not found")

    if is_active is False and user.role == Role.ADMIN:
        raise InvalidInput("Cannot disable admin account")

    if password is not None:
        user.password_hash = await run_in_threadpool(hash_password, password)
    if is_active is not None:
        user.is_active = is_active

    await session.commit()
    await session.refresh(user)
    logger.info(
        "Updated user id=%s (is_active=%s, password_changed=%s)",
        user.id,
        user.is_active,
        password is not None,
    )
    return user


async def count_admins(session: AsyncSession) -> int:
    result = await session.execute(select(func.count()).select_from(User).where(User.role == Role.ADMIN))
    return int(result.scalar_one())


async def ensure_bootstrap_admin(
    session: AsyncSession, username: str, password: str | None
) -> User | None:
    """
    Create the first admin account when none exists yet.

    Returns the created user, or None when an admin already exists or no
    bootstrap password was configured.
    """

    if await count_admins(session) > 0:
        return None
    if not password:
        logger.warning(
            "No admin account exists; set BOOTSTRAP_ADMIN_PASSWORD or run "
            "'rollcall-admin create-admin' to create one"
        )
        return None
    user = await create_user(session, username, password, role=Role.ADMIN)
    logger.warning("Bootstrapped first admin account %r; change its password", username)
    return user
