"""Scan-session lifecycle, scanner assignment and scan recording.

Uniqueness of assignments and scans is enforced by the store's unique
constraints; the integrity error raised on a duplicate insert is the
authoritative signal, so two racing scanners can never both record the same
student number in one session.
"""
from __future__ import annotations

import logging

from sqlalchemy import Select, delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from ..errors import AlreadyScanned, Forbidden, InvalidInput, NotFound
from ..export import render_scan_export
from ..models import Role, Scan, ScanSession, SessionAssignment, User
from ..schemas import AssignmentRead, CurrentUser, ScanRead, ScanRecorded, SessionRead

logger = logging.getLogger(__name__)

DEFAULT_SCANNER_SCAN_LIMIT = 100

_creator = aliased(User)
_scanner = aliased(User)


def _session_query() -> Select:
    return (
        select(ScanSession, _creator.username)
        .outerjoin(_creator, ScanSession.created_by == _creator.id)
        .order_by(ScanSession.created_at.desc())
    )


def _to_session_read(scan_session: ScanSession, creator_username: str | None) -> SessionRead:
    return SessionRead(
        id=scan_session.id,
        title=scan_session.title,
        notes=scan_session.notes,
        created_by=scan_session.created_by,
        created_by_username=creator_username,
        is_open=bool(scan_session.is_open),
        created_at=scan_session.created_at,
    )


def _to_scan_read(scan: Scan, scanner_username: str | None) -> ScanRead:
    return ScanRead(
        id=scan.id,
        session_id=scan.session_id,
        scanned_student_number=scan.scanned_student_number,
        scanned_by_user_id=scan.scanned_by_user_id,
        scanned_by_username=scanner_username,
        scanned_at=scan.scanned_at,
    )


async def _require_session(session: AsyncSession, session_id: str) -> ScanSession:
    scan_session = await session.get(ScanSession, session_id)
    if scan_session is None:
        raise NotFound("Session not found")
    return scan_session


async def _is_assigned(
    session: AsyncSession, session_id: str, scanner_user_id: str, *, open_only: bool = False
) -> bool:
    query = (
        select(ScanSession.id)
        .join(SessionAssignment, SessionAssignment.session_id == ScanSession.id)
        .where(
            ScanSession.id == session_id,
            SessionAssignment.scanner_user_id == scanner_user_id,
        )
    )
    if open_only:
        query = query.where(ScanSession.is_open.is_(True))
    result = await session.execute(query)
    return result.first() is not None


# ---------------------------------------------------------------------------
# Session lifecycle (admin)
# ---------------------------------------------------------------------------


async def list_sessions(session: AsyncSession) -> list[SessionRead]:
    result = await session.execute(_session_query())
    return [_to_session_read(row, username) for row, username in result.all()]


async def create_session(
    session: AsyncSession, caller: CurrentUser, title: str, notes: str | None = None
) -> SessionRead:
    """Create an open scan session owned by ``caller``."""

    if not title:
        raise InvalidInput("Title is required")
    scan_session = ScanSession(title=title, notes=notes or None, created_by=caller.id, is_open=True)
    session.add(scan_session)
    await session.commit()
    await session.refresh(scan_session)
    logger.info("Admin id=%s created session id=%s", caller.id, scan_session.id)
    return _to_session_read(scan_session, caller.username)


async def set_session_open(
    session: AsyncSession, session_id: str, is_open: bool | None
) -> SessionRead:
    """Open or close a session; ``None`` leaves the flag untouched."""

    scan_session = await _require_session(session, session_id)
    if is_open is not None and bool(scan_session.is_open) != is_open:
        scan_session.is_open = is_open
        await session.commit()
        await session.refresh(scan_session)
        logger.info("Session id=%s is now %s", session_id, "open" if is_open else "closed")

    creator = await session.get(User, scan_session.created_by)
    return _to_session_read(scan_session, creator.username if creator else None)


# ---------------------------------------------------------------------------
# Scanner assignment (admin)
# ---------------------------------------------------------------------------


async def assign_scanner(session: AsyncSession, session_id: str, scanner_user_id: str) -> bool:
    """
    Grant a scanner access to a session.

    Idempotent: returns True when a new assignment was stored and False when
    the pair was already assigned.
    """

    await _require_session(session, session_id)
    scanner = await session.get(User, scanner_user_id)
    if scanner is None or scanner.role != Role.SCANNER:
        raise InvalidInput("Invalid scanner user")

    session.add(SessionAssignment(session_id=session_id, scanner_user_id=scanner_user_id))
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        logger.debug("Scanner id=%s already assigned to session id=%s", scanner_user_id, session_id)
        return False
    logger.info("Assigned scanner id=%s to session id=%s", scanner_user_id, session_id)
    return True


async def unassign_scanner(session: AsyncSession, session_id: str, scanner_user_id: str) -> None:
    """Revoke an assignment; revoking a missing assignment is not an error."""

    await _require_session(session, session_id)
    await session.execute(
        delete(SessionAssignment).where(
            SessionAssignment.session_id == session_id,
            SessionAssignment.scanner_user_id == scanner_user_id,
        )
    )
    await session.commit()
    logger.info("Unassigned scanner id=%s from session id=%s", scanner_user_id, session_id)


async def list_assignments(session: AsyncSession, session_id: str) -> list[AssignmentRead]:
    result = await session.execute(
        select(SessionAssignment.scanner_user_id, User.username)
        .outerjoin(User, SessionAssignment.scanner_user_id == User.id)
        .where(SessionAssignment.session_id == session_id)
        .order_by(SessionAssignment.created_at)
    )
    return [
        AssignmentRead(scanner_user_id=scanner_user_id, username=username)
        for scanner_user_id, username in result.all()
    ]


# ---------------------------------------------------------------------------
# Scanning
# ---------------------------------------------------------------------------


async def list_open_assigned_sessions(session: AsyncSession, caller: CurrentUser) -> list[SessionRead]:
    """Open sessions the scanning ``caller`` is assigned to, newest first."""

    query = (
        _session_query()
        .join(SessionAssignment, SessionAssignment.session_id == ScanSession.id)
        .where(
            SessionAssignment.scanner_user_id == caller.id,
            ScanSession.is_open.is_(True),
        )
    )
    result = await session.execute(query)
    return [_to_session_read(row, username) for row, username in result.all()]


async def record_scan(
    session: AsyncSession, caller: CurrentUser, session_id: str, student_number: str
) -> ScanRecorded:
    """
    Record ``student_number`` in a session on behalf of the scanning caller.

    Raises Forbidden when the session is missing, not assigned to the caller
    or closed (without saying which), and AlreadyScanned when the number was
    recorded before.
    """

    if not await _is_assigned(session, session_id, caller.id, open_only=True):
        raise Forbidden("Session not found, not assigned to you, or closed")

    scan = Scan(
        session_id=session_id,
        scanned_student_number=student_number,
        scanned_by_user_id=caller.id,
    )
    session.add(scan)
    try:
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        logger.info("Duplicate scan of %r in session id=%s", student_number, session_id)
        raise AlreadyScanned() from exc
    await session.refresh(scan)
    logger.info("Scanner id=%s recorded %r in session id=%s", caller.id, student_number, session_id)
    return ScanRecorded(**_to_scan_read(scan, caller.username).model_dump(), scanned=False)


async def list_scans(
    session: AsyncSession,
    caller: CurrentUser,
    session_id: str,
    *,
    limit: int | None = None,
    scanner_limit: int = DEFAULT_SCANNER_SCAN_LIMIT,
) -> list[ScanRead]:
    """
    Scans of one session, newest first.

    Admins see every scan of any session. Scanners only see sessions they are
    assigned to, capped at ``scanner_limit`` rows.
    """

    if caller.role == Role.ADMIN:
        effective_limit = limit
    elif caller.role == Role.SCANNER:
        if not await _is_assigned(session, session_id, caller.id):
            raise Forbidden("Session not assigned to you")
        effective_limit = min(limit, scanner_limit) if limit else scanner_limit
    else:
        raise Forbidden()

    query = (
        select(Scan, _scanner.username)
        .outerjoin(_scanner, Scan.scanned_by_user_id == _scanner.id)
        .where(Scan.session_id == session_id)
        .order_by(Scan.scanned_at.desc())
    )
    if effective_limit:
        query = query.limit(effective_limit)
    result = await session.execute(query)
    return [_to_scan_read(scan, username) for scan, username in result.all()]


async def export_scans_csv(session: AsyncSession, session_id: str) -> str:
    """Render every scan of a session as CSV, newest first."""

    result = await session.execute(
        select(Scan.scanned_student_number, Scan.scanned_at, _scanner.username)
        .outerjoin(_scanner, Scan.scanned_by_user_id == _scanner.id)
        .where(Scan.session_id == session_id)
        .order_by(Scan.scanned_at.desc())
    )
    return render_scan_export(result.all())


async def can_watch_session(session: AsyncSession, caller: CurrentUser, session_id: str) -> bool:
    """Whether ``caller`` may follow the live scan feed of a session."""

    if caller.role == Role.ADMIN:
        return await session.get(ScanSession, session_id) is not None
    return await _is_assigned(session, session_id, caller.id)
