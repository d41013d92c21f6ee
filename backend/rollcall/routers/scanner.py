"""Scanner endpoints: assigned open sessions, scan recording and recent scans."""
from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import Settings
from ..dependencies import get_app_settings, get_db_session, require_scanner
from ..schemas import CurrentUser, ScanCreate, ScanList, ScanRecorded, SessionList
from ..services import sessions as session_service

router = APIRouter(prefix="/scanner", tags=["scanner"])


@router.get("/sessions", response_model=SessionList)
async def list_sessions(
    current_user: CurrentUser = Depends(require_scanner),
    session: AsyncSession = Depends(get_db_session),
) -> SessionList:
    """Open sessions the caller is assigned to."""

    return SessionList(sessions=await session_service.list_open_assigned_sessions(session, current_user))


@router.post("/sessions/{session_id}/scan", response_model=ScanRecorded)
async def record_scan(
    session_id: str,
    payload: ScanCreate,
    request: Request,
    current_user: CurrentUser = Depends(require_scanner),
    session: AsyncSession = Depends(get_db_session),
) -> ScanRecorded:
    """Record a student number; repeats answer 409 with ``scanned: true``."""

    scan = await session_service.record_scan(
        session, current_user, session_id, payload.scanned_student_number
    )
    await request.app.state.scan_feed.publish(session_id, "created", scan.model_dump(mode="json"))
    return scan


@router.get("/sessions/{session_id}/scans", response_model=ScanList)
async def list_scans(
    session_id: str,
    current_user: CurrentUser = Depends(require_scanner),
    session: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_app_settings),
) -> ScanList:
    """Most recent scans of an assigned session."""

    scans = await session_service.list_scans(
        session, current_user, session_id, scanner_limit=settings.scanner_scan_limit
    )
    return ScanList(scans=scans)
