"""Admin endpoints: scanner accounts, scan sessions, assignments and exports."""
from fastapi import APIRouter, Depends, status
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from ..dependencies import get_db_session, require_admin
from ..models import Role
from ..schemas import (
    AssignmentList,
    AssignmentRequest,
    CurrentUser,
    MessageResponse,
    ScanList,
    SessionCreate,
    SessionList,
    SessionRead,
    SessionUpdate,
    UserCreate,
    UserList,
    UserRead,
    UserUpdate,
)
from ..services import sessions as session_service
from ..services import users as user_service

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


@router.get("/users", response_model=UserList)
async def list_users(session: AsyncSession = Depends(get_db_session)) -> UserList:
    """Return every account, newest first."""

    users = await user_service.list_users(session)
    return UserList(users=[UserRead.model_validate(user) for user in users])


@router.post("/users", response_model=UserRead)
async def create_user(
    payload: UserCreate, session: AsyncSession = Depends(get_db_session)
) -> UserRead:
    """Create a scanner account; the role is always SCANNER."""

    user = await user_service.create_user(session, payload.username, payload.password, Role.SCANNER)
    return UserRead.model_validate(user)


@router.patch("/users/{user_id}", response_model=UserRead)
async def update_user(
    user_id: str,
    payload: UserUpdate,
    session: AsyncSession = Depends(get_db_session),
) -> UserRead:
    """Enable/disable an account or reset its password."""

    user = await user_service.update_user(
        session, user_id, is_active=payload.is_active, password=payload.password
    )
    return UserRead.model_validate(user)


# ---------------------------------------------------------------------------
# Sessions
# ---------------------------------------------------------------------------


@router.get("/sessions", response_model=SessionList)
async def list_sessions(session: AsyncSession = Depends(get_db_session)) -> SessionList:
    return SessionList(sessions=await session_service.list_sessions(session))


@router.post("/sessions", response_model=SessionRead)
async def create_session(
    payload: SessionCreate,
    current_user: CurrentUser = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
) -> SessionRead:
    """Create a scan session; new sessions start open."""

    return await session_service.create_session(session, current_user, payload.title, payload.notes)


@router.patch("/sessions/{session_id}", response_model=SessionRead)
async def update_session(
    session_id: str,
    payload: SessionUpdate,
    session: AsyncSession = Depends(get_db_session),
) -> SessionRead:
    """Open or close a scan session."""

    return await session_service.set_session_open(session, session_id, payload.is_open)


@router.post("/sessions/{session_id}/assign", response_model=MessageResponse)
async def assign_scanner(
    session_id: str,
    payload: AssignmentRequest,
    session: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await session_service.assign_scanner(session, session_id, payload.scanner_user_id)
    return MessageResponse(message="Scanner assigned")


@router.delete("/sessions/{session_id}/assign", response_model=MessageResponse)
async def unassign_scanner(
    session_id: str,
    payload: AssignmentRequest,
    session: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await session_service.unassign_scanner(session, session_id, payload.scanner_user_id)
    return MessageResponse(message="Scanner unassigned")


@router.get("/sessions/{session_id}/assignments", response_model=AssignmentList)
async def list_assignments(
    session_id: str, session: AsyncSession = Depends(get_db_session)
) -> AssignmentList:
    return AssignmentList(assignments=await session_service.list_assignments(session, session_id))


@router.get("/sessions/{session_id}/scans", response_model=ScanList)
async def list_scans(
    session_id: str,
    current_user: CurrentUser = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
) -> ScanList:
    return ScanList(scans=await session_service.list_scans(session, current_user, session_id))


@router.get(
    "/sessions/{session_id}/export.csv",
    response_class=Response,
    status_code=status.HTTP_200_OK,
)
async def export_scans(session_id: str, session: AsyncSession = Depends(get_db_session)) -> Response:
    """Download every scan of a session as a CSV attachment."""

    csv_text = await session_service.export_scans_csv(session, session_id)
    return Response(
        content=csv_text,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="session-{session_id}-scans.csv"'},
    )
