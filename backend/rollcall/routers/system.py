"""System-level endpoints: health probes and the live scan feed socket."""
import logging

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect, status
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from ..dependencies import SESSION_COOKIE, get_db_session, resolve_caller
from ..services import sessions as session_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["system"])


@router.get("/health")
async def healthcheck() -> dict[str, str]:
    """Simple readiness probe for uptime checks."""

    return {"status": "ok"}


@router.get("/health/db")
async def database_healthcheck(session: AsyncSession = Depends(get_db_session)) -> dict[str, str]:
    """Round-trip a trivial query to prove the store is reachable."""

    await session.execute(text("SELECT 1"))
    return {"status": "ok", "database": "reachable"}


@router.websocket("/ws/sessions/{session_id}")
async def scan_feed_endpoint(websocket: WebSocket, session_id: str) -> None:
    """Authenticate the session cookie and stream new scans of one session."""

    token = websocket.cookies.get(SESSION_COOKIE)
    allowed = False
    if token:
        settings = websocket.app.state.settings
        async with websocket.app.state.database.sessionmaker() as session:
            caller = await resolve_caller(session, token, settings.secret_key)
            if caller is not None:
                allowed = await session_service.can_watch_session(session, caller, session_id)

    if not allowed:
        await websocket.close(
            code=status.WS_1008_POLICY_VIOLATION,
            reason="Not allowed to watch this session",
        )
        return

    feed = websocket.app.state.scan_feed
    await feed.connect(session_id, websocket)
    try:
        while True:
            # Keep the connection alive and listen for optional client pings
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        await feed.disconnect(session_id, websocket)
