"""Live scan feed over WebSockets, keyed by scan session."""
from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from typing import Any, Dict, Set

from fastapi import WebSocket

logger = logging.getLogger(__name__)

SCAN_CHANNEL = "scans"
SEND_TIMEOUT_SECONDS = 2.0


class ScanFeed:
    """
    Watchers of each scan session, per process.

    Delivery is best effort: a watcher whose send fails or takes longer than
    ``send_timeout`` seconds is dropped, and the store remains the record of
    what was scanned.
    """

    def __init__(self, send_timeout: float = SEND_TIMEOUT_SECONDS) -> None:
        self.send_timeout = send_timeout
        self._watchers: Dict[str, Set[WebSocket]] = defaultdict(set)
        self._lock = asyncio.Lock()

    async def connect(self, session_id: str, websocket: WebSocket) -> None:
        await websocket.accept()
        async with self._lock:
            self._watchers[session_id].add(websocket)
        logger.debug("Watcher joined session id=%s (%d watching)", session_id, self.watcher_count(session_id))

    async def disconnect(self, session_id: str, *websockets: WebSocket) -> None:
        async with self._lock:
            watchers = self._watchers.get(session_id)
            if watchers is None:
                return
            watchers.difference_update(websockets)
            if not watchers:
                del self._watchers[session_id]

    def watcher_count(self, session_id: str) -> int:
        return len(self._watchers.get(session_id, ()))

    async def broadcast(self, session_id: str, payload: Dict[str, Any]) -> None:
        """Send ``payload`` to every watcher of a session at once."""

        async with self._lock:
            targets = list(self._watchers.get(session_id, ()))
        if not targets:
            return

        results = await asyncio.gather(
            *(asyncio.wait_for(websocket.send_json(payload), self.send_timeout) for websocket in targets),
            return_exceptions=True,
        )
        stale = [websocket for websocket, result in zip(targets, results) if isinstance(result, Exception)]
        if stale:
            logger.debug("Dropping %d stale watcher(s) of session id=%s", len(stale), session_id)
            await self.disconnect(session_id, *stale)

    async def publish(self, session_id: str, action: str, data: Dict[str, Any]) -> None:
        """Broadcast a scan event: ``{"channel": "scans", "action": ..., "data": ...}``."""

        await self.broadcast(session_id, {"channel": SCAN_CHANNEL, "action": action, "data": data})
