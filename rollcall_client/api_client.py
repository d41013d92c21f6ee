"""
HTTP API client for talking to the roll-call backend.

Usage pattern:

    from rollcall_client.api_client import APIClient

    client = APIClient()
    await client.login(username="scanner1", password="secret")
    sessions = await client.list_sessions()
    outcome = await client.record_scan(sessions[0]["id"], "S12345")
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx

DEFAULT_BASE_URL = "http://127.0.0.1:8000"


def load_base_url() -> str:
    """Backend base URL from ROLLCALL_API_BASE_URL, falling back to local dev."""

    return (os.getenv("ROLLCALL_API_BASE_URL") or DEFAULT_BASE_URL).rstrip("/")


# -----------------------------
# Error types
# -----------------------------


class APIError(Exception):
    """Generic API error."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class AuthError(APIError):
    """Authentication / authorization error."""


@dataclass
class ScanOutcome:
    """Result of submitting one student number."""

    student_number: str
    already_scanned: bool
    scan: Optional[Dict[str, Any]] = None


def _error_message(resp: httpx.Response) -> str:
    try:
        return str(resp.json().get("error") or resp.text)
    except ValueError:
        return resp.text


# -----------------------------
# Main API client
# -----------------------------


class APIClient:
    """
    Cookie-based HTTP client for the roll-call backend.

    The session cookie set by /auth/login is kept by the underlying
    httpx client and sent with every later request.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 10.0,
    ) -> None:
        self.base_url: str = (base_url or load_base_url()).rstrip("/")
        self._transport = transport
        self._timeout = timeout
        self._client: Optional[httpx.AsyncClient] = None
        self.user: Optional[Dict[str, Any]] = None

    async def __aenter__(self) -> "APIClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    # ---------- Internal helpers ----------

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self._timeout,
                transport=self._transport,
            )
        return self._client

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        client = self._ensure_client()
        try:
            return await client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            raise APIError(f"{method} {path} failed: {exc}") from exc

    @staticmethod
    def _check(resp: httpx.Response, what: str) -> httpx.Response:
        if resp.status_code in (401, 403):
            raise AuthError(f"{what}: {_error_message(resp)}", resp.status_code)
        try:
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise APIError(f"{what} failed: {_error_message(resp)}", resp.status_code) from exc
        return resp

    # ---------- Public methods ----------

    async def close(self) -> None:
        """Close underlying HTTP connection pool."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def health(self) -> Dict[str, Any]:
        resp = await self._request("GET", "/health")
        return self._check(resp, "/health").json()

    # ---- Authentication ----

    async def login(self, username: str, password: str) -> Dict[str, Any]:
        """Call /auth/login; the backend answers with the user and a session cookie."""

        resp = await self._request("POST", "/auth/login", json={"username": username, "password": password})
        self.user = self._check(resp, "Login").json()["user"]
        return self.user

    async def logout(self) -> None:
        resp = await self._request("POST", "/auth/logout")
        self._check(resp, "Logout")
        self._ensure_client().cookies.clear()
        self.user = None

    async def me(self) -> Dict[str, Any]:
        resp = await self._request("GET", "/auth/me")
        return self._check(resp, "/auth/me").json()["user"]

    # ---- Scanning ----

    async def list_sessions(self) -> List[Dict[str, Any]]:
        """Open sessions the logged-in scanner is assigned to."""

        resp = await self._request("GET", "/scanner/sessions")
        return self._check(resp, "Listing sessions").json()["sessions"]

    async def record_scan(self, session_id: str, student_number: str) -> ScanOutcome:
        """Submit a student number; a repeat is reported, not raised."""

        resp = await self._request(
            "POST",
            f"/scanner/sessions/{session_id}/scan",
            json={"scanned_student_number": student_number},
        )
        if resp.status_code == 409:
            return ScanOutcome(student_number=student_number, already_scanned=True)
        scan = self._check(resp, "Recording scan").json()
        return ScanOutcome(student_number=student_number, already_scanned=bool(scan.get("scanned")), scan=scan)

    async def list_scans(self, session_id: str) -> List[Dict[str, Any]]:
        resp = await self._request("GET", f"/scanner/sessions/{session_id}/scans")
        return self._check(resp, "Listing scans").json()["scans"]

    # ---- Admin ----

    async def export_csv(self, session_id: str) -> str:
        """Download a session's scans as CSV text (admin accounts only)."""

        resp = await self._request("GET", f"/admin/sessions/{session_id}/export.csv")
        return self._check(resp, "Export").text
