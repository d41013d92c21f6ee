"""The scanning terminal's API client and input loop."""
import argparse
import io

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from rollcall.models import User
from rollcall_client.api_client import APIClient, AuthError
from rollcall_client import main as scan_main
from rollcall_client.main import choose_session, read_lines, scan_loop

from conftest import ADMIN_PASSWORD, SCANNER_PASSWORD


def _api_client(app: FastAPI) -> APIClient:
    return APIClient("http://testserver", transport=ASGITransport(app=app))


async def _open_assigned_session(admin_client: AsyncClient, scanner_user: User) -> str:
    created = (await admin_client.post("/admin/sessions", json={"title": "Lab"})).json()
    await admin_client.post(
        f"/admin/sessions/{created['id']}/assign", json={"scanner_user_id": scanner_user.id}
    )
    return created["id"]


@pytest.mark.asyncio
async def test_login_and_list_sessions(app: FastAPI, admin_client: AsyncClient, scanner_user: User) -> None:
    session_id = await _open_assigned_session(admin_client, scanner_user)

    async with _api_client(app) as client:
        user = await client.login("scanner1", SCANNER_PASSWORD)
        sessions = await client.list_sessions()
        me = await client.me()

    assert user["role"] == "SCANNER"
    assert me == user
    assert [session["id"] for session in sessions] == [session_id]


@pytest.mark.asyncio
async def test_duplicate_scan_is_reported_not_raised(
    app: FastAPI, admin_client: AsyncClient, scanner_user: User
) -> None:
    session_id = await _open_assigned_session(admin_client, scanner_user)

    async with _api_client(app) as client:
        await client.login("scanner1", SCANNER_PASSWORD)
        first = await client.record_scan(session_id, "S1")
        second = await client.record_scan(session_id, "S1")
        scans = await client.list_scans(session_id)

    assert first.already_scanned is False
    assert first.scan["scanned_student_number"] == "S1"
    assert second.already_scanned is True
    assert [scan["scanned_student_number"] for scan in scans] == ["S1"]


@pytest.mark.asyncio
async def test_bad_login_raises_auth_error(app: FastAPI, scanner_user: User) -> None:
    async with _api_client(app) as client:
        with pytest.raises(AuthError) as excinfo:
            await client.login("scanner1", "wrong")
        with pytest.raises(AuthError):
            await client.list_sessions()

    assert excinfo.value.status_code == 401


@pytest.mark.asyncio
async def test_logout_forgets_the_user(app: FastAPI, scanner_user: User) -> None:
    async with _api_client(app) as client:
        await client.login("scanner1", SCANNER_PASSWORD)
        await client.logout()

        assert client.user is None
        with pytest.raises(AuthError):
            await client.me()


@pytest.mark.asyncio
async def test_admin_export(app: FastAPI, admin_user: User, admin_client: AsyncClient, scanner_user: User) -> None:
    session_id = await _open_assigned_session(admin_client, scanner_user)

    async with _api_client(app) as client:
        await client.login("admin", ADMIN_PASSWORD)
        csv_text = await client.export_csv(session_id)

    assert csv_text == '"Student Number","Scanned At","Scanned By"'


@pytest.mark.asyncio
async def test_scan_loop_counts_outcomes(app: FastAPI, admin_client: AsyncClient, scanner_user: User) -> None:
    session_id = await _open_assigned_session(admin_client, scanner_user)
    out = io.StringIO()

    async with _api_client(app) as client:
        await client.login("scanner1", SCANNER_PASSWORD)
        counts = await scan_loop(client, session_id, ["S1\n", "\n", "S2\n", "S1\n", "quit\n", "S3\n"], out)

    assert counts == {"recorded": 2, "duplicates": 1, "errors": 0}
    assert out.getvalue().splitlines() == ["OK       S1", "OK       S2", "ALREADY SCANNED  S1"]


@pytest.mark.asyncio
async def test_scan_loop_stops_when_session_closes(
    app: FastAPI, admin_client: AsyncClient, scanner_user: User
) -> None:
    session_id = await _open_assigned_session(admin_client, scanner_user)
    await admin_client.patch(f"/admin/sessions/{session_id}", json={"is_open": False})
    out = io.StringIO()

    async with _api_client(app) as client:
        await client.login("scanner1", SCANNER_PASSWORD)
        counts = await scan_loop(client, session_id, ["S1", "S2"], out)

    assert counts == {"recorded": 0, "duplicates": 0, "errors": 1}
    assert out.getvalue().startswith("STOPPED  S1")


def test_choose_session() -> None:
    sessions = [{"id": "a", "title": "Morning"}, {"id": "b", "title": "Afternoon"}]
    out = io.StringIO()

    assert choose_session(sessions, "b") == sessions[1]
    assert choose_session(sessions, "zzz") is None
    assert choose_session(sessions[:1], None) == sessions[0]
    assert choose_session(sessions, None, read_line=lambda prompt: "2", out=out) == sessions[1]
    assert "1. Morning" in out.getvalue()
    assert choose_session(sessions, None, read_line=lambda prompt: "9", out=out) is None


@pytest.mark.asyncio
async def test_scan_loop_reads_async_line_sources(
    app: FastAPI, admin_client: AsyncClient, scanner_user: User
) -> None:
    session_id = await _open_assigned_session(admin_client, scanner_user)

    async with _api_client(app) as client:
        await client.login("scanner1", SCANNER_PASSWORD)
        counts = await scan_loop(client, session_id, read_lines(io.StringIO("S1\nS2\n")), io.StringIO())

    assert counts == {"recorded": 2, "duplicates": 0, "errors": 0}


@pytest.mark.asyncio
async def test_run_reports_session_listing_failure(
    app: FastAPI, admin_user: User, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setattr(
        scan_main, "APIClient", lambda base_url: APIClient(base_url, transport=ASGITransport(app=app))
    )
    # Admin accounts may not list scanner sessions, so the listing fails with 403
    args = argparse.Namespace(
        base_url="http://testserver", username="admin", password=ADMIN_PASSWORD, session=None
    )

    assert await scan_main.run(args) == 1
    assert "Could not list sessions" in capsys.readouterr().err
