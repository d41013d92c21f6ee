"""Manual-entry scanning terminal for the roll-call backend.

Keyboard-wedge barcode readers type the student number followed by Enter,
so every non-empty input line is submitted as one scan.
"""

from __future__ import annotations

import argparse
import asyncio
import getpass
import sys
from typing import (
    Any,
    AsyncIterator,
    Callable,
    Dict,
    Iterable,
    List,
    Optional,
    Sequence,
    TextIO,
    Union,
)

from .api_client import APIClient, APIError, AuthError, load_base_url

QUIT_WORDS = {"q", "quit", "exit"}

LineSource = Union[Iterable[str], AsyncIterator[str]]


def choose_session(
    sessions: List[Dict[str, Any]],
    requested: Optional[str],
    read_line: Callable[[str], str] = input,
    out: TextIO = sys.stdout,
) -> Optional[Dict[str, Any]]:
    """Pick a session by id, automatically when there is one, else by prompt."""

    if requested:
        return next((s for s in sessions if s["id"] == requested), None)
    if len(sessions) == 1:
        return sessions[0]
    for index, session in enumerate(sessions, start=1):
        print(f"  {index}. {session['title']}", file=out)
    answer = read_line("Session number: ").strip()
    if answer.isdigit() and 1 <= int(answer) <= len(sessions):
        return sessions[int(answer) - 1]
    return None


async def read_lines(stream: TextIO) -> AsyncIterator[str]:
    """Yield lines from a blocking stream without stalling the event loop."""

    while True:
        line = await asyncio.to_thread(stream.readline)
        if not line:
            return
        yield line


async def _each_line(lines: LineSource) -> AsyncIterator[str]:
    if hasattr(lines, "__aiter__"):
        async for line in lines:
            yield line
    else:
        for line in lines:
            yield line


async def scan_loop(
    client: APIClient,
    session_id: str,
    lines: LineSource,
    out: TextIO = sys.stdout,
) -> Dict[str, int]:
    """Submit every line as a student number; returns per-outcome counters."""

    counts = {"recorded": 0, "duplicates": 0, "errors": 0}
    async for raw in _each_line(lines):
        number = raw.strip()
        if not number:
            continue
        if number.lower() in QUIT_WORDS:
            break
        try:
            outcome = await client.record_scan(session_id, number)
        except AuthError as exc:
            print(f"STOPPED  {number}: {exc}", file=out)
            counts["errors"] += 1
            break
        except APIError as exc:
            print(f"ERROR    {number}: {exc}", file=out)
            counts["errors"] += 1
            continue
        if outcome.already_scanned:
            print(f"ALREADY SCANNED  {number}", file=out)
            counts["duplicates"] += 1
        else:
            print(f"OK       {number}", file=out)
            counts["recorded"] += 1
    return counts


async def run(args: argparse.Namespace) -> int:
    async with APIClient(args.base_url) as client:
        password = args.password or getpass.getpass("Password: ")
        try:
            user = await client.login(args.username, password)
        except APIError as exc:
            print(f"Login failed: {exc}", file=sys.stderr)
            return 1
        print(f"Logged in as {user['username']} ({user['role']})")

        try:
            sessions = await client.list_sessions()
        except APIError as exc:
            print(f"Could not list sessions: {exc}", file=sys.stderr)
            return 1
        if not sessions:
            print("No open sessions are assigned to you.", file=sys.stderr)
            return 1
        session = choose_session(sessions, args.session)
        if session is None:
            print("Unknown session.", file=sys.stderr)
            return 1

        print(f"Scanning into {session['title']!r}. Type 'quit' to stop.")
        counts = await scan_loop(client, session["id"], read_lines(sys.stdin))
        print(
            f"Recorded {counts['recorded']}, already scanned {counts['duplicates']}, "
            f"errors {counts['errors']}."
        )
        await client.logout()
    return 0 if counts["errors"] == 0 else 2


def main(argv: Sequence[str] | None = None) -> int:
    """Parse CLI arguments and start the scanning loop."""

    parser = argparse.ArgumentParser(
        prog="rollcall-scan",
        description="Record student-number scans from the keyboard or a barcode reader.",
    )
    parser.add_argument("--base-url", default=load_base_url())
    parser.add_argument("--username", required=True)
    parser.add_argument("--password", help="Prompted for when omitted.")
    parser.add_argument("--session", help="Session id; chosen interactively when omitted.")

    args = parser.parse_args(None if argv is None else list(argv))
    try:
        return asyncio.run(run(args))
    except KeyboardInterrupt:
        return 130
