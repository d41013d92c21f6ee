"""Command-line entry point for administering roll-call accounts."""

from __future__ import annotations

import argparse
import asyncio
import getpass
import sys
from typing import Sequence

from sqlalchemy import func, select

from .config import configure_logging, get_settings
from .database import Database
from .errors import Conflict, RollCallError
from .models import Role, User
from .services import users as user_service

MIN_PASSWORD_LENGTH = 4


def _read_password(provided: str | None) -> str:
    password = provided or getpass.getpass("Password: ")
    if not provided and password != getpass.getpass("Repeat password: "):
        raise ValueError("Passwords do not match")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    return password


async def _create_admin(database: Database, username: str, password: str) -> int:
    async with database.sessionmaker() as session:
        try:
            user = await user_service.create_user(session, username, password, role=Role.ADMIN)
        except Conflict:
            print(f"User {username!r} already exists.", file=sys.stderr)
            return 1
    print(f"Created admin {user.username!r} (id={user.id}).")
    return 0


async def _check_admin(database: Database) -> int:
    async with database.sessionmaker() as session:
        result = await session.execute(select(User).where(User.role == Role.ADMIN).order_by(User.created_at))
        admins = list(result.scalars().all())
        total = (await session.execute(select(func.count()).select_from(User))).scalar_one()

    if not admins:
        print("No admin account found. Create one with: rollcall-admin create-admin --username admin")
        return 1
    for admin in admins:
        state = "active" if admin.is_active else "disabled"
        print(f"{admin.username}\t{state}\tid={admin.id}\tcreated={admin.created_at:%Y-%m-%d %H:%M}")
    print(f"Total users in database: {total}")
    return 0


async def _reset_password(database: Database, username: str, password: str) -> int:
    async with database.sessionmaker() as session:
        user = await user_service.get_user_by_username(session, username)
        if user is None:
            print(f"User {username!r} not found.", file=sys.stderr)
            return 1
        await user_service.update_user(session, user.id, password=password)
    print(f"Password updated for {username!r}.")
    return 0


async def _run(args: argparse.Namespace) -> int:
    settings = get_settings()
    database = Database(settings.database_url, echo=settings.echo_sql)
    try:
        await database.create_all()
        if args.command == "create-admin":
            return await _create_admin(database, args.username, _read_password(args.password))
        if args.command == "check-admin":
            return await _check_admin(database)
        if args.command == "reset-password":
            return await _reset_password(database, args.username, _read_password(args.password))
        raise ValueError(f"Unknown command {args.command!r}")
    finally:
        await database.dispose()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rollcall-admin",
        description="Manage roll-call administrator accounts.",
    )
    subcommands = parser.add_subparsers(dest="command", required=True)

    create = subcommands.add_parser("create-admin", help="Create an administrator account.")
    create.add_argument("--username", default="admin")
    create.add_argument("--password", help="Prompted for when omitted.")

    subcommands.add_parser("check-admin", help="List administrator accounts.")

    reset = subcommands.add_parser("reset-password", help="Set a new password for an account.")
    reset.add_argument("--username", required=True)
    reset.add_argument("--password", help="Prompted for when omitted.")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Parse CLI arguments and dispatch to the requested command."""

    args = build_parser().parse_args(None if argv is None else list(argv))
    configure_logging("WARNING")
    try:
        return asyncio.run(_run(args))
    except (RollCallError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
