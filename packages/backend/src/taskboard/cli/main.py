"""Taskboard admin CLI — run the server, migrate, and manage accounts.

Usage:
    taskboard serve --reload                      # Run the API with uvicorn
    taskboard migrate                             # alembic upgrade head
    taskboard create-user a@b.c "Ada" --admin     # Prompts for the password
    taskboard set-password a@b.c                  # Reset a password
    taskboard approve a@b.c                       # Approve a pending account
    taskboard users --pending                     # List accounts

Account commands talk to the database directly through the same
Database handle the app uses, configured by TASKBOARD_* env vars.
"""

import asyncio
import concurrent.futures
import sys
from pathlib import Path
from typing import Optional

import click

from taskboard import __version__
from taskboard.config import settings
from taskboard.db.engine import Database
from taskboard.errors import TaskboardError
from taskboard.services.user_service import UserService

MIGRATIONS_DIR = Path(__file__).resolve().parent.parent / "db" / "migrations"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(coro):
    """Run an async coroutine from synchronous Click handler.

    Handles nested event loops (e.g. when invoked via Click CliRunner
    inside an existing async context like tests) by offloading to a thread.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        # No running loop: normal CLI invocation
        return asyncio.run(coro)
    else:
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()


async def _with_users(action):
    """Open a session, hand a UserService to `action`, always dispose the engine."""
    database = Database.from_settings(settings)
    try:
        async with database.session() as session:
            return await action(UserService(session))
    finally:
        await database.dispose()


def _fail(message: str) -> None:
    click.secho(f"Error: {message}", fg="red", err=True)
    sys.exit(1)


def _print_table(rows: list[dict], columns: list[tuple[str, str, int]]):
    """Print a simple ASCII table.

    columns: list of (header, dict_key, width)
    """
    header = "  ".join(h.ljust(w) for h, _, w in columns)
    click.secho(header, bold=True)
    click.echo("-" * len(header))
    for row in rows:
        line = "  ".join(str(row.get(k, "-"))[:w].ljust(w) for _, k, w in columns)
        click.echo(line)


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version=__version__, prog_name="taskboard")
def main():
    """Taskboard — multi-user kanban API."""


@main.command()
@click.option("--host", default=None, help="Bind address (default: TASKBOARD_HOST)")
@click.option("--port", default=None, type=int, help="Port (default: TASKBOARD_PORT)")
@click.option("--reload", is_flag=True, help="Reload on code changes")
def serve(host: Optional[str], port: Optional[int], reload: bool):
    """Run the API server."""
    import uvicorn

    uvicorn.run(
        "taskboard.main:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
    )


@main.command()
@click.option("--revision", default="head", help="Target revision")
def migrate(revision: str):
    """Apply database migrations."""
    from alembic import command
    from alembic.config import Config

    config = Config()
    config.set_main_option("script_location", str(MIGRATIONS_DIR))
    config.set_main_option("sqlalchemy.url", settings.database_url)
    command.upgrade(config, revision)
    click.secho(f"Database migrated to {revision}", fg="green")


@main.command("create-user")
@click.argument("email")
@click.argument("name")
@click.option("--password", prompt=True, hide_input=True, confirmation_prompt=True)
@click.option("--admin", is_flag=True, help="Give the account the global admin role")
@click.option("--approved", is_flag=True, help="Approve immediately (admins always are)")
def create_user(email: str, name: str, password: str, admin: bool, approved: bool):
    """Create an account."""
    if len(password) < 8:
        _fail("Password must be at least 8 characters")

    async def action(users: UserService):
        return await users.create_user(
            email,
            name,
            password,
            role="admin" if admin else "user",
            approved=approved or admin,
        )

    try:
        user = _run(_with_users(action))
    except TaskboardError as e:
        _fail(e.message)
    click.secho(f"Created {user.email} ({user.role}, {user.approval_status})", fg="green")
    click.echo(f"  id: {user.id}")


@main.command("set-password")
@click.argument("email")
@click.option("--password", prompt=True, hide_input=True, confirmation_prompt=True)
def set_password(email: str, password: str):
    """Reset a user's password and end their sessions."""
    if len(password) < 8:
        _fail("Password must be at least 8 characters")

    async def action(users: UserService):
        user = await users.get_user_by_email(email)
        if user is None:
            return None
        await users.set_password(user, password)
        return await users.delete_user_sessions(user.id)

    ended = _run(_with_users(action))
    if ended is None:
        _fail(f"No user with email {email}")
    click.secho(f"Password updated for {email} ({ended} session(s) ended)", fg="green")


@main.command()
@click.argument("email")
def approve(email: str):
    """Approve a pending account."""

    async def action(users: UserService):
        user = await users.get_user_by_email(email)
        if user is None:
            return None
        return await users.approve_user(user.id)

    user = _run(_with_users(action))
    if user is None:
        _fail(f"No user with email {email}")
    click.secho(f"Approved {user.email}", fg="green")


@main.command()
@click.option("--pending", is_flag=True, help="Include accounts awaiting approval")
def users(pending: bool):
    """List accounts."""

    async def action(service: UserService):
        return await service.list_users(approved_only=not pending)

    rows = [
        {
            "email": u.email,
            "name": u.name,
            "role": u.role,
            "status": u.approval_status,
            "id": str(u.id),
        }
        for u in _run(_with_users(action))
    ]
    click.secho(f"Users ({len(rows)}):", bold=True)
    _print_table(
        rows,
        [
            ("EMAIL", "email", 30),
            ("NAME", "name", 20),
            ("ROLE", "role", 6),
            ("STATUS", "status", 9),
            ("ID", "id", 36),
        ],
    )


if __name__ == "__main__":
    main()
