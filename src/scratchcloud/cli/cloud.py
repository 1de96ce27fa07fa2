"""
Cloud variable commands.

Usage:
    scratchcloud watch <project> [--turbowarp]
    scratchcloud get <project> <name> [--timeout SECONDS]
    scratchcloud set <project> <name> <value> [--timeout SECONDS]
"""

import asyncio
from typing import Optional

import typer

from scratchcloud.cli.main import resolve_credential
from scratchcloud.config import CONFIG
from scratchcloud.session import ReconnectPolicy, Session, SessionEvent

TurbowarpOption = typer.Option(
    CONFIG.turbowarp, "--turbowarp", "-t", help="Use the TurboWarp cloud servers"
)
UsernameOption = typer.Option(
    None, "--username", "-u", help="Account name (default: $SCRATCHCLOUD_USERNAME)"
)
SessionIdOption = typer.Option(
    None, "--session-id", help="scratchsessionsid cookie (default: $SCRATCHCLOUD_SESSION_ID)"
)
TimeoutOption = typer.Option(15.0, "--timeout", help="Seconds to wait for the server")


def _build_session(project, username, session_id, turbowarp, **kwargs) -> Session:
    credential = resolve_credential(username, session_id, turbowarp)
    return Session(credential, project, turbowarp=turbowarp, **kwargs)


def cloud_watch(
    project: str = typer.Argument(help="Project ID"),
    turbowarp: bool = TurbowarpOption,
    username: Optional[str] = UsernameOption,
    session_id: Optional[str] = SessionIdOption,
):
    """Print cloud variable changes until interrupted."""
    session = _build_session(project, username, session_id, turbowarp)

    @session.on(SessionEvent.OPEN)
    def _opened():
        typer.echo(f"🟢 Connected to project {project}")

    @session.on(SessionEvent.CLOSE)
    def _closed():
        if not session.is_closing:
            typer.echo("🔴 Disconnected, reconnecting...")

    @session.on(SessionEvent.ADD_VARIABLE)
    def _added(name, value):
        typer.echo(f"+ {name} = {value}")

    @session.on(SessionEvent.SET)
    def _changed(name, value):
        typer.echo(f"  {name} = {value}")

    async def _watch():
        async with session:
            await session.connection.wait_stopped()

    try:
        asyncio.run(_watch())
    except KeyboardInterrupt:
        typer.echo("Stopped.")


def cloud_get(
    project: str = typer.Argument(help="Project ID"),
    name: str = typer.Argument(help="Variable name (prefix added if missing)"),
    turbowarp: bool = TurbowarpOption,
    username: Optional[str] = UsernameOption,
    session_id: Optional[str] = SessionIdOption,
    timeout: float = TimeoutOption,
):
    """Print the current value of a cloud variable."""
    session = _build_session(project, username, session_id, turbowarp)

    async def _get() -> Optional[str]:
        async with session:
            await session.wait_for(SessionEvent.SETUP, timeout=timeout)
            return session.get(name)

    try:
        value = asyncio.run(_get())
    except asyncio.TimeoutError:
        typer.echo(f"❌ No cloud data received within {timeout}s")
        raise typer.Exit(code=1)

    if value is None:
        typer.echo(f"❌ Variable '{name}' not found")
        raise typer.Exit(code=1)
    typer.echo(value)


def cloud_set(
    project: str = typer.Argument(help="Project ID"),
    name: str = typer.Argument(help="Variable name (prefix added if missing)"),
    value: str = typer.Argument(help="Numeric value"),
    turbowarp: bool = TurbowarpOption,
    username: Optional[str] = UsernameOption,
    session_id: Optional[str] = SessionIdOption,
    timeout: float = TimeoutOption,
):
    """Write a cloud variable and exit once it has been sent."""
    session = _build_session(
        project,
        username,
        session_id,
        turbowarp,
        reconnect=ReconnectPolicy(max_attempts=3),
    )

    async def _set() -> bool:
        async with session:
            await session.wait_for(SessionEvent.OPEN, timeout=timeout)
            if not session.set(name, value):
                return False
            await session.flush(timeout=timeout)
            return True

    try:
        accepted = asyncio.run(_set())
    except asyncio.TimeoutError:
        typer.echo(f"❌ Could not reach the cloud server within {timeout}s")
        raise typer.Exit(code=1)
    except ConnectionError as e:
        typer.echo(f"❌ Write not sent: {e}")
        raise typer.Exit(code=1)

    if not accepted:
        typer.echo(
            f"❌ Invalid value: must be numeric and at most "
            f"{session.max_value_length} characters"
        )
        raise typer.Exit(code=1)
    typer.echo(f"✅ {name} = {value}")


def register_commands(app: typer.Typer):
    """Register cloud variable commands on the top-level app."""
    app.command("watch")(cloud_watch)
    app.command("get")(cloud_get)
    app.command("set")(cloud_set)
