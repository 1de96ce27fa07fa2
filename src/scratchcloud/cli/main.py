"""
Shared CLI helpers: logging setup and credential resolution.
"""

from typing import Optional

import typer

from scratchcloud.config import CONFIG
from scratchcloud.session.models import Credential


def configure_logging(verbose: bool = False):
    """Configure logging for the CLI."""
    from scratchcloud.logger import setup_logging

    log_level = "DEBUG" if verbose else CONFIG.log_level
    setup_logging(level=log_level)


def resolve_credential(
    username: Optional[str], session_id: Optional[str], turbowarp: bool
) -> Credential:
    """Build a Credential from CLI options, falling back to the environment."""
    username = username or CONFIG.username
    session_id = session_id or CONFIG.session_id or ""

    if not username:
        typer.echo("❌ No username given. Pass --username or set SCRATCHCLOUD_USERNAME.")
        raise typer.Exit(code=1)
    if not turbowarp and not session_id:
        typer.echo(
            "❌ The Scratch cloud needs a session id. "
            "Pass --session-id or set SCRATCHCLOUD_SESSION_ID."
        )
        raise typer.Exit(code=1)

    return Credential(username=username, session_id=session_id)
