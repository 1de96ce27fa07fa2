"""
scratchcloud CLI.

Commands live in focused modules:
- main:  logging setup, credential resolution
- cloud: watch, get, set
"""

import typer

from scratchcloud.cli.cloud import register_commands
from scratchcloud.cli.main import configure_logging

app = typer.Typer(help="scratchcloud - Scratch cloud variables from the terminal")


@app.callback()
def main(
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable verbose logging (DEBUG level)"
    ),
):
    """
    scratchcloud - Scratch cloud variables from the terminal.
    """
    configure_logging(verbose)


register_commands(app)

if __name__ == "__main__":
    app()
