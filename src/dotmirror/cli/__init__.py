"""dotmirror CLI - Command-line interface for dotfiles syncing."""

from pathlib import Path
from typing import Optional

import typer

from ..utils import get_version, setup_logging
from . import config_cmd, files, init, menu, sync
from .helpers import set_workspace

# Create the main app
app = typer.Typer(
    name="dotmirror",
    help="Mirror your dotfiles into a git repository.",
    add_completion=True,
    no_args_is_help=True,
)


@app.callback()
def main_callback(
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose logging output.",
    ),
    root: Optional[Path] = typer.Option(
        None,
        "--root",
        envvar="DOTMIRROR_ROOT",
        help="Workspace root holding _etc/ and _homeroot/ (default: current directory).",
    ),
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Configuration file (default: <root>/_etc/managed-files.yaml).",
    ),
):
    """dotmirror - copy dotfiles into a mirror and push it to git."""
    setup_logging(verbose=verbose)
    set_workspace(root, config)


# Register all commands
init.register(app)
sync.register(app)
files.register(app)
config_cmd.register(app)
menu.register(app)


@app.command()
def version():
    """Show the version of dotmirror."""
    typer.echo(f"dotmirror version {get_version()}")


def main():
    """Main entry point for the dotmirror CLI."""
    app()
