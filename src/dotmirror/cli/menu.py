"""Interactive menu over the dotmirror commands."""

from typing import Callable, Dict, Tuple

import typer

from ..config import default_dest, expand_source
from ..errors import ConfigError
from . import config_cmd, files, sync
from .helpers import get_workspace
from .output import error, header


def register(app: typer.Typer) -> None:
    """Register the menu command with the app."""
    app.command()(menu)


def _add_file():
    source = typer.prompt("Enter source path (use ~ for home)", default="").strip()
    if not source:
        typer.echo("Cancelled")
        return
    try:
        suggested = default_dest(expand_source(source, get_workspace().env.home))
    except ConfigError as e:
        error(str(e))
        return
    dest = typer.prompt("Destination path in the mirror", default=suggested)
    files.add(source=source, dest=dest, force=False)


def _remove_file():
    files.list_files()
    choice = typer.prompt("Enter number to remove (0 to cancel)", default="0").strip()
    if choice in ("", "0"):
        typer.echo("Cancelled")
        return
    files.remove(source=choice, yes=False)


MENU: Dict[str, Tuple[str, Callable[[], None]]] = {
    "1": ("View tracked files", files.list_files),
    "2": ("Add file to track", _add_file),
    "3": ("Remove tracked file", _remove_file),
    "4": ("Configure git repository", lambda: config_cmd.repo(url=None, branch=None)),
    "5": (
        "Sync (dry run)",
        lambda: sync.sync(dry_run=True, push_changes=False, replace_conflicts=False),
    ),
    "6": (
        "Sync (ask before pushing)",
        lambda: sync.sync(dry_run=False, push_changes=None, replace_conflicts=False),
    ),
    "7": ("Sync and push", sync.push),
    "8": ("Edit config file", config_cmd.edit),
    "9": ("View configuration", config_cmd.show),
}


def menu():
    """Interactive menu for managing dotfiles."""
    while True:
        header("Dotfiles Manager")
        for key, (label, _) in MENU.items():
            typer.echo(f"  {key}) {label}")
        typer.echo("  0) Exit")

        try:
            choice = typer.prompt("Select option", default="0").strip()
        except typer.Abort:
            return
        if choice in ("0", "q"):
            typer.echo("Goodbye!")
            return
        if choice not in MENU:
            typer.echo(f"Invalid option: {choice}")
            continue

        _, action = MENU[choice]
        try:
            action()
        except typer.Exit:
            # Commands exit on errors they have already reported
            pass
        except typer.Abort:
            typer.echo("\nCancelled")
