"""Config management commands for dotmirror CLI."""

import os
import subprocess
from pathlib import Path
from typing import Optional

import typer

from ..config import ConfigFile
from ..errors import ConfigError
from ..mirror import MirrorRepo
from ..utils import validate_git_url
from .helpers import get_workspace, load_document
from .output import error, header, success, warning

DEFAULT_EDITOR = "vi"

config_app = typer.Typer(
    name="config",
    help="Show or change the dotmirror configuration.",
    no_args_is_help=False,  # Allow 'dotmirror config' to run show
)


def register(app: typer.Typer) -> None:
    """Register config command group with the app."""
    app.add_typer(config_app, name="config")


@config_app.callback(invoke_without_command=True)
def config_callback(ctx: typer.Context):
    """Show the current configuration.

    Without subcommands, prints a summary of the configuration.
    """
    if ctx.invoked_subcommand is None:
        show()


@config_app.command()
def show():
    """Show repository settings, tracked file count and git status."""
    workspace = get_workspace()
    document = load_document(workspace)
    target = document.repository

    header("Configuration")
    typer.echo(f"Config file : {workspace.config_path}")
    typer.echo(f"Mirror root : {workspace.mirror_root}")
    typer.echo(f"User        : {workspace.env.user} ({workspace.env.system})")
    typer.echo(f"Repository  : {target.url or '(not set)'}")
    typer.echo(f"Branch      : {target.branch}")
    typer.echo(f"Provider    : {target.provider}")
    typer.echo(f"Tracked     : {len(document.mappings)} file(s)")

    repo = MirrorRepo(workspace.root)
    if not repo.exists():
        typer.echo("Git status  : not initialized")
        return
    status = repo.status()
    if status:
        count = len(status.splitlines())
        typer.echo(f"Git status  : {count} uncommitted change(s)")
    else:
        typer.echo("Git status  : clean")


@config_app.command()
def repo(
    url: Optional[str] = typer.Option(None, "--url", help="New repository URL"),
    branch: Optional[str] = typer.Option(None, "--branch", "-b", help="New branch"),
):
    """Change the repository URL and branch.

    Prompts with the current values for anything not given as an option.
    """
    workspace = get_workspace()
    try:
        config_file = ConfigFile(workspace.config_path, home=workspace.env.home)
    except ConfigError as e:
        error(str(e))
        raise typer.Exit(1)

    if url is None and branch is None:
        url = typer.prompt("New repository URL", default=config_file.url or "")
        branch = typer.prompt("New branch", default=config_file.branch)

    if url and not validate_git_url(url):
        warning(f"This does not look like a git URL: {url}")

    config_file.set_repository(url=url, branch=branch)
    config_file.save()
    success("Repository configuration updated")
    typer.echo(f"  URL: {config_file.url or '(not set)'}")
    typer.echo(f"  Branch: {config_file.branch}")


@config_app.command()
def edit():
    """Open the configuration file in $EDITOR."""
    workspace = get_workspace()
    if not workspace.config_path.exists():
        error(f"Config file not found: {workspace.config_path}")
        typer.echo("Run 'dotmirror init' to create one.")
        raise typer.Exit(1)

    open_in_editor(workspace.config_path)


def open_in_editor(path: Path) -> None:
    """Open a file in $EDITOR, then $VISUAL, then vi."""
    editor = os.environ.get("EDITOR") or os.environ.get("VISUAL") or DEFAULT_EDITOR
    try:
        subprocess.run([*editor.split(), str(path)], check=True)
    except FileNotFoundError:
        error(f"Editor not found: {editor}")
        raise typer.Exit(1)
    except subprocess.CalledProcessError as e:
        error(f"Editor exited with status {e.returncode}")
        raise typer.Exit(1)
