"""List, add and remove tracked file mappings."""

from typing import Optional

import typer

from ..config import ConfigFile, expand_source
from ..errors import ConfigError
from .helpers import get_workspace, load_document
from .output import error, header, success, warning

files_app = typer.Typer(
    name="files",
    help="Manage the files tracked in the mirror.",
    no_args_is_help=True,
)


def register(app: typer.Typer) -> None:
    """Register the files command group with the app."""
    app.add_typer(files_app, name="files")


def open_config_file() -> ConfigFile:
    workspace = get_workspace()
    try:
        return ConfigFile(workspace.config_path, home=workspace.env.home)
    except ConfigError as e:
        error(str(e))
        raise typer.Exit(1)


@files_app.command("list")
def list_files():
    """Show tracked files and whether each source exists."""
    document = load_document(get_workspace())

    header("Tracked Files")
    if not document.mappings:
        typer.echo("No files tracked yet. Add one with 'dotmirror files add'.")
        return

    for i, mapping in enumerate(document.mappings, 1):
        mark = "✓" if mapping.source.exists() else "✗"
        typer.echo(f"  {i:>3}. {mark} {mapping.raw_source}")
        typer.echo(f"         → {mapping.dest}")
    typer.echo(f"\nTotal: {len(document.mappings)} file(s)")


@files_app.command("add")
def add(
    source: str = typer.Argument(..., help="Source path (use ~ for home)"),
    dest: Optional[str] = typer.Option(
        None, "--dest", "-d", help="Path inside the mirror (default: basename)"
    ),
    force: bool = typer.Option(
        False, "--force", "-f", help="Add even if the source does not exist"
    ),
):
    """Start tracking a file or directory.

    Examples:
        dotmirror files add ~/.vimrc
        dotmirror files add ~/.config/nvim --dest .config/nvim
    """
    config_file = open_config_file()

    if not expand_source(source.strip(), config_file.home).exists() and not force:
        warning(f"Source does not exist: {source}")
        if not typer.confirm("Continue anyway?", default=False):
            raise typer.Exit(1)

    try:
        mapping = config_file.add_mapping(source, dest)
    except ConfigError as e:
        error(str(e))
        raise typer.Exit(1)

    config_file.save()
    success(f"Added: {mapping.raw_source} → {mapping.dest}")
    typer.echo("Run 'dotmirror sync' to copy it into the mirror.")


@files_app.command("remove")
def remove(
    source: str = typer.Argument(
        ..., help="Source path as written in the config, or its list number"
    ),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
):
    """Stop tracking a file. The mirrored copy is left in place."""
    config_file = open_config_file()

    key = int(source) if source.isdigit() else source
    try:
        index = key - 1 if isinstance(key, int) else config_file.find(key)
        if index is None or index < 0 or index >= len(config_file.entries):
            raise KeyError(source)
        entry = config_file.entries[index]
        if not yes and not typer.confirm(f"Remove '{entry['source']}'?", default=False):
            typer.echo("Cancelled")
            return
        config_file.remove_mapping(key)
    except KeyError:
        error(f"Not tracked: {source}")
        raise typer.Exit(1)

    config_file.save()
    success(f"Removed: {entry['source']}")
