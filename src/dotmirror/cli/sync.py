"""Sync and push commands for dotmirror CLI."""

from typing import Optional, Tuple

import typer

from ..config import Document
from ..mirror import RunSummary, SyncManager, SyncMode
from ..system import Workspace
from .helpers import (
    get_workspace,
    has_unpublished_changes,
    load_document,
    print_summary,
    publish,
    require_git_installed,
)
from .output import header


def register(app: typer.Typer) -> None:
    """Register sync commands with the app."""
    app.command()(sync)
    app.command()(push)


def run_sync(
    workspace: Workspace, mode: SyncMode, replace_conflicts: bool = False
) -> Tuple[Document, RunSummary]:
    document = load_document(workspace)
    if mode == SyncMode.PREVIEW:
        header("DRY RUN: Preview changes (no files will be copied)")
    else:
        header(f"Syncing dotfiles to {workspace.mirror_root}")

    manager = SyncManager(workspace.mirror_root)
    summary = manager.run(document.mappings, mode, replace_conflicts=replace_conflicts)
    print_summary(summary)
    return document, summary


def sync(
    dry_run: bool = typer.Option(
        False, "--dry-run", "-n", help="Preview changes without copying files"
    ),
    push_changes: Optional[bool] = typer.Option(
        None,
        "--push/--no-push",
        help="Push without asking (or never push). Asks by default.",
    ),
    replace_conflicts: bool = typer.Option(
        False,
        "--replace-conflicts",
        help="Replace mirror entries that changed between file and directory",
    ),
):
    """Copy tracked files into the mirror, then offer to push.

    Examples:
        dotmirror sync              # Sync, then ask before pushing
        dotmirror sync --dry-run    # Preview changes without copying
    """
    workspace = get_workspace()
    require_git_installed()

    mode = SyncMode.PREVIEW if dry_run else SyncMode.APPLY
    document, summary = run_sync(workspace, mode, replace_conflicts)

    if dry_run:
        typer.echo("\n🔍 Dry run complete - no files were actually copied")
        typer.echo("Run without --dry-run to apply these changes")
    else:
        if summary.changed or has_unpublished_changes(workspace):
            if push_changes is None:
                push_changes = typer.confirm(
                    "\nGit changes detected. Push to git?", default=False
                )
            if push_changes:
                publish_summary = summary if summary.changed else None
                if not publish(workspace, document, publish_summary):
                    raise typer.Exit(1)
            else:
                typer.echo("Skipped git push")
        else:
            typer.echo("\nNo git changes to push")

    if summary.failed:
        raise typer.Exit(1)
    typer.echo("\n✓ Done!")


def push():
    """Sync tracked files and push to git without prompting."""
    workspace = get_workspace()
    require_git_installed()

    document, summary = run_sync(workspace, SyncMode.APPLY)

    publish_summary: Optional[RunSummary] = summary
    if not summary.changed and has_unpublished_changes(workspace):
        # Changes left behind by an earlier sync that was not pushed
        publish_summary = None

    if not publish(workspace, document, publish_summary):
        raise typer.Exit(1)

    if summary.failed:
        raise typer.Exit(1)
    typer.echo("\n✓ Done!")
