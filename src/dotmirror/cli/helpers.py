"""Shared helper functions for CLI commands."""

import logging
from pathlib import Path
from typing import List, Optional

import typer

from ..config import Document, load
from ..errors import ConfigError, DependencyMissing, PublishFailed
from ..mirror import (
    MirrorPublisher,
    MirrorRepo,
    OutcomeStatus,
    PublishStatus,
    RunSummary,
    SyncMode,
    SyncOutcome,
    require_git,
)
from ..system import Workspace
from .output import error, header, success, warning

logger = logging.getLogger(__name__)

# Set by the app callback from --root/--config
_workspace: Optional[Workspace] = None

STATUS_LINES = {
    SyncMode.APPLY: {
        OutcomeStatus.CREATED: "✓ Created: {dest}",
        OutcomeStatus.UPDATED: "✓ Synced: {dest}",
    },
    SyncMode.PREVIEW: {
        OutcomeStatus.CREATED: "🔍 Would create: {dest}",
        OutcomeStatus.UPDATED: "🔍 Would update: {dest}",
    },
}


def set_workspace(root: Optional[Path] = None, config_path: Optional[Path] = None):
    global _workspace
    _workspace = Workspace(root, config_path)


def get_workspace() -> Workspace:
    global _workspace
    if _workspace is None:
        _workspace = Workspace()
    return _workspace


def load_document(workspace: Workspace) -> Document:
    """Load the configuration, exiting with status 1 if it is unusable."""
    try:
        return load(workspace.config_path, home=workspace.env.home)
    except ConfigError as e:
        error(str(e))
        typer.echo("Run 'dotmirror init' to create one.", err=True)
        raise typer.Exit(1)


def require_git_installed():
    """Exit with status 1 before doing any work if git is missing."""
    try:
        require_git()
    except DependencyMissing as e:
        error(f"Error: {e}")
        raise typer.Exit(1)


def format_outcome(outcome: SyncOutcome, mode: SyncMode) -> List[str]:
    """Render one outcome as display lines."""
    status = outcome.status
    if status == OutcomeStatus.SOURCE_MISSING:
        return [f"⚠ Skip: Source does not exist: {outcome.source}"]
    if status == OutcomeStatus.FAILED:
        return [f"✗ Failed: {outcome.dest}: {outcome.error}"]
    if status == OutcomeStatus.UNCHANGED:
        return [f"≈ No changes: {outcome.dest}"]

    lines = [STATUS_LINES[mode][status].format(dest=outcome.dest)]
    for change in outcome.changes:
        lines.append(f"     {change}")
    if outcome.omitted:
        lines.append(f"     ... and {outcome.omitted} more changes")
    return lines


def print_summary(summary: RunSummary):
    for outcome in summary.outcomes:
        for line in format_outcome(outcome, summary.mode):
            typer.echo(f"  {line}")
    header(f"Summary: {summary.changed}/{summary.total} files changed")


def stage_extras(workspace: Workspace) -> List[Path]:
    """Extra paths committed with the mirror: the config, if it lives in the repo."""
    config_path = workspace.config_path.resolve()
    if workspace.root in config_path.parents:
        return [config_path]
    return []


def has_unpublished_changes(workspace: Workspace) -> bool:
    """True if the workspace holds mirror changes that were never committed."""
    repo = MirrorRepo(workspace.root)
    if repo.exists():
        return repo.has_pending_changes()
    return workspace.mirror_root.is_dir() and any(workspace.mirror_root.iterdir())


def publish(
    workspace: Workspace,
    document: Document,
    summary: Optional[RunSummary],
) -> bool:
    """Publish the mirror and report the result. Returns True on success."""
    target = document.repository
    header("Git Operations")
    typer.echo(f"Repository: {target.url or '(not set)'}")
    typer.echo(f"Branch: {target.branch}")
    typer.echo(f"Provider: {target.provider}")

    publisher = MirrorPublisher(MirrorRepo(workspace.root))
    try:
        result = publisher.publish(
            workspace.mirror_root,
            target,
            summary,
            extra_paths=stage_extras(workspace),
        )
    except PublishFailed as e:
        error(str(e))
        return False

    if result.status == PublishStatus.NOTHING_TO_COMMIT:
        typer.echo("No changes to commit")
        return True
    if result.status == PublishStatus.PUSH_FAILED:
        warning(f"Committed {result.commit_id[:7]} locally but push failed:")
        typer.echo(f"  {result.reason}", err=True)
        return False

    success(f"Successfully pushed to {target.provider} ({target.branch})")
    return True
