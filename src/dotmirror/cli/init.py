"""Init command for dotmirror CLI."""

import logging
import subprocess
from pathlib import Path
from typing import Optional, Tuple

import typer

from ..config import DEFAULT_BRANCH, ConfigFile, RepositoryTarget
from ..errors import PublishFailed
from ..mirror import MirrorPublisher, MirrorRepo, SyncMode
from ..system import Workspace
from ..utils import validate_git_url
from .helpers import get_workspace, require_git_installed, stage_extras
from .output import error, header, success, warning
from .sync import run_sync

logger = logging.getLogger(__name__)

GITIGNORE = """# macOS
.DS_Store

# Temp files
*.tmp
*.log

# IDE
.vscode/
.idea/
"""


def register(app: typer.Typer) -> None:
    """Register the init command with the app."""
    app.command()(init)


def _ask_identity(repo: MirrorRepo, key: str, label: str, given: Optional[str]) -> str:
    if given:
        return given
    default = repo.config_value(f"user.{key}", global_scope=True)
    if default:
        return typer.prompt(f"Git user {label}", default=default).strip()
    return typer.prompt(f"Git user {label}").strip()


def _collect_identity(
    repo: MirrorRepo, name: Optional[str], email: Optional[str]
) -> Tuple[str, str]:
    """Ask for the commit identity, defaulting to the global git config."""
    name = _ask_identity(repo, "name", "name", name)
    email = _ask_identity(repo, "email", "email", email)
    success(f"User: {name} <{email}>")
    return name, email


def _init_git_repo(repo: MirrorRepo, url: str, branch: str, name: str, email: str):
    header("Initializing Git Repository")
    existed = repo.exists()
    if url:
        publisher = MirrorPublisher(repo)
        publisher.ensure_repository(repo, RepositoryTarget(url=url, branch=branch))
    elif not existed:
        result = repo.run("init", check=False)
        if result.returncode != 0:
            raise PublishFailed("git init", result.stderr.strip())

    if existed:
        typer.echo("• Git repository already exists")
    else:
        success("Git repository initialized")

    repo.set_config("user.name", name)
    repo.set_config("user.email", email)
    success("Git user configured")
    if url:
        success(f"Remote '{repo.remote}' set to {url}")


def _write_gitignore(root: Path) -> Path:
    path = root / ".gitignore"
    if path.exists():
        typer.echo("• .gitignore already exists")
    else:
        path.write_text(GITIGNORE)
        success("Created .gitignore")
    return path


def _create_initial_commit(
    workspace: Workspace, repo: MirrorRepo, url: str, name: str, email: str
):
    """Commit the configuration and .gitignore. Failures only warn."""
    header("Creating Initial Commit")
    publisher = MirrorPublisher(repo)
    gitignore = workspace.root / ".gitignore"
    message = (
        "Initial commit: Setup dotfiles management\n\n"
        "- Add configuration\n"
        f"- Configure repository: {url or '(not set)'}\n"
        f"- Set up by: {name} <{email}>\n"
    )
    try:
        publisher.stage(repo, gitignore, stage_extras(workspace))
        if not publisher.staged_files(repo):
            typer.echo("• No changes to commit")
            return
        commit_id = publisher.commit(repo, message)
    except PublishFailed as e:
        warning(f"Initial commit skipped: {e}")
        return
    success(f"Initial commit created ({commit_id[:7]})")


def _offer_initial_sync(workspace: Workspace, sync_now: Optional[bool]):
    """Preview a first sync, then apply it.

    ``sync_now`` answers both questions in advance; None asks.
    """
    ask = sync_now is None
    if ask:
        header("Initial Sync")
        typer.echo(f"This copies files from your home directory to {workspace.mirror_root}")
        sync_now = typer.confirm("Sync now?", default=True)
    if not sync_now:
        return

    run_sync(workspace, SyncMode.PREVIEW)
    if ask and not typer.confirm("\nProceed with actual sync?", default=True):
        return
    run_sync(workspace, SyncMode.APPLY)


def init(
    url: str = typer.Option(
        "", "--url", prompt="Repository URL (blank to set later)", help="Git remote URL"
    ),
    branch: str = typer.Option(
        DEFAULT_BRANCH, "--branch", "-b", prompt="Branch", help="Branch to push to"
    ),
    name: Optional[str] = typer.Option(
        None, "--name", help="Commit author name (defaults to git's global user.name)"
    ),
    email: Optional[str] = typer.Option(
        None, "--email", help="Commit author email (defaults to git's global user.email)"
    ),
    sync_now: Optional[bool] = typer.Option(
        None, "--sync/--no-sync", help="Run the first sync without asking (or skip it)"
    ),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite existing configuration"),
):
    """Set up the configuration, the mirror and its git repository.

    Examples:
        dotmirror init --url git@github.com:me/dots.git
        dotmirror init --no-sync    # set up only, sync later
    """
    workspace = get_workspace()
    require_git_installed()
    config_path = workspace.config_path

    if config_path.exists() and not force:
        error(f"Config file already exists at {config_path}. Use --force to overwrite.")
        raise typer.Exit(1)

    url = url.strip()
    if url and not validate_git_url(url):
        warning(f"This does not look like a git URL: {url}")

    workspace.mirror_root.mkdir(parents=True, exist_ok=True)
    logger.info(f"Created mirror root at {workspace.mirror_root}")
    repo = MirrorRepo(workspace.root)
    name, email = _collect_identity(repo, name, email)

    config_file = ConfigFile.create_default(
        config_path, url=url, branch=branch, home=workspace.env.home
    )
    success(f"Configuration file created: {config_path}")
    typer.echo(f"  Tracking {len(config_file.entries)} file(s) to start with.")

    try:
        _init_git_repo(repo, url, branch, name, email)
    except (PublishFailed, subprocess.CalledProcessError) as e:
        error(f"Git setup failed: {e}")
        raise typer.Exit(1)
    _write_gitignore(workspace.root)
    _create_initial_commit(workspace, repo, url, name, email)

    _offer_initial_sync(workspace, sync_now)

    typer.echo("\nNext steps:")
    typer.echo("  dotmirror files list      # review tracked files")
    typer.echo("  dotmirror sync            # copy changes and push")
