"""Thin wrapper around the git command line for the mirror repository."""

import logging
import shutil
import subprocess
from pathlib import Path
from typing import Optional

from ..errors import DependencyMissing

logger = logging.getLogger(__name__)


def is_git_available() -> bool:
    """Check if git is installed and accessible."""
    return shutil.which("git") is not None


def require_git():
    """Raise DependencyMissing unless git is on PATH."""
    if not is_git_available():
        raise DependencyMissing("git")


class MirrorRepo:
    """The git working copy that contains the mirror root."""

    def __init__(self, root: Path, remote: str = "origin"):
        self.root = Path(root)
        self.remote = remote

    @property
    def git_dir(self) -> Path:
        return self.root / ".git"

    def exists(self) -> bool:
        return self.git_dir.exists()

    def run(
        self, *args, check: bool = True, timeout: Optional[int] = None
    ) -> subprocess.CompletedProcess:
        """Run a git command from the repository root.

        Args:
            *args: Git command arguments (e.g., "status", "--porcelain")
            check: If True, raise on non-zero exit code
            timeout: Command timeout in seconds, None to wait indefinitely

        Returns:
            CompletedProcess with stdout/stderr captured as text
        """
        cmd = ["git"] + list(args)
        logger.debug(f"Running {' '.join(cmd)} in {self.root}")
        return subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            timeout=timeout,
            check=check,
            cwd=str(self.root),
        )

    def status(self, *paths: str) -> str:
        """Porcelain status, optionally limited to ``paths``."""
        args = ["status", "--porcelain"]
        if paths:
            args += ["--"] + list(paths)
        result = self.run(*args, check=False)
        if result.returncode != 0:
            return ""
        return result.stdout.strip()

    def has_pending_changes(self, *paths: str) -> bool:
        if not self.exists():
            return False
        return bool(self.status(*paths))

    def current_branch(self) -> Optional[str]:
        result = self.run("symbolic-ref", "--short", "HEAD", check=False)
        if result.returncode == 0:
            return result.stdout.strip() or None
        return None

    def remote_url(self) -> Optional[str]:
        result = self.run("remote", "get-url", self.remote, check=False)
        if result.returncode == 0:
            return result.stdout.strip()
        return None

    def config_value(self, key: str, global_scope: bool = False) -> Optional[str]:
        """Read a git config value, from the user's global config if asked."""
        scope = ["--global"] if global_scope else []
        result = self.run("config", *scope, "--get", key, check=False)
        if result.returncode == 0:
            return result.stdout.strip() or None
        return None

    def set_config(self, key: str, value: str):
        """Set a repository-local git config value."""
        self.run("config", key, value)

    def has_upstream(self) -> bool:
        result = self.run(
            "rev-parse",
            "--abbrev-ref",
            "--symbolic-full-name",
            "@{u}",
            check=False,
        )
        return result.returncode == 0

    def head_commit(self) -> Optional[str]:
        result = self.run("rev-parse", "HEAD", check=False)
        if result.returncode == 0:
            return result.stdout.strip()
        return None
