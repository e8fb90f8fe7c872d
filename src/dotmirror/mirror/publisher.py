"""Commit the mirror and push it to the configured remote."""

import logging
import os
import subprocess
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterable, List, Optional

from ..config import RepositoryTarget
from ..errors import PublishFailed
from .git import MirrorRepo
from .types import PublishResult, PublishStatus, RunSummary

logger = logging.getLogger(__name__)

COMMIT_PREFIX = "Update dotfiles"
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def build_commit_message(now: Optional[datetime] = None) -> str:
    """Commit message with a second-resolution timestamp."""
    now = now or datetime.now()
    return f"{COMMIT_PREFIX} - {now.strftime(TIMESTAMP_FORMAT)}"


def _error_text(result: subprocess.CompletedProcess) -> str:
    return (result.stderr or result.stdout or "").strip() or (
        f"exit code {result.returncode}"
    )


class MirrorPublisher:
    """Stages, commits and pushes the mirror root.

    The publisher never syncs files itself; it is called after a
    SyncManager run by whoever decides the result should be published.
    A failed push leaves the commit and the synced files in place.
    """

    def __init__(
        self,
        repo: Optional[MirrorRepo] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.repo = repo
        self.clock = clock

    def _repo_for(self, mirror_root: Path) -> MirrorRepo:
        if self.repo is None:
            self.repo = MirrorRepo(mirror_root.parent)
        return self.repo

    def ensure_repository(self, repo: MirrorRepo, target: RepositoryTarget):
        """Initialize the working copy and attach the remote if needed.

        Raises:
            PublishFailed: If git init or the remote setup fails.
        """
        if not repo.exists():
            logger.info(f"Initializing git repository in {repo.root}")
            result = repo.run("init", check=False)
            if result.returncode != 0:
                raise PublishFailed("git init", _error_text(result))

        if not target.url:
            if repo.remote_url() is None:
                raise PublishFailed("git remote", "no repository url configured")
            return

        current = repo.remote_url()
        if current is None:
            result = repo.run("remote", "add", repo.remote, target.url, check=False)
        elif current != target.url:
            logger.info(f"Updating {repo.remote} url to {target.url}")
            result = repo.run(
                "remote", "set-url", repo.remote, target.url, check=False
            )
        else:
            return
        if result.returncode != 0:
            raise PublishFailed("git remote", _error_text(result))

    def stage(
        self, repo: MirrorRepo, mirror_root: Path, extra_paths: Iterable[Path] = ()
    ):
        """Stage the mirror root (additions, edits and deletions) and extras."""
        paths: List[str] = []
        for path in [mirror_root, *extra_paths]:
            if Path(path).exists():
                paths.append(os.path.relpath(path, repo.root))
        if not paths:
            return
        result = repo.run("add", "-A", "--", *paths, check=False)
        if result.returncode != 0:
            raise PublishFailed("git add", _error_text(result))

    def staged_files(self, repo: MirrorRepo) -> List[str]:
        """Paths staged for the next commit.

        Raises:
            PublishFailed: If git diff fails.
        """
        result = repo.run("diff", "--cached", "--name-only", check=False)
        if result.returncode != 0:
            raise PublishFailed("git diff", _error_text(result))
        return [line for line in result.stdout.splitlines() if line.strip()]

    def commit(self, repo: MirrorRepo, message: Optional[str] = None) -> str:
        """Create a commit and return its id.

        The message defaults to the timestamped update message.

        Raises:
            PublishFailed: If git commit fails.
        """
        if message is None:
            message = build_commit_message(self.clock())
        result = repo.run("commit", "-m", message, check=False)
        if result.returncode != 0:
            raise PublishFailed("git commit", _error_text(result))
        commit_id = repo.head_commit() or ""
        logger.info(f"Created commit {commit_id[:7]}: {message}")
        return commit_id

    def push(self, repo: MirrorRepo, target: RepositoryTarget) -> Optional[str]:
        """Push to the target branch. Returns the failure reason, if any.

        Always pushes HEAD to the target branch by name, so the local
        branch may be named differently. Sets the upstream on the first
        push. No timeout is applied, so a push that hangs blocks the caller.
        """
        refspec = f"HEAD:{target.branch}"
        if repo.has_upstream():
            result = repo.run("push", repo.remote, refspec, check=False)
        else:
            result = repo.run("push", "-u", repo.remote, refspec, check=False)
        if result.returncode != 0:
            reason = _error_text(result)
            logger.error(f"Push failed: {reason}")
            return reason
        logger.info(f"Pushed to {repo.remote}/{target.branch}")
        return None

    def publish(
        self,
        mirror_root: Path,
        target: RepositoryTarget,
        summary: Optional[RunSummary],
        extra_paths: Iterable[Path] = (),
    ) -> PublishResult:
        """Commit and push the mirror.

        Args:
            mirror_root: Directory holding the mirrored files; its parent
                is the repository root.
            target: Remote url and branch to push to.
            summary: Result of the sync run. A summary with no changes
                publishes nothing. None publishes whatever is pending.
            extra_paths: Other files to stage alongside the mirror, such as
                the configuration document.

        Returns:
            PublishResult: NOTHING_TO_COMMIT, COMMITTED or PUSH_FAILED.

        Raises:
            PublishFailed: If init, remote setup, staging or commit fails.
        """
        if summary is not None and summary.changed == 0:
            logger.info("No changes to commit")
            return PublishResult(PublishStatus.NOTHING_TO_COMMIT)

        mirror_root = Path(mirror_root)
        repo = self._repo_for(mirror_root)

        self.ensure_repository(repo, target)
        self.stage(repo, mirror_root, extra_paths)

        if not self.staged_files(repo):
            logger.info("No changes to commit")
            return PublishResult(PublishStatus.NOTHING_TO_COMMIT)

        commit_id = self.commit(repo)

        reason = self.push(repo, target)
        if reason is not None:
            return PublishResult(
                PublishStatus.PUSH_FAILED, commit_id=commit_id, reason=reason
            )
        return PublishResult(PublishStatus.COMMITTED, commit_id=commit_id)
