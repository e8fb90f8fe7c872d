"""Sync engine: reconcile mapped sources into the mirror and publish it."""

from .git import MirrorRepo, is_git_available, require_git
from .manager import SyncManager
from .publisher import MirrorPublisher
from .reconciler import DirectoryReconciler, FileReconciler, reconcile
from .types import (
    ChangeKind,
    OutcomeStatus,
    PublishResult,
    PublishStatus,
    RunSummary,
    SourceKind,
    SyncMode,
    SyncOutcome,
    TreeChange,
)

__all__ = [
    "ChangeKind",
    "DirectoryReconciler",
    "FileReconciler",
    "MirrorPublisher",
    "MirrorRepo",
    "OutcomeStatus",
    "PublishResult",
    "PublishStatus",
    "RunSummary",
    "SourceKind",
    "SyncManager",
    "SyncMode",
    "SyncOutcome",
    "TreeChange",
    "is_git_available",
    "reconcile",
    "require_git",
]
