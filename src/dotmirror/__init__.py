"""dotmirror - Mirror your dot(file)s into a git repository."""

from .cli import main
from .config import ConfigFile, Document, FileMapping, RepositoryTarget, load, parse
from .mirror import MirrorPublisher, SyncManager, SyncMode, reconcile
from .utils import get_version

__all__ = [
    "ConfigFile",
    "Document",
    "FileMapping",
    "MirrorPublisher",
    "RepositoryTarget",
    "SyncManager",
    "SyncMode",
    "get_version",
    "load",
    "main",
    "parse",
    "reconcile",
]
