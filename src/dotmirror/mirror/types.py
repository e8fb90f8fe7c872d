"""Result types shared by the reconciler, sync manager and publisher."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional

# Number of directory changes carried in an outcome for display
PREVIEW_LIMIT = 5


class SyncMode(Enum):
    PREVIEW = "preview"
    APPLY = "apply"


class SourceKind(Enum):
    FILE = "file"
    DIRECTORY = "directory"

    @classmethod
    def of(cls, path: Path) -> Optional["SourceKind"]:
        """Kind of an existing path (symlinks followed), None if missing."""
        if path.is_dir():
            return cls.DIRECTORY
        if path.exists():
            return cls.FILE
        return None


class OutcomeStatus(Enum):
    CREATED = "created"
    UPDATED = "updated"
    UNCHANGED = "unchanged"
    SOURCE_MISSING = "source_missing"
    FAILED = "failed"


class ChangeKind(Enum):
    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"


@dataclass(frozen=True)
class TreeChange:
    """One entry that differs between a source tree and its mirror."""

    kind: ChangeKind
    path: str
    is_dir: bool = False

    def __str__(self) -> str:
        suffix = "/" if self.is_dir else ""
        return f"{self.kind.value} {self.path}{suffix}"


@dataclass
class SyncOutcome:
    """Result of reconciling one mapping."""

    status: OutcomeStatus
    dest: str
    source: Optional[Path] = None
    kind: Optional[SourceKind] = None
    changes: List[TreeChange] = field(default_factory=list)
    omitted: int = 0
    error: Optional[str] = None

    @property
    def changed(self) -> bool:
        return self.status in (OutcomeStatus.CREATED, OutcomeStatus.UPDATED)


@dataclass
class RunSummary:
    """Outcomes of one sync run, in mapping order."""

    mode: SyncMode
    outcomes: List[SyncOutcome] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.outcomes)

    @property
    def changed(self) -> int:
        return sum(1 for o in self.outcomes if o.changed)

    @property
    def missing(self) -> int:
        return self._count(OutcomeStatus.SOURCE_MISSING)

    @property
    def failed(self) -> int:
        return self._count(OutcomeStatus.FAILED)

    def _count(self, status: OutcomeStatus) -> int:
        return sum(1 for o in self.outcomes if o.status == status)


class PublishStatus(Enum):
    NOTHING_TO_COMMIT = "nothing_to_commit"
    COMMITTED = "committed"
    PUSH_FAILED = "push_failed"


@dataclass
class PublishResult:
    status: PublishStatus
    commit_id: Optional[str] = None
    reason: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.status != PublishStatus.PUSH_FAILED
