"""Reconcile a single source path with its copy in the mirror."""

import logging
from pathlib import Path
from typing import Dict, List, Optional, Type

from ..errors import MirrorTypeConflict, UnsupportedSource
from .tree import apply_changes, copy_file_atomic, diff_trees, files_equal, remove_path
from .types import (
    PREVIEW_LIMIT,
    OutcomeStatus,
    SourceKind,
    SyncMode,
    SyncOutcome,
    TreeChange,
)

logger = logging.getLogger(__name__)


class Reconciler:
    """Compares one source with its mirrored destination.

    ``diff`` computes the candidate outcome without touching the disk;
    ``apply`` performs the writes that outcome describes. A destination
    whose type differs from the source's raises MirrorTypeConflict unless
    ``replace_conflicts`` is set, in which case it is removed and rebuilt.

    A symlink at the destination is never followed and never a conflict,
    for file and directory mappings alike: the mirror holds real copies,
    so the link is removed and replaced (UPDATED).
    """

    kind: SourceKind

    def __init__(
        self,
        source: Path,
        destination: Path,
        replace_conflicts: bool = False,
        label: Optional[str] = None,
    ):
        self.source = source
        self.destination = destination
        self.replace_conflicts = replace_conflicts
        self.label = label or str(destination)
        self.rebuild = False

    def _outcome(self, status: OutcomeStatus, **kwargs) -> SyncOutcome:
        return SyncOutcome(
            status=status,
            dest=self.label,
            source=self.source,
            kind=self.kind,
            **kwargs,
        )

    def _conflict(self):
        if not self.replace_conflicts:
            raise MirrorTypeConflict(self.source, self.destination)
        logger.info(f"Replacing {self.destination} (type changed)")
        self.rebuild = True

    def diff(self) -> SyncOutcome:
        raise NotImplementedError

    def apply(self, outcome: SyncOutcome):
        raise NotImplementedError

    def reconcile(self, mode: SyncMode) -> SyncOutcome:
        outcome = self.diff()
        if mode == SyncMode.APPLY and outcome.changed:
            self.apply(outcome)
            logger.info(f"{outcome.status.value.capitalize()} {self.label}")
        return outcome


class FileReconciler(Reconciler):
    kind = SourceKind.FILE

    def diff(self) -> SyncOutcome:
        dest = self.destination
        if dest.is_symlink():
            self.rebuild = True
            return self._outcome(OutcomeStatus.UPDATED)
        if dest.is_dir():
            self._conflict()
            return self._outcome(OutcomeStatus.UPDATED)
        if not dest.exists():
            return self._outcome(OutcomeStatus.CREATED)
        if files_equal(self.source, dest):
            return self._outcome(OutcomeStatus.UNCHANGED)
        return self._outcome(OutcomeStatus.UPDATED)

    def apply(self, outcome: SyncOutcome):
        if self.rebuild:
            remove_path(self.destination)
        copy_file_atomic(self.source, self.destination)


class DirectoryReconciler(Reconciler):
    kind = SourceKind.DIRECTORY

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._changes: List[TreeChange] = []

    def diff(self) -> SyncOutcome:
        dest = self.destination
        existed = dest.exists() or dest.is_symlink()
        if dest.is_symlink():
            self.rebuild = True
        elif existed and not dest.is_dir():
            self._conflict()

        # A destination being rebuilt is compared as if it were empty
        self._changes = diff_trees(self.source, dest)

        if existed and not self.rebuild and not self._changes:
            return self._outcome(OutcomeStatus.UNCHANGED)

        status = OutcomeStatus.UPDATED if existed else OutcomeStatus.CREATED
        return self._outcome(
            status,
            changes=self._changes[:PREVIEW_LIMIT],
            omitted=max(0, len(self._changes) - PREVIEW_LIMIT),
        )

    def apply(self, outcome: SyncOutcome):
        if self.rebuild:
            remove_path(self.destination)
        apply_changes(self.source, self.destination, self._changes)


RECONCILERS: Dict[SourceKind, Type[Reconciler]] = {
    SourceKind.FILE: FileReconciler,
    SourceKind.DIRECTORY: DirectoryReconciler,
}


def reconcile(
    source: Path,
    destination: Path,
    mode: SyncMode,
    replace_conflicts: bool = False,
    label: Optional[str] = None,
) -> SyncOutcome:
    """Compare ``source`` with ``destination`` and, in APPLY mode, sync it.

    Args:
        source: Path in the home directory (symlinks are followed).
        destination: Path of its copy inside the mirror root.
        mode: PREVIEW only reports; APPLY also writes.
        replace_conflicts: Replace a destination of the wrong type
            instead of raising MirrorTypeConflict.
        label: Name used for the destination in the outcome.

    Raises:
        MirrorTypeConflict: Source and destination types differ.
        UnsupportedSource: Source is neither a file nor a directory.
        OSError: The source or destination could not be read or written.
    """
    kind = SourceKind.of(source)
    if kind is None:
        logger.debug(f"Source does not exist: {source}")
        return SyncOutcome(
            status=OutcomeStatus.SOURCE_MISSING,
            dest=label or str(destination),
            source=source,
        )
    if kind == SourceKind.FILE and not source.is_file():
        raise UnsupportedSource(source)

    reconciler = RECONCILERS[kind](
        source, destination, replace_conflicts=replace_conflicts, label=label
    )
    return reconciler.reconcile(mode)
