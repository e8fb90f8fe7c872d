"""Run the reconciler over every declared mapping."""

import logging
from pathlib import Path
from typing import Iterable

from ..config import FileMapping
from ..errors import MirrorError
from .reconciler import reconcile
from .types import OutcomeStatus, RunSummary, SyncMode, SyncOutcome

logger = logging.getLogger(__name__)


class SyncManager:
    """Mirrors the declared mappings into ``mirror_root``.

    Each mapping is reconciled independently and in declared order. A
    missing source or a failure on one mapping is recorded in its outcome
    and never stops the run. PREVIEW runs do not touch the filesystem.
    """

    def __init__(self, mirror_root: Path):
        self.mirror_root = Path(mirror_root)

    def destination_for(self, mapping: FileMapping) -> Path:
        return self.mirror_root / mapping.dest

    def sync_mapping(
        self,
        mapping: FileMapping,
        mode: SyncMode,
        replace_conflicts: bool = False,
    ) -> SyncOutcome:
        """Reconcile one mapping, turning per-mapping errors into an outcome."""
        try:
            return reconcile(
                mapping.source,
                self.destination_for(mapping),
                mode,
                replace_conflicts=replace_conflicts,
                label=mapping.dest,
            )
        except (MirrorError, OSError) as e:
            logger.error(f"Failed to sync {mapping.dest}: {e}")
            return SyncOutcome(
                status=OutcomeStatus.FAILED,
                dest=mapping.dest,
                source=mapping.source,
                error=str(e),
            )

    def run(
        self,
        mappings: Iterable[FileMapping],
        mode: SyncMode,
        replace_conflicts: bool = False,
    ) -> RunSummary:
        """Reconcile every mapping and collect the outcomes.

        Args:
            mappings: Mappings in declared order.
            mode: PREVIEW reports would-be changes, APPLY writes them.
            replace_conflicts: Replace mirror entries whose type no
                longer matches the source.

        Returns:
            RunSummary with one outcome per mapping.
        """
        summary = RunSummary(mode=mode)

        if mode == SyncMode.APPLY:
            self.mirror_root.mkdir(parents=True, exist_ok=True)

        for mapping in mappings:
            outcome = self.sync_mapping(mapping, mode, replace_conflicts)
            logger.debug(f"{mapping.dest}: {outcome.status.value}")
            summary.outcomes.append(outcome)

        logger.info(
            f"Sync ({mode.value}): {summary.changed}/{summary.total} changed, "
            f"{summary.missing} missing, {summary.failed} failed"
        )
        return summary
