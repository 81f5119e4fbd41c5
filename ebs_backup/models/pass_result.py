"""Pass result model.

Outcome of one backup-then-purge pass across all configured regions.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from .policy import SnapshotIntent


class ActionStatus(Enum):
    """Outcome of a single backup or purge action."""

    PLANNED = "planned"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class BackupRecord:
    """A volume backup taken (or planned, in dry-run mode) during a pass.

    Attributes:
        region: AWS region, None for the session's default region
        volume_id: Source volume
        intent: Snapshot name and purge time computed for the volume
        status: planned, succeeded or failed
        snapshot_id: Created snapshot (None in dry-run mode or before creation)
    """

    region: Optional[str]
    volume_id: str
    intent: SnapshotIntent
    status: ActionStatus
    snapshot_id: Optional[str] = None


@dataclass
class PurgeRecord:
    """A snapshot deletion performed (or planned) during a pass."""

    region: Optional[str]
    snapshot_id: str
    purge_at: int
    status: ActionStatus


@dataclass
class PassResult:
    """Result of one pass.

    State transitions per action:
        planned (dry run)
        succeeded (provider call completed)
        failed (provider call raised; the pass stops there)

    Attributes:
        now: Epoch seconds used for every decision in the pass
        regions: Regions processed, in order ([None] for the default region)
        dry_run: Whether mutating calls were suppressed
        backups: Backup records in execution order
        purges: Purge records in execution order
        skipped_snapshots: Snapshot IDs with a missing or malformed purge tag
        error: Exception that aborted the pass (None on success)
    """

    now: int
    regions: List[Optional[str]]
    dry_run: bool = False
    backups: List[BackupRecord] = field(default_factory=list)
    purges: List[PurgeRecord] = field(default_factory=list)
    skipped_snapshots: List[str] = field(default_factory=list)
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def backup_count(self) -> int:
        return sum(1 for record in self.backups if record.status != ActionStatus.FAILED)

    @property
    def purge_count(self) -> int:
        return sum(1 for record in self.purges if record.status != ActionStatus.FAILED)
