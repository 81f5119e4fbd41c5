"""Backup policy decision models.

Derived values produced by the policy engine for a single volume or snapshot.
None of these are persisted; EC2 tags remain the only source of truth.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

from ..policy.tags import BACKUP_LAST_TAG, BACKUP_PURGE_TAG, NAME_TAG


@dataclass(frozen=True)
class BackupPolicy:
    """Per-volume backup policy resolved from tags with defaults.

    Attributes:
        frequency_hours: Hours between backups
        retention_hours: Hours a created snapshot is kept
        last_backup: Epoch seconds of the last backup (0 if never backed up)
    """

    frequency_hours: int
    retention_hours: int
    last_backup: int

    @property
    def frequency_seconds(self) -> int:
        return self.frequency_hours * 60 * 60

    @property
    def retention_seconds(self) -> int:
        return self.retention_hours * 60 * 60

    def next_backup_at(self) -> int:
        """Epoch seconds at which the volume next becomes due."""
        return self.last_backup + self.frequency_seconds


@dataclass(frozen=True)
class SnapshotIntent:
    """Backup decision for one volume.

    Attributes:
        volume_id: Volume to snapshot
        purge_at: Epoch seconds after which the new snapshot may be deleted
        name: Name tag for the new snapshot ("<volume name or id>-<now>")
        now: Pass timestamp recorded as the volume's last backup
    """

    volume_id: str
    purge_at: int
    name: str
    now: int

    def snapshot_tags(self) -> Dict[str, str]:
        """Tags applied to the snapshot created for this intent."""
        return {BACKUP_PURGE_TAG: str(self.purge_at), NAME_TAG: self.name}

    def volume_tags(self) -> Dict[str, str]:
        """Tags applied to the source volume once its snapshot exists."""
        return {BACKUP_LAST_TAG: str(self.now)}


@dataclass(frozen=True)
class PurgeDecision:
    """Purge decision for one snapshot.

    Attributes:
        snapshot_id: Snapshot being evaluated
        purge_at: Parsed backup.purge value, None when absent or malformed
        eligible: True if the snapshot may be deleted now
    """

    snapshot_id: str
    purge_at: Optional[int]
    eligible: bool
