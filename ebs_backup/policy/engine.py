"""Backup policy engine.

Decides from tag state alone whether a volume is due for backup, what a new
snapshot should be tagged with, and whether a snapshot may be purged. The
current time is always passed in; the engine never reads a clock.
"""

from __future__ import annotations

from typing import Optional

from ..models.policy import BackupPolicy, PurgeDecision, SnapshotIntent
from ..models.tagged_resource import TaggedResource
from .tags import (
    BACKUP_FREQUENCY_HOURS_DEFAULT,
    BACKUP_FREQUENCY_HOURS_TAG,
    BACKUP_LAST_DEFAULT,
    BACKUP_LAST_TAG,
    BACKUP_PURGE_TAG,
    BACKUP_RETENTION_HOURS_DEFAULT,
    BACKUP_RETENTION_HOURS_TAG,
    NAME_TAG,
    get_tag_value,
    parse_int_tag,
)


class BackupPolicyEngine:
    """Stateless evaluator of backup and purge rules.

    Volumes are expected to have been selected by the ``backup.enabled`` tag
    already; the engine answers for any resource purely from its tags.
    """

    def policy_for(self, volume: TaggedResource) -> BackupPolicy:
        """Resolve the backup policy of a volume from its tags.

        Missing or non-numeric values fall back to the defaults.

        Args:
            volume: Volume to evaluate

        Returns:
            BackupPolicy with frequency, retention and last backup time
        """
        return BackupPolicy(
            frequency_hours=self.backup_frequency_hours(volume),
            retention_hours=self.backup_retention_hours(volume),
            last_backup=self.last_backup_time(volume),
        )

    def backup_frequency_hours(self, volume: TaggedResource) -> int:
        value = get_tag_value(volume, BACKUP_FREQUENCY_HOURS_TAG)
        return parse_int_tag(value, BACKUP_FREQUENCY_HOURS_DEFAULT)

    def backup_retention_hours(self, volume: TaggedResource) -> int:
        value = get_tag_value(volume, BACKUP_RETENTION_HOURS_TAG)
        return parse_int_tag(value, BACKUP_RETENTION_HOURS_DEFAULT)

    def last_backup_time(self, volume: TaggedResource) -> int:
        value = get_tag_value(volume, BACKUP_LAST_TAG)
        return parse_int_tag(value, BACKUP_LAST_DEFAULT)

    def is_backup_due(self, volume: TaggedResource, now: int) -> bool:
        """Check whether a volume is due for backup.

        A volume without a usable ``backup.last`` tag has never been backed up
        and is always due, whatever ``now`` is.

        Args:
            volume: Volume to evaluate
            now: Current time in epoch seconds

        Returns:
            True if at least ``frequency_hours`` have elapsed since the last backup
        """
        if parse_int_tag(get_tag_value(volume, BACKUP_LAST_TAG), None) is None:
            return True

        policy = self.policy_for(volume)
        secs_since_last_backup = now - policy.last_backup
        return secs_since_last_backup >= policy.frequency_seconds

    def build_snapshot_intent(self, volume: TaggedResource, now: int) -> SnapshotIntent:
        """Compute the snapshot name and purge time for a volume backup.

        Args:
            volume: Volume being backed up
            now: Current time in epoch seconds

        Returns:
            SnapshotIntent for the volume
        """
        base_name = get_tag_value(volume, NAME_TAG) or volume.resource_id
        purge_at = now + self.policy_for(volume).retention_seconds

        return SnapshotIntent(
            volume_id=volume.resource_id,
            purge_at=purge_at,
            name=f"{base_name}-{now}",
            now=now,
        )

    def purge_time(self, snapshot: TaggedResource) -> Optional[int]:
        """Return the snapshot's purge time, or None if absent or malformed."""
        return parse_int_tag(get_tag_value(snapshot, BACKUP_PURGE_TAG), None)

    def is_purge_due(self, snapshot: TaggedResource, now: int) -> bool:
        """Check whether a snapshot may be deleted.

        Snapshots without a parseable ``backup.purge`` tag are never eligible.

        Args:
            snapshot: Snapshot to evaluate
            now: Current time in epoch seconds

        Returns:
            True if ``now`` has reached the snapshot's purge time
        """
        purge_at = self.purge_time(snapshot)
        if purge_at is None:
            return False
        return now >= purge_at

    def decide_purge(self, snapshot: TaggedResource, now: int) -> PurgeDecision:
        purge_at = self.purge_time(snapshot)
        return PurgeDecision(
            snapshot_id=snapshot.resource_id,
            purge_at=purge_at,
            eligible=purge_at is not None and now >= purge_at,
        )
