"""Test fixtures for creating volumes, snapshots and fake providers."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from ebs_backup.aws.provider import BackupProvider
from ebs_backup.models.tagged_resource import TaggedResource


def create_volume(
    volume_id: str = "vol-0123456789abcdef0",
    enabled: bool = True,
    last_backup: Optional[int] = None,
    frequency_hours: Optional[str] = None,
    retention_hours: Optional[str] = None,
    name: Optional[str] = None,
    tags: Optional[Dict[str, str]] = None,
) -> TaggedResource:
    """Create a volume view for testing.

    Args:
        volume_id: Volume ID
        enabled: Whether backup.enabled=true is set
        last_backup: backup.last value (omitted if None)
        frequency_hours: Raw backup.frequency_hours value (omitted if None)
        retention_hours: Raw backup.retention_hours value (omitted if None)
        name: Name tag (omitted if None)
        tags: Extra tags

    Returns:
        TaggedResource representing an EBS volume
    """
    all_tags: Dict[str, str] = {}
    if enabled:
        all_tags["backup.enabled"] = "true"
    if last_backup is not None:
        all_tags["backup.last"] = str(last_backup)
    if frequency_hours is not None:
        all_tags["backup.frequency_hours"] = frequency_hours
    if retention_hours is not None:
        all_tags["backup.retention_hours"] = retention_hours
    if name is not None:
        all_tags["Name"] = name
    all_tags.update(tags or {})

    return TaggedResource(resource_id=volume_id, tags=all_tags)


def create_snapshot(
    snapshot_id: str = "snap-0123456789abcdef0",
    purge_at: Optional[Any] = None,
    tags: Optional[Dict[str, str]] = None,
) -> TaggedResource:
    """Create a snapshot view; ``purge_at`` is stored verbatim as backup.purge."""
    all_tags: Dict[str, str] = {}
    if purge_at is not None:
        all_tags["backup.purge"] = str(purge_at)
    all_tags.update(tags or {})

    return TaggedResource(resource_id=snapshot_id, tags=all_tags)


def aws_tags(tags: Dict[str, str]) -> List[Dict[str, str]]:
    """Convert a tag dict into the EC2 API's Key/Value list."""
    return [{"Key": key, "Value": value} for key, value in tags.items()]


class FakeProvider(BackupProvider):
    """In-memory BackupProvider that records every call.

    Attributes:
        region: Region the provider was created for
        volumes: Volumes returned by list_volumes
        snapshots: Snapshots returned by list_snapshots
        calls: Ordered (method, args) tuples for every call made
        fail_on: Method name that raises RuntimeError when called
    """

    def __init__(
        self,
        region: Optional[str] = None,
        volumes: Optional[List[TaggedResource]] = None,
        snapshots: Optional[List[TaggedResource]] = None,
        fail_on: Optional[str] = None,
        calls: Optional[List[tuple]] = None,
    ) -> None:
        self.region = region
        self.volumes = volumes or []
        self.snapshots = snapshots or []
        self.fail_on = fail_on
        self.calls = calls if calls is not None else []
        self._snapshot_counter = 0

    def _record(self, method: str, *args: Any) -> None:
        self.calls.append((method, self.region) + args)
        if self.fail_on == method:
            raise RuntimeError(f"{method} failed in {self.region}")

    def list_volumes(self, tag_key: str, tag_value: str) -> List[TaggedResource]:
        self._record("list_volumes", tag_key, tag_value)
        return list(self.volumes)

    def list_snapshots(self, tag_key: str) -> List[TaggedResource]:
        self._record("list_snapshots", tag_key)
        return list(self.snapshots)

    def create_snapshot(self, volume_id: str, description: Optional[str] = None) -> str:
        self._record("create_snapshot", volume_id)
        self._snapshot_counter += 1
        return f"snap-{volume_id}-{self._snapshot_counter}"

    def set_tags(self, resource_id: str, tags: Dict[str, str]) -> None:
        self._record("set_tags", resource_id, dict(tags))

    def delete_snapshot(self, snapshot_id: str) -> None:
        self._record("delete_snapshot", snapshot_id)

    @property
    def mutating_calls(self) -> List[tuple]:
        return [call for call in self.calls if call[0] in ("create_snapshot", "set_tags", "delete_snapshot")]
