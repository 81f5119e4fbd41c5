"""Tagged resource model.

Read-only view over an EBS volume or snapshot as returned by the EC2 API.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class TaggedResource:
    """A volume or snapshot reduced to its identifier and tag set.

    Views are re-fetched from EC2 on every pass and never mutated by the
    backup logic. Changes are expressed as tag updates or deletions handed
    to the provider.

    Attributes:
        resource_id: Volume ID (vol-...) or snapshot ID (snap-...)
        tags: Tag key to tag value mapping
        raw_config: Original EC2 API payload (optional)
    """

    resource_id: str
    tags: Dict[str, str] = field(default_factory=dict)
    raw_config: Optional[Dict[str, Any]] = field(default=None, compare=False, repr=False)

    def get_tag(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self.tags.get(key, default)

    @classmethod
    def from_aws(cls, payload: Dict[str, Any], id_field: str) -> "TaggedResource":
        """Create a TaggedResource from a describe_volumes/describe_snapshots item.

        Args:
            payload: Single item from the EC2 API response
            id_field: Key holding the resource identifier ("VolumeId" or "SnapshotId")

        Returns:
            TaggedResource with tags flattened into a dictionary
        """
        tags = {}
        for tag in payload.get("Tags", []):
            if tag.get("Key"):
                tags[tag["Key"]] = tag.get("Value", "")

        return cls(resource_id=payload[id_field], tags=tags, raw_config=payload)
