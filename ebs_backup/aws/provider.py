"""EC2 provider for volume and snapshot operations.

The backup runner depends only on the BackupProvider interface; the EC2
implementation maps each operation onto a boto3 API call.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from botocore.exceptions import ClientError

from ..models.tagged_resource import TaggedResource
from .client import create_boto_client

logger = logging.getLogger(__name__)


class BackupProvider(ABC):
    """Operations the backup runner needs from a cloud provider."""

    @abstractmethod
    def list_volumes(self, tag_key: str, tag_value: str) -> List[TaggedResource]:
        """List volumes carrying ``tag_key`` with value ``tag_value``."""

    @abstractmethod
    def list_snapshots(self, tag_key: str) -> List[TaggedResource]:
        """List the account's snapshots carrying ``tag_key`` (any value)."""

    @abstractmethod
    def create_snapshot(self, volume_id: str, description: Optional[str] = None) -> str:
        """Start a snapshot of a volume and return the new snapshot ID."""

    @abstractmethod
    def set_tags(self, resource_id: str, tags: Dict[str, str]) -> None:
        """Create or overwrite tags on a resource."""

    @abstractmethod
    def delete_snapshot(self, snapshot_id: str) -> None:
        """Delete a snapshot."""


class EC2BackupProvider(BackupProvider):
    """BackupProvider backed by the EC2 API.

    Errors other than an already-deleted snapshot propagate to the caller.

    Attributes:
        region: AWS region, None for the session's default region
        aws_profile: AWS profile name (optional)
    """

    NOT_FOUND_ERROR_CODES = ["InvalidSnapshot.NotFound"]

    def __init__(self, region: Optional[str] = None, aws_profile: Optional[str] = None) -> None:
        self.region = region
        self.aws_profile = aws_profile
        self._client: Any = None

    @property
    def client(self) -> Any:
        if self._client is None:
            self._client = create_boto_client(
                service_name="ec2",
                region_name=self.region,
                profile_name=self.aws_profile,
            )
        return self._client

    def list_volumes(self, tag_key: str, tag_value: str) -> List[TaggedResource]:
        paginator = self.client.get_paginator("describe_volumes")
        volumes = []

        for page in paginator.paginate(Filters=[{"Name": f"tag:{tag_key}", "Values": [tag_value]}]):
            for volume in page.get("Volumes", []):
                volumes.append(TaggedResource.from_aws(volume, "VolumeId"))

        logger.debug(f"Found {len(volumes)} volumes tagged {tag_key}={tag_value} in {self._region_label}")
        return volumes

    def list_snapshots(self, tag_key: str) -> List[TaggedResource]:
        paginator = self.client.get_paginator("describe_snapshots")
        snapshots = []

        # Only the account's own snapshots; public snapshots can carry the same tag
        for page in paginator.paginate(
            OwnerIds=["self"],
            Filters=[{"Name": "tag-key", "Values": [tag_key]}],
        ):
            for snapshot in page.get("Snapshots", []):
                snapshots.append(TaggedResource.from_aws(snapshot, "SnapshotId"))

        logger.debug(f"Found {len(snapshots)} snapshots tagged {tag_key} in {self._region_label}")
        return snapshots

    def create_snapshot(self, volume_id: str, description: Optional[str] = None) -> str:
        params: Dict[str, Any] = {"VolumeId": volume_id}
        if description:
            params["Description"] = description

        response = self.client.create_snapshot(**params)
        return response["SnapshotId"]

    def set_tags(self, resource_id: str, tags: Dict[str, str]) -> None:
        self.client.create_tags(
            Resources=[resource_id],
            Tags=[{"Key": key, "Value": value} for key, value in tags.items()],
        )

    def delete_snapshot(self, snapshot_id: str) -> None:
        try:
            self.client.delete_snapshot(SnapshotId=snapshot_id)
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            if error_code in self.NOT_FOUND_ERROR_CODES:
                logger.info(f"Snapshot {snapshot_id} already deleted")
                return
            raise

    @property
    def _region_label(self) -> str:
        return self.region or "default region"
