"""boto3 client factory."""

from __future__ import annotations

from typing import Any, Optional

import boto3
from botocore.config import Config

# Throttling and transient errors are retried here, inside the client.
DEFAULT_CLIENT_CONFIG = Config(retries={"max_attempts": 5, "mode": "standard"})


def create_boto_client(
    service_name: str,
    region_name: Optional[str] = None,
    profile_name: Optional[str] = None,
) -> Any:
    """Create a boto3 client.

    Args:
        service_name: AWS service name (e.g., "ec2")
        region_name: AWS region, None to use the session's default region
        profile_name: AWS profile name (optional)

    Returns:
        boto3 client for the service
    """
    session = boto3.Session(profile_name=profile_name)
    return session.client(service_name, region_name=region_name, config=DEFAULT_CLIENT_CONFIG)
