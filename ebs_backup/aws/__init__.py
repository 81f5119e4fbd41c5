"""AWS access layer.

Classes:
    BackupProvider: Abstract interface over the EC2 operations a backup pass needs
    EC2BackupProvider: boto3-backed implementation for one region
"""

from __future__ import annotations

from .provider import BackupProvider, EC2BackupProvider

__all__ = ["BackupProvider", "EC2BackupProvider"]
