"""Backup execution module.

Runs backup-then-purge passes against EC2, once or on a polling interval.

Classes:
    BackupRunner: Pass orchestrator and polling loop
"""

from __future__ import annotations

from .runner import BackupRunner

__all__ = [
    "BackupRunner",
]
