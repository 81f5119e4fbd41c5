"""Backup policy module.

Decision rules for when volumes are backed up and when snapshots are purged,
driven entirely by resource tags.

Modules:
    tags: Tag vocabulary, defaults and tolerant value parsing
    engine: BackupPolicyEngine, backup and purge decisions from tag state
"""
