"""EBS Backup Manager - tag-driven EBS snapshot scheduling and purging."""

__version__ = "0.1.0"
