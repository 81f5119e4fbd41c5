"""Data models for volumes, snapshots, backup policies and pass results."""
