"""Command-line interface for ebs-backup."""
