"""Command line interface for backup-service."""
