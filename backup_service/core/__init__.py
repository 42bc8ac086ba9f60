"""Core configuration and error types shared by the backup service."""
