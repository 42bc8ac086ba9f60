"""CLI command groups: run, scheduler, config."""
