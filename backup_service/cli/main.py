"""Main CLI entry point for backup-service."""

import click

from backup_service import __version__
from backup_service.cli.commands import backup, config, scheduler
from backup_service.infra.logging.config import setup_logging


@click.group()
@click.version_option(version=__version__, prog_name="backup-service")
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Backup Service CLI - scheduled MongoDB backups to object storage.

    \b
    Commands:
      run        Run one backup now
      scheduler  Run or inspect the recurring backup schedule
      config     Show or validate configuration

    \b
    Quick Start:
      backup-service config validate    # Check required settings
      backup-service run                # One backup right now
      backup-service scheduler start    # Back up daily, forever
    """
    ctx.ensure_object(dict)


cli.add_command(backup.run_backup)
cli.add_command(scheduler.scheduler)
cli.add_command(config.config)


def main() -> None:
    """Entry point for CLI."""
    setup_logging()
    cli(obj={})


if __name__ == "__main__":
    main()
