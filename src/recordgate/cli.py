"""Command-line interface for RecordGate.

This module provides the CLI commands for initializing and inspecting a
RecordGate database.
"""

from typing import NoReturn

import click

from recordgate.core.config import get_settings
from recordgate.core.exceptions import RecordGateError
from recordgate.core.logging import LoggingContext, configure_logging, get_logger


@click.group()
@click.version_option(version="0.1.0", prog_name="RecordGate")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]),
    default=None,
    help="Set log level (overrides environment)",
)
def cli(log_level: str | None) -> None:
    """RecordGate - Access-controlled record gateway.

    Settings are loaded from RECORDGATE_* environment variables and .env.
    """
    settings = get_settings()
    if log_level:
        settings = settings.model_copy(update={"log_level": log_level})
    configure_logging(settings)


@cli.command()
@click.option(
    "--force",
    is_flag=True,
    help="Skip confirmation prompt",
)
def init_db(force: bool) -> None:
    """Initialize the database.

    Creates the bookkeeping tables. Existing tables are left untouched.
    """
    from recordgate.infrastructure.persistence.database import get_db_manager, init_database

    settings = get_settings()

    if settings.is_production and not force:
        click.echo(
            "ERROR: Running in production mode. Pass --force to initialize anyway.",
            err=True,
        )
        raise SystemExit(1)

    if not force:
        click.confirm(
            "This will create the RecordGate tables. Continue?",
            abort=True,
            default=False,
        )

    db = get_db_manager()
    try:
        init_database(db)
        click.echo("Database initialized successfully.")
    except RuntimeError as e:
        click.echo(f"ERROR: {e}", err=True)
        raise SystemExit(1) from e
    finally:
        db.dispose()


@cli.command()
@click.argument("collection")
def describe(collection: str) -> None:
    """Print the fields of a collection."""
    from recordgate.infrastructure.persistence.database import get_db_manager
    from recordgate.infrastructure.persistence.schema_catalog import SqlSchemaCatalog

    logger = get_logger(__name__)
    db = get_db_manager()
    try:
        with LoggingContext(collection_name=collection), db.connection() as conn:
            descriptor = SqlSchemaCatalog(conn).get_collection(collection)
    except RecordGateError as e:
        logger.warning("Describe failed", collection_name=collection, error=e.message)
        click.echo(f"ERROR: {e.message}", err=True)
        raise SystemExit(1) from e
    finally:
        db.dispose()

    click.echo(f"{descriptor.name}{' (managed)' if descriptor.managed else ''}")
    click.echo("=" * 40)
    for field in descriptor.fields:
        flags = [
            flag
            for flag, enabled in (
                ("primary key", field.primary_key),
                ("auto increment", field.auto_increment),
                ("unique", field.unique),
                ("status", field.status),
                ("owner", field.owner),
                ("system date", field.system_date),
                ("alias", field.is_alias()),
            )
            if enabled
        ]
        suffix = f"  [{', '.join(flags)}]" if flags else ""
        click.echo(f"  {field.name:<24} {field.type.value:<10}{suffix}")


@cli.command()
def info() -> None:
    """Display RecordGate configuration."""
    settings = get_settings()

    click.echo(f"""
RecordGate v{settings.app_version}
{'=' * 40}

Configuration:
  Environment:  {settings.environment}
  Timezone:     {settings.timezone}

Database:
  URL:          {settings.database_url}
  Echo:         {settings.db_echo}

Storage:
  Path:         {settings.storage_path}
  Thumbnails:   {settings.thumbnail_path}
  File Naming:  {settings.file_naming}

Logging:
  Level:        {settings.log_level}
  Format:       {settings.log_format}
""")


def main() -> NoReturn:
    """Main entry point for the CLI.

    This function is called when the `recordgate` command is run
    or when using `python -m recordgate`.
    """
    cli()


if __name__ == "__main__":
    main()
