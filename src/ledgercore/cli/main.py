"""Main CLI entry point."""

import click

from ledgercore.config import LedgerSettings, parse_log_level
from ledgercore.database.factories import create_database
from ledgercore.domain.errors import StorageError
from ledgercore.logging_config import setup_logging

# Import and register all commands at module level
from ledgercore.cli.commands import account, entry


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to SQLite database file (overrides LEDGER_DB_PATH environment variable)",
    envvar="LEDGER_DB_PATH",
)
@click.option(
    "--database-url",
    help="SQLAlchemy database URL; takes precedence over --db-path",
    envvar="LEDGER_DATABASE_URL",
)
@click.option(
    "--log-level",
    help="Log level for ledger messages (default WARNING)",
    envvar="LEDGER_LOG_LEVEL",
)
@click.pass_context
def cli(ctx, db_path: str | None, database_url: str | None, log_level: str | None):
    """Ledger - double-entry posting engine.

    Create accounts, post balanced entries and inspect balances.
    """
    ctx.ensure_object(dict)

    try:
        settings = LedgerSettings.from_env()
        if log_level is not None:
            settings_level = parse_log_level(log_level)
        else:
            settings_level = settings.log_level
    except ValueError as e:
        raise click.UsageError(str(e)) from e

    setup_logging(settings_level)
    ctx.obj["currency_policy"] = settings.currency_policy

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        store = create_database(database_url=database_url, database_path=db_path)
        try:
            store.connect()
            store.initialize_schema()
        except StorageError as e:
            click.echo(f"Error: {e}", err=True)
            store.disconnect()
            ctx.exit(1)
        ctx.call_on_close(store.disconnect)
        ctx.obj["db"] = store


# Register all commands
account.register_commands(cli)
entry.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
