"""Main CLI entry point."""

import logging

import click
from katalis.database.factories import create_sqlite_database

# Import and register all commands at module level
from katalis.cli.commands import (
    account,
    add,
    business,
    init_accounts,
    report,
    transaction,
)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides KATALIS_DB_PATH environment variable)",
    envvar="KATALIS_DB_PATH",
)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default="WARNING",
    show_default=True,
    envvar="KATALIS_LOG_LEVEL",
    help="Logging verbosity (overrides KATALIS_LOG_LEVEL environment variable)",
)
@click.pass_context
def cli(ctx, db_path: str | None, log_level: str):
    """Katalis - Double-entry bookkeeping for small businesses.

    Record transactions against a chart of accounts, either as full journal
    entries or by picking a single account, and produce trial balance,
    balance sheet, cash flow and income reports.
    """
    ctx.ensure_object(dict)
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(levelname)s %(name)s: %(message)s",
    )

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_sqlite_database(database_path=db_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db
        ctx.call_on_close(db.disconnect)


# Register all commands
business.register_commands(cli)
init_accounts.register_commands(cli)
account.register_commands(cli)
add.register_commands(cli)
transaction.register_commands(cli)
report.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
