"""Main CLI entry point."""

import logging

import click
from bankimport.database.factories import create_sqlite_database
from bankimport.domain.errors import DomainError
from bankimport.domain.user import UserService

# Import and register all commands at module level
from bankimport.cli.commands import (
    account,
    currency,
    nordigen,
    report_import,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides BANKIMPORT_DB_PATH environment variable)",
    envvar="BANKIMPORT_DB_PATH",
)
@click.option(
    "--user",
    "user_name",
    default="default",
    show_default=True,
    help="Name of the importing user (overrides BANKIMPORT_USER environment variable)",
    envvar="BANKIMPORT_USER",
)
@click.option("--verbose", "-v", is_flag=True, help="Log lookups and created rows")
@click.pass_context
def cli(ctx, db_path: str | None, user_name: str, verbose: bool):
    """Bankimport - Bank statement import and reconciliation.

    Import ISO 20022 account reports and aggregator feeds into a ledger of
    accounts, transactions and transfers, skipping anything already imported.
    """
    ctx.ensure_object(dict)
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_sqlite_database(database_path=db_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db
        ctx.call_on_close(db.disconnect)

        try:
            ctx.obj["user"] = UserService(db).get_or_create_user(user_name)
        except DomainError as e:
            click.echo(f"Error: {e}", err=True)
            ctx.exit(1)


# Register all commands
account.register_commands(cli)
currency.register_commands(cli)
report_import.register_commands(cli)
nordigen.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
