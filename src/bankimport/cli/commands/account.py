"""Account commands."""

import click
from bankimport.domain.account import AccountService


@click.group("account")
def account_group():
    """Inspect accounts."""
    pass


@account_group.command("list")
@click.pass_context
def list_accounts(ctx):
    """List all accounts of the importing user."""
    db = ctx.obj["db"]
    user = ctx.obj["user"]
    service = AccountService(db)

    accounts = service.list_accounts(user.id)
    if not accounts:
        click.echo("No accounts found.")
        return

    codes = {c.id: c.alphabetic_code for c in db.list_currencies()}

    click.echo("\nAccounts:")
    click.echo("-" * 80)
    for acc in accounts:
        currencies = ", ".join(codes.get(c.currency_id, "?") for c in acc.currencies)
        click.echo(f"ID: {acc.id:3d} | {acc.name:34s} | IBAN: {acc.iban or '-':34s} | {currencies}")


def register_commands(cli):
    """Register account commands with main CLI."""
    cli.add_command(account_group)
