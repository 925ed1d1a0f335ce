"""Currency reference data commands."""

import click
from bankimport.cli.error_handling import handle_domain_error
from bankimport.domain.currency import CurrencyService
from bankimport.domain.errors import DomainError


@click.group("currency")
def currency_group():
    """Manage currencies."""
    pass


@currency_group.command("init")
@click.pass_context
def init_currencies(ctx):
    """Add the default set of ISO 4217 currencies.

    Currencies that already exist are left untouched.
    """
    service = CurrencyService(ctx.obj["db"])
    added = service.seed_defaults()
    click.echo(f"Added {added} currencies")


@currency_group.command("add")
@click.argument("code", metavar="CODE")
@click.argument("name", metavar="NAME")
@click.pass_context
def add_currency(ctx, code: str, name: str):
    """Add a currency.

    Examples:
        bankimport currency add NZD "New Zealand Dollar"
    """
    service = CurrencyService(ctx.obj["db"])

    try:
        currency_id = service.add_currency(code, name)
        click.echo(f"Created currency '{code.upper()}' (ID: {currency_id})")
    except DomainError as e:
        handle_domain_error(ctx, e)


@currency_group.command("list")
@click.pass_context
def list_currencies(ctx):
    """List all currencies."""
    service = CurrencyService(ctx.obj["db"])

    currencies = service.list_currencies()
    if not currencies:
        click.echo("No currencies found. Run 'bankimport currency init' first.")
        return

    for currency in currencies:
        click.echo(f"{currency.alphabetic_code} | {currency.name}")


def register_commands(cli):
    """Register currency commands with main CLI."""
    cli.add_command(currency_group)
