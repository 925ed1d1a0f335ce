"""Nordigen aggregator commands."""

import click
from bankimport.cli.error_handling import handle_domain_error
from bankimport.cli.result_output import echo_json, echo_result
from bankimport.domain.errors import DomainError
from bankimport.domain.nordigen_import import ConsentRequired, NordigenImportService
from bankimport.integrations.nordigen import AggregatorError, create_nordigen_client


@click.group("nordigen")
@click.option("--secret-id", envvar="NORDIGEN_SECRET_ID", help="Nordigen user secret id")
@click.option("--secret-key", envvar="NORDIGEN_SECRET_KEY", help="Nordigen user secret key")
@click.option("--base-url", envvar="NORDIGEN_BASE_URL", help="Nordigen API root URL")
@click.pass_context
def nordigen_group(ctx, secret_id: str | None, secret_key: str | None, base_url: str | None):
    """Import transactions through Nordigen."""
    ctx.obj["nordigen"] = {"secret_id": secret_id, "secret_key": secret_key, "base_url": base_url}


@nordigen_group.command("institutions")
@click.argument("country", metavar="COUNTRY")
@click.pass_context
def list_institutions(ctx, country: str):
    """List institution IDs of a country (ISO 3166 code, e.g. LV)."""
    try:
        client = create_nordigen_client(**ctx.obj["nordigen"])
        institutions = client.list_institutions(country.upper())
    except AggregatorError as e:
        handle_domain_error(ctx, e)
        return

    for institution in institutions:
        click.echo(f"{institution.id} | {institution.name}")


@nordigen_group.command("import")
@click.argument("institution_id", metavar="INSTITUTION_ID")
@click.option("--time-zone", required=True, help="IANA time zone of booking dates, e.g. Europe/Riga")
@click.option("--redirect-url", required=True, help="Where to return after granting access")
@click.option("--json", "as_json", is_flag=True, help="Print the import results as JSON")
@click.pass_context
def import_institution(ctx, institution_id: str, time_zone: str, redirect_url: str, as_json: bool):
    """Import all accounts linked for an institution.

    If the institution is not linked yet, prints the link at which access
    has to be granted; run the command again afterwards.

    Examples:
        bankimport nordigen import SWEDBANK_HABALV22 --time-zone Europe/Riga \\
            --redirect-url https://example.org/
    """
    db = ctx.obj["db"]
    user = ctx.obj["user"]

    try:
        client = create_nordigen_client(**ctx.obj["nordigen"])
        service = NordigenImportService(db, client)
        outcome = service.import_institution(
            institution_id,
            user_id=user.id,
            time_zone=time_zone,
            redirect_url=redirect_url,
        )
    except (DomainError, AggregatorError) as e:
        handle_domain_error(ctx, e)
        return

    if isinstance(outcome, ConsentRequired):
        click.echo(f"Institution {institution_id} is not linked yet.")
        click.echo(f"Grant access at: {outcome.link}")
        return

    if as_json:
        echo_json(list(outcome.results))
        return

    click.echo(f"Imported {len(outcome.results)} accounts:")
    for result in outcome.results:
        echo_result(result)


def register_commands(cli):
    """Register Nordigen commands with main CLI."""
    cli.add_command(nordigen_group)
