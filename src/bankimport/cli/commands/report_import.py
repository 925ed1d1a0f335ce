"""Account report import command."""

import click
from bankimport.cli.error_handling import handle_domain_error
from bankimport.cli.result_output import echo_json, echo_result
from bankimport.domain.errors import DomainError
from bankimport.domain.report_import import AccountReportImportService
from bankimport.utils.report_loader import load_report


@click.command("import-report")
@click.argument("report_json", type=click.Path(exists=True, dir_okay=False))
@click.option("--time-zone", required=True, help="IANA time zone of report dates, e.g. Europe/Riga")
@click.option("--json", "as_json", is_flag=True, help="Print the import result as JSON")
@click.pass_context
def import_report(ctx, report_json: str, time_zone: str, as_json: bool):
    """Import a normalized account report.

    Entries that were imported before are referenced, not imported again.
    Either the whole report is imported or nothing is.

    Examples:
        bankimport import-report statement.json --time-zone Europe/Riga
    """
    db = ctx.obj["db"]
    user = ctx.obj["user"]
    service = AccountReportImportService(db)

    try:
        report = load_report(report_json)
        result = service.import_report(report, user_id=user.id, time_zone=time_zone)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    if as_json:
        echo_json([result])
        return

    click.echo("Import complete:")
    echo_result(result)


def register_commands(cli):
    """Register import command with main CLI."""
    cli.add_command(import_report)
