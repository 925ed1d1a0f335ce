"""Rendering of import results."""

import json

import click

from bankimport.domain.import_result import AccountReportResult


def echo_result(result: AccountReportResult) -> None:
    """Print a human readable summary of one account's import."""
    created_transactions = sum(1 for t in result.transactions if t.created)
    click.echo(f"\nAccount {result.user_account_id}:")
    click.echo(f"  Accounts: {len(result.accounts)} referenced, {result.created_account_count} created")
    click.echo(
        f"  Transactions: {len(result.transactions)} referenced, {created_transactions} created"
    )
    click.echo(f"  Transfers: {len(result.transfers)} referenced, {result.created_transfer_count} created")


def echo_json(results: list[AccountReportResult]) -> None:
    """Print import results as JSON."""
    click.echo(json.dumps([r.to_dict() for r in results], indent=2))
