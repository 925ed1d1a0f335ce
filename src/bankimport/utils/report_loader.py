"""Loading of normalized account reports from JSON."""

import json
from pathlib import Path
from typing import Any, Optional

from dateutil.parser import isoparse

from bankimport.domain.errors import ValidationError
from bankimport.domain.report import (
    AccountReport,
    BankTransactionCode,
    CreditDebit,
    DateChoice,
    RelatedParty,
    ReportEntry,
    Servicer,
    StatementAccount,
)
from bankimport.utils.amount_parser import parse_amount


def _optional_str(data: dict[str, Any], key: str) -> Optional[str]:
    value = data.get(key)
    if value is None:
        return None
    return str(value)


def _object(value: Any, field: str) -> Optional[dict[str, Any]]:
    if value is None:
        return None
    if not isinstance(value, dict):
        raise ValidationError(f"'{field}' must be an object")
    return value


def _parse_date_choice(data: Optional[dict[str, Any]], field: str) -> Optional[DateChoice]:
    if data is None:
        return None
    if not isinstance(data, dict):
        raise ValidationError(f"'{field}' must be an object with 'date' or 'date_time'")

    try:
        if data.get("date_time"):
            return DateChoice(date_time=isoparse(data["date_time"]))
        if data.get("date"):
            return DateChoice(date=isoparse(data["date"]).date())
    except ValueError as e:
        raise ValidationError(f"Invalid '{field}': {e}") from e

    raise ValidationError(f"'{field}' must contain 'date' or 'date_time'")


def _parse_credit_debit(value: Any) -> CreditDebit:
    try:
        return CreditDebit(str(value).upper())
    except ValueError as e:
        raise ValidationError(f"Invalid credit/debit indicator '{value}', expected CRDT or DBIT") from e


def parse_entry(data: dict[str, Any]) -> ReportEntry:
    """Build a report entry from its JSON object.

    Raises:
        ValidationError: If a required field is missing or malformed
    """
    if not isinstance(data, dict):
        raise ValidationError("Report entry must be an object")
    for key in ("amount", "currency", "credit_debit", "booking_date"):
        if data.get(key) is None:
            raise ValidationError(f"Report entry is missing '{key}'")

    booking_date = _parse_date_choice(data["booking_date"], "booking_date")
    related = _object(data.get("related_party"), "related_party")
    code = _object(data.get("transaction_code"), "transaction_code") or {}
    remittance = data.get("remittance_information") or []
    if not isinstance(remittance, list):
        raise ValidationError("'remittance_information' must be a list")
    instructed_amount = data.get("instructed_amount")

    return ReportEntry(
        amount=parse_amount(data["amount"]),
        currency=str(data["currency"]),
        credit_debit=_parse_credit_debit(data["credit_debit"]),
        booking_date=booking_date,
        account_servicer_reference=_optional_str(data, "account_servicer_reference"),
        proprietary_reference=_optional_str(data, "proprietary_reference"),
        value_date=_parse_date_choice(data.get("value_date"), "value_date"),
        remittance_information=tuple(str(line) for line in remittance),
        instructed_amount=parse_amount(instructed_amount) if instructed_amount is not None else None,
        instructed_currency=_optional_str(data, "instructed_currency"),
        related_party=(
            RelatedParty(name=_optional_str(related, "name"), iban=_optional_str(related, "iban"))
            if related
            else None
        ),
        transaction_code=BankTransactionCode(
            domain=_optional_str(code, "domain"),
            family=_optional_str(code, "family"),
            sub_family=_optional_str(code, "sub_family"),
            proprietary=_optional_str(code, "proprietary"),
        ),
    )


def parse_report(data: dict[str, Any]) -> AccountReport:
    """Build an account report from its JSON object.

    Raises:
        ValidationError: If the document does not describe a report
    """
    if not isinstance(data, dict):
        raise ValidationError("Account report must be a JSON object")

    account = _object(data.get("account"), "account") or {}
    servicer = _object(data.get("servicer"), "servicer")
    entries = data.get("entries") or []
    if not isinstance(entries, list):
        raise ValidationError("'entries' must be a list")

    return AccountReport(
        identification=str(data.get("identification") or ""),
        account=StatementAccount(
            iban=_optional_str(account, "iban"),
            currency=_optional_str(account, "currency"),
        ),
        entries=tuple(parse_entry(entry) for entry in entries),
        servicer=(
            Servicer(name=_optional_str(servicer, "name"), bic=_optional_str(servicer, "bic"))
            if servicer
            else None
        ),
    )


def load_report(path: str) -> AccountReport:
    """Load an account report from a JSON file.

    Raises:
        FileNotFoundError: If the file does not exist
        ValidationError: If the file is not a valid report
    """
    report_path = Path(path)
    if not report_path.exists():
        raise FileNotFoundError(f"Report file not found: {path}")

    with open(report_path, "r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValidationError(f"Report file is not valid JSON: {e}") from e
        except UnicodeDecodeError as e:
            raise ValidationError(f"Report file is not UTF-8 encoded: {e}") from e

    return parse_report(data)
