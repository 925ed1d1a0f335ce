"""Shared pytest fixtures for bankimport tests."""

import tempfile
import os
from datetime import date, datetime, UTC
from decimal import Decimal
from pathlib import Path
import pytest

from bankimport.database.factories import create_sqlite_database
from bankimport.domain.currency import CurrencyService
from bankimport.domain.report import (
    AccountReport,
    BankTransactionCode,
    CreditDebit,
    DateChoice,
    ReportEntry,
    Servicer,
    StatementAccount,
)
from bankimport.domain.user import UserService

STATEMENT_IBAN = "LV00BANK0000000000"
IMPORTED_AT = datetime(2024, 2, 1, 12, 0, tzinfo=UTC)


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    # Create database
    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    # Cleanup
    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def currencies(temp_db):
    """Seed EUR and USD and return them by code."""
    service = CurrencyService(temp_db)
    service.add_currency("EUR", "Euro")
    service.add_currency("USD", "US Dollar")
    return {c.alphabetic_code: c for c in service.list_currencies()}


@pytest.fixture
def user(temp_db):
    """Create the importing user."""
    return UserService(temp_db).get_or_create_user("tester")


@pytest.fixture
def clock():
    """Fixed import timestamp."""
    return lambda: IMPORTED_AT


def make_entry(
    amount="235.00",
    currency="EUR",
    credit_debit=CreditDebit.CREDIT,
    reference="123456789876543.020001",
    day=None,
    **kwargs,
) -> ReportEntry:
    """Build a report entry with sensible defaults."""
    booking_date = DateChoice(date=day or date(2024, 1, 15))
    return ReportEntry(
        amount=Decimal(amount),
        currency=currency,
        credit_debit=credit_debit,
        booking_date=booking_date,
        account_servicer_reference=reference,
        **kwargs,
    )


FEES_CODE = BankTransactionCode(domain="PMNT", family="ICDT", sub_family="CHRG")


def make_report(*entries, iban=STATEMENT_IBAN, currency="EUR", servicer=None) -> AccountReport:
    """Build an account report around the given entries."""
    if servicer is None:
        servicer = Servicer(name="Test Bank", bic="TESTLV2X")
    return AccountReport(
        identification="REPORT-1",
        account=StatementAccount(iban=iban, currency=currency),
        entries=tuple(entries),
        servicer=servicer,
    )


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()


@pytest.fixture
def fixtures_dir():
    """Return the path to the test fixtures directory."""
    return Path(__file__).parent / "fixtures"
