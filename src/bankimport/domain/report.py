"""Normalized bank statement input.

The raw wire formats (ISO 20022 account reports, aggregator JSON) are parsed
elsewhere; the import engine only ever sees these types.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional


class CreditDebit(str, Enum):
    """Whether an entry increases or decreases the statement account."""

    CREDIT = "CRDT"
    DEBIT = "DBIT"


@dataclass(frozen=True)
class DateChoice:
    """Either a calendar date or a local date and time, as reported by the bank."""

    date: Optional[date] = None
    date_time: Optional[datetime] = None


@dataclass(frozen=True)
class BankTransactionCode:
    """ISO 20022 domain/family/sub-family code, plus any proprietary code."""

    domain: Optional[str] = None
    family: Optional[str] = None
    sub_family: Optional[str] = None
    proprietary: Optional[str] = None


@dataclass(frozen=True)
class RelatedParty:
    """Counterparty hints carried by an entry."""

    name: Optional[str] = None
    iban: Optional[str] = None


@dataclass(frozen=True)
class ReportEntry:
    """One account report line item."""

    amount: Decimal
    currency: str
    credit_debit: CreditDebit
    booking_date: DateChoice
    account_servicer_reference: Optional[str] = None
    proprietary_reference: Optional[str] = None
    value_date: Optional[DateChoice] = None
    remittance_information: tuple[str, ...] = ()
    instructed_amount: Optional[Decimal] = None
    instructed_currency: Optional[str] = None
    related_party: Optional[RelatedParty] = None
    transaction_code: BankTransactionCode = field(default_factory=BankTransactionCode)


@dataclass(frozen=True)
class StatementAccount:
    """Identification of the account the report is about."""

    iban: Optional[str]
    currency: Optional[str]


@dataclass(frozen=True)
class Servicer:
    """The bank servicing the statement account."""

    name: Optional[str] = None
    bic: Optional[str] = None


@dataclass(frozen=True)
class AccountReport:
    """A bank-to-customer account report."""

    identification: str
    account: StatementAccount
    entries: tuple[ReportEntry, ...]
    servicer: Optional[Servicer] = None
