"""Domain model entities for bankimport.

These are pure data classes representing business concepts, independent of
database schema. Repositories always hand out these snapshots, so the import
engine never holds on to ORM state across entries.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional


@dataclass(frozen=True)
class User:
    """Importing user; every imported row is owned by one."""

    id: int
    name: str
    counterparty_id: Optional[int]
    created_at: datetime


@dataclass(frozen=True)
class Counterparty:
    """Legal or natural person owning one or more accounts."""

    id: int
    owner_id: int
    name: str
    normalized_name: str
    created_at: datetime


@dataclass(frozen=True)
class Currency:
    """ISO 4217 currency reference data."""

    id: int
    alphabetic_code: str
    name: str


@dataclass(frozen=True)
class AccountInCurrency:
    """Per-currency ledger of an account."""

    id: int
    owner_id: int
    account_id: int
    currency_id: int
    created_at: datetime


@dataclass(frozen=True)
class Account:
    """Account domain entity with its per-currency sub-accounts."""

    id: int
    owner_id: int
    name: str
    normalized_name: str
    iban: Optional[str]
    bic: Optional[str]
    account_number: Optional[str]
    counterparty_id: Optional[int]
    preferred_currency_id: int
    currencies: tuple[AccountInCurrency, ...]
    created_at: datetime
    created_by_user_id: int
    modified_at: datetime
    modified_by_user_id: int

    def in_currency(self, currency_id: int) -> Optional[AccountInCurrency]:
        """Return the sub-account for the currency, if provisioned."""
        for account_in_currency in self.currencies:
            if account_in_currency.currency_id == currency_id:
                return account_in_currency
        return None


@dataclass(frozen=True)
class Transaction:
    """Transaction domain entity grouping one or more transfers."""

    id: int
    owner_id: int
    booked_at: Optional[datetime]
    valued_at: Optional[datetime]
    description: Optional[str]
    imported_at: Optional[datetime]
    import_hash: Optional[str]
    created_at: datetime
    created_by_user_id: int
    modified_by_user_id: int


@dataclass(frozen=True)
class Transfer:
    """Movement of money between two accounts in currency."""

    id: int
    owner_id: int
    transaction_id: int
    source_account_id: int
    target_account_id: int
    source_amount: Decimal
    target_amount: Decimal
    bank_reference: Optional[str]
    external_reference: Optional[str]
    internal_reference: Optional[str]
    order: int
    created_at: datetime
    created_by_user_id: int
    modified_by_user_id: int
