"""Conversion of importable entries into transaction and transfer rows."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from bankimport.domain.entities import AccountInCurrency
from bankimport.domain.report import BankTransactionCode, CreditDebit


@dataclass(frozen=True)
class ImportableEntry:
    """A report or aggregator entry, normalized for the import pipeline.

    Amounts are always positive; ``credit_debit`` says which way the money
    moved relative to the statement account.
    """

    bank_reference: Optional[str]
    external_reference: Optional[str]
    amount: Decimal
    currency_code: str
    credit_debit: CreditDebit
    booked_at: Optional[datetime]
    valued_at: Optional[datetime]
    description: Optional[str]
    other_currency_code: str
    other_amount: Decimal
    other_iban: Optional[str] = None
    other_name: Optional[str] = None
    transaction_code: BankTransactionCode = BankTransactionCode()
    import_hash: Optional[str] = None
    bank_movement_hint: bool = False


@dataclass(frozen=True)
class NewTransaction:
    """Transaction row to be written."""

    booked_at: Optional[datetime]
    valued_at: Optional[datetime]
    description: Optional[str]
    imported_at: datetime
    import_hash: Optional[str]


@dataclass(frozen=True)
class NewTransfer:
    """Transfer row to be written."""

    source_account_id: int
    target_account_id: int
    source_amount: Decimal
    target_amount: Decimal
    bank_reference: Optional[str]
    external_reference: Optional[str]
    order: int = 0


@dataclass(frozen=True)
class PendingImport:
    """Transaction and transfer built for one entry, not yet persisted."""

    transaction: NewTransaction
    transfer: NewTransfer


def build_transfer(
    entry: ImportableEntry,
    statement_account: AccountInCurrency,
    other_account: AccountInCurrency,
) -> NewTransfer:
    """Build the transfer between the statement account and the other side.

    A credit moves money from the other side into the statement account, a
    debit the other way round. Each side keeps its own amount.
    """
    if entry.credit_debit is CreditDebit.CREDIT:
        return NewTransfer(
            source_account_id=other_account.id,
            target_account_id=statement_account.id,
            source_amount=entry.other_amount,
            target_amount=entry.amount,
            bank_reference=entry.bank_reference,
            external_reference=entry.external_reference,
        )

    return NewTransfer(
        source_account_id=statement_account.id,
        target_account_id=other_account.id,
        source_amount=entry.amount,
        target_amount=entry.other_amount,
        bank_reference=entry.bank_reference,
        external_reference=entry.external_reference,
    )


def build_import(
    entry: ImportableEntry,
    statement_account: AccountInCurrency,
    other_account: AccountInCurrency,
    imported_at: datetime,
) -> PendingImport:
    """Build the transaction and transfer for an entry."""
    transaction = NewTransaction(
        booked_at=entry.booked_at,
        valued_at=entry.valued_at,
        description=entry.description,
        imported_at=imported_at,
        import_hash=entry.import_hash,
    )
    return PendingImport(
        transaction=transaction,
        transfer=build_transfer(entry, statement_account, other_account),
    )
