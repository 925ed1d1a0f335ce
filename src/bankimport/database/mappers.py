"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the conversion logic, making it easy to change when
the database schema changes.
"""

from datetime import datetime, UTC
from typing import Optional

from bankimport.domain import entities as domain
from bankimport.database.models import (
    User as ORMUser,
    Counterparty as ORMCounterparty,
    Currency as ORMCurrency,
    Account as ORMAccount,
    AccountInCurrency as ORMAccountInCurrency,
    Transaction as ORMTransaction,
    Transfer as ORMTransfer,
)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive timestamps read back from the store."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def to_storage(value: Optional[datetime]) -> Optional[datetime]:
    """Convert an aware timestamp to the naive UTC value written to the store."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)


def user_to_domain(orm_user: ORMUser) -> domain.User:
    """Convert SQLAlchemy User model to domain User entity."""
    return domain.User(
        id=orm_user.id,
        name=orm_user.name,
        counterparty_id=orm_user.counterparty_id,
        created_at=as_utc(orm_user.created_at),
    )


def counterparty_to_domain(orm_counterparty: ORMCounterparty) -> domain.Counterparty:
    """Convert SQLAlchemy Counterparty model to domain Counterparty entity."""
    return domain.Counterparty(
        id=orm_counterparty.id,
        owner_id=orm_counterparty.owner_id,
        name=orm_counterparty.name,
        normalized_name=orm_counterparty.normalized_name,
        created_at=as_utc(orm_counterparty.created_at),
    )


def currency_to_domain(orm_currency: ORMCurrency) -> domain.Currency:
    """Convert SQLAlchemy Currency model to domain Currency entity."""
    return domain.Currency(
        id=orm_currency.id,
        alphabetic_code=orm_currency.alphabetic_code,
        name=orm_currency.name,
    )


def account_in_currency_to_domain(
    orm_account_in_currency: ORMAccountInCurrency,
) -> domain.AccountInCurrency:
    """Convert SQLAlchemy AccountInCurrency model to domain AccountInCurrency entity."""
    return domain.AccountInCurrency(
        id=orm_account_in_currency.id,
        owner_id=orm_account_in_currency.owner_id,
        account_id=orm_account_in_currency.account_id,
        currency_id=orm_account_in_currency.currency_id,
        created_at=as_utc(orm_account_in_currency.created_at),
    )


def account_to_domain(orm_account: ORMAccount) -> domain.Account:
    """Convert SQLAlchemy Account model to domain Account entity."""
    return domain.Account(
        id=orm_account.id,
        owner_id=orm_account.owner_id,
        name=orm_account.name,
        normalized_name=orm_account.normalized_name,
        iban=orm_account.iban,
        bic=orm_account.bic,
        account_number=orm_account.account_number,
        counterparty_id=orm_account.counterparty_id,
        preferred_currency_id=orm_account.preferred_currency_id,
        currencies=tuple(account_in_currency_to_domain(c) for c in orm_account.currencies),
        created_at=as_utc(orm_account.created_at),
        created_by_user_id=orm_account.created_by_user_id,
        modified_at=as_utc(orm_account.modified_at),
        modified_by_user_id=orm_account.modified_by_user_id,
    )


def transaction_to_domain(orm_transaction: ORMTransaction) -> domain.Transaction:
    """Convert SQLAlchemy Transaction model to domain Transaction entity."""
    return domain.Transaction(
        id=orm_transaction.id,
        owner_id=orm_transaction.owner_id,
        booked_at=as_utc(orm_transaction.booked_at),
        valued_at=as_utc(orm_transaction.valued_at),
        description=orm_transaction.description,
        imported_at=as_utc(orm_transaction.imported_at),
        import_hash=orm_transaction.import_hash,
        created_at=as_utc(orm_transaction.created_at),
        created_by_user_id=orm_transaction.created_by_user_id,
        modified_by_user_id=orm_transaction.modified_by_user_id,
    )


def transfer_to_domain(orm_transfer: ORMTransfer) -> domain.Transfer:
    """Convert SQLAlchemy Transfer model to domain Transfer entity."""
    return domain.Transfer(
        id=orm_transfer.id,
        owner_id=orm_transfer.owner_id,
        transaction_id=orm_transfer.transaction_id,
        source_account_id=orm_transfer.source_account_id,
        target_account_id=orm_transfer.target_account_id,
        source_amount=orm_transfer.source_amount,
        target_amount=orm_transfer.target_amount,
        bank_reference=orm_transfer.bank_reference,
        external_reference=orm_transfer.external_reference,
        internal_reference=orm_transfer.internal_reference,
        order=orm_transfer.order,
        created_at=as_utc(orm_transfer.created_at),
        created_by_user_id=orm_transfer.created_by_user_id,
        modified_by_user_id=orm_transfer.modified_by_user_id,
    )
