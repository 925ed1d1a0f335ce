"""Accumulation of everything an import run touched."""

from dataclasses import dataclass
from typing import Any, Generic, Optional, TypeVar

from bankimport.domain.entities import Account, Transaction, Transfer

T = TypeVar("T")


@dataclass(frozen=True)
class Touched(Generic[T]):
    """An entity referenced by an import, and whether the import created it."""

    entity: T
    created: bool


def _iso(value) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _account_to_dict(item: Touched[Account]) -> dict[str, Any]:
    account = item.entity
    return {
        "id": account.id,
        "name": account.name,
        "iban": account.iban,
        "bic": account.bic,
        "currency_ids": [c.currency_id for c in account.currencies],
        "created": item.created,
    }


def _transaction_to_dict(item: Touched[Transaction]) -> dict[str, Any]:
    transaction = item.entity
    return {
        "id": transaction.id,
        "booked_at": _iso(transaction.booked_at),
        "valued_at": _iso(transaction.valued_at),
        "description": transaction.description,
        "imported_at": _iso(transaction.imported_at),
        "created": item.created,
    }


def _transfer_to_dict(item: Touched[Transfer]) -> dict[str, Any]:
    transfer = item.entity
    return {
        "id": transfer.id,
        "transaction_id": transfer.transaction_id,
        "source_account_id": transfer.source_account_id,
        "target_account_id": transfer.target_account_id,
        "source_amount": str(transfer.source_amount),
        "target_amount": str(transfer.target_amount),
        "bank_reference": transfer.bank_reference,
        "external_reference": transfer.external_reference,
        "created": item.created,
    }


@dataclass(frozen=True)
class AccountReportResult:
    """Immutable snapshot of one import run for one statement account."""

    user_account_id: int
    accounts: tuple[Touched[Account], ...]
    transactions: tuple[Touched[Transaction], ...]
    transfers: tuple[Touched[Transfer], ...]

    @property
    def created_transfer_count(self) -> int:
        return sum(1 for t in self.transfers if t.created)

    @property
    def created_account_count(self) -> int:
        return sum(1 for a in self.accounts if a.created)

    def to_dict(self) -> dict[str, Any]:
        return {
            "user_account_id": self.user_account_id,
            "accounts": [_account_to_dict(a) for a in self.accounts],
            "transactions": [_transaction_to_dict(t) for t in self.transactions],
            "transfers": [_transfer_to_dict(t) for t in self.transfers],
        }


class ImportResultBuilder:
    """Collects accounts, transactions and transfers touched during one run.

    Adding an entity a second time keeps the first ``created`` flag, so an
    account created earlier in the run is never downgraded to referenced.
    Accounts are refreshed with their latest state, since currencies may be
    added to them during the run.
    """

    def __init__(self, user_account: Account, created: bool):
        self._user_account_id = user_account.id
        self._accounts: dict[int, Touched[Account]] = {}
        self._transactions: dict[int, Touched[Transaction]] = {}
        self._transfers: dict[int, Touched[Transfer]] = {}
        self.add_account(user_account, created)

    def add_account(self, account: Account, created: bool) -> None:
        existing = self._accounts.get(account.id)
        if existing is not None:
            created = existing.created
        self._accounts[account.id] = Touched(account, created)

    def add_transaction(self, transaction: Transaction, created: bool) -> None:
        if transaction.id not in self._transactions:
            self._transactions[transaction.id] = Touched(transaction, created)

    def add_transfer(self, transfer: Transfer, created: bool) -> None:
        if transfer.id not in self._transfers:
            self._transfers[transfer.id] = Touched(transfer, created)

    def to_result(self) -> AccountReportResult:
        return AccountReportResult(
            user_account_id=self._user_account_id,
            accounts=tuple(self._accounts.values()),
            transactions=tuple(self._transactions.values()),
            transfers=tuple(self._transfers.values()),
        )
