"""Abstract database interface."""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from typing import Optional
from datetime import datetime
from decimal import Decimal

# Import entities directly to avoid circular import through domain/__init__.py
from bankimport.domain.entities import (
    User,
    Counterparty,
    Currency,
    Account,
    AccountInCurrency,
    Transaction,
    Transfer,
)


class Database(ABC):
    """Abstract database interface for bankimport.

    All lookups of owned rows are scoped to ``owner_id`` and ignore
    soft-deleted rows.
    """

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    @abstractmethod
    def transaction(self) -> AbstractContextManager[None]:
        """Run the enclosed block as one database transaction.

        Writes inside the block are only visible to this connection until the
        block exits normally, at which point they are committed. Any exception
        rolls back every write made inside the block and propagates. Nested
        blocks join the outermost one.
        """
        pass

    # User operations
    @abstractmethod
    def create_user(self, name: str) -> int:
        """Create a user. Returns user ID."""
        pass

    @abstractmethod
    def get_user(self, user_id: int) -> Optional[User]:
        """Get user by ID."""
        pass

    @abstractmethod
    def get_user_by_name(self, name: str) -> Optional[User]:
        """Get user by name."""
        pass

    @abstractmethod
    def set_user_counterparty(self, user_id: int, counterparty_id: int) -> None:
        """Link a user to the counterparty representing them."""
        pass

    # Counterparty operations
    @abstractmethod
    def create_counterparty(self, owner_id: int, user_id: int, name: str, normalized_name: str) -> int:
        """Create a counterparty. Returns counterparty ID."""
        pass

    @abstractmethod
    def get_counterparty(self, counterparty_id: int) -> Optional[Counterparty]:
        """Get counterparty by ID."""
        pass

    # Currency operations
    @abstractmethod
    def create_currency(self, alphabetic_code: str, name: str) -> int:
        """Create a currency. Returns currency ID."""
        pass

    @abstractmethod
    def find_currency_by_code(self, alphabetic_code: str) -> Optional[Currency]:
        """Get currency by ISO 4217 alphabetic code."""
        pass

    @abstractmethod
    def list_currencies(self) -> list[Currency]:
        """List all currencies."""
        pass

    # Account operations
    @abstractmethod
    def create_account(
        self,
        owner_id: int,
        user_id: int,
        name: str,
        normalized_name: str,
        preferred_currency_id: int,
        iban: Optional[str] = None,
        bic: Optional[str] = None,
        account_number: Optional[str] = None,
        counterparty_id: Optional[int] = None,
    ) -> int:
        """Create an account with its preferred currency provisioned. Returns account ID."""
        pass

    @abstractmethod
    def get_account(self, account_id: int, owner_id: int) -> Optional[Account]:
        """Get account by ID."""
        pass

    @abstractmethod
    def find_account_by_iban(self, iban: str, owner_id: int) -> Optional[Account]:
        """Get account by IBAN."""
        pass

    @abstractmethod
    def find_account_by_bic(self, bic: str, owner_id: int) -> Optional[Account]:
        """Get account by BIC."""
        pass

    @abstractmethod
    def find_account_by_normalized_name(self, normalized_name: str, owner_id: int) -> Optional[Account]:
        """Get account by normalized name."""
        pass

    @abstractmethod
    def list_accounts(self, owner_id: int) -> list[Account]:
        """List all accounts of an owner."""
        pass

    @abstractmethod
    def add_account_currency(self, account_id: int, currency_id: int, user_id: int) -> int:
        """Provision a currency on an account. Returns account in currency ID."""
        pass

    @abstractmethod
    def get_account_in_currency(self, account_in_currency_id: int, owner_id: int) -> Optional[AccountInCurrency]:
        """Get account in currency by ID."""
        pass

    # Transaction operations
    @abstractmethod
    def create_transaction(
        self,
        owner_id: int,
        user_id: int,
        booked_at: Optional[datetime] = None,
        valued_at: Optional[datetime] = None,
        description: Optional[str] = None,
        imported_at: Optional[datetime] = None,
        import_hash: Optional[str] = None,
    ) -> int:
        """Create a transaction. Returns transaction ID."""
        pass

    @abstractmethod
    def get_transaction(self, transaction_id: int, owner_id: int) -> Optional[Transaction]:
        """Get transaction by ID."""
        pass

    @abstractmethod
    def find_transaction_by_import_hash(self, import_hash: str, owner_id: int) -> Optional[Transaction]:
        """Get transaction by import hash."""
        pass

    @abstractmethod
    def count_transactions(self, owner_id: int) -> int:
        """Count transactions of an owner."""
        pass

    # Transfer operations
    @abstractmethod
    def create_transfer(
        self,
        owner_id: int,
        user_id: int,
        transaction_id: int,
        source_account_id: int,
        target_account_id: int,
        source_amount: Decimal,
        target_amount: Decimal,
        bank_reference: Optional[str] = None,
        external_reference: Optional[str] = None,
        internal_reference: Optional[str] = None,
        order: int = 0,
    ) -> int:
        """Create a transfer. Returns transfer ID."""
        pass

    @abstractmethod
    def get_transfer(self, transfer_id: int, owner_id: int) -> Optional[Transfer]:
        """Get transfer by ID."""
        pass

    @abstractmethod
    def find_transfer_by_bank_reference(self, bank_reference: str, owner_id: int) -> Optional[Transfer]:
        """Get transfer by bank reference."""
        pass

    @abstractmethod
    def list_transfers_by_external_reference(self, external_reference: str, owner_id: int) -> list[Transfer]:
        """List transfers with the given external reference."""
        pass

    @abstractmethod
    def list_transfers_by_transaction(self, transaction_id: int, owner_id: int) -> list[Transfer]:
        """List transfers of a transaction, in order."""
        pass

    @abstractmethod
    def update_transfer_bank_reference(self, transfer_id: int, bank_reference: str, user_id: int) -> None:
        """Set the bank reference of an existing transfer."""
        pass

    @abstractmethod
    def count_transfers(self, owner_id: int) -> int:
        """Count transfers of an owner."""
        pass
