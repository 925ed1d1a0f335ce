"""Account domain service."""

from typing import Optional

from bankimport.database.base import Database
from bankimport.domain.entities import Account as AccountEntity


class AccountService:
    """Service for reading a user's accounts."""

    def __init__(self, db: Database):
        """Initialize account service.

        Args:
            db: Database instance
        """
        self.db = db

    def get_account(self, account_id: int, owner_id: int) -> Optional[AccountEntity]:
        """Get account by ID.

        Args:
            account_id: Account ID
            owner_id: Owning user ID

        Returns:
            Account entity or None if not found
        """
        return self.db.get_account(account_id, owner_id)

    def list_accounts(self, owner_id: int) -> list[AccountEntity]:
        """List all accounts of a user.

        Returns:
            List of account entities ordered by name
        """
        return self.db.list_accounts(owner_id)
