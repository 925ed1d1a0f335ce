"""Importing user domain service."""

import logging

from bankimport.database.base import Database
from bankimport.domain.account_resolution import normalize_name
from bankimport.domain.entities import User
from bankimport.domain.errors import UserNotFoundError, ValidationError, user_not_found

logger = logging.getLogger(__name__)


class UserService:
    """Service for managing importing users."""

    def __init__(self, db: Database):
        """Initialize user service.

        Args:
            db: Database instance
        """
        self.db = db

    def get_user(self, user_id: int) -> User:
        """Get user by ID.

        Raises:
            UserNotFoundError: If the user does not exist
        """
        user = self.db.get_user(user_id)
        if user is None:
            raise UserNotFoundError(user_not_found(user_id))
        return user

    def get_or_create_user(self, name: str) -> User:
        """Return the user with this name, creating it if needed.

        A new user gets its own counterparty, which later owns the accounts
        the user's statements are about.

        Args:
            name: User name

        Returns:
            User entity

        Raises:
            ValidationError: If name is blank
        """
        if not name or not name.strip():
            raise ValidationError("User name is required")
        name = name.strip()

        user = self.db.get_user_by_name(name)
        if user is not None:
            return user

        with self.db.transaction():
            user_id = self.db.create_user(name)
            counterparty_id = self.db.create_counterparty(
                owner_id=user_id,
                user_id=user_id,
                name=name,
                normalized_name=normalize_name(name),
            )
            self.db.set_user_counterparty(user_id, counterparty_id)

        logger.info("Created user %s (id=%d)", name, user_id)
        return self.get_user(user_id)
