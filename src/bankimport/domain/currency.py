"""Currency reference data and resolution."""

import logging
from typing import Optional

from bankimport.database.base import Database
from bankimport.domain.entities import Currency
from bankimport.domain.errors import (
    ConflictError,
    CurrencyNotFoundError,
    ValidationError,
    currency_not_found,
)

logger = logging.getLogger(__name__)

# Seeded by ``bankimport currency init``
DEFAULT_CURRENCIES = (
    ("EUR", "Euro"),
    ("USD", "US Dollar"),
    ("GBP", "Pound Sterling"),
    ("CHF", "Swiss Franc"),
    ("SEK", "Swedish Krona"),
    ("NOK", "Norwegian Krone"),
    ("DKK", "Danish Krone"),
    ("PLN", "Zloty"),
    ("CZK", "Czech Koruna"),
    ("HUF", "Forint"),
    ("RUB", "Russian Ruble"),
    ("JPY", "Yen"),
    ("CNY", "Yuan Renminbi"),
    ("CAD", "Canadian Dollar"),
    ("AUD", "Australian Dollar"),
)


def normalize_code(alphabetic_code: Optional[str]) -> str:
    """Normalize a currency code for lookup.

    Raises:
        ValidationError: If the code is missing or blank
    """
    if alphabetic_code is None or not alphabetic_code.strip():
        raise ValidationError("Currency code is required")
    return alphabetic_code.strip().upper()


class CurrencyService:
    """Service for managing currency reference data."""

    def __init__(self, db: Database):
        """Initialize currency service.

        Args:
            db: Database instance
        """
        self.db = db

    def add_currency(self, alphabetic_code: str, name: str) -> int:
        """Add a currency.

        Args:
            alphabetic_code: ISO 4217 alphabetic code, e.g. "EUR"
            name: Currency name

        Returns:
            Currency ID

        Raises:
            ValidationError: If the code is not three letters or the name is blank
            ConflictError: If the currency already exists
        """
        code = normalize_code(alphabetic_code)
        if len(code) != 3 or not code.isalpha():
            raise ValidationError(f"Invalid currency code '{alphabetic_code}': expected three letters")
        if not name or not name.strip():
            raise ValidationError("Currency name is required")

        if self.db.find_currency_by_code(code) is not None:
            raise ConflictError(f"Currency '{code}' already exists")

        return self.db.create_currency(alphabetic_code=code, name=name.strip())

    def list_currencies(self) -> list[Currency]:
        """List all currencies ordered by code."""
        return self.db.list_currencies()

    def seed_defaults(self) -> int:
        """Add the default currency set, skipping codes that already exist.

        Returns:
            Number of currencies added
        """
        added = 0
        with self.db.transaction():
            for code, name in DEFAULT_CURRENCIES:
                if self.db.find_currency_by_code(code) is not None:
                    continue
                self.db.create_currency(alphabetic_code=code, name=name)
                added += 1
        logger.info("Seeded %d currencies", added)
        return added


class CurrencyResolver:
    """Looks up currencies by code, remembering hits for one import run."""

    def __init__(self, db: Database):
        self.db = db
        self._cache: dict[str, Currency] = {}

    def resolve(self, alphabetic_code: Optional[str]) -> Currency:
        """Return the currency for an alphabetic code.

        Raises:
            ValidationError: If the code is blank
            CurrencyNotFoundError: If no currency has that code
        """
        code = normalize_code(alphabetic_code)
        currency = self._cache.get(code)
        if currency is not None:
            return currency

        logger.debug("Looking up currency %s", code)
        currency = self.db.find_currency_by_code(code)
        if currency is None:
            raise CurrencyNotFoundError(currency_not_found(code))

        self._cache[code] = currency
        return currency
