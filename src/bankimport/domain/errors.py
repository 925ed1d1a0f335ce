"""Shared domain error messages and error types."""


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class CurrencyNotFoundError(NotFoundError):
    """Currency alphabetic code does not match any known currency."""


class UserNotFoundError(NotFoundError):
    """Importing user does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations."""


def currency_not_found(alphabetic_code: str) -> str:
    """Return message for unknown currency code."""
    return f"Could not find currency by alphabetic code '{alphabetic_code}'"


def user_not_found(user_id: int) -> str:
    """Return message for missing user."""
    return f"User {user_id} not found"


def unknown_time_zone(time_zone: str) -> str:
    """Return message for an unrecognised IANA time zone."""
    return f"Unknown time zone '{time_zone}'"


def account_not_found(account_id: int) -> str:
    """Return message for missing account."""
    return f"Account {account_id} not found"


def missing_account_identification(subject: str) -> str:
    """Return message when there is no usable account identification scheme."""
    return f"Cannot identify {subject}: no IBAN, BIC or name given"


def unique_constraint_violated(detail: str) -> str:
    """Return message for a uniqueness conflict raised by the store."""
    return f"Conflicting data was written concurrently, retry the import ({detail})"
