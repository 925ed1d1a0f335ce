"""SQLAlchemy models for bankimport database."""

from datetime import datetime, UTC
from sqlalchemy import (
    Column,
    Integer,
    String,
    ForeignKey,
    DateTime,
    Numeric,
    Index,
    UniqueConstraint,
    create_engine,
    text,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()


def _now() -> datetime:
    return datetime.now(UTC)


class User(Base):
    """Importing user model."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    name = Column(String, unique=True, nullable=False)
    counterparty_id = Column(Integer, ForeignKey("counterparties.id"), nullable=True)
    created_at = Column(DateTime, default=_now, nullable=False)


class Counterparty(Base):
    """Counterparty model."""

    __tablename__ = "counterparties"

    id = Column(Integer, primary_key=True)
    owner_id = Column(Integer, nullable=True)
    name = Column(String, nullable=False)
    normalized_name = Column(String, nullable=False)
    created_at = Column(DateTime, default=_now, nullable=False)
    created_by_user_id = Column(Integer, nullable=True)
    modified_at = Column(DateTime, default=_now, onupdate=_now, nullable=False)
    modified_by_user_id = Column(Integer, nullable=True)
    deleted_at = Column(DateTime, nullable=True)


class Currency(Base):
    """Currency reference data model."""

    __tablename__ = "currencies"

    id = Column(Integer, primary_key=True)
    alphabetic_code = Column(String(3), unique=True, nullable=False)
    name = Column(String, nullable=False)
    created_at = Column(DateTime, default=_now, nullable=False)


class Account(Base):
    """Account model."""

    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    name = Column(String, nullable=False)
    normalized_name = Column(String, nullable=False)
    iban = Column(String, nullable=True)
    bic = Column(String, nullable=True)
    account_number = Column(String, nullable=True)
    counterparty_id = Column(Integer, ForeignKey("counterparties.id"), nullable=True)
    preferred_currency_id = Column(Integer, ForeignKey("currencies.id"), nullable=False)
    created_at = Column(DateTime, default=_now, nullable=False)
    created_by_user_id = Column(Integer, nullable=False)
    modified_at = Column(DateTime, default=_now, onupdate=_now, nullable=False)
    modified_by_user_id = Column(Integer, nullable=False)
    deleted_at = Column(DateTime, nullable=True)

    # Unique normalized name among non-deleted accounts of the same owner
    __table_args__ = (
        Index(
            "ux_accounts_owner_normalized_name",
            "owner_id",
            "normalized_name",
            unique=True,
            sqlite_where=text("deleted_at IS NULL"),
            postgresql_where=text("deleted_at IS NULL"),
        ),
    )

    # Relationships
    currencies = relationship(
        "AccountInCurrency",
        back_populates="account",
        order_by="AccountInCurrency.id",
        cascade="all, delete-orphan",
    )


class AccountInCurrency(Base):
    """Per-currency sub-account model."""

    __tablename__ = "accounts_in_currency"

    id = Column(Integer, primary_key=True)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)
    currency_id = Column(Integer, ForeignKey("currencies.id"), nullable=False)
    created_at = Column(DateTime, default=_now, nullable=False)
    created_by_user_id = Column(Integer, nullable=False)
    modified_at = Column(DateTime, default=_now, onupdate=_now, nullable=False)
    modified_by_user_id = Column(Integer, nullable=False)

    __table_args__ = (
        UniqueConstraint("account_id", "currency_id", name="uq_account_currency"),
    )

    # Relationships
    account = relationship("Account", back_populates="currencies")


class Transaction(Base):
    """Transaction model."""

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    booked_at = Column(DateTime, nullable=True)
    valued_at = Column(DateTime, nullable=True)
    description = Column(String, nullable=True)
    imported_at = Column(DateTime, nullable=True)
    import_hash = Column(String(64), nullable=True, index=True)
    created_at = Column(DateTime, default=_now, nullable=False)
    created_by_user_id = Column(Integer, nullable=False)
    modified_at = Column(DateTime, default=_now, onupdate=_now, nullable=False)
    modified_by_user_id = Column(Integer, nullable=False)
    deleted_at = Column(DateTime, nullable=True)

    # Relationships
    transfers = relationship("Transfer", back_populates="transaction", order_by="Transfer.order")


class Transfer(Base):
    """Transfer model."""

    __tablename__ = "transfers"

    id = Column(Integer, primary_key=True)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    transaction_id = Column(Integer, ForeignKey("transactions.id"), nullable=False)
    source_account_id = Column(Integer, ForeignKey("accounts_in_currency.id"), nullable=False)
    target_account_id = Column(Integer, ForeignKey("accounts_in_currency.id"), nullable=False)
    source_amount = Column(Numeric(18, 4), nullable=False)
    target_amount = Column(Numeric(18, 4), nullable=False)
    bank_reference = Column(String, nullable=True)
    external_reference = Column(String, nullable=True, index=True)
    internal_reference = Column(String, nullable=True)
    order = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=_now, nullable=False)
    created_by_user_id = Column(Integer, nullable=False)
    modified_at = Column(DateTime, default=_now, onupdate=_now, nullable=False)
    modified_by_user_id = Column(Integer, nullable=False)
    deleted_at = Column(DateTime, nullable=True)

    # Bank reference is the primary deduplication key
    __table_args__ = (
        Index(
            "ux_transfers_owner_bank_reference",
            "owner_id",
            "bank_reference",
            unique=True,
            sqlite_where=text("deleted_at IS NULL AND bank_reference IS NOT NULL"),
            postgresql_where=text("deleted_at IS NULL AND bank_reference IS NOT NULL"),
        ),
    )

    # Relationships
    transaction = relationship("Transaction", back_populates="transfers")


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
