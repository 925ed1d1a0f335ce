"""Tests for Database interface returning domain models."""

import pytest
from datetime import datetime, UTC
from decimal import Decimal

from bankimport.database.models import Account as ORMAccount
from bankimport.domain import entities
from bankimport.domain.errors import ConflictError


@pytest.fixture
def eur(currencies):
    return currencies["EUR"]


@pytest.fixture
def account(temp_db, user, eur):
    """Create an account with an IBAN and a BIC."""
    account_id = temp_db.create_account(
        owner_id=user.id,
        user_id=user.id,
        name="Main",
        normalized_name="MAIN",
        preferred_currency_id=eur.id,
        iban="LV00BANK0000000000",
        bic="TESTLV2X",
    )
    return temp_db.get_account(account_id, user.id)


class TestDatabaseInterface:
    """Tests to verify Database interface returns domain models."""

    def test_create_user_with_counterparty(self, temp_db, user):
        """Test that the importing user is linked to its own counterparty."""
        assert isinstance(user, entities.User)
        assert user.counterparty_id is not None

        counterparty = temp_db.get_counterparty(user.counterparty_id)
        assert isinstance(counterparty, entities.Counterparty)
        assert counterparty.name == "tester"
        assert counterparty.owner_id == user.id

    def test_get_account_returns_domain_model(self, temp_db, user, eur, account):
        """Test that get_account returns an Account with its preferred currency provisioned."""
        assert isinstance(account, entities.Account)
        assert account.name == "Main"
        assert account.preferred_currency_id == eur.id
        assert len(account.currencies) == 1
        assert account.in_currency(eur.id).account_id == account.id
        assert account.created_by_user_id == user.id
        assert account.created_at.tzinfo is not None

    def test_find_account_by_identifiers(self, temp_db, user, account):
        """Test lookups by IBAN, BIC and normalized name."""
        assert temp_db.find_account_by_iban("LV00BANK0000000000", user.id).id == account.id
        assert temp_db.find_account_by_bic("TESTLV2X", user.id).id == account.id
        assert temp_db.find_account_by_normalized_name("MAIN", user.id).id == account.id
        assert temp_db.find_account_by_iban("LV00OTHER", user.id) is None

    def test_lookups_are_scoped_to_owner(self, temp_db, account):
        """Test that another user's accounts are invisible."""
        other_user_id = temp_db.create_user("someone else")

        assert temp_db.get_account(account.id, other_user_id) is None
        assert temp_db.find_account_by_iban("LV00BANK0000000000", other_user_id) is None
        assert temp_db.list_accounts(other_user_id) == []

    def test_soft_deleted_accounts_are_ignored(self, temp_db, user, eur, account):
        """Test that deleted accounts are not found and free their name."""
        session = temp_db._get_session()
        orm_account = session.query(ORMAccount).filter(ORMAccount.id == account.id).one()
        orm_account.deleted_at = datetime.now(UTC)
        session.commit()

        assert temp_db.get_account(account.id, user.id) is None
        assert temp_db.find_account_by_normalized_name("MAIN", user.id) is None

        # The name can be reused
        temp_db.create_account(
            owner_id=user.id,
            user_id=user.id,
            name="Main",
            normalized_name="MAIN",
            preferred_currency_id=eur.id,
        )

    def test_duplicate_normalized_name_is_conflict(self, temp_db, user, eur, account):
        """Test that the unique account name becomes a ConflictError."""
        with pytest.raises(ConflictError):
            temp_db.create_account(
                owner_id=user.id,
                user_id=user.id,
                name="main",
                normalized_name="MAIN",
                preferred_currency_id=eur.id,
            )

        # The session is usable after the conflict
        assert temp_db.get_account(account.id, user.id) is not None

    def test_add_account_currency(self, temp_db, user, currencies, account):
        """Test provisioning a second currency on an account."""
        usd = currencies["USD"]
        temp_db.add_account_currency(account.id, usd.id, user.id)

        refreshed = temp_db.get_account(account.id, user.id)
        assert [c.currency_id for c in refreshed.currencies] == [currencies["EUR"].id, usd.id]

    def test_duplicate_account_currency_is_conflict(self, temp_db, user, eur, account):
        """Test that an account cannot hold the same currency twice."""
        with pytest.raises(ConflictError):
            temp_db.add_account_currency(account.id, eur.id, user.id)

    def test_create_transaction_and_transfer(self, temp_db, user, eur, account):
        """Test that transactions and transfers round trip as domain models."""
        other_id = temp_db.create_account(
            owner_id=user.id,
            user_id=user.id,
            name="Other",
            normalized_name="OTHER",
            preferred_currency_id=eur.id,
        )
        other = temp_db.get_account(other_id, user.id)
        booked_at = datetime(2024, 1, 14, 22, 0, tzinfo=UTC)

        transaction_id = temp_db.create_transaction(
            owner_id=user.id,
            user_id=user.id,
            booked_at=booked_at,
            description="Coffee",
            import_hash="abc",
        )
        transfer_id = temp_db.create_transfer(
            owner_id=user.id,
            user_id=user.id,
            transaction_id=transaction_id,
            source_account_id=account.in_currency(eur.id).id,
            target_account_id=other.in_currency(eur.id).id,
            source_amount=Decimal("2.50"),
            target_amount=Decimal("2.50"),
            bank_reference="REF-1",
            external_reference="EXT-1",
        )

        transaction = temp_db.get_transaction(transaction_id, user.id)
        assert isinstance(transaction, entities.Transaction)
        assert transaction.booked_at == booked_at
        assert transaction.description == "Coffee"

        transfer = temp_db.get_transfer(transfer_id, user.id)
        assert isinstance(transfer, entities.Transfer)
        assert transfer.source_amount == Decimal("2.50")
        assert temp_db.find_transfer_by_bank_reference("REF-1", user.id).id == transfer_id
        assert [t.id for t in temp_db.list_transfers_by_external_reference("EXT-1", user.id)] == [transfer_id]
        assert [t.id for t in temp_db.list_transfers_by_transaction(transaction_id, user.id)] == [transfer_id]
        assert temp_db.find_transaction_by_import_hash("abc", user.id).id == transaction_id
        assert temp_db.count_transactions(user.id) == 1
        assert temp_db.count_transfers(user.id) == 1

    def test_update_transfer_bank_reference(self, temp_db, user, eur, account):
        """Test setting the bank reference of an existing transfer."""
        aic = account.in_currency(eur.id).id
        transaction_id = temp_db.create_transaction(owner_id=user.id, user_id=user.id)
        transfer_id = temp_db.create_transfer(
            owner_id=user.id,
            user_id=user.id,
            transaction_id=transaction_id,
            source_account_id=aic,
            target_account_id=aic,
            source_amount=Decimal("1"),
            target_amount=Decimal("1"),
            external_reference="EXT-1",
        )

        temp_db.update_transfer_bank_reference(transfer_id, "REF-9", user.id)

        assert temp_db.get_transfer(transfer_id, user.id).bank_reference == "REF-9"


class TestDatabaseTransaction:
    """Tests for the transaction() context manager."""

    def test_commit_on_success(self, temp_db, user):
        """Test that writes inside the block are committed."""
        with temp_db.transaction():
            temp_db.create_currency("EUR", "Euro")

        temp_db.disconnect()
        assert temp_db.find_currency_by_code("EUR") is not None

    def test_rollback_on_error(self, temp_db, user):
        """Test that any exception discards every write made in the block."""
        with pytest.raises(RuntimeError):
            with temp_db.transaction():
                temp_db.create_currency("EUR", "Euro")
                temp_db.create_currency("USD", "US Dollar")
                raise RuntimeError("boom")

        assert temp_db.list_currencies() == []

    def test_nested_blocks_join_outer_transaction(self, temp_db, user):
        """Test that an inner block does not commit on its own."""
        with pytest.raises(RuntimeError):
            with temp_db.transaction():
                with temp_db.transaction():
                    temp_db.create_currency("EUR", "Euro")
                raise RuntimeError("boom")

        assert temp_db.find_currency_by_code("EUR") is None

    def test_conflict_inside_block_rolls_back(self, temp_db, user):
        """Test that a unique violation rolls back the whole block."""
        temp_db.create_currency("EUR", "Euro")

        with pytest.raises(ConflictError):
            with temp_db.transaction():
                temp_db.create_currency("USD", "US Dollar")
                temp_db.create_currency("EUR", "Euro again")

        assert [c.alphabetic_code for c in temp_db.list_currencies()] == ["EUR"]
