"""Per-entry import pipeline shared by all importers."""

import logging
from datetime import datetime, UTC
from typing import Callable, Optional

from bankimport.database.base import Database
from bankimport.domain.account_resolution import AccountEvidence, AccountResolution, AccountResolver
from bankimport.domain.currency import CurrencyResolver
from bankimport.domain.deduplication import DeduplicationCheck, ExistingImport, clean_reference
from bankimport.domain.entities import Account, User
from bankimport.domain.import_result import ImportResultBuilder
from bankimport.domain.other_side import OtherSideContext, OtherSideResolver
from bankimport.domain.transaction_codes import classify
from bankimport.domain.transfer_builder import ImportableEntry, build_import

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(UTC)


class EntryImporter:
    """Imports the entries of one statement account.

    Runs deduplication, other-side resolution and transfer building for each
    entry and records everything it touches in the result builder. Must be
    used inside an open database transaction.
    """

    def __init__(
        self,
        db: Database,
        user: User,
        accounts: AccountResolver,
        currencies: CurrencyResolver,
        user_account: AccountResolution,
        bank_account: Optional[AccountResolution] = None,
        other_side: Optional[OtherSideResolver] = None,
        clock: Clock = utc_now,
    ):
        self.db = db
        self.user = user
        self.accounts = accounts
        self.currencies = currencies
        self.user_account: Account = user_account.account
        self.bank_account = bank_account
        self.other_side = other_side or OtherSideResolver()
        self.clock = clock
        self.deduplication = DeduplicationCheck(db, user.id)
        self.result = ImportResultBuilder(user_account.account, user_account.created)
        if bank_account is not None:
            self.result.add_account(bank_account.account, bank_account.created)

    def _reference_existing(self, existing: ExistingImport) -> None:
        self.result.add_transaction(existing.transaction, False)
        for transfer in existing.transfers:
            self.result.add_transfer(transfer, False)
            for account_in_currency_id in (transfer.source_account_id, transfer.target_account_id):
                account_in_currency = self.db.get_account_in_currency(account_in_currency_id, self.user.id)
                account = self.db.get_account(account_in_currency.account_id, self.user.id)
                self.result.add_account(account, False)

    def import_entry(self, entry: ImportableEntry) -> None:
        """Import one entry, or reference its earlier import."""
        existing = self.deduplication.find_existing(
            bank_reference=entry.bank_reference,
            external_reference=entry.external_reference,
            import_hash=entry.import_hash,
        )
        if existing is not None:
            self._reference_existing(existing)
            return

        currency = self.currencies.resolve(entry.currency_code)
        other_currency = self.currencies.resolve(entry.other_currency_code)

        self.user_account, statement_side = self.accounts.ensure_currency(self.user_account, currency)
        self.result.add_account(self.user_account, False)

        context = OtherSideContext(
            currency=other_currency,
            related_party=AccountEvidence.of(iban=entry.other_iban, name=entry.other_name),
            classification=classify(entry.transaction_code),
            bank_account=self.bank_account,
            bank_movement_hint=entry.bank_movement_hint,
        )
        match = self.other_side.resolve(context, self.accounts)
        other_account, other_side = self.accounts.ensure_currency(match.resolution.account, other_currency)
        self.result.add_account(other_account, match.resolution.created)

        pending = build_import(entry, statement_side, other_side, self.clock())
        transaction_id = self.db.create_transaction(
            owner_id=self.user.id,
            user_id=self.user.id,
            booked_at=pending.transaction.booked_at,
            valued_at=pending.transaction.valued_at,
            description=pending.transaction.description,
            imported_at=pending.transaction.imported_at,
            import_hash=pending.transaction.import_hash,
        )
        transfer_id = self.db.create_transfer(
            owner_id=self.user.id,
            user_id=self.user.id,
            transaction_id=transaction_id,
            source_account_id=pending.transfer.source_account_id,
            target_account_id=pending.transfer.target_account_id,
            source_amount=pending.transfer.source_amount,
            target_amount=pending.transfer.target_amount,
            bank_reference=clean_reference(pending.transfer.bank_reference),
            external_reference=clean_reference(pending.transfer.external_reference),
            order=pending.transfer.order,
        )
        logger.info(
            "Imported transfer %d (%s %s, other side by %s)",
            transfer_id,
            entry.credit_debit.value,
            entry.amount,
            match.source,
        )

        self.result.add_transaction(self.db.get_transaction(transaction_id, self.user.id), True)
        self.result.add_transfer(self.db.get_transfer(transfer_id, self.user.id), True)
