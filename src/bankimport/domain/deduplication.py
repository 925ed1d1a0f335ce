"""Detection of entries that were already imported."""

import hashlib
import logging
from dataclasses import dataclass
from typing import Optional

from bankimport.database.base import Database
from bankimport.domain.entities import Transaction, Transfer
from bankimport.domain.report import DateChoice, ReportEntry

logger = logging.getLogger(__name__)


def _sha256_hash(value: str) -> str:
    return hashlib.sha256(value.encode("utf-8")).hexdigest()


def _date_choice(value: Optional[DateChoice]) -> str:
    if value is None:
        return ""
    if value.date_time is not None:
        return value.date_time.isoformat()
    if value.date is not None:
        return value.date.isoformat()
    return ""


def compute_import_hash(entry: ReportEntry, account_identifier: str) -> str:
    """Compute a stable content fingerprint of a report entry.

    Args:
        entry: Report entry
        account_identifier: Identification of the statement account, so equal
            entries on different accounts do not collide

    Returns:
        Hex encoded SHA-256 digest
    """

    def normalize(value: Optional[str]) -> str:
        return (value or "").strip()

    related_party = entry.related_party
    code = entry.transaction_code
    identity_string = "|".join(
        [
            normalize(account_identifier),
            f"{entry.amount:.2f}",
            normalize(entry.currency).upper(),
            entry.credit_debit.value,
            _date_choice(entry.booking_date),
            _date_choice(entry.value_date),
            normalize(entry.account_servicer_reference),
            normalize(entry.proprietary_reference),
            "\n".join(normalize(line) for line in entry.remittance_information),
            f"{entry.instructed_amount:.2f}" if entry.instructed_amount is not None else "",
            normalize(entry.instructed_currency).upper(),
            normalize(related_party.name) if related_party else "",
            normalize(related_party.iban) if related_party else "",
            normalize(code.domain),
            normalize(code.family),
            normalize(code.sub_family),
            normalize(code.proprietary),
        ]
    )
    return _sha256_hash(identity_string)


def clean_reference(reference: Optional[str]) -> Optional[str]:
    """Treat empty and whitespace-only references as absent."""
    if reference is None or not reference.strip():
        return None
    return reference


@dataclass(frozen=True)
class ExistingImport:
    """Rows written by an earlier import of the same entry."""

    transaction: Transaction
    transfers: tuple[Transfer, ...]


class DeduplicationCheck:
    """Looks up whether an entry has been imported before.

    Checks, in order: bank reference, external reference, import hash.
    """

    def __init__(self, db: Database, user_id: int):
        self.db = db
        self.user_id = user_id

    def _existing_transfer(self, transfer: Transfer) -> ExistingImport:
        transaction = self.db.get_transaction(transfer.transaction_id, self.user_id)
        return ExistingImport(transaction=transaction, transfers=(transfer,))

    def find_existing(
        self,
        bank_reference: Optional[str],
        external_reference: Optional[str] = None,
        import_hash: Optional[str] = None,
    ) -> Optional[ExistingImport]:
        """Find the rows of an earlier import of the entry.

        An existing transfer found by external reference that has no bank
        reference yet is updated with the entry's bank reference.

        Returns:
            The existing rows, or None if the entry is new
        """
        bank_reference = clean_reference(bank_reference)
        external_reference = clean_reference(external_reference)

        if bank_reference is not None:
            logger.debug("Searching transfer by bank reference %s", bank_reference)
            transfer = self.db.find_transfer_by_bank_reference(bank_reference, self.user_id)
            if transfer is not None:
                logger.info("Found transfer %d by bank reference %s", transfer.id, bank_reference)
                return self._existing_transfer(transfer)

        if external_reference is not None:
            logger.debug("Searching transfer by external reference %s", external_reference)
            transfers = self.db.list_transfers_by_external_reference(external_reference, self.user_id)
            if len(transfers) == 1:
                transfer = transfers[0]
                logger.info("Found transfer %d by external reference %s", transfer.id, external_reference)
                # A differing bank reference means the same external reference on another movement
                if transfer.bank_reference is None or transfer.bank_reference == bank_reference:
                    if transfer.bank_reference is None and bank_reference is not None:
                        self.db.update_transfer_bank_reference(transfer.id, bank_reference, self.user_id)
                        transfer = self.db.get_transfer(transfer.id, self.user_id)
                        logger.info("Set bank reference %s on transfer %d", bank_reference, transfer.id)
                    return self._existing_transfer(transfer)
            elif transfers:
                logger.debug("Found %d transfers by external reference %s", len(transfers), external_reference)

        if import_hash is not None and bank_reference is None:
            logger.debug("Searching transaction by import hash %s", import_hash)
            transaction = self.db.find_transaction_by_import_hash(import_hash, self.user_id)
            if transaction is not None:
                logger.info("Found transaction %d by import hash", transaction.id)
                transfers = self.db.list_transfers_by_transaction(transaction.id, self.user_id)
                return ExistingImport(transaction=transaction, transfers=tuple(transfers))

        return None
