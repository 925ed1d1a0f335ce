"""Aggregator (Nordigen) import service."""

import logging
from dataclasses import dataclass
from datetime import tzinfo
from typing import Optional, Union

from bankimport.database.base import Database
from bankimport.domain.account_resolution import AccountResolver
from bankimport.domain.currency import CurrencyResolver
from bankimport.domain.errors import ValidationError, missing_account_identification
from bankimport.domain.import_result import AccountReportResult
from bankimport.domain.importing import Clock, EntryImporter, utc_now
from bankimport.domain.other_side import OtherSideResolver
from bankimport.domain.report import CreditDebit, Servicer
from bankimport.domain.transaction_codes import Domain, parse_code
from bankimport.domain.transfer_builder import ImportableEntry
from bankimport.domain.user import UserService
from bankimport.integrations.nordigen import (
    STATUS_LINKED,
    AccountDetails,
    AggregatorAccount,
    AggregatorClient,
    BookedTransaction,
    Institution,
    Requisition,
)
from bankimport.utils.time_zones import resolve_time_zone, start_of_day

logger = logging.getLogger(__name__)

CREDIT_DEBIT_BY_INFORMATION = {
    "PURCHASE": CreditDebit.DEBIT,
    "INWARD TRANSFER": CreditDebit.CREDIT,
    "INWARD CLEARING PAYMENT": CreditDebit.CREDIT,
    "INWARD INSTANT PAYMENT": CreditDebit.CREDIT,
    "RETURN OF PURCHASE": CreditDebit.CREDIT,
    "CARD FEE": CreditDebit.DEBIT,
    "BALANCE ENQUIRY FEE": CreditDebit.DEBIT,
    "OUTWARD TRANSFER": CreditDebit.DEBIT,
    "OUTWARD INSTANT PAYMENT": CreditDebit.DEBIT,
    "INTEREST PAYMENT": CreditDebit.DEBIT,
    "REIMBURSEMENT OF COMMISSION": CreditDebit.DEBIT,
    "PRINCIPAL REPAYMENT": CreditDebit.DEBIT,
    "CASH DEPOSIT": CreditDebit.CREDIT,
    "CASH WITHDRAWAL": CreditDebit.DEBIT,
    "LOAN DRAWDOWN": CreditDebit.DEBIT,
}

# Additional information meaning that the bank itself is the other side
BANK_INFORMATION = frozenset(
    {
        "CARD FEE",
        "BALANCE ENQUIRY FEE",
        "INTEREST PAYMENT",
        "REIMBURSEMENT OF COMMISSION",
        "PRINCIPAL REPAYMENT",
        "LOAN DRAWDOWN",
    }
)


@dataclass(frozen=True)
class ConsentRequired:
    """The institution is not linked yet; the user must grant access first."""

    requisition_id: str
    link: Optional[str]


@dataclass(frozen=True)
class Imported:
    """Results of importing every linked account of an institution."""

    results: tuple[AccountReportResult, ...]


NordigenImportOutcome = Union[ConsentRequired, Imported]


def _information(transaction: BookedTransaction) -> str:
    return (transaction.additional_information or "").strip().upper()


def credit_debit_of(transaction: BookedTransaction) -> CreditDebit:
    """Determine which way a booked transaction moved money.

    Uses the additional information first, then the sign of the amount.

    Raises:
        ValidationError: If the direction cannot be determined
    """
    information = _information(transaction)
    indicator = CREDIT_DEBIT_BY_INFORMATION.get(information)
    if indicator is not None:
        return indicator
    if information.startswith("INWARD"):
        return CreditDebit.CREDIT
    if information.startswith("OUTWARD"):
        return CreditDebit.DEBIT

    if transaction.amount > 0:
        return CreditDebit.CREDIT
    if transaction.amount < 0:
        return CreditDebit.DEBIT

    if parse_code(transaction.bank_transaction_code).domain == Domain.PAYMENTS.value:
        return CreditDebit.DEBIT

    raise ValidationError(f"Failed to determine the direction of transaction {transaction.transaction_id}")


def translate_booked_transaction(transaction: BookedTransaction, zone: tzinfo) -> ImportableEntry:
    """Normalize an aggregator transaction for the import pipeline.

    Raises:
        ValidationError: If the transaction has no booking date, currency or
            a malformed bank transaction code
    """
    if transaction.booking_date is None:
        raise ValidationError(f"Transaction {transaction.transaction_id} has no booking date")
    if not transaction.currency:
        raise ValidationError(f"Transaction {transaction.transaction_id} has no currency")

    credit_debit = credit_debit_of(transaction)
    amount = abs(transaction.amount)

    # The other side sent the money on a credit and received it on a debit
    if credit_debit is CreditDebit.CREDIT:
        other_iban = transaction.debtor_iban or transaction.creditor_iban
        other_name = transaction.debtor_name or transaction.creditor_name
    else:
        other_iban = transaction.creditor_iban or transaction.debtor_iban
        other_name = transaction.creditor_name or transaction.debtor_name

    return ImportableEntry(
        bank_reference=transaction.transaction_id,
        external_reference=transaction.entry_reference,
        amount=amount,
        currency_code=transaction.currency,
        credit_debit=credit_debit,
        booked_at=start_of_day(transaction.booking_date, zone),
        valued_at=start_of_day(transaction.value_date, zone) if transaction.value_date else None,
        description=transaction.unstructured_information or None,
        other_currency_code=transaction.currency,
        other_amount=amount,
        other_iban=other_iban,
        other_name=other_name,
        transaction_code=parse_code(transaction.bank_transaction_code),
        bank_movement_hint=_information(transaction) in BANK_INFORMATION,
    )


@dataclass(frozen=True)
class _FetchedAccount:
    account: AggregatorAccount
    details: AccountDetails
    institution: Institution
    entries: tuple[ImportableEntry, ...]

    @property
    def iban(self) -> Optional[str]:
        return self.account.iban or self.details.iban


class NordigenImportService:
    """Service for importing transactions of institutions linked through Nordigen."""

    def __init__(
        self,
        db: Database,
        client: AggregatorClient,
        other_side: Optional[OtherSideResolver] = None,
        clock: Clock = utc_now,
    ):
        """Initialize Nordigen import service.

        Args:
            db: Database instance
            client: Aggregator client
            other_side: Other-side resolver, the default strategy chain if None
            clock: Source of the import timestamp
        """
        self.db = db
        self.client = client
        self.user_service = UserService(db)
        self.other_side = other_side or OtherSideResolver()
        self.clock = clock

    def find_linked_requisition(self, institution_id: str) -> Optional[Requisition]:
        """Return the most recent linked requisition of an institution."""
        logger.debug("Getting requisition for institution %s", institution_id)
        linked = [
            r
            for r in self.client.list_requisitions()
            if r.institution_id == institution_id and r.status == STATUS_LINKED
        ]
        if not linked:
            return None
        return max(linked, key=lambda r: r.created.timestamp() if r.created else float("-inf"))

    def _fetch(self, requisition: Requisition, zone: tzinfo) -> list[_FetchedAccount]:
        institutions: dict[str, Institution] = {}
        fetched = []
        for account_id in requisition.accounts:
            account = self.client.get_account(account_id)
            details = self.client.get_account_details(account_id)
            transactions = self.client.get_booked_transactions(account_id)
            institution_id = account.institution_id or requisition.institution_id
            if institution_id not in institutions:
                institutions[institution_id] = self.client.get_institution(institution_id)

            item = _FetchedAccount(
                account=account,
                details=details,
                institution=institutions[institution_id],
                entries=tuple(translate_booked_transaction(t, zone) for t in transactions),
            )
            if not item.iban:
                raise ValidationError(missing_account_identification(f"aggregator account {account_id}"))
            if not details.currency:
                raise ValidationError(f"Aggregator account {account_id} has no currency")

            logger.debug("Fetched %d booked transactions for account %s", len(item.entries), account_id)
            fetched.append(item)
        return fetched

    def import_institution(
        self,
        institution_id: str,
        user_id: int,
        time_zone: str,
        redirect_url: str,
    ) -> NordigenImportOutcome:
        """Import every account linked for an institution.

        All accounts are imported in one database transaction.

        Args:
            institution_id: Aggregator institution ID
            user_id: Importing user ID
            time_zone: IANA time zone in which booking dates are interpreted
            redirect_url: Where the consent flow returns to, when linking is needed

        Returns:
            ConsentRequired with the consent link if the institution is not
            linked yet, otherwise Imported with one result per account

        Raises:
            ValidationError: If the time zone or aggregator data is invalid
            AggregatorError: If the aggregator API fails
        """
        zone = resolve_time_zone(time_zone)
        user = self.user_service.get_user(user_id)

        requisition = self.find_linked_requisition(institution_id)
        if requisition is None:
            logger.info("Creating requisition for institution %s", institution_id)
            created = self.client.create_requisition(institution_id, redirect_url)
            return ConsentRequired(requisition_id=created.id, link=created.link)

        fetched = self._fetch(requisition, zone)

        results = []
        try:
            with self.db.transaction():
                currencies = CurrencyResolver(self.db)
                accounts = AccountResolver(self.db, user)

                for item in fetched:
                    currency = currencies.resolve(item.details.currency)
                    user_account = accounts.resolve_user_account(item.iban, currency)
                    logger.debug("Matched report account to %s", user_account.account.name)
                    servicer = Servicer(name=item.institution.name, bic=item.institution.bic)
                    bank_account = accounts.resolve_bank_account(servicer, currency)

                    importer = EntryImporter(
                        self.db,
                        user,
                        accounts,
                        currencies,
                        user_account,
                        bank_account=bank_account,
                        other_side=self.other_side,
                        clock=self.clock,
                    )
                    for entry in item.entries:
                        importer.import_entry(entry)
                    results.append(importer.result.to_result())
        except Exception:
            logger.exception("Import of institution %s rolled back", institution_id)
            raise

        logger.info("Imported %d accounts of institution %s", len(results), institution_id)
        return Imported(results=tuple(results))
