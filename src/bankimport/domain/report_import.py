"""Account report import service."""

import logging
from datetime import tzinfo
from decimal import Decimal
from typing import Optional

from bankimport.database.base import Database
from bankimport.domain.account_resolution import AccountResolver
from bankimport.domain.currency import CurrencyResolver
from bankimport.domain.deduplication import compute_import_hash
from bankimport.domain.errors import ValidationError, missing_account_identification
from bankimport.domain.import_result import AccountReportResult
from bankimport.domain.importing import Clock, EntryImporter, utc_now
from bankimport.domain.other_side import OtherSideResolver
from bankimport.domain.report import AccountReport, CreditDebit, ReportEntry
from bankimport.domain.transfer_builder import ImportableEntry
from bankimport.domain.user import UserService
from bankimport.utils.time_zones import resolve_time_zone, to_instant

logger = logging.getLogger(__name__)


def _description(lines: tuple[str, ...]) -> Optional[str]:
    # Lines are fixed-width chunks of one text
    text = "".join(lines)
    return text if text.strip() else None


def translate_report_entry(entry: ReportEntry, zone: tzinfo, account_identifier: str) -> ImportableEntry:
    """Normalize an account report entry for the import pipeline.

    Args:
        entry: Report entry
        zone: Time zone of dates without an offset
        account_identifier: Statement account identification, part of the import hash

    Raises:
        ValidationError: If the entry has no currency or booking date
    """
    if not entry.currency or not entry.currency.strip():
        raise ValidationError("Report entry has no currency")

    booked_at = to_instant(entry.booking_date, zone)
    if booked_at is None:
        raise ValidationError("Report entry has no booking date")

    related_party = entry.related_party
    other_amount = entry.instructed_amount if entry.instructed_amount is not None else entry.amount
    other_currency = entry.instructed_currency or entry.currency

    return ImportableEntry(
        bank_reference=entry.account_servicer_reference,
        external_reference=entry.proprietary_reference,
        amount=abs(entry.amount),
        currency_code=entry.currency,
        credit_debit=entry.credit_debit,
        booked_at=booked_at,
        valued_at=to_instant(entry.value_date, zone),
        description=_description(entry.remittance_information),
        other_currency_code=other_currency,
        other_amount=abs(other_amount),
        other_iban=related_party.iban if related_party else None,
        other_name=related_party.name if related_party else None,
        transaction_code=entry.transaction_code,
        import_hash=compute_import_hash(entry, account_identifier),
    )


class AccountReportImportService:
    """Service for importing ISO 20022 account reports."""

    def __init__(
        self,
        db: Database,
        other_side: Optional[OtherSideResolver] = None,
        clock: Clock = utc_now,
    ):
        """Initialize account report import service.

        Args:
            db: Database instance
            other_side: Other-side resolver, the default strategy chain if None
            clock: Source of the import timestamp
        """
        self.db = db
        self.user_service = UserService(db)
        self.other_side = other_side or OtherSideResolver()
        self.clock = clock

    def _log_summary(self, report: AccountReport) -> None:
        for indicator in CreditDebit:
            amounts = [e.amount for e in report.entries if e.credit_debit is indicator]
            logger.debug(
                "Report contains %d %s entries with sum %s",
                len(amounts),
                indicator.value,
                sum(amounts, Decimal(0)),
            )

    def import_report(self, report: AccountReport, user_id: int, time_zone: str) -> AccountReportResult:
        """Import all entries of an account report in one database transaction.

        Args:
            report: Parsed account report
            user_id: Importing user ID
            time_zone: IANA time zone of dates without an offset

        Returns:
            Every account, transaction and transfer the import created or referenced

        Raises:
            ValidationError: If the time zone, statement account or an entry is invalid
            CurrencyNotFoundError: If a currency code is unknown
            ConflictError: If a concurrent import wrote conflicting rows
        """
        zone = resolve_time_zone(time_zone)
        user = self.user_service.get_user(user_id)

        if not report.account.iban or not report.account.iban.strip():
            raise ValidationError(missing_account_identification("statement account"))
        if not report.account.currency or not report.account.currency.strip():
            raise ValidationError("Statement account has no currency")

        account_identifier = report.account.iban.strip()
        entries = [translate_report_entry(e, zone, account_identifier) for e in report.entries]

        logger.debug("Reading account report %s", report.identification)
        self._log_summary(report)

        try:
            with self.db.transaction():
                currencies = CurrencyResolver(self.db)
                accounts = AccountResolver(self.db, user)

                currency = currencies.resolve(report.account.currency)
                user_account = accounts.resolve_user_account(report.account.iban, currency)
                logger.debug("Matched report account to %s", user_account.account.name)
                bank_account = accounts.resolve_bank_account(report.servicer, currency)

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
                for entry in entries:
                    importer.import_entry(entry)

                result = importer.result.to_result()
        except Exception:
            logger.exception("Import of account report %s rolled back", report.identification)
            raise

        logger.info(
            "Imported account report %s: %d of %d transfers created",
            report.identification,
            result.created_transfer_count,
            len(result.transfers),
        )
        return result
