"""Tests for the account report import service."""

from dataclasses import replace
from datetime import date, datetime, UTC
from decimal import Decimal

import pytest

from bankimport.domain.account_resolution import UNIDENTIFIED_ACCOUNT_NAME
from bankimport.domain.errors import CurrencyNotFoundError, ValidationError
from bankimport.domain.report import CreditDebit, DateChoice, RelatedParty, ReportEntry
from bankimport.domain.report_import import AccountReportImportService, translate_report_entry
from bankimport.utils.report_loader import load_report
from bankimport.utils.time_zones import resolve_time_zone

from conftest import FEES_CODE, IMPORTED_AT, STATEMENT_IBAN, make_entry, make_report

TIME_ZONE = "Europe/Riga"


@pytest.fixture
def service(temp_db, clock):
    return AccountReportImportService(temp_db, clock=clock)


def accounts_by_name(result):
    return {item.entity.name: item for item in result.accounts}


def account_of(temp_db, user, account_in_currency_id):
    account_in_currency = temp_db.get_account_in_currency(account_in_currency_id, user.id)
    return temp_db.get_account(account_in_currency.account_id, user.id)


class TestImportReport:
    """Tests for AccountReportImportService.import_report."""

    def test_fee_credit_goes_to_bank_account(self, temp_db, user, currencies, service):
        """Test a fee entry without related party is booked against the servicing bank."""
        report = make_report(make_entry(transaction_code=FEES_CODE))

        result = service.import_report(report, user.id, TIME_ZONE)

        assert temp_db.count_transactions(user.id) == 1
        assert temp_db.count_transfers(user.id) == 1
        assert len(result.transfers) == 1
        transfer = result.transfers[0].entity
        assert result.transfers[0].created
        assert transfer.bank_reference == "123456789876543.020001"
        assert transfer.source_amount == Decimal("235.00")
        assert transfer.target_amount == Decimal("235.00")

        source = account_of(temp_db, user, transfer.source_account_id)
        target = account_of(temp_db, user, transfer.target_account_id)
        assert target.id == result.user_account_id
        assert target.iban == STATEMENT_IBAN
        assert target.counterparty_id == user.counterparty_id
        assert source.bic == "TESTLV2X"

        accounts = accounts_by_name(result)
        assert accounts[STATEMENT_IBAN].created
        assert accounts["TESTLV2X"].created

        transaction = result.transactions[0].entity
        assert transaction.booked_at == datetime(2024, 1, 14, 22, 0, tzinfo=UTC)
        assert transaction.imported_at == IMPORTED_AT

    def test_reimport_creates_nothing(self, temp_db, user, currencies, service):
        """Test that importing the same report twice is idempotent."""
        report = make_report(make_entry(transaction_code=FEES_CODE))
        first = service.import_report(report, user.id, TIME_ZONE)

        second = service.import_report(report, user.id, TIME_ZONE)

        assert temp_db.count_transactions(user.id) == 1
        assert temp_db.count_transfers(user.id) == 1
        assert len(temp_db.list_accounts(user.id)) == 2
        assert second.created_transfer_count == 0
        assert second.created_account_count == 0
        assert [t.entity.id for t in second.transfers] == [t.entity.id for t in first.transfers]
        assert not second.transfers[0].created
        assert not second.transactions[0].created
        assert {a.entity.id for a in second.accounts} == {a.entity.id for a in first.accounts}

    def test_related_party_account_is_reused(self, temp_db, user, currencies, service):
        """Test that entries naming the same party share one account across runs."""
        party = RelatedParty(name="SIA Klients", iban="LV11OTHR0000000001")
        service.import_report(make_report(make_entry(reference="R1", related_party=party)), user.id, TIME_ZONE)

        result = service.import_report(
            make_report(
                make_entry(reference="R2", related_party=party),
                make_entry(reference="R3", related_party=RelatedParty(iban="lv11 othr 0000 0000 01")),
            ),
            user.id,
            TIME_ZONE,
        )

        party_accounts = [a for a in temp_db.list_accounts(user.id) if a.iban == "LV11OTHR0000000001"]
        assert len(party_accounts) == 1
        assert result.created_transfer_count == 2
        assert not accounts_by_name(result)["LV11OTHR0000000001"].created
        sources = {t.entity.source_account_id for t in result.transfers}
        assert sources == {party_accounts[0].in_currency(currencies["EUR"].id).id}

    def test_payment_without_party_is_unidentified(self, temp_db, user, currencies, service):
        report = make_report(make_entry(credit_debit=CreditDebit.DEBIT))

        result = service.import_report(report, user.id, TIME_ZONE)

        transfer = result.transfers[0].entity
        assert transfer.source_account_id == temp_db.get_account(result.user_account_id, user.id).currencies[0].id
        assert account_of(temp_db, user, transfer.target_account_id).name == UNIDENTIFIED_ACCOUNT_NAME

    def test_cross_currency_entry(self, temp_db, user, currencies, service):
        """Test that the other side is booked in the instructed currency."""
        entry = make_entry(
            amount="20.00",
            credit_debit=CreditDebit.DEBIT,
            instructed_amount=Decimal("21.70"),
            instructed_currency="USD",
            related_party=RelatedParty(name="Online Shop"),
        )

        result = service.import_report(make_report(entry), user.id, TIME_ZONE)

        transfer = result.transfers[0].entity
        assert transfer.source_amount == Decimal("20.00")
        assert transfer.target_amount == Decimal("21.70")
        target = temp_db.get_account_in_currency(transfer.target_account_id, user.id)
        assert target.currency_id == currencies["USD"].id
        shop = accounts_by_name(result)["Online Shop"].entity
        assert [c.currency_id for c in shop.currencies] == [currencies["USD"].id]

    def test_entry_in_other_currency_provisions_statement_account(self, temp_db, user, currencies, service):
        """Test that the statement account gains a sub-account for a foreign entry."""
        result = service.import_report(make_report(make_entry(currency="USD")), user.id, TIME_ZONE)

        statement = temp_db.get_account(result.user_account_id, user.id)
        assert {c.currency_id for c in statement.currencies} == {currencies["EUR"].id, currencies["USD"].id}
        assert len(accounts_by_name(result)[STATEMENT_IBAN].entity.currencies) == 2

    def test_entries_without_reference_use_import_hash(self, temp_db, user, currencies, service):
        report = make_report(make_entry(reference=None, remittance_information=("Coffee",)))
        service.import_report(report, user.id, TIME_ZONE)

        result = service.import_report(report, user.id, TIME_ZONE)

        assert temp_db.count_transfers(user.id) == 1
        assert result.created_transfer_count == 0

    def test_description_concatenates_remittance_lines(self, user, currencies, service):
        report = make_report(make_entry(remittance_information=("Invoice 4", "2 paid ", " in full")))

        result = service.import_report(report, user.id, TIME_ZONE)

        assert result.transactions[0].entity.description == "Invoice 42 paid  in full"

    def test_blank_remittance_lines_give_no_description(self, user, currencies, service):
        report = make_report(make_entry(remittance_information=("  ", "")))

        result = service.import_report(report, user.id, TIME_ZONE)

        assert result.transactions[0].entity.description is None

    def test_failure_rolls_back_whole_report(self, temp_db, user, currencies, service):
        """Test that an unknown currency in a later entry discards earlier entries."""
        report = make_report(
            make_entry(reference="R1", related_party=RelatedParty(name="Shop")),
            make_entry(reference="R2", currency="XYZ"),
        )

        with pytest.raises(CurrencyNotFoundError):
            service.import_report(report, user.id, TIME_ZONE)

        assert temp_db.count_transactions(user.id) == 0
        assert temp_db.count_transfers(user.id) == 0
        assert temp_db.list_accounts(user.id) == []

    def test_unknown_statement_currency(self, temp_db, user, currencies, service):
        with pytest.raises(CurrencyNotFoundError):
            service.import_report(make_report(make_entry(), currency="XYZ"), user.id, TIME_ZONE)

        assert temp_db.list_accounts(user.id) == []

    def test_unknown_time_zone(self, temp_db, user, currencies, service):
        with pytest.raises(ValidationError, match="Mars/Base"):
            service.import_report(make_report(make_entry()), user.id, "Mars/Base")

        assert temp_db.count_transfers(user.id) == 0

    @pytest.mark.parametrize("zone", ["UTC+3", "EST5EDT,M3.2.0,M11.1.0", "/etc/passwd", "/etc/localtime"])
    def test_time_zone_must_be_iana_name(self, temp_db, user, currencies, service, zone):
        with pytest.raises(ValidationError, match="Unknown time zone"):
            service.import_report(make_report(make_entry()), user.id, zone)

        assert temp_db.count_transfers(user.id) == 0

    @pytest.mark.parametrize("iban", [None, "  "])
    def test_statement_account_without_iban(self, user, currencies, service, iban):
        with pytest.raises(ValidationError):
            service.import_report(make_report(make_entry(), iban=iban), user.id, TIME_ZONE)

    def test_report_without_servicer(self, temp_db, user, currencies, service):
        """Test that fees fall back to the unidentified account when no bank is named."""
        report = replace(make_report(make_entry(transaction_code=FEES_CODE)), servicer=None)

        result = service.import_report(report, user.id, TIME_ZONE)

        source = account_of(temp_db, user, result.transfers[0].entity.source_account_id)
        assert source.name == UNIDENTIFIED_ACCOUNT_NAME

    def test_import_fixture_report(self, temp_db, user, currencies, service, fixtures_dir):
        report = load_report(str(fixtures_dir / "account_report.json"))

        result = service.import_report(report, user.id, TIME_ZONE)

        assert result.created_transfer_count == 3
        names = set(accounts_by_name(result))
        assert {STATEMENT_IBAN, "TESTLV2X", "LV11OTHR0000000001", UNIDENTIFIED_ACCOUNT_NAME} <= names


class TestTranslateReportEntry:
    """Tests for translate_report_entry."""

    def test_date_time_is_localized(self):
        entry = ReportEntry(
            amount=Decimal("-1.50"),
            currency="EUR",
            credit_debit=CreditDebit.DEBIT,
            booking_date=DateChoice(date_time=datetime(2024, 1, 16, 9, 15)),
            value_date=DateChoice(date=date(2024, 1, 17)),
        )

        translated = translate_report_entry(entry, resolve_time_zone(TIME_ZONE), STATEMENT_IBAN)

        assert translated.amount == Decimal("1.50")
        assert translated.other_amount == Decimal("1.50")
        assert translated.other_currency_code == "EUR"
        assert translated.booked_at == datetime(2024, 1, 16, 7, 15, tzinfo=UTC)
        assert translated.valued_at == datetime(2024, 1, 16, 22, 0, tzinfo=UTC)
        assert translated.import_hash is not None

    def test_blank_currency_is_rejected(self):
        with pytest.raises(ValidationError):
            translate_report_entry(make_entry(currency=" "), resolve_time_zone(TIME_ZONE), STATEMENT_IBAN)
