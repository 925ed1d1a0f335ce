"""Tests for bank transaction code parsing and classification."""

import pytest

from bankimport.domain.errors import ValidationError
from bankimport.domain.report import BankTransactionCode
from bankimport.domain.transaction_codes import Classification, classify, parse_code


class TestParseCode:
    """Tests for parse_code."""

    def test_full_code(self):
        assert parse_code("PMNT-CCRD-POSD") == BankTransactionCode("PMNT", "CCRD", "POSD")

    def test_partial_codes(self):
        assert parse_code("PMNT") == BankTransactionCode(domain="PMNT")
        assert parse_code("PMNT-MCOP") == BankTransactionCode(domain="PMNT", family="MCOP")

    def test_blank_code(self):
        assert parse_code(None) == BankTransactionCode()
        assert parse_code("  ") == BankTransactionCode()

    def test_too_many_parts(self):
        with pytest.raises(ValidationError, match="Unexpected bank transaction code structure"):
            parse_code("PMNT-CCRD-POSD-EXTRA")


@pytest.mark.parametrize(
    "code, expected",
    [
        (BankTransactionCode("XTND", "NTAV", "NTAV"), Classification.EXTENDED),
        (BankTransactionCode("LDAS", "CSLN", "OTHR"), Classification.LOANS_AND_DEPOSITS),
        (BankTransactionCode("ACMT", "MCOP", "INTR"), Classification.INTEREST),
        (BankTransactionCode("ACMT", "MCOP", "ADJT"), Classification.PAYMENT),
        (BankTransactionCode("PMNT", "ICDT", "CHRG"), Classification.FEES),
        (BankTransactionCode("PMNT", "RCDT", "FEES"), Classification.FEES),
        (BankTransactionCode("PMNT", "CCRD", "FEES"), Classification.CARD_FEE),
        (BankTransactionCode("PMNT", "ICDT", "INTR"), Classification.INTEREST),
        (BankTransactionCode("PMNT", "MCOP", None), Classification.CREDIT_OPERATION),
        (BankTransactionCode("PMNT", "MCOP", "NTAV"), Classification.CREDIT_OPERATION),
        (BankTransactionCode("PMNT", "CCRD", "POSD"), Classification.PAYMENT),
        (BankTransactionCode("PMNT", "RCDT", "ESCT"), Classification.PAYMENT),
        (BankTransactionCode("pmnt", "icdt", "chrg"), Classification.FEES),
        (BankTransactionCode(), Classification.UNCLASSIFIED),
        (BankTransactionCode("ZZZZ", "ICDT", "CHRG"), Classification.UNCLASSIFIED),
    ],
)
def test_classify(code, expected):
    """Test classification of known and unknown codes."""
    assert classify(code) is expected


def test_bank_movements():
    """Test which classifications put the bank on the other side."""
    assert Classification.FEES.is_bank_movement
    assert Classification.EXTENDED.is_bank_movement
    assert Classification.CREDIT_OPERATION.is_bank_movement
    assert not Classification.PAYMENT.is_bank_movement
    assert not Classification.UNCLASSIFIED.is_bank_movement
