"""ISO 20022 bank transaction code taxonomy.

Only the codes the importer reasons about are listed; anything else parses to
``None`` and classifies as unclassified instead of failing the import.
"""

from enum import Enum
from typing import Optional

from bankimport.domain.errors import ValidationError
from bankimport.domain.report import BankTransactionCode


class Domain(str, Enum):
    """Highest definition level of a bank transaction code."""

    PAYMENTS = "PMNT"
    CASH_MANAGEMENT = "CAMT"
    DERIVATIVES = "DERV"
    LOANS_AND_DEPOSITS = "LDAS"
    FOREIGN_EXCHANGE = "FORX"
    PRECIOUS_METAL = "PMET"
    COMMODITIES = "CMDT"
    TRADE_SERVICES = "TRAD"
    SECURITIES = "SECU"
    ACCOUNT_MANAGEMENT = "ACMT"
    EXTENDED = "XTND"


class Family(str, Enum):
    """Medium definition level, e.g. credit transfer or card transaction."""

    NOT_AVAILABLE = "NTAV"
    OTHER = "OTHR"
    CREDIT_OPERATION = "MCOP"
    DEBIT_OPERATION = "MDOP"
    RECEIVED_CREDIT_TRANSFERS = "RCDT"
    ISSUED_CREDIT_TRANSFERS = "ICDT"
    RECEIVED_CASH_CONCENTRATION = "RCCN"
    ISSUED_CASH_CONCENTRATION = "ICCN"
    RECEIVED_DIRECT_DEBITS = "RDDT"
    ISSUED_DIRECT_DEBITS = "IDDT"
    RECEIVED_CHEQUES = "RCHQ"
    ISSUED_CHEQUES = "ICHQ"
    CUSTOMER_CARD_TRANSACTIONS = "CCRD"
    MERCHANT_CARD_TRANSACTIONS = "MCRD"
    LOCKBOX_TRANSACTIONS = "LBOX"
    COUNTER_TRANSACTIONS = "CNTR"
    DRAFTS = "DRFT"
    RECEIVED_REAL_TIME_CREDIT_TRANSFER = "RRCT"
    ISSUED_REAL_TIME_CREDIT_TRANSFER = "IRCT"
    FIXED_TERM_LOANS = "FTLN"
    NOTICE_LOANS = "NTLN"
    FIXED_TERM_DEPOSITS = "FTDP"
    NOTICE_DEPOSITS = "NTDP"
    MORTGAGE_LOANS = "MGLN"
    CONSUMER_LOANS = "CSLN"
    SYNDICATIONS = "SYDN"


class SubFamily(str, Enum):
    """Lowest definition level, e.g. SEPA credit transfer or charges."""

    NOT_AVAILABLE = "NTAV"
    OTHER = "OTHR"
    CHARGES = "CHRG"
    FEES = "FEES"
    COMMISSION = "COMM"
    INTEREST = "INTR"
    TAXES = "TAXE"
    ADJUSTMENTS = "ADJT"
    REIMBURSEMENTS = "RIMB"
    SEPA_CREDIT_TRANSFER = "ESCT"
    DOMESTIC_CREDIT_TRANSFER = "DMCT"
    CROSS_BORDER_CREDIT_TRANSFER = "XBCT"
    SALARY_PAYMENT = "SALA"
    STANDING_ORDER = "STDO"
    SEPA_CORE_DIRECT_DEBIT = "ESDD"
    SEPA_B2B_DIRECT_DEBIT = "BBDD"
    POINT_OF_SALE_DEBIT_CARD = "POSD"
    POINT_OF_SALE_CREDIT_CARD = "POSC"
    CASH_WITHDRAWAL = "CWDL"
    CASH_DEPOSIT = "CDPT"


# Sub-families for which the bank itself is the counterparty of a payment.
BANK_SUB_FAMILIES = frozenset(
    {
        SubFamily.CHARGES,
        SubFamily.FEES,
        SubFamily.COMMISSION,
        SubFamily.INTEREST,
        SubFamily.TAXES,
    }
)


class Classification(str, Enum):
    """Coarse meaning of a bank transaction code for the importer."""

    EXTENDED = "extended"
    LOANS_AND_DEPOSITS = "loans_and_deposits"
    INTEREST = "interest"
    FEES = "fees"
    CARD_FEE = "card_fee"
    CREDIT_OPERATION = "credit_operation"
    PAYMENT = "payment"
    UNCLASSIFIED = "unclassified"

    @property
    def is_bank_movement(self) -> bool:
        """Whether the bank's own account stands on the other side."""
        return self in _BANK_MOVEMENTS


_BANK_MOVEMENTS = frozenset(
    {
        Classification.EXTENDED,
        Classification.LOANS_AND_DEPOSITS,
        Classification.INTEREST,
        Classification.FEES,
        Classification.CARD_FEE,
        Classification.CREDIT_OPERATION,
    }
)


def _parse(enum_type, code: Optional[str]):
    if code is None or not code.strip():
        return None
    try:
        return enum_type(code.strip().upper())
    except ValueError:
        return None


def parse_code(code: Optional[str]) -> BankTransactionCode:
    """Split a ``DOMAIN-FAMILY-SUBFAMILY`` string into its parts.

    Args:
        code: Joined code as supplied by aggregators, e.g. ``PMNT-CCRD-POSD``

    Returns:
        BankTransactionCode with missing levels left as None

    Raises:
        ValidationError: If the code has more than three parts
    """
    if code is None or not code.strip():
        return BankTransactionCode()

    parts = code.strip().split("-")
    if len(parts) > 3:
        raise ValidationError(f"Unexpected bank transaction code structure '{code}'")

    parts += [None] * (3 - len(parts))
    return BankTransactionCode(domain=parts[0], family=parts[1], sub_family=parts[2])


def classify(code: BankTransactionCode) -> Classification:
    """Classify a bank transaction code.

    Blank or unknown domains are unclassified, never an error. A missing
    family or sub-family is read as "not available".
    """
    domain = _parse(Domain, code.domain)
    if domain is None:
        return Classification.UNCLASSIFIED

    family = _parse(Family, code.family)
    if family is None and not (code.family and code.family.strip()):
        family = Family.NOT_AVAILABLE
    sub_family = _parse(SubFamily, code.sub_family)
    if sub_family is None and not (code.sub_family and code.sub_family.strip()):
        sub_family = SubFamily.NOT_AVAILABLE

    if domain is Domain.EXTENDED:
        return Classification.EXTENDED

    if domain is Domain.LOANS_AND_DEPOSITS:
        return Classification.LOANS_AND_DEPOSITS

    if domain is Domain.ACCOUNT_MANAGEMENT:
        if family is Family.CREDIT_OPERATION and sub_family is SubFamily.INTEREST:
            return Classification.INTEREST
        return Classification.PAYMENT

    if domain is not Domain.PAYMENTS:
        return Classification.PAYMENT

    if sub_family in BANK_SUB_FAMILIES:
        if sub_family is SubFamily.INTEREST:
            return Classification.INTEREST
        if family is Family.CUSTOMER_CARD_TRANSACTIONS:
            return Classification.CARD_FEE
        return Classification.FEES

    if family is Family.CREDIT_OPERATION and sub_family is SubFamily.NOT_AVAILABLE:
        return Classification.CREDIT_OPERATION

    return Classification.PAYMENT
