"""Account resolution for imports.

Accounts are matched by IBAN, then BIC, then normalized name. Anything that
is resolved or created during one import run is remembered, so the same
logical account is never created twice within a run.
"""

import logging
import unicodedata
from dataclasses import dataclass
from typing import Optional, Union

from bankimport.database.base import Database
from bankimport.domain.entities import Account, AccountInCurrency, Currency, User
from bankimport.domain.errors import ValidationError, missing_account_identification
from bankimport.domain.report import Servicer

logger = logging.getLogger(__name__)

UNIDENTIFIED_ACCOUNT_NAME = "Unidentified"


def normalize_name(name: str) -> str:
    """Fold case and diacritics so that "Café" and "CAFE" compare equal."""
    decomposed = unicodedata.normalize("NFKD", name.strip())
    stripped = "".join(c for c in decomposed if not unicodedata.combining(c))
    return stripped.upper()


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


@dataclass(frozen=True)
class AccountEvidence:
    """What an import knows about an account."""

    iban: Optional[str] = None
    bic: Optional[str] = None
    name: Optional[str] = None

    @classmethod
    def of(cls, iban: Optional[str] = None, bic: Optional[str] = None, name: Optional[str] = None):
        """Build evidence, dropping blank values and upper-casing IBAN/BIC."""
        iban = _clean(iban)
        bic = _clean(bic)
        return cls(
            iban=iban.replace(" ", "").upper() if iban else None,
            bic=bic.upper() if bic else None,
            name=_clean(name),
        )

    @property
    def is_empty(self) -> bool:
        return self.iban is None and self.bic is None and self.name is None

    @property
    def display_name(self) -> Optional[str]:
        """Strongest identifier, used to name a newly created account."""
        return self.iban or self.bic or self.name

    def keys(self) -> list[tuple[str, str]]:
        """Cache keys in resolution order."""
        keys = []
        if self.iban:
            keys.append(("iban", self.iban))
        if self.bic:
            keys.append(("bic", self.bic))
        if self.name:
            keys.append(("name", normalize_name(self.name)))
        return keys


@dataclass(frozen=True)
class Found:
    """An account that already existed before it was needed."""

    account: Account

    @property
    def created(self) -> bool:
        return False


@dataclass(frozen=True)
class Created:
    """An account created by the current import run."""

    account: Account

    @property
    def created(self) -> bool:
        return True


AccountResolution = Union[Found, Created]


class AccountResolver:
    """Resolves or creates accounts on behalf of one importing user.

    One resolver belongs to one import run; its cache must not outlive the
    database transaction of that run.
    """

    def __init__(self, db: Database, user: User):
        self.db = db
        self.user = user
        self._cache: dict[tuple[str, str], Account] = {}
        self._created_ids: set[int] = set()

    def _remember(self, account: Account) -> None:
        if account.iban:
            self._cache[("iban", account.iban)] = account
        if account.bic:
            self._cache[("bic", account.bic)] = account
        self._cache[("name", account.normalized_name)] = account

    def _tag(self, account: Account) -> AccountResolution:
        if account.id in self._created_ids:
            return Created(account)
        return Found(account)

    def _lookup(self, kind: str, value: str) -> Optional[Account]:
        logger.debug("Looking up account by %s %s", kind, value)
        if kind == "iban":
            return self.db.find_account_by_iban(value, self.user.id)
        if kind == "bic":
            return self.db.find_account_by_bic(value, self.user.id)
        return self.db.find_account_by_normalized_name(value, self.user.id)

    def find(self, evidence: AccountEvidence) -> Optional[AccountResolution]:
        """Find an existing account, without creating one."""
        keys = evidence.keys()
        for key in keys:
            account = self._cache.get(key)
            if account is not None:
                return self._tag(account)

        for kind, value in keys:
            account = self._lookup(kind, value)
            if account is not None:
                logger.info("Matched account %s (id=%d) by %s", account.name, account.id, kind)
                self._remember(account)
                return self._tag(account)
        return None

    def resolve(
        self,
        evidence: AccountEvidence,
        currency: Currency,
        counterparty_id: Optional[int] = None,
    ) -> AccountResolution:
        """Find the account matching the evidence, or create it.

        Args:
            evidence: IBAN, BIC and/or name of the account
            currency: Preferred currency of a newly created account
            counterparty_id: Owner of a newly created account; a new
                counterparty named after the account is created when None

        Raises:
            ValidationError: If the evidence carries no identification at all
        """
        if evidence.is_empty:
            raise ValidationError(missing_account_identification("account"))

        resolution = self.find(evidence)
        if resolution is not None:
            return resolution

        name = evidence.display_name
        normalized = normalize_name(name)
        # An unrelated account may already carry the name we are about to use
        if ("name", normalized) not in evidence.keys():
            account = self.db.find_account_by_normalized_name(normalized, self.user.id)
            if account is not None:
                logger.info("Matched account %s (id=%d) by name", account.name, account.id)
                self._remember(account)
                return self._tag(account)

        if counterparty_id is None:
            counterparty_id = self.db.create_counterparty(
                owner_id=self.user.id,
                user_id=self.user.id,
                name=name,
                normalized_name=normalized,
            )

        account_id = self.db.create_account(
            owner_id=self.user.id,
            user_id=self.user.id,
            name=name,
            normalized_name=normalized,
            preferred_currency_id=currency.id,
            iban=evidence.iban,
            bic=evidence.bic,
            account_number=evidence.iban,
            counterparty_id=counterparty_id,
        )
        account = self.db.get_account(account_id, self.user.id)
        logger.info("Created account %s (id=%d) in %s", name, account_id, currency.alphabetic_code)
        self._created_ids.add(account_id)
        self._remember(account)
        return Created(account)

    def resolve_user_account(self, iban: Optional[str], currency: Currency) -> AccountResolution:
        """Resolve the statement account, owned by the user's own counterparty.

        Raises:
            ValidationError: If no IBAN is given
        """
        evidence = AccountEvidence.of(iban=iban)
        if evidence.iban is None:
            raise ValidationError(missing_account_identification("statement account"))
        return self.resolve(evidence, currency, counterparty_id=self.user.counterparty_id)

    def resolve_bank_account(self, servicer: Optional[Servicer], currency: Currency) -> Optional[AccountResolution]:
        """Resolve the servicing bank's account, if the servicer is identified."""
        if servicer is None:
            return None
        evidence = AccountEvidence.of(bic=servicer.bic, name=servicer.name)
        if evidence.is_empty:
            return None
        return self.resolve(evidence, currency)

    def resolve_unidentified(self, currency: Currency) -> AccountResolution:
        """Resolve the reserved account used when the other side is unknown."""
        return self.resolve(AccountEvidence(name=UNIDENTIFIED_ACCOUNT_NAME), currency)

    def ensure_currency(self, account: Account, currency: Currency) -> tuple[Account, AccountInCurrency]:
        """Return the account's sub-account in the currency, adding it on demand.

        Returns:
            Tuple of (possibly refreshed account, account in currency)
        """
        cached = self._cache.get(("name", account.normalized_name))
        if cached is not None and cached.id == account.id:
            account = cached

        account_in_currency = account.in_currency(currency.id)
        if account_in_currency is not None:
            return account, account_in_currency

        self.db.add_account_currency(account.id, currency.id, self.user.id)
        account = self.db.get_account(account.id, self.user.id)
        logger.info("Added currency %s to account %s (id=%d)", currency.alphabetic_code, account.name, account.id)
        self._remember(account)
        return account, account.in_currency(currency.id)
