"""Other-side resolution for imported entries.

Resolution order, first match wins:
1. Related party named or identified by the entry
2. Bank's own account, when the transaction code says the bank moved the money
3. Reserved "Unidentified" account
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Sequence

from bankimport.domain.account_resolution import AccountEvidence, AccountResolution, AccountResolver
from bankimport.domain.entities import Currency
from bankimport.domain.errors import NotFoundError
from bankimport.domain.transaction_codes import Classification

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OtherSideContext:
    """Everything the strategies may look at for one entry."""

    currency: Currency
    related_party: AccountEvidence
    classification: Classification
    bank_account: Optional[AccountResolution] = None
    bank_movement_hint: bool = False


@dataclass(frozen=True)
class OtherSideMatch:
    """Resolved other side and the strategy that found it."""

    resolution: AccountResolution
    source: str


class OtherSideStrategy(ABC):
    """One heuristic for finding the other side of an entry."""

    name: str = ""

    @abstractmethod
    def resolve(self, context: OtherSideContext, accounts: AccountResolver) -> Optional[AccountResolution]:
        """Return the other side, or None to defer to the next strategy."""


class RelatedPartyStrategy(OtherSideStrategy):
    """Use the related party's IBAN and name, creating its account if needed."""

    name = "related_party"

    def resolve(self, context, accounts):
        if context.related_party.is_empty:
            return None
        return accounts.resolve(context.related_party, context.currency)


class TransactionCodeStrategy(OtherSideStrategy):
    """Fees, interest and similar bank-internal movements go to the servicing bank."""

    name = "transaction_code"

    def resolve(self, context, accounts):
        if context.bank_account is None:
            return None
        if context.classification.is_bank_movement or context.bank_movement_hint:
            return context.bank_account
        return None


class UnidentifiedAccountStrategy(OtherSideStrategy):
    """Record the movement against the reserved "Unidentified" account."""

    name = "unidentified"

    def resolve(self, context, accounts):
        return accounts.resolve_unidentified(context.currency)


DEFAULT_STRATEGIES: tuple[OtherSideStrategy, ...] = (
    RelatedPartyStrategy(),
    TransactionCodeStrategy(),
    UnidentifiedAccountStrategy(),
)


class OtherSideResolver:
    """Runs other-side strategies in order until one matches."""

    def __init__(self, strategies: Sequence[OtherSideStrategy] = DEFAULT_STRATEGIES):
        self.strategies = tuple(strategies)

    def resolve(self, context: OtherSideContext, accounts: AccountResolver) -> OtherSideMatch:
        """Resolve the other side of an entry.

        Raises:
            NotFoundError: If no strategy produced an account
        """
        for strategy in self.strategies:
            resolution = strategy.resolve(context, accounts)
            if resolution is not None:
                logger.debug("Other side resolved by %s: %s", strategy.name, resolution.account.name)
                return OtherSideMatch(resolution=resolution, source=strategy.name)

        raise NotFoundError("Could not resolve the other side of the entry")
