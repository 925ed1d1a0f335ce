"""Nordigen (GoCardless Bank Account Data) API client.

API Documentation: https://developer.gocardless.com/bank-account-data/overview
"""

import logging
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional

import requests
from dateutil.parser import isoparse

from bankimport.utils.amount_parser import parse_amount

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://bankaccountdata.gocardless.com/api/v2"
DEFAULT_TIMEOUT = 30

# Requisition status once the user has granted access
STATUS_LINKED = "LN"


class AggregatorError(Exception):
    """Exception for aggregator API errors."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


@dataclass(frozen=True)
class Requisition:
    """Link between the user's bank accounts and the aggregator."""

    id: str
    institution_id: str
    status: str
    created: Optional[datetime]
    link: Optional[str]
    accounts: tuple[str, ...] = ()


@dataclass(frozen=True)
class AggregatorAccount:
    """Bank account made available by a requisition."""

    id: str
    iban: Optional[str]
    institution_id: str


@dataclass(frozen=True)
class AccountDetails:
    """Details reported by the bank for an account."""

    currency: Optional[str]
    iban: Optional[str] = None
    owner_name: Optional[str] = None
    name: Optional[str] = None


@dataclass(frozen=True)
class Institution:
    """Bank supported by the aggregator."""

    id: str
    name: str
    bic: Optional[str] = None
    countries: tuple[str, ...] = ()


@dataclass(frozen=True)
class BookedTransaction:
    """Booked transaction as reported by the aggregator."""

    transaction_id: Optional[str]
    entry_reference: Optional[str]
    amount: Decimal
    currency: str
    booking_date: Optional[date]
    value_date: Optional[date] = None
    unstructured_information: Optional[str] = None
    additional_information: Optional[str] = None
    bank_transaction_code: Optional[str] = None
    creditor_name: Optional[str] = None
    creditor_iban: Optional[str] = None
    debtor_name: Optional[str] = None
    debtor_iban: Optional[str] = None


def _parse_date(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    return isoparse(value).date()


def _parse_datetime(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    return isoparse(value)


def parse_requisition(data: dict[str, Any]) -> Requisition:
    return Requisition(
        id=data["id"],
        institution_id=data.get("institution_id", ""),
        status=data.get("status", ""),
        created=_parse_datetime(data.get("created")),
        link=data.get("link"),
        accounts=tuple(data.get("accounts") or ()),
    )


def parse_institution(data: dict[str, Any]) -> Institution:
    return Institution(
        id=data["id"],
        name=data.get("name", ""),
        bic=data.get("bic") or None,
        countries=tuple(data.get("countries") or ()),
    )


def parse_booked_transaction(data: dict[str, Any]) -> BookedTransaction:
    """Parse one entry of the ``booked`` transaction list."""
    amount = data.get("transactionAmount") or {}
    unstructured = data.get("remittanceInformationUnstructured")
    if not unstructured and data.get("remittanceInformationUnstructuredArray"):
        unstructured = "\n".join(data["remittanceInformationUnstructuredArray"])

    return BookedTransaction(
        transaction_id=data.get("transactionId"),
        entry_reference=data.get("entryReference"),
        amount=parse_amount(amount.get("amount", "")),
        currency=amount.get("currency", ""),
        booking_date=_parse_date(data.get("bookingDate")),
        value_date=_parse_date(data.get("valueDate")),
        unstructured_information=unstructured,
        additional_information=data.get("additionalInformation"),
        bank_transaction_code=data.get("bankTransactionCode"),
        creditor_name=data.get("creditorName"),
        creditor_iban=(data.get("creditorAccount") or {}).get("iban"),
        debtor_name=data.get("debtorName"),
        debtor_iban=(data.get("debtorAccount") or {}).get("iban"),
    )


class AggregatorClient(ABC):
    """Read access to an account information aggregator."""

    @abstractmethod
    def list_requisitions(self) -> list[Requisition]:
        """List all requisitions."""

    @abstractmethod
    def create_requisition(self, institution_id: str, redirect_url: str) -> Requisition:
        """Start linking an institution; the result carries the consent link."""

    @abstractmethod
    def get_account(self, account_id: str) -> AggregatorAccount:
        """Get account metadata."""

    @abstractmethod
    def get_account_details(self, account_id: str) -> AccountDetails:
        """Get account details such as currency."""

    @abstractmethod
    def get_booked_transactions(self, account_id: str) -> list[BookedTransaction]:
        """Get booked transactions of an account."""

    @abstractmethod
    def get_institution(self, institution_id: str) -> Institution:
        """Get an institution."""

    @abstractmethod
    def list_institutions(self, country: str) -> list[Institution]:
        """List institutions of a country (ISO 3166 alpha-2 code)."""


class NordigenClient(AggregatorClient):
    """
    Client for the Nordigen API

    Usage:
        client = NordigenClient(secret_id="...", secret_key="...")
        for institution in client.list_institutions("LV"):
            print(institution.id)
    """

    def __init__(
        self,
        secret_id: str,
        secret_key: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize Nordigen client

        Args:
            secret_id: User secret id
            secret_key: User secret key
            base_url: API root, without trailing slash
            timeout: Timeout of each request in seconds
            session: HTTP session, a new one if None
        """
        self.secret_id = secret_id
        self.secret_key = secret_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"Accept": "application/json"})
        self._access_token: Optional[str] = None

    def _send(self, method: str, endpoint: str, headers: dict[str, str], **kwargs) -> requests.Response:
        url = endpoint if endpoint.startswith("http") else f"{self.base_url}{endpoint}"
        try:
            return self.session.request(method, url, headers=headers, timeout=self.timeout, **kwargs)
        except requests.exceptions.Timeout as e:
            raise AggregatorError("Request timed out") from e
        except requests.exceptions.ConnectionError as e:
            raise AggregatorError("Connection failed") from e
        except requests.exceptions.RequestException as e:
            raise AggregatorError(f"Request failed: {e}") from e

    @staticmethod
    def _json(response: requests.Response) -> Any:
        if response.status_code >= 400:
            raise AggregatorError(
                f"API error {response.status_code}: {response.text}",
                response.status_code,
            )
        try:
            return response.json()
        except ValueError as e:
            raise AggregatorError("API returned invalid JSON", response.status_code) from e

    def _refresh_access_token(self) -> str:
        logger.debug("Requesting new access token")
        response = self._send(
            "POST",
            "/token/new/",
            headers={},
            json={"secret_id": self.secret_id, "secret_key": self.secret_key},
        )
        data = self._json(response)
        self._access_token = data["access"]
        return self._access_token

    def _request(self, method: str, endpoint: str, **kwargs) -> Any:
        """Make authenticated API request"""
        token = self._access_token or self._refresh_access_token()
        response = self._send(method, endpoint, headers={"Authorization": f"Bearer {token}"}, **kwargs)

        # Access tokens expire after a day
        if response.status_code == 401:
            token = self._refresh_access_token()
            response = self._send(method, endpoint, headers={"Authorization": f"Bearer {token}"}, **kwargs)

        return self._json(response)

    def list_requisitions(self) -> list[Requisition]:
        requisitions = []
        endpoint: Optional[str] = "/requisitions/"
        while endpoint:
            page = self._request("GET", endpoint)
            requisitions.extend(parse_requisition(r) for r in page.get("results", []))
            endpoint = page.get("next")
        return requisitions

    def create_requisition(self, institution_id: str, redirect_url: str) -> Requisition:
        data = {"redirect": redirect_url, "institution_id": institution_id}
        return parse_requisition(self._request("POST", "/requisitions/", json=data))

    def get_account(self, account_id: str) -> AggregatorAccount:
        data = self._request("GET", f"/accounts/{account_id}/")
        return AggregatorAccount(
            id=data["id"],
            iban=data.get("iban"),
            institution_id=data.get("institution_id", ""),
        )

    def get_account_details(self, account_id: str) -> AccountDetails:
        data = self._request("GET", f"/accounts/{account_id}/details/").get("account", {})
        return AccountDetails(
            currency=data.get("currency"),
            iban=data.get("iban"),
            owner_name=data.get("ownerName"),
            name=data.get("name"),
        )

    def get_booked_transactions(self, account_id: str) -> list[BookedTransaction]:
        data = self._request("GET", f"/accounts/{account_id}/transactions/")
        booked = (data.get("transactions") or {}).get("booked") or []
        return [parse_booked_transaction(t) for t in booked]

    def get_institution(self, institution_id: str) -> Institution:
        return parse_institution(self._request("GET", f"/institutions/{institution_id}/"))

    def list_institutions(self, country: str) -> list[Institution]:
        data = self._request("GET", "/institutions/", params={"country": country})
        return [parse_institution(i) for i in data]


def create_nordigen_client(
    secret_id: Optional[str] = None,
    secret_key: Optional[str] = None,
    base_url: Optional[str] = None,
) -> NordigenClient:
    """Create a Nordigen client.

    Args:
        secret_id: User secret id, NORDIGEN_SECRET_ID if None
        secret_key: User secret key, NORDIGEN_SECRET_KEY if None
        base_url: API root, NORDIGEN_BASE_URL or the public API if None

    Raises:
        AggregatorError: If no credentials are configured
    """
    secret_id = secret_id or os.environ.get("NORDIGEN_SECRET_ID")
    secret_key = secret_key or os.environ.get("NORDIGEN_SECRET_KEY")
    base_url = base_url or os.environ.get("NORDIGEN_BASE_URL") or DEFAULT_BASE_URL

    if not secret_id or not secret_key:
        raise AggregatorError("Nordigen credentials not configured: set NORDIGEN_SECRET_ID and NORDIGEN_SECRET_KEY")

    return NordigenClient(secret_id=secret_id, secret_key=secret_key, base_url=base_url)
