"""Clients for external account information services."""

from bankimport.integrations.nordigen import (
    AggregatorClient,
    AggregatorError,
    NordigenClient,
    create_nordigen_client,
)

__all__ = ["AggregatorClient", "AggregatorError", "NordigenClient", "create_nordigen_client"]
