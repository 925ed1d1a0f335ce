"""Utility functions for bankimport."""

from bankimport.utils.amount_parser import parse_amount
from bankimport.utils.report_loader import load_report
from bankimport.utils.time_zones import resolve_time_zone, to_instant

__all__ = ["parse_amount", "load_report", "resolve_time_zone", "to_instant"]
