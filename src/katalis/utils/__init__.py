"""Utility functions for katalis."""

from katalis.utils.date_parser import parse_date, get_date_range
from katalis.utils.amount_parser import parse_amount

__all__ = ["parse_date", "get_date_range", "parse_amount"]
