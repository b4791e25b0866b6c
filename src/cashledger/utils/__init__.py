"""Utility functions for cashledger."""

from cashledger.utils.date_parser import parse_date, month_bounds
from cashledger.utils.amount_parser import parse_amount, format_amount
from cashledger.utils.account_resolver import resolve_account

__all__ = ["parse_date", "month_bounds", "parse_amount", "format_amount", "resolve_account"]
