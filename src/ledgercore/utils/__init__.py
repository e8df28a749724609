"""Utility functions for ledgercore."""

from ledgercore.utils.amount_parser import parse_amount
from ledgercore.utils.date_parser import parse_as_of

__all__ = ["parse_amount", "parse_as_of"]
