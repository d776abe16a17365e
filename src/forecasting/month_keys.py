"""
Month key helpers

Accounting statistics are stored per calendar month under an MMYYYY key
("032024" is March 2024).
"""

from datetime import date
from typing import Tuple

from .exceptions import InvalidArgumentError


def parse_month_key(month_key: str) -> Tuple[int, int]:
    """
    Split an MMYYYY key into (month, year).

    Raises:
        InvalidArgumentError: if the key is malformed
    """
    if not isinstance(month_key, str) or len(month_key) != 6 or not month_key.isdigit():
        raise InvalidArgumentError(f"Invalid month key {month_key!r}, expected MMYYYY")

    month = int(month_key[:2])
    year = int(month_key[2:])
    if not 1 <= month <= 12:
        raise InvalidArgumentError(f"Invalid month in key {month_key!r}")

    return month, year


def format_month_key(month: int, year: int) -> str:
    return f"{month:02d}{year:04d}"


def month_key_for(day: date) -> str:
    """Month key of the month containing `day`"""
    return format_month_key(day.month, day.year)


def month_index(month_key: str) -> int:
    """Calendar month (1-12) of a key"""
    return parse_month_key(month_key)[0]


def month_sort_key(month_key: str) -> Tuple[int, int]:
    month, year = parse_month_key(month_key)
    return year, month


def shift_month_key(month_key: str, months: int) -> str:
    """Move a key forward (or backward, for negative values) by whole months"""
    month, year = parse_month_key(month_key)
    absolute = year * 12 + (month - 1) + months
    return format_month_key(absolute % 12 + 1, absolute // 12)


def months_between(start_key: str, end_key: str) -> int:
    """Number of months from start_key to end_key (negative if end is earlier)"""
    start_year, start_month = month_sort_key(start_key)
    end_year, end_month = month_sort_key(end_key)
    return (end_year - start_year) * 12 + (end_month - start_month)
