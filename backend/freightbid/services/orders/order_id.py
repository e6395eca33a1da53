"""Order identifier format: ``RX`` + YYMMDD + ``-`` + three digit sequence.

Example: ``RX250526-001`` is the first order of 26 May 2025 (local date).
"""

import re
from dataclasses import dataclass
from datetime import date

from freightbid.config import MAX_DAILY_ORDERS

ORDER_ID_PREFIX = "RX"
ORDER_ID_PATTERN = re.compile(r"RX(\d{2})(\d{2})(\d{2})-(\d{3})", re.ASCII)


@dataclass(frozen=True)
class ParsedOrderId:
    """Date and sequence encoded in an order ID."""

    date: date
    sequence: int


def date_key(day: date) -> str:
    """Counter row key for a calendar date (YYYYMMDD)."""
    return day.strftime("%Y%m%d")


def format_order_id(day: date, sequence: int) -> str:
    """Build the order ID for `sequence` on `day`.

    Raises:
        ValueError: If the sequence is outside 1..999 or the year has no two digit form
    """
    if not 1 <= sequence <= MAX_DAILY_ORDERS:
        raise ValueError(f"Sequence must be between 1 and {MAX_DAILY_ORDERS}, got {sequence}")
    if not 2000 <= day.year <= 2099:
        raise ValueError(f"Year {day.year} cannot be encoded in an order ID")
    return f"{ORDER_ID_PREFIX}{day:%y%m%d}-{sequence:03d}"


def parse_order_id(value: str) -> ParsedOrderId | None:
    """Split an order ID into date and sequence. Returns None if it is not a valid ID."""
    match = ORDER_ID_PATTERN.fullmatch(value)
    if not match:
        return None
    yy, mm, dd, seq = (int(part) for part in match.groups())
    try:
        day = date(2000 + yy, mm, dd)
    except ValueError:
        return None
    if seq == 0:
        return None
    return ParsedOrderId(date=day, sequence=seq)


def is_valid_order_id(value: str) -> bool:
    return parse_order_id(value) is not None
