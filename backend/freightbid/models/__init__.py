"""Database models."""

# ruff: noqa: I001 - Import order matters for foreign key resolution
from sqlmodel import SQLModel

from freightbid.models.enums import CloseOutcome, OrderStatus, QuoteStatus
from freightbid.models.daily_sequence import DailySequenceCounter
from freightbid.models.provider import Provider
from freightbid.models.order import Order, Quote

__all__ = [
    "SQLModel",
    "CloseOutcome",
    "DailySequenceCounter",
    "Order",
    "OrderStatus",
    "Provider",
    "Quote",
    "QuoteStatus",
]
