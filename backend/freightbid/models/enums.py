"""Enum definitions for database models."""

from enum import StrEnum

from sqlalchemy import Enum

from freightbid.models.status import Flags, LifecycleStatusEnum, Status, TransitionTable


class OrderStatus(LifecycleStatusEnum):
    """Status of a shipping order.

    Status flow:
        ACTIVE -> CLOSED      (administrative close or quote selection)
        ACTIVE -> CANCELLED   (owner cancels)
    """

    ACTIVE = Status("active", Flags.INITIAL | Flags.OPEN, display="Open for quotes")
    CLOSED = Status("closed", Flags.FINAL, display="Closed")
    CANCELLED = Status("cancelled", Flags.FINAL, display="Cancelled")


class QuoteStatus(LifecycleStatusEnum):
    """Status of a carrier quote.

    Status flow:
        ACTIVE -> SELECTED   (chosen as the winning quote)
        ACTIVE -> EXPIRED    (order settled without choosing this quote)
    """

    ACTIVE = Status("active", Flags.INITIAL | Flags.OPEN, display="Active")
    SELECTED = Status("selected", Flags.FINAL, display="Selected")
    EXPIRED = Status("expired", Flags.FINAL, display="Expired")


class CloseOutcome(StrEnum):
    """Result reported by an administrative close."""

    CLOSED = "closed"
    ALREADY_CLOSED = "already_closed"


ORDER_TRANSITIONS = TransitionTable(
    OrderStatus,
    {
        OrderStatus.ACTIVE: {OrderStatus.CLOSED, OrderStatus.CANCELLED},
        OrderStatus.CLOSED: set(),
        OrderStatus.CANCELLED: set(),
    },
)

QUOTE_TRANSITIONS = TransitionTable(
    QuoteStatus,
    {
        QuoteStatus.ACTIVE: {QuoteStatus.SELECTED, QuoteStatus.EXPIRED},
        QuoteStatus.SELECTED: set(),
        QuoteStatus.EXPIRED: set(),
    },
)


# Database enum types - define alongside the enums for co-location
ORDER_STATUS_DB_ENUM = Enum(
    OrderStatus,
    name="orderstatus",
    values_callable=lambda e: [member.value for member in e],
    validate_strings=True,
)

QUOTE_STATUS_DB_ENUM = Enum(
    QuoteStatus,
    name="quotestatus",
    values_callable=lambda e: [member.value for member in e],
    validate_strings=True,
)
