"""Order and Quote database models."""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import CheckConstraint, Column, ForeignKey, Index, Numeric, String, Text, UniqueConstraint
from sqlmodel import Field, SQLModel

from freightbid.models.enums import ORDER_STATUS_DB_ENUM, QUOTE_STATUS_DB_ENUM, OrderStatus, QuoteStatus
from freightbid.models.types import ULIDType, UTCDateTime, new_ulid
from freightbid.utils.datetime_utils import utc_now

# "RX" + YYMMDD + "-" + NNN
ORDER_ID_LENGTH = 12


class Order(SQLModel, table=True):
    """Shipping order put out for carrier quotes."""

    __tablename__ = "orders"
    __table_args__ = (Index("ix_orders_owner_status", "owner_id", "status"),)

    # Allocated by IdentifierAllocator, e.g. "RX250526-001"
    id: str = Field(primary_key=True, max_length=ORDER_ID_LENGTH)

    warehouse: str = Field(max_length=100)
    goods: str = Field(sa_column=Column(Text, nullable=False))
    delivery_address: str = Field(max_length=200)
    status: OrderStatus = Field(
        default=OrderStatus.ACTIVE,
        sa_column=Column(ORDER_STATUS_DB_ENUM, nullable=False, index=True),
    )

    # Set together, once, when a quote is selected
    selected_provider: str | None = Field(default=None, max_length=100)
    selected_price: Decimal | None = Field(default=None, sa_column=Column(Numeric(10, 2), nullable=True))
    selected_at: datetime | None = Field(default=None, sa_column=Column(UTCDateTime, nullable=True))

    owner_id: str = Field(max_length=36, index=True)
    created_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(UTCDateTime, nullable=False, index=True),
    )
    updated_at: datetime = Field(default_factory=utc_now, sa_column=Column(UTCDateTime, nullable=False))


# One live quote per provider per order; resubmission updates this row
QUOTE_ORDER_PROVIDER_CONSTRAINT = UniqueConstraint("order_id", "provider_id", name="uq_quotes_order_provider")


class Quote(SQLModel, table=True):
    """Carrier price quote against an order."""

    __tablename__ = "quotes"
    __table_args__ = (
        QUOTE_ORDER_PROVIDER_CONSTRAINT,
        CheckConstraint("price >= 0", name="ck_quotes_price_non_negative"),
        Index("ix_quotes_order_ranking", "order_id", "price", "created_at"),
        Index("ix_quotes_order_status", "order_id", "status"),
    )

    id: str = Field(
        default_factory=new_ulid,
        max_length=26,
        sa_column=Column(ULIDType, primary_key=True),
    )
    order_id: str = Field(
        sa_column=Column(String(ORDER_ID_LENGTH), ForeignKey("orders.id", ondelete="CASCADE"), nullable=False),
    )
    provider_id: str = Field(
        sa_column=Column(ULIDType, ForeignKey("providers.id", ondelete="CASCADE"), index=True, nullable=False),
    )
    provider_name: str = Field(max_length=100)  # Denormalized for display and selection checks
    price: Decimal = Field(sa_column=Column(Numeric(10, 2), nullable=False))
    estimated_delivery: str = Field(max_length=50)
    remarks: str | None = Field(default=None, sa_column=Column(Text, nullable=True))
    status: QuoteStatus = Field(
        default=QuoteStatus.ACTIVE,
        sa_column=Column(QUOTE_STATUS_DB_ENUM, nullable=False),
    )
    created_at: datetime = Field(default_factory=utc_now, sa_column=Column(UTCDateTime, nullable=False))
    updated_at: datetime = Field(default_factory=utc_now, sa_column=Column(UTCDateTime, nullable=False))
