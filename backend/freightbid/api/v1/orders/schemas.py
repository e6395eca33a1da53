"""API schemas for order, quote and selection endpoints."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, field_serializer

from freightbid.models import CloseOutcome, Order, OrderStatus, Quote, QuoteStatus
from freightbid.services.quotes.quote_ledger import QuoteStats
from freightbid.utils.datetime_utils import to_local_timezone


def _serialize_dt(dt: datetime | None) -> str | None:
    """Serialize datetime to the local timezone."""
    localized_dt = to_local_timezone(dt)
    return localized_dt.isoformat() if localized_dt else None


# =============================================================================
# Request Schemas
# =============================================================================


class OrderCreateRequest(BaseModel):
    """Request to create an order."""

    warehouse: str
    goods: str
    delivery_address: str


class OrderUpdateRequest(BaseModel):
    """Partial order update. Only fields present in the body are changed."""

    # Unknown fields are passed through and rejected by the service with a 400
    model_config = ConfigDict(extra="allow")

    warehouse: str | None = None
    goods: str | None = None
    delivery_address: str | None = None


class QuoteSubmitRequest(BaseModel):
    """Create or replace the caller's quote on an order."""

    provider_name: str
    price: Decimal
    estimated_delivery: str
    remarks: str | None = None


class SelectQuoteRequest(BaseModel):
    """Accept a quote. Provider and price must match the quote as the caller saw it."""

    quote_id: str
    expected_provider: str
    expected_price: Decimal


# =============================================================================
# Response Schemas
# =============================================================================


class OrderResponse(BaseModel):
    """Order response schema."""

    id: str
    warehouse: str
    goods: str
    delivery_address: str
    status: OrderStatus
    selected_provider: str | None
    selected_price: Decimal | None
    selected_at: datetime | None
    owner_id: str
    created_at: datetime
    updated_at: datetime

    @field_serializer("created_at", "updated_at", "selected_at")
    def serialize_datetimes(self, dt: datetime | None) -> str | None:
        return _serialize_dt(dt)

    @classmethod
    def from_model(cls, order: Order) -> "OrderResponse":
        """Create response from Order model."""
        return cls(
            id=order.id,
            warehouse=order.warehouse,
            goods=order.goods,
            delivery_address=order.delivery_address,
            status=order.status,
            selected_provider=order.selected_provider,
            selected_price=order.selected_price,
            selected_at=order.selected_at,
            owner_id=order.owner_id,
            created_at=order.created_at,
            updated_at=order.updated_at,
        )


class OrderListResponse(BaseModel):
    """Paginated order list."""

    orders: list[OrderResponse]
    total: int


class CloseOrderResponse(BaseModel):
    """Result of an administrative close."""

    order: OrderResponse
    outcome: CloseOutcome


class QuoteResponse(BaseModel):
    """Quote response schema."""

    id: str
    order_id: str
    provider_id: str
    provider_name: str
    price: Decimal
    estimated_delivery: str
    remarks: str | None
    status: QuoteStatus
    created_at: datetime
    updated_at: datetime

    @field_serializer("created_at", "updated_at")
    def serialize_datetimes(self, dt: datetime) -> str | None:
        return _serialize_dt(dt)

    @classmethod
    def from_model(cls, quote: Quote) -> "QuoteResponse":
        """Create response from Quote model."""
        return cls(
            id=quote.id,
            order_id=quote.order_id,
            provider_id=quote.provider_id,
            provider_name=quote.provider_name,
            price=quote.price,
            estimated_delivery=quote.estimated_delivery,
            remarks=quote.remarks,
            status=quote.status,
            created_at=quote.created_at,
            updated_at=quote.updated_at,
        )


class QuoteListResponse(BaseModel):
    """Quotes on one order, cheapest first."""

    quotes: list[QuoteResponse]


class ProviderQuoteListResponse(BaseModel):
    """Quotes submitted by one provider, newest first."""

    quotes: list[QuoteResponse]
    total: int


class QuoteStatsResponse(BaseModel):
    """Aggregate prices of the quotes on one order."""

    count: int
    min_price: Decimal | None
    max_price: Decimal | None
    avg_price: Decimal | None

    @classmethod
    def from_stats(cls, stats: QuoteStats) -> "QuoteStatsResponse":
        return cls(
            count=stats.count,
            min_price=stats.min_price,
            max_price=stats.max_price,
            avg_price=stats.avg_price,
        )
