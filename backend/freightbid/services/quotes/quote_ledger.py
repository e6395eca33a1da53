"""Quote ledger: submission, ranking and statistics of carrier quotes."""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

import structlog
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import col, select

from freightbid.db import RowLock, snapshot, store_transaction
from freightbid.db.dialect import upsert_insert
from freightbid.models import Order, OrderStatus, Quote, QuoteStatus
from freightbid.models.types import is_ulid, new_ulid
from freightbid.services.exceptions import ValidationError
from freightbid.services.identity import DatabaseIdentity, Identity
from freightbid.services.orders.exceptions import OrderNotActive, OrderNotFound
from freightbid.services.quotes.exceptions import ProviderNotActive
from freightbid.services.validation import PRICE_QUANTUM, clean_optional_text, clean_price, clean_text
from freightbid.utils.clock import Clock, SystemClock

logger = structlog.get_logger(__name__)

quotes = Quote.__table__  # type: ignore[attr-defined]

# Cheapest first; equal prices rank by who quoted first
QUOTE_RANKING = (col(Quote.price).asc(), col(Quote.created_at).asc(), col(Quote.id).asc())


@dataclass(frozen=True)
class QuoteStats:
    """Aggregate view of the quotes on one order."""

    count: int
    min_price: Decimal | None
    max_price: Decimal | None
    avg_price: Decimal | None


def _as_price(value: object) -> Decimal | None:
    if value is None:
        return None
    return Decimal(str(value)).quantize(PRICE_QUANTUM, rounding=ROUND_HALF_UP)


def _check_provider_id(provider_id: str) -> None:
    if not provider_id or not is_ulid(provider_id):
        raise ValidationError("provider_id must be a ULID")


class QuoteLedger:
    """Quote submission and ranking.

    A provider holds at most one quote per order. Submitting again replaces
    price, estimated delivery, remarks and provider name of that quote while
    keeping its original creation time (and so its tie-break rank).
    """

    def __init__(self, session: AsyncSession, *, identity: Identity | None = None, clock: Clock | None = None):
        self.session = session
        self.identity = identity or DatabaseIdentity(session)
        self.clock = clock or SystemClock()

    async def submit_quote(
        self,
        order_id: str,
        provider_id: str,
        provider_name: str,
        price: Decimal | float | str,
        estimated_delivery: str,
        remarks: str | None = None,
    ) -> Quote:
        """Create or replace the provider's quote on an active order.

        Raises:
            ValidationError: On bad price or missing fields
            OrderNotFound: If the order does not exist
            ProviderNotActive: If the provider may not quote
            OrderNotActive: If the order is closed or cancelled
        """
        _check_provider_id(provider_id)
        values = {
            "provider_name": clean_text("provider_name", provider_name, max_length=100),
            "price": clean_price(price),
            "estimated_delivery": clean_text("estimated_delivery", estimated_delivery, max_length=50),
            "remarks": clean_optional_text("remarks", remarks, max_length=1000),
        }

        async with store_transaction(self.session, "submit_quote"):
            # Shared lock: quotes may be written concurrently, but not while the order is being closed
            order_lock = RowLock(self.session, Order, col(Order.id) == order_id, not_found=OrderNotFound, shared=True)
            async with order_lock as lock:
                if not await self.identity.is_active_provider(provider_id):
                    raise ProviderNotActive()
                if lock.locked.status != OrderStatus.ACTIVE:
                    raise OrderNotActive(current=snapshot(lock.locked))

                now = self.clock.now()
                stmt = upsert_insert(self.session, quotes).values(
                    id=new_ulid(),
                    order_id=order_id,
                    provider_id=provider_id,
                    status=QuoteStatus.ACTIVE,
                    created_at=now,
                    updated_at=now,
                    **values,
                )
                stmt = stmt.on_conflict_do_update(
                    index_elements=[quotes.c.order_id, quotes.c.provider_id],
                    set_={
                        "provider_name": stmt.excluded.provider_name,
                        "price": stmt.excluded.price,
                        "estimated_delivery": stmt.excluded.estimated_delivery,
                        "remarks": stmt.excluded.remarks,
                        "updated_at": stmt.excluded.updated_at,
                    },
                )
                await self.session.execute(stmt)

                # Re-read under the write lock; stores without row locks may have closed the order meanwhile
                order_result = await self.session.execute(
                    select(Order).where(col(Order.id) == order_id).execution_options(populate_existing=True)
                )
                order = order_result.scalars().one()
                if order.status != OrderStatus.ACTIVE:
                    raise OrderNotActive(current=snapshot(order))

                result = await self.session.execute(
                    select(Quote)
                    .where(col(Quote.order_id) == order_id, col(Quote.provider_id) == provider_id)
                    .execution_options(populate_existing=True)
                )
                quote = result.scalars().one()

        logger.info(
            "Quote submitted",
            order_id=order_id,
            provider_id=provider_id,
            quote_id=quote.id,
            price=str(quote.price),
        )
        return quote

    async def list_quotes(self, order_id: str) -> list[Quote]:
        """All quotes on the order, cheapest first, ties by earliest submission."""
        await self._ensure_order(order_id)
        result = await self.session.execute(
            select(Quote).where(col(Quote.order_id) == order_id).order_by(*QUOTE_RANKING)
        )
        return list(result.scalars().all())

    async def lowest_quote(self, order_id: str) -> Quote | None:
        """First quote in list_quotes() order, or None when there are no quotes."""
        await self._ensure_order(order_id)
        result = await self.session.execute(
            select(Quote).where(col(Quote.order_id) == order_id).order_by(*QUOTE_RANKING).limit(1)
        )
        return result.scalars().first()

    async def quote_stats(self, order_id: str) -> QuoteStats:
        await self._ensure_order(order_id)
        result = await self.session.execute(
            select(
                func.count(col(Quote.id)),
                func.min(col(Quote.price)),
                func.max(col(Quote.price)),
                func.avg(col(Quote.price)),
            ).where(col(Quote.order_id) == order_id)
        )
        count, min_price, max_price, avg_price = result.one()
        return QuoteStats(
            count=int(count or 0),
            min_price=_as_price(min_price),
            max_price=_as_price(max_price),
            avg_price=_as_price(avg_price),
        )

    async def list_provider_quotes(
        self, provider_id: str, *, skip: int = 0, limit: int = 50
    ) -> tuple[list[Quote], int]:
        """Quotes submitted by one provider, newest first. Returns (quotes, total_count)."""
        _check_provider_id(provider_id)
        quotes_result = await self.session.execute(
            select(Quote)
            .where(col(Quote.provider_id) == provider_id)
            .order_by(col(Quote.created_at).desc(), col(Quote.id).desc())
            .offset(skip)
            .limit(limit)
        )
        provider_quotes = list(quotes_result.scalars().all())

        count_result = await self.session.execute(
            select(func.count()).select_from(Quote).where(col(Quote.provider_id) == provider_id)
        )
        total = count_result.scalar() or 0

        return provider_quotes, total

    async def list_available_orders(
        self, provider_id: str, *, skip: int = 0, limit: int = 50
    ) -> tuple[list[Order], int]:
        """Active orders the provider has not quoted on yet, newest first. Returns (orders, total_count).

        Raises:
            ValidationError: If provider_id is not a ULID
            ProviderNotActive: If the provider may not quote
        """
        _check_provider_id(provider_id)
        if not await self.identity.is_active_provider(provider_id):
            raise ProviderNotActive()

        quoted = select(col(Quote.order_id)).where(col(Quote.provider_id) == provider_id)
        filters = (col(Order.status) == OrderStatus.ACTIVE, col(Order.id).not_in(quoted))

        orders_result = await self.session.execute(
            select(Order)
            .where(*filters)
            .order_by(col(Order.created_at).desc(), col(Order.id).desc())
            .offset(skip)
            .limit(limit)
        )
        orders = list(orders_result.scalars().all())

        count_result = await self.session.execute(select(func.count()).select_from(Order).where(*filters))
        total = count_result.scalar() or 0

        return orders, total

    async def _ensure_order(self, order_id: str) -> None:
        result = await self.session.execute(select(Order.id).where(col(Order.id) == order_id))
        if result.scalar_one_or_none() is None:
            raise OrderNotFound()
