"""Order lifecycle management.

Orders are created active, may be edited by their owner while active, and
end either closed (administratively or by quote selection, see
``freightbid.services.selection``) or cancelled. Every status change goes
through ``RowLock.transition()`` against ``ORDER_TRANSITIONS``.
"""

from collections.abc import Mapping

import structlog
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import col, select

from freightbid.db import RowLock, snapshot, store_transaction, transition_where
from freightbid.models import CloseOutcome, Order, OrderStatus, Quote, QuoteStatus
from freightbid.models.enums import ORDER_TRANSITIONS, QUOTE_TRANSITIONS
from freightbid.services.exceptions import UnexpectedStatusError, ValidationError
from freightbid.services.identity import DatabaseIdentity, Identity
from freightbid.services.orders.exceptions import NotOrderOwner, OrderNotActive, OrderNotFound
from freightbid.services.orders.id_allocator import IdentifierAllocator
from freightbid.services.validation import clean_text
from freightbid.utils.clock import Clock, SystemClock
from freightbid.utils.datetime_utils import local_date

logger = structlog.get_logger(__name__)

# Editable order fields and their (min, max) length after trimming
ORDER_FIELD_LIMITS: dict[str, tuple[int, int]] = {
    "warehouse": (2, 100),
    "goods": (2, 500),
    "delivery_address": (5, 200),
}


def _clean_order_fields(fields: Mapping[str, object]) -> dict[str, str]:
    unknown = sorted(set(fields) - set(ORDER_FIELD_LIMITS))
    if unknown:
        raise ValidationError(f"Fields cannot be updated: {', '.join(unknown)}")
    cleaned = {}
    for name, value in fields.items():
        min_length, max_length = ORDER_FIELD_LIMITS[name]
        cleaned[name] = clean_text(name, value, min_length=min_length, max_length=max_length)
    return cleaned


class OrderLifecycleManager:
    """Service for order creation, edits and terminal transitions.

    Each public method runs one transaction on `session` and commits it.
    Identifier allocation uses its own transaction (see IdentifierAllocator).
    """

    def __init__(
        self,
        session: AsyncSession,
        allocator: IdentifierAllocator,
        *,
        identity: Identity | None = None,
        clock: Clock | None = None,
    ):
        self.session = session
        self.allocator = allocator
        self.identity = identity or DatabaseIdentity(session)
        self.clock = clock or SystemClock()

    async def create_order(self, owner_id: str, warehouse: str, goods: str, delivery_address: str) -> Order:
        """Create an active order with a freshly allocated ID."""
        if not owner_id:
            raise ValidationError("owner_id is required")
        fields = _clean_order_fields(
            {"warehouse": warehouse, "goods": goods, "delivery_address": delivery_address},
        )

        now = self.clock.now()
        order_id = await self.allocator.allocate(local_date(now))

        order = Order(
            id=order_id,
            owner_id=owner_id,
            status=OrderStatus.ACTIVE,
            created_at=now,
            updated_at=now,
            **fields,
        )
        async with store_transaction(self.session, "create_order"):
            self.session.add(order)

        logger.info("Order created", order_id=order.id, owner_id=owner_id)
        return order

    async def update_order(self, order_id: str, caller_id: str, fields: Mapping[str, object]) -> Order:
        """Edit warehouse, goods or delivery address of an active order (owner only)."""
        if not fields:
            raise ValidationError("No fields to update")
        values = _clean_order_fields(fields)

        async with store_transaction(self.session, "update_order"):
            async with RowLock(self.session, Order, col(Order.id) == order_id, not_found=OrderNotFound) as lock:
                await self._check_owner(caller_id, order_id)
                if lock.locked.status != OrderStatus.ACTIVE:
                    raise OrderNotActive(current=snapshot(lock.locked))
                await lock.update_record(**values, updated_at=self.clock.now())
                order = lock.locked

        logger.info("Order updated", order_id=order_id, fields=sorted(values))
        return order

    async def close_order(self, order_id: str) -> tuple[Order, CloseOutcome]:
        """Close an active order without selecting a quote.

        Repeating the call on a closed order changes nothing and reports
        CloseOutcome.ALREADY_CLOSED.

        Raises:
            OrderNotFound: If the order does not exist
            UnexpectedStatusError: If the order was cancelled
        """
        async with store_transaction(self.session, "close_order"):
            async with RowLock(self.session, Order, col(Order.id) == order_id, not_found=OrderNotFound) as lock:
                now = self.clock.now()
                try:
                    await lock.transition(ORDER_TRANSITIONS, OrderStatus.CLOSED, updated_at=now)
                except UnexpectedStatusError as e:
                    if e.actual != OrderStatus.CLOSED:
                        raise
                    outcome = CloseOutcome.ALREADY_CLOSED
                else:
                    await self._expire_active_quotes(order_id)
                    outcome = CloseOutcome.CLOSED
                order = lock.locked

        logger.info("Order close requested", order_id=order_id, outcome=outcome)
        return order, outcome

    async def cancel_order(self, order_id: str, caller_id: str) -> Order:
        """Cancel an active order (owner only). Its active quotes expire."""
        async with store_transaction(self.session, "cancel_order"):
            async with RowLock(self.session, Order, col(Order.id) == order_id, not_found=OrderNotFound) as lock:
                await self._check_owner(caller_id, order_id)
                await lock.transition(ORDER_TRANSITIONS, OrderStatus.CANCELLED, updated_at=self.clock.now())
                await self._expire_active_quotes(order_id)
                order = lock.locked

        logger.info("Order cancelled", order_id=order_id, caller_id=caller_id)
        return order

    async def get_order(self, order_id: str) -> Order:
        result = await self.session.execute(select(Order).where(col(Order.id) == order_id))
        order = result.scalars().first()
        if not order:
            raise OrderNotFound()
        return order

    async def list_orders(
        self,
        *,
        owner_id: str | None = None,
        status: OrderStatus | None = None,
        skip: int = 0,
        limit: int = 50,
    ) -> tuple[list[Order], int]:
        """List orders, newest first. Returns (orders, total_count)."""
        filters = []
        if owner_id is not None:
            filters.append(col(Order.owner_id) == owner_id)
        if status is not None:
            filters.append(col(Order.status) == status)

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

    async def _check_owner(self, caller_id: str, order_id: str) -> None:
        if not await self.identity.is_owner(caller_id, order_id):
            raise NotOrderOwner()

    async def _expire_active_quotes(self, order_id: str) -> None:
        expired = await transition_where(
            self.session,
            Quote,
            QUOTE_TRANSITIONS,
            QuoteStatus.EXPIRED,
            col(Quote.order_id) == order_id,
            updated_at=self.clock.now(),
        )
        if expired:
            logger.info("Expired quotes", order_id=order_id, count=expired)
