"""Selection of the winning quote.

Selecting a quote is one transaction with three effects:

1. the order moves active -> closed and records provider, price and time;
2. the chosen quote moves active -> selected;
3. every other active quote of the order moves to expired.

The order row is locked first and every status change is a guarded update,
so concurrent selections on one order leave exactly one winner. Losers see
the order closed and fail with an InvalidStateError.
"""

from dataclasses import dataclass
from decimal import Decimal

import structlog
from sqlalchemy import and_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import col

from freightbid.db import RowLock, snapshot, store_transaction, transition_where
from freightbid.models import Order, OrderStatus, Quote, QuoteStatus
from freightbid.models.enums import ORDER_TRANSITIONS, QUOTE_TRANSITIONS
from freightbid.models.types import is_ulid
from freightbid.services.exceptions import ValidationError
from freightbid.services.identity import DatabaseIdentity, Identity
from freightbid.services.orders.exceptions import NotOrderOwner, OrderNotActive, OrderNotFound
from freightbid.services.quotes.exceptions import QuoteChanged, QuoteNotActive, QuoteNotFound
from freightbid.services.validation import clean_expected_price
from freightbid.utils.clock import Clock, SystemClock
from freightbid.utils.store_retry import StoreRetryConfig, get_store_retrying

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class SelectQuoteCommand:
    """Accept `quote_id` for `order_id`, provided it still matches what the caller saw."""

    order_id: str
    quote_id: str
    expected_provider: str
    expected_price: Decimal
    caller_id: str | None = None

    @classmethod
    def create(
        cls,
        order_id: str,
        quote_id: str,
        expected_provider: str,
        expected_price: Decimal | float | str,
        caller_id: str | None = None,
    ) -> "SelectQuoteCommand":
        if not expected_provider:
            raise ValidationError("expected_provider is required")
        return cls(
            order_id=order_id,
            quote_id=quote_id,
            expected_provider=expected_provider,
            expected_price=clean_expected_price(expected_price),
            caller_id=caller_id,
        )


class SelectionCoordinator:
    """Runs SelectQuoteCommand atomically, retrying transient store errors."""

    def __init__(
        self,
        session: AsyncSession,
        *,
        identity: Identity | None = None,
        clock: Clock | None = None,
        retry_config: StoreRetryConfig | None = None,
    ):
        self.session = session
        self.identity = identity or DatabaseIdentity(session)
        self.clock = clock or SystemClock()
        self.retry_config = retry_config

    async def select_quote(
        self,
        order_id: str,
        quote_id: str,
        expected_provider: str,
        expected_price: Decimal | float | str,
        caller_id: str | None = None,
    ) -> Order:
        command = SelectQuoteCommand.create(order_id, quote_id, expected_provider, expected_price, caller_id)
        return await self.execute(command)

    async def execute(self, command: SelectQuoteCommand) -> Order:
        """Apply the selection, or raise and leave order and quotes untouched.

        Raises:
            OrderNotFound / QuoteNotFound: If either record is missing (or the quote is on another order)
            NotOrderOwner: If caller_id is given and does not own the order
            OrderNotActive / UnexpectedStatusError: If the order is no longer active
            QuoteNotActive: If the quote was already settled
            QuoteChanged: If provider or price differ from the expected values
        """
        if not is_ulid(command.quote_id):
            raise QuoteNotFound()

        order: Order | None = None
        async for attempt in get_store_retrying(self.retry_config):
            with attempt:
                order = await self._execute_once(command)
        assert order is not None

        logger.info(
            "Quote selected",
            order_id=order.id,
            quote_id=command.quote_id,
            provider=order.selected_provider,
            price=str(order.selected_price),
        )
        return order

    async def _execute_once(self, command: SelectQuoteCommand) -> Order:
        async with store_transaction(self.session, "select_quote"):
            order_lock = RowLock(self.session, Order, col(Order.id) == command.order_id, not_found=OrderNotFound)
            async with order_lock:
                if command.caller_id is not None and not await self.identity.is_owner(
                    command.caller_id, command.order_id
                ):
                    raise NotOrderOwner()
                if order_lock.locked.status != OrderStatus.ACTIVE:
                    raise OrderNotActive(current=snapshot(order_lock.locked))

                quote_lock = RowLock(
                    self.session,
                    Quote,
                    and_(col(Quote.id) == command.quote_id, col(Quote.order_id) == command.order_id),
                    not_found=QuoteNotFound,
                )
                async with quote_lock:
                    quote = quote_lock.locked
                    if quote.status != QuoteStatus.ACTIVE:
                        raise QuoteNotActive(current=snapshot(quote))
                    if quote.provider_name != command.expected_provider or quote.price != command.expected_price:
                        raise QuoteChanged(current=snapshot(quote))

                    now = self.clock.now()
                    await order_lock.transition(
                        ORDER_TRANSITIONS,
                        OrderStatus.CLOSED,
                        selected_provider=quote.provider_name,
                        selected_price=quote.price,
                        selected_at=now,
                        updated_at=now,
                    )
                    await quote_lock.transition(QUOTE_TRANSITIONS, QuoteStatus.SELECTED, updated_at=now)
                    expired = await transition_where(
                        self.session,
                        Quote,
                        QUOTE_TRANSITIONS,
                        QuoteStatus.EXPIRED,
                        col(Quote.order_id) == command.order_id,
                        col(Quote.id) != command.quote_id,
                        updated_at=now,
                    )
                    logger.debug("Expired competing quotes", order_id=command.order_id, count=expired)
                order = order_lock.locked
        return order
