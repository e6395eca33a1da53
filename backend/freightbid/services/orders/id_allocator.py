"""Daily order identifier allocation.

Each calendar date owns one counter row in ``daily_sequence_counters``. An
allocation is a single conditional increment in its own short transaction:

    INSERT ... ON CONFLICT DO NOTHING                      -- lazily create the row
    UPDATE ... SET last_sequence = last_sequence + 1
        WHERE date_key = :d AND last_sequence < :limit
        RETURNING last_sequence

The UPDATE takes the row lock, so concurrent allocators for the same date
serialize in the store and never see the same value. The allocation commits
on its own, so a sequence whose order is never created is skipped, not reused.
"""

from datetime import date

import structlog
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlmodel import select

from freightbid.config import settings
from freightbid.db import store_transaction
from freightbid.db.dialect import upsert_insert
from freightbid.models import DailySequenceCounter
from freightbid.services.exceptions import CapacityExceeded
from freightbid.services.orders.order_id import date_key, format_order_id
from freightbid.utils.datetime_utils import utc_now
from freightbid.utils.store_retry import StoreRetryConfig, get_store_retrying

logger = structlog.get_logger(__name__)

counters = DailySequenceCounter.__table__  # type: ignore[attr-defined]


class IdentifierAllocator:
    """Issues unique, per-day order IDs backed by the shared store."""

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        *,
        daily_limit: int | None = None,
        retry_config: StoreRetryConfig | None = None,
    ):
        self.session_maker = session_maker
        self.daily_limit = daily_limit or settings.daily_order_limit
        self.retry_config = retry_config

    async def allocate(self, day: date) -> str:
        """Reserve the next order ID for `day`.

        Raises:
            CapacityExceeded: If all sequences for the day are used
            TransientStoreError: If store contention outlasts the retry budget
        """
        sequence = 0
        async for attempt in get_store_retrying(self.retry_config):
            with attempt:
                sequence = await self._increment(day)

        order_id = format_order_id(day, sequence)
        logger.info("Allocated order ID", order_id=order_id, sequence=sequence)
        return order_id

    async def current_sequence(self, day: date) -> int:
        """Last sequence issued for `day` (0 if none yet)."""
        async with self.session_maker() as session:
            result = await session.execute(
                select(DailySequenceCounter.last_sequence).where(DailySequenceCounter.date_key == date_key(day))
            )
            return result.scalar_one_or_none() or 0

    async def _increment(self, day: date) -> int:
        key = date_key(day)
        now = utc_now()
        async with self.session_maker() as session:
            async with store_transaction(session, "allocate_order_id"):
                await session.execute(
                    upsert_insert(session, counters)
                    .values(date_key=key, last_sequence=0, updated_at=now)
                    .on_conflict_do_nothing(index_elements=[counters.c.date_key])
                )
                result = await session.execute(
                    update(counters)
                    .where(counters.c.date_key == key, counters.c.last_sequence < self.daily_limit)
                    .values(last_sequence=counters.c.last_sequence + 1, updated_at=now)
                    .returning(counters.c.last_sequence)
                )
                sequence = result.scalar_one_or_none()
                if sequence is None:
                    logger.warning("Daily order sequence exhausted", date_key=key, limit=self.daily_limit)
                    raise CapacityExceeded(f"No order IDs left for {day.isoformat()}")
        return int(sequence)
