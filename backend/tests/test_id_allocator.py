"""
Tests for daily order identifier allocation against a real store.
"""

import asyncio
from datetime import date, timedelta

import pytest
from sqlmodel import select

from freightbid.db import store_transaction
from freightbid.models import DailySequenceCounter
from freightbid.services.exceptions import CapacityExceeded, FatalStoreError
from freightbid.services.orders.id_allocator import IdentifierAllocator

DAY = date(2025, 5, 26)


class TestAllocate:
    """Tests for IdentifierAllocator.allocate()."""

    async def test_first_ids_of_the_day(self, allocator):
        assert await allocator.allocate(DAY) == "RX250526-001"
        assert await allocator.allocate(DAY) == "RX250526-002"
        assert await allocator.current_sequence(DAY) == 2

    async def test_each_date_has_its_own_counter(self, allocator):
        await allocator.allocate(DAY)
        await allocator.allocate(DAY)

        assert await allocator.allocate(date(2025, 5, 27)) == "RX250527-001"
        assert await allocator.current_sequence(DAY) == 2
        assert await allocator.current_sequence(date(2025, 5, 28)) == 0

    async def test_concurrent_allocations_are_unique(self, allocator):
        ids = await asyncio.gather(*(allocator.allocate(DAY) for _ in range(25)))

        assert len(set(ids)) == 25
        assert sorted(ids) == [f"RX250526-{n:03d}" for n in range(1, 26)]
        assert await allocator.current_sequence(DAY) == 25

    async def test_counter_row_is_created_lazily(self, allocator, session):
        result = await session.execute(select(DailySequenceCounter))
        assert result.scalars().all() == []

        await allocator.allocate(DAY)

        result = await session.execute(select(DailySequenceCounter))
        counters = result.scalars().all()
        assert [(c.date_key, c.last_sequence) for c in counters] == [("20250526", 1)]


class TestCapacity:
    """Tests for the per-day limit."""

    async def test_thousandth_allocation_fails(self, allocator):
        for expected in range(1, 1000):
            assert await allocator.allocate(DAY) == f"RX250526-{expected:03d}"

        with pytest.raises(CapacityExceeded):
            await allocator.allocate(DAY)

        assert await allocator.current_sequence(DAY) == 999

    async def test_limit_is_configurable_and_not_retried(self, session_maker, retry_config):
        allocator = IdentifierAllocator(session_maker, daily_limit=2, retry_config=retry_config)
        await allocator.allocate(DAY)
        await allocator.allocate(DAY)

        with pytest.raises(CapacityExceeded):
            await allocator.allocate(DAY)
        with pytest.raises(CapacityExceeded):
            await allocator.allocate(DAY)

        assert await allocator.current_sequence(DAY) == 2
        assert await allocator.allocate(date(2025, 5, 27)) == "RX250527-001"


class TestCounterTable:
    """Tests for the daily_sequence_counters table."""

    @pytest.mark.parametrize("last_sequence", [-1, 1000])
    async def test_store_rejects_out_of_range_sequence(self, session, last_sequence):
        with pytest.raises(FatalStoreError):
            async with store_transaction(session, "seed_counter"):
                session.add(DailySequenceCounter(date_key="20250526", last_sequence=last_sequence))

    async def test_timestamps_default_to_aware_utc(self):
        counter = DailySequenceCounter(date_key="20250526")
        assert counter.updated_at.utcoffset() == timedelta(0)
