"""
Tests for the order lifecycle: create, update, close, cancel, list.
"""

import asyncio
from decimal import Decimal

import pytest

from freightbid.models import CloseOutcome, OrderStatus, QuoteStatus
from freightbid.services.exceptions import ForbiddenError, InvalidStateError, NotFoundError, ValidationError
from freightbid.services.orders.order_id import is_valid_order_id
from freightbid.services.orders.order_service import OrderLifecycleManager


async def create_order_in_own_session(session_maker, allocator, clock, owner_id):
    async with session_maker() as session:
        manager = OrderLifecycleManager(session, allocator, clock=clock)
        return await manager.create_order(owner_id, "Shanghai Pudong DC", "Ceramic tiles", "88 Century Avenue")


class TestCreateOrder:
    """Tests for OrderLifecycleManager.create_order()."""

    async def test_create(self, manager, clock):
        created = await manager.create_order(
            owner_id="shipper-1",
            warehouse="  Shanghai Pudong DC ",
            goods="12 pallets of ceramic tiles",
            delivery_address="88 Century Avenue, Shanghai",
        )

        assert created.id == "RX250526-001"
        assert created.status == OrderStatus.ACTIVE
        assert created.warehouse == "Shanghai Pudong DC"
        assert created.owner_id == "shipper-1"
        assert created.created_at == clock.now()
        assert created.selected_provider is None
        assert created.selected_price is None
        assert created.selected_at is None

    async def test_ids_follow_local_date(self, manager, clock):
        # 16:30 UTC is already the next day in Asia/Shanghai
        clock.current = clock.current.replace(hour=16, minute=30)
        created = await manager.create_order("shipper-1", "Warehouse 7", "Steel coils", "Port of Ningbo")
        assert created.id == "RX250527-001"

    @pytest.mark.parametrize(
        "field, value",
        [
            ("warehouse", ""),
            ("warehouse", "   "),
            ("warehouse", "W"),
            ("goods", "x"),
            ("goods", "g" * 501),
            ("delivery_address", "Home"),
            ("delivery_address", "a" * 201),
        ],
    )
    async def test_rejects_invalid_fields(self, manager, allocator, field, value):
        fields = {
            "warehouse": "Shanghai Pudong DC",
            "goods": "12 pallets of ceramic tiles",
            "delivery_address": "88 Century Avenue, Shanghai",
            field: value,
        }
        with pytest.raises(ValidationError):
            await manager.create_order(owner_id="shipper-1", **fields)

        # Validation happens before an ID is consumed
        assert await allocator.current_sequence(manager.clock.now().date()) == 0

    async def test_rejects_missing_owner(self, manager):
        with pytest.raises(ValidationError):
            await manager.create_order("", "Shanghai Pudong DC", "Tiles", "88 Century Avenue")

    async def test_concurrent_creates_get_distinct_ids(self, session_maker, allocator, clock):
        created = await asyncio.gather(
            *(create_order_in_own_session(session_maker, allocator, clock, f"shipper-{n}") for n in range(20))
        )

        ids = [order.id for order in created]
        assert len(set(ids)) == 20
        assert all(is_valid_order_id(order_id) for order_id in ids)


class TestUpdateOrder:
    """Tests for OrderLifecycleManager.update_order()."""

    async def test_update(self, manager, order_id, clock):
        clock.advance(60)
        updated = await manager.update_order(order_id, "shipper-1", {"goods": " 14 pallets of tiles "})

        assert updated.goods == "14 pallets of tiles"
        assert updated.warehouse == "Shanghai Pudong DC"
        assert updated.updated_at == clock.now()
        assert updated.created_at < updated.updated_at

    async def test_unknown_order(self, manager):
        with pytest.raises(NotFoundError):
            await manager.update_order("RX250526-999", "shipper-1", {"goods": "Tiles"})

    async def test_not_owner(self, manager, order_id):
        with pytest.raises(ForbiddenError):
            await manager.update_order(order_id, "someone-else", {"goods": "Tiles"})

    @pytest.mark.parametrize(
        "fields",
        [
            {},
            {"status": "closed"},
            {"selected_price": "1.00"},
            {"warehouse": ""},
            {"goods": None},
        ],
    )
    async def test_invalid_fields(self, manager, order_id, fields):
        with pytest.raises(ValidationError):
            await manager.update_order(order_id, "shipper-1", fields)

    async def test_closed_order_cannot_be_edited(self, manager, order_id):
        await manager.close_order(order_id)

        with pytest.raises(InvalidStateError) as exc_info:
            await manager.update_order(order_id, "shipper-1", {"goods": "Tiles"})
        assert exc_info.value.current["status"] == OrderStatus.CLOSED


class TestCloseOrder:
    """Tests for OrderLifecycleManager.close_order()."""

    async def test_close(self, manager, order_id, clock):
        clock.advance(30)
        closed, outcome = await manager.close_order(order_id)

        assert outcome == CloseOutcome.CLOSED
        assert closed.status == OrderStatus.CLOSED
        assert closed.updated_at == clock.now()
        assert closed.selected_provider is None
        assert closed.selected_at is None

    async def test_close_is_idempotent(self, manager, order_id, clock):
        clock.advance(30)
        first, first_outcome = await manager.close_order(order_id)
        first_updated_at = first.updated_at

        clock.advance(30)
        second, second_outcome = await manager.close_order(order_id)

        assert first_outcome == CloseOutcome.CLOSED
        assert second_outcome == CloseOutcome.ALREADY_CLOSED
        assert second.status == OrderStatus.CLOSED
        assert second.updated_at == first_updated_at
        assert second.selected_provider is None

    async def test_close_expires_active_quotes(self, manager, ledger, order_id, providers):
        await ledger.submit_quote(order_id, providers["A"], "Carrier A", "25.50", "2 days")
        await ledger.submit_quote(order_id, providers["B"], "Carrier B", "18.80", "3 days")

        await manager.close_order(order_id)

        quotes = await ledger.list_quotes(order_id)
        assert {quote.status for quote in quotes} == {QuoteStatus.EXPIRED}

    async def test_close_cancelled_order_fails(self, manager, order_id):
        await manager.cancel_order(order_id, "shipper-1")

        with pytest.raises(InvalidStateError) as exc_info:
            await manager.close_order(order_id)
        assert exc_info.value.current["status"] == OrderStatus.CANCELLED

    async def test_close_unknown_order(self, manager):
        with pytest.raises(NotFoundError):
            await manager.close_order("RX250526-404")

    async def test_concurrent_closes(self, session_maker, allocator, clock, order_id):
        async def close():
            async with session_maker() as session:
                return await OrderLifecycleManager(session, allocator, clock=clock).close_order(order_id)

        results = await asyncio.gather(close(), close(), close())

        outcomes = sorted(outcome for _, outcome in results)
        assert outcomes == [CloseOutcome.ALREADY_CLOSED, CloseOutcome.ALREADY_CLOSED, CloseOutcome.CLOSED]


class TestCancelOrder:
    """Tests for OrderLifecycleManager.cancel_order()."""

    async def test_cancel(self, manager, ledger, order_id, providers):
        await ledger.submit_quote(order_id, providers["A"], "Carrier A", Decimal("25.50"), "2 days")

        cancelled = await manager.cancel_order(order_id, "shipper-1")

        assert cancelled.status == OrderStatus.CANCELLED
        [quote] = await ledger.list_quotes(order_id)
        assert quote.status == QuoteStatus.EXPIRED

    async def test_only_owner_may_cancel(self, manager, order_id):
        with pytest.raises(ForbiddenError):
            await manager.cancel_order(order_id, "someone-else")

        assert (await manager.get_order(order_id)).status == OrderStatus.ACTIVE

    async def test_cancel_twice_fails(self, manager, order_id):
        await manager.cancel_order(order_id, "shipper-1")

        with pytest.raises(InvalidStateError):
            await manager.cancel_order(order_id, "shipper-1")


class TestQueries:
    """Tests for get_order() and list_orders()."""

    async def test_get_order(self, manager, order_id):
        fetched = await manager.get_order(order_id)
        assert fetched.id == order_id

    async def test_get_unknown_order(self, manager):
        with pytest.raises(NotFoundError):
            await manager.get_order("RX250526-404")

    async def test_list_orders(self, manager, clock):
        for owner in ("shipper-1", "shipper-2", "shipper-1"):
            clock.advance(1)
            await manager.create_order(owner, "Shanghai Pudong DC", "Tiles", "88 Century Avenue")

        orders, total = await manager.list_orders(owner_id="shipper-1")
        assert total == 2
        assert [o.id for o in orders] == ["RX250526-003", "RX250526-001"]

        await manager.close_order("RX250526-003")
        active, active_total = await manager.list_orders(owner_id="shipper-1", status=OrderStatus.ACTIVE)
        assert active_total == 1
        assert [o.id for o in active] == ["RX250526-001"]

        page, total_all = await manager.list_orders(skip=1, limit=1)
        assert total_all == 3
        assert [o.id for o in page] == ["RX250526-002"]
