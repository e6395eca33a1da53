"""Order API endpoints."""

from fastapi import APIRouter, Query, status

from freightbid.api.v1.orders.dependencies import CallerIdDep, OrderManagerDep
from freightbid.api.v1.orders.schemas import (
    CloseOrderResponse,
    OrderCreateRequest,
    OrderListResponse,
    OrderResponse,
    OrderUpdateRequest,
)
from freightbid.models import OrderStatus

router = APIRouter(tags=["orders"])


@router.post(
    "/orders",
    response_model=OrderResponse,
    status_code=status.HTTP_201_CREATED,
    operation_id="createOrder",
)
async def create_order(
    body: OrderCreateRequest,
    caller_id: CallerIdDep,
    manager: OrderManagerDep,
) -> OrderResponse:
    """Create an order open for quotes."""
    order = await manager.create_order(
        owner_id=caller_id,
        warehouse=body.warehouse,
        goods=body.goods,
        delivery_address=body.delivery_address,
    )
    return OrderResponse.from_model(order)


@router.get("/orders", response_model=OrderListResponse, operation_id="listOrders")
async def list_orders(
    caller_id: CallerIdDep,
    manager: OrderManagerDep,
    status_filter: OrderStatus | None = Query(default=None, alias="status"),
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=200),
) -> OrderListResponse:
    """List the caller's orders, newest first."""
    orders, total = await manager.list_orders(owner_id=caller_id, status=status_filter, skip=skip, limit=limit)

    return OrderListResponse(
        orders=[OrderResponse.from_model(order) for order in orders],
        total=total,
    )


@router.get("/orders/{order_id}", response_model=OrderResponse, operation_id="getOrder")
async def get_order(order_id: str, manager: OrderManagerDep) -> OrderResponse:
    order = await manager.get_order(order_id)
    return OrderResponse.from_model(order)


@router.patch("/orders/{order_id}", response_model=OrderResponse, operation_id="updateOrder")
async def update_order(
    order_id: str,
    body: OrderUpdateRequest,
    caller_id: CallerIdDep,
    manager: OrderManagerDep,
) -> OrderResponse:
    """Edit an active order. Only the owner may edit."""
    order = await manager.update_order(order_id, caller_id, body.model_dump(exclude_unset=True))
    return OrderResponse.from_model(order)


@router.post("/orders/{order_id}/close", response_model=CloseOrderResponse, operation_id="closeOrder")
async def close_order(order_id: str, manager: OrderManagerDep) -> CloseOrderResponse:
    """Close an order without selecting a quote. Safe to repeat."""
    order, outcome = await manager.close_order(order_id)
    return CloseOrderResponse(order=OrderResponse.from_model(order), outcome=outcome)


@router.post("/orders/{order_id}/cancel", response_model=OrderResponse, operation_id="cancelOrder")
async def cancel_order(
    order_id: str,
    caller_id: CallerIdDep,
    manager: OrderManagerDep,
) -> OrderResponse:
    """Cancel an active order. Only the owner may cancel."""
    order = await manager.cancel_order(order_id, caller_id)
    return OrderResponse.from_model(order)
