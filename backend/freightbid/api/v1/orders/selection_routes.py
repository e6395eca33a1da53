"""Quote selection API endpoint."""

import structlog
from fastapi import APIRouter

from freightbid.api.v1.orders.dependencies import CallerIdDep, SelectionCoordinatorDep
from freightbid.api.v1.orders.schemas import OrderResponse, SelectQuoteRequest

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["selection"])


@router.post("/orders/{order_id}/selection", response_model=OrderResponse, operation_id="selectQuote")
async def select_quote(
    order_id: str,
    body: SelectQuoteRequest,
    caller_id: CallerIdDep,
    coordinator: SelectionCoordinatorDep,
) -> OrderResponse:
    """Accept a quote: closes the order and settles every quote on it."""
    order = await coordinator.select_quote(
        order_id=order_id,
        quote_id=body.quote_id,
        expected_provider=body.expected_provider,
        expected_price=body.expected_price,
        caller_id=caller_id,
    )
    logger.info("Selection accepted", order_id=order_id, caller_id=caller_id)
    return OrderResponse.from_model(order)
