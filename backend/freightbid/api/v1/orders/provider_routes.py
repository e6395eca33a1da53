"""Carrier-facing endpoints: orders open to the carrier and its own quotes."""

from fastapi import APIRouter, Query

from freightbid.api.v1.orders.dependencies import ProviderIdDep, QuoteLedgerDep
from freightbid.api.v1.orders.schemas import (
    OrderListResponse,
    OrderResponse,
    ProviderQuoteListResponse,
    QuoteResponse,
)

router = APIRouter(tags=["providers"])


@router.get("/orders/available", response_model=OrderListResponse, operation_id="listAvailableOrders")
async def list_available_orders(
    provider_id: ProviderIdDep,
    ledger: QuoteLedgerDep,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=200),
) -> OrderListResponse:
    """Active orders the calling provider has not quoted on yet, newest first."""
    orders, total = await ledger.list_available_orders(provider_id, skip=skip, limit=limit)

    return OrderListResponse(
        orders=[OrderResponse.from_model(order) for order in orders],
        total=total,
    )


@router.get("/quotes", response_model=ProviderQuoteListResponse, operation_id="listProviderQuotes")
async def list_provider_quotes(
    provider_id: ProviderIdDep,
    ledger: QuoteLedgerDep,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=200),
) -> ProviderQuoteListResponse:
    """Quote history of the calling provider, newest first."""
    quotes, total = await ledger.list_provider_quotes(provider_id, skip=skip, limit=limit)

    return ProviderQuoteListResponse(
        quotes=[QuoteResponse.from_model(quote) for quote in quotes],
        total=total,
    )
