"""Quote API endpoints."""

from fastapi import APIRouter

from freightbid.api.v1.orders.dependencies import ProviderIdDep, QuoteLedgerDep
from freightbid.api.v1.orders.schemas import (
    QuoteListResponse,
    QuoteResponse,
    QuoteStatsResponse,
    QuoteSubmitRequest,
)

router = APIRouter(tags=["quotes"])


@router.put("/orders/{order_id}/quotes", response_model=QuoteResponse, operation_id="submitQuote")
async def submit_quote(
    order_id: str,
    body: QuoteSubmitRequest,
    provider_id: ProviderIdDep,
    ledger: QuoteLedgerDep,
) -> QuoteResponse:
    """Create or replace the calling provider's quote on an order."""
    quote = await ledger.submit_quote(
        order_id=order_id,
        provider_id=provider_id,
        provider_name=body.provider_name,
        price=body.price,
        estimated_delivery=body.estimated_delivery,
        remarks=body.remarks,
    )
    return QuoteResponse.from_model(quote)


@router.get("/orders/{order_id}/quotes", response_model=QuoteListResponse, operation_id="listQuotes")
async def list_quotes(order_id: str, ledger: QuoteLedgerDep) -> QuoteListResponse:
    """List quotes on an order, cheapest first."""
    quotes = await ledger.list_quotes(order_id)
    return QuoteListResponse(quotes=[QuoteResponse.from_model(quote) for quote in quotes])


@router.get(
    "/orders/{order_id}/quotes/lowest",
    response_model=QuoteResponse | None,
    operation_id="getLowestQuote",
)
async def lowest_quote(order_id: str, ledger: QuoteLedgerDep) -> QuoteResponse | None:
    """Cheapest quote on an order, or null when there is none."""
    quote = await ledger.lowest_quote(order_id)
    return QuoteResponse.from_model(quote) if quote else None


@router.get("/orders/{order_id}/quotes/stats", response_model=QuoteStatsResponse, operation_id="getQuoteStats")
async def quote_stats(order_id: str, ledger: QuoteLedgerDep) -> QuoteStatsResponse:
    stats = await ledger.quote_stats(order_id)
    return QuoteStatsResponse.from_stats(stats)
