"""Orders API package.

This package contains all order-related API endpoints organized by domain:
- provider_routes: Orders open to a carrier and its quote history
- order_routes: Order lifecycle (create, list, get, update, close, cancel)
- quote_routes: Quote submission, ranking and statistics
- selection_routes: Accepting the winning quote
"""

from fastapi import APIRouter

from freightbid.api.v1.orders.order_routes import router as order_router
from freightbid.api.v1.orders.provider_routes import router as provider_router
from freightbid.api.v1.orders.quote_routes import router as quote_router
from freightbid.api.v1.orders.selection_routes import router as selection_router

# Create a combined router for all order-related endpoints
router = APIRouter()

# Include all sub-routers; provider routes first so /orders/available is not read as an order ID
router.include_router(provider_router)
router.include_router(order_router)
router.include_router(quote_router)
router.include_router(selection_router)

__all__ = ["router"]
