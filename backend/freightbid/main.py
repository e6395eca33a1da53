"""FastAPI application entry point."""

from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from freightbid.api.v1 import health, orders
from freightbid.config import settings
from freightbid.db.session import dispose_engine
from freightbid.logging import setup_logging
from freightbid.services.exceptions import ServiceError

# Configure logging before anything else
setup_logging()

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan handler for startup/shutdown events."""
    # Startup
    logger.info("Starting FreightBid API", debug=settings.debug, timezone=settings.timezone)

    yield

    # Shutdown
    logger.info("Shutting down FreightBid API")
    await dispose_engine()
    logger.info("Database connections disposed")


app = FastAPI(
    title="FreightBid API",
    description="Shipping orders, carrier quotes and quote selection",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.backend_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def bind_caller_context(request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
    """Attach the gateway-supplied caller headers to every log line of the request."""
    context = {
        key: value
        for key, value in (
            ("caller_id", request.headers.get("x-user-id")),
            ("provider_id", request.headers.get("x-provider-id")),
        )
        if value
    }
    with structlog.contextvars.bound_contextvars(method=request.method, path=request.url.path, **context):
        return await call_next(request)


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    """Render service errors with their HTTP status and current record state."""
    if exc.status_code >= 500:
        logger.error("Service error", path=request.url.path, error=exc.code, message=exc.message)
    else:
        logger.info("Request rejected", path=request.url.path, error=exc.code, message=exc.message)
    return JSONResponse(status_code=exc.status_code, content=jsonable_encoder(exc.to_dict()))


# API routes
app.include_router(health.router, prefix="/api/v1", tags=["health"])
app.include_router(orders.router, prefix="/api/v1")
