"""FastAPI dependencies for service injection and caller identity."""

from typing import Annotated

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from freightbid.db.session import get_session, get_session_maker
from freightbid.services.orders.id_allocator import IdentifierAllocator
from freightbid.services.orders.order_service import OrderLifecycleManager
from freightbid.services.quotes.quote_ledger import QuoteLedger
from freightbid.services.selection.selection_service import SelectionCoordinator

SessionDep = Annotated[AsyncSession, Depends(get_session)]
SessionMakerDep = Annotated[async_sessionmaker[AsyncSession], Depends(get_session_maker)]


def get_id_allocator(session_maker: SessionMakerDep) -> IdentifierAllocator:
    """Get an IdentifierAllocator; it opens its own sessions per allocation."""
    return IdentifierAllocator(session_maker)


async def get_order_manager(
    session: SessionDep,
    allocator: Annotated[IdentifierAllocator, Depends(get_id_allocator)],
) -> OrderLifecycleManager:
    """Get an OrderLifecycleManager instance with the current session."""
    return OrderLifecycleManager(session, allocator)


async def get_quote_ledger(session: SessionDep) -> QuoteLedger:
    """Get a QuoteLedger instance with the current session."""
    return QuoteLedger(session)


async def get_selection_coordinator(session: SessionDep) -> SelectionCoordinator:
    """Get a SelectionCoordinator instance with the current session."""
    return SelectionCoordinator(session)


# Caller identity is established by the upstream gateway
CallerIdDep = Annotated[str, Header(alias="X-User-Id", min_length=1, max_length=36)]
ProviderIdDep = Annotated[str, Header(alias="X-Provider-Id", min_length=1, max_length=26)]

# Type aliases for cleaner endpoint signatures
OrderManagerDep = Annotated[OrderLifecycleManager, Depends(get_order_manager)]
QuoteLedgerDep = Annotated[QuoteLedger, Depends(get_quote_ledger)]
SelectionCoordinatorDep = Annotated[SelectionCoordinator, Depends(get_selection_coordinator)]
