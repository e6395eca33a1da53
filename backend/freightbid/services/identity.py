"""Caller identity checks consumed by the services."""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from freightbid.models import Order, Provider


class Identity(Protocol):
    async def is_owner(self, user_id: str, order_id: str) -> bool: ...

    async def is_active_provider(self, provider_id: str) -> bool: ...


class DatabaseIdentity:
    """Identity answered from the orders and providers tables."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def is_owner(self, user_id: str, order_id: str) -> bool:
        result = await self.session.execute(select(Order.owner_id).where(Order.id == order_id))
        owner_id = result.scalar_one_or_none()
        return owner_id is not None and owner_id == user_id

    async def is_active_provider(self, provider_id: str) -> bool:
        result = await self.session.execute(select(Provider.is_active).where(Provider.id == provider_id))
        return bool(result.scalar_one_or_none())
