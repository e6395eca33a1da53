"""Row locks and guarded status transitions.

Status changes go through a guarded UPDATE (``WHERE <pk> AND status = <seen>``)
issued while the row is locked with ``SELECT ... FOR UPDATE``. The lock
serializes competing writers on PostgreSQL; the guard keeps the transition
exactly-once on stores that ignore row locks (SQLite in tests).
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

import structlog
from sqlalchemy import and_, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.elements import ColumnElement
from sqlmodel import SQLModel, select

from freightbid.models.status import LifecycleStatusEnum, TransitionTable
from freightbid.services.exceptions import NotFoundError, UnexpectedStatusError

logger = structlog.get_logger(__name__)

TModel = TypeVar("TModel", bound=SQLModel)


class LockNotAcquiredError(Exception):
    """Attempted to use lock without acquiring it first."""


def snapshot(record: SQLModel) -> dict[str, Any]:
    """Plain copy of a record's column values, safe to use after rollback."""
    return record.model_dump()


@dataclass
class RowLock(Generic[TModel]):
    """Lock on a single database row for the rest of the current transaction.

    MUST be used as async context manager:
        async with RowLock(session, Order, Order.id == order_id, not_found=OrderNotFound) as lock:
            await lock.transition(ORDER_TRANSITIONS, OrderStatus.CLOSED, updated_at=now)

    The lock is released when the enclosing transaction commits or rolls back.
    """

    session: AsyncSession
    model_class: type[TModel]
    predicate: ColumnElement[bool]
    not_found: Callable[[], NotFoundError] = NotFoundError
    shared: bool = False  # FOR SHARE instead of FOR UPDATE
    status_field: str = "status"

    record: TModel | None = field(default=None, init=False)
    _acquired: bool = field(default=False, init=False)

    @property
    def name(self) -> str:
        return self.model_class.__name__

    @property
    def locked(self) -> TModel:
        """The locked record."""
        self._check_acquired()
        assert self.record is not None
        return self.record

    def _check_acquired(self) -> None:
        if not self._acquired or self.record is None:
            raise LockNotAcquiredError(f"{self.name}: Lock must be used with 'async with RowLock(...) as lock:'")

    async def _load(self) -> TModel | None:
        stmt = (
            select(self.model_class)
            .where(self.predicate)
            .with_for_update(read=self.shared)
            .execution_options(populate_existing=True)
        )
        res = await self.session.execute(stmt)
        return res.scalars().first()

    async def update_record(self, **fields: object) -> None:
        """Update non-status fields of the locked row, guarded by its current status."""
        self._check_acquired()
        assert self.record is not None
        if self.status_field in fields:
            raise ValueError(f"{self.name}: use transition() to change {self.status_field}")

        seen = getattr(self.record, self.status_field)
        await self._guarded_update(seen, fields)

    async def transition(
        self,
        table: TransitionTable[Any],
        new_status: LifecycleStatusEnum,
        **extra_fields: object,
    ) -> LifecycleStatusEnum:
        """Validate the transition against `table`, then apply it.

        Returns:
            The previous status value

        Raises:
            UnexpectedStatusError: If the transition is not allowed from the current
                status, or another transaction changed the status first
        """
        self._check_acquired()
        assert self.record is not None

        current = getattr(self.record, self.status_field)
        if not table.allowed(current, new_status):
            raise UnexpectedStatusError(
                expected=table.sources_of(new_status),
                actual=current,
                current=snapshot(self.record),
            )

        await self._guarded_update(current, {self.status_field: new_status, **extra_fields}, table, new_status)
        return current  # type: ignore[no-any-return]

    async def _guarded_update(
        self,
        seen_status: LifecycleStatusEnum,
        values: dict[str, object],
        table: TransitionTable[Any] | None = None,
        new_status: LifecycleStatusEnum | None = None,
    ) -> None:
        status_col = getattr(self.model_class, self.status_field)
        stmt = (
            update(self.model_class.__table__)  # type: ignore[attr-defined]
            .where(and_(self.predicate, status_col == seen_status))
            .values(**values)
        )
        result = await self.session.execute(stmt)

        fresh = await self._load()
        if fresh is None:
            raise self.not_found()
        self.record = fresh

        if result.rowcount == 0:  # type: ignore[attr-defined]
            actual = getattr(fresh, self.status_field)
            logger.info(
                "Guarded update lost race",
                model=self.name,
                seen_status=seen_status,
                actual_status=actual,
            )
            expected = table.sources_of(new_status) if table and new_status else frozenset({seen_status})
            raise UnexpectedStatusError(expected=expected, actual=actual, current=snapshot(fresh))

    async def __aenter__(self) -> "RowLock[TModel]":
        self.record = await self._load()
        if self.record is None:
            raise self.not_found()
        self._acquired = True
        return self

    async def __aexit__(self, exc_type: type[BaseException] | None, exc: BaseException | None, tb: object) -> None:
        self._acquired = False
        if exc_type is None:
            # Flush pending ORM changes made inside the lock context; the
            # enclosing transaction decides when to commit
            await self.session.flush()


async def transition_where(
    session: AsyncSession,
    model_class: type[SQLModel],
    table: TransitionTable[Any],
    new_status: LifecycleStatusEnum,
    *predicates: ColumnElement[bool],
    status_field: str = "status",
    **extra_fields: object,
) -> int:
    """Move every matching row whose status may reach `new_status`. Returns rows changed."""
    status_col = getattr(model_class, status_field)
    stmt = (
        update(model_class.__table__)  # type: ignore[attr-defined]
        .where(*predicates, status_col.in_(sorted(table.sources_of(new_status))))
        .values(**{status_field: new_status}, **extra_fields)
    )
    result = await session.execute(stmt)
    return int(result.rowcount)  # type: ignore[attr-defined]
