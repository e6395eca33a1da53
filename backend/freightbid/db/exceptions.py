"""Classification and translation of store (SQLAlchemy / DBAPI) errors."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from freightbid.services.exceptions import FatalStoreError, TransientStoreError

logger = structlog.get_logger(__name__)

# serialization_failure, deadlock_detected, lock_not_available (NOWAIT / lock_timeout)
TRANSIENT_SQLSTATES = frozenset({"40001", "40P01", "55P03"})

# SQLite and driver messages that signal contention rather than a broken statement
TRANSIENT_MESSAGES = (
    "database is locked",
    "database table is locked",
    "deadlock detected",
    "could not serialize access",
    "could not obtain lock",
    "lock timeout",
)


def is_transient_store_error(exc: DBAPIError) -> bool:
    """True if the error is lock contention or a deadlock/serialization victim."""
    orig = exc.orig
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate in TRANSIENT_SQLSTATES:
        return True
    txt = str(orig).lower()
    return any(msg in txt for msg in TRANSIENT_MESSAGES)


@asynccontextmanager
async def store_transaction(session: AsyncSession, operation: str) -> AsyncIterator[AsyncSession]:
    """Run one unit of work: commit on success, roll back on any error.

    Store errors are translated into TransientStoreError (retryable) or
    FatalStoreError. Service errors and cancellation propagate unchanged.

    Usage:
        async with store_transaction(self.session, "create_order"):
            self.session.add(order)
    """
    try:
        yield session
        await session.commit()
    except DBAPIError as e:
        await session.rollback()
        if is_transient_store_error(e):
            logger.warning("Transient store error", operation=operation, error=str(e.orig))
            raise TransientStoreError(f"{operation}: store contention") from e
        logger.error("Store error", operation=operation, error=str(e.orig))
        raise FatalStoreError(f"{operation}: {e.orig}") from e
    except SQLAlchemyError as e:
        await session.rollback()
        logger.error("Store error", operation=operation, error=str(e))
        raise FatalStoreError(f"{operation}: {e}") from e
    except BaseException:
        await session.rollback()
        raise
