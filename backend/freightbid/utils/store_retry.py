"""Retry of transient store errors using tenacity."""

from dataclasses import dataclass

import structlog
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_random_exponential,
)

from freightbid.config import settings
from freightbid.services.exceptions import TransientStoreError

logger = structlog.get_logger(__name__)


@dataclass
class StoreRetryConfig:
    """Bounded, jittered exponential backoff for lock contention and deadlocks."""

    max_attempts: int = 5
    min_wait: float = 0.05
    max_wait: float = 1.0

    @classmethod
    def from_settings(cls) -> "StoreRetryConfig":
        return cls(
            max_attempts=settings.store_retry_attempts,
            min_wait=settings.store_retry_min_wait,
            max_wait=settings.store_retry_max_wait,
        )


def _log_retry(retry_state: RetryCallState) -> None:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(
        "Transient store error, retrying",
        attempt=retry_state.attempt_number,
        error=str(exc),
    )


def get_store_retrying(config: StoreRetryConfig | None = None) -> AsyncRetrying:
    """Get configured AsyncRetrying for TransientStoreError.

    Usage:
        async for attempt in get_store_retrying():
            with attempt:
                return await self._allocate_once(day)

    Every attempt must run a complete transaction; a failed attempt has
    already been rolled back by store_transaction().

    Args:
        config: Optional retry configuration. Uses settings if not provided.

    Returns:
        AsyncRetrying instance that re-raises the last error once attempts run out.
    """
    cfg = config or StoreRetryConfig.from_settings()
    return AsyncRetrying(
        retry=retry_if_exception_type(TransientStoreError),
        stop=stop_after_attempt(cfg.max_attempts),
        wait=wait_random_exponential(multiplier=cfg.min_wait, max=cfg.max_wait),
        before_sleep=_log_retry,
        reraise=True,
    )
