"""Clock abstraction so services never read the wall clock directly."""

from datetime import datetime
from typing import Protocol

from freightbid.utils.datetime_utils import utc_now


class Clock(Protocol):
    def now(self) -> datetime:
        """Current time as a timezone-aware UTC datetime."""
        ...


class SystemClock:
    """Wall clock."""

    def now(self) -> datetime:
        return utc_now()
