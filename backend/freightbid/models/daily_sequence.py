"""Daily sequence counter model backing order identifiers."""

from datetime import datetime

from sqlalchemy import CheckConstraint, Column, Integer
from sqlmodel import Field, SQLModel

from freightbid.config import MAX_DAILY_ORDERS
from freightbid.models.types import UTCDateTime
from freightbid.utils.datetime_utils import utc_now


class DailySequenceCounter(SQLModel, table=True):
    """Last issued order sequence for one calendar date.

    One row per date, created lazily by the allocator and incremented with a
    single guarded UPDATE ... RETURNING so concurrent allocations serialize on
    the row lock. Rows are never deleted and the value never decreases.
    """

    __tablename__ = "daily_sequence_counters"
    __table_args__ = (
        CheckConstraint("length(date_key) = 8", name="ck_daily_sequence_date_len"),
        CheckConstraint("last_sequence >= 0", name="ck_daily_sequence_non_negative"),
        CheckConstraint(f"last_sequence <= {MAX_DAILY_ORDERS}", name="ck_daily_sequence_max"),
    )

    date_key: str = Field(primary_key=True, max_length=8)  # YYYYMMDD
    last_sequence: int = Field(default=0, sa_column=Column(Integer, nullable=False, server_default="0"))
    updated_at: datetime = Field(default_factory=utc_now, sa_column=Column(UTCDateTime, nullable=False))
