"""Carrier (provider) model."""

from datetime import datetime

from sqlalchemy import Column
from sqlmodel import Field, SQLModel

from freightbid.models.types import ULIDType, UTCDateTime, new_ulid
from freightbid.utils.datetime_utils import utc_now


class Provider(SQLModel, table=True):
    """Carrier allowed to submit quotes. Managed outside this service."""

    __tablename__ = "providers"

    id: str = Field(
        default_factory=new_ulid,
        max_length=26,
        sa_column=Column(ULIDType, primary_key=True),
    )
    name: str = Field(max_length=100, index=True)
    is_active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=utc_now, sa_column=Column(UTCDateTime, nullable=False))
