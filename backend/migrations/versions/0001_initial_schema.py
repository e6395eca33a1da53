"""initial_schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19 09:12:31.402117

"""

from typing import Sequence, Union

import sqlalchemy as sa
import sqlmodel
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "0001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Create enums first
    op.execute("CREATE TYPE orderstatus AS ENUM ('active', 'closed', 'cancelled')")
    op.execute("CREATE TYPE quotestatus AS ENUM ('active', 'selected', 'expired')")

    # One counter row per calendar date, incremented by the order ID allocator
    op.create_table(
        "daily_sequence_counters",
        sa.Column("date_key", sqlmodel.sql.sqltypes.AutoString(length=8), nullable=False),
        sa.Column("last_sequence", sa.Integer(), server_default="0", nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("length(date_key) = 8", name="ck_daily_sequence_date_len"),
        sa.CheckConstraint("last_sequence >= 0", name="ck_daily_sequence_non_negative"),
        sa.CheckConstraint("last_sequence <= 999", name="ck_daily_sequence_max"),
        sa.PrimaryKeyConstraint("date_key"),
    )

    # Create providers table (ULID as UUID)
    op.create_table(
        "providers",
        sa.Column("id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("name", sqlmodel.sql.sqltypes.AutoString(length=100), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_providers_name"), "providers", ["name"], unique=False)

    # Create orders table (id allocated as RXyymmdd-nnn)
    op.create_table(
        "orders",
        sa.Column("id", sqlmodel.sql.sqltypes.AutoString(length=12), nullable=False),
        sa.Column("warehouse", sqlmodel.sql.sqltypes.AutoString(length=100), nullable=False),
        sa.Column("goods", sa.Text(), nullable=False),
        sa.Column("delivery_address", sqlmodel.sql.sqltypes.AutoString(length=200), nullable=False),
        sa.Column(
            "status",
            postgresql.ENUM("active", "closed", "cancelled", name="orderstatus", create_type=False),
            nullable=False,
        ),
        sa.Column("selected_provider", sqlmodel.sql.sqltypes.AutoString(length=100), nullable=True),
        sa.Column("selected_price", sa.Numeric(10, 2), nullable=True),
        sa.Column("selected_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("owner_id", sqlmodel.sql.sqltypes.AutoString(length=36), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_orders_status"), "orders", ["status"], unique=False)
    op.create_index(op.f("ix_orders_owner_id"), "orders", ["owner_id"], unique=False)
    op.create_index(op.f("ix_orders_created_at"), "orders", ["created_at"], unique=False)
    op.create_index("ix_orders_owner_status", "orders", ["owner_id", "status"], unique=False)

    # Create quotes table (one live quote per provider per order)
    op.create_table(
        "quotes",
        sa.Column("id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("order_id", sa.String(length=12), nullable=False),
        sa.Column("provider_id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("provider_name", sqlmodel.sql.sqltypes.AutoString(length=100), nullable=False),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("estimated_delivery", sqlmodel.sql.sqltypes.AutoString(length=50), nullable=False),
        sa.Column("remarks", sa.Text(), nullable=True),
        sa.Column(
            "status",
            postgresql.ENUM("active", "selected", "expired", name="quotestatus", create_type=False),
            nullable=False,
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("price >= 0", name="ck_quotes_price_non_negative"),
        sa.ForeignKeyConstraint(["order_id"], ["orders.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["provider_id"], ["providers.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("order_id", "provider_id", name="uq_quotes_order_provider"),
    )
    op.create_index(op.f("ix_quotes_provider_id"), "quotes", ["provider_id"], unique=False)
    op.create_index("ix_quotes_order_ranking", "quotes", ["order_id", "price", "created_at"], unique=False)
    op.create_index("ix_quotes_order_status", "quotes", ["order_id", "status"], unique=False)


def downgrade() -> None:
    # Drop tables in reverse order
    op.drop_index("ix_quotes_order_status", table_name="quotes")
    op.drop_index("ix_quotes_order_ranking", table_name="quotes")
    op.drop_index(op.f("ix_quotes_provider_id"), table_name="quotes")
    op.drop_table("quotes")

    op.drop_index("ix_orders_owner_status", table_name="orders")
    op.drop_index(op.f("ix_orders_created_at"), table_name="orders")
    op.drop_index(op.f("ix_orders_owner_id"), table_name="orders")
    op.drop_index(op.f("ix_orders_status"), table_name="orders")
    op.drop_table("orders")

    op.drop_index(op.f("ix_providers_name"), table_name="providers")
    op.drop_table("providers")

    op.drop_table("daily_sequence_counters")

    # Drop enums
    op.execute("DROP TYPE quotestatus")
    op.execute("DROP TYPE orderstatus")
