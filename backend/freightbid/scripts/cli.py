"""Maintenance CLI for the order store.

Usage:
    freightbid init-db
    freightbid sequence 2025-05-26
    freightbid parse-id RX250526-001
"""

import asyncio
from datetime import date, datetime

import click
import structlog
from sqlmodel import SQLModel

from freightbid.db.session import async_session_maker, dispose_engine, engine
from freightbid.logging import setup_logging
from freightbid.services.orders.id_allocator import IdentifierAllocator
from freightbid.services.orders.order_id import parse_order_id

logger = structlog.get_logger(__name__)


async def _create_tables() -> None:
    try:
        async with engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all)
    finally:
        await dispose_engine()


async def _current_sequence(day: date) -> int:
    try:
        return await IdentifierAllocator(async_session_maker).current_sequence(day)
    finally:
        await dispose_engine()


@click.group()
def cli() -> None:
    """FreightBid maintenance commands."""
    setup_logging()


@cli.command("init-db")
def init_db() -> None:
    """Create missing tables (development; use alembic migrations in production)."""
    asyncio.run(_create_tables())
    logger.info("Database tables created")


@cli.command("sequence")
@click.argument("day", type=click.DateTime(formats=["%Y-%m-%d"]))
def sequence(day: datetime) -> None:
    """Show the last order sequence issued on DAY (YYYY-MM-DD)."""
    last = asyncio.run(_current_sequence(day.date()))
    click.echo(f"{day.date().isoformat()}: {last}")


@cli.command("parse-id")
@click.argument("order_id")
def parse_id(order_id: str) -> None:
    """Show the date and sequence encoded in ORDER_ID."""
    parsed = parse_order_id(order_id)
    if parsed is None:
        raise click.BadParameter(f"{order_id!r} is not a valid order ID", param_hint="ORDER_ID")
    click.echo(f"date={parsed.date.isoformat()} sequence={parsed.sequence}")


if __name__ == "__main__":
    cli()
