"""
Durable side of seat transitions.

The in-memory inventory decides; this module writes the outcome. When the
write fails the inventory is put back to the snapshot taken before the
transition, so memory and database never disagree about a seat.
"""

from contextlib import asynccontextmanager
from typing import Iterable

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from theater.core.logging import get_logger
from theater.domain.inventory import SeatInventory
from theater.domain.seat import Seat
from theater.models.seat import SeatRecord

logger = get_logger(__name__)


async def write_seat_states(db: AsyncSession, show_id: str, seats: Iterable[Seat]) -> None:
    for seat in seats:
        await db.execute(
            update(SeatRecord)
            .where(SeatRecord.show_id == show_id, SeatRecord.seat_id == seat.id)
            .values(
                status=seat.status.value,
                reserved_until=seat.reserved_until,
                reserved_by=seat.reserved_by,
                booking_id=seat.booking_id,
            )
        )


@asynccontextmanager
async def persist_or_restore(db: AsyncSession, inventory: SeatInventory, snapshot: list[Seat]):
    """Commit the writes made inside the block; undo the inventory change if that fails."""
    try:
        yield
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        inventory.restore(snapshot)
        logger.error(
            "seat_persistence_failed",
            show_id=inventory.show_id,
            seat_ids=[seat.id for seat in snapshot],
            error=str(exc),
        )
        raise
