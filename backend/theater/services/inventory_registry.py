"""
Owner of the live seat inventories.

One SeatInventory per show, created on first use from the seats table and
kept for the lifetime of the application. All seat transitions for a show go
through that single object, which is what serializes them; the database is
written after each successful transition.

The registry hangs off `app.state` instead of being a module global so tests
(and multiple apps in one process) each get their own.
"""

import asyncio
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from theater.core.exceptions import NotFoundError
from theater.core.logging import get_logger
from theater.domain.inventory import SeatInventory
from theater.domain.seat import (
    Seat,
    SeatCategory,
    SeatLayout,
    SeatNumber,
    SeatStatus,
    as_utc,
    utcnow,
)
from theater.models.seat import SeatRecord
from theater.models.show import Show

logger = get_logger(__name__)


def layout_for(show: Show, base: Optional[SeatLayout] = None) -> SeatLayout:
    base = base or SeatLayout()
    return SeatLayout(
        rows=show.row_count,
        seats_per_row=show.seats_per_row,
        section=show.section,
        premium_rows=base.premium_rows,
        standard_rows=base.standard_rows,
        premium_price=base.premium_price,
        standard_price=base.standard_price,
        economy_price=base.economy_price,
    )


def seat_from_record(record: SeatRecord, seats_per_row: int) -> Seat:
    return Seat(
        ref=SeatNumber(record.number, seats_per_row),
        section=record.section,
        category=SeatCategory(record.category),
        price=record.price,
        status=SeatStatus(record.status),
        reserved_until=as_utc(record.reserved_until),
        reserved_by=record.reserved_by,
        booking_id=record.booking_id,
    )


class InventoryRegistry:
    def __init__(
        self,
        layout: Optional[SeatLayout] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.layout = layout
        self.clock = clock
        self._inventories: dict[str, SeatInventory] = {}
        self._load_locks: dict[str, asyncio.Lock] = {}

    def __contains__(self, show_id: str) -> bool:
        return show_id in self._inventories

    async def get(self, db: AsyncSession, show: Show) -> SeatInventory:
        inventory = self._inventories.get(show.id)
        if inventory is not None:
            return inventory

        lock = self._load_locks.setdefault(show.id, asyncio.Lock())
        async with lock:
            inventory = self._inventories.get(show.id)
            if inventory is None:
                inventory = await self._load(db, show)
                self._inventories[show.id] = inventory
        return inventory

    async def _load(self, db: AsyncSession, show: Show) -> SeatInventory:
        result = await db.execute(
            select(SeatRecord).where(SeatRecord.show_id == show.id).order_by(SeatRecord.number)
        )
        records = list(result.scalars().all())
        if not records:
            raise NotFoundError(f"Show {show.id} has no seats")

        seats = [seat_from_record(record, show.seats_per_row) for record in records]
        inventory = SeatInventory(show.id, seats, layout=layout_for(show, self.layout), clock=self.clock)
        logger.info("inventory_loaded", show_id=show.id, seats=len(seats))
        return inventory

    def evict(self, show_id: str) -> None:
        self._inventories.pop(show_id, None)
        self._load_locks.pop(show_id, None)

    def clear(self) -> None:
        self._inventories.clear()
        self._load_locks.clear()
