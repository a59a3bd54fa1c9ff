"""
Booking service: turning seats into sold bookings and back.

Three ways into a booking, all ending in a sold transition on the show's
inventory:

  1. seatIds          the caller names the seats; available -> sold
                      (or reserved -> sold for seats the caller holds)
  2. anchorSeatId     a SeatSelection picks the best adjacent block around
                      the anchor and confirms it
  3. reservationId    a live hold of the caller is finalized,
                      reserved -> sold, and the reservation is consumed

The inventory lock makes the sold transition atomic across the whole seat
set: of two overlapping bookings exactly one wins, the other gets a 409
naming the seats it lost. Every sold seat records the booking that owns it.

Cancelling claims the booking with a conditional UPDATE (confirmed ->
cancelled). Only the request whose UPDATE matched releases seats, and only
the seats the booking still owns.
"""

import secrets
import time
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from theater.core.exceptions import (
    ConflictError,
    ForbiddenError,
    InvalidTransitionError,
    NotFoundError,
    SeatsUnavailableError,
    ValidationError,
)
from theater.core.logging import get_logger, bind_show_context
from theater.core.metrics import booking_cancellations, record_booking_attempt
from theater.core.security import Permission, Principal
from theater.domain.inventory import SeatInventory
from theater.domain.seat import SeatStatus
from theater.domain.selection import SeatSelection
from theater.models.booking import Booking
from theater.schemas.booking import BookingCreate
from theater.services.inventory_registry import InventoryRegistry
from theater.services.reservation_service import ACTIVE, CONSUMED, effective_status, get_reservation
from theater.services.seat_store import persist_or_restore, write_seat_states
from theater.services.show_service import get_show

logger = get_logger(__name__)

CONFIRMED = "confirmed"
CANCELLED = "cancelled"


def new_booking_id() -> str:
    return f"BK{int(time.time() * 1000)}{secrets.token_hex(3).upper()}"


def _seat_snapshot(seat) -> dict:
    return {
        "id": seat.id,
        "number": seat.number,
        "row": seat.row,
        "section": seat.section,
        "category": seat.category.value,
        "price": seat.price,
    }


def _pick_block(inventory: SeatInventory, anchor_id: str, party_size: int) -> SeatSelection:
    selection = SeatSelection(inventory, party_size)
    if not selection.select(anchor_id):
        raise SeatsUnavailableError(
            f"No block of {party_size} adjacent available seats around {anchor_id}",
            seat_ids=[anchor_id],
        )
    return selection


async def create_booking(
    db: AsyncSession,
    registry: InventoryRegistry,
    principal: Principal,
    data: BookingCreate,
) -> Booking:
    show = await get_show(db, data.show_id)
    bind_show_context(show.id)
    inventory = await registry.get(db, show)

    reservation = None
    selection = None
    if data.reservation_id:
        reservation = await get_reservation(db, principal, data.reservation_id)
        if reservation.show_id != show.id:
            raise ValidationError("Reservation belongs to a different show")
        status = effective_status(reservation, inventory.now())
        if status != ACTIVE:
            raise ConflictError(
                f"Reservation {reservation.id} is {status}",
                seat_ids=reservation.seat_ids,
            )
        if data.seat_ids and set(data.seat_ids) != set(reservation.seat_ids):
            raise ValidationError("seatIds do not match the reservation")
        seat_ids = list(reservation.seat_ids)
        actor = reservation.holder_id
    elif data.anchor_seat_id:
        selection = _pick_block(inventory, data.anchor_seat_id, data.party_size)
        seat_ids = selection.seat_ids
        actor = principal.id
    else:
        seat_ids = list(dict.fromkeys(data.seat_ids))
        actor = principal.id

    booking_id = new_booking_id()
    snapshot = inventory.snapshot(seat_ids)
    try:
        if selection is not None:
            sold = selection.confirm(actor, booking_id=booking_id)
        else:
            sold = inventory.set_status(seat_ids, SeatStatus.SOLD, actor, booking_id=booking_id)
    except ConflictError as exc:
        record_booking_attempt("conflict")
        logger.warning("booking_conflict", seat_ids=seat_ids, taken=exc.seat_ids)
        raise

    booking = Booking(
        id=booking_id,
        show_id=show.id,
        api_key_id=principal.id,
        reservation_id=reservation.id if reservation else None,
        seat_ids=[seat.id for seat in sold],
        seats=[_seat_snapshot(seat) for seat in sold],
        customer_name=data.customer_info.name,
        customer_email=data.customer_info.email,
        customer_phone=data.customer_info.phone,
        total_price=sum(seat.price for seat in sold),
        status=CONFIRMED,
        notes=data.notes,
        booked_at=datetime.now(timezone.utc),
    )
    async with persist_or_restore(db, inventory, snapshot):
        db.add(booking)
        await write_seat_states(db, show.id, sold)
        if reservation is not None:
            reservation.status = CONSUMED
    await db.refresh(booking)

    record_booking_attempt("success")
    logger.info(
        "booking_created",
        booking_id=booking.id,
        api_key_id=principal.id,
        seat_ids=booking.seat_ids,
        total_price=booking.total_price,
        reservation_id=booking.reservation_id,
    )
    return booking


async def get_booking(db: AsyncSession, principal: Principal, booking_id: str) -> Booking:
    result = await db.execute(select(Booking).where(Booking.id == booking_id))
    booking = result.scalar_one_or_none()
    if not booking:
        raise NotFoundError("Booking not found")
    if booking.api_key_id != principal.id and not principal.can(Permission.ADMIN):
        raise ForbiddenError("Booking belongs to another API key")
    return booking


async def list_bookings(
    db: AsyncSession,
    principal: Principal,
    show_id: Optional[str] = None,
) -> list[Booking]:
    """Bookings made with the caller's key, newest first."""
    query = select(Booking).where(Booking.api_key_id == principal.id)
    if show_id:
        query = query.where(Booking.show_id == show_id)
    result = await db.execute(query.order_by(Booking.booked_at.desc()))
    return list(result.scalars().all())


async def cancel_booking(
    db: AsyncSession,
    registry: InventoryRegistry,
    principal: Principal,
    booking_id: str,
    reason: Optional[str] = None,
) -> Booking:
    """
    Cancel a booking and release its seats back to the show.
    Raises 400 if the booking is already cancelled.
    """
    booking = await get_booking(db, principal, booking_id)
    if booking.status == CANCELLED:
        raise InvalidTransitionError("Booking is already cancelled")

    show = await get_show(db, booking.show_id)
    bind_show_context(show.id)
    inventory = await registry.get(db, show)

    # Claim the cancellation: only update if the booking is still confirmed
    claim = await db.execute(
        update(Booking)
        .where(Booking.id == booking.id, Booking.status == CONFIRMED)
        .values(
            status=CANCELLED,
            cancelled_at=datetime.now(timezone.utc),
            cancel_reason=reason or "Cancelled via API",
        )
    )
    if claim.rowcount == 0:
        # Another request cancelled it after we read it
        logger.info("booking_cancel_lost", booking_id=booking.id, api_key_id=principal.id)
        raise InvalidTransitionError("Booking is already cancelled")

    snapshot = inventory.snapshot(booking.seat_ids)
    released = inventory.release_booking(booking.id, booking.seat_ids, principal.id)

    async with persist_or_restore(db, inventory, snapshot):
        await write_seat_states(db, show.id, released)
    await db.refresh(booking)

    booking_cancellations.labels(reason="customer").inc()
    logger.info(
        "booking_cancelled",
        booking_id=booking.id,
        api_key_id=principal.id,
        seats_restored=len(released),
        refund_amount=booking.total_price,
    )
    return booking


async def reset_show(
    db: AsyncSession,
    registry: InventoryRegistry,
    principal: Principal,
    show_id: str,
) -> dict:
    """
    Administrative override: every confirmed booking of the show is
    cancelled and its seats go back on sale, along with sold seats that
    belong to no booking. Bookings confirmed after the reset started keep
    their seats.
    """
    principal.require(Permission.ADMIN)
    show = await get_show(db, show_id)
    bind_show_context(show.id)
    inventory = await registry.get(db, show)

    result = await db.execute(
        select(Booking.id).where(Booking.show_id == show.id, Booking.status == CONFIRMED)
    )
    booking_ids = list(result.scalars().all())

    cancelled = 0
    if booking_ids:
        claim = await db.execute(
            update(Booking)
            .where(Booking.id.in_(booking_ids), Booking.status == CONFIRMED)
            .values(
                status=CANCELLED,
                cancelled_at=datetime.now(timezone.utc),
                cancel_reason="admin_reset",
            )
        )
        cancelled = claim.rowcount

    sold_ids = [seat.id for seat in inventory.load_seats() if seat.status == SeatStatus.SOLD]
    snapshot = inventory.snapshot(sold_ids)
    released = inventory.reset_sold(principal.id, booking_ids=booking_ids)

    async with persist_or_restore(db, inventory, snapshot):
        await write_seat_states(db, show.id, released)

    booking_cancellations.labels(reason="admin_reset").inc(cancelled)
    logger.warning(
        "show_reset",
        actor=principal.id,
        actor_name=principal.name,
        seats_released=len(released),
        bookings_cancelled=cancelled,
    )
    return {
        "show_id": show.id,
        "seats_released": len(released),
        "bookings_cancelled": cancelled,
    }
