"""
Reservation service: time-boxed seat holds for external booking flows.

A hold moves seats available -> reserved with reserved_until set to the
reservation's expiry. Nothing clears an expired hold: once expires_at has
passed the seats read as available everywhere, and the reservation itself
reads as expired. A hold ends in one of three ways:

  - consumed: a booking finalized it (reserved -> sold, see booking_service)
  - released: the holder cancelled it (reserved -> available)
  - expired:  time ran out (computed on read, never written)
"""

from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from theater.core.config import get_settings
from theater.core.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
from theater.core.logging import get_logger, bind_show_context
from theater.core.metrics import record_reservation
from theater.core.security import Permission, Principal
from theater.domain.seat import SeatStatus, as_utc
from theater.models.reservation import Reservation
from theater.services.inventory_registry import InventoryRegistry
from theater.services.seat_store import persist_or_restore, write_seat_states
from theater.services.show_service import get_show

logger = get_logger(__name__)
settings = get_settings()

ACTIVE = "active"
CONSUMED = "consumed"
RELEASED = "released"
EXPIRED = "expired"


def effective_status(reservation: Reservation, now: datetime) -> str:
    if reservation.status == ACTIVE and as_utc(reservation.expires_at) <= now:
        return EXPIRED
    return reservation.status


async def create_reservation(
    db: AsyncSession,
    registry: InventoryRegistry,
    principal: Principal,
    show_id: str,
    seat_ids: list[str],
    duration_minutes: Optional[int] = None,
    external_booking_id: Optional[str] = None,
    metadata: Optional[dict] = None,
) -> Reservation:
    """
    Hold seats for the caller until now + duration_minutes.
    Raises 409 naming the seats that are sold or held by someone else.
    """
    duration = duration_minutes or settings.HOLD_DEFAULT_MINUTES
    if not 1 <= duration <= settings.HOLD_MAX_MINUTES:
        raise ValidationError(
            f"duration_minutes must be between 1 and {settings.HOLD_MAX_MINUTES}",
            {"duration_minutes": duration},
        )
    if not seat_ids:
        raise ValidationError("seat_ids must be a non-empty array")

    show = await get_show(db, show_id)
    bind_show_context(show.id)
    inventory = await registry.get(db, show)

    expires_at = inventory.now() + timedelta(minutes=duration)
    snapshot = inventory.snapshot(seat_ids)
    try:
        held = inventory.set_status(
            seat_ids, SeatStatus.RESERVED, principal.id, reserved_until=expires_at
        )
    except ConflictError:
        record_reservation("conflict")
        raise

    reservation = Reservation(
        show_id=show.id,
        seat_ids=[seat.id for seat in held],
        holder_id=principal.id,
        external_booking_id=external_booking_id,
        expires_at=expires_at,
        status=ACTIVE,
        hold_metadata=metadata or {},
    )
    async with persist_or_restore(db, inventory, snapshot):
        db.add(reservation)
        await write_seat_states(db, show.id, held)
    await db.refresh(reservation)

    record_reservation("held")
    logger.info(
        "reservation_created",
        reservation_id=reservation.id,
        holder=principal.id,
        seat_ids=reservation.seat_ids,
        expires_at=expires_at.isoformat(),
    )
    return reservation


async def get_reservation(db: AsyncSession, principal: Principal, reservation_id: str) -> Reservation:
    result = await db.execute(select(Reservation).where(Reservation.id == reservation_id))
    reservation = result.scalar_one_or_none()
    if not reservation:
        raise NotFoundError(f"Reservation {reservation_id} not found")
    if reservation.holder_id != principal.id and not principal.can(Permission.ADMIN):
        raise ForbiddenError("Reservation belongs to another API key")
    return reservation


async def release_reservation(
    db: AsyncSession,
    registry: InventoryRegistry,
    principal: Principal,
    reservation_id: str,
) -> Reservation:
    """
    Give held seats back. Seats whose hold already lapsed (or were taken
    since) are left alone; only seats this reservation still holds move.
    """
    reservation = await get_reservation(db, principal, reservation_id)
    show = await get_show(db, reservation.show_id)
    bind_show_context(show.id)
    inventory = await registry.get(db, show)
    now = inventory.now()

    status = effective_status(reservation, now)
    if status in (CONSUMED, RELEASED):
        raise ConflictError(f"Reservation {reservation.id} is already {status}")

    still_held = []
    for seat_id in reservation.seat_ids:
        seat = inventory.get_seat(seat_id)
        if seat is not None and seat.held_by(reservation.holder_id, now):
            still_held.append(seat_id)

    snapshot = inventory.snapshot(still_held)
    released = []
    if still_held:
        released = inventory.set_status(
            still_held,
            SeatStatus.AVAILABLE,
            principal.id,
            force=principal.id != reservation.holder_id,
        )

    async with persist_or_restore(db, inventory, snapshot):
        reservation.status = RELEASED
        await write_seat_states(db, show.id, released)
    await db.refresh(reservation)

    record_reservation("released")
    logger.info(
        "reservation_released",
        reservation_id=reservation.id,
        actor=principal.id,
        seats_released=len(released),
    )
    return reservation
