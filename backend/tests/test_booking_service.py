"""
Tests for booking service cancellation and reset against the live inventory.
"""

import asyncio

import pytest
import pytest_asyncio
from sqlalchemy import select

from theater.core.exceptions import InvalidTransitionError
from theater.domain.seat import SeatStatus
from theater.models.booking import Booking
from theater.models.seat import SeatRecord
from theater.schemas.booking import BookingCreate, CustomerInfo
from theater.services import booking_service
from theater.services.auth_service import create_api_key, principal_for


async def _principal(db_session, name, permissions):
    key, _ = await create_api_key(db_session, name, permissions)
    await db_session.commit()
    return principal_for(key)


@pytest_asyncio.fixture
async def partner(db_session):
    return await _principal(db_session, "Partner Booking", ["read", "book", "cancel"])


@pytest_asyncio.fixture
async def admin(db_session):
    return await _principal(db_session, "Administrator", ["admin"])


def _order(show, *seat_ids):
    return BookingCreate(
        show_id=show.id,
        seat_ids=list(seat_ids),
        customer_info=CustomerInfo(name="Ada Lovelace", email="ada@example.com"),
    )


@pytest.mark.asyncio
async def test_booking_owns_its_sold_seats(db_session, registry, show, partner):
    booking = await booking_service.create_booking(db_session, registry, partner, _order(show, "seat-1", "seat-2"))

    inventory = await registry.get(db_session, show)
    assert inventory.get_seat("seat-1").booking_id == booking.id

    result = await db_session.execute(
        select(SeatRecord.booking_id).where(SeatRecord.show_id == show.id, SeatRecord.seat_id == "seat-2")
    )
    assert result.scalar_one() == booking.id


@pytest.mark.asyncio
async def test_late_duplicate_cancel_leaves_resold_seat_alone(db_session, registry, show, partner, monkeypatch):
    """
    A cancel that read the booking before a concurrent cancel committed must
    not release the seat once another booking has bought it.
    """
    first = await booking_service.create_booking(db_session, registry, partner, _order(show, "seat-1"))

    load_inventory = registry.get
    reached = asyncio.Event()
    resume = asyncio.Event()

    async def get_and_wait(db, show_):
        inventory = await load_inventory(db, show_)
        if not reached.is_set():
            reached.set()
            await resume.wait()
        return inventory

    monkeypatch.setattr(registry, "get", get_and_wait)

    slow_cancel = asyncio.create_task(
        booking_service.cancel_booking(db_session, registry, partner, first.id)
    )
    await reached.wait()

    await booking_service.cancel_booking(db_session, registry, partner, first.id)
    second = await booking_service.create_booking(db_session, registry, partner, _order(show, "seat-1"))

    resume.set()
    with pytest.raises(InvalidTransitionError):
        await slow_cancel

    inventory = await load_inventory(db_session, show)
    seat = inventory.get_seat("seat-1")
    assert seat.status == SeatStatus.SOLD
    assert seat.booking_id == second.id

    result = await db_session.execute(select(Booking.status).where(Booking.id == second.id))
    assert result.scalar_one() == "confirmed"


@pytest.mark.asyncio
async def test_cancel_after_admin_reset_is_rejected(db_session, registry, show, partner, admin):
    booking = await booking_service.create_booking(db_session, registry, partner, _order(show, "seat-10"))
    await booking_service.reset_show(db_session, registry, admin, show.id)
    rebooked = await booking_service.create_booking(db_session, registry, partner, _order(show, "seat-10"))

    with pytest.raises(InvalidTransitionError):
        await booking_service.cancel_booking(db_session, registry, partner, booking.id)

    inventory = await registry.get(db_session, show)
    assert inventory.get_seat("seat-10").booking_id == rebooked.id


@pytest.mark.asyncio
async def test_reset_cancels_confirmed_bookings_and_frees_their_seats(db_session, registry, show, partner, admin):
    await booking_service.create_booking(db_session, registry, partner, _order(show, "seat-1", "seat-2"))
    cancelled = await booking_service.create_booking(db_session, registry, partner, _order(show, "seat-3"))
    await booking_service.cancel_booking(db_session, registry, partner, cancelled.id)

    summary = await booking_service.reset_show(db_session, registry, admin, show.id)

    assert summary == {"show_id": show.id, "seats_released": 2, "bookings_cancelled": 1}
    inventory = await registry.get(db_session, show)
    assert inventory.statistics()["sold"] == 0

    result = await db_session.execute(
        select(SeatRecord.status, SeatRecord.booking_id).where(
            SeatRecord.show_id == show.id, SeatRecord.seat_id == "seat-1"
        )
    )
    assert tuple(result.one()) == ("available", None)
