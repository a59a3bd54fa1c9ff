"""
Booking endpoints: finalize seats, list and cancel bookings.
"""

from typing import Optional

from fastapi import APIRouter, Body, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from theater.api.deps import get_current_principal, get_registry, require_permission
from theater.core.security import Permission, Principal
from theater.db.session import get_db
from theater.models.booking import Booking
from theater.schemas.booking import (
    BookingCancelRequest,
    BookingCancelResponse,
    BookingCreate,
    BookingResponse,
)
from theater.services.booking_service import cancel_booking, create_booking, get_booking, list_bookings
from theater.services.cache_service import invalidate_show_cache
from theater.services.inventory_registry import InventoryRegistry

router = APIRouter(prefix="/bookings", tags=["Bookings"])


def _to_response(booking: Booking) -> BookingResponse:
    return BookingResponse(
        id=booking.id,
        show_id=booking.show_id,
        seat_ids=booking.seat_ids,
        seats=booking.seats,
        customer_info={
            "name": booking.customer_name,
            "email": booking.customer_email,
            "phone": booking.customer_phone,
        },
        total_price=booking.total_price,
        status=booking.status,
        booked_at=booking.booked_at,
        notes=booking.notes,
        reservation_id=booking.reservation_id,
    )


@router.post(
    "",
    response_model=BookingResponse,
    response_model_by_alias=True,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
)
async def book_seats(
    booking_data: BookingCreate,
    principal: Principal = Depends(require_permission(Permission.BOOK)),
    registry: InventoryRegistry = Depends(get_registry),
    db: AsyncSession = Depends(get_db),
):
    """
    Book seats for a show.

    Seats come from exactly one source: explicit `seatIds`, the best block
    of `partySize` seats around `anchorSeatId`, or a live `reservationId`.
    Of two overlapping bookings exactly one succeeds; the other gets a 409
    listing the seats it lost.
    """
    booking = await create_booking(db, registry, principal, booking_data)
    await invalidate_show_cache()
    return _to_response(booking)


@router.get("", response_model=list[BookingResponse], response_model_exclude_none=True)
async def list_own_bookings(
    show_id: Optional[str] = None,
    principal: Principal = Depends(require_permission(Permission.READ)),
    db: AsyncSession = Depends(get_db),
):
    """Bookings made with the calling API key, newest first."""
    bookings = await list_bookings(db, principal, show_id=show_id)
    return [_to_response(booking) for booking in bookings]


@router.get("/{booking_id}", response_model=BookingResponse, response_model_exclude_none=True)
async def read_booking(
    booking_id: str,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    booking = await get_booking(db, principal, booking_id)
    return _to_response(booking)


async def _cancel(
    booking_id: str,
    cancel_request: Optional[BookingCancelRequest],
    principal: Principal,
    registry: InventoryRegistry,
    db: AsyncSession,
) -> BookingCancelResponse:
    reason = cancel_request.reason if cancel_request else None
    booking = await cancel_booking(db, registry, principal, booking_id, reason)
    await invalidate_show_cache()
    return BookingCancelResponse(
        booking_id=booking.id,
        status=booking.status,
        cancelled_at=booking.cancelled_at,
        reason=booking.cancel_reason,
        refund_amount=booking.total_price,
    )


@router.delete("/{booking_id}", response_model=BookingCancelResponse)
async def cancel_booking_endpoint(
    booking_id: str,
    cancel_request: Optional[BookingCancelRequest] = Body(default=None),
    principal: Principal = Depends(require_permission(Permission.CANCEL)),
    registry: InventoryRegistry = Depends(get_registry),
    db: AsyncSession = Depends(get_db),
):
    """Cancel a booking and release its seats back to the show."""
    return await _cancel(booking_id, cancel_request, principal, registry, db)


@router.post("/{booking_id}/cancel", response_model=BookingCancelResponse)
async def cancel_booking_post(
    booking_id: str,
    cancel_request: Optional[BookingCancelRequest] = Body(default=None),
    principal: Principal = Depends(require_permission(Permission.CANCEL)),
    registry: InventoryRegistry = Depends(get_registry),
    db: AsyncSession = Depends(get_db),
):
    """Same as DELETE, for clients that cannot send a body with DELETE."""
    return await _cancel(booking_id, cancel_request, principal, registry, db)
