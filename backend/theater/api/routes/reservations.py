"""
Reservation endpoints: time-boxed seat holds for external booking flows.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from theater.api.deps import get_current_principal, get_registry, require_permission
from theater.core.security import Permission, Principal
from theater.db.session import get_db
from theater.models.reservation import Reservation
from theater.schemas.reservation import ReservationCreate, ReservationResponse
from theater.services.cache_service import invalidate_show_cache
from theater.services.inventory_registry import InventoryRegistry
from theater.services.reservation_service import (
    create_reservation,
    effective_status,
    get_reservation,
    release_reservation,
)

router = APIRouter(prefix="/reservations", tags=["Reservations"])


def _to_response(reservation: Reservation, registry: InventoryRegistry) -> ReservationResponse:
    return ReservationResponse(
        reservation_id=reservation.id,
        show_id=reservation.show_id,
        seat_ids=reservation.seat_ids,
        external_booking_id=reservation.external_booking_id,
        expires_at=reservation.expires_at,
        created_at=reservation.created_at,
        status=effective_status(reservation, registry.clock()),
    )


@router.post("", response_model=ReservationResponse, status_code=status.HTTP_201_CREATED)
async def hold_seats(
    data: ReservationCreate,
    principal: Principal = Depends(require_permission(Permission.BOOK)),
    registry: InventoryRegistry = Depends(get_registry),
    db: AsyncSession = Depends(get_db),
):
    """
    Hold seats until `duration_minutes` from now.

    Returns 409 with the unavailable seat ids when any seat is sold or held
    by someone else. The hold lapses on its own; no call is needed to end it.
    """
    reservation = await create_reservation(
        db,
        registry,
        principal,
        show_id=data.show_id,
        seat_ids=data.seat_ids,
        duration_minutes=data.duration_minutes,
        external_booking_id=data.external_booking_id,
        metadata=data.metadata,
    )
    await invalidate_show_cache()
    return _to_response(reservation, registry)


@router.get("/{reservation_id}", response_model=ReservationResponse)
async def read_reservation(
    reservation_id: str,
    principal: Principal = Depends(get_current_principal),
    registry: InventoryRegistry = Depends(get_registry),
    db: AsyncSession = Depends(get_db),
):
    reservation = await get_reservation(db, principal, reservation_id)
    return _to_response(reservation, registry)


@router.delete("/{reservation_id}", response_model=ReservationResponse)
async def release_seats(
    reservation_id: str,
    principal: Principal = Depends(get_current_principal),
    registry: InventoryRegistry = Depends(get_registry),
    db: AsyncSession = Depends(get_db),
):
    """Release a hold early and put its seats back on sale."""
    reservation = await release_reservation(db, registry, principal, reservation_id)
    await invalidate_show_cache()
    return _to_response(reservation, registry)
