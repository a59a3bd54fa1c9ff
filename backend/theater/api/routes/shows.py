"""
Show endpoints: schedule listing, seat maps and adjacent block previews.
"""

import datetime as dt
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from theater.api.deps import get_registry, require_permission
from theater.core.security import Permission, Principal
from theater.db.session import get_db
from theater.domain.block_selector import BlockSelector
from theater.domain.seat import SeatCategory, SeatStatus
from theater.schemas.seat import BlockPreviewResponse, SeatMapResponse
from theater.schemas.show import ShowListResponse
from theater.services.cache_service import get_cached_shows, set_cached_shows
from theater.services.inventory_registry import InventoryRegistry
from theater.services.show_service import (
    get_show,
    get_show_by_date,
    list_upcoming_shows,
    seat_listing,
    today,
)

router = APIRouter(prefix="/shows", tags=["Shows"])


@router.get("", response_model=ShowListResponse)
async def list_shows(
    days: int = Query(3, ge=1, le=30, description="How many days ahead to list"),
    include_stats: bool = Query(False, description="Attach live availability per show"),
    principal: Principal = Depends(require_permission(Permission.READ)),
    registry: InventoryRegistry = Depends(get_registry),
    db: AsyncSession = Depends(get_db),
):
    """
    Upcoming shows.

    Responses are cached in Redis for a short TTL; bookings, holds and
    cancellations invalidate the cache.
    """
    cached = await get_cached_shows(days, include_stats)
    if cached:
        cached["cached"] = True
        return cached

    shows = await list_upcoming_shows(db, registry, days=days, include_stats=include_stats)
    start = today()
    response = ShowListResponse(
        shows=shows,
        period={
            "start_date": start,
            "end_date": start + dt.timedelta(days=days - 1),
            "days_requested": days,
        },
        total_shows=len(shows),
        includes_availability_stats=include_stats,
    )
    await set_cached_shows(days, include_stats, response.model_dump(mode="json"))
    return response


@router.get("/{show_date}/seats", response_model=SeatMapResponse)
async def list_seats(
    show_date: dt.date,
    category: Optional[SeatCategory] = None,
    status: Optional[SeatStatus] = None,
    min_price: Optional[int] = Query(None, ge=0),
    max_price: Optional[int] = Query(None, ge=0),
    principal: Principal = Depends(require_permission(Permission.READ)),
    registry: InventoryRegistry = Depends(get_registry),
    db: AsyncSession = Depends(get_db),
):
    """Seat map of the show on `show_date`, with expired holds shown as available."""
    show = await get_show_by_date(db, show_date)
    return await seat_listing(
        db,
        registry,
        show,
        category=category.value if category else None,
        status=status.value if status else None,
        min_price=min_price,
        max_price=max_price,
    )


@router.get("/{show_id}/seats/{seat_id}/block", response_model=BlockPreviewResponse)
async def preview_block(
    show_id: str,
    seat_id: str,
    count: int = Query(1, ge=1, description="Party size"),
    principal: Principal = Depends(require_permission(Permission.READ)),
    registry: InventoryRegistry = Depends(get_registry),
    db: AsyncSession = Depends(get_db),
):
    """
    The block of `count` adjacent seats a booking anchored on `seat_id`
    would take right now. Nothing is held; an empty block means the row has
    no room for the party around that seat.
    """
    show = await get_show(db, show_id)
    inventory = await registry.get(db, show)
    seat_ids = BlockSelector(inventory).select(seat_id, count)
    anchor = inventory.get_seat(seat_id)
    return BlockPreviewResponse(
        show_id=show.id,
        anchor_seat_id=seat_id,
        count=count,
        seat_ids=seat_ids,
        total_price=inventory.total_price(seat_ids),
        available=bool(seat_ids),
        row=anchor.row if anchor else None,
    )
