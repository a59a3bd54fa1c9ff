"""
Show service: schedule, lookups and seat listings.
"""

from datetime import date, datetime, time, timedelta, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from theater.core.config import get_settings
from theater.core.exceptions import NotFoundError
from theater.core.logging import get_logger
from theater.domain.seat import SeatLayout, build_seats
from theater.models.seat import SeatRecord
from theater.models.show import Show
from theater.services.inventory_registry import InventoryRegistry

logger = get_logger(__name__)
settings = get_settings()

REPERTOIRE = [
    (
        "The Phantom of the Opera",
        "A haunting tale of love, obsession, and mystery beneath the Paris Opera House",
    ),
    (
        "Hamilton",
        "The revolutionary musical about Alexander Hamilton and the founding of America",
    ),
    (
        "The Lion King",
        "Disney's spectacular musical bringing the African savanna to life",
    ),
]


def today() -> date:
    return datetime.now(timezone.utc).date()


async def create_show(
    db: AsyncSession,
    title: str,
    show_date: date,
    description: Optional[str] = None,
    show_time: Optional[time] = None,
    layout: Optional[SeatLayout] = None,
) -> Show:
    """Create a show with a fresh, fully available seat grid."""
    layout = layout or SeatLayout.from_settings(settings)
    show = Show(
        title=title,
        description=description,
        show_date=show_date,
        show_time=show_time or time.fromisoformat(settings.SHOW_TIME),
        duration_minutes=settings.SHOW_DURATION_MINUTES,
        section=layout.section,
        row_count=layout.rows,
        seats_per_row=layout.seats_per_row,
        is_active=True,
    )
    db.add(show)
    await db.flush()

    db.add_all(
        SeatRecord(
            show_id=show.id,
            seat_id=seat.id,
            number=seat.number,
            row=seat.row,
            section=seat.section,
            category=seat.category.value,
            price=seat.price,
            status=seat.status.value,
        )
        for seat in build_seats(layout)
    )
    await db.flush()
    await db.refresh(show)

    logger.info("show_created", show_id=show.id, title=title, date=show_date.isoformat(), seats=layout.capacity)
    return show


async def ensure_schedule(db: AsyncSession, days: Optional[int] = None) -> list[Show]:
    """
    Make sure a show exists for today and the following days.
    Titles rotate through the repertoire by date so reruns are stable.
    """
    days = days or settings.SHOW_SCHEDULE_DAYS
    start = today()
    created = []
    for offset in range(days):
        show_date = start + timedelta(days=offset)
        existing = await db.execute(select(Show.id).where(Show.show_date == show_date))
        if existing.scalar_one_or_none():
            continue
        title, description = REPERTOIRE[show_date.toordinal() % len(REPERTOIRE)]
        created.append(await create_show(db, title, show_date, description))
    await db.commit()

    if created:
        logger.info("schedule_extended", shows_created=len(created), days=days)
    return created


async def get_show(db: AsyncSession, show_id: str) -> Show:
    result = await db.execute(select(Show).where(Show.id == show_id))
    show = result.scalar_one_or_none()
    if not show:
        raise NotFoundError(f"Show {show_id} not found")
    return show


async def get_show_by_date(db: AsyncSession, show_date: date) -> Show:
    result = await db.execute(
        select(Show).where(Show.show_date == show_date, Show.is_active.is_(True))
    )
    show = result.scalar_one_or_none()
    if not show:
        raise NotFoundError(
            f"No show found for date {show_date.isoformat()}. "
            "Shows are automatically generated for today, tomorrow, and the day after."
        )
    return show


async def list_upcoming_shows(
    db: AsyncSession,
    registry: InventoryRegistry,
    days: int = 3,
    include_stats: bool = False,
) -> list[dict]:
    """Active shows from today on, optionally with live availability."""
    start = today()
    result = await db.execute(
        select(Show)
        .where(
            Show.is_active.is_(True),
            Show.show_date >= start,
            Show.show_date < start + timedelta(days=days),
        )
        .order_by(Show.show_date.asc())
    )
    shows = []
    for show in result.scalars().all():
        entry = show_summary(show)
        if include_stats:
            inventory = await registry.get(db, show)
            stats = inventory.statistics()
            stats.pop("categories")
            entry["availability"] = stats
        shows.append(entry)
    return shows


def show_summary(show: Show) -> dict:
    return {
        "id": show.id,
        "title": show.title,
        "description": show.description,
        "date": show.show_date,
        "time": show.show_time,
        "duration_minutes": show.duration_minutes,
    }


async def seat_listing(
    db: AsyncSession,
    registry: InventoryRegistry,
    show: Show,
    category: Optional[str] = None,
    status: Optional[str] = None,
    min_price: Optional[int] = None,
    max_price: Optional[int] = None,
) -> dict:
    """Seat map for a show with filters applied to the effective seat state."""
    inventory = await registry.get(db, show)
    now = inventory.now()
    seats = [seat.to_dict(now) for seat in inventory.load_seats()]

    if category:
        seats = [s for s in seats if s["category"] == category]
    if status:
        seats = [s for s in seats if s["status"] == status]
    if min_price is not None:
        seats = [s for s in seats if s["price"] >= min_price]
    if max_price is not None:
        seats = [s for s in seats if s["price"] <= max_price]

    stats = inventory.statistics(now)
    categories = stats.pop("categories")

    if min_price is not None or max_price is not None:
        price_range = f"{min_price if min_price is not None else 0}-{max_price if max_price is not None else 'inf'}"
    else:
        price_range = "all"

    return {
        "show": show_summary(show),
        "seats": seats,
        "statistics": stats,
        "categories": categories,
        "filters_applied": {
            "date": show.show_date.isoformat(),
            "category": category or "all",
            "status": status or "all",
            "price_range": price_range,
        },
    }
