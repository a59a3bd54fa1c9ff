"""
Seat identity, layout math and the seat entity.

Seat ids encode position: "seat-17" is global seat 17, which in a 10-wide
grid is row 2, position 7. SeatNumber keeps that integer as a value type so
row/position math never goes through string parsing twice.
"""

import enum
import re
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Optional

SEAT_ID_PREFIX = "seat-"
_SEAT_ID_RE = re.compile(r"^seat-(\d+)$")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive datetimes (SQLite drops tzinfo) as UTC."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


class SeatStatus(str, enum.Enum):
    AVAILABLE = "available"
    SELECTED = "selected"  # client-local overlay, never stored
    RESERVED = "reserved"
    SOLD = "sold"


class SeatCategory(str, enum.Enum):
    PREMIUM = "premium"
    STANDARD = "standard"
    ECONOMY = "economy"


@dataclass(frozen=True)
class SeatLayout:
    rows: int = 10
    seats_per_row: int = 10
    section: str = "A"
    premium_rows: int = 3
    standard_rows: int = 7
    premium_price: int = 150
    standard_price: int = 100
    economy_price: int = 50

    @classmethod
    def from_settings(cls, settings) -> "SeatLayout":
        return cls(
            rows=settings.ROW_COUNT,
            seats_per_row=settings.SEATS_PER_ROW,
            section=settings.SECTION,
            premium_rows=settings.PREMIUM_ROWS,
            standard_rows=settings.STANDARD_ROWS,
            premium_price=settings.PREMIUM_PRICE,
            standard_price=settings.STANDARD_PRICE,
            economy_price=settings.ECONOMY_PRICE,
        )

    @property
    def capacity(self) -> int:
        return self.rows * self.seats_per_row

    def row_of(self, number: int) -> int:
        return (number - 1) // self.seats_per_row + 1

    def position_of(self, number: int) -> int:
        return (number - 1) % self.seats_per_row + 1

    def number_at(self, row: int, position: int) -> int:
        return (row - 1) * self.seats_per_row + position

    def category_for_row(self, row: int) -> SeatCategory:
        if row <= self.premium_rows:
            return SeatCategory.PREMIUM
        if row <= self.standard_rows:
            return SeatCategory.STANDARD
        return SeatCategory.ECONOMY

    def price_for(self, category: SeatCategory) -> int:
        return {
            SeatCategory.PREMIUM: self.premium_price,
            SeatCategory.STANDARD: self.standard_price,
            SeatCategory.ECONOMY: self.economy_price,
        }[category]


@dataclass(frozen=True, order=True)
class SeatNumber:
    """1-based global seat index; row and position are derived."""

    value: int
    seats_per_row: int = field(default=10, compare=False)

    def __post_init__(self):
        if self.value < 1:
            raise ValueError(f"Seat numbers are 1-based, got {self.value}")

    @classmethod
    def parse(cls, seat_id: str, seats_per_row: int = 10) -> "SeatNumber":
        match = _SEAT_ID_RE.match(seat_id)
        if not match:
            raise ValueError(f"Malformed seat id: {seat_id!r}")
        return cls(int(match.group(1)), seats_per_row)

    @classmethod
    def at(cls, row: int, position: int, seats_per_row: int = 10) -> "SeatNumber":
        if not 1 <= position <= seats_per_row:
            raise ValueError(f"Position {position} outside row of {seats_per_row}")
        return cls((row - 1) * seats_per_row + position, seats_per_row)

    @property
    def row(self) -> int:
        return (self.value - 1) // self.seats_per_row + 1

    @property
    def position(self) -> int:
        return (self.value - 1) % self.seats_per_row + 1

    @property
    def seat_id(self) -> str:
        return f"{SEAT_ID_PREFIX}{self.value}"

    def __str__(self) -> str:
        return self.seat_id


@dataclass
class Seat:
    ref: SeatNumber
    section: str
    category: SeatCategory
    price: int
    status: SeatStatus = SeatStatus.AVAILABLE
    reserved_until: Optional[datetime] = None
    reserved_by: Optional[str] = None
    booking_id: Optional[str] = None  # owner of a sold seat

    @property
    def id(self) -> str:
        return self.ref.seat_id

    @property
    def number(self) -> int:
        return self.ref.value

    @property
    def row(self) -> int:
        return self.ref.row

    @property
    def position(self) -> int:
        return self.ref.position

    def hold_expired(self, now: datetime) -> bool:
        return (
            self.status == SeatStatus.RESERVED
            and self.reserved_until is not None
            and self.reserved_until <= now
        )

    def effective_status(self, now: datetime) -> SeatStatus:
        """Stored status with lazy hold expiry applied."""
        if self.hold_expired(now):
            return SeatStatus.AVAILABLE
        return self.status

    def held_by(self, actor: str, now: datetime) -> bool:
        return self.effective_status(now) == SeatStatus.RESERVED and self.reserved_by == actor

    def copy(self) -> "Seat":
        return replace(self)

    def to_dict(self, now: Optional[datetime] = None) -> dict:
        now = now or utcnow()
        return {
            "id": self.id,
            "number": self.number,
            "row": self.row,
            "section": self.section,
            "category": self.category.value,
            "price": self.price,
            "status": self.effective_status(now).value,
        }


def build_seats(layout: SeatLayout) -> list[Seat]:
    """Fresh all-available grid in seat-number order."""
    seats = []
    for number in range(1, layout.capacity + 1):
        ref = SeatNumber(number, layout.seats_per_row)
        category = layout.category_for_row(ref.row)
        seats.append(
            Seat(
                ref=ref,
                section=layout.section,
                category=category,
                price=layout.price_for(category),
            )
        )
    return seats
