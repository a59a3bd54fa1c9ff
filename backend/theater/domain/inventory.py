"""
Seat inventory for one show.

CONCURRENCY STRATEGY: one writer per show
=========================================

Problem:
  Two customers confirm overlapping seat sets at the same moment. Both see
  the seats as available, both mark them sold. Result: double booking.

Solution:
  Every SeatInventory owns a lock. set_status validates the whole id set and
  applies the change inside one critical section, so two calls touching any
  common seat are serialized and the second one sees the first one's result.
  Validation happens before the first write, which means a rejected call
  never leaves a partially applied transition behind.

Hold expiry is lazy: a reserved seat whose reserved_until has passed counts
as available on every read path (is_available, row_slots, set_status
validation, to_dict). Nothing sweeps expired holds.
"""

import threading
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Iterable, Optional

from theater.core.exceptions import (
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from theater.core.logging import get_logger
from theater.core.metrics import record_transition, seat_transition_latency
from theater.domain.seat import (
    SEAT_ID_PREFIX,
    Seat,
    SeatCategory,
    SeatLayout,
    SeatStatus,
    build_seats,
    utcnow,
)

logger = get_logger(__name__)

# Effective source states each target accepts. SELECTED never reaches the
# store, so "selected -> sold" is validated as "available -> sold".
ALLOWED_SOURCES = {
    SeatStatus.SELECTED: frozenset({SeatStatus.AVAILABLE}),
    SeatStatus.RESERVED: frozenset({SeatStatus.AVAILABLE}),
    SeatStatus.SOLD: frozenset({SeatStatus.AVAILABLE, SeatStatus.RESERVED}),
    SeatStatus.AVAILABLE: frozenset({SeatStatus.SOLD, SeatStatus.RESERVED}),
}


@dataclass(frozen=True)
class RowSlot:
    position: int
    seat_id: str
    available: bool


@dataclass
class _RowSnapshot:
    slots: list
    built_at: datetime
    valid_until: Optional[datetime]  # earliest live hold expiry in the row

    def covers(self, now: datetime) -> bool:
        if now < self.built_at:
            return False
        return self.valid_until is None or now < self.valid_until


class SeatInventory:
    """Authoritative seat state for one show."""

    def __init__(
        self,
        show_id: str,
        seats: Iterable[Seat],
        layout: Optional[SeatLayout] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.show_id = show_id
        self.layout = layout or SeatLayout()
        self._clock = clock
        self._seats = {seat.id: seat for seat in sorted(seats, key=lambda s: s.number)}
        self._rows: dict[int, _RowSnapshot] = {}
        self._lock = threading.RLock()

    @classmethod
    def fresh(cls, show_id: str, layout: Optional[SeatLayout] = None, **kwargs) -> "SeatInventory":
        layout = layout or SeatLayout()
        return cls(show_id, build_seats(layout), layout=layout, **kwargs)

    def now(self) -> datetime:
        return self._clock()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def load_seats(self) -> list[Seat]:
        """All seats in seat-number order (copies, safe to hand out)."""
        with self._lock:
            return [seat.copy() for seat in self._seats.values()]

    def get_seat(self, seat_id: str) -> Optional[Seat]:
        with self._lock:
            seat = self._seats.get(seat_id)
            return seat.copy() if seat else None

    def is_available(self, seat: Seat, now: Optional[datetime] = None) -> bool:
        now = now or self.now()
        return seat.effective_status(now) == SeatStatus.AVAILABLE

    def total_price(self, seat_ids: Iterable[str]) -> int:
        with self._lock:
            return sum(seat.price for seat in self._resolve(seat_ids))

    def row_slots(self, row: int, now: Optional[datetime] = None) -> list[RowSlot]:
        """Availability of every position in a row, left to right."""
        if not 1 <= row <= self.layout.rows:
            raise NotFoundError(f"Row {row} does not exist")
        now = now or self.now()
        with self._lock:
            snapshot = self._rows.get(row)
            if snapshot is None or not snapshot.covers(now):
                snapshot = self._build_row(row, now)
                self._rows[row] = snapshot
            return list(snapshot.slots)

    def statistics(self, now: Optional[datetime] = None) -> dict:
        now = now or self.now()
        counts = {status: 0 for status in (SeatStatus.AVAILABLE, SeatStatus.RESERVED, SeatStatus.SOLD)}
        categories = {category.value: 0 for category in SeatCategory}
        with self._lock:
            for seat in self._seats.values():
                counts[seat.effective_status(now)] += 1
                categories[seat.category.value] += 1
            total = len(self._seats)
        return {
            "total": total,
            "available": counts[SeatStatus.AVAILABLE],
            "sold": counts[SeatStatus.SOLD],
            "reserved": counts[SeatStatus.RESERVED],
            "occupancy_percent": round(counts[SeatStatus.SOLD] / total * 100, 2) if total else 0,
            "categories": categories,
        }

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def set_status(
        self,
        seat_ids: Iterable[str],
        new_status: SeatStatus,
        actor: str,
        *,
        reserved_until: Optional[datetime] = None,
        booking_id: Optional[str] = None,
        force: bool = False,
    ) -> list[Seat]:
        """
        Move every seat in seat_ids to new_status, or none of them.

        Raises ConflictError naming the seats that are taken (sold, or held
        by someone else), InvalidTransitionError for a release of seats that
        are already free, NotFoundError for unknown ids. `force` lets an
        administrator release or finalize holds owned by another actor.
        Sold seats remember `booking_id` so a later cancellation only
        releases seats its booking still owns.
        """
        ids = list(dict.fromkeys(seat_ids))
        if not ids:
            raise ValidationError("At least one seat id is required")
        new_status = SeatStatus(new_status)

        started = time.perf_counter()
        with self._lock:
            now = self.now()
            seats = self._resolve(ids)
            if new_status == SeatStatus.RESERVED and (reserved_until is None or reserved_until <= now):
                raise ValidationError("A hold needs an expiry in the future")

            self._validate(seats, new_status, actor, now, force)

            if new_status != SeatStatus.SELECTED:
                for seat in seats:
                    self._apply(seat, new_status, actor, reserved_until, booking_id)
                self._invalidate_rows(seat.row for seat in seats)
            result = [seat.copy() for seat in seats]
        seat_transition_latency.observe(time.perf_counter() - started)

        record_transition(new_status.value, "applied")
        logger.info(
            "seats_transitioned",
            show_id=self.show_id,
            seat_ids=ids,
            status=new_status.value,
            actor=actor,
        )
        return result

    def release_booking(self, booking_id: str, seat_ids: Iterable[str], actor: str) -> list[Seat]:
        """
        Put the seats a booking still owns back on sale.

        Seats of seat_ids that were released earlier, or resold to another
        booking since, are left alone.
        """
        with self._lock:
            released = [
                seat
                for seat in self._resolve(dict.fromkeys(seat_ids))
                if seat.status == SeatStatus.SOLD and seat.booking_id == booking_id
            ]
            for seat in released:
                self._apply(seat, SeatStatus.AVAILABLE, actor, None, None)
            self._invalidate_rows(seat.row for seat in released)
            result = [seat.copy() for seat in released]

        if result:
            record_transition(SeatStatus.AVAILABLE.value, "applied")
        logger.info(
            "booking_seats_released",
            show_id=self.show_id,
            booking_id=booking_id,
            seat_ids=[seat.id for seat in result],
            actor=actor,
        )
        return result

    def reset_sold(self, actor: str, booking_ids: Optional[Iterable[str]] = None) -> list[Seat]:
        """
        Administrative bulk override: sold seats back to available.

        With booking_ids, only seats owned by those bookings (or by no
        booking at all) are released; seats sold to any other booking stay.
        """
        owners = None if booking_ids is None else set(booking_ids)
        with self._lock:
            released = [
                seat
                for seat in self._seats.values()
                if seat.status == SeatStatus.SOLD
                and (owners is None or seat.booking_id is None or seat.booking_id in owners)
            ]
            for seat in released:
                self._apply(seat, SeatStatus.AVAILABLE, actor, None, None)
            self._invalidate_rows(seat.row for seat in released)
            result = [seat.copy() for seat in released]
        logger.warning(
            "inventory_reset",
            show_id=self.show_id,
            actor=actor,
            seats_released=len(result),
        )
        return result

    def snapshot(self, seat_ids: Iterable[str]) -> list[Seat]:
        with self._lock:
            return [seat.copy() for seat in self._resolve(seat_ids)]

    def restore(self, snapshot: Iterable[Seat]) -> None:
        """Put seats back exactly as a previous snapshot recorded them."""
        with self._lock:
            rows = set()
            for saved in snapshot:
                seat = self._seats[saved.id]
                seat.status = saved.status
                seat.reserved_until = saved.reserved_until
                seat.reserved_by = saved.reserved_by
                seat.booking_id = saved.booking_id
                rows.add(seat.row)
            self._invalidate_rows(rows)
        logger.info("inventory_restored", show_id=self.show_id, rows=sorted(rows))

    # ------------------------------------------------------------------
    # Internals (callers hold the lock)
    # ------------------------------------------------------------------

    def _resolve(self, seat_ids: Iterable[str]) -> list[Seat]:
        seats, missing = [], []
        for seat_id in seat_ids:
            seat = self._seats.get(seat_id)
            if seat is None:
                missing.append(seat_id)
            else:
                seats.append(seat)
        if missing:
            raise NotFoundError(
                f"Seats not found for show {self.show_id}: {', '.join(missing)}",
                {"seat_ids": missing},
            )
        return seats

    def _validate(self, seats, new_status, actor, now, force) -> None:
        sources = ALLOWED_SOURCES[new_status]
        conflicts, invalid = [], []
        for seat in seats:
            current = seat.effective_status(now)
            if new_status == SeatStatus.AVAILABLE and current == SeatStatus.AVAILABLE:
                invalid.append(seat.id)
            elif current not in sources:
                conflicts.append(seat.id)
            elif current == SeatStatus.RESERVED and seat.reserved_by != actor and not force:
                # held by someone else: only the holder finalizes or releases
                conflicts.append(seat.id)

        if conflicts:
            record_transition(new_status.value, "conflict")
            raise ConflictError(
                f"Seats no longer available for {new_status.value}: {', '.join(conflicts)}",
                seat_ids=conflicts,
            )
        if invalid:
            record_transition(new_status.value, "invalid")
            raise InvalidTransitionError(
                f"Seats are already available: {', '.join(invalid)}",
                {"seat_ids": invalid},
            )

    @staticmethod
    def _apply(seat: Seat, new_status: SeatStatus, actor: str, reserved_until, booking_id) -> None:
        seat.status = new_status
        seat.booking_id = booking_id if new_status == SeatStatus.SOLD else None
        if new_status == SeatStatus.RESERVED:
            seat.reserved_until = reserved_until
            seat.reserved_by = actor
        else:
            seat.reserved_until = None
            seat.reserved_by = None

    def _build_row(self, row: int, now: datetime) -> _RowSnapshot:
        slots, valid_until = [], None
        for position in range(1, self.layout.seats_per_row + 1):
            seat = self._seats.get(f"{SEAT_ID_PREFIX}{self.layout.number_at(row, position)}")
            if seat is None:
                continue
            available = seat.effective_status(now) == SeatStatus.AVAILABLE
            if seat.status == SeatStatus.RESERVED and not available and seat.reserved_until:
                if valid_until is None or seat.reserved_until < valid_until:
                    valid_until = seat.reserved_until
            slots.append(RowSlot(position=position, seat_id=seat.id, available=available))
        return _RowSnapshot(slots=slots, built_at=now, valid_until=valid_until)

    def _invalidate_rows(self, rows: Iterable[int]) -> None:
        for row in set(rows):
            self._rows.pop(row, None)
