"""
Tests for SeatInventory transitions, including concurrency scenarios.
"""

import threading
from datetime import timedelta

import pytest

from theater.core.exceptions import (
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from theater.domain.seat import SeatStatus


def _status(inventory, seat_id):
    return inventory.get_seat(seat_id).effective_status(inventory.now())


def test_fresh_inventory_is_fully_available(inventory):
    seats = inventory.load_seats()
    assert len(seats) == 100
    assert all(inventory.is_available(seat) for seat in seats)


def test_sell_available_seats(inventory):
    sold = inventory.set_status(["seat-1", "seat-2"], SeatStatus.SOLD, "partner")
    assert [seat.id for seat in sold] == ["seat-1", "seat-2"]
    assert _status(inventory, "seat-1") == SeatStatus.SOLD


def test_conflict_leaves_every_seat_unchanged(inventory):
    """One sold seat in the set fails the whole call; nothing is applied."""
    inventory.set_status(["seat-3"], SeatStatus.SOLD, "first")

    with pytest.raises(ConflictError) as exc_info:
        inventory.set_status(["seat-2", "seat-3", "seat-4"], SeatStatus.SOLD, "second")

    assert exc_info.value.seat_ids == ["seat-3"]
    assert _status(inventory, "seat-2") == SeatStatus.AVAILABLE
    assert _status(inventory, "seat-4") == SeatStatus.AVAILABLE


def test_unknown_seat_is_not_found(inventory):
    with pytest.raises(NotFoundError):
        inventory.set_status(["seat-1", "seat-999"], SeatStatus.SOLD, "partner")
    assert _status(inventory, "seat-1") == SeatStatus.AVAILABLE


def test_empty_seat_set_is_rejected(inventory):
    with pytest.raises(ValidationError):
        inventory.set_status([], SeatStatus.SOLD, "partner")


def test_releasing_an_available_seat_is_invalid(inventory):
    with pytest.raises(InvalidTransitionError):
        inventory.set_status(["seat-1"], SeatStatus.AVAILABLE, "partner")


def test_hold_requires_future_expiry(inventory, clock):
    with pytest.raises(ValidationError):
        inventory.set_status(["seat-1"], SeatStatus.RESERVED, "partner")
    with pytest.raises(ValidationError):
        inventory.set_status(
            ["seat-1"], SeatStatus.RESERVED, "partner", reserved_until=clock() - timedelta(seconds=1)
        )


def test_holder_finalizes_own_hold(inventory, clock):
    inventory.set_status(
        ["seat-5"], SeatStatus.RESERVED, "partner", reserved_until=clock() + timedelta(minutes=15)
    )
    inventory.set_status(["seat-5"], SeatStatus.SOLD, "partner")
    seat = inventory.get_seat("seat-5")
    assert seat.status == SeatStatus.SOLD
    assert seat.reserved_by is None
    assert seat.reserved_until is None


def test_hold_of_another_actor_conflicts(inventory, clock):
    inventory.set_status(
        ["seat-5"], SeatStatus.RESERVED, "partner", reserved_until=clock() + timedelta(minutes=15)
    )
    with pytest.raises(ConflictError):
        inventory.set_status(["seat-5"], SeatStatus.SOLD, "intruder")
    with pytest.raises(ConflictError):
        inventory.set_status(["seat-5"], SeatStatus.AVAILABLE, "intruder")

    inventory.set_status(["seat-5"], SeatStatus.AVAILABLE, "admin", force=True)
    assert _status(inventory, "seat-5") == SeatStatus.AVAILABLE


def test_expired_hold_frees_seat_without_any_call(inventory, clock):
    inventory.set_status(
        ["seat-5"], SeatStatus.RESERVED, "partner", reserved_until=clock() + timedelta(minutes=15)
    )
    assert not inventory.is_available(inventory.get_seat("seat-5"))

    clock.advance(minutes=15)

    assert inventory.is_available(inventory.get_seat("seat-5"))
    inventory.set_status(["seat-5"], SeatStatus.SOLD, "someone-else")
    assert _status(inventory, "seat-5") == SeatStatus.SOLD


def test_row_slots_follow_hold_expiry(inventory, clock):
    inventory.set_status(
        ["seat-2"], SeatStatus.RESERVED, "partner", reserved_until=clock() + timedelta(minutes=1)
    )
    assert not inventory.row_slots(1)[1].available

    clock.advance(minutes=2)

    assert inventory.row_slots(1)[1].available


def test_selected_target_validates_without_changing_state(inventory):
    inventory.set_status(["seat-1"], SeatStatus.SELECTED, "partner")
    assert inventory.get_seat("seat-1").status == SeatStatus.AVAILABLE

    inventory.set_status(["seat-2"], SeatStatus.SOLD, "partner")
    with pytest.raises(ConflictError):
        inventory.set_status(["seat-2"], SeatStatus.SELECTED, "partner")


def test_total_price_ignores_status(inventory):
    """Row 1 is premium, row 10 economy."""
    assert inventory.total_price(["seat-1", "seat-100"]) == 200
    inventory.set_status(["seat-1"], SeatStatus.SOLD, "partner")
    assert inventory.total_price(["seat-1", "seat-100"]) == 200


def test_reset_sold_returns_seats_to_sale(inventory, clock):
    inventory.set_status(["seat-1", "seat-2"], SeatStatus.SOLD, "partner")
    inventory.set_status(
        ["seat-3"], SeatStatus.RESERVED, "partner", reserved_until=clock() + timedelta(minutes=5)
    )

    released = inventory.reset_sold("admin")

    assert sorted(seat.id for seat in released) == ["seat-1", "seat-2"]
    assert _status(inventory, "seat-1") == SeatStatus.AVAILABLE
    assert _status(inventory, "seat-3") == SeatStatus.RESERVED


def test_restore_undoes_a_transition(inventory):
    snapshot = inventory.snapshot(["seat-1", "seat-2"])
    inventory.set_status(["seat-1", "seat-2"], SeatStatus.SOLD, "partner")

    inventory.restore(snapshot)

    assert _status(inventory, "seat-1") == SeatStatus.AVAILABLE
    assert inventory.row_slots(1)[0].available


def test_statistics(inventory, clock):
    inventory.set_status(["seat-1", "seat-2"], SeatStatus.SOLD, "partner")
    inventory.set_status(
        ["seat-3"], SeatStatus.RESERVED, "partner", reserved_until=clock() + timedelta(minutes=5)
    )
    stats = inventory.statistics()
    assert stats["total"] == 100
    assert stats["sold"] == 2
    assert stats["reserved"] == 1
    assert stats["available"] == 97
    assert stats["occupancy_percent"] == 2.0
    assert stats["categories"] == {"premium": 30, "standard": 40, "economy": 30}


def test_concurrent_overlapping_sales_never_double_book(inventory):
    """
    Many threads try to buy overlapping pairs at once.
    Every seat ends up sold to at most one actor.
    """
    results = {}
    barrier = threading.Barrier(20)

    def buy(worker: int):
        seat_ids = [f"seat-{worker % 10 + 1}", f"seat-{(worker + 1) % 10 + 1}"]
        barrier.wait()
        try:
            inventory.set_status(seat_ids, SeatStatus.SOLD, f"worker-{worker}")
            results[worker] = seat_ids
        except ConflictError:
            results[worker] = None

    threads = [threading.Thread(target=buy, args=(i,)) for i in range(20)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    winners = [ids for ids in results.values() if ids]
    sold = [seat_id for ids in winners for seat_id in ids]
    assert winners
    assert len(sold) == len(set(sold))
    for seat_id in sold:
        assert _status(inventory, seat_id) == SeatStatus.SOLD


def test_total_price_of_nothing_is_zero(inventory):
    assert inventory.total_price([]) == 0


def test_sold_seats_remember_their_booking(inventory):
    inventory.set_status(["seat-1"], SeatStatus.SOLD, "partner", booking_id="BK1")
    assert inventory.get_seat("seat-1").booking_id == "BK1"


def test_release_booking_only_frees_seats_it_owns(inventory):
    inventory.set_status(["seat-1", "seat-2"], SeatStatus.SOLD, "partner", booking_id="BK1")
    inventory.release_booking("BK1", ["seat-1", "seat-2"], "partner")
    inventory.set_status(["seat-1"], SeatStatus.SOLD, "second", booking_id="BK2")

    released = inventory.release_booking("BK1", ["seat-1", "seat-2"], "partner")

    assert released == []
    assert _status(inventory, "seat-1") == SeatStatus.SOLD
    assert inventory.get_seat("seat-1").booking_id == "BK2"
    assert _status(inventory, "seat-2") == SeatStatus.AVAILABLE


def test_reset_sold_for_bookings_keeps_other_sales(inventory):
    inventory.set_status(["seat-1"], SeatStatus.SOLD, "partner", booking_id="BK1")
    inventory.set_status(["seat-2"], SeatStatus.SOLD, "partner", booking_id="BK2")
    inventory.set_status(["seat-3"], SeatStatus.SOLD, "partner")

    released = inventory.reset_sold("admin", booking_ids=["BK1"])

    assert sorted(seat.id for seat in released) == ["seat-1", "seat-3"]
    assert _status(inventory, "seat-2") == SeatStatus.SOLD


def test_row_cache_rebuilds_for_an_earlier_time(inventory, clock):
    held_at = clock()
    inventory.set_status(
        ["seat-5"], SeatStatus.RESERVED, "partner", reserved_until=held_at + timedelta(minutes=10)
    )
    clock.advance(minutes=20)
    assert inventory.row_slots(1)[4].available

    assert not inventory.row_slots(1, held_at + timedelta(minutes=5))[4].available
    assert inventory.row_slots(1)[4].available


def test_restore_brings_back_the_owning_booking(inventory):
    inventory.set_status(["seat-1"], SeatStatus.SOLD, "partner", booking_id="BK1")
    snapshot = inventory.snapshot(["seat-1"])
    inventory.release_booking("BK1", ["seat-1"], "partner")

    inventory.restore(snapshot)

    assert inventory.get_seat("seat-1").booking_id == "BK1"
