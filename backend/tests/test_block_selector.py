"""
Tests for adjacent seat block selection.
"""

from datetime import timedelta

import pytest

from theater.core.exceptions import NotFoundError, ValidationError
from theater.domain.block_selector import BlockSelector
from theater.domain.seat import SeatStatus


def _seats(*numbers):
    return [f"seat-{n}" for n in numbers]


@pytest.fixture
def selector(inventory):
    return BlockSelector(inventory)


def test_single_seat_is_the_anchor(selector):
    assert selector.select("seat-5", 1) == ["seat-5"]


def test_single_unavailable_seat_is_empty(selector, inventory):
    inventory.set_status(["seat-5"], SeatStatus.SOLD, "partner")
    assert selector.select("seat-5", 1) == []


def test_unavailable_anchor_is_empty(selector, inventory):
    inventory.set_status(["seat-5"], SeatStatus.SOLD, "partner")
    assert selector.select("seat-5", 3) == []


def test_block_skips_sold_neighbour(selector, inventory):
    """Row of 10, seat 4 sold, anchor 5, k=3 -> seats 5, 6, 7."""
    inventory.set_status(["seat-4"], SeatStatus.SOLD, "partner")
    assert selector.select("seat-5", 3) == _seats(5, 6, 7)


def test_even_block_tie_break(selector):
    """Full row, anchor 5, k=4: the anchor sits just left of center, seats 4-7."""
    assert selector.select("seat-5", 4) == _seats(4, 5, 6, 7)


def test_odd_block_centers_the_anchor(selector):
    assert selector.select("seat-5", 3) == _seats(4, 5, 6)
    assert selector.select("seat-5", 5) == _seats(3, 4, 5, 6, 7)


def test_block_at_row_end_extends_left(selector):
    assert selector.select("seat-10", 3) == _seats(8, 9, 10)


def test_block_never_crosses_row_boundary(selector, inventory):
    """seat-10 ends row 1; seat-11 starts row 2 and is never considered."""
    inventory.set_status(["seat-8", "seat-9"], SeatStatus.SOLD, "partner")
    assert selector.select("seat-10", 3) == []


def test_gap_too_small_is_empty_not_shorter(selector, inventory):
    inventory.set_status(["seat-3", "seat-8"], SeatStatus.SOLD, "partner")
    assert selector.select("seat-5", 5) == []
    assert selector.select("seat-5", 4) == _seats(4, 5, 6, 7)


def test_block_in_later_row(selector):
    assert selector.select("seat-15", 2) == _seats(15, 16)


def test_full_row_block(selector):
    assert selector.select("seat-21", 10) == _seats(*range(21, 31))


def test_expired_hold_counts_as_available(selector, inventory, clock):
    inventory.set_status(
        ["seat-4"], SeatStatus.RESERVED, "partner", reserved_until=clock() + timedelta(minutes=15)
    )
    assert selector.select("seat-5", 3) == _seats(5, 6, 7)

    clock.advance(minutes=16)

    assert selector.select("seat-5", 3) == _seats(4, 5, 6)


def test_block_is_deterministic(selector, inventory):
    inventory.set_status(["seat-2", "seat-9"], SeatStatus.SOLD, "partner")
    first = selector.select("seat-6", 4)
    assert first == selector.select("seat-6", 4)
    assert len(first) == 4
    assert "seat-6" in first


@pytest.mark.parametrize("count", [0, 11, -1])
def test_party_size_out_of_range(selector, count):
    with pytest.raises(ValidationError):
        selector.select("seat-5", count)


def test_unknown_anchor(selector):
    with pytest.raises(NotFoundError):
        selector.select("seat-101", 2)


def test_live_hold_on_anchor_is_empty(selector, inventory, clock):
    inventory.set_status(
        ["seat-5"], SeatStatus.RESERVED, "partner", reserved_until=clock() + timedelta(minutes=15)
    )
    assert selector.select("seat-5", 3) == []
    assert selector.select("seat-5", 1) == []


def test_earlier_time_sees_hold_that_has_since_expired(selector, inventory, clock):
    held_at = clock()
    inventory.set_status(
        ["seat-5"], SeatStatus.RESERVED, "partner", reserved_until=held_at + timedelta(minutes=10)
    )
    clock.advance(minutes=20)
    assert selector.select("seat-4", 3) == _seats(3, 4, 5)

    earlier = selector.select("seat-4", 3, now=held_at + timedelta(minutes=5))

    assert len(earlier) == 3
    assert "seat-5" not in earlier
