"""
Tests for seat identity and layout math.
"""

from datetime import timedelta

import pytest

from theater.domain.seat import Seat, SeatCategory, SeatLayout, SeatNumber, SeatStatus, build_seats, utcnow


def test_seat_number_row_and_position():
    """seat-17 in a 10-wide grid is row 2, position 7."""
    ref = SeatNumber.parse("seat-17")
    assert ref.row == 2
    assert ref.position == 7
    assert ref.seat_id == "seat-17"


def test_seat_number_row_edges():
    assert SeatNumber(10).row == 1
    assert SeatNumber(10).position == 10
    assert SeatNumber(11).row == 2
    assert SeatNumber(11).position == 1


def test_seat_number_at_round_trips_grid_coordinates():
    assert SeatNumber.at(3, 4) == SeatNumber(24)


@pytest.mark.parametrize("seat_id", ["17", "seat-", "seat-x", "Seat-3", "seat-0"])
def test_malformed_seat_ids_are_rejected(seat_id):
    with pytest.raises(ValueError):
        SeatNumber.parse(seat_id)


def test_layout_categories_and_prices():
    """Rows 1-3 premium, 4-7 standard, 8-10 economy."""
    layout = SeatLayout()
    assert layout.capacity == 100
    assert layout.category_for_row(3) == SeatCategory.PREMIUM
    assert layout.category_for_row(4) == SeatCategory.STANDARD
    assert layout.category_for_row(7) == SeatCategory.STANDARD
    assert layout.category_for_row(8) == SeatCategory.ECONOMY
    assert layout.price_for(SeatCategory.PREMIUM) == 150
    assert layout.price_for(SeatCategory.ECONOMY) == 50


def test_build_seats_produces_an_available_grid():
    seats = build_seats(SeatLayout(rows=2, seats_per_row=5))
    assert [seat.id for seat in seats] == [f"seat-{n}" for n in range(1, 11)]
    assert all(seat.status == SeatStatus.AVAILABLE for seat in seats)
    assert seats[5].row == 2
    assert seats[5].position == 1


def test_expired_hold_reads_as_available():
    now = utcnow()
    seat = Seat(
        ref=SeatNumber(1),
        section="A",
        category=SeatCategory.PREMIUM,
        price=150,
        status=SeatStatus.RESERVED,
        reserved_until=now - timedelta(seconds=1),
        reserved_by="partner",
    )
    assert seat.effective_status(now) == SeatStatus.AVAILABLE
    assert not seat.held_by("partner", now)
    assert seat.to_dict(now)["status"] == "available"


def test_live_hold_reads_as_reserved():
    now = utcnow()
    seat = Seat(
        ref=SeatNumber(1),
        section="A",
        category=SeatCategory.PREMIUM,
        price=150,
        status=SeatStatus.RESERVED,
        reserved_until=now + timedelta(minutes=5),
        reserved_by="partner",
    )
    assert seat.effective_status(now) == SeatStatus.RESERVED
    assert seat.held_by("partner", now)
    assert not seat.held_by("someone-else", now)
