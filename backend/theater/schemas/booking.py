"""
Pydantic schemas for booking-related request/response validation.
"""

from typing import Optional

from pydantic import EmailStr, Field, model_validator

from theater.schemas.common import CamelModel, UtcDatetime


class CustomerInfo(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    phone: Optional[str] = Field(None, max_length=50)


class BookingCreate(CamelModel):
    show_id: str
    seat_ids: list[str] = Field(default_factory=list, max_length=100)
    anchor_seat_id: Optional[str] = None
    party_size: int = Field(default=1, ge=1)
    reservation_id: Optional[str] = None
    customer_info: CustomerInfo
    notes: Optional[str] = Field(None, max_length=1000)

    @model_validator(mode="after")
    def check_seat_source(self):
        if self.anchor_seat_id and (self.seat_ids or self.reservation_id):
            raise ValueError("anchorSeatId cannot be combined with seatIds or reservationId")
        if not (self.seat_ids or self.anchor_seat_id or self.reservation_id):
            raise ValueError("seatIds array is required and must not be empty")
        return self


class BookedSeat(CamelModel):
    id: str
    number: int
    row: int
    section: str
    category: str
    price: int


class BookingResponse(CamelModel):
    id: str
    show_id: str
    seat_ids: list[str]
    seats: list[BookedSeat]
    customer_info: CustomerInfo
    total_price: int
    status: str
    booked_at: UtcDatetime
    notes: Optional[str] = None
    reservation_id: Optional[str] = None


class BookingCancelRequest(CamelModel):
    reason: Optional[str] = Field(None, max_length=255)


class BookingCancelResponse(CamelModel):
    booking_id: str
    status: str
    cancelled_at: UtcDatetime
    reason: str
    refund_amount: int
    refund_status: str = "pending"


class ShowResetResponse(CamelModel):
    show_id: str
    seats_released: int
    bookings_cancelled: int
