"""
Booking model representing a finalized seat purchase.

Key design decisions:
- Seat ids and a price snapshot of each seat are stored with the booking,
  so the total stays what the customer paid even if prices change later
- Status field allows cancellation without deleting records
- `reservation_id` links bookings that finalized a hold
"""

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String, CheckConstraint
from sqlalchemy.orm import relationship

from theater.db.base import Base, TimestampMixin


class Booking(Base, TimestampMixin):
    __tablename__ = "bookings"

    id = Column(String(32), primary_key=True)  # BK<epoch ms><6 hex>
    show_id = Column(String(36), ForeignKey("shows.id"), nullable=False, index=True)
    api_key_id = Column(String(36), ForeignKey("api_keys.id"), nullable=False, index=True)
    reservation_id = Column(String(36), ForeignKey("reservations.id"), nullable=True)
    seat_ids = Column(JSON, nullable=False)
    seats = Column(JSON, nullable=False)
    customer_name = Column(String(255), nullable=False)
    customer_email = Column(String(255), nullable=False)
    customer_phone = Column(String(50), nullable=True)
    total_price = Column(Integer, nullable=False)
    status = Column(String(20), nullable=False, default="confirmed")  # confirmed, cancelled
    notes = Column(String(1000), nullable=True)
    booked_at = Column(DateTime(timezone=True), nullable=False)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    cancel_reason = Column(String(255), nullable=True)

    show = relationship("Show", back_populates="bookings")

    __table_args__ = (
        CheckConstraint("total_price >= 0", name="check_booking_total_non_negative"),
        CheckConstraint("status IN ('confirmed', 'cancelled')", name="check_booking_status"),
    )

    def __repr__(self) -> str:
        return f"<Booking(id={self.id}, show={self.show_id}, status={self.status})>"
