"""
Persisted seat state for a show.

Only available/reserved/sold are ever written; `selected` lives in the
client. A reserved row whose reserved_until has passed is still stored as
reserved and is treated as available when loaded (lazy expiry).
"""

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, CheckConstraint
from sqlalchemy.orm import relationship

from theater.db.base import Base, TimestampMixin


class SeatRecord(Base, TimestampMixin):
    __tablename__ = "seats"

    show_id = Column(String(36), ForeignKey("shows.id", ondelete="CASCADE"), primary_key=True)
    seat_id = Column(String(20), primary_key=True)  # "seat-<number>"
    number = Column(Integer, nullable=False)
    row = Column(Integer, nullable=False)
    section = Column(String(20), nullable=False)
    category = Column(String(20), nullable=False)
    price = Column(Integer, nullable=False)
    status = Column(String(20), nullable=False, default="available")
    reserved_until = Column(DateTime(timezone=True), nullable=True)
    reserved_by = Column(String(36), nullable=True)
    booking_id = Column(String(32), nullable=True)

    show = relationship("Show", back_populates="seats")

    __table_args__ = (
        Index("ix_seats_show_number", "show_id", "number"),
        CheckConstraint("status IN ('available', 'reserved', 'sold')", name="check_seat_status"),
        CheckConstraint("price >= 0", name="check_seat_price_non_negative"),
    )

    def __repr__(self) -> str:
        return f"<SeatRecord(show={self.show_id}, seat={self.seat_id}, status={self.status})>"
