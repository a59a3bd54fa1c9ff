"""
Show model: one performance on one date, with its seat grid.

Key design decisions:
- `show_date` is unique; the external API addresses shows by date
- Layout dimensions are stored per show so a seat grid can be rebuilt
  without consulting current settings
"""

import uuid

from sqlalchemy import Boolean, Column, Date, Integer, String, Time, CheckConstraint
from sqlalchemy.orm import relationship

from theater.db.base import Base, TimestampMixin


def _uuid() -> str:
    return str(uuid.uuid4())


class Show(Base, TimestampMixin):
    __tablename__ = "shows"

    id = Column(String(36), primary_key=True, default=_uuid)
    title = Column(String(255), nullable=False)
    description = Column(String(1000), nullable=True)
    show_date = Column(Date, nullable=False, unique=True, index=True)
    show_time = Column(Time, nullable=False)
    duration_minutes = Column(Integer, nullable=False, default=150)
    section = Column(String(20), nullable=False, default="A")
    row_count = Column(Integer, nullable=False, default=10)
    seats_per_row = Column(Integer, nullable=False, default=10)
    is_active = Column(Boolean, nullable=False, default=True)

    seats = relationship("SeatRecord", back_populates="show", cascade="all, delete-orphan")
    bookings = relationship("Booking", back_populates="show")

    __table_args__ = (
        CheckConstraint("row_count > 0", name="check_show_row_count_positive"),
        CheckConstraint("seats_per_row > 0", name="check_show_seats_per_row_positive"),
    )

    def __repr__(self) -> str:
        return f"<Show(id={self.id}, date={self.show_date}, title={self.title})>"
