"""
Reservation (seat hold) model.

The stored status only moves active -> consumed | released. Expiry is not
written anywhere: an active reservation past expires_at is reported as
expired when read, and its seats are already free for everyone else.
"""

import uuid

from sqlalchemy import JSON, Column, DateTime, ForeignKey, String, CheckConstraint

from theater.db.base import Base, TimestampMixin


class Reservation(Base, TimestampMixin):
    __tablename__ = "reservations"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    show_id = Column(String(36), ForeignKey("shows.id", ondelete="CASCADE"), nullable=False, index=True)
    seat_ids = Column(JSON, nullable=False)
    holder_id = Column(String(36), ForeignKey("api_keys.id"), nullable=False, index=True)
    external_booking_id = Column(String(255), nullable=True)
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)
    status = Column(String(20), nullable=False, default="active")
    hold_metadata = Column(JSON, nullable=False, default=dict)

    __table_args__ = (
        CheckConstraint("status IN ('active', 'consumed', 'released')", name="check_reservation_status"),
    )

    def __repr__(self) -> str:
        return f"<Reservation(id={self.id}, show={self.show_id}, status={self.status})>"
