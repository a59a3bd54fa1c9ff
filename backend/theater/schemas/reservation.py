"""
Pydantic schemas for seat holds.
"""

from typing import Any, Optional

from pydantic import BaseModel, Field

from theater.schemas.common import UtcDatetime


class ReservationCreate(BaseModel):
    show_id: str
    seat_ids: list[str] = Field(..., min_length=1, max_length=100)
    duration_minutes: int = Field(default=15, ge=1)
    external_booking_id: Optional[str] = Field(None, max_length=255)
    metadata: Optional[dict[str, Any]] = None


class ReservationResponse(BaseModel):
    reservation_id: str
    show_id: str
    seat_ids: list[str]
    external_booking_id: Optional[str]
    expires_at: UtcDatetime
    created_at: UtcDatetime
    status: str
