"""
Pydantic schemas for seats, seat maps and block previews.
"""

from typing import Optional

from pydantic import BaseModel

from theater.domain.seat import SeatCategory, SeatStatus
from theater.schemas.show import ShowSummary


class SeatResponse(BaseModel):
    id: str
    number: int
    row: int
    section: str
    category: SeatCategory
    price: int
    status: SeatStatus


class SeatStatistics(BaseModel):
    total: int
    available: int
    sold: int
    reserved: int
    occupancy_percent: float


class CategoryCounts(BaseModel):
    premium: int = 0
    standard: int = 0
    economy: int = 0


class SeatFilters(BaseModel):
    date: str
    category: str
    status: str
    price_range: str


class SeatMapResponse(BaseModel):
    show: ShowSummary
    seats: list[SeatResponse]
    statistics: SeatStatistics
    categories: CategoryCounts
    filters_applied: SeatFilters


class BlockPreviewResponse(BaseModel):
    show_id: str
    anchor_seat_id: str
    count: int
    seat_ids: list[str]
    total_price: int
    available: bool
    row: Optional[int] = None
