"""
Pydantic schemas for show listings.
"""

import datetime as dt
from typing import Optional

from pydantic import BaseModel


class ShowAvailability(BaseModel):
    total: int
    available: int
    sold: int
    reserved: int
    occupancy_percent: float


class ShowSummary(BaseModel):
    id: str
    title: str
    description: Optional[str]
    date: dt.date
    time: dt.time
    duration_minutes: int
    availability: Optional[ShowAvailability] = None


class ShowPeriod(BaseModel):
    start_date: dt.date
    end_date: dt.date
    days_requested: int


class ShowListResponse(BaseModel):
    shows: list[ShowSummary]
    period: ShowPeriod
    total_shows: int
    includes_availability_stats: bool
    cached: bool = False
