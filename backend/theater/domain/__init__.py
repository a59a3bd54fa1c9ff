from theater.domain.seat import Seat, SeatCategory, SeatLayout, SeatNumber, SeatStatus
from theater.domain.inventory import RowSlot, SeatInventory
from theater.domain.block_selector import BlockSelector
from theater.domain.selection import SeatSelection

__all__ = [
    "Seat", "SeatCategory", "SeatLayout", "SeatNumber", "SeatStatus",
    "RowSlot", "SeatInventory",
    "BlockSelector",
    "SeatSelection",
]
