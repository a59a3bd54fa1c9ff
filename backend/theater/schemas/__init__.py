from theater.schemas.auth import TokenRequest, Token
from theater.schemas.show import ShowSummary, ShowListResponse
from theater.schemas.seat import SeatResponse, SeatMapResponse, BlockPreviewResponse
from theater.schemas.reservation import ReservationCreate, ReservationResponse
from theater.schemas.booking import (
    BookingCreate, BookingResponse, BookingCancelRequest, BookingCancelResponse, CustomerInfo,
)

__all__ = [
    "TokenRequest", "Token",
    "ShowSummary", "ShowListResponse",
    "SeatResponse", "SeatMapResponse", "BlockPreviewResponse",
    "ReservationCreate", "ReservationResponse",
    "BookingCreate", "BookingResponse", "BookingCancelRequest", "BookingCancelResponse", "CustomerInfo",
]
