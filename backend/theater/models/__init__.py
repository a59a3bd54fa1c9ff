from theater.models.api_key import ApiKey
from theater.models.show import Show
from theater.models.seat import SeatRecord
from theater.models.reservation import Reservation
from theater.models.booking import Booking

__all__ = ["ApiKey", "Show", "SeatRecord", "Reservation", "Booking"]
