"""
Client-side seat selection over a show's inventory.

`selected` is an overlay on available seats that only the selecting client
sees. It is never stored and never consulted when deciding whether a seat is
really free; confirming the selection is what moves seats to sold.
"""

from typing import Optional

from theater.core.exceptions import ConflictError, SeatsUnavailableError, ValidationError
from theater.core.logging import get_logger
from theater.domain.block_selector import BlockSelector
from theater.domain.inventory import SeatInventory
from theater.domain.seat import Seat, SeatStatus

logger = get_logger(__name__)


class SeatSelection:
    def __init__(self, inventory: SeatInventory, party_size: int = 1):
        self.inventory = inventory
        self.selector = BlockSelector(inventory)
        self._party_size = 1
        self.party_size = party_size
        self._selected: list[str] = []

    @property
    def party_size(self) -> int:
        return self._party_size

    @party_size.setter
    def party_size(self, value: int) -> None:
        self.selector.validate_count(value)
        self._party_size = value

    @property
    def seat_ids(self) -> list[str]:
        return list(self._selected)

    def preview(self, anchor_id: str) -> list[str]:
        """Block a hover over anchor_id would highlight; selection is untouched."""
        return self.selector.select(anchor_id, self._party_size)

    def select(self, anchor_id: str) -> list[str]:
        """Replace the selection with the block around anchor_id."""
        self._selected = self.selector.select(anchor_id, self._party_size)
        return self.seat_ids

    def clear(self) -> None:
        self._selected = []

    def total_price(self) -> int:
        return self.inventory.total_price(self._selected)

    def status_of(self, seat_id: str) -> Optional[SeatStatus]:
        seat = self.inventory.get_seat(seat_id)
        if seat is None:
            return None
        status = seat.effective_status(self.inventory.now())
        if status == SeatStatus.AVAILABLE and seat_id in self._selected:
            return SeatStatus.SELECTED
        return status

    def confirm(self, actor: str, booking_id: Optional[str] = None) -> list[Seat]:
        """Sell the selected seats; a lost race clears the stale selection."""
        if not self._selected:
            raise ValidationError("Nothing selected to confirm")
        try:
            sold = self.inventory.set_status(
                self._selected, SeatStatus.SOLD, actor, booking_id=booking_id
            )
        except ConflictError as exc:
            stale = self.seat_ids
            self.clear()
            logger.info(
                "selection_stale",
                show_id=self.inventory.show_id,
                seat_ids=stale,
                taken=exc.seat_ids,
            )
            raise SeatsUnavailableError(
                "Selected seats are no longer available",
                seat_ids=exc.seat_ids,
            ) from exc
        self.clear()
        return sold
