"""
Adjacent seat block selection.

Given the seat a customer is pointing at (the anchor) and a party size k,
pick the k contiguous available seats in the anchor's row that a customer
hovering there most plausibly wants.

Picking the leftmost run that fits drags the block away from the pointer.
Instead several candidate windows are generated and the one that centers the
anchor wins:

  1. right-extend   anchor, anchor+1, ... until k seats or a gap
  2. left-extend    anchor, anchor-1, ... (returned left to right)
  3. centered       grow one seat left then one seat right per round
  4. sliding        every k-window inside the row that contains the anchor

Only windows of exactly k available seats count. The score is the distance
between the anchor's index in the window and (k - 1) // 2; the first
candidate with the lowest score wins, so right-extend wins ties. For an even
k that puts the anchor just left of the middle: full row, anchor 5, k 4
gives seats 4-7.

A row without room for k seats around the anchor yields an empty block.
The selector never returns a shorter block and never spills into the next
row; callers that want fewer seats ask again with a smaller k.
"""

from datetime import datetime
from typing import Optional

from theater.core.exceptions import NotFoundError, ValidationError
from theater.core.logging import get_logger
from theater.core.metrics import record_block_preview
from theater.domain.inventory import RowSlot, SeatInventory

logger = get_logger(__name__)


class BlockSelector:
    def __init__(self, inventory: SeatInventory):
        self.inventory = inventory

    @property
    def seats_per_row(self) -> int:
        return self.inventory.layout.seats_per_row

    def validate_count(self, count: int) -> None:
        if not 1 <= count <= self.seats_per_row:
            raise ValidationError(
                f"Party size must be between 1 and {self.seats_per_row}, got {count}",
                {"count": count},
            )

    def select(self, anchor_id: str, count: int, now: Optional[datetime] = None) -> list[str]:
        """Seat ids of the best block around anchor_id, left to right, or []."""
        self.validate_count(count)
        anchor = self.inventory.get_seat(anchor_id)
        if anchor is None:
            raise NotFoundError(f"Seat {anchor_id} not found", {"seat_ids": [anchor_id]})

        now = now or self.inventory.now()
        if not self.inventory.is_available(anchor, now):
            record_block_preview(False)
            return []

        slots = self.inventory.row_slots(anchor.row, now)
        candidates = self._candidates(slots, anchor.position, count)
        block = self._best(candidates, anchor_id, count)

        record_block_preview(bool(block))
        logger.debug(
            "block_selected",
            show_id=self.inventory.show_id,
            anchor=anchor_id,
            count=count,
            candidates=len(candidates),
            block=block,
        )
        return block

    def _candidates(self, slots: list[RowSlot], anchor_pos: int, count: int) -> list[list[str]]:
        by_position = {slot.position: slot for slot in slots}

        def free(position: int) -> bool:
            slot = by_position.get(position)
            return slot is not None and slot.available

        found = []

        right = []
        position = anchor_pos
        while position <= self.seats_per_row and len(right) < count and free(position):
            right.append(by_position[position].seat_id)
            position += 1
        if len(right) == count:
            found.append(right)

        left = []
        position = anchor_pos
        while position >= 1 and len(left) < count and free(position):
            left.insert(0, by_position[position].seat_id)
            position -= 1
        if len(left) == count:
            found.append(left)

        low, high = self._expand_centered(free, anchor_pos, count)
        if high - low + 1 == count:
            found.append([by_position[p].seat_id for p in range(low, high + 1)])

        first_start = max(1, anchor_pos - count + 1)
        last_start = min(self.seats_per_row - count + 1, anchor_pos)
        for start in range(first_start, last_start + 1):
            window = range(start, start + count)
            if all(free(p) for p in window):
                found.append([by_position[p].seat_id for p in window])

        return found

    def _expand_centered(self, free, anchor_pos: int, count: int) -> tuple[int, int]:
        low = high = anchor_pos
        collected = 1
        while collected < count:
            grew = False
            if low > 1 and free(low - 1):
                low -= 1
                collected += 1
                grew = True
            if collected < count and high < self.seats_per_row and free(high + 1):
                high += 1
                collected += 1
                grew = True
            if not grew:
                break
        return low, high

    @staticmethod
    def _best(candidates: list[list[str]], anchor_id: str, count: int) -> list[str]:
        center = (count - 1) // 2
        best, best_score = [], None
        for window in candidates:
            score = abs(window.index(anchor_id) - center)
            if best_score is None or score < best_score:
                best, best_score = window, score
        return best
