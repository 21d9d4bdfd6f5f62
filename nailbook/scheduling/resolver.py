"""
Consecutive-Slot Resolver

Answers: starting from an anchor slot, which k-1 further slots must a k-slot
service claim for the same nail tech on the same day?

Walking the canonical time sequence from the anchor:
  * no slot record at the next time      -> skip it, it was never scheduled
  * a record exists but the day is blocked -> BlockedDateConflict
  * a record exists and is not available -> ChainGap (never look past it)
  * a record exists and is available     -> take it
  * the sequence runs out first          -> EndOfSequence
"""

from datetime import time
from typing import Callable, List, Optional
from uuid import UUID

from nailbook.core.exceptions import (
    BlockedDateConflict,
    ChainGap,
    EndOfSequence,
    InvalidChain,
)
from nailbook.models.slot import Slot, SlotStatus
from nailbook.scheduling.blocked import BlockedDateOverlay
from nailbook.scheduling.store import SlotStore
from nailbook.scheduling.time_sequence import TimeSequence

SlotLookup = Callable[[time], Optional[Slot]]


class ConsecutiveSlotResolver:
    def __init__(self, sequence: TimeSequence, overlay: BlockedDateOverlay) -> None:
        self.sequence = sequence
        self.overlay = overlay

    def resolve(self, anchor: Slot, required_count: int, lookup: SlotLookup) -> List[Slot]:
        """
        Return the ordered chain after ``anchor``.

        ``lookup`` maps a time of day to the slot record for the anchor's nail
        tech and date, or None when no record exists at that time.
        """
        if required_count < 1:
            raise InvalidChain("A service needs at least one slot", required_count=required_count)
        if required_count == 1:
            return []

        chain: List[Slot] = []
        current = anchor.slot_time
        self.sequence.index(current)

        while len(chain) < required_count - 1:
            following = self.sequence.next(current)
            if following is None:
                raise EndOfSequence(current)

            slot = lookup(following)
            if slot is None:
                current = following
                continue

            blocked = self.overlay.blocking_range(anchor.slot_date)
            if blocked is not None:
                raise BlockedDateConflict(anchor.slot_date, getattr(blocked, "reason", None))

            status = SlotStatus(slot.status)
            if status != SlotStatus.available:
                raise ChainGap(following, slot.id, status.value)

            chain.append(slot)
            current = following

        return chain


def resolve_chain(
    store: SlotStore,
    sequence: TimeSequence,
    anchor_slot_id: UUID,
    required_count: int,
) -> List[Slot]:
    """Store-backed resolution; a single-slot service never touches the store."""
    if required_count < 1:
        raise InvalidChain("A service needs at least one slot", required_count=required_count)
    if required_count == 1:
        return []

    anchor = store.get_slot(anchor_slot_id)
    day_slots = store.slots_by_time(anchor.nail_tech_id, anchor.slot_date)
    overlay = store.overlay(anchor.slot_date, anchor.slot_date)
    resolver = ConsecutiveSlotResolver(sequence, overlay)
    return resolver.resolve(anchor, required_count, day_slots.get)
