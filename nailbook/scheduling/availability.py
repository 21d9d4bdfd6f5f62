"""
Availability Calculator

Produces the customer-visible set of bookable slots:
    status == available
    date >= today
    not hidden
    belongs to the requested nail tech (when one is given)
    not on a blocked date

This is a read-only view. It lowers the chance of showing a slot that is about
to be taken, but only the conditional write in the reservation path prevents
double booking.
"""

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Iterable, List, Optional
from uuid import UUID

from nailbook.models.blocked_date import BlockedDate
from nailbook.models.slot import Slot, SlotStatus
from nailbook.scheduling.blocked import BlockedDateOverlay
from nailbook.scheduling.store import SlotStore


@dataclass
class Availability:
    slots: List[Slot] = field(default_factory=list)
    blocked_dates: List[BlockedDate] = field(default_factory=list)


def filter_available(
    slots: Iterable[Slot],
    today: date,
    overlay: BlockedDateOverlay,
    nail_tech_id: Optional[UUID] = None,
) -> List[Slot]:
    """Pure filter over an in-memory slot collection, sorted by (date, time)."""
    visible = [
        slot
        for slot in slots
        if SlotStatus(slot.status) == SlotStatus.available
        and slot.slot_date >= today
        and not slot.is_hidden
        and (nail_tech_id is None or slot.nail_tech_id == nail_tech_id)
        and not overlay.is_blocked(slot.slot_date)
    ]
    return sorted(visible, key=lambda s: (s.slot_date, s.slot_time))


def get_availability(
    store: SlotStore,
    today: date,
    from_date: Optional[date] = None,
    to_date: Optional[date] = None,
    nail_tech_id: Optional[UUID] = None,
    window_days: int = 90,
) -> Availability:
    """
    Load and filter slots for the booking page.

    ``from_date`` is clamped to ``today``; without ``to_date`` the window runs
    ``window_days`` ahead.
    """
    start = max(from_date or today, today)
    end = to_date or (start + timedelta(days=window_days))
    if end < start:
        return Availability()

    blocked = store.blocked_dates(start)
    overlay = BlockedDateOverlay(blocked)
    candidates = store.list_slots(
        start,
        end,
        nail_tech_id=nail_tech_id,
        status=SlotStatus.available,
    )
    return Availability(
        slots=filter_available(candidates, start, overlay, nail_tech_id),
        blocked_dates=blocked,
    )
