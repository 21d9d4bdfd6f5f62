import logging
from datetime import date, datetime, timedelta, timezone
from typing import List, Optional

from sqlalchemy import exists, or_
from sqlalchemy.orm import Session

from nailbook.models.booking import Booking, BookingSlot, BookingStatus
from nailbook.models.slot import Slot, SlotStatus

logger = logging.getLogger(__name__)


def release_eligible_bookings(
    db: Session,
    max_age_minutes: int,
    now: Optional[datetime] = None,
) -> List[Booking]:
    """
    Bookings that were reserved but never got past the client form.

    A booking is eligible when:
      - status is still pending_form
      - it has not been released yet
      - it was created more than ``max_age_minutes`` ago

    Oldest first.
    """
    now = now or datetime.now(timezone.utc)
    cutoff = now - timedelta(minutes=max_age_minutes)
    return (
        db.query(Booking)
        .filter(
            Booking.status == BookingStatus.pending_form,
            Booking.released_at.is_(None),
            Booking.created_at <= cutoff,
        )
        .order_by(Booking.created_at)
        .all()
    )


def release_stale_bookings(
    coordinator,
    max_age_minutes: int,
    now: Optional[datetime] = None,
) -> int:
    """
    Release every eligible booking through the coordinator's release primitive.

    Returns the number of bookings released.
    """
    stale = release_eligible_bookings(coordinator.db, max_age_minutes, now)
    for booking in stale:
        coordinator.release(booking.id)
    if stale:
        logger.info("Released %d stale pending booking(s).", len(stale))
    return len(stale)


def purge_past_slots(db: Session, today: date) -> int:
    """
    Delete slots dated before ``today`` that were never booked.

    Only ``available`` slots no booking points at are removed; anything with
    history stays for the admin views.

    Returns the number of slots deleted.
    """
    referenced = or_(
        exists().where(Booking.slot_id == Slot.id),
        exists().where(BookingSlot.slot_id == Slot.id),
    )
    count = (
        db.query(Slot)
        .filter(
            Slot.slot_date < today,
            Slot.status == SlotStatus.available,
            ~referenced,
        )
        .delete(synchronize_session=False)
    )
    db.commit()
    return count
