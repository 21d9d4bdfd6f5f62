"""
Slot Store

Thin query layer over the SQLAlchemy session. Every read refreshes rows that
are already in the session's identity map so a request never decides on a
status it cached earlier.
"""

from datetime import date, datetime, time, timezone
from typing import Collection, Dict, Iterable, List, Optional, Set
from uuid import UUID

from sqlalchemy.orm import Session

from nailbook.core.exceptions import SlotNotFound
from nailbook.models.blocked_date import BlockedDate
from nailbook.models.booking import Booking, BookingSlot, BookingStatus
from nailbook.models.slot import Slot, SlotStatus
from nailbook.scheduling.blocked import BlockedDateOverlay
from nailbook.scheduling.states import check_slot_transition


def tech_filter(nail_tech_id: Optional[UUID]):
    """Resource scoping clause; single-tech deployments store NULL."""
    if nail_tech_id is None:
        return Slot.nail_tech_id.is_(None)
    return Slot.nail_tech_id == nail_tech_id


class SlotStore:
    def __init__(self, db: Session) -> None:
        self.db = db

    # -- slots ---------------------------------------------------------------

    def get_slot(self, slot_id: UUID) -> Slot:
        slot = (
            self.db.query(Slot)
            .populate_existing()
            .filter(Slot.id == slot_id)
            .first()
        )
        if not slot:
            raise SlotNotFound(slot_id)
        return slot

    def get_slots(self, slot_ids: Iterable[UUID]) -> Dict[UUID, Slot]:
        ids = list(slot_ids)
        if not ids:
            return {}
        rows = (
            self.db.query(Slot)
            .populate_existing()
            .filter(Slot.id.in_(ids))
            .all()
        )
        return {s.id: s for s in rows}

    def slots_by_time(self, nail_tech_id: Optional[UUID], slot_date: date) -> Dict[time, Slot]:
        """All of one tech's slots on one day, keyed by time of day."""
        rows = (
            self.db.query(Slot)
            .populate_existing()
            .filter(tech_filter(nail_tech_id), Slot.slot_date == slot_date)
            .all()
        )
        return {s.slot_time: s for s in rows}

    def list_slots(
        self,
        from_date: date,
        to_date: Optional[date] = None,
        nail_tech_id: Optional[UUID] = None,
        status: Optional[SlotStatus] = None,
    ) -> List[Slot]:
        query = self.db.query(Slot).populate_existing().filter(Slot.slot_date >= from_date)
        if to_date is not None:
            query = query.filter(Slot.slot_date <= to_date)
        if nail_tech_id is not None:
            query = query.filter(Slot.nail_tech_id == nail_tech_id)
        if status is not None:
            query = query.filter(Slot.status == status)
        return query.order_by(Slot.slot_date, Slot.slot_time).all()

    def find_duplicate(
        self,
        nail_tech_id: Optional[UUID],
        slot_date: date,
        slot_time: time,
        exclude_slot_id: Optional[UUID] = None,
    ) -> Optional[Slot]:
        query = self.db.query(Slot).filter(
            tech_filter(nail_tech_id),
            Slot.slot_date == slot_date,
            Slot.slot_time == slot_time,
        )
        if exclude_slot_id:
            query = query.filter(Slot.id != exclude_slot_id)
        return query.first()

    def transition(
        self,
        slot_ids: Collection[UUID],
        from_statuses: Collection[SlotStatus],
        to_status: SlotStatus,
    ) -> int:
        """
        Conditional status write: move every listed slot whose current status is
        in ``from_statuses`` to ``to_status`` in one UPDATE.

        Returns the number of rows changed. The caller owns the transaction and
        decides whether a short count means commit or rollback.
        """
        for status in from_statuses:
            check_slot_transition(status, to_status)
        if not slot_ids:
            return 0
        count = (
            self.db.query(Slot)
            .filter(
                Slot.id.in_(list(slot_ids)),
                Slot.status.in_(list(from_statuses)),
            )
            .update(
                {"status": to_status, "updated_at": datetime.now(timezone.utc)},
                synchronize_session=False,
            )
        )
        return count

    def is_referenced(self, slot_id: UUID) -> bool:
        primary = self.db.query(Booking.id).filter(Booking.slot_id == slot_id).first()
        if primary:
            return True
        linked = self.db.query(BookingSlot.id).filter(BookingSlot.slot_id == slot_id).first()
        return linked is not None

    def slot_ids_held_elsewhere(self, slot_ids: Collection[UUID], booking_id: UUID) -> Set[UUID]:
        """Slots among ``slot_ids`` still owned by some other live booking (not cancelled, not released)."""
        if not slot_ids:
            return set()
        ids = list(slot_ids)
        primary = (
            self.db.query(Booking.slot_id)
            .filter(
                Booking.id != booking_id,
                Booking.released_at.is_(None),
                Booking.status != BookingStatus.cancelled,
                Booking.slot_id.in_(ids),
            )
            .all()
        )
        linked = (
            self.db.query(BookingSlot.slot_id)
            .join(Booking, Booking.id == BookingSlot.booking_id)
            .filter(
                Booking.id != booking_id,
                Booking.released_at.is_(None),
                Booking.status != BookingStatus.cancelled,
                BookingSlot.slot_id.in_(ids),
            )
            .all()
        )
        return {row[0] for row in primary} | {row[0] for row in linked}

    # -- blocked dates -------------------------------------------------------

    def blocked_dates(self, from_date: date, to_date: Optional[date] = None) -> List[BlockedDate]:
        """Blocked ranges intersecting [from_date, to_date] (open-ended if to_date is None)."""
        query = self.db.query(BlockedDate).filter(BlockedDate.end_date >= from_date)
        if to_date is not None:
            query = query.filter(BlockedDate.start_date <= to_date)
        return query.order_by(BlockedDate.start_date, BlockedDate.end_date).all()

    def overlay(self, from_date: date, to_date: Optional[date] = None) -> BlockedDateOverlay:
        return BlockedDateOverlay(self.blocked_dates(from_date, to_date))

    def blocked_on(self, day: date) -> Optional[BlockedDate]:
        return self.overlay(day, day).blocking_range(day)

