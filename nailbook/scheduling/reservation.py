"""
Reservation Coordinator

The only code that moves slots out of ``available``. A reservation claims the
anchor slot and its chain with one conditional UPDATE inside the booking
transaction: the booking is committed only if every slot was still
``available`` at write time, otherwise the transaction is rolled back and the
caller gets ReservationRaceLost. Nothing here retries; re-resolving against
fresh availability is the caller's job.
"""

import logging
import random
import string
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Sequence
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from nailbook.core.config import settings
from nailbook.core.exceptions import (
    BlockedDateConflict,
    BookingNotFound,
    ChainGap,
    InvalidChain,
    InvalidTransition,
    ReservationRaceLost,
    SlotNotFound,
)
from nailbook.models.booking import (
    Booking,
    BookingSlot,
    BookingStatus,
    ClientType,
    ServiceLocation,
    ServiceType,
)
from nailbook.models.slot import Slot, SlotStatus
from nailbook.scheduling.resolver import resolve_chain
from nailbook.scheduling.services import required_slot_count
from nailbook.scheduling.states import check_booking_transition
from nailbook.scheduling.store import SlotStore
from nailbook.scheduling.time_sequence import TimeSequence

logger = logging.getLogger(__name__)

# Slot statuses a release hands back to ``available``
RELEASABLE = (SlotStatus.pending, SlotStatus.confirmed, SlotStatus.blocked)


@dataclass(frozen=True)
class ServiceRequest:
    """What the booking flow knows about the service; recorded, not interpreted."""

    service_type: ServiceType
    nail_tech_id: Optional[UUID] = None
    client_type: Optional[ClientType] = None
    service_location: Optional[ServiceLocation] = None
    notes: Optional[str] = None


class ReservationCoordinator:
    def __init__(self, db: Session, sequence: TimeSequence) -> None:
        self.db = db
        self.sequence = sequence
        self.store = SlotStore(db)

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    def resolve_chain(self, anchor_slot_id: UUID, required_count: int) -> List[Slot]:
        return resolve_chain(self.store, self.sequence, anchor_slot_id, required_count)

    def get_booking(self, booking_id: UUID) -> Booking:
        booking = (
            self.db.query(Booking)
            .populate_existing()
            .filter(Booking.id == booking_id)
            .first()
        )
        if not booking:
            raise BookingNotFound(booking_id)
        return booking

    # ------------------------------------------------------------------
    # Reserve
    # ------------------------------------------------------------------

    def reserve(
        self,
        anchor_slot_id: UUID,
        chain_slot_ids: Sequence[UUID],
        request: ServiceRequest,
    ) -> Booking:
        """
        Claim ``anchor_slot_id`` plus ``chain_slot_ids`` for one booking.

        Every check runs against fresh rows; the final conditional write is the
        authority on whether the slots are still free.
        """
        chain_slot_ids = list(chain_slot_ids)
        all_ids = [anchor_slot_id] + chain_slot_ids
        if len(set(all_ids)) != len(all_ids):
            raise InvalidChain("A slot appears more than once in the chain")

        anchor = self.store.get_slot(anchor_slot_id)
        found = self.store.get_slots(chain_slot_ids)
        chain = []
        for slot_id in chain_slot_ids:
            if slot_id not in found:
                raise SlotNotFound(slot_id)
            chain.append(found[slot_id])

        required = required_slot_count(request.service_type)
        if len(all_ids) != required:
            raise InvalidChain(
                f"{ServiceType(request.service_type).value} requires {required} consecutive slot(s), "
                f"got {len(all_ids)}",
                required_count=required,
            )
        if request.nail_tech_id is not None and request.nail_tech_id != anchor.nail_tech_id:
            raise InvalidChain("The selected slot belongs to a different nail tech")
        self._check_chain_shape(anchor, chain)

        blocked = self.store.blocked_on(anchor.slot_date)
        if blocked is not None:
            raise BlockedDateConflict(anchor.slot_date, blocked.reason)

        members = [anchor] + chain
        taken = [s.id for s in members if SlotStatus(s.status) != SlotStatus.available]
        if taken:
            logger.info("Reservation lost before write", extra={"slot_ids": taken, "reason": "stale_view"})
            raise ReservationRaceLost(taken)

        self._check_no_gaps(anchor, chain)

        claimed = self.store.transition(all_ids, [SlotStatus.available], SlotStatus.pending)
        if claimed != len(all_ids):
            self.db.rollback()
            logger.info(
                "Reservation lost at write",
                extra={"slot_ids": all_ids, "claimed": claimed, "reason": "conditional_write"},
            )
            raise ReservationRaceLost(all_ids)

        booking = Booking(
            booking_number=self._generate_booking_number(),
            slot_id=anchor.id,
            nail_tech_id=anchor.nail_tech_id,
            service_type=request.service_type,
            client_type=request.client_type,
            service_location=request.service_location,
            notes=request.notes,
            status=BookingStatus.pending_form,
        )
        for position, slot in enumerate(chain, start=1):
            booking.slot_links.append(BookingSlot(slot_id=slot.id, position=position))
        self.db.add(booking)
        self._commit()
        self.db.refresh(booking)

        logger.info(
            "Booking %s reserved %d slot(s)",
            booking.booking_number,
            len(all_ids),
            extra={"booking_id": booking.id, "slot_id": anchor.id},
        )
        return booking

    def _check_chain_shape(self, anchor: Slot, chain: Iterable[Slot]) -> None:
        previous = anchor
        previous_index = self.sequence.index(anchor.slot_time)
        for slot in chain:
            if slot.nail_tech_id != anchor.nail_tech_id:
                raise InvalidChain("Consecutive slots must belong to the same nail tech")
            if slot.slot_date != anchor.slot_date:
                raise InvalidChain("Consecutive slots must be on the same day")
            index = self.sequence.index(slot.slot_time)
            if index <= previous_index:
                raise InvalidChain(
                    f"Slot at {slot.slot_time:%H:%M} does not follow {previous.slot_time:%H:%M}"
                )
            previous, previous_index = slot, index

    def _check_no_gaps(self, anchor: Slot, chain: Sequence[Slot]) -> None:
        """An existing, non-available slot between two chain members breaks the chain."""
        if not chain:
            return
        day_slots = self.store.slots_by_time(anchor.nail_tech_id, anchor.slot_date)
        members = [anchor] + list(chain)
        for earlier, later in zip(members, members[1:]):
            for between in self.sequence.between(earlier.slot_time, later.slot_time):
                slot = day_slots.get(between)
                if slot is None:
                    continue
                status = SlotStatus(slot.status)
                if status != SlotStatus.available:
                    raise ChainGap(between, slot.id, status.value)
                raise InvalidChain(
                    f"The available {between:%H:%M} slot must be part of the chain"
                )

    def _generate_booking_number(self) -> str:
        """Generate a unique 'GN-XXXXXXXX' booking reference."""
        chars = string.ascii_uppercase + string.digits
        while True:
            number = settings.BOOKING_NUMBER_PREFIX + "".join(random.choices(chars, k=8))
            if not self.db.query(Booking.id).filter(Booking.booking_number == number).first():
                return number

    # ------------------------------------------------------------------
    # Booking lifecycle
    # ------------------------------------------------------------------

    def advance(self, booking_id: UUID, target: BookingStatus) -> Booking:
        """
        Move a booking forward (pending_form -> pending_payment -> confirmed).
        Confirming also flips every chain slot from pending to confirmed.
        Cancelling through here keeps the slots blocked; use cancel() or
        release() to choose otherwise.
        """
        target = BookingStatus(target)
        if target == BookingStatus.cancelled:
            return self.cancel(booking_id, release_slots=False)

        booking = self.get_booking(booking_id)
        check_booking_transition(booking.status, target)

        if target == BookingStatus.confirmed:
            slot_ids = booking.all_slot_ids
            confirmed = self.store.transition(slot_ids, [SlotStatus.pending], SlotStatus.confirmed)
            if confirmed != len(slot_ids):
                self.db.rollback()
                raise InvalidTransition("booking slots", "not pending", SlotStatus.confirmed.value)

        booking.status = target
        self._commit()
        self.db.refresh(booking)
        logger.info(
            "Booking %s moved to %s",
            booking.booking_number,
            target.value,
            extra={"booking_id": booking.id},
        )
        return booking

    def cancel(self, booking_id: UUID, release_slots: bool = False) -> Booking:
        """
        Cancel a booking. With ``release_slots`` the chain goes back to
        available; without it the slots are blocked for manual review.
        """
        booking = self.get_booking(booking_id)
        check_booking_transition(booking.status, BookingStatus.cancelled)
        if release_slots:
            return self.release(booking_id)

        now = datetime.now(timezone.utc)
        slot_ids = self._owned_slot_ids(booking)
        self.store.transition(slot_ids, [SlotStatus.pending, SlotStatus.confirmed], SlotStatus.blocked)
        booking.status = BookingStatus.cancelled
        booking.cancelled_at = now
        self._commit()
        self.db.refresh(booking)
        logger.info(
            "Booking %s cancelled, %d slot(s) kept blocked",
            booking.booking_number,
            len(slot_ids),
            extra={"booking_id": booking.id},
        )
        return booking

    def release(self, booking_id: UUID) -> Booking:
        """
        Return a booking's slots to available and cancel it.

        Idempotent: a booking that was already released is returned unchanged.
        Slots now owned by another live booking are left alone.
        """
        booking = self.get_booking(booking_id)
        if booking.released_at is not None:
            return booking

        now = datetime.now(timezone.utc)
        slot_ids = self._owned_slot_ids(booking)
        released = self.store.transition(slot_ids, RELEASABLE, SlotStatus.available)
        if booking.status != BookingStatus.cancelled:
            booking.status = BookingStatus.cancelled
            booking.cancelled_at = now
        booking.released_at = now
        self._commit()
        self.db.refresh(booking)
        logger.info(
            "Booking %s released %d slot(s)",
            booking.booking_number,
            released,
            extra={"booking_id": booking.id},
        )
        return booking

    def _owned_slot_ids(self, booking: Booking) -> List[UUID]:
        slot_ids = booking.all_slot_ids
        elsewhere = self.store.slot_ids_held_elsewhere(slot_ids, booking.id)
        return [slot_id for slot_id in slot_ids if slot_id not in elsewhere]

    def _commit(self) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise
