"""
Slot and booking state machines.

Slot:    available -> pending (reserve) -> confirmed | available (release) | blocked
         available <-> blocked (administrative)
         confirmed -> available only through cancel-and-release,
         confirmed -> blocked through cancel without release.

Booking: pending_form -> pending_payment -> confirmed, cancelled from any
         non-terminal state. cancelled is terminal.
"""

from typing import Dict, FrozenSet, Union

from nailbook.core.exceptions import InvalidTransition
from nailbook.models.booking import BookingStatus
from nailbook.models.slot import SlotStatus

SLOT_TRANSITIONS: Dict[SlotStatus, FrozenSet[SlotStatus]] = {
    SlotStatus.available: frozenset({SlotStatus.pending, SlotStatus.blocked}),
    SlotStatus.pending: frozenset({SlotStatus.confirmed, SlotStatus.available, SlotStatus.blocked}),
    SlotStatus.confirmed: frozenset({SlotStatus.available, SlotStatus.blocked}),
    SlotStatus.blocked: frozenset({SlotStatus.available}),
}

# Statuses an admin may set directly; pending/confirmed belong to bookings
ADMIN_SLOT_STATUSES: FrozenSet[SlotStatus] = frozenset({SlotStatus.available, SlotStatus.blocked})

BOOKING_TRANSITIONS: Dict[BookingStatus, FrozenSet[BookingStatus]] = {
    BookingStatus.pending_form: frozenset({BookingStatus.pending_payment, BookingStatus.cancelled}),
    BookingStatus.pending_payment: frozenset({BookingStatus.confirmed, BookingStatus.cancelled}),
    BookingStatus.confirmed: frozenset({BookingStatus.cancelled}),
    BookingStatus.cancelled: frozenset(),
}


def check_slot_transition(current: Union[SlotStatus, str], target: Union[SlotStatus, str]) -> None:
    current, target = SlotStatus(current), SlotStatus(target)
    if target not in SLOT_TRANSITIONS[current]:
        raise InvalidTransition("slot", current.value, target.value)


def check_admin_slot_status(current: Union[SlotStatus, str], target: Union[SlotStatus, str]) -> None:
    current, target = SlotStatus(current), SlotStatus(target)
    if current == target:
        return
    if current not in ADMIN_SLOT_STATUSES or target not in ADMIN_SLOT_STATUSES:
        raise InvalidTransition("slot", current.value, target.value)
    check_slot_transition(current, target)


def check_booking_transition(current: Union[BookingStatus, str], target: Union[BookingStatus, str]) -> None:
    current, target = BookingStatus(current), BookingStatus(target)
    if target not in BOOKING_TRANSITIONS[current]:
        raise InvalidTransition("booking", current.value, target.value)