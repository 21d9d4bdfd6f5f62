"""
Scheduling error taxonomy.

Every class below is an expected outcome of normal operation (a slot got taken,
the chain ran off the end of the day, ...). They carry a stable ``code``, the
HTTP status the API answers with, and a ``details`` dict that lets a client
render a specific message. Systemic failures (store down) are reported as
``StoreUnavailable`` and are never retried by the core.
"""

from datetime import date, time
from typing import Any, Dict, Iterable, Optional
from uuid import UUID


class SchedulingError(Exception):
    code = "scheduling_error"
    status_code = 400

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = details

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"error": self.code, "message": self.message}
        for key, value in self.details.items():
            payload[key] = _jsonable(value)
        return payload


class SlotNotFound(SchedulingError):
    code = "slot_not_found"
    status_code = 404

    def __init__(self, slot_id: UUID) -> None:
        super().__init__(f"Slot {slot_id} not found", slot_id=slot_id)


class BookingNotFound(SchedulingError):
    code = "booking_not_found"
    status_code = 404

    def __init__(self, booking_id: UUID) -> None:
        super().__init__(f"Booking {booking_id} not found", booking_id=booking_id)


class EndOfSequence(SchedulingError):
    code = "end_of_sequence"
    status_code = 422

    def __init__(self, last_time: time) -> None:
        super().__init__(
            f"Not enough consecutive slots after {last_time:%H:%M}; "
            "pick an earlier time or a different date",
            time=last_time,
        )


class BlockedDateConflict(SchedulingError):
    code = "blocked_date"
    status_code = 409

    def __init__(self, blocked_on: date, reason: Optional[str] = None) -> None:
        message = f"{blocked_on.isoformat()} is not available for booking"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message, date=blocked_on)


class ChainGap(SchedulingError):
    code = "chain_gap"
    status_code = 409

    def __init__(self, gap_time: time, slot_id: UUID, status: str) -> None:
        super().__init__(
            f"The {gap_time:%H:%M} slot is {status}; consecutive slots are not available",
            time=gap_time,
            slot_id=slot_id,
            status=status,
        )


class ReservationRaceLost(SchedulingError):
    code = "reservation_race_lost"
    status_code = 409

    def __init__(self, slot_ids: Iterable[UUID]) -> None:
        super().__init__(
            "One or more selected slots were just taken; refresh availability and choose again",
            slot_ids=list(slot_ids),
        )


class InvalidChain(SchedulingError):
    code = "invalid_chain"
    status_code = 422


class InvalidSlotTime(SchedulingError):
    code = "invalid_slot_time"
    status_code = 422

    def __init__(self, value: time) -> None:
        super().__init__(f"{value:%H:%M} is not part of the slot time grid", time=value)


class InvalidTransition(SchedulingError):
    code = "invalid_transition"
    status_code = 409

    def __init__(self, kind: str, current: str, target: str) -> None:
        super().__init__(
            f"Cannot move {kind} from '{current}' to '{target}'",
            current=current,
            target=target,
        )


class DuplicateSlot(SchedulingError):
    code = "duplicate_slot"
    status_code = 409

    def __init__(self, slot_date: date, slot_time: time) -> None:
        super().__init__(
            f"A slot already exists on {slot_date.isoformat()} at {slot_time:%H:%M}",
            date=slot_date,
            time=slot_time,
        )


class SlotInUse(SchedulingError):
    code = "slot_in_use"
    status_code = 409

    def __init__(self, slot_id: UUID) -> None:
        super().__init__(f"Slot {slot_id} is referenced by a booking", slot_id=slot_id)


class StoreUnavailable(SchedulingError):
    code = "store_unavailable"
    status_code = 503

    def __init__(self) -> None:
        super().__init__("The booking store is temporarily unavailable; please retry")


def _jsonable(value: Any) -> Any:
    if isinstance(value, time):
        return value.strftime("%H:%M")
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, list):
        return [_jsonable(v) for v in value]
    return value
