from datetime import datetime, timedelta, timezone

from nailbook.models.booking import Booking, BookingStatus, ServiceType
from nailbook.models.slot import Slot, SlotStatus
from nailbook.scheduling.reservation import ServiceRequest
from nailbook.utils.housekeeping import (
    purge_past_slots,
    release_eligible_bookings,
    release_stale_bookings,
)

from conftest import DAY

NOW = datetime(2030, 3, 4, 12, 0, tzinfo=timezone.utc)


def _reserve_at(db, coordinator, slot, created_at):
    booking = coordinator.reserve(slot.id, [], ServiceRequest(ServiceType.manicure))
    booking.created_at = created_at
    db.commit()
    return booking


def test_only_old_pending_form_bookings_are_eligible(db, coordinator, make_slot):
    stale = _reserve_at(db, coordinator, make_slot("08:00"), NOW - timedelta(hours=3))
    _reserve_at(db, coordinator, make_slot("10:30"), NOW - timedelta(minutes=30))
    paying = _reserve_at(db, coordinator, make_slot("13:00"), NOW - timedelta(hours=5))
    coordinator.advance(paying.id, BookingStatus.pending_payment)

    eligible = release_eligible_bookings(db, 120, now=NOW)
    assert [b.id for b in eligible] == [stale.id]


def test_release_stale_bookings_frees_their_slots(db, coordinator, store, make_slot):
    slot = make_slot("08:00")
    stale = _reserve_at(db, coordinator, slot, NOW - timedelta(hours=3))

    assert release_stale_bookings(coordinator, 120, now=NOW) == 1
    assert SlotStatus(store.get_slot(slot.id).status) == SlotStatus.available
    assert coordinator.get_booking(stale.id).released_at is not None

    # released bookings are not picked up twice
    assert release_stale_bookings(coordinator, 120, now=NOW) == 0


def test_purge_only_removes_unbooked_past_slots(db, coordinator, make_slot):
    yesterday = DAY - timedelta(days=1)
    gone = make_slot("08:00", slot_date=yesterday)
    blocked = make_slot("10:30", slot_date=yesterday, status=SlotStatus.blocked)
    booked = make_slot("13:00", slot_date=yesterday)
    booking = coordinator.reserve(booked.id, [], ServiceRequest(ServiceType.manicure))
    coordinator.release(booking.id)
    upcoming = make_slot("08:00")

    assert purge_past_slots(db, DAY) == 1

    remaining = {s.id for s in db.query(Slot).all()}
    assert gone.id not in remaining
    assert {blocked.id, booked.id, upcoming.id} <= remaining
    assert db.query(Booking).count() == 1
