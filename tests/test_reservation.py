import uuid
from datetime import date

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from nailbook.core.exceptions import (
    BlockedDateConflict,
    BookingNotFound,
    ChainGap,
    InvalidChain,
    InvalidTransition,
    ReservationRaceLost,
    SlotNotFound,
)
from nailbook.db.base import Base
from nailbook.models.booking import Booking, BookingStatus, ClientType, ServiceType
from nailbook.models.slot import Slot, SlotStatus
from nailbook.scheduling.reservation import ReservationCoordinator, ServiceRequest

from conftest import DAY, hm

MANICURE = ServiceRequest(ServiceType.manicure)
MANI_PEDI = ServiceRequest(ServiceType.mani_pedi, client_type=ClientType.new, notes="French tips")
HOME_3 = ServiceRequest(ServiceType.home_service_3slots)


def statuses(store, *slots):
    found = store.get_slots([s.id for s in slots])
    return [SlotStatus(found[s.id].status) for s in slots]


# ---------------------------------------------------------------------------
# Reserve
# ---------------------------------------------------------------------------


def test_reserve_single_slot(coordinator, store, make_slot):
    anchor = make_slot("08:00")

    booking = coordinator.reserve(anchor.id, [], MANICURE)

    assert booking.status == BookingStatus.pending_form
    assert booking.booking_number.startswith("GN-")
    assert len(booking.booking_number) == 11
    assert booking.all_slot_ids == [anchor.id]
    assert statuses(store, anchor) == [SlotStatus.pending]


def test_reserve_chain_records_links_in_order(coordinator, store, make_slot):
    anchor = make_slot("08:00")
    second = make_slot("10:30")
    third = make_slot("13:00")

    booking = coordinator.reserve(anchor.id, [second.id, third.id], HOME_3)

    assert booking.linked_slot_ids == [second.id, third.id]
    assert [link.position for link in booking.slot_links] == [1, 2]
    assert statuses(store, anchor, second, third) == [SlotStatus.pending] * 3


def test_reserve_keeps_service_metadata(coordinator, make_slot):
    anchor = make_slot("08:00")
    second = make_slot("10:30")

    booking = coordinator.reserve(anchor.id, [second.id], MANI_PEDI)

    assert booking.service_type == ServiceType.mani_pedi
    assert booking.client_type == ClientType.new
    assert booking.notes == "French tips"


def test_reserve_across_an_uncreated_time(coordinator, make_slot):
    anchor = make_slot("08:00")
    later = make_slot("13:00")

    booking = coordinator.reserve(anchor.id, [later.id], MANI_PEDI)
    assert booking.linked_slot_ids == [later.id]


def test_unknown_slots(coordinator, make_slot):
    anchor = make_slot("08:00")
    with pytest.raises(SlotNotFound):
        coordinator.reserve(uuid.uuid4(), [], MANICURE)
    with pytest.raises(SlotNotFound):
        coordinator.reserve(anchor.id, [uuid.uuid4()], MANI_PEDI)


def test_chain_length_must_match_service(coordinator, make_slot):
    anchor = make_slot("08:00")
    second = make_slot("10:30")

    with pytest.raises(InvalidChain) as exc:
        coordinator.reserve(anchor.id, [second.id], MANICURE)
    assert exc.value.details["required_count"] == 1

    with pytest.raises(InvalidChain):
        coordinator.reserve(anchor.id, [], MANI_PEDI)


def test_chain_must_be_ascending_same_day(coordinator, make_slot):
    anchor = make_slot("10:30")
    earlier = make_slot("08:00")
    other_day = make_slot("13:00", slot_date=date(2030, 3, 5))

    with pytest.raises(InvalidChain):
        coordinator.reserve(anchor.id, [earlier.id], MANI_PEDI)
    with pytest.raises(InvalidChain):
        coordinator.reserve(anchor.id, [other_day.id], MANI_PEDI)
    with pytest.raises(InvalidChain):
        coordinator.reserve(anchor.id, [anchor.id], MANI_PEDI)


def test_chain_must_stay_with_one_tech(db, coordinator, make_slot, tech):
    from nailbook.models.nail_tech import NailTech

    other = NailTech(name="Mika")
    db.add(other)
    db.commit()
    anchor = make_slot("08:00", nail_tech_id=tech.id)
    foreign = make_slot("10:30", nail_tech_id=other.id)

    with pytest.raises(InvalidChain):
        coordinator.reserve(anchor.id, [foreign.id], MANI_PEDI)
    with pytest.raises(InvalidChain):
        coordinator.reserve(anchor.id, [], ServiceRequest(ServiceType.manicure, nail_tech_id=other.id))


def test_blocked_date_is_refused(coordinator, store, make_slot, block):
    anchor = make_slot("08:00")
    block(DAY, reason="Holiday")

    with pytest.raises(BlockedDateConflict):
        coordinator.reserve(anchor.id, [], MANICURE)
    assert statuses(store, anchor) == [SlotStatus.available]


def test_taken_member_loses_race_without_writes(db, coordinator, store, make_slot):
    anchor = make_slot("08:00")
    taken = make_slot("10:30", status=SlotStatus.pending)

    with pytest.raises(ReservationRaceLost) as exc:
        coordinator.reserve(anchor.id, [taken.id], MANI_PEDI)
    assert exc.value.details["slot_ids"] == [taken.id]
    assert statuses(store, anchor, taken) == [SlotStatus.available, SlotStatus.pending]
    assert db.query(Booking).count() == 0


def test_taken_slot_between_members_is_a_gap(coordinator, store, make_slot):
    anchor = make_slot("08:00")
    make_slot("10:30", status=SlotStatus.confirmed)
    later = make_slot("13:00")

    with pytest.raises(ChainGap):
        coordinator.reserve(anchor.id, [later.id], MANI_PEDI)
    assert statuses(store, anchor, later) == [SlotStatus.available] * 2


def test_available_slot_between_members_must_be_in_chain(coordinator, make_slot):
    anchor = make_slot("08:00")
    make_slot("10:30")
    later = make_slot("13:00")

    with pytest.raises(InvalidChain):
        coordinator.reserve(anchor.id, [later.id], MANI_PEDI)


def test_overlapping_reserves_have_one_winner(coordinator, store, make_slot):
    anchor = make_slot("08:00")
    second = make_slot("10:30")
    third = make_slot("13:00")

    first = coordinator.reserve(anchor.id, [second.id], MANI_PEDI)
    with pytest.raises(ReservationRaceLost):
        coordinator.reserve(second.id, [third.id], MANI_PEDI)

    assert statuses(store, anchor, second, third) == [SlotStatus.pending, SlotStatus.pending, SlotStatus.available]
    assert coordinator.get_booking(first.id).status == BookingStatus.pending_form


# ---------------------------------------------------------------------------
# Interleaved sessions: the conditional write decides
# ---------------------------------------------------------------------------


@pytest.fixture
def file_sessions(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'race.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield factory
    engine.dispose()


def _seed(factory, *times):
    session = factory()
    slots = [Slot(slot_date=DAY, slot_time=hm(t), status=SlotStatus.available) for t in times]
    session.add_all(slots)
    session.commit()
    ids = [s.id for s in slots]
    session.close()
    return ids


def test_scenario_e_same_slot_two_requests(file_sessions, sequence, monkeypatch):
    (slot_id,) = _seed(file_sessions, "08:00")
    session_a, session_b = file_sessions(), file_sessions()
    request_a = ReservationCoordinator(session_a, sequence)
    request_b = ReservationCoordinator(session_b, sequence)

    check_no_gaps = request_a._check_no_gaps

    def other_request_commits_first(anchor, chain):
        check_no_gaps(anchor, chain)
        request_b.reserve(slot_id, [], MANICURE)

    # request A has passed every read-side check when B commits
    monkeypatch.setattr(request_a, "_check_no_gaps", other_request_commits_first)

    with pytest.raises(ReservationRaceLost):
        request_a.reserve(slot_id, [], MANICURE)

    check = file_sessions()
    assert check.query(Booking).count() == 1
    assert SlotStatus(check.get(Slot, slot_id).status) == SlotStatus.pending
    for session in (session_a, session_b, check):
        session.close()


def test_lost_chain_write_leaves_no_partial_claim(file_sessions, sequence, monkeypatch):
    first, second, third = _seed(file_sessions, "08:00", "10:30", "13:00")
    session_a, session_b = file_sessions(), file_sessions()
    request_a = ReservationCoordinator(session_a, sequence)
    request_b = ReservationCoordinator(session_b, sequence)

    check_no_gaps = request_a._check_no_gaps

    def other_request_commits_first(anchor, chain):
        check_no_gaps(anchor, chain)
        request_b.reserve(third, [], MANICURE)

    monkeypatch.setattr(request_a, "_check_no_gaps", other_request_commits_first)

    with pytest.raises(ReservationRaceLost):
        request_a.reserve(first, [second, third], HOME_3)

    check = file_sessions()
    found = {s.id: SlotStatus(s.status) for s in check.query(Slot).all()}
    assert found == {
        first: SlotStatus.available,
        second: SlotStatus.available,
        third: SlotStatus.pending,
    }
    assert check.query(Booking).count() == 1
    for session in (session_a, session_b, check):
        session.close()


# ---------------------------------------------------------------------------
# Booking lifecycle
# ---------------------------------------------------------------------------


@pytest.fixture
def chain_booking(coordinator, make_slot):
    anchor = make_slot("08:00")
    second = make_slot("10:30")
    booking = coordinator.reserve(anchor.id, [second.id], MANI_PEDI)
    return booking, anchor, second


def test_confirm_flips_every_slot(coordinator, store, chain_booking):
    booking, anchor, second = chain_booking

    coordinator.advance(booking.id, BookingStatus.pending_payment)
    confirmed = coordinator.advance(booking.id, BookingStatus.confirmed)

    assert confirmed.status == BookingStatus.confirmed
    assert statuses(store, anchor, second) == [SlotStatus.confirmed] * 2


def test_booking_cannot_skip_payment(coordinator, store, chain_booking):
    booking, anchor, second = chain_booking

    with pytest.raises(InvalidTransition):
        coordinator.advance(booking.id, BookingStatus.confirmed)
    assert statuses(store, anchor, second) == [SlotStatus.pending] * 2


def test_cancel_without_release_blocks_slots(coordinator, store, chain_booking):
    booking, anchor, second = chain_booking

    cancelled = coordinator.cancel(booking.id)

    assert cancelled.status == BookingStatus.cancelled
    assert cancelled.cancelled_at is not None
    assert cancelled.released_at is None
    assert statuses(store, anchor, second) == [SlotStatus.blocked] * 2


def test_cancel_through_status_update_blocks_slots(coordinator, store, chain_booking):
    booking, anchor, second = chain_booking

    coordinator.advance(booking.id, BookingStatus.cancelled)
    assert statuses(store, anchor, second) == [SlotStatus.blocked] * 2


def test_cancel_with_release_frees_confirmed_slots(coordinator, store, chain_booking):
    booking, anchor, second = chain_booking
    coordinator.advance(booking.id, BookingStatus.pending_payment)
    coordinator.advance(booking.id, BookingStatus.confirmed)

    released = coordinator.cancel(booking.id, release_slots=True)

    assert released.status == BookingStatus.cancelled
    assert released.released_at is not None
    assert statuses(store, anchor, second) == [SlotStatus.available] * 2


def test_cancelled_is_terminal(coordinator, chain_booking):
    booking, _, _ = chain_booking
    coordinator.cancel(booking.id)

    with pytest.raises(InvalidTransition):
        coordinator.cancel(booking.id)
    with pytest.raises(InvalidTransition):
        coordinator.advance(booking.id, BookingStatus.pending_payment)


def test_release_after_cancel_frees_blocked_slots(coordinator, store, chain_booking):
    booking, anchor, second = chain_booking
    coordinator.cancel(booking.id)

    coordinator.release(booking.id)
    assert statuses(store, anchor, second) == [SlotStatus.available] * 2


def test_release_is_idempotent(coordinator, store, chain_booking, make_slot):
    booking, anchor, second = chain_booking
    first = coordinator.release(booking.id)
    released_at = first.released_at

    # someone else books the freed slot
    rebooked = coordinator.reserve(anchor.id, [], MANICURE)
    again = coordinator.release(booking.id)

    assert again.released_at == released_at
    assert statuses(store, anchor) == [SlotStatus.pending]
    assert coordinator.get_booking(rebooked.id).status == BookingStatus.pending_form


def test_release_skips_slots_owned_by_another_booking(db, coordinator, store, chain_booking):
    booking, anchor, second = chain_booking
    coordinator.cancel(booking.id)
    # admin hands the blocked slot back and a new client books it
    db.query(Slot).filter(Slot.id == second.id).update({"status": SlotStatus.available})
    db.commit()
    newer = coordinator.reserve(second.id, [], MANICURE)

    coordinator.release(booking.id)

    assert statuses(store, anchor, second) == [SlotStatus.available, SlotStatus.pending]
    assert coordinator.get_booking(newer.id).released_at is None


def test_unknown_booking(coordinator):
    with pytest.raises(BookingNotFound):
        coordinator.release(uuid.uuid4())
    with pytest.raises(BookingNotFound):
        coordinator.advance(uuid.uuid4(), BookingStatus.pending_payment)


def test_cancelled_booking_does_not_hold_a_reopened_slot(db, coordinator, store, make_slot):
    slot = make_slot("08:00")
    first = coordinator.reserve(slot.id, [], MANICURE)
    coordinator.cancel(first.id)
    # admin reopens the blocked slot and a new client books it
    db.query(Slot).filter(Slot.id == slot.id).update({"status": SlotStatus.available})
    db.commit()
    second = coordinator.reserve(slot.id, [], MANICURE)

    coordinator.release(second.id)

    assert statuses(store, slot) == [SlotStatus.available]


def test_cancelling_rebooked_slot_blocks_it_again(db, coordinator, store, make_slot):
    slot = make_slot("08:00")
    first = coordinator.reserve(slot.id, [], MANICURE)
    coordinator.cancel(first.id)
    db.query(Slot).filter(Slot.id == slot.id).update({"status": SlotStatus.available})
    db.commit()
    second = coordinator.reserve(slot.id, [], MANICURE)

    coordinator.cancel(second.id)

    assert statuses(store, slot) == [SlotStatus.blocked]
