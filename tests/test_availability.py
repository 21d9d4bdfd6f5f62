from datetime import date, timedelta
from types import SimpleNamespace

from nailbook.models.slot import SlotStatus
from nailbook.scheduling.availability import filter_available, get_availability
from nailbook.scheduling.blocked import BlockedDateOverlay

from conftest import DAY, hm


def row(at, slot_date=DAY, status=SlotStatus.available, is_hidden=False, nail_tech_id=None):
    return SimpleNamespace(
        slot_date=slot_date,
        slot_time=hm(at),
        status=status,
        is_hidden=is_hidden,
        nail_tech_id=nail_tech_id,
    )


def test_filter_keeps_only_bookable_slots():
    keep = row("08:00")
    slots = [
        keep,
        row("10:30", status=SlotStatus.pending),
        row("13:00", is_hidden=True),
        row("15:30", slot_date=DAY - timedelta(days=1)),
    ]
    assert filter_available(slots, DAY, BlockedDateOverlay()) == [keep]


def test_filter_drops_blocked_dates_and_other_techs():
    tomorrow = DAY + timedelta(days=1)
    mine = row("08:00", nail_tech_id="a")
    slots = [mine, row("10:30", nail_tech_id="b"), row("08:00", slot_date=tomorrow, nail_tech_id="a")]
    overlay = BlockedDateOverlay([SimpleNamespace(start_date=tomorrow, end_date=tomorrow)])
    assert filter_available(slots, DAY, overlay, nail_tech_id="a") == [mine]


def test_filter_sorts_by_date_then_time():
    late = row("15:30")
    early = row("08:00")
    next_day = row("08:00", slot_date=DAY + timedelta(days=1))
    assert filter_available([next_day, late, early], DAY, BlockedDateOverlay()) == [early, late, next_day]


def test_get_availability_clamps_to_today(store, make_slot):
    make_slot("08:00", slot_date=DAY - timedelta(days=2))
    today_slot = make_slot("10:30")

    result = get_availability(store, DAY, from_date=DAY - timedelta(days=5))
    assert [s.id for s in result.slots] == [today_slot.id]


def test_get_availability_respects_window(store, make_slot):
    inside = make_slot("08:00", slot_date=DAY + timedelta(days=10))
    make_slot("08:00", slot_date=DAY + timedelta(days=40))

    result = get_availability(store, DAY, window_days=30)
    assert [s.id for s in result.slots] == [inside.id]


def test_get_availability_returns_current_blocks(store, make_slot, block):
    make_slot("08:00")
    make_slot("08:00", slot_date=DAY + timedelta(days=1))
    block(DAY - timedelta(days=10), DAY - timedelta(days=8))
    current = block(DAY, reason="Day off")

    result = get_availability(store, DAY)
    assert [b.id for b in result.blocked_dates] == [current.id]
    assert [s.slot_date for s in result.slots] == [DAY + timedelta(days=1)]


def test_released_slots_show_up_again(store, coordinator, make_slot):
    from nailbook.models.booking import ServiceType
    from nailbook.scheduling.reservation import ServiceRequest

    anchor = make_slot("08:00")
    booking = coordinator.reserve(anchor.id, [], ServiceRequest(ServiceType.manicure))
    assert get_availability(store, DAY).slots == []

    coordinator.release(booking.id)
    assert [s.id for s in get_availability(store, DAY).slots] == [anchor.id]


def test_empty_window(store, make_slot):
    make_slot("08:00")
    result = get_availability(store, DAY, to_date=date(2030, 3, 1))
    assert result.slots == []
    assert result.blocked_dates == []
