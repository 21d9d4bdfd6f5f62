from uuid import UUID
from typing import List, Optional
from datetime import date, timedelta

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from nailbook.api.deps import get_time_sequence, get_today
from nailbook.core.exceptions import BlockedDateConflict, DuplicateSlot, SlotInUse
from nailbook.db.session import get_db
from nailbook.models.nail_tech import NailTech
from nailbook.models.slot import Slot, SlotStatus
from nailbook.scheduling.blocked import BlockedDateOverlay
from nailbook.scheduling.states import check_admin_slot_status
from nailbook.scheduling.store import SlotStore
from nailbook.scheduling.time_sequence import TimeSequence
from nailbook.schemas.slot import (
    WEEKDAYS,
    BulkCreateResult,
    BulkSlotCreate,
    Slot as SlotSchema,
    SlotCreate,
    SlotUpdate,
)

router = APIRouter(prefix="/admin/slots", tags=["Admin - Slots"])


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _check_nail_tech(db: Session, nail_tech_id: Optional[UUID]) -> None:
    if nail_tech_id is None:
        return
    if not db.query(NailTech.id).filter(NailTech.id == nail_tech_id).first():
        raise HTTPException(status_code=404, detail="Nail tech not found")


def _check_placement(
    store: SlotStore,
    sequence: TimeSequence,
    nail_tech_id: Optional[UUID],
    slot_date: date,
    slot_time,
    exclude_slot_id: Optional[UUID] = None,
) -> None:
    """A slot must sit on the time grid, off blocked dates, and be unique per tech."""
    sequence.index(slot_time)
    blocked = store.blocked_on(slot_date)
    if blocked is not None:
        raise BlockedDateConflict(slot_date, blocked.reason)
    if store.find_duplicate(nail_tech_id, slot_date, slot_time, exclude_slot_id):
        raise DuplicateSlot(slot_date, slot_time)


def _commit_placement(db: Session, slot_date: date, slot_time) -> None:
    """Commit a new or moved slot; the unique indexes catch a concurrent twin."""
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise DuplicateSlot(slot_date, slot_time)


# ---------------------------------------------------------------------------
# Slot CRUD
# ---------------------------------------------------------------------------


@router.get("/", response_model=List[SlotSchema])
def list_slots(
    from_date: Optional[date] = Query(None, description="Defaults to today"),
    to_date: Optional[date] = None,
    nail_tech_id: Optional[UUID] = None,
    status: Optional[SlotStatus] = None,
    db: Session = Depends(get_db),
    today: date = Depends(get_today),
):
    """All slots in the range, hidden and booked ones included."""
    store = SlotStore(db)
    return store.list_slots(from_date or today, to_date, nail_tech_id=nail_tech_id, status=status)


@router.post("/", response_model=SlotSchema, status_code=status.HTTP_201_CREATED)
def create_slot(
    data: SlotCreate,
    db: Session = Depends(get_db),
    sequence: TimeSequence = Depends(get_time_sequence),
):
    check_admin_slot_status(SlotStatus.available, data.status)
    _check_nail_tech(db, data.nail_tech_id)
    store = SlotStore(db)
    _check_placement(store, sequence, data.nail_tech_id, data.slot_date, data.slot_time)

    slot = Slot(**data.model_dump())
    db.add(slot)
    _commit_placement(db, data.slot_date, data.slot_time)
    db.refresh(slot)
    return slot


@router.post("/bulk", response_model=BulkCreateResult, status_code=status.HTTP_201_CREATED)
def bulk_create_slots(
    data: BulkSlotCreate,
    db: Session = Depends(get_db),
    sequence: TimeSequence = Depends(get_time_sequence),
):
    """
    Create one slot per selected weekday and time across a date range.
    Cells on blocked dates or already holding a slot are skipped and counted.
    """
    _check_nail_tech(db, data.nail_tech_id)
    times = data.times or list(sequence)
    for t in times:
        sequence.index(t)

    store = SlotStore(db)
    overlay = BlockedDateOverlay(store.blocked_dates(data.date_from, data.date_to))
    wanted_days = {WEEKDAYS.index(d) for d in data.days}

    created = skipped_blocked = skipped_duplicate = 0
    day = data.date_from
    while day <= data.date_to:
        if day.weekday() in wanted_days:
            existing = store.slots_by_time(data.nail_tech_id, day)
            for t in times:
                if overlay.is_blocked(day):
                    skipped_blocked += 1
                    continue
                if t in existing:
                    skipped_duplicate += 1
                    continue
                slot = Slot(
                    nail_tech_id=data.nail_tech_id,
                    slot_date=day,
                    slot_time=t,
                    slot_type=data.slot_type,
                    status=SlotStatus.available,
                )
                db.add(slot)
                existing[t] = slot
                created += 1
        day += timedelta(days=1)

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Slots in this range changed during bulk creation, retry",
        )
    return BulkCreateResult(
        created=created,
        skipped=skipped_blocked + skipped_duplicate,
        skipped_blocked=skipped_blocked,
        skipped_duplicate=skipped_duplicate,
    )


# ---------------------------------------------------------------------------
# One day at a time
# ---------------------------------------------------------------------------


@router.get("/by-date", response_model=List[SlotSchema])
def list_slots_by_date(
    slot_date: date,
    nail_tech_id: Optional[UUID] = None,
    db: Session = Depends(get_db),
):
    """Every slot on ``slot_date``, optionally for one nail tech."""
    store = SlotStore(db)
    return store.list_slots(slot_date, slot_date, nail_tech_id=nail_tech_id)


@router.delete("/by-date", status_code=status.HTTP_200_OK)
def delete_slots_by_date(
    slot_date: date,
    nail_tech_id: Optional[UUID] = None,
    only_available: bool = False,
    db: Session = Depends(get_db),
):
    """
    Clear a day's slots. Slots any booking points at are never removed and
    are counted in ``skipped_in_use``; ``only_available`` also spares
    blocked ones.
    """
    store = SlotStore(db)
    wanted = SlotStatus.available if only_available else None
    deleted = skipped = 0
    for slot in store.list_slots(slot_date, slot_date, nail_tech_id=nail_tech_id, status=wanted):
        if store.is_referenced(slot.id):
            skipped += 1
            continue
        db.delete(slot)
        deleted += 1

    db.commit()
    return {
        "slot_date": slot_date.isoformat(),
        "deleted_count": deleted,
        "skipped_in_use": skipped,
    }


@router.patch("/{id}", response_model=SlotSchema)
def update_slot(
    id: UUID,
    data: SlotUpdate,
    db: Session = Depends(get_db),
    sequence: TimeSequence = Depends(get_time_sequence),
):
    store = SlotStore(db)
    slot = store.get_slot(id)
    updates = data.model_dump(exclude_unset=True)

    if "status" in updates:
        check_admin_slot_status(slot.status, updates["status"])

    new_date = updates.get("slot_date", slot.slot_date)
    new_time = updates.get("slot_time", slot.slot_time)
    if (new_date, new_time) != (slot.slot_date, slot.slot_time):
        # booked slots keep their place on the calendar
        if SlotStatus(slot.status) in (SlotStatus.pending, SlotStatus.confirmed):
            raise SlotInUse(id)
        _check_placement(store, sequence, slot.nail_tech_id, new_date, new_time, exclude_slot_id=id)

    for field, value in updates.items():
        setattr(slot, field, value)

    _commit_placement(db, new_date, new_time)
    db.refresh(slot)
    return slot


@router.delete("/{id}", status_code=status.HTTP_200_OK)
def delete_slot(
    id: UUID,
    db: Session = Depends(get_db),
):
    store = SlotStore(db)
    slot = store.get_slot(id)
    if store.is_referenced(id):
        raise SlotInUse(id)

    db.delete(slot)
    db.commit()
    return {"id": str(id), "deleted": True}
