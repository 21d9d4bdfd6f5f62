from uuid import UUID
from typing import List, Optional
from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session, joinedload

from nailbook.api.deps import get_coordinator
from nailbook.core.config import settings
from nailbook.db.session import get_db
from nailbook.models.booking import Booking, BookingSlot, BookingStatus
from nailbook.models.slot import Slot
from nailbook.scheduling.reservation import ReservationCoordinator
from nailbook.schemas.booking import (
    AdminBooking,
    Booking as BookingSchema,
    BookingSlotSummary,
    ReleaseRequest,
    ReleaseResponse,
)
from nailbook.schemas.common import PaginatedResponse
from nailbook.utils.housekeeping import release_eligible_bookings

router = APIRouter(prefix="/admin/bookings", tags=["Admin - Bookings"])


def _serialize_admin_booking(booking: Booking) -> AdminBooking:
    slots = [booking.slot] + [link.slot for link in booking.slot_links]
    return AdminBooking(
        **BookingSchema.model_validate(booking).model_dump(),
        slots=[
            BookingSlotSummary(
                id=s.id,
                slot_date=s.slot_date,
                slot_time=s.slot_time,
                status=s.status,
            )
            for s in slots
            if s is not None
        ],
    )


@router.get("/", response_model=PaginatedResponse[AdminBooking])
def list_all_bookings(
    # --- Filters ---
    status: Optional[BookingStatus] = Query(None, description="Filter by booking status"),
    nail_tech_id: Optional[UUID] = Query(None, description="Filter by nail tech"),
    slot_date: Optional[date] = Query(None, description="Filter by appointment date (YYYY-MM-DD)"),
    # --- Pagination ---
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
):
    """
    Return every booking, newest first.
    Supports filtering by booking status, nail tech, and appointment date.
    """
    query = (
        db.query(Booking)
        .join(Slot, Slot.id == Booking.slot_id)
        .options(
            joinedload(Booking.slot),
            joinedload(Booking.slot_links).joinedload(BookingSlot.slot),
        )
    )

    if status:
        query = query.filter(Booking.status == status)
    if nail_tech_id:
        query = query.filter(Booking.nail_tech_id == nail_tech_id)
    if slot_date:
        query = query.filter(Slot.slot_date == slot_date)

    total = query.count()
    bookings = (
        query.order_by(Booking.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )

    return PaginatedResponse(
        data=[_serialize_admin_booking(b) for b in bookings],
        total=total,
        page=page,
        limit=limit,
        total_pages=-(-total // limit) if total else 0,
    )


@router.get("/release-eligible", response_model=List[AdminBooking])
def list_release_eligible(
    max_age_minutes: Optional[int] = Query(None, ge=0, description="Defaults to STALE_PENDING_MINUTES"),
    db: Session = Depends(get_db),
):
    """Bookings stuck in pending_form long enough to be released."""
    if max_age_minutes is None:
        max_age_minutes = settings.STALE_PENDING_MINUTES
    return [_serialize_admin_booking(b) for b in release_eligible_bookings(db, max_age_minutes)]


@router.post("/release", response_model=ReleaseResponse)
def release_bookings(
    data: ReleaseRequest,
    coordinator: ReservationCoordinator = Depends(get_coordinator),
):
    """Release several bookings at once; unknown ids fail the whole request before any release."""
    for booking_id in data.booking_ids:
        coordinator.get_booking(booking_id)

    released = [coordinator.release(booking_id).id for booking_id in data.booking_ids]
    return ReleaseResponse(released=released, count=len(released))
