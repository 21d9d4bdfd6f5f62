from uuid import UUID
from typing import Optional
from datetime import date, timedelta

from fastapi import APIRouter, Depends, Query

from nailbook.api.deps import get_store, get_today
from nailbook.core.config import settings
from nailbook.scheduling.availability import get_availability
from nailbook.scheduling.store import SlotStore
from nailbook.schemas.availability import AvailabilityResponse

router = APIRouter(prefix="/availability", tags=["Availability"])


@router.get("/", response_model=AvailabilityResponse)
def read_availability(
    nail_tech_id: Optional[UUID] = Query(None, description="Only slots of this nail tech"),
    from_date: Optional[date] = Query(None, description="First day (YYYY-MM-DD), never before today"),
    to_date: Optional[date] = Query(None, description="Last day (YYYY-MM-DD), defaults to the availability window"),
    store: SlotStore = Depends(get_store),
    today: date = Depends(get_today),
):
    """
    Bookable slots for the customer booking page plus the blocked dates the
    calendar should grey out.
    """
    start = max(from_date or today, today)
    end = to_date or start + timedelta(days=settings.AVAILABILITY_WINDOW_DAYS)
    result = get_availability(
        store,
        today,
        from_date=start,
        to_date=end,
        nail_tech_id=nail_tech_id,
        window_days=settings.AVAILABILITY_WINDOW_DAYS,
    )
    return AvailabilityResponse(
        nail_tech_id=nail_tech_id,
        from_date=start,
        to_date=end,
        slots=result.slots,
        blocked_dates=result.blocked_dates,
    )
