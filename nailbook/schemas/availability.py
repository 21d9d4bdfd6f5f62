from typing import List, Optional
from pydantic import BaseModel, UUID4
from datetime import date

from nailbook.schemas.slot import Slot
from nailbook.schemas.blocked_date import BlockedDate


# Response for GET /availability
class AvailabilityResponse(BaseModel):
    nail_tech_id: Optional[UUID4] = None
    from_date: date
    to_date: date
    slots: List[Slot]
    blocked_dates: List[BlockedDate]
