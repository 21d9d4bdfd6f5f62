import calendar
from typing import Optional
from pydantic import BaseModel, UUID4, Field, model_validator
from datetime import date, datetime

from nailbook.models.blocked_date import BlockScope


def normalise_range(scope: BlockScope, start_date: date, end_date: Optional[date]):
    """A month block covers the whole month of start_date; end_date defaults to start_date."""
    if scope == BlockScope.month:
        last_day = calendar.monthrange(start_date.year, start_date.month)[1]
        return start_date.replace(day=1), start_date.replace(day=last_day)
    end_date = end_date or start_date
    if end_date < start_date:
        raise ValueError("end_date must be on or after start_date")
    return start_date, end_date


# Blocked Date: Create (POST /admin/blocked-dates)
class BlockedDateCreate(BaseModel):
    start_date: date
    end_date: Optional[date] = None
    scope: BlockScope = BlockScope.single
    reason: Optional[str] = Field(default=None, max_length=255)

    @model_validator(mode="after")
    def normalise(self):
        self.start_date, self.end_date = normalise_range(self.scope, self.start_date, self.end_date)
        return self


# Blocked Date: Update (PATCH /admin/blocked-dates/{id}); merged with the stored row
class BlockedDateUpdate(BaseModel):
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    scope: Optional[BlockScope] = None
    reason: Optional[str] = Field(default=None, max_length=255)


# Blocked Date: DB response
class BlockedDate(BaseModel):
    id: UUID4
    start_date: date
    end_date: date
    scope: BlockScope
    reason: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
