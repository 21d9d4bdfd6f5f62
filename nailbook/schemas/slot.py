from typing import Optional, List
from pydantic import BaseModel, UUID4, Field, field_validator, model_validator
from datetime import date, time, datetime

from nailbook.models.slot import SlotStatus, SlotType
from nailbook.scheduling.time_sequence import parse_slot_time

WEEKDAYS = ["mon", "tue", "wed", "thu", "fri", "sat", "sun"]


# Slot: Create (POST /admin/slots)
class SlotCreate(BaseModel):
    slot_date: date
    slot_time: time
    nail_tech_id: Optional[UUID4] = None     # omit for single-tech deployments
    status: SlotStatus = SlotStatus.available
    slot_type: SlotType = SlotType.regular
    is_hidden: bool = False
    notes: Optional[str] = None

    @field_validator("slot_time", mode="before")
    @classmethod
    def parse_time(cls, v):
        return parse_slot_time(v)


# Slot: Update (admin PATCH /admin/slots/{id})
class SlotUpdate(BaseModel):
    slot_date: Optional[date] = None
    slot_time: Optional[time] = None
    status: Optional[SlotStatus] = None      # available <-> blocked only
    slot_type: Optional[SlotType] = None
    is_hidden: Optional[bool] = None
    notes: Optional[str] = None

    @field_validator("slot_time", mode="before")
    @classmethod
    def parse_time(cls, v):
        if v is None:
            return v
        return parse_slot_time(v)

    # omitted fields stay untouched; only notes can be cleared with null
    @field_validator("slot_date", "slot_time", "status", "slot_type", "is_hidden")
    @classmethod
    def not_null(cls, v):
        if v is None:
            raise ValueError("may be omitted but not null")
        return v


# Slot: DB response
class Slot(BaseModel):
    id: UUID4
    nail_tech_id: Optional[UUID4] = None
    slot_date: date
    slot_time: time
    status: SlotStatus
    slot_type: SlotType = SlotType.regular
    is_hidden: bool = False
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# Bulk slot generation, the same times repeated across a date range
class BulkSlotCreate(BaseModel):
    date_from: date
    date_to: date
    days: List[str] = Field(default_factory=lambda: list(WEEKDAYS))  # e.g. ["mon", "wed", "fri"]
    times: Optional[List[time]] = None       # defaults to the whole time grid
    nail_tech_id: Optional[UUID4] = None
    slot_type: SlotType = SlotType.regular

    @field_validator("days")
    @classmethod
    def normalise_days(cls, v):
        days = [d.strip().lower()[:3] for d in v]
        unknown = [d for d in days if d not in WEEKDAYS]
        if unknown:
            raise ValueError(f"Unknown weekday(s): {', '.join(unknown)}")
        return days

    @field_validator("times", mode="before")
    @classmethod
    def parse_times(cls, v):
        if v is None:
            return v
        # repeated times collapse to one, first occurrence wins
        return list(dict.fromkeys(parse_slot_time(t) for t in v))

    @model_validator(mode="after")
    def check_range(self):
        if self.date_to < self.date_from:
            raise ValueError("date_to must be on or after date_from")
        return self


class BulkCreateResult(BaseModel):
    created: int
    skipped: int
    skipped_blocked: int = 0
    skipped_duplicate: int = 0
