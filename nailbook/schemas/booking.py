from typing import Optional, List
from pydantic import BaseModel, Field, UUID4, model_validator
from datetime import date, time, datetime

from nailbook.models.booking import BookingStatus, ClientType, ServiceLocation, ServiceType
from nailbook.models.slot import SlotStatus
from nailbook.schemas.slot import Slot


# Resolve chain: POST /bookings/resolve-chain
class ResolveChainRequest(BaseModel):
    anchor_slot_id: UUID4
    required_count: Optional[int] = Field(default=None, ge=1)
    service_type: Optional[ServiceType] = None

    @model_validator(mode="after")
    def need_count_or_service(self):
        if self.required_count is None and self.service_type is None:
            raise ValueError("Provide either required_count or service_type")
        return self


class ResolveChainResponse(BaseModel):
    anchor_slot_id: UUID4
    required_count: int
    chain: List[Slot]


# Reserve: POST /bookings
class ReserveRequest(BaseModel):
    anchor_slot_id: UUID4
    chain_slot_ids: List[UUID4] = []
    service_type: ServiceType
    nail_tech_id: Optional[UUID4] = None
    client_type: Optional[ClientType] = None
    service_location: Optional[ServiceLocation] = None
    notes: Optional[str] = None


# Compact slot for booking responses
class BookingSlotSummary(BaseModel):
    id: UUID4
    slot_date: date
    slot_time: time
    status: SlotStatus


# Booking: Full response (POST /bookings, GET /bookings/{id})
class Booking(BaseModel):
    id: UUID4
    booking_number: str
    slot_id: UUID4
    linked_slot_ids: List[UUID4] = []
    nail_tech_id: Optional[UUID4] = None
    service_type: ServiceType
    client_type: Optional[ClientType] = None
    service_location: Optional[ServiceLocation] = None
    status: BookingStatus
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    released_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# Booking with its slots, for admin views
class AdminBooking(Booking):
    slots: List[BookingSlotSummary] = []


# PATCH /bookings/{id}/status
class StatusUpdate(BaseModel):
    status: BookingStatus


# POST /bookings/{id}/cancel
class CancelRequest(BaseModel):
    release_slots: bool = False


# POST /admin/bookings/release
class ReleaseRequest(BaseModel):
    booking_ids: List[UUID4] = Field(min_length=1)


class ReleaseResponse(BaseModel):
    released: List[UUID4]
    count: int
