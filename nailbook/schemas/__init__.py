from nailbook.schemas.common import PaginatedResponse, ErrorResponse
from nailbook.schemas.nail_tech import NailTech, NailTechCreate, NailTechUpdate
from nailbook.schemas.slot import Slot, SlotCreate, SlotUpdate, BulkSlotCreate, BulkCreateResult
from nailbook.schemas.blocked_date import BlockedDate, BlockedDateCreate, BlockedDateUpdate
from nailbook.schemas.availability import AvailabilityResponse
from nailbook.schemas.booking import (
    Booking, AdminBooking, BookingSlotSummary,
    ResolveChainRequest, ResolveChainResponse, ReserveRequest,
    StatusUpdate, CancelRequest, ReleaseRequest, ReleaseResponse,
)
