from nailbook.models.nail_tech import NailTech, NailTechRole, NailTechStatus, ServiceAvailability
from nailbook.models.slot import Slot, SlotStatus, SlotType
from nailbook.models.blocked_date import BlockedDate, BlockScope
from nailbook.models.booking import (
    Booking, BookingSlot, BookingStatus, ServiceType, ClientType, ServiceLocation,
)
