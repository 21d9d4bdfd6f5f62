from nailbook.db.session import Base
from nailbook.models.nail_tech import NailTech
from nailbook.models.slot import Slot
from nailbook.models.blocked_date import BlockedDate
from nailbook.models.booking import Booking, BookingSlot
