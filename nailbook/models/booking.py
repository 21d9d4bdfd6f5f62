import uuid
import enum
from sqlalchemy import (
    Column, String, DateTime, func, Integer, ForeignKey, Text, Uuid,
    UniqueConstraint, Enum as SAEnum,
)
from sqlalchemy.orm import relationship
from nailbook.db.session import Base

class BookingStatus(str, enum.Enum):
    pending_form = "pending_form"
    pending_payment = "pending_payment"
    confirmed = "confirmed"
    cancelled = "cancelled"

class ServiceType(str, enum.Enum):
    manicure = "manicure"
    pedicure = "pedicure"
    mani_pedi = "mani_pedi"
    home_service_2slots = "home_service_2slots"
    home_service_3slots = "home_service_3slots"

class ClientType(str, enum.Enum):
    new = "new"
    repeat = "repeat"

class ServiceLocation(str, enum.Enum):
    homebased_studio = "homebased_studio"
    home_service = "home_service"

class Booking(Base):
    __tablename__ = "bookings"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    booking_number = Column(String(20), unique=True, nullable=False, index=True)
    slot_id = Column(Uuid, ForeignKey("slots.id"), nullable=False, index=True) # primary (earliest) slot
    nail_tech_id = Column(Uuid, ForeignKey("nail_techs.id"), nullable=True, index=True)
    service_type = Column(SAEnum(ServiceType, native_enum=False), nullable=False)
    client_type = Column(SAEnum(ClientType, native_enum=False), nullable=True)
    service_location = Column(SAEnum(ServiceLocation, native_enum=False), nullable=True)
    status = Column(
        SAEnum(BookingStatus, native_enum=False),
        nullable=False,
        default=BookingStatus.pending_form,
        index=True,
    )
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    released_at = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    slot = relationship("Slot", foreign_keys=[slot_id])
    nail_tech = relationship("NailTech")
    slot_links = relationship(
        "BookingSlot",
        back_populates="booking",
        order_by="BookingSlot.position",
        cascade="all, delete-orphan",
    )

    @property
    def linked_slot_ids(self):
        """Chain slots after the primary one, in chronological order."""
        return [link.slot_id for link in self.slot_links]

    @property
    def all_slot_ids(self):
        return [self.slot_id] + self.linked_slot_ids

class BookingSlot(Base):
    __tablename__ = "booking_slots"
    __table_args__ = (
        UniqueConstraint("booking_id", "slot_id", name="uq_booking_slot"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    booking_id = Column(Uuid, ForeignKey("bookings.id"), nullable=False, index=True)
    slot_id = Column(Uuid, ForeignKey("slots.id"), nullable=False, index=True)
    position = Column(Integer, nullable=False) # 1-based, after the primary slot

    booking = relationship("Booking", back_populates="slot_links")
    slot = relationship("Slot")
