import uuid
import enum
from sqlalchemy import (
    Column, String, Boolean, Date, Time, Text, DateTime, func, ForeignKey, Uuid,
    UniqueConstraint, Index, Enum as SAEnum, text,
)
from sqlalchemy.orm import relationship
from nailbook.db.session import Base

class SlotStatus(str, enum.Enum):
    available = "available"
    pending = "pending"
    confirmed = "confirmed"
    blocked = "blocked"

class SlotType(str, enum.Enum):
    regular = "regular"
    with_squeeze_fee = "with_squeeze_fee"

class Slot(Base):
    __tablename__ = "slots"
    __table_args__ = (
        # At most one slot per nail tech per time-of-day per day
        UniqueConstraint("nail_tech_id", "slot_date", "slot_time", name="uq_slot_tech_date_time"),
        # NULLs never collide in the constraint above; single-tech rows need their own index
        Index(
            "uq_slot_untech_date_time",
            "slot_date",
            "slot_time",
            unique=True,
            postgresql_where=text("nail_tech_id IS NULL"),
            sqlite_where=text("nail_tech_id IS NULL"),
        ),
        Index("ix_slots_tech_date", "nail_tech_id", "slot_date"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    nail_tech_id = Column(Uuid, ForeignKey("nail_techs.id"), nullable=True) # NULL in single-tech deployments
    slot_date = Column(Date, nullable=False, index=True)
    slot_time = Column(Time, nullable=False)
    status = Column(SAEnum(SlotStatus, native_enum=False), nullable=False, default=SlotStatus.available, index=True)
    slot_type = Column(SAEnum(SlotType, native_enum=False), nullable=False, default=SlotType.regular)
    is_hidden = Column(Boolean, nullable=False, default=False) # hidden from customers, still bookable by admins
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), nullable=True)

    nail_tech = relationship("NailTech", back_populates="slots")

    def __repr__(self):
        return f"<Slot {self.slot_date} {self.slot_time} tech={self.nail_tech_id} {self.status}>"
