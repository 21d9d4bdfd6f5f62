import uuid
import enum
from sqlalchemy import Column, String, DateTime, func, Uuid, Enum as SAEnum
from sqlalchemy.orm import relationship
from nailbook.db.session import Base

class NailTechRole(str, enum.Enum):
    Owner = "Owner"
    Staff = "Staff"

class NailTechStatus(str, enum.Enum):
    Active = "Active"
    Inactive = "Inactive"

class ServiceAvailability(str, enum.Enum):
    studio_only = "Studio only"
    home_service_only = "Home service only"
    studio_and_home = "Studio and Home Service"

class NailTech(Base):
    __tablename__ = "nail_techs"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(100), nullable=False) # stored without the "Ms." prefix
    role = Column(SAEnum(NailTechRole, native_enum=False), nullable=False, default=NailTechRole.Staff)
    status = Column(SAEnum(NailTechStatus, native_enum=False), nullable=False, default=NailTechStatus.Active, index=True)
    service_availability = Column(
        SAEnum(ServiceAvailability, native_enum=False, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=ServiceAvailability.studio_only,
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), nullable=True)

    slots = relationship("Slot", back_populates="nail_tech")
