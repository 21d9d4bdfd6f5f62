from typing import Optional
from pydantic import BaseModel, UUID4, Field, field_validator
from datetime import datetime

from nailbook.models.nail_tech import NailTechRole, NailTechStatus, ServiceAvailability


def _strip_honorific(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    name = value.strip()
    if name.lower().startswith("ms."):
        name = name[3:].strip()
    return name


# Nail Tech: Create (POST /admin/nail-techs)
class NailTechCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    role: NailTechRole = NailTechRole.Staff
    status: NailTechStatus = NailTechStatus.Active
    service_availability: ServiceAvailability = ServiceAvailability.studio_only

    @field_validator("name")
    @classmethod
    def strip_prefix(cls, v):
        name = _strip_honorific(v)
        if not name:
            raise ValueError("name must not be empty")
        return name


# Nail Tech: Update (PATCH /admin/nail-techs/{id})
class NailTechUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    role: Optional[NailTechRole] = None
    status: Optional[NailTechStatus] = None
    service_availability: Optional[ServiceAvailability] = None

    @field_validator("name")
    @classmethod
    def strip_prefix(cls, v):
        name = _strip_honorific(v)
        if name is not None and not name:
            raise ValueError("name must not be empty")
        return name


# Nail Tech: DB response
class NailTech(BaseModel):
    id: UUID4
    name: str
    role: NailTechRole
    status: NailTechStatus
    service_availability: ServiceAvailability
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True