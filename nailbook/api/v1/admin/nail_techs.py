from uuid import UUID
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from nailbook.db.session import get_db
from nailbook.models.booking import Booking
from nailbook.models.nail_tech import NailTech, NailTechRole, NailTechStatus
from nailbook.models.slot import Slot
from nailbook.schemas.nail_tech import NailTech as NailTechSchema, NailTechCreate, NailTechUpdate

router = APIRouter(prefix="/admin/nail-techs", tags=["Admin - Nail Techs"])


def default_nail_tech(db: Session) -> Optional[NailTech]:
    """The active Owner, otherwise the first active tech by name."""
    active = db.query(NailTech).filter(NailTech.status == NailTechStatus.Active)
    owner = active.filter(NailTech.role == NailTechRole.Owner).order_by(NailTech.name).first()
    return owner or active.order_by(NailTech.name).first()


@router.get("/", response_model=List[NailTechSchema])
def list_nail_techs(
    status: Optional[NailTechStatus] = None,
    db: Session = Depends(get_db),
):
    query = db.query(NailTech)
    if status:
        query = query.filter(NailTech.status == status)
    return query.order_by(NailTech.name).all()


@router.get("/default", response_model=NailTechSchema)
def get_default_nail_tech(db: Session = Depends(get_db)):
    tech = default_nail_tech(db)
    if not tech:
        raise HTTPException(status_code=404, detail="No active nail tech")
    return tech


@router.post("/", response_model=NailTechSchema, status_code=status.HTTP_201_CREATED)
def create_nail_tech(
    data: NailTechCreate,
    db: Session = Depends(get_db),
):
    tech = NailTech(**data.model_dump())
    db.add(tech)
    db.commit()
    db.refresh(tech)
    return tech


@router.get("/{id}", response_model=NailTechSchema)
def get_nail_tech(id: UUID, db: Session = Depends(get_db)):
    tech = db.query(NailTech).filter(NailTech.id == id).first()
    if not tech:
        raise HTTPException(status_code=404, detail="Nail tech not found")
    return tech


@router.patch("/{id}", response_model=NailTechSchema)
def update_nail_tech(
    id: UUID,
    data: NailTechUpdate,
    db: Session = Depends(get_db),
):
    tech = db.query(NailTech).filter(NailTech.id == id).first()
    if not tech:
        raise HTTPException(status_code=404, detail="Nail tech not found")

    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(tech, field, value)

    db.commit()
    db.refresh(tech)
    return tech


@router.delete("/{id}", status_code=status.HTTP_200_OK)
def delete_nail_tech(
    id: UUID,
    db: Session = Depends(get_db),
):
    """
    Techs with slots or bookings are deactivated instead of deleted so their
    history stays intact.
    """
    tech = db.query(NailTech).filter(NailTech.id == id).first()
    if not tech:
        raise HTTPException(status_code=404, detail="Nail tech not found")

    has_history = (
        db.query(Slot.id).filter(Slot.nail_tech_id == id).first()
        or db.query(Booking.id).filter(Booking.nail_tech_id == id).first()
    )
    if has_history:
        tech.status = NailTechStatus.Inactive
        db.commit()
        return {"id": str(id), "status": NailTechStatus.Inactive.value}

    db.delete(tech)
    db.commit()
    return {"id": str(id), "deleted": True}
