import logging
from uuid import UUID
from typing import List, Optional
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from nailbook.db.session import get_db
from nailbook.models.blocked_date import BlockedDate
from nailbook.scheduling.store import SlotStore
from nailbook.schemas.blocked_date import (
    BlockedDate as BlockedDateSchema,
    BlockedDateCreate,
    BlockedDateUpdate,
    normalise_range,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/blocked-dates", tags=["Admin - Blocked Dates"])


@router.get("/", response_model=List[BlockedDateSchema])
def list_blocked_dates(
    from_date: Optional[date] = None,
    to_date: Optional[date] = None,
    db: Session = Depends(get_db),
):
    """Blocked ranges intersecting the window; everything when no window is given."""
    if from_date is None:
        query = db.query(BlockedDate)
        if to_date is not None:
            query = query.filter(BlockedDate.start_date <= to_date)
        return query.order_by(BlockedDate.start_date, BlockedDate.end_date).all()
    return SlotStore(db).blocked_dates(from_date, to_date)


@router.post("/", response_model=BlockedDateSchema, status_code=status.HTTP_201_CREATED)
def create_blocked_date(
    data: BlockedDateCreate,
    db: Session = Depends(get_db),
):
    blocked = BlockedDate(**data.model_dump())
    db.add(blocked)
    db.commit()
    db.refresh(blocked)
    logger.info(
        "Blocked %s..%s",
        blocked.start_date,
        blocked.end_date,
        extra={"reason": blocked.reason},
    )
    return blocked


@router.patch("/{id}", response_model=BlockedDateSchema)
def update_blocked_date(
    id: UUID,
    data: BlockedDateUpdate,
    db: Session = Depends(get_db),
):
    blocked = db.query(BlockedDate).filter(BlockedDate.id == id).first()
    if not blocked:
        raise HTTPException(status_code=404, detail="Blocked date not found")

    updates = data.model_dump(exclude_unset=True)
    scope = updates.get("scope", blocked.scope)
    start = updates.get("start_date", blocked.start_date)
    end = updates.get("end_date", blocked.end_date)
    try:
        start, end = normalise_range(scope, start, end)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc))

    blocked.scope = scope
    blocked.start_date = start
    blocked.end_date = end
    if "reason" in updates:
        blocked.reason = updates["reason"]

    db.commit()
    db.refresh(blocked)
    return blocked


@router.delete("/{id}", status_code=status.HTTP_200_OK)
def delete_blocked_date(
    id: UUID,
    db: Session = Depends(get_db),
):
    blocked = db.query(BlockedDate).filter(BlockedDate.id == id).first()
    if not blocked:
        raise HTTPException(status_code=404, detail="Blocked date not found")

    db.delete(blocked)
    db.commit()
    return {"id": str(id), "deleted": True}
