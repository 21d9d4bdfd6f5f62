from datetime import date, datetime
from functools import lru_cache

from fastapi import Depends
from sqlalchemy.orm import Session

from nailbook.core.config import settings
from nailbook.db.session import get_db
from nailbook.scheduling.reservation import ReservationCoordinator
from nailbook.scheduling.store import SlotStore
from nailbook.scheduling.time_sequence import TimeSequence


@lru_cache
def get_time_sequence() -> TimeSequence:
    """The configured slot time grid, built once per process."""
    return TimeSequence.from_strings(settings.SLOT_TIMES)


def get_store(db: Session = Depends(get_db)) -> SlotStore:
    return SlotStore(db)


def get_coordinator(
    db: Session = Depends(get_db),
    sequence: TimeSequence = Depends(get_time_sequence),
) -> ReservationCoordinator:
    return ReservationCoordinator(db, sequence)


def get_today() -> date:
    # slot dates are stored as local calendar dates
    return datetime.now().date()
