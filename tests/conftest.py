import os

# Point settings at SQLite before anything imports nailbook.core.config
os.environ["DATABASE_URL"] = "sqlite://"

from datetime import date, time

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from nailbook.db.base import Base
from nailbook.models.blocked_date import BlockedDate
from nailbook.models.nail_tech import NailTech, NailTechRole
from nailbook.models.slot import Slot, SlotStatus
from nailbook.scheduling.reservation import ReservationCoordinator
from nailbook.scheduling.store import SlotStore
from nailbook.scheduling.time_sequence import TimeSequence

# A Monday well clear of the real calendar
DAY = date(2030, 3, 4)
GRID = ["08:00", "10:30", "13:00", "15:30"]


def hm(value: str) -> time:
    return time.fromisoformat(value)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def sequence():
    return TimeSequence.from_strings(GRID)


@pytest.fixture
def store(db):
    return SlotStore(db)


@pytest.fixture
def coordinator(db, sequence):
    return ReservationCoordinator(db, sequence)


@pytest.fixture
def tech(db):
    tech = NailTech(name="Jhen", role=NailTechRole.Owner)
    db.add(tech)
    db.commit()
    db.refresh(tech)
    return tech


@pytest.fixture
def make_slot(db):
    def _make(at: str, slot_date: date = DAY, nail_tech_id=None, status=SlotStatus.available, **extra):
        slot = Slot(
            nail_tech_id=nail_tech_id,
            slot_date=slot_date,
            slot_time=hm(at),
            status=status,
            **extra,
        )
        db.add(slot)
        db.commit()
        db.refresh(slot)
        return slot

    return _make


@pytest.fixture
def block(db):
    def _block(start_date: date, end_date: date = None, reason: str = None):
        blocked = BlockedDate(start_date=start_date, end_date=end_date or start_date, reason=reason)
        db.add(blocked)
        db.commit()
        db.refresh(blocked)
        return blocked

    return _block
