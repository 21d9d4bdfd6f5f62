from datetime import time

import pytest
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import configure_mappers

from nailbook.db.base import Base
from nailbook.models import NailTech, Slot, SlotStatus
from nailbook.models.nail_tech import ServiceAvailability

from conftest import DAY


def test_mappers_configure():
    configure_mappers()
    assert {"nail_techs", "slots", "blocked_dates", "bookings", "booking_slots"} <= set(Base.metadata.tables)


def test_slot_defaults(db):
    slot = Slot(slot_date=DAY, slot_time=time(8, 0))
    db.add(slot)
    db.commit()
    db.refresh(slot)

    assert slot.status == SlotStatus.available
    assert slot.is_hidden is False
    assert slot.created_at is not None


def test_slot_is_unique_per_tech_date_time(db, tech):
    db.add(Slot(nail_tech_id=tech.id, slot_date=DAY, slot_time=time(8, 0)))
    db.commit()
    db.add(Slot(nail_tech_id=tech.id, slot_date=DAY, slot_time=time(8, 0)))
    with pytest.raises(IntegrityError):
        db.commit()
    db.rollback()


def test_service_availability_stores_display_value(db):
    tech = NailTech(name="Mika", service_availability=ServiceAvailability.studio_and_home)
    db.add(tech)
    db.commit()
    db.refresh(tech)
    assert tech.service_availability == ServiceAvailability.studio_and_home
    assert tech.service_availability.value == "Studio and Home Service"


def test_slot_without_tech_is_unique_per_date_time(db):
    db.add(Slot(slot_date=DAY, slot_time=time(8, 0)))
    db.commit()
    db.add(Slot(slot_date=DAY, slot_time=time(8, 0)))
    with pytest.raises(IntegrityError):
        db.commit()
    db.rollback()

    db.add(Slot(slot_date=DAY, slot_time=time(10, 30)))
    db.commit()
    assert db.query(Slot).count() == 2
