import os
from datetime import date, time

# Settings are read at import time; point them at an in-memory database first
os.environ.setdefault("PILLREMINDER_SQLALCHEMY_DATABASE_URI", "sqlite://")
os.environ.setdefault("PILLREMINDER_DEFAULT_TIMEZONE", "UTC")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from pillreminder import models  # noqa: F401
from pillreminder.db.base import Base
from pillreminder.models.pill_regimen import Dosage, Medicine, PillRegimen
from pillreminder.schemas.pill_regimen import DosageRequest, MedicineRequest, PillRegimenRequest
from pillreminder.utils.timezone import get_date_after, today_local


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(engine):
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def today() -> date:
    return today_local()


@pytest.fixture
def regimen_request(today) -> PillRegimenRequest:
    """One dosage at 09:05 with m1 for days 0-2 and m2 for days 1-4"""
    return PillRegimenRequest(
        external_id="123",
        reminder_repeat_window_in_minutes=5,
        reminder_repeat_count=20,
        dosage_requests=[
            DosageRequest(
                hour=9,
                minute=5,
                medicine_requests=[
                    MedicineRequest(name="m1", start_date=today, end_date=get_date_after(today, 2)),
                    MedicineRequest(name="m2", start_date=get_date_after(today, 1), end_date=get_date_after(today, 4)),
                ],
            )
        ],
    )


@pytest.fixture
def stored_regimen(db_session, today) -> PillRegimen:
    """Regimen with dosages at 10:05 and 20:05, persisted through the ORM"""
    morning = Dosage(time(10, 5), [Medicine("paracetamol", today, get_date_after(today, 3))])
    evening = Dosage(
        time(20, 5),
        [
            Medicine("ibuprofen", today, get_date_after(today, 5)),
            Medicine("aspirin", get_date_after(today, 1), get_date_after(today, 2)),
        ],
    )
    regimen = PillRegimen("patient-1", 15, 2, [morning, evening])
    regimen.assign_identifiers()
    db_session.add(regimen)
    db_session.commit()
    return regimen
