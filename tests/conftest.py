"""
Pytest fixtures shared by the scheduling tests.

Each test gets its own file-backed SQLite database so that several sessions
(and threads) can work against the same store, like concurrent requests do.
"""

from datetime import date, time

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from clinic_slots.db.base import build_engine, get_db, init_db
from clinic_slots.main import app
from clinic_slots.scheduling.configurations import create_configuration
from clinic_slots.scheduling.permissions import Actor, Role
from clinic_slots.scheduling.schedules import create_schedule

WORKDAY = date(2030, 1, 7)


@pytest.fixture
def engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'slots.db'}")
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def admin():
    return Actor(role=Role.ADMIN, user_id="admin-1")


@pytest.fixture
def staff():
    return Actor(role=Role.STAFF, user_id="staff-1")


@pytest.fixture
def patient():
    return Actor(role=Role.PATIENT, user_id="patient-1")


@pytest.fixture
def make_schedule(db, admin):
    def _make(**overrides):
        data = {
            "staff_id": 1,
            "date": WORKDAY,
            "start_time": time(9, 0),
            "end_time": time(12, 0),
        }
        data.update(overrides)
        return create_schedule(db, data, admin)
    return _make


@pytest.fixture
def make_config(db, admin):
    def _make(**overrides):
        data = {
            "staff_id": 1,
            "slot_duration_minutes": 30,
            "buffer_time_minutes": 0,
            "max_patients_per_slot": 1,
            "advance_booking_days": 30,
            "is_active": True,
        }
        data.update(overrides)
        return create_configuration(db, data, admin)
    return _make


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()
