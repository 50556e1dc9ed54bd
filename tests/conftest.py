"""Shared test fixtures for practice_api tests."""

import os
from datetime import date, timedelta
from decimal import Decimal
from typing import Generator

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("SMS_ENABLED", "false")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from practice_api.auth import create_access_token
from practice_api.database import Base, enable_sqlite_savepoints, get_db
from practice_api.domain.slots.schemas import SlotCreate
from practice_api.domain.slots.service import SlotService
from practice_api.hooks import PostCommitHooks
from practice_api.models import AppointmentSlot, Client, Doctor, Supplier


@pytest.fixture
def engine():
    """Fresh in-memory database per test."""
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_savepoints(test_engine)
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    test_engine.dispose()


@pytest.fixture
def db(engine) -> Generator[Session, None, None]:
    """Session bound to the test database."""
    session = sessionmaker(bind=engine, autoflush=False)()
    yield session
    session.close()


@pytest.fixture
def hooks() -> PostCommitHooks:
    return PostCommitHooks()


@pytest.fixture
def doctor(db) -> Doctor:
    """Doctor (tenant) owning the test data."""
    doc = Doctor(full_name="Dra. Ana López", email="ana@example.com", phone="+5215512345678")
    db.add(doc)
    db.commit()
    return doc


@pytest.fixture
def other_doctor(db) -> Doctor:
    """A second tenant, for isolation checks."""
    doc = Doctor(full_name="Dr. Luis Pérez", email="luis@example.com")
    db.add(doc)
    db.commit()
    return doc


@pytest.fixture
def client_record(db, doctor) -> Client:
    record = Client(doctor_id=doctor.id, business_name="Farmacia Central")
    db.add(record)
    db.commit()
    return record


@pytest.fixture
def supplier(db, doctor) -> Supplier:
    record = Supplier(doctor_id=doctor.id, business_name="Insumos Médicos SA")
    db.add(record)
    db.commit()
    return record


@pytest.fixture
def slot_date() -> date:
    return date.today() + timedelta(days=7)


@pytest.fixture
def make_slot(db, doctor, slot_date):
    """Factory for a single slot row."""

    def _make(
        start_time: str = "10:00",
        end_time: str = "11:00",
        max_bookings: int = 1,
        on_date: date = None,
        owner: Doctor = None,
    ) -> AppointmentSlot:
        slot = AppointmentSlot(
            doctor_id=(owner or doctor).id,
            date=on_date or slot_date,
            start_time=start_time,
            end_time=end_time,
            duration=60,
            base_price=Decimal("500.00"),
            final_price=Decimal("500.00"),
            max_bookings=max_bookings,
            current_bookings=0,
            status="AVAILABLE",
        )
        db.add(slot)
        db.commit()
        return slot

    return _make


@pytest.fixture
def slot(make_slot) -> AppointmentSlot:
    return make_slot()


@pytest.fixture
def patient_payload() -> dict:
    return {
        "patientName": "María García",
        "patientEmail": "maria@example.com",
        "patientPhone": "5512345678",
    }


@pytest.fixture
def item_payload() -> list[dict]:
    """10 x 150 at the default 16% tax plus 1 x 500 untaxed: 2000 / 240 / 2240."""
    return [
        {"description": "Guantes de nitrilo", "quantity": 10, "unitPrice": 150, "itemType": "product"},
        {"description": "Esterilizador", "quantity": 1, "unitPrice": 500, "taxRate": 0, "itemType": "product"},
    ]


@pytest.fixture
def slot_service(db, hooks) -> SlotService:
    return SlotService(db, hooks)


@pytest.fixture
def single_day_slots(slot_service, doctor, slot_date):
    """09:00-12:00 in one-hour slots (3 slots)."""
    data = SlotCreate(
        mode="single",
        date=slot_date,
        startTime="09:00",
        endTime="12:00",
        duration=60,
        basePrice=Decimal("500"),
    )
    slot_service.create_slots(data, doctor)
    return slot_service.list_slots(doctor.id)


@pytest.fixture
def api(db) -> Generator[TestClient, None, None]:
    """TestClient whose requests share the test session."""
    from practice_api.main import app

    def _get_test_db():
        yield db

    app.dependency_overrides[get_db] = _get_test_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(doctor) -> dict:
    return {"Authorization": f"Bearer {create_access_token(doctor.id)}"}
