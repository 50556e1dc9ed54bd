"""Concurrent writers against a file-backed SQLite database, one session per thread."""

import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from practice_api.database import Base, enable_sqlite_savepoints
from practice_api.domain.bookings.schemas import BookingCreate
from practice_api.domain.bookings.service import BookingService
from practice_api.domain.sales.schemas import SaleCreate
from practice_api.domain.sales.service import SaleService
from practice_api.domain.tasks.schemas import TaskCreate
from practice_api.domain.tasks.service import TaskService
from practice_api.errors import CapacityExceeded, DomainError, TaskConflictError
from practice_api.models import AppointmentSlot, Booking, Client, Doctor, Sale, Task


@pytest.fixture
def file_engine(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'practice.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    enable_sqlite_savepoints(engine)
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def sessions(file_engine):
    return sessionmaker(bind=file_engine, autoflush=False)


@pytest.fixture
def seeded(sessions, slot_date) -> dict:
    """Doctor, client and a three-place slot, committed before any thread starts."""
    session = sessions()
    doctor = Doctor(full_name="Dra. Ana López", email="ana@example.com")
    session.add(doctor)
    session.flush()
    client = Client(doctor_id=doctor.id, business_name="Farmacia Central")
    slot = AppointmentSlot(
        doctor_id=doctor.id,
        date=slot_date,
        start_time="10:00",
        end_time="11:00",
        duration=60,
        base_price=Decimal("500.00"),
        final_price=Decimal("500.00"),
        max_bookings=3,
        current_bookings=0,
        status="AVAILABLE",
    )
    session.add_all([client, slot])
    session.commit()
    ids = {"doctor": doctor.id, "client": client.id, "slot": slot.id}
    session.close()
    return ids


def run_together(sessions, count, work) -> list:
    """
    Start `count` workers at the same instant, each with its own session.

    Domain errors are returned in place of the result; anything else, such as
    a lock error from the database, fails the test.
    """
    barrier = threading.Barrier(count)

    def _worker(index):
        session = sessions()
        try:
            barrier.wait()
            return work(session, index)
        except DomainError as e:
            return e
        finally:
            session.close()

    with ThreadPoolExecutor(max_workers=count) as pool:
        return list(pool.map(_worker, range(count)))


class TestConcurrentWriters:
    def test_parallel_sales_get_distinct_numbers(self, sessions, seeded, item_payload):
        def _sell(session, _):
            doctor = session.get(Doctor, seeded["doctor"])
            sale = SaleService(session).create_sale(
                SaleCreate(clientId=seeded["client"], items=item_payload), doctor
            )
            return sale.sale_number

        numbers = run_together(sessions, 10, _sell)

        year = date.today().year
        assert sorted(numbers) == [f"VTA-{year}-{n:03d}" for n in range(1, 11)]
        session = sessions()
        assert session.query(Sale).count() == 10
        session.close()

    def test_parallel_bookings_never_overfill(self, sessions, seeded, patient_payload):
        def _book(session, index):
            payload = {**patient_payload, "patientEmail": f"paciente{index}@example.com"}
            booking = BookingService(session).create_booking(
                BookingCreate(**payload, slotId=seeded["slot"])
            )
            return booking.status

        results = run_together(sessions, 8, _book)

        assert results.count("PENDING") == 3
        assert sum(isinstance(r, CapacityExceeded) for r in results) == 5
        session = sessions()
        slot = session.get(AppointmentSlot, seeded["slot"])
        assert slot.current_bookings == 3
        assert slot.status == "BOOKED"
        assert session.query(Booking).filter_by(slot_id=slot.id).count() == 3
        session.close()

    def test_parallel_overlapping_tasks_keep_one(self, sessions, seeded, slot_date):
        def _add(session, index):
            doctor = session.get(Doctor, seeded["doctor"])
            result = TaskService(session).create_task(
                TaskCreate(title=f"Tarea {index}", dueDate=slot_date, startTime="10:00", endTime="10:30"),
                doctor,
            )
            return result["task"].id

        results = run_together(sessions, 2, _add)

        assert sum(isinstance(r, TaskConflictError) for r in results) == 1
        session = sessions()
        assert session.query(Task).count() == 1
        session.close()
