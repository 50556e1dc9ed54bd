"""
Schedule conflict detection for tasks.

Intervals are half open: a task ending at 10:30 and another starting at 10:30
do not overlap. Overlapping tasks block the write; overlapping patient
bookings only produce warnings.
"""

import logging
from datetime import date
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...errors import TaskConflictError
from ...models import AppointmentSlot, Booking, TaskStatus
from ...shared.validators import time_to_minutes
from ..slots.capacity import ACTIVE_BOOKING_STATUSES
from .repository import TaskRepository

logger = logging.getLogger(__name__)

OPEN_TASK_STATUSES = (TaskStatus.PENDING.value, TaskStatus.IN_PROGRESS.value)


def overlaps(start_a: str, end_a: str, start_b: str, end_b: str) -> bool:
    return time_to_minutes(start_a) < time_to_minutes(end_b) and time_to_minutes(
        end_a
    ) > time_to_minutes(start_b)


def find_task_conflicts(
    db: Session,
    doctor_id: str,
    on_date: date,
    start_time: str,
    end_time: str,
    exclude_task_id: Optional[str] = None,
) -> list[dict]:
    tasks = TaskRepository.tasks_on(db, doctor_id, on_date, OPEN_TASK_STATUSES)
    return [
        {
            "id": task.id,
            "title": task.title,
            "startTime": task.start_time,
            "endTime": task.end_time,
            "status": task.status,
        }
        for task in tasks
        if task.id != exclude_task_id
        and overlaps(task.start_time, task.end_time, start_time, end_time)
    ]


def ensure_no_task_conflicts(
    db: Session,
    doctor_id: str,
    on_date: date,
    start_time: str,
    end_time: str,
    exclude_task_id: Optional[str] = None,
) -> None:
    """
    Raises:
        TaskConflictError: another open task of the same doctor overlaps the range
    """
    conflicts = find_task_conflicts(db, doctor_id, on_date, start_time, end_time, exclude_task_id)
    if conflicts:
        logger.info(
            f"⛔ Task {on_date} {start_time}-{end_time} overlaps {len(conflicts)} task(s)"
        )
        raise TaskConflictError(conflicts)


def find_overlapping_slots(
    db: Session, doctor_id: str, on_date: date, start_time: str, end_time: str
) -> list[AppointmentSlot]:
    slots = (
        db.query(AppointmentSlot)
        .filter(AppointmentSlot.doctor_id == doctor_id, AppointmentSlot.date == on_date)
        .order_by(AppointmentSlot.start_time)
        .all()
    )
    return [s for s in slots if overlaps(s.start_time, s.end_time, start_time, end_time)]


def find_booking_warnings(
    db: Session, doctor_id: str, on_date: date, start_time: str, end_time: str
) -> list[dict]:
    """
    Overlapping slots that hold active bookings.

    Best effort: a failed read is logged and yields no warnings.
    """
    try:
        with db.begin_nested():
            rows = (
                db.query(AppointmentSlot, Booking.patient_name)
                .join(Booking, Booking.slot_id == AppointmentSlot.id)
                .filter(
                    AppointmentSlot.doctor_id == doctor_id,
                    AppointmentSlot.date == on_date,
                    Booking.status.in_(ACTIVE_BOOKING_STATUSES),
                )
                .order_by(AppointmentSlot.start_time)
                .all()
            )
    except SQLAlchemyError as e:
        logger.warning(f"⚠️ Could not check bookings for {on_date}: {e}")
        return []

    warnings: dict[str, dict] = {}
    for slot, patient_name in rows:
        if not overlaps(slot.start_time, slot.end_time, start_time, end_time):
            continue
        entry = warnings.setdefault(
            slot.id,
            {
                "slotId": slot.id,
                "startTime": slot.start_time,
                "endTime": slot.end_time,
                "activeBookings": 0,
                "patients": [],
            },
        )
        entry["activeBookings"] += 1
        entry["patients"].append(patient_name)
    return list(warnings.values())
