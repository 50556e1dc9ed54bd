"""Slot repository - Database operations for appointment slots"""

from datetime import date
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ...models import AppointmentSlot, Booking
from .capacity import ACTIVE_BOOKING_STATUSES


class SlotRepository:
    """Repository for appointment slot database operations"""

    @staticmethod
    def list_slots(
        db: Session,
        doctor_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        status: Optional[str] = None,
    ) -> list[AppointmentSlot]:
        query = db.query(AppointmentSlot).filter(AppointmentSlot.doctor_id == doctor_id)
        if start_date:
            query = query.filter(AppointmentSlot.date >= start_date)
        if end_date:
            query = query.filter(AppointmentSlot.date <= end_date)
        if status:
            query = query.filter(AppointmentSlot.status == status)
        return query.order_by(AppointmentSlot.date, AppointmentSlot.start_time).all()

    @staticmethod
    def get_slot(db: Session, slot_id: str, doctor_id: str) -> Optional[AppointmentSlot]:
        return (
            db.query(AppointmentSlot)
            .filter(AppointmentSlot.id == slot_id, AppointmentSlot.doctor_id == doctor_id)
            .first()
        )

    @staticmethod
    def get_slots(db: Session, slot_ids: list[str], doctor_id: str) -> list[AppointmentSlot]:
        return (
            db.query(AppointmentSlot)
            .filter(AppointmentSlot.id.in_(slot_ids), AppointmentSlot.doctor_id == doctor_id)
            .all()
        )

    @staticmethod
    def existing_starts(db: Session, doctor_id: str, dates: list[date]) -> set[tuple[date, str]]:
        rows = (
            db.query(AppointmentSlot.date, AppointmentSlot.start_time)
            .filter(AppointmentSlot.doctor_id == doctor_id, AppointmentSlot.date.in_(dates))
            .all()
        )
        return {(row.date, row.start_time) for row in rows}

    @staticmethod
    def booking_counts(
        db: Session, slot_ids: list[str], statuses: tuple[str, ...] = ACTIVE_BOOKING_STATUSES
    ) -> dict[str, int]:
        """Bookings per slot among the given statuses (active ones by default)"""
        if not slot_ids:
            return {}
        rows = (
            db.query(Booking.slot_id, func.count(Booking.id))
            .filter(Booking.slot_id.in_(slot_ids), Booking.status.in_(statuses))
            .group_by(Booking.slot_id)
            .all()
        )
        return {slot_id: count for slot_id, count in rows}
