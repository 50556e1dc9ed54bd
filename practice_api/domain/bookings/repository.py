"""Booking repository - Database operations for bookings"""

from datetime import date
from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ...models import AppointmentSlot, Booking


class BookingRepository:
    """Repository for booking database operations"""

    @staticmethod
    def get_by_reference(db: Session, reference: str) -> Optional[Booking]:
        """Look a booking up by its id or its confirmation code"""
        booking = (
            db.query(Booking)
            .options(joinedload(Booking.slot))
            .filter(Booking.id == reference)
            .first()
        )
        if booking:
            return booking
        return (
            db.query(Booking)
            .options(joinedload(Booking.slot))
            .filter(Booking.confirmation_code == reference.strip().upper())
            .first()
        )

    @staticmethod
    def get_for_doctor(db: Session, booking_id: str, doctor_id: str) -> Optional[Booking]:
        return (
            db.query(Booking)
            .filter(Booking.id == booking_id, Booking.doctor_id == doctor_id)
            .first()
        )

    @staticmethod
    def code_exists(db: Session, code: str) -> bool:
        return db.query(Booking.id).filter(Booking.confirmation_code == code).first() is not None

    @staticmethod
    def list_for_doctor(
        db: Session,
        doctor_id: str,
        status: Optional[str] = None,
        patient_email: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[Booking]:
        query = (
            db.query(Booking)
            .join(AppointmentSlot, Booking.slot_id == AppointmentSlot.id)
            .options(joinedload(Booking.slot))
            .filter(Booking.doctor_id == doctor_id)
        )
        if status:
            query = query.filter(Booking.status == status)
        if patient_email:
            query = query.filter(Booking.patient_email == patient_email.strip().lower())
        if start_date:
            query = query.filter(AppointmentSlot.date >= start_date)
        if end_date:
            query = query.filter(AppointmentSlot.date <= end_date)
        return query.order_by(AppointmentSlot.date.desc(), AppointmentSlot.start_time.desc()).all()
