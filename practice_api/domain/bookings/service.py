"""Booking service - patient reservations of appointment slots and their lifecycle"""

import logging
import secrets
import string
from datetime import date
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ... import config
from ...database import atomic
from ...errors import NotFoundError, UniquenessConflictError
from ...hooks import PostCommitHooks
from ...models import AppointmentSlot, Booking, BookingStatus, Doctor
from ...services.activity_logger import ActionType, EntityType, audit
from ...services.notification_service import BookingNotice, notify_booking_status
from ..slots.capacity import release, reserve
from .repository import BookingRepository
from .schemas import BookingCreate
from .state_machine import apply_transition

logger = logging.getLogger(__name__)

CODE_ALPHABET = string.ascii_uppercase + string.digits

_TRANSITION_ACTIONS = {
    BookingStatus.CONFIRMED: (ActionType.BOOKING_CONFIRMED, "confirmada"),
    BookingStatus.CANCELLED: (ActionType.BOOKING_CANCELLED, "cancelada"),
    BookingStatus.COMPLETED: (ActionType.BOOKING_COMPLETED, "completada"),
    BookingStatus.NO_SHOW: (ActionType.BOOKING_NO_SHOW, "marcada como no asistió"),
}

# Patients hear about these; COMPLETED and NO_SHOW are internal bookkeeping
_NOTIFIED_STATUSES = {BookingStatus.CONFIRMED, BookingStatus.CANCELLED}


def generate_confirmation_code(length: int = config.CONFIRMATION_CODE_LENGTH) -> str:
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))


class BookingService:
    """Service layer for booking business logic"""

    def __init__(self, db: Session, hooks: Optional[PostCommitHooks] = None):
        self.db = db
        self.hooks = hooks if hooks is not None else PostCommitHooks()
        self.repo = BookingRepository()

    def get_booking(self, reference: str) -> Booking:
        """Public lookup by id or confirmation code"""
        booking = self.repo.get_by_reference(self.db, reference)
        if not booking:
            raise NotFoundError("Booking")
        return booking

    def get_doctor_booking(self, booking_id: str, doctor: Doctor) -> Booking:
        booking = self.repo.get_for_doctor(self.db, booking_id, doctor.id)
        if not booking:
            raise NotFoundError("Booking")
        return booking

    def list_bookings(
        self,
        doctor: Doctor,
        status: Optional[str] = None,
        patient_email: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[Booking]:
        return self.repo.list_for_doctor(
            self.db, doctor.id, status, patient_email, start_date, end_date
        )

    def _notice(self, booking: Booking) -> BookingNotice:
        doctor = self.db.get(Doctor, booking.doctor_id)
        return BookingNotice.from_booking(booking, doctor)

    def create_booking(self, data: BookingCreate) -> Booking:
        """
        Reserve a place on the slot and create a PENDING booking, in one transaction.

        Raises:
            NotFoundError: unknown slot
            SlotBlocked / CapacityExceeded: the slot cannot take the booking
            UniquenessConflictError: the generated confirmation code is taken
        """
        slot = self.db.get(AppointmentSlot, data.slotId)
        if not slot:
            raise NotFoundError("Slot")

        code = generate_confirmation_code()
        if self.repo.code_exists(self.db, code):
            logger.warning(f"⚠️ Confirmation code collision on {code}")
            raise UniquenessConflictError("Could not issue a confirmation code, please retry")

        with atomic(self.db):
            reserve(self.db, slot.id)
            booking = Booking(
                slot_id=slot.id,
                doctor_id=slot.doctor_id,
                patient_name=data.patientName,
                patient_email=data.patientEmail,
                patient_phone=data.patientPhone,
                patient_whatsapp=data.patientWhatsapp,
                notes=data.notes,
                final_price=slot.final_price,
                confirmation_code=code,
                status=BookingStatus.PENDING.value,
            )
            self.db.add(booking)
            try:
                self.db.flush()
            except IntegrityError as e:
                raise UniquenessConflictError(
                    "Could not issue a confirmation code, please retry"
                ) from e

            notice = self._notice(booking)
            self.hooks.add(
                "notify:booking_pending", notify_booking_status, notice, BookingStatus.PENDING
            )
            audit(
                self.hooks,
                self.db,
                booking.doctor_id,
                ActionType.BOOKING_CREATED,
                EntityType.BOOKING,
                booking.id,
                f"Nueva cita de {booking.patient_name} para {notice.date} {notice.start_time}",
                {"confirmationCode": code, "slotId": slot.id},
            )

        self.db.refresh(booking)
        logger.info(f"✅ Booking {code} created on slot {slot.id}")
        return booking

    def request_transition(self, booking_id: str, target: BookingStatus, doctor: Doctor) -> Booking:
        """
        Move a booking through its lifecycle.

        Cancelling gives the place back to the slot in the same transaction;
        confirmation and cancellation notify the patient once committed.
        """
        booking = self.get_doctor_booking(booking_id, doctor)

        with atomic(self.db):
            previous = apply_transition(self.db, booking, target)
            notice = self._notice(booking)

            if target in _NOTIFIED_STATUSES:
                self.hooks.add(
                    f"notify:booking_{target.value.lower()}", notify_booking_status, notice, target
                )

            action, verb = _TRANSITION_ACTIONS[target]
            audit(
                self.hooks,
                self.db,
                doctor.id,
                action,
                EntityType.BOOKING,
                booking.id,
                f"Cita de {notice.patient_name} ({notice.date} {notice.start_time}) {verb}",
                {
                    "confirmationCode": notice.confirmation_code,
                    "from": previous.value,
                    "to": target.value,
                },
            )

        self.db.refresh(booking)
        logger.info(f"🔄 Booking {booking.confirmation_code}: {previous.value} -> {target.value}")
        return booking

    def delete_booking(self, booking_id: str, doctor: Doctor) -> dict:
        """Administrative removal; a booking still holding a place gives it back first"""
        booking = self.get_doctor_booking(booking_id, doctor)
        code = booking.confirmation_code

        with atomic(self.db):
            if booking.status != BookingStatus.CANCELLED.value:
                release(self.db, booking.slot_id)
            self.db.delete(booking)
            audit(
                self.hooks,
                self.db,
                doctor.id,
                ActionType.BOOKING_DELETED,
                EntityType.BOOKING,
                booking_id,
                f"Cita {code} eliminada",
                {"confirmationCode": code},
            )

        logger.info(f"🗑️ Booking {code} deleted")
        return {"message": "Booking deleted"}
