"""
Booking notifications
Fire-and-forget SMS to patients and doctors when a booking is created or changes status
"""

import logging
from dataclasses import asdict, dataclass
from typing import Optional

from ..models import Booking, BookingStatus, Doctor
from .twilio_service import send_sms

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BookingNotice:
    """Snapshot of a booking taken before commit; ORM rows are detached by the time hooks run"""

    booking_id: str
    confirmation_code: str
    patient_name: str
    patient_phone: Optional[str]
    doctor_name: str
    doctor_phone: Optional[str]
    date: str
    start_time: str
    clinic_address: Optional[str] = None

    @classmethod
    def from_booking(cls, booking: Booking, doctor: Doctor) -> "BookingNotice":
        return cls(
            booking_id=booking.id,
            confirmation_code=booking.confirmation_code,
            patient_name=booking.patient_name,
            patient_phone=booking.patient_whatsapp or booking.patient_phone,
            doctor_name=doctor.full_name,
            doctor_phone=doctor.phone,
            date=booking.slot.date.isoformat(),
            start_time=booking.slot.start_time,
            clinic_address=doctor.clinic_address,
        )


_PATIENT_MESSAGES = {
    BookingStatus.PENDING: (
        "Hola {patient_name}, recibimos tu solicitud de cita con {doctor_name} el {date} a las "
        "{start_time}. Código: {confirmation_code}. Te avisaremos cuando sea confirmada."
    ),
    BookingStatus.CONFIRMED: (
        "Hola {patient_name}, tu cita con {doctor_name} el {date} a las {start_time} está "
        "confirmada. Código: {confirmation_code}."
    ),
    BookingStatus.CANCELLED: (
        "Hola {patient_name}, tu cita con {doctor_name} del {date} a las {start_time} fue "
        "cancelada. Código: {confirmation_code}."
    ),
}

_DOCTOR_MESSAGES = {
    BookingStatus.PENDING: (
        "Nueva cita: {patient_name} el {date} a las {start_time}. Código: {confirmation_code}."
    ),
}


async def notify_booking_status(notice: BookingNotice, new_status: BookingStatus) -> dict:
    """
    Tell the patient (and, for new bookings, the doctor) about a booking status.

    Each channel is attempted independently; failures are logged and reported
    in the result, never raised.
    """
    result = {"patient_sent": False, "doctor_sent": False}
    values = asdict(notice)

    patient_template = _PATIENT_MESSAGES.get(new_status)
    if patient_template and notice.patient_phone:
        try:
            sent, error = await send_sms(
                notice.patient_phone,
                patient_template.format(**values),
                f"booking_{new_status.value.lower()}",
            )
            result["patient_sent"] = sent
            if not sent:
                logger.debug(f"ℹ️ Patient SMS for booking {notice.booking_id} skipped: {error}")
        except Exception as e:
            logger.error(f"❌ Failed to notify patient for booking {notice.booking_id}: {e}")

    doctor_template = _DOCTOR_MESSAGES.get(new_status)
    if doctor_template and notice.doctor_phone:
        try:
            sent, error = await send_sms(
                notice.doctor_phone,
                doctor_template.format(**values),
                f"doctor_booking_{new_status.value.lower()}",
            )
            result["doctor_sent"] = sent
            if not sent:
                logger.debug(f"ℹ️ Doctor SMS for booking {notice.booking_id} skipped: {error}")
        except Exception as e:
            logger.error(f"❌ Failed to notify doctor for booking {notice.booking_id}: {e}")

    return result
