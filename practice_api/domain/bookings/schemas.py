"""Booking domain schemas - Pydantic models for validation"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from ...models import BookingStatus
from ...shared.validators import validate_email, validate_phone
from ...utils.sanitization import clean_text


class BookingCreate(BaseModel):
    """Schema for a patient booking a slot (public)"""

    slotId: str
    patientName: str = Field(..., min_length=1, max_length=255)
    patientEmail: str
    patientPhone: str
    patientWhatsapp: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("patientName")
    @classmethod
    def check_name(cls, v):
        return clean_text(v, max_length=255)

    @field_validator("patientEmail")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)

    @field_validator("patientPhone", "patientWhatsapp")
    @classmethod
    def check_phone(cls, v):
        return validate_phone(v)

    @field_validator("notes")
    @classmethod
    def check_notes(cls, v):
        return clean_text(v, max_length=1000)


class BookingStatusUpdate(BaseModel):
    status: BookingStatus


class BookingSlotSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)

    id: str
    date: date
    start_time: str
    end_time: str
    status: str


class BookingResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)

    id: str
    slot_id: str
    doctor_id: str
    patient_name: str
    patient_email: str
    patient_phone: str
    patient_whatsapp: Optional[str] = None
    notes: Optional[str] = None
    final_price: Decimal
    confirmation_code: str
    status: BookingStatus
    confirmed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    slot: Optional[BookingSlotSummary] = None
