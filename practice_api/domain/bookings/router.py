"""Booking router - public patient booking plus the doctor's booking management"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_doctor
from ...database import get_db
from ...hooks import PostCommitHooks, get_post_commit_hooks
from ...models import BookingStatus, Doctor
from .schemas import BookingCreate, BookingResponse, BookingStatusUpdate
from .service import BookingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/appointments/bookings", tags=["Bookings"])


def get_booking_service(
    db: Session = Depends(get_db),
    hooks: PostCommitHooks = Depends(get_post_commit_hooks),
) -> BookingService:
    """Dependency injection for BookingService"""
    return BookingService(db, hooks)


# ============================================
# PUBLIC ENDPOINTS
# ============================================


@router.post("", response_model=BookingResponse, status_code=201)
async def create_booking(
    data: BookingCreate,
    service: BookingService = Depends(get_booking_service),
):
    """Book a place on an open slot (no authentication)"""
    return service.create_booking(data)


@router.get("/{reference}", response_model=BookingResponse)
async def lookup_booking(
    reference: str,
    service: BookingService = Depends(get_booking_service),
):
    """Find a booking by its id or confirmation code (no authentication)"""
    return service.get_booking(reference)


# ============================================
# DOCTOR ENDPOINTS
# ============================================


@router.get("", response_model=list[BookingResponse])
async def list_bookings(
    status: Optional[BookingStatus] = Query(None),
    patient_email: Optional[str] = Query(None, alias="patientEmail"),
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    current_doctor: Doctor = Depends(get_current_doctor),
    service: BookingService = Depends(get_booking_service),
):
    return service.list_bookings(
        current_doctor, status.value if status else None, patient_email, start_date, end_date
    )


@router.patch("/{booking_id}", response_model=BookingResponse)
async def update_booking_status(
    booking_id: str,
    data: BookingStatusUpdate,
    current_doctor: Doctor = Depends(get_current_doctor),
    service: BookingService = Depends(get_booking_service),
):
    """Confirm, cancel, complete or mark a booking as no-show"""
    return service.request_transition(booking_id, data.status, current_doctor)


@router.delete("/{booking_id}")
async def delete_booking(
    booking_id: str,
    current_doctor: Doctor = Depends(get_current_doctor),
    service: BookingService = Depends(get_booking_service),
):
    return service.delete_booking(booking_id, current_doctor)
