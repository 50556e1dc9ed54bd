"""Slot router - FastAPI endpoints for appointment slots"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_doctor
from ...database import get_db
from ...hooks import PostCommitHooks, get_post_commit_hooks
from ...models import Doctor, SlotStatus
from .schemas import (
    SlotAvailabilityUpdate,
    SlotBulkAction,
    SlotBulkResult,
    SlotCreate,
    SlotCreateResult,
    SlotResponse,
    SlotUpdate,
)
from .service import SlotService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/appointments/slots", tags=["Appointment Slots"])


def get_slot_service(
    db: Session = Depends(get_db),
    hooks: PostCommitHooks = Depends(get_post_commit_hooks),
) -> SlotService:
    """Dependency injection for SlotService"""
    return SlotService(db, hooks)


@router.get("", response_model=list[SlotResponse])
async def list_slots(
    doctor_id: str = Query(..., alias="doctorId"),
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    status: Optional[SlotStatus] = Query(None),
    service: SlotService = Depends(get_slot_service),
):
    """Public listing of a doctor's slots for the booking page"""
    return service.list_slots(doctor_id, start_date, end_date, status.value if status else None)


@router.post("", response_model=SlotCreateResult, status_code=201)
async def create_slots(
    data: SlotCreate,
    current_doctor: Doctor = Depends(get_current_doctor),
    service: SlotService = Depends(get_slot_service),
):
    """Generate one day of slots, or a recurring pattern over a date range"""
    return service.create_slots(data, current_doctor)


@router.post("/bulk", response_model=SlotBulkResult)
async def bulk_slots(
    data: SlotBulkAction,
    current_doctor: Doctor = Depends(get_current_doctor),
    service: SlotService = Depends(get_slot_service),
):
    return service.bulk(data, current_doctor)


@router.put("/{slot_id}", response_model=SlotResponse)
async def update_slot(
    slot_id: str,
    data: SlotUpdate,
    current_doctor: Doctor = Depends(get_current_doctor),
    service: SlotService = Depends(get_slot_service),
):
    return service.update_slot(slot_id, data, current_doctor)


@router.patch("/{slot_id}", response_model=SlotResponse)
async def set_slot_availability(
    slot_id: str,
    data: SlotAvailabilityUpdate,
    current_doctor: Doctor = Depends(get_current_doctor),
    service: SlotService = Depends(get_slot_service),
):
    """Open or close a slot to new bookings"""
    return service.set_blocked(slot_id, not data.isOpen, current_doctor)


@router.delete("/{slot_id}")
async def delete_slot(
    slot_id: str,
    current_doctor: Doctor = Depends(get_current_doctor),
    service: SlotService = Depends(get_slot_service),
):
    return service.delete_slot(slot_id, current_doctor)
