"""Ledger router - FastAPI endpoints for cash-flow entries"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_doctor
from ...database import get_db
from ...models import Doctor, EntryType
from .schemas import LedgerBalance, LedgerEntryCreate, LedgerEntryResponse, LedgerEntryUpdate
from .service import LedgerService

router = APIRouter(prefix="/practice/ledger", tags=["Ledger"])


def get_ledger_service(db: Session = Depends(get_db)) -> LedgerService:
    """Dependency injection for LedgerService"""
    return LedgerService(db)


@router.get("", response_model=list[LedgerEntryResponse])
async def list_entries(
    entry_type: Optional[EntryType] = Query(None, alias="entryType"),
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    area: Optional[str] = Query(None),
    unrealized: Optional[bool] = Query(None),
    current_doctor: Doctor = Depends(get_current_doctor),
    service: LedgerService = Depends(get_ledger_service),
):
    return service.list_entries(
        current_doctor,
        entry_type.value if entry_type else None,
        start_date,
        end_date,
        area,
        unrealized,
    )


@router.get("/balance", response_model=LedgerBalance)
async def get_balance(
    current_doctor: Doctor = Depends(get_current_doctor),
    service: LedgerService = Depends(get_ledger_service),
):
    """Realized and projected balance"""
    return service.get_balance(current_doctor)


@router.post("", response_model=LedgerEntryResponse, status_code=201)
async def create_entry(
    data: LedgerEntryCreate,
    current_doctor: Doctor = Depends(get_current_doctor),
    service: LedgerService = Depends(get_ledger_service),
):
    return service.create_entry(data, current_doctor)


@router.get("/{entry_id}", response_model=LedgerEntryResponse)
async def get_entry(
    entry_id: int,
    current_doctor: Doctor = Depends(get_current_doctor),
    service: LedgerService = Depends(get_ledger_service),
):
    return service.get_entry(entry_id, current_doctor)


@router.put("/{entry_id}", response_model=LedgerEntryResponse)
async def update_entry(
    entry_id: int,
    data: LedgerEntryUpdate,
    current_doctor: Doctor = Depends(get_current_doctor),
    service: LedgerService = Depends(get_ledger_service),
):
    return service.update_entry(entry_id, data, current_doctor)


@router.delete("/{entry_id}")
async def delete_entry(
    entry_id: int,
    current_doctor: Doctor = Depends(get_current_doctor),
    service: LedgerService = Depends(get_ledger_service),
):
    return service.delete_entry(entry_id, current_doctor)
