"""Quotation router - FastAPI endpoints for quotation operations"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_doctor
from ...database import get_db
from ...models import Doctor, QuotationStatus
from .schemas import QuotationCreate, QuotationResponse, QuotationUpdate
from .service import QuotationService

router = APIRouter(prefix="/practice/quotations", tags=["Quotations"])


def get_quotation_service(db: Session = Depends(get_db)) -> QuotationService:
    """Dependency injection for QuotationService"""
    return QuotationService(db)


@router.get("", response_model=list[QuotationResponse])
async def list_quotations(
    status: Optional[QuotationStatus] = Query(None),
    client_id: Optional[int] = Query(None, alias="clientId"),
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    current_doctor: Doctor = Depends(get_current_doctor),
    service: QuotationService = Depends(get_quotation_service),
):
    return service.list_documents(
        current_doctor, status.value if status else None, client_id, start_date, end_date
    )


@router.post("", response_model=QuotationResponse, status_code=201)
async def create_quotation(
    data: QuotationCreate,
    current_doctor: Doctor = Depends(get_current_doctor),
    service: QuotationService = Depends(get_quotation_service),
):
    return service.create_quotation(data, current_doctor)


@router.get("/{quotation_id}", response_model=QuotationResponse)
async def get_quotation(
    quotation_id: int,
    current_doctor: Doctor = Depends(get_current_doctor),
    service: QuotationService = Depends(get_quotation_service),
):
    return service.get(quotation_id, current_doctor)


@router.put("/{quotation_id}", response_model=QuotationResponse)
async def update_quotation(
    quotation_id: int,
    data: QuotationUpdate,
    current_doctor: Doctor = Depends(get_current_doctor),
    service: QuotationService = Depends(get_quotation_service),
):
    return service.update_quotation(quotation_id, data, current_doctor)


@router.delete("/{quotation_id}")
async def delete_quotation(
    quotation_id: int,
    current_doctor: Doctor = Depends(get_current_doctor),
    service: QuotationService = Depends(get_quotation_service),
):
    return service.delete(quotation_id, current_doctor)
