"""Sale router - FastAPI endpoints for sale operations"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_doctor
from ...database import get_db
from ...models import Doctor, SaleStatus
from .schemas import SaleCreate, SaleResponse, SaleUpdate
from .service import SaleService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/practice/sales", tags=["Sales"])


def get_sale_service(db: Session = Depends(get_db)) -> SaleService:
    """Dependency injection for SaleService"""
    return SaleService(db)


@router.get("", response_model=list[SaleResponse])
async def list_sales(
    status: Optional[SaleStatus] = Query(None),
    client_id: Optional[int] = Query(None, alias="clientId"),
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    current_doctor: Doctor = Depends(get_current_doctor),
    service: SaleService = Depends(get_sale_service),
):
    """List the doctor's sales, newest first"""
    return service.list_documents(
        current_doctor, status.value if status else None, client_id, start_date, end_date
    )


@router.post("", response_model=SaleResponse, status_code=201)
async def create_sale(
    data: SaleCreate,
    current_doctor: Doctor = Depends(get_current_doctor),
    service: SaleService = Depends(get_sale_service),
):
    """Create a sale and its ledger income entry"""
    return service.create_sale(data, current_doctor)


@router.post("/from-quotation/{quotation_id}", response_model=SaleResponse, status_code=201)
async def create_sale_from_quotation(
    quotation_id: int,
    current_doctor: Doctor = Depends(get_current_doctor),
    service: SaleService = Depends(get_sale_service),
):
    """Convert a quotation into a new sale"""
    return service.create_from_quotation(quotation_id, current_doctor)


@router.get("/{sale_id}", response_model=SaleResponse)
async def get_sale(
    sale_id: int,
    current_doctor: Doctor = Depends(get_current_doctor),
    service: SaleService = Depends(get_sale_service),
):
    return service.get(sale_id, current_doctor)


@router.put("/{sale_id}", response_model=SaleResponse)
async def update_sale(
    sale_id: int,
    data: SaleUpdate,
    current_doctor: Doctor = Depends(get_current_doctor),
    service: SaleService = Depends(get_sale_service),
):
    """Update a sale; the linked ledger entry follows"""
    return service.update_sale(sale_id, data, current_doctor)


@router.delete("/{sale_id}")
async def delete_sale(
    sale_id: int,
    current_doctor: Doctor = Depends(get_current_doctor),
    service: SaleService = Depends(get_sale_service),
):
    return service.delete(sale_id, current_doctor)
