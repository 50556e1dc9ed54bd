"""Purchase router - FastAPI endpoints for purchase operations"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_doctor
from ...database import get_db
from ...models import Doctor, PurchaseStatus
from .schemas import PurchaseCreate, PurchaseResponse, PurchaseUpdate
from .service import PurchaseService

router = APIRouter(prefix="/practice/purchases", tags=["Purchases"])


def get_purchase_service(db: Session = Depends(get_db)) -> PurchaseService:
    """Dependency injection for PurchaseService"""
    return PurchaseService(db)


@router.get("", response_model=list[PurchaseResponse])
async def list_purchases(
    status: Optional[PurchaseStatus] = Query(None),
    supplier_id: Optional[int] = Query(None, alias="supplierId"),
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    current_doctor: Doctor = Depends(get_current_doctor),
    service: PurchaseService = Depends(get_purchase_service),
):
    return service.list_documents(
        current_doctor, status.value if status else None, supplier_id, start_date, end_date
    )


@router.post("", response_model=PurchaseResponse, status_code=201)
async def create_purchase(
    data: PurchaseCreate,
    current_doctor: Doctor = Depends(get_current_doctor),
    service: PurchaseService = Depends(get_purchase_service),
):
    """Create a purchase and its ledger expense entry"""
    return service.create_purchase(data, current_doctor)


@router.get("/{purchase_id}", response_model=PurchaseResponse)
async def get_purchase(
    purchase_id: int,
    current_doctor: Doctor = Depends(get_current_doctor),
    service: PurchaseService = Depends(get_purchase_service),
):
    return service.get(purchase_id, current_doctor)


@router.put("/{purchase_id}", response_model=PurchaseResponse)
async def update_purchase(
    purchase_id: int,
    data: PurchaseUpdate,
    current_doctor: Doctor = Depends(get_current_doctor),
    service: PurchaseService = Depends(get_purchase_service),
):
    return service.update_purchase(purchase_id, data, current_doctor)


@router.delete("/{purchase_id}")
async def delete_purchase(
    purchase_id: int,
    current_doctor: Doctor = Depends(get_current_doctor),
    service: PurchaseService = Depends(get_purchase_service),
):
    return service.delete(purchase_id, current_doctor)
