"""Counterparty routers - clients and suppliers referenced by finance documents"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_doctor
from ...database import get_db
from ...models import Doctor
from .schemas import CounterpartyCreate, CounterpartyResponse, CounterpartyUpdate
from .service import CounterpartyService, client_service, supplier_service

clients_router = APIRouter(prefix="/practice/clients", tags=["Clients"])
suppliers_router = APIRouter(prefix="/practice/suppliers", tags=["Suppliers"])


def get_client_service(db: Session = Depends(get_db)) -> CounterpartyService:
    """Dependency injection for the client service"""
    return client_service(db)


def get_supplier_service(db: Session = Depends(get_db)) -> CounterpartyService:
    """Dependency injection for the supplier service"""
    return supplier_service(db)


def _register(router: APIRouter, dependency) -> None:
    @router.get("", response_model=list[CounterpartyResponse])
    async def list_counterparties(
        search: Optional[str] = Query(None),
        current_doctor: Doctor = Depends(get_current_doctor),
        service: CounterpartyService = Depends(dependency),
    ):
        return service.list_all(current_doctor, search)

    @router.post("", response_model=CounterpartyResponse, status_code=201)
    async def create_counterparty(
        data: CounterpartyCreate,
        current_doctor: Doctor = Depends(get_current_doctor),
        service: CounterpartyService = Depends(dependency),
    ):
        return service.create(data, current_doctor)

    @router.get("/{counterparty_id}", response_model=CounterpartyResponse)
    async def get_counterparty(
        counterparty_id: int,
        current_doctor: Doctor = Depends(get_current_doctor),
        service: CounterpartyService = Depends(dependency),
    ):
        return service.get(counterparty_id, current_doctor)

    @router.put("/{counterparty_id}", response_model=CounterpartyResponse)
    async def update_counterparty(
        counterparty_id: int,
        data: CounterpartyUpdate,
        current_doctor: Doctor = Depends(get_current_doctor),
        service: CounterpartyService = Depends(dependency),
    ):
        return service.update(counterparty_id, data, current_doctor)


_register(clients_router, get_client_service)
_register(suppliers_router, get_supplier_service)
