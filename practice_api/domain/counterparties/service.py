"""Counterparty service - Business logic for clients and suppliers"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ...errors import NotFoundError
from ...models import Client, Doctor, Supplier
from ...utils.sanitization import sanitize_string
from .repository import CounterpartyRepository
from .schemas import CounterpartyCreate, CounterpartyUpdate

logger = logging.getLogger(__name__)

_FIELD_MAP = {
    "businessName": "business_name",
    "contactName": "contact_name",
    "email": "email",
    "phone": "phone",
    "notes": "notes",
}


class CounterpartyService:
    """Service layer shared by the client and supplier endpoints"""

    def __init__(self, db: Session, model):
        self.db = db
        self.label = model.__name__
        self.repo = CounterpartyRepository(model)

    def list_all(self, doctor: Doctor, search: Optional[str] = None) -> list:
        return self.repo.list_for_doctor(self.db, doctor.id, search)

    def get(self, counterparty_id: int, doctor: Doctor):
        counterparty = self.repo.get_by_id(self.db, counterparty_id, doctor.id)
        if not counterparty:
            raise NotFoundError(self.label)
        return counterparty

    def create(self, data: CounterpartyCreate, doctor: Doctor):
        logger.info(f"📥 Creating {self.label.lower()} for doctor {doctor.id}")
        fields = {column: getattr(data, name) for name, column in _FIELD_MAP.items()}
        fields["business_name"] = sanitize_string(fields["business_name"])
        fields["notes"] = sanitize_string(fields["notes"])
        return self.repo.create(self.db, doctor.id, **fields)

    def update(self, counterparty_id: int, data: CounterpartyUpdate, doctor: Doctor):
        counterparty = self.get(counterparty_id, doctor)
        updates = {
            _FIELD_MAP[name]: getattr(data, name)
            for name in data.model_fields_set
            if name in _FIELD_MAP and not (name == "businessName" and data.businessName is None)
        }
        for key in ("business_name", "notes"):
            if key in updates:
                updates[key] = sanitize_string(updates[key])
        return self.repo.update(self.db, counterparty, **updates)


def client_service(db: Session) -> CounterpartyService:
    return CounterpartyService(db, Client)


def supplier_service(db: Session) -> CounterpartyService:
    return CounterpartyService(db, Supplier)
