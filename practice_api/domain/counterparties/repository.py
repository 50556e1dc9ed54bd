"""Counterparty repository - Database operations for clients and suppliers"""

from typing import Optional, Union

from sqlalchemy.orm import Session

from ...models import Client, Supplier

Counterparty = Union[Client, Supplier]


class CounterpartyRepository:
    """Repository for client and supplier database operations"""

    def __init__(self, model):
        self.model = model

    def list_for_doctor(self, db: Session, doctor_id: str, search: Optional[str] = None) -> list:
        query = db.query(self.model).filter(self.model.doctor_id == doctor_id)
        if search:
            query = query.filter(self.model.business_name.ilike(f"%{search}%"))
        return query.order_by(self.model.business_name).all()

    def get_by_id(self, db: Session, counterparty_id: int, doctor_id: str) -> Optional[Counterparty]:
        return (
            db.query(self.model)
            .filter(self.model.id == counterparty_id, self.model.doctor_id == doctor_id)
            .first()
        )

    def create(self, db: Session, doctor_id: str, **fields) -> Counterparty:
        counterparty = self.model(doctor_id=doctor_id, **fields)
        db.add(counterparty)
        db.commit()
        db.refresh(counterparty)
        return counterparty

    def update(self, db: Session, counterparty: Counterparty, **updates) -> Counterparty:
        for key, value in updates.items():
            if hasattr(counterparty, key):
                setattr(counterparty, key, value)
        db.commit()
        db.refresh(counterparty)
        return counterparty
