"""Shared create/update/delete flow for quotations, sales and purchases"""

import logging
from datetime import date
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy.orm import Session

from ...database import atomic
from ...errors import NotFoundError, ValidationError
from ...models import Doctor
from ...shared.transitions import Transitions, check_transition
from ..sequences.allocator import Sequence, allocate
from .calculator import (
    derive_payment_status,
    document_totals,
    line_totals,
    money,
    quantity_value,
    rate_value,
    to_decimal,
)
from .reconciliation import MirrorProfile, ReconciliationEngine
from .schemas import LineItemIn

logger = logging.getLogger(__name__)


class DocumentService:
    """
    Subclasses describe the document; this class owns the numbering, item
    math, status checks and ledger mirroring.
    """

    entity: str = "Document"
    model: Any = None
    item_model: Any = None
    sequence: Sequence = None
    transitions: Transitions = {}
    initial_status: str = "PENDING"
    counterparty_model: Any = None
    counterparty_column: str = ""
    mirror: Optional[MirrorProfile] = None
    tracks_payment: bool = True

    def __init__(self, db: Session):
        self.db = db
        self.engine = ReconciliationEngine(db, self.mirror) if self.mirror else None

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, document_id: int, doctor: Doctor):
        document = (
            self.db.query(self.model)
            .filter(self.model.id == document_id, self.model.doctor_id == doctor.id)
            .first()
        )
        if not document:
            raise NotFoundError(self.entity)
        return document

    def list_documents(
        self,
        doctor: Doctor,
        status: Optional[str] = None,
        counterparty_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list:
        query = self.db.query(self.model).filter(self.model.doctor_id == doctor.id)
        if status:
            query = query.filter(self.model.status == status)
        if counterparty_id is not None:
            query = query.filter(getattr(self.model, self.counterparty_column) == counterparty_id)
        date_column = self._date_column()
        if start_date:
            query = query.filter(date_column >= start_date)
        if end_date:
            query = query.filter(date_column <= end_date)
        return query.order_by(date_column.desc(), self.model.id.desc()).all()

    def _date_column(self):
        raise NotImplementedError

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _require_counterparty(self, doctor: Doctor, counterparty_id: int):
        counterparty = (
            self.db.query(self.counterparty_model)
            .filter(
                self.counterparty_model.id == counterparty_id,
                self.counterparty_model.doctor_id == doctor.id,
            )
            .first()
        )
        if not counterparty:
            raise NotFoundError(self.counterparty_model.__name__)
        return counterparty

    def _build_items(self, items: list[LineItemIn]) -> list:
        built = []
        for index, item in enumerate(items):
            fields = item.to_fields()
            fields["quantity"] = quantity_value(fields["quantity"])
            fields["unit_price"] = money(fields["unit_price"])
            fields["discount_rate"] = rate_value(fields["discount_rate"])
            fields["tax_rate"] = rate_value(fields["tax_rate"])
            line = line_totals(
                fields["quantity"], fields["unit_price"], fields["discount_rate"], fields["tax_rate"]
            )
            built.append(self.item_model(**fields, subtotal=line.subtotal, tax=line.tax, order=index))
        return built

    def _copy_items(self, source_items: list) -> list:
        """Fresh item rows carrying the same values as existing ones"""
        copied = []
        for index, item in enumerate(source_items):
            copied.append(
                self.item_model(
                    description=item.description,
                    item_type=item.item_type,
                    quantity=item.quantity,
                    unit=item.unit,
                    unit_price=item.unit_price,
                    discount_rate=item.discount_rate,
                    tax_rate=item.tax_rate,
                    subtotal=item.subtotal,
                    tax=item.tax,
                    order=index,
                )
            )
        return copied

    @staticmethod
    def _apply_totals(document, items: list) -> None:
        totals = document_totals(items)
        document.subtotal = totals.subtotal
        document.tax = totals.tax
        document.total = totals.total

    def _apply_payment(self, document, amount_paid: Optional[Decimal]) -> None:
        if not self.tracks_payment:
            return
        if amount_paid is not None:
            document.amount_paid = money(amount_paid)
        document.payment_status = derive_payment_status(
            to_decimal(document.amount_paid), to_decimal(document.total)
        ).value

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def _create(
        self,
        doctor: Doctor,
        fields: dict,
        items: list[LineItemIn],
        amount_paid: Optional[Decimal] = None,
        status: Optional[str] = None,
        source_items: Optional[list] = None,
    ):
        """Insert the document under a fresh number and, where it has one, its ledger mirror"""
        if not items and not source_items:
            raise ValidationError("At least one item is required", field="items")

        status = status or self.initial_status
        if status == "CANCELLED":
            raise ValidationError(f"A {self.entity.lower()} cannot be created cancelled", field="status")

        def build(number: str):
            built_items = self._copy_items(source_items) if source_items else self._build_items(items)
            document = self.model(
                doctor_id=doctor.id,
                status=status,
                **{self.sequence.column_name: number},
                **fields,
            )
            document.items = built_items
            self._apply_totals(document, built_items)
            if self.tracks_payment:
                document.amount_paid = money(amount_paid or 0)
            self._apply_payment(document, None)
            return document

        with atomic(self.db):
            document = allocate(self.db, self.sequence, doctor.id, build)
            if self.engine:
                self.engine.create_mirror(document)

        self.db.refresh(document)
        logger.info(
            f"✅ {self.entity} {getattr(document, self.sequence.column_name)} created "
            f"for doctor {doctor.id} (total {document.total})"
        )
        return document

    def _update(
        self,
        document,
        fields: dict,
        items: Optional[list[LineItemIn]] = None,
        amount_paid: Optional[Decimal] = None,
        status: Optional[str] = None,
    ):
        """
        Apply changes, recompute totals and keep the ledger mirror in step.

        Items, when given, replace the existing set entirely; otherwise totals
        are recomputed from the items already stored.
        """
        with atomic(self.db):
            if status is not None:
                check_transition(
                    self.transitions, self.entity.lower(), document.status, status, allow_same=True
                )
                document.status = status

            for key, value in fields.items():
                setattr(document, key, value)

            if items is not None:
                if not items:
                    raise ValidationError("At least one item is required", field="items")
                document.items.clear()
                self.db.flush()
                document.items.extend(self._build_items(items))

            self._apply_totals(document, document.items)
            self._apply_payment(document, amount_paid)
            self.db.flush()

            if self.engine:
                self.engine.sync(document)

        self.db.refresh(document)
        logger.info(f"📝 {self.entity} {getattr(document, self.sequence.column_name)} updated")
        return document

    def delete(self, document_id: int, doctor: Doctor) -> dict:
        """Delete the ledger mirror first, then the document"""
        document = self.get(document_id, doctor)
        number = getattr(document, self.sequence.column_name)
        with atomic(self.db):
            if self.engine:
                self.engine.remove_mirror(document)
            self.db.delete(document)
        logger.info(f"🗑️ {self.entity} {number} deleted")
        return {"message": f"{self.entity} deleted"}
