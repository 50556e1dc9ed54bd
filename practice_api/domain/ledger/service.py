"""Ledger service - manual cash-flow entries and the doctor's balance"""

import logging
from datetime import date
from typing import Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...database import atomic
from ...errors import NotFoundError, StateConflictError, UniquenessConflictError
from ...models import Doctor, LedgerEntry, TransactionType
from ..finance.calculator import derive_payment_status, money
from ..sequences.allocator import allocate, ledger_sequence
from .schemas import LedgerBalance, LedgerEntryCreate, LedgerEntryUpdate

logger = logging.getLogger(__name__)

# Linked entries mirror a sale or purchase; these fields belong to the document
_MIRRORED_FIELDS = {"amount", "entryType", "amountPaid"}


class LedgerService:
    def __init__(self, db: Session):
        self.db = db

    def get_entry(self, entry_id: int, doctor: Doctor) -> LedgerEntry:
        entry = (
            self.db.query(LedgerEntry)
            .filter(LedgerEntry.id == entry_id, LedgerEntry.doctor_id == doctor.id)
            .first()
        )
        if not entry:
            raise NotFoundError("Ledger entry")
        return entry

    def list_entries(
        self,
        doctor: Doctor,
        entry_type: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        area: Optional[str] = None,
        unrealized: Optional[bool] = None,
    ) -> list[LedgerEntry]:
        query = self.db.query(LedgerEntry).filter(LedgerEntry.doctor_id == doctor.id)
        if entry_type:
            query = query.filter(LedgerEntry.entry_type == entry_type)
        if start_date:
            query = query.filter(LedgerEntry.transaction_date >= start_date)
        if end_date:
            query = query.filter(LedgerEntry.transaction_date <= end_date)
        if area:
            query = query.filter(LedgerEntry.area == area)
        if unrealized is not None:
            query = query.filter(LedgerEntry.unrealized == unrealized)
        return query.order_by(LedgerEntry.transaction_date.desc(), LedgerEntry.id.desc()).all()

    def create_entry(self, data: LedgerEntryCreate, doctor: Doctor) -> LedgerEntry:
        """Manual entries carry no document link; their internal id is allocated unless given"""
        entry_type = data.entryType.value

        def build(internal_id: str) -> LedgerEntry:
            entry = LedgerEntry(
                doctor_id=doctor.id,
                internal_id=internal_id,
                entry_type=entry_type,
                amount=money(data.amount),
                concept=data.concept,
                transaction_date=data.transactionDate,
                area=data.area,
                subarea=data.subarea,
                payment_method=data.paymentMethod.value if data.paymentMethod else None,
                bank_account=data.bankAccount,
                bank_movement_id=data.bankMovementId,
                unrealized=data.unrealized,
                transaction_type=TransactionType.NONE.value,
            )
            if data.amountPaid is not None:
                entry.amount_paid = money(data.amountPaid)
                entry.payment_status = derive_payment_status(data.amountPaid, data.amount).value
            return entry

        with atomic(self.db):
            if data.internalId:
                entry = build(data.internalId.strip())
                self.db.add(entry)
                try:
                    self.db.flush()
                except IntegrityError as e:
                    raise UniquenessConflictError(
                        f"Internal id {data.internalId} already exists", internalId=data.internalId
                    ) from e
            else:
                entry = allocate(self.db, ledger_sequence(entry_type), doctor.id, build)

        self.db.refresh(entry)
        logger.info(f"📒 Ledger entry {entry.internal_id} created ({entry_type} {entry.amount})")
        return entry

    def update_entry(self, entry_id: int, data: LedgerEntryUpdate, doctor: Doctor) -> LedgerEntry:
        entry = self.get_entry(entry_id, doctor)
        provided = {name for name in data.model_fields_set if getattr(data, name) is not None}

        locked = provided & _MIRRORED_FIELDS if entry.is_linked else set()
        if locked:
            raise StateConflictError(
                "This entry mirrors a sale or purchase; edit the document instead",
                fields=sorted(locked),
            )

        with atomic(self.db):
            if "amount" in provided:
                entry.amount = money(data.amount)
            if "concept" in provided:
                entry.concept = data.concept
            if "entryType" in provided:
                entry.entry_type = data.entryType.value
            if "transactionDate" in provided:
                entry.transaction_date = data.transactionDate
            if "area" in provided:
                entry.area = data.area
            if "subarea" in provided:
                entry.subarea = data.subarea
            if "paymentMethod" in provided:
                entry.payment_method = data.paymentMethod.value
            if "bankAccount" in provided:
                entry.bank_account = data.bankAccount
            if "bankMovementId" in provided:
                entry.bank_movement_id = data.bankMovementId
            if "unrealized" in provided:
                entry.unrealized = data.unrealized
            if "amountPaid" in provided:
                entry.amount_paid = money(data.amountPaid)
            if not entry.is_linked and entry.amount_paid is not None:
                entry.payment_status = derive_payment_status(entry.amount_paid, entry.amount).value

        self.db.refresh(entry)
        return entry

    def delete_entry(self, entry_id: int, doctor: Doctor) -> dict:
        entry = self.get_entry(entry_id, doctor)
        if entry.is_linked:
            raise StateConflictError(
                "This entry mirrors a sale or purchase; delete or cancel the document instead"
            )
        with atomic(self.db):
            self.db.delete(entry)
        logger.info(f"🗑️ Ledger entry {entry.internal_id} deleted")
        return {"message": "Ledger entry deleted"}

    def get_balance(self, doctor: Doctor) -> LedgerBalance:
        """Realized totals, the balance, and the balance once pending entries land"""
        rows = (
            self.db.query(LedgerEntry.entry_type, LedgerEntry.unrealized, func.sum(LedgerEntry.amount))
            .filter(LedgerEntry.doctor_id == doctor.id)
            .group_by(LedgerEntry.entry_type, LedgerEntry.unrealized)
            .all()
        )
        sums = {(entry_type, bool(unrealized)): money(total or 0) for entry_type, unrealized, total in rows}

        income = sums.get(("ingreso", False), money(0))
        expense = sums.get(("egreso", False), money(0))
        pending_income = sums.get(("ingreso", True), money(0))
        pending_expense = sums.get(("egreso", True), money(0))

        return LedgerBalance(
            total_income=income,
            total_expense=expense,
            balance=income - expense,
            pending_income=pending_income,
            pending_expense=pending_expense,
            projected_balance=income + pending_income - expense - pending_expense,
        )
