"""
Ledger mirrors of sales and purchases.

Every sale and purchase owns at most one ledger entry (ingreso for a sale,
egreso for a purchase) carrying the document total and payment state. The
engine creates it with the document, keeps it in step on every update and
removes it before the document is deleted. All calls run inside the caller's
transaction; nothing here commits.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Optional

from sqlalchemy.orm import Session

from ...models import EntryType, LedgerEntry, PaymentMethod, TransactionType
from ..sequences.allocator import allocate, ledger_sequence

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MirrorProfile:
    """How a document type maps onto its ledger entry"""

    label: str
    entry_type: EntryType
    transaction_type: TransactionType
    link_column: str
    number_attr: str
    date_attr: str
    counterparty_attr: str
    counterparty_column: str
    counterparty_label: str
    area: str
    subarea: str
    removed_on_cancel: bool


SALE_MIRROR = MirrorProfile(
    label="Venta",
    entry_type=EntryType.INCOME,
    transaction_type=TransactionType.SALE,
    link_column="sale_id",
    number_attr="sale_number",
    date_attr="sale_date",
    counterparty_attr="client",
    counterparty_column="client_id",
    counterparty_label="Cliente",
    area="Ventas",
    subarea="Ventas Generales",
    removed_on_cancel=True,
)

PURCHASE_MIRROR = MirrorProfile(
    label="Compra",
    entry_type=EntryType.EXPENSE,
    transaction_type=TransactionType.PURCHASE,
    link_column="purchase_id",
    number_attr="purchase_number",
    date_attr="purchase_date",
    counterparty_attr="supplier",
    counterparty_column="supplier_id",
    counterparty_label="Proveedor",
    area="Compras",
    subarea="Compras Generales",
    removed_on_cancel=False,
)


class ReconciliationEngine:
    def __init__(self, db: Session, profile: MirrorProfile):
        self.db = db
        self.profile = profile

    def find_mirror(self, document: Any) -> Optional[LedgerEntry]:
        link = getattr(LedgerEntry, self.profile.link_column)
        return (
            self.db.query(LedgerEntry)
            .filter(link == document.id, LedgerEntry.doctor_id == document.doctor_id)
            .first()
        )

    def _concept(self, document: Any) -> str:
        counterparty = getattr(document, self.profile.counterparty_attr, None)
        name = counterparty.business_name if counterparty is not None else "N/A"
        number = getattr(document, self.profile.number_attr)
        return f"{self.profile.label} {number} - {self.profile.counterparty_label}: {name}"

    def create_mirror(self, document: Any) -> LedgerEntry:
        profile = self.profile
        sequence = ledger_sequence(profile.entry_type.value)

        def build(internal_id: str) -> LedgerEntry:
            return LedgerEntry(
                doctor_id=document.doctor_id,
                internal_id=internal_id,
                entry_type=profile.entry_type.value,
                amount=document.total,
                concept=self._concept(document),
                transaction_date=getattr(document, profile.date_attr) or date.today(),
                area=profile.area,
                subarea=profile.subarea,
                payment_method=PaymentMethod.TRANSFER.value,
                unrealized=False,
                transaction_type=profile.transaction_type.value,
                payment_status=document.payment_status,
                amount_paid=document.amount_paid,
                **{
                    profile.link_column: document.id,
                    profile.counterparty_column: getattr(document, profile.counterparty_column),
                },
            )

        entry = allocate(self.db, sequence, document.doctor_id, build)
        logger.info(
            f"📒 Ledger entry {entry.internal_id} mirrors {profile.label.lower()} "
            f"{getattr(document, profile.number_attr)} ({entry.amount})"
        )
        return entry

    def sync(self, document: Any) -> Optional[LedgerEntry]:
        """
        Bring the mirror in line with the document.

        A cancelled sale loses its mirror. A live document without one (a sale
        reverted from CANCELLED) gets a new one.
        """
        entry = self.find_mirror(document)

        if self.profile.removed_on_cancel and document.status == "CANCELLED":
            if entry is not None:
                self.db.delete(entry)
                self.db.flush()
                logger.info(f"🗑️ Removed ledger entry {entry.internal_id} for cancelled document")
            return None

        if entry is None:
            return self.create_mirror(document)

        entry.amount = document.total
        entry.amount_paid = document.amount_paid
        entry.payment_status = document.payment_status
        self.db.flush()
        return entry

    def remove_mirror(self, document: Any) -> bool:
        entry = self.find_mirror(document)
        if entry is None:
            return False
        self.db.delete(entry)
        self.db.flush()
        logger.info(f"🗑️ Removed ledger entry {entry.internal_id}")
        return True
