"""Purchase service - Business logic for purchases and their ledger expense entries"""

import logging

from ...models import Doctor, Purchase, PurchaseItem, PurchaseStatus, Supplier
from ...shared.transitions import PURCHASE_TRANSITIONS
from ...utils.sanitization import sanitize_string
from ..finance.documents import DocumentService
from ..finance.reconciliation import PURCHASE_MIRROR
from ..sequences.allocator import PURCHASE
from .schemas import PurchaseCreate, PurchaseUpdate

logger = logging.getLogger(__name__)


class PurchaseService(DocumentService):
    entity = "Purchase"
    model = Purchase
    item_model = PurchaseItem
    sequence = PURCHASE
    transitions = PURCHASE_TRANSITIONS
    initial_status = PurchaseStatus.PENDING.value
    counterparty_model = Supplier
    counterparty_column = "supplier_id"
    mirror = PURCHASE_MIRROR

    def _date_column(self):
        return Purchase.purchase_date

    def create_purchase(self, data: PurchaseCreate, doctor: Doctor) -> Purchase:
        logger.info(f"📥 Creating purchase for doctor {doctor.id}")
        self._require_counterparty(doctor, data.supplierId)
        fields = {
            "supplier_id": data.supplierId,
            "purchase_date": data.purchaseDate,
            "delivery_date": data.deliveryDate,
            "notes": sanitize_string(data.notes),
        }
        return self._create(
            doctor,
            fields,
            data.items,
            amount_paid=data.amountPaid,
            status=data.status.value if data.status else None,
        )

    def update_purchase(self, purchase_id: int, data: PurchaseUpdate, doctor: Doctor) -> Purchase:
        purchase = self.get(purchase_id, doctor)
        provided = data.model_fields_set

        fields = {}
        if "supplierId" in provided and data.supplierId is not None:
            self._require_counterparty(doctor, data.supplierId)
            fields["supplier_id"] = data.supplierId
        if "purchaseDate" in provided and data.purchaseDate is not None:
            fields["purchase_date"] = data.purchaseDate
        if "deliveryDate" in provided:
            fields["delivery_date"] = data.deliveryDate
        if "notes" in provided:
            fields["notes"] = sanitize_string(data.notes)

        return self._update(
            purchase,
            fields,
            items=data.items,
            amount_paid=data.amountPaid,
            status=data.status.value if data.status else None,
        )
