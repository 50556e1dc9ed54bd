"""Sale service - Business logic for sales and their ledger income entries"""

import logging
from datetime import date

from ...errors import StateConflictError
from ...models import Client, Doctor, Quotation, QuotationStatus, Sale, SaleItem, SaleStatus
from ...shared.transitions import SALE_TRANSITIONS
from ...utils.sanitization import sanitize_string
from ..finance.documents import DocumentService
from ..finance.reconciliation import SALE_MIRROR
from ..sequences.allocator import SALE
from .schemas import SaleCreate, SaleUpdate

logger = logging.getLogger(__name__)

_NOT_CONVERTIBLE = {QuotationStatus.CANCELLED.value, QuotationStatus.REJECTED.value}


class SaleService(DocumentService):
    entity = "Sale"
    model = Sale
    item_model = SaleItem
    sequence = SALE
    transitions = SALE_TRANSITIONS
    initial_status = SaleStatus.PENDING.value
    counterparty_model = Client
    counterparty_column = "client_id"
    mirror = SALE_MIRROR

    def _date_column(self):
        return Sale.sale_date

    def create_sale(self, data: SaleCreate, doctor: Doctor) -> Sale:
        logger.info(f"📥 Creating sale for doctor {doctor.id}")
        self._require_counterparty(doctor, data.clientId)
        fields = {
            "client_id": data.clientId,
            "sale_date": data.saleDate,
            "delivery_date": data.deliveryDate,
            "notes": sanitize_string(data.notes),
            "terms_and_conditions": sanitize_string(data.termsAndConditions),
        }
        return self._create(
            doctor,
            fields,
            data.items,
            amount_paid=data.amountPaid,
            status=data.status.value if data.status else None,
        )

    def update_sale(self, sale_id: int, data: SaleUpdate, doctor: Doctor) -> Sale:
        sale = self.get(sale_id, doctor)
        provided = data.model_fields_set

        fields = {}
        if "clientId" in provided and data.clientId is not None:
            self._require_counterparty(doctor, data.clientId)
            fields["client_id"] = data.clientId
        if "saleDate" in provided and data.saleDate is not None:
            fields["sale_date"] = data.saleDate
        if "deliveryDate" in provided:
            fields["delivery_date"] = data.deliveryDate
        if "notes" in provided:
            fields["notes"] = sanitize_string(data.notes)
        if "termsAndConditions" in provided:
            fields["terms_and_conditions"] = sanitize_string(data.termsAndConditions)

        return self._update(
            sale,
            fields,
            items=data.items,
            amount_paid=data.amountPaid,
            status=data.status.value if data.status else None,
        )

    def create_from_quotation(self, quotation_id: int, doctor: Doctor) -> Sale:
        """Copy a quotation's items and totals into a new pending sale"""
        from ..quotations.service import QuotationService

        quotation: Quotation = QuotationService(self.db).get(quotation_id, doctor)
        if quotation.status in _NOT_CONVERTIBLE:
            raise StateConflictError(
                f"A {quotation.status.lower()} quotation cannot be converted into a sale",
                current=quotation.status,
            )

        logger.info(f"🔁 Converting quotation {quotation.quotation_number} into a sale")
        fields = {
            "client_id": quotation.client_id,
            "quotation_id": quotation.id,
            "sale_date": date.today(),
            "notes": quotation.notes,
            "terms_and_conditions": quotation.terms_and_conditions,
        }
        return self._create(doctor, fields, [], amount_paid=0, source_items=list(quotation.items))
