"""Quotation service - priced proposals; no ledger entry until converted into a sale"""

import logging

from ...errors import StateConflictError, ValidationError
from ...models import Client, Doctor, Quotation, QuotationItem, QuotationStatus, Sale
from ...shared.transitions import QUOTATION_TRANSITIONS
from ...utils.sanitization import sanitize_string
from ..finance.documents import DocumentService
from ..sequences.allocator import QUOTATION
from .schemas import QuotationCreate, QuotationUpdate

logger = logging.getLogger(__name__)


class QuotationService(DocumentService):
    entity = "Quotation"
    model = Quotation
    item_model = QuotationItem
    sequence = QUOTATION
    transitions = QUOTATION_TRANSITIONS
    initial_status = QuotationStatus.DRAFT.value
    counterparty_model = Client
    counterparty_column = "client_id"
    tracks_payment = False

    def _date_column(self):
        return Quotation.issue_date

    def create_quotation(self, data: QuotationCreate, doctor: Doctor) -> Quotation:
        self._require_counterparty(doctor, data.clientId)
        fields = {
            "client_id": data.clientId,
            "issue_date": data.issueDate,
            "valid_until": data.validUntil,
            "notes": sanitize_string(data.notes),
            "terms_and_conditions": sanitize_string(data.termsAndConditions),
        }
        return self._create(
            doctor, fields, data.items, status=data.status.value if data.status else None
        )

    def update_quotation(self, quotation_id: int, data: QuotationUpdate, doctor: Doctor) -> Quotation:
        quotation = self.get(quotation_id, doctor)
        provided = data.model_fields_set

        fields = {}
        if "clientId" in provided and data.clientId is not None:
            self._require_counterparty(doctor, data.clientId)
            fields["client_id"] = data.clientId
        if "issueDate" in provided and data.issueDate is not None:
            fields["issue_date"] = data.issueDate
        if "validUntil" in provided and data.validUntil is not None:
            fields["valid_until"] = data.validUntil
        if "notes" in provided:
            fields["notes"] = sanitize_string(data.notes)
        if "termsAndConditions" in provided:
            fields["terms_and_conditions"] = sanitize_string(data.termsAndConditions)

        issue_date = fields.get("issue_date", quotation.issue_date)
        valid_until = fields.get("valid_until", quotation.valid_until)
        if valid_until < issue_date:
            raise ValidationError("validUntil cannot be before issueDate", field="validUntil")

        return self._update(
            quotation,
            fields,
            items=data.items,
            status=data.status.value if data.status else None,
        )

    def delete(self, document_id: int, doctor: Doctor) -> dict:
        quotation = self.get(document_id, doctor)
        converted = self.db.query(Sale.sale_number).filter(Sale.quotation_id == quotation.id).first()
        if converted:
            raise StateConflictError(
                f"Quotation was converted into sale {converted[0]} and cannot be deleted",
                saleNumber=converted[0],
            )
        return super().delete(document_id, doctor)
