"""Tests for practice_api.domain.ledger.service module."""

from datetime import date
from decimal import Decimal

import pytest

from practice_api.domain.ledger.schemas import LedgerEntryCreate, LedgerEntryUpdate
from practice_api.domain.ledger.service import LedgerService
from practice_api.domain.sales.schemas import SaleCreate
from practice_api.domain.sales.service import SaleService
from practice_api.errors import NotFoundError, StateConflictError, UniquenessConflictError


@pytest.fixture
def ledger(db) -> LedgerService:
    return LedgerService(db)


def _entry(**overrides) -> LedgerEntryCreate:
    values = {"amount": Decimal("1200"), "concept": "Renta consultorio", "entryType": "egreso"}
    values.update(overrides)
    return LedgerEntryCreate(**values)


@pytest.fixture
def mirrored_entry(db, ledger, doctor, client_record, item_payload):
    sale = SaleService(db).create_sale(SaleCreate(clientId=client_record.id, items=item_payload), doctor)
    return ledger.list_entries(doctor)[0], sale


class TestManualEntries:
    """Entries created by hand rather than mirrored from a document."""

    def test_manual_entry_has_no_link(self, ledger, doctor):
        entry = ledger.create_entry(_entry(), doctor)

        assert entry.transaction_type == "N/A"
        assert entry.internal_id == f"EGR-{date.today().year}-001"
        assert entry.sale_id is None
        assert entry.purchase_id is None
        assert entry.is_linked is False

    def test_income_and_expense_number_separately(self, ledger, doctor):
        ledger.create_entry(_entry(), doctor)
        income = ledger.create_entry(_entry(entryType="ingreso", concept="Consulta"), doctor)
        assert income.internal_id == f"ING-{date.today().year}-001"

    def test_explicit_internal_id(self, ledger, doctor):
        entry = ledger.create_entry(_entry(internalId=" CAJA-7 "), doctor)
        assert entry.internal_id == "CAJA-7"

    def test_duplicate_internal_id(self, ledger, doctor):
        ledger.create_entry(_entry(internalId="CAJA-7"), doctor)
        with pytest.raises(UniquenessConflictError) as exc:
            ledger.create_entry(_entry(internalId="CAJA-7"), doctor)
        assert exc.value.status_code == 409
        assert len(ledger.list_entries(doctor)) == 1

    def test_partial_payment_status(self, ledger, doctor):
        entry = ledger.create_entry(_entry(amountPaid=Decimal("200")), doctor)
        assert entry.payment_status == "PARTIAL"

        entry = ledger.update_entry(entry.id, LedgerEntryUpdate(amountPaid=Decimal("1200")), doctor)
        assert entry.payment_status == "PAID"

    def test_update_and_delete(self, ledger, doctor):
        entry = ledger.create_entry(_entry(), doctor)
        entry = ledger.update_entry(entry.id, LedgerEntryUpdate(amount=Decimal("1500"), area="Renta"), doctor)
        assert entry.amount == Decimal("1500.00")
        assert entry.area == "Renta"

        ledger.delete_entry(entry.id, doctor)
        with pytest.raises(NotFoundError):
            ledger.get_entry(entry.id, doctor)

    def test_schema_rejects_zero_amount(self):
        with pytest.raises(ValueError):
            _entry(amount=Decimal("0"))

    def test_filters(self, ledger, doctor):
        ledger.create_entry(_entry(), doctor)
        ledger.create_entry(_entry(entryType="ingreso", concept="Consulta", unrealized=True), doctor)

        assert len(ledger.list_entries(doctor, entry_type="ingreso")) == 1
        assert len(ledger.list_entries(doctor, unrealized=False)) == 1

    def test_other_doctor_cannot_see_entry(self, ledger, doctor, other_doctor):
        entry = ledger.create_entry(_entry(), doctor)
        with pytest.raises(NotFoundError):
            ledger.get_entry(entry.id, other_doctor)


class TestLinkedEntries:
    """Entries mirroring a sale follow the sale, not direct edits."""

    def test_amount_is_locked(self, ledger, mirrored_entry, doctor):
        entry, _ = mirrored_entry
        with pytest.raises(StateConflictError) as exc:
            ledger.update_entry(entry.id, LedgerEntryUpdate(amount=Decimal("1")), doctor)
        assert exc.value.detail["fields"] == ["amount"]

    def test_descriptive_fields_stay_editable(self, ledger, mirrored_entry, doctor):
        entry, _ = mirrored_entry
        entry = ledger.update_entry(entry.id, LedgerEntryUpdate(bankAccount="BBVA 1234"), doctor)
        assert entry.bank_account == "BBVA 1234"
        assert entry.amount == Decimal("2240.00")

    def test_cannot_delete(self, ledger, mirrored_entry, doctor):
        entry, _ = mirrored_entry
        with pytest.raises(StateConflictError):
            ledger.delete_entry(entry.id, doctor)


class TestBalance:
    def test_empty(self, ledger, doctor):
        balance = ledger.get_balance(doctor)
        assert balance.balance == Decimal("0.00")
        assert balance.projected_balance == Decimal("0.00")

    def test_realized_and_pending(self, ledger, mirrored_entry, doctor):
        ledger.create_entry(_entry(amount=Decimal("240")), doctor)
        ledger.create_entry(_entry(amount=Decimal("1000"), concept="Nómina", unrealized=True), doctor)

        balance = ledger.get_balance(doctor)

        assert balance.total_income == Decimal("2240.00")
        assert balance.total_expense == Decimal("240.00")
        assert balance.balance == Decimal("2000.00")
        assert balance.pending_expense == Decimal("1000.00")
        assert balance.projected_balance == Decimal("1000.00")

    def test_serialized_with_camel_case(self, ledger, doctor):
        dumped = ledger.get_balance(doctor).model_dump(by_alias=True)
        assert "projectedBalance" in dumped
