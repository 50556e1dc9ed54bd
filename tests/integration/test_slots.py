"""Tests for practice_api.domain.slots.service module."""

from datetime import timedelta
from decimal import Decimal

import pytest
from sqlalchemy import update
from sqlalchemy.orm.attributes import set_committed_value

from practice_api.domain.bookings.schemas import BookingCreate
from practice_api.domain.bookings.service import BookingService
from practice_api.domain.slots.schemas import SlotBulkAction, SlotCreate, SlotUpdate
from practice_api.errors import NotFoundError, StateConflictError, ValidationError
from practice_api.models import AppointmentSlot, BookingStatus


@pytest.fixture
def booked_slot(db, slot, patient_payload):
    BookingService(db).create_booking(BookingCreate(**patient_payload, slotId=slot.id))
    db.refresh(slot)
    return slot


class TestCreateSlots:
    """Tests for SlotService.create_slots."""

    def test_single_day(self, single_day_slots):
        assert [(s.start_time, s.end_time) for s in single_day_slots] == [
            ("09:00", "10:00"),
            ("10:00", "11:00"),
            ("11:00", "12:00"),
        ]
        assert all(s.final_price == Decimal("500.00") for s in single_day_slots)

    def test_existing_starts_are_skipped(self, slot_service, single_day_slots, doctor, slot_date):
        result = slot_service.create_slots(
            SlotCreate(
                mode="single",
                date=slot_date,
                startTime="09:00",
                endTime="13:00",
                duration=60,
                basePrice=Decimal("500"),
            ),
            doctor,
        )
        assert result["count"] == 1
        assert result["skipped"] == 3

    def test_recurring_with_discount(self, slot_service, doctor, slot_date):
        result = slot_service.create_slots(
            SlotCreate(
                mode="recurring",
                startDate=slot_date,
                endDate=slot_date + timedelta(days=6),
                daysOfWeek=[slot_date.weekday()],
                startTime="09:00",
                endTime="10:00",
                duration=30,
                basePrice=Decimal("400"),
                discount=Decimal("25"),
                discountType="PERCENTAGE",
            ),
            doctor,
        )
        assert result["count"] == 2
        slots = slot_service.list_slots(doctor.id)
        assert all(s.final_price == Decimal("300.00") for s in slots)

    def test_audited(self, single_day_slots, hooks):
        assert "audit:SLOTS_CREATED" in hooks.names

    def test_schema_rejects_bad_duration(self, slot_date):
        with pytest.raises(ValueError):
            SlotCreate(date=slot_date, startTime="09:00", endTime="10:00", duration=45, basePrice=100)

    def test_schema_requires_date_for_single_mode(self):
        with pytest.raises(ValueError):
            SlotCreate(startTime="09:00", endTime="10:00", duration=60, basePrice=100)


class TestUpdateSlot:
    """Tests for SlotService.update_slot."""

    def test_price_change_does_not_touch_bookings(self, db, slot_service, booked_slot, doctor):
        slot = slot_service.update_slot(booked_slot.id, SlotUpdate(basePrice=Decimal("800")), doctor)

        assert slot.final_price == Decimal("800.00")
        assert slot.bookings[0].final_price == Decimal("500.00")

    def test_time_change_with_active_booking_is_refused(self, slot_service, booked_slot, doctor):
        with pytest.raises(StateConflictError):
            slot_service.update_slot(booked_slot.id, SlotUpdate(startTime="15:00"), doctor)

    def test_time_change_moves_end_with_duration(self, slot_service, slot, doctor):
        updated = slot_service.update_slot(slot.id, SlotUpdate(startTime="15:00"), doctor)
        assert updated.end_time == "16:00"

    def test_capacity_cannot_drop_below_taken(self, db, slot_service, make_slot, doctor, patient_payload):
        slot = make_slot(max_bookings=3)
        service = BookingService(db)
        service.create_booking(BookingCreate(**patient_payload, slotId=slot.id))
        service.create_booking(
            BookingCreate(**{**patient_payload, "patientEmail": "b@example.com"}, slotId=slot.id)
        )

        with pytest.raises(ValidationError):
            slot_service.update_slot(slot.id, SlotUpdate(maxBookings=1), doctor)

        updated = slot_service.update_slot(slot.id, SlotUpdate(maxBookings=2), doctor)
        assert updated.status == "BOOKED"

    def test_capacity_checked_against_stored_count(self, db, slot_service, make_slot, doctor):
        """A copy read before two bookings landed is still resized against the stored count."""
        slot = make_slot(max_bookings=3)
        db.execute(update(AppointmentSlot).where(AppointmentSlot.id == slot.id).values(current_bookings=2))
        db.commit()
        db.refresh(slot)
        set_committed_value(slot, "current_bookings", 0)

        updated = slot_service.update_slot(slot.id, SlotUpdate(maxBookings=2), doctor)
        assert updated.current_bookings == 2
        assert updated.status == "BOOKED"

        set_committed_value(updated, "current_bookings", 0)
        with pytest.raises(ValidationError):
            slot_service.update_slot(slot.id, SlotUpdate(maxBookings=1), doctor)
        db.refresh(slot)
        assert slot.max_bookings == 2

    def test_other_doctor_cannot_edit(self, slot_service, slot, other_doctor):
        with pytest.raises(NotFoundError):
            slot_service.update_slot(slot.id, SlotUpdate(basePrice=Decimal("1")), other_doctor)


class TestBlocking:
    """Tests for set_blocked, delete_slot and bulk."""

    def test_block_and_open(self, slot_service, slot, doctor, hooks):
        assert slot_service.set_blocked(slot.id, True, doctor).status == "BLOCKED"
        assert slot_service.set_blocked(slot.id, False, doctor).status == "AVAILABLE"
        assert hooks.names[-2:] == ["audit:SLOT_CLOSED", "audit:SLOT_OPENED"]

    def test_cannot_block_with_active_bookings(self, slot_service, booked_slot, doctor):
        with pytest.raises(StateConflictError):
            slot_service.set_blocked(booked_slot.id, True, doctor)

    def test_delete_refused_with_bookings(self, slot_service, booked_slot, doctor):
        with pytest.raises(StateConflictError):
            slot_service.delete_slot(booked_slot.id, doctor)

    def test_delete_allowed_after_cancellation(self, db, slot_service, booked_slot, doctor):
        booking = booked_slot.bookings[0]
        BookingService(db).request_transition(booking.id, BookingStatus.CANCELLED, doctor)

        slot_service.delete_slot(booked_slot.id, doctor)
        assert db.get(AppointmentSlot, booked_slot.id) is None

    def test_bulk_block(self, slot_service, single_day_slots, doctor):
        ids = [s.id for s in single_day_slots]
        result = slot_service.bulk(SlotBulkAction(action="block", slotIds=ids), doctor)

        assert result == {"action": "block", "count": 3}
        assert {s.status for s in slot_service.list_slots(doctor.id)} == {"BLOCKED"}

    def test_bulk_is_all_or_nothing(self, db, slot_service, single_day_slots, doctor, patient_payload):
        BookingService(db).create_booking(
            BookingCreate(**patient_payload, slotId=single_day_slots[1].id)
        )
        ids = [s.id for s in single_day_slots]

        with pytest.raises(StateConflictError):
            slot_service.bulk(SlotBulkAction(action="delete", slotIds=ids), doctor)
        assert len(slot_service.list_slots(doctor.id)) == 3

    def test_bulk_with_unknown_id(self, slot_service, single_day_slots, doctor):
        with pytest.raises(NotFoundError):
            slot_service.bulk(
                SlotBulkAction(action="unblock", slotIds=[single_day_slots[0].id, "missing"]), doctor
            )
