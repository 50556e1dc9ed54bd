"""Tests for tasks and schedule conflict detection."""

import asyncio

import pytest

from practice_api.domain.bookings.schemas import BookingCreate
from practice_api.domain.bookings.service import BookingService
from practice_api.domain.tasks import conflicts as conflicts_module
from practice_api.domain.tasks.conflicts import find_booking_warnings, overlaps
from practice_api.domain.tasks.schemas import ConflictOverride, TaskCreate, TaskUpdate
from practice_api.domain.tasks.service import TaskService
from practice_api.errors import NotFoundError, StateConflictError, TaskConflictError, ValidationError
from practice_api.models import ActivityLog, Task


@pytest.fixture
def task_service(db, hooks) -> TaskService:
    return TaskService(db, hooks)


@pytest.fixture
def add_task(task_service, doctor, slot_date):
    """Create a timed task on the slot date."""

    def _add(start_time="10:15", end_time="10:45", title="Revisar inventario", **extra):
        data = TaskCreate(title=title, dueDate=slot_date, startTime=start_time, endTime=end_time, **extra)
        return task_service.create_task(data, doctor)["task"]

    return _add


@pytest.fixture
def booked_half_hour(db, make_slot, patient_payload):
    """A 10:00-10:30 slot holding one active booking."""
    slot = make_slot(start_time="10:00", end_time="10:30")
    BookingService(db).create_booking(BookingCreate(**patient_payload, slotId=slot.id))
    return slot


class TestOverlap:
    def test_half_open(self):
        assert overlaps("10:00", "10:30", "10:15", "10:45")
        assert not overlaps("10:00", "10:30", "10:30", "11:00")
        assert overlaps("09:00", "12:00", "10:00", "10:15")


class TestCreateTask:
    """Tests for TaskService.create_task."""

    def test_overlapping_task_is_rejected(self, db, task_service, add_task, doctor, slot_date):
        existing = add_task()

        with pytest.raises(TaskConflictError) as exc:
            task_service.create_task(
                TaskCreate(title="Llamar laboratorio", dueDate=slot_date, startTime="10:00", endTime="10:30"),
                doctor,
            )

        conflict = exc.value.detail["conflicts"][0]
        assert conflict["id"] == existing.id
        assert conflict["startTime"] == "10:15"
        assert exc.value.status_code == 409
        assert db.query(Task).count() == 1

    def test_booking_overlap_only_warns(self, task_service, booked_half_hour, doctor, slot_date):
        result = task_service.create_task(
            TaskCreate(title="Llamar laboratorio", dueDate=slot_date, startTime="10:00", endTime="10:30"),
            doctor,
        )

        assert result["task"].id
        warning = result["booking_warnings"][0]
        assert warning["slotId"] == booked_half_hour.id
        assert warning["activeBookings"] == 1
        assert warning["patients"] == ["María García"]

    def test_touching_tasks_do_not_conflict(self, add_task):
        add_task("10:00", "10:30")
        assert add_task("10:30", "11:00").start_time == "10:30"

    def test_closed_tasks_are_ignored(self, task_service, add_task, doctor):
        first = add_task()
        task_service.update_task(first.id, TaskUpdate(status="COMPLETED"), doctor)
        assert add_task(title="Otro")

    def test_other_doctors_tasks_are_ignored(self, task_service, add_task, other_doctor, slot_date):
        add_task()
        result = task_service.create_task(
            TaskCreate(title="Ajeno", dueDate=slot_date, startTime="10:15", endTime="10:45"),
            other_doctor,
        )
        assert result["booking_warnings"] == []

    def test_untimed_task(self, task_service, doctor):
        result = task_service.create_task(TaskCreate(title="Pedir facturas"), doctor)
        assert result["task"].status == "PENDING"
        assert result["task"].priority == "MEDIUM"

    def test_times_require_due_date(self):
        with pytest.raises(ValueError):
            TaskCreate(title="x", startTime="10:00", endTime="11:00")

    def test_end_must_follow_start(self, slot_date):
        with pytest.raises(ValueError):
            TaskCreate(title="x", dueDate=slot_date, startTime="11:00", endTime="10:00")

    def test_audited(self, add_task, hooks):
        add_task()
        assert hooks.names == ["audit:TASK_CREATED"]


class TestUpdateTask:
    """Tests for TaskService.update_task."""

    def test_update_excludes_self(self, task_service, add_task, doctor):
        task = add_task("10:00", "10:30")
        result = task_service.update_task(task.id, TaskUpdate(endTime="10:45"), doctor)
        assert result["task"].end_time == "10:45"

    def test_moving_onto_another_task(self, task_service, add_task, doctor):
        add_task("10:00", "10:30")
        later = add_task("11:00", "11:30", title="Otro")
        with pytest.raises(TaskConflictError):
            task_service.update_task(later.id, TaskUpdate(startTime="10:15", endTime="10:45"), doctor)

    def test_reopening_into_an_overlap(self, task_service, add_task, doctor):
        first = add_task()
        task_service.update_task(first.id, TaskUpdate(status="CANCELLED"), doctor)
        add_task(title="Reemplazo")
        with pytest.raises(TaskConflictError):
            task_service.update_task(first.id, TaskUpdate(status="PENDING"), doctor)

    def test_bad_range_after_merge(self, task_service, add_task, doctor):
        task = add_task("10:00", "10:30")
        with pytest.raises(ValidationError):
            task_service.update_task(task.id, TaskUpdate(startTime="11:00"), doctor)

    def test_complete_stamps_and_reopen_clears(self, task_service, add_task, doctor, hooks):
        task = add_task()
        task = task_service.update_task(task.id, TaskUpdate(status="COMPLETED"), doctor)["task"]
        assert task.completed_at is not None
        assert hooks.names[-1] == "audit:TASK_COMPLETED"

        task = task_service.update_task(task.id, TaskUpdate(status="IN_PROGRESS"), doctor)["task"]
        assert task.completed_at is None

    def test_audit_records_changes(self, db, task_service, add_task, doctor, hooks):
        task = add_task()
        hooks.clear()
        task_service.update_task(task.id, TaskUpdate(title="Inventario mensual", priority="HIGH"), doctor)
        asyncio.run(hooks.run())

        entry = db.query(ActivityLog).one()
        assert entry.action_type == "TASK_UPDATED"
        assert entry.details["changes"]["title"] == {"from": "Revisar inventario", "to": "Inventario mensual"}
        assert entry.details["changes"]["priority"] == {"from": "MEDIUM", "to": "HIGH"}

    def test_unchanged_update_writes_nothing(self, task_service, add_task, doctor, hooks):
        task = add_task()
        hooks.clear()
        task_service.update_task(task.id, TaskUpdate(title="Revisar inventario"), doctor)
        assert len(hooks) == 0

    def test_null_clears_description(self, task_service, doctor):
        task = task_service.create_task(TaskCreate(title="x", description="nota"), doctor)["task"]
        task = task_service.update_task(task.id, TaskUpdate(description=None), doctor)["task"]
        assert task.description is None


class TestDeleteTasks:
    def test_delete(self, db, task_service, add_task, doctor):
        task = add_task()
        task_service.delete_task(task.id, doctor)
        assert db.query(Task).count() == 0

    def test_bulk_delete(self, db, task_service, add_task, doctor, hooks):
        ids = [add_task("09:00", "09:30").id, add_task("11:00", "11:30").id]
        assert task_service.bulk_delete(ids, doctor) == {"deletedCount": 2}
        assert db.query(Task).count() == 0
        assert hooks.names[-1] == "audit:TASKS_BULK_DELETED"

    def test_bulk_delete_unknown_id_deletes_nothing(self, db, task_service, add_task, doctor):
        task = add_task()
        with pytest.raises(NotFoundError):
            task_service.bulk_delete([task.id, "missing"], doctor)
        assert db.query(Task).count() == 1

    def test_bulk_delete_other_doctor(self, task_service, add_task, other_doctor):
        task = add_task()
        with pytest.raises(NotFoundError):
            task_service.bulk_delete([task.id], other_doctor)


class TestConflictReport:
    """Tests for check_conflicts and override_conflicts."""

    def test_report(self, task_service, add_task, booked_half_hour, make_slot, doctor, slot_date):
        task = add_task()
        make_slot(start_time="10:30", end_time="11:00")

        report = task_service.check_conflicts(doctor, slot_date, "10:00", "11:00")

        assert [c["id"] for c in report["task_conflicts"]] == [task.id]
        assert [w["slotId"] for w in report["booking_warnings"]] == [booked_half_hour.id]
        assert [s["startTime"] for s in report["slots"]] == ["10:00", "10:30"]

    def test_failed_booking_read_yields_no_warnings(self, db, booked_half_hour, doctor, slot_date, monkeypatch):
        def broken(*args, **kwargs):
            raise conflicts_module.SQLAlchemyError("database is locked")

        monkeypatch.setattr(db, "query", broken)
        assert find_booking_warnings(db, doctor.id, slot_date, "10:00", "10:30") == []

    def test_override_cancels_and_blocks(self, db, task_service, add_task, make_slot, doctor, hooks):
        task = add_task()
        free_slot = make_slot(start_time="10:30", end_time="11:00")

        result = task_service.override_conflicts(
            ConflictOverride(taskIdsToCancel=[task.id], slotIdsToBlock=[free_slot.id]), doctor
        )

        assert result == {"cancelled_tasks": 1, "blocked_slots": 1}
        db.refresh(task)
        db.refresh(free_slot)
        assert task.status == "CANCELLED"
        assert free_slot.status == "BLOCKED"
        assert "audit:SLOTS_BULK_CLOSED" in hooks.names
        assert hooks.names[-1] == "audit:TASK_CANCELLED"

    def test_override_is_all_or_nothing(self, db, task_service, add_task, booked_half_hour, doctor):
        task = add_task()

        with pytest.raises(StateConflictError):
            task_service.override_conflicts(
                ConflictOverride(taskIdsToCancel=[task.id], slotIdsToBlock=[booked_half_hour.id]), doctor
            )

        db.refresh(task)
        assert task.status == "PENDING"

    def test_override_unknown_task(self, task_service, make_slot, doctor):
        slot = make_slot()
        with pytest.raises(NotFoundError):
            task_service.override_conflicts(
                ConflictOverride(taskIdsToCancel=["missing"], slotIdsToBlock=[slot.id]), doctor
            )

    def test_override_requires_something(self):
        with pytest.raises(ValueError):
            ConflictOverride(taskIdsToCancel=[], slotIdsToBlock=[])
