"""Task service - Business logic for the doctor's tasks"""

import logging
from datetime import date, datetime, timezone
from typing import Any, Optional

from sqlalchemy.orm import Session

from ...database import atomic
from ...errors import NotFoundError, ValidationError
from ...hooks import PostCommitHooks
from ...models import Doctor, Task, TaskStatus
from ...services.activity_logger import ActionType, EntityType, audit
from ...shared.validators import validate_time_range
from ..slots.service import SlotService
from .conflicts import (
    OPEN_TASK_STATUSES,
    ensure_no_task_conflicts,
    find_booking_warnings,
    find_overlapping_slots,
    find_task_conflicts,
)
from .repository import TaskRepository
from .schemas import ConflictOverride, TaskCreate, TaskUpdate

logger = logging.getLogger(__name__)

# request field -> model column
_FIELD_COLUMNS = {
    "title": "title",
    "description": "description",
    "dueDate": "due_date",
    "startTime": "start_time",
    "endTime": "end_time",
    "priority": "priority",
    "status": "status",
    "category": "category",
}

# These may be cleared by sending null; the rest ignore a null
_NULLABLE_FIELDS = {"description", "dueDate", "startTime", "endTime"}


def _now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _plain(value: Any) -> Any:
    if hasattr(value, "value"):
        return value.value
    if isinstance(value, date):
        return value.isoformat()
    return value


class TaskService:
    """Service layer for task business logic"""

    def __init__(self, db: Session, hooks: Optional[PostCommitHooks] = None):
        self.db = db
        self.hooks = hooks if hooks is not None else PostCommitHooks()
        self.repo = TaskRepository()

    def list_tasks(
        self,
        doctor: Doctor,
        status: Optional[str] = None,
        priority: Optional[str] = None,
        category: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[Task]:
        return self.repo.list_tasks(
            self.db, doctor.id, status, priority, category, start_date, end_date
        )

    def get_task(self, task_id: str, doctor: Doctor) -> Task:
        task = self.repo.get_task(self.db, task_id, doctor.id)
        if not task:
            raise NotFoundError("Task")
        return task

    def _lock_schedule(self, doctor: Doctor) -> None:
        # Row lock on the doctor serializes schedule writes on PostgreSQL;
        # SQLite already holds the database write lock from BEGIN IMMEDIATE
        self.db.query(Doctor.id).filter(Doctor.id == doctor.id).with_for_update().one()

    def create_task(self, data: TaskCreate, doctor: Doctor) -> dict:
        """
        Create a task. An overlapping open task rejects the write; overlapping
        patient bookings come back as warnings next to the created task.
        """
        warnings = []
        with atomic(self.db):
            if data.dueDate and data.startTime:
                self._lock_schedule(doctor)
                ensure_no_task_conflicts(self.db, doctor.id, data.dueDate, data.startTime, data.endTime)
                warnings = find_booking_warnings(
                    self.db, doctor.id, data.dueDate, data.startTime, data.endTime
                )

            task = Task(
                doctor_id=doctor.id,
                title=data.title,
                description=data.description,
                due_date=data.dueDate,
                start_time=data.startTime,
                end_time=data.endTime,
                priority=data.priority.value,
                status=TaskStatus.PENDING.value,
                category=data.category,
            )
            self.db.add(task)
            self.db.flush()
            when = f" para {data.dueDate.isoformat()}" if data.dueDate else ""
            audit(
                self.hooks,
                self.db,
                doctor.id,
                ActionType.TASK_CREATED,
                EntityType.TASK,
                task.id,
                f"Pendiente creado: {task.title}{when}",
                {"priority": task.priority, "category": task.category},
            )

        self.db.refresh(task)
        if warnings:
            logger.info(f"⚠️ Task {task.id} overlaps {len(warnings)} booked slot(s)")
        logger.info(f"✅ Task {task.id} created")
        return {"task": task, "booking_warnings": warnings}

    def _changes(self, task: Task, data: TaskUpdate) -> dict[str, tuple[Any, Any]]:
        """Fields the caller sent whose value differs from the stored one, as column -> (old, new)"""
        changes = {}
        for name in data.model_fields_set:
            value = getattr(data, name)
            if value is None and name not in _NULLABLE_FIELDS:
                continue
            column = _FIELD_COLUMNS[name]
            new = _plain(value)
            old = getattr(task, column)
            if _plain(old) != new:
                changes[column] = (old, value.value if hasattr(value, "value") else value)
        return changes

    def update_task(self, task_id: str, data: TaskUpdate, doctor: Doctor) -> dict:
        task = self.get_task(task_id, doctor)
        changes = self._changes(task, data)

        due_date = changes["due_date"][1] if "due_date" in changes else task.due_date
        start = changes["start_time"][1] if "start_time" in changes else task.start_time
        end = changes["end_time"][1] if "end_time" in changes else task.end_time
        status = changes["status"][1] if "status" in changes else task.status

        try:
            validate_time_range(start, end)
        except ValueError as e:
            raise ValidationError(str(e), field="endTime") from e
        if start and not due_date:
            raise ValidationError("dueDate is required when a time range is given", field="dueDate")

        if not changes:
            return {"task": task, "booking_warnings": []}

        warnings = []
        schedule_touched = bool(set(changes) & {"due_date", "start_time", "end_time", "status"})
        with atomic(self.db):
            if due_date and start and status in OPEN_TASK_STATUSES and schedule_touched:
                self._lock_schedule(doctor)
                ensure_no_task_conflicts(
                    self.db, doctor.id, due_date, start, end, exclude_task_id=task.id
                )
                warnings = find_booking_warnings(self.db, doctor.id, due_date, start, end)

            for column, (_, new) in changes.items():
                setattr(task, column, new)

            if "status" in changes:
                if status == TaskStatus.COMPLETED.value:
                    task.completed_at = _now()
                else:
                    task.completed_at = None

            if changes.get("status", (None, None))[1] == TaskStatus.COMPLETED.value:
                action, message = ActionType.TASK_COMPLETED, f"Pendiente completado: {task.title}"
            elif changes.get("status", (None, None))[1] == TaskStatus.CANCELLED.value:
                action, message = ActionType.TASK_CANCELLED, f"Pendiente cancelado: {task.title}"
            else:
                fields = ", ".join(sorted(changes))
                action, message = ActionType.TASK_UPDATED, f"Pendiente actualizado: {task.title} ({fields})"

            audit(
                self.hooks,
                self.db,
                doctor.id,
                action,
                EntityType.TASK,
                task.id,
                message,
                {
                    "changes": {
                        column: {"from": _plain(old), "to": _plain(new)}
                        for column, (old, new) in changes.items()
                    }
                },
            )

        self.db.refresh(task)
        logger.info(f"🔄 Task {task.id} updated: {', '.join(sorted(changes))}")
        return {"task": task, "booking_warnings": warnings}

    def delete_task(self, task_id: str, doctor: Doctor) -> dict:
        task = self.get_task(task_id, doctor)
        title = task.title
        with atomic(self.db):
            self.db.delete(task)
            audit(
                self.hooks,
                self.db,
                doctor.id,
                ActionType.TASK_DELETED,
                EntityType.TASK,
                task_id,
                f"Pendiente eliminado: {title}",
            )
        logger.info(f"🗑️ Task {task_id} deleted")
        return {"message": "Task deleted"}

    def bulk_delete(self, task_ids: list[str], doctor: Doctor) -> dict:
        """Delete several tasks; if any id is unknown nothing is deleted"""
        task_ids = list(dict.fromkeys(task_ids))
        tasks = self.repo.get_tasks(self.db, task_ids, doctor.id)
        if len(tasks) != len(task_ids):
            raise NotFoundError("Task")

        with atomic(self.db):
            for task in tasks:
                self.db.delete(task)
            audit(
                self.hooks,
                self.db,
                doctor.id,
                ActionType.TASKS_BULK_DELETED,
                EntityType.TASK,
                task_ids[0],
                f"{len(tasks)} pendientes eliminados",
                {"taskIds": task_ids},
            )

        logger.info(f"🗑️ Bulk deleted {len(tasks)} tasks")
        return {"deletedCount": len(tasks)}

    def check_conflicts(self, doctor: Doctor, on_date: date, start_time: str, end_time: str) -> dict:
        """Everything a task at this time would collide with, without writing anything"""
        slots = find_overlapping_slots(self.db, doctor.id, on_date, start_time, end_time)
        return {
            "task_conflicts": find_task_conflicts(self.db, doctor.id, on_date, start_time, end_time),
            "booking_warnings": find_booking_warnings(
                self.db, doctor.id, on_date, start_time, end_time
            ),
            "slots": [
                {
                    "slotId": s.id,
                    "startTime": s.start_time,
                    "endTime": s.end_time,
                    "status": s.status,
                    "currentBookings": s.current_bookings,
                }
                for s in slots
            ],
        }

    def override_conflicts(self, data: ConflictOverride, doctor: Doctor) -> dict:
        """
        Cancel open tasks and close slots in one transaction.

        Unknown ids, or a slot that still holds active bookings, change nothing.
        """
        task_ids = list(dict.fromkeys(data.taskIdsToCancel))
        slot_ids = list(dict.fromkeys(data.slotIdsToBlock))

        tasks = self.repo.get_tasks(self.db, task_ids, doctor.id) if task_ids else []
        if len(tasks) != len(task_ids):
            raise NotFoundError("Task")

        slot_service = SlotService(self.db, self.hooks)
        slots = slot_service.repo.get_slots(self.db, slot_ids, doctor.id) if slot_ids else []
        if len(slots) != len(slot_ids):
            raise NotFoundError("Slot")
        slot_service.ensure_blockable(slots)

        cancelled = []
        with atomic(self.db):
            for slot in slots:
                slot_service.apply_blocked(slot, True)
            for task in tasks:
                if task.status in OPEN_TASK_STATUSES:
                    task.status = TaskStatus.CANCELLED.value
                    task.completed_at = _now()
                    cancelled.append(task)

            if slots:
                audit(
                    self.hooks,
                    self.db,
                    doctor.id,
                    ActionType.SLOTS_BULK_CLOSED,
                    EntityType.APPOINTMENT,
                    slot_ids[0],
                    f"{len(slots)} horarios cerrados por conflicto de agenda",
                    {"slotIds": slot_ids},
                )
            for task in cancelled:
                audit(
                    self.hooks,
                    self.db,
                    doctor.id,
                    ActionType.TASK_CANCELLED,
                    EntityType.TASK,
                    task.id,
                    f"Pendiente cancelado por conflicto de agenda: {task.title}",
                )

        logger.info(f"🔀 Conflict override: {len(cancelled)} tasks cancelled, {len(slots)} slots blocked")
        return {"cancelled_tasks": len(cancelled), "blocked_slots": len(slots)}
