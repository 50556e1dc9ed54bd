"""
Activity log for the doctor's dashboard.

Entries are written after the business transaction committed, in a
transaction of their own, so a failed audit write can never undo a booking
or a slot change.
"""

import enum
import logging
from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..hooks import PostCommitHooks
from ..models import ActivityLog

logger = logging.getLogger(__name__)


class ActionType(str, enum.Enum):
    TASK_CREATED = "TASK_CREATED"
    TASK_UPDATED = "TASK_UPDATED"
    TASK_COMPLETED = "TASK_COMPLETED"
    TASK_CANCELLED = "TASK_CANCELLED"
    TASK_DELETED = "TASK_DELETED"
    TASKS_BULK_DELETED = "TASKS_BULK_DELETED"
    SLOTS_CREATED = "SLOTS_CREATED"
    SLOT_UPDATED = "SLOT_UPDATED"
    SLOT_DELETED = "SLOT_DELETED"
    SLOT_OPENED = "SLOT_OPENED"
    SLOT_CLOSED = "SLOT_CLOSED"
    SLOTS_BULK_DELETED = "SLOTS_BULK_DELETED"
    SLOTS_BULK_OPENED = "SLOTS_BULK_OPENED"
    SLOTS_BULK_CLOSED = "SLOTS_BULK_CLOSED"
    BOOKING_CREATED = "BOOKING_CREATED"
    BOOKING_CONFIRMED = "BOOKING_CONFIRMED"
    BOOKING_CANCELLED = "BOOKING_CANCELLED"
    BOOKING_COMPLETED = "BOOKING_COMPLETED"
    BOOKING_NO_SHOW = "BOOKING_NO_SHOW"
    BOOKING_DELETED = "BOOKING_DELETED"


class EntityType(str, enum.Enum):
    TASK = "TASK"
    APPOINTMENT = "APPOINTMENT"
    BOOKING = "BOOKING"


_ICONS = {
    "TASK": ("clipboard", "blue"),
    "SLOT": ("calendar", "purple"),
    "BOOKING": ("user-check", "green"),
}


def record_activity(
    db: Session,
    doctor_id: str,
    action_type: ActionType,
    entity_type: EntityType,
    entity_id: str,
    message: str,
    metadata: Optional[dict[str, Any]] = None,
) -> bool:
    """Write one activity entry. Returns False instead of raising when the write fails."""
    family = action_type.value.split("_")[0].rstrip("S")
    icon, color = _ICONS.get(family, ("info", "gray"))
    if action_type.value.endswith(("CANCELLED", "DELETED", "CLOSED", "NO_SHOW")):
        color = "red"

    try:
        db.add(
            ActivityLog(
                doctor_id=doctor_id,
                action_type=action_type.value,
                entity_type=entity_type.value,
                entity_id=str(entity_id),
                display_message=message[:500],
                icon=icon,
                color=color,
                details=metadata,
            )
        )
        db.commit()
        logger.debug(f"📝 Activity {action_type.value} recorded for {entity_type.value} {entity_id}")
        return True
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"❌ Failed to record activity {action_type.value} for {entity_id}: {e}")
        return False


def audit(
    hooks: PostCommitHooks,
    db: Session,
    doctor_id: str,
    action_type: ActionType,
    entity_type: EntityType,
    entity_id: str,
    message: str,
    metadata: Optional[dict[str, Any]] = None,
) -> None:
    """Queue an activity entry to be written once the current transaction commits"""
    hooks.add(
        f"audit:{action_type.value}",
        record_activity,
        db,
        doctor_id,
        action_type,
        entity_type,
        entity_id,
        message,
        metadata,
    )
