"""
Domain errors raised by the service layer.

Every error is an HTTPException so routers can let them propagate unchanged;
`detail` is a dict with a stable `error` code plus context for the client.
"""

from typing import Any, Optional

from fastapi import HTTPException


class DomainError(HTTPException):
    status_code = 400
    code = "domain_error"

    def __init__(self, message: str, **context: Any):
        self.message = message
        self.context = context
        super().__init__(
            status_code=self.status_code,
            detail={"error": self.code, "message": message, **context},
        )


class ValidationError(DomainError):
    status_code = 400
    code = "validation_error"

    def __init__(self, message: str, field: Optional[str] = None, **context: Any):
        self.field = field
        if field is not None:
            context["field"] = field
        super().__init__(message, **context)


class NotFoundError(DomainError):
    """Missing row, or a row owned by another doctor: both look the same."""

    status_code = 404
    code = "not_found"

    def __init__(self, entity: str):
        self.entity = entity
        super().__init__(f"{entity} not found")


class StateConflictError(DomainError):
    status_code = 409
    code = "state_conflict"


class InvalidTransition(StateConflictError):
    code = "invalid_transition"

    def __init__(self, entity: str, current: str, requested: str):
        self.current = current
        self.requested = requested
        super().__init__(
            f"Cannot change {entity} status from {current} to {requested}",
            **{"from": current, "to": requested},
        )


class CapacityExceeded(StateConflictError):
    code = "capacity_exceeded"

    def __init__(self, slot_id: str):
        super().__init__("This slot is fully booked", slotId=slot_id)


class SlotBlocked(StateConflictError):
    code = "slot_blocked"

    def __init__(self, slot_id: str):
        super().__init__("This slot is not accepting bookings", slotId=slot_id)


class TaskConflictError(StateConflictError):
    code = "task_conflict"

    def __init__(self, conflicts: list[dict]):
        self.conflicts = conflicts
        super().__init__(
            f"Task overlaps {len(conflicts)} existing task(s)", conflicts=conflicts
        )


class UniquenessConflictError(DomainError):
    status_code = 409
    code = "uniqueness_conflict"


class SequenceExhausted(UniquenessConflictError):
    code = "sequence_exhausted"

    def __init__(self, prefix: str, attempts: int):
        super().__init__(
            f"Could not allocate a {prefix} number after {attempts} attempts, please retry",
            prefix=prefix,
            attempts=attempts,
        )
