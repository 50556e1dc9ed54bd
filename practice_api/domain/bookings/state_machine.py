"""
Booking status transitions.

    PENDING   -> CONFIRMED | CANCELLED
    CONFIRMED -> COMPLETED | NO_SHOW | CANCELLED
    COMPLETED, CANCELLED, NO_SHOW are terminal

Entering CANCELLED gives the place back to the slot in the same transaction.
COMPLETED and NO_SHOW keep the place taken.
"""

from datetime import datetime, timezone

from sqlalchemy.orm import Session

from ...models import Booking, BookingStatus
from ...shared.transitions import BOOKING_TRANSITIONS, check_transition
from ..slots.capacity import release


def allowed_targets(current: BookingStatus) -> set[BookingStatus]:
    return {BookingStatus(target) for target in BOOKING_TRANSITIONS[current.value]}


def is_terminal(status: BookingStatus) -> bool:
    return not BOOKING_TRANSITIONS[status.value]


def _now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def apply_transition(db: Session, booking: Booking, target: BookingStatus) -> BookingStatus:
    """
    Move the booking to `target`, stamping timestamps and releasing capacity.

    Returns the previous status.

    Raises:
        InvalidTransition: the table has no edge from the current status to target
    """
    previous = BookingStatus(booking.status)
    check_transition(BOOKING_TRANSITIONS, "booking", previous.value, target.value)

    booking.status = target.value
    if target == BookingStatus.CONFIRMED:
        booking.confirmed_at = _now()
    elif target == BookingStatus.COMPLETED:
        booking.completed_at = _now()
    elif target == BookingStatus.CANCELLED:
        booking.cancelled_at = _now()
        # Write the booking before the counter UPDATE expires the slot
        db.flush()
        release(db, booking.slot_id)

    return previous
