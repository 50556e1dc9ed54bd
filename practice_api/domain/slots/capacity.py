"""
Slot capacity accounting.

`reserve`, `release` and `resize` are single conditional UPDATE statements so that
concurrent bookings of the same slot are arbitrated by the database: two
requests that both saw one free place cannot both take it. All run inside
the caller's transaction and never commit.
"""

import logging

from sqlalchemy import case, select, update
from sqlalchemy.orm import Session

from ...errors import CapacityExceeded, NotFoundError, SlotBlocked, ValidationError
from ...models import AppointmentSlot, BookingStatus, SlotStatus

logger = logging.getLogger(__name__)

ACTIVE_BOOKING_STATUSES = (BookingStatus.PENDING.value, BookingStatus.CONFIRMED.value)
COUNTER_COLUMNS = ["current_bookings", "max_bookings", "status"]


def status_for(current_bookings: int, max_bookings: int, blocked: bool = False) -> str:
    if blocked:
        return SlotStatus.BLOCKED.value
    if current_bookings >= max_bookings:
        return SlotStatus.BOOKED.value
    return SlotStatus.AVAILABLE.value


def recompute_status(slot: AppointmentSlot) -> str:
    """Status implied by the slot's counters, keeping BLOCKED"""
    slot.status = status_for(
        slot.current_bookings, slot.max_bookings, slot.status == SlotStatus.BLOCKED.value
    )
    return slot.status


def _expire_cached(db: Session, slot_id: str) -> None:
    # The UPDATE bypasses the identity map; reload the counters of any loaded copy.
    # Only the counters: a full expire cascades to loaded bookings and drops their pending changes
    cached = db.identity_map.get(Session.identity_key(AppointmentSlot, slot_id))
    if cached is not None:
        db.expire(cached, COUNTER_COLUMNS)


def _read_state(db: Session, slot_id: str):
    return db.execute(
        select(
            AppointmentSlot.status,
            AppointmentSlot.current_bookings,
            AppointmentSlot.max_bookings,
        ).where(AppointmentSlot.id == slot_id)
    ).first()


def reserve(db: Session, slot_id: str) -> str:
    """
    Take one place on the slot and return its new status.

    Raises:
        SlotBlocked: the slot is closed for bookings
        CapacityExceeded: every place is taken
        NotFoundError: no such slot
    """
    taken = AppointmentSlot.current_bookings + 1
    result = db.execute(
        update(AppointmentSlot)
        .where(
            AppointmentSlot.id == slot_id,
            AppointmentSlot.status != SlotStatus.BLOCKED.value,
            AppointmentSlot.current_bookings < AppointmentSlot.max_bookings,
        )
        .values(
            current_bookings=taken,
            status=case(
                (taken >= AppointmentSlot.max_bookings, SlotStatus.BOOKED.value),
                else_=SlotStatus.AVAILABLE.value,
            ),
        )
        .execution_options(synchronize_session=False)
    )
    _expire_cached(db, slot_id)

    state = _read_state(db, slot_id)
    if result.rowcount == 1:
        logger.debug(f"🎟️ Slot {slot_id} reserved ({state.current_bookings}/{state.max_bookings})")
        return state.status

    if state is None:
        raise NotFoundError("Slot")
    if state.status == SlotStatus.BLOCKED.value:
        raise SlotBlocked(slot_id)
    raise CapacityExceeded(slot_id)


def release(db: Session, slot_id: str) -> None:
    """Give back one place; never goes below zero and leaves BLOCKED slots blocked"""
    remaining = case(
        (AppointmentSlot.current_bookings > 0, AppointmentSlot.current_bookings - 1),
        else_=0,
    )
    result = db.execute(
        update(AppointmentSlot)
        .where(AppointmentSlot.id == slot_id)
        .values(
            current_bookings=remaining,
            status=case(
                (AppointmentSlot.status == SlotStatus.BLOCKED.value, SlotStatus.BLOCKED.value),
                (remaining >= AppointmentSlot.max_bookings, SlotStatus.BOOKED.value),
                else_=SlotStatus.AVAILABLE.value,
            ),
        )
        .execution_options(synchronize_session=False)
    )
    _expire_cached(db, slot_id)
    if result.rowcount == 0:
        logger.warning(f"⚠️ Tried to release a place on missing slot {slot_id}")


def resize(db: Session, slot_id: str, max_bookings: int) -> str:
    """
    Set the slot's capacity and return its new status.

    The check against the places already taken runs in the same statement
    as the write, so a booking that lands between reading the slot and
    resizing it is still counted.

    Raises:
        ValidationError: more places are taken than the new capacity allows
        NotFoundError: no such slot
    """
    result = db.execute(
        update(AppointmentSlot)
        .where(
            AppointmentSlot.id == slot_id,
            AppointmentSlot.current_bookings <= max_bookings,
        )
        .values(
            max_bookings=max_bookings,
            status=case(
                (AppointmentSlot.status == SlotStatus.BLOCKED.value, SlotStatus.BLOCKED.value),
                (AppointmentSlot.current_bookings >= max_bookings, SlotStatus.BOOKED.value),
                else_=SlotStatus.AVAILABLE.value,
            ),
        )
        .execution_options(synchronize_session=False)
    )
    _expire_cached(db, slot_id)

    state = _read_state(db, slot_id)
    if state is None:
        raise NotFoundError("Slot")
    if result.rowcount == 0:
        raise ValidationError(
            f"maxBookings cannot be lower than the {state.current_bookings} places already taken",
            field="maxBookings",
        )
    logger.debug(f"📏 Slot {slot_id} resized to {max_bookings} ({state.status})")
    return state.status
