"""Status transition tables and the single check every status change goes through"""

from typing import Mapping

from ..errors import InvalidTransition

Transitions = Mapping[str, frozenset]


def _table(**rules: tuple[str, ...]) -> dict[str, frozenset]:
    return {status: frozenset(targets) for status, targets in rules.items()}


BOOKING_TRANSITIONS = _table(
    PENDING=("CONFIRMED", "CANCELLED"),
    CONFIRMED=("COMPLETED", "NO_SHOW", "CANCELLED"),
    COMPLETED=(),
    CANCELLED=(),
    NO_SHOW=(),
)

QUOTATION_TRANSITIONS = _table(
    DRAFT=("SENT", "CANCELLED"),
    SENT=("APPROVED", "REJECTED", "EXPIRED", "CANCELLED"),
    APPROVED=("CANCELLED",),
    REJECTED=("CANCELLED",),
    EXPIRED=("DRAFT", "SENT", "APPROVED", "REJECTED", "CANCELLED"),
    CANCELLED=("DRAFT", "SENT", "APPROVED", "REJECTED", "EXPIRED"),
)

SALE_TRANSITIONS = _table(
    PENDING=("CONFIRMED", "CANCELLED"),
    CONFIRMED=("PROCESSING", "CANCELLED"),
    PROCESSING=("SHIPPED", "CANCELLED"),
    SHIPPED=("DELIVERED", "CANCELLED"),
    DELIVERED=("PENDING", "CONFIRMED", "PROCESSING", "SHIPPED", "CANCELLED"),
    CANCELLED=("PENDING", "CONFIRMED", "PROCESSING", "SHIPPED", "DELIVERED"),
)

PURCHASE_TRANSITIONS = _table(
    PENDING=("CONFIRMED", "CANCELLED"),
    CONFIRMED=("PROCESSING", "CANCELLED"),
    PROCESSING=("SHIPPED", "CANCELLED"),
    SHIPPED=("RECEIVED", "CANCELLED"),
    RECEIVED=("PENDING", "CONFIRMED", "PROCESSING", "SHIPPED", "CANCELLED"),
    CANCELLED=("PENDING", "CONFIRMED", "PROCESSING", "SHIPPED", "RECEIVED"),
)


def check_transition(
    table: Transitions, entity: str, current: str, requested: str, allow_same: bool = False
) -> bool:
    """
    Validate `current -> requested` against the table.

    Returns False for a same-status request when `allow_same` is set (nothing
    to do), True when the change is allowed.

    Raises:
        InvalidTransition: the table has no such edge
    """
    if current == requested and allow_same:
        return False
    if requested not in table.get(current, frozenset()):
        raise InvalidTransition(entity, current, requested)
    return True
