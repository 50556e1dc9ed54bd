"""
Human-readable document numbers (VTA-2025-001, CMP-2025-014, ING-2025-120).

Numbers are derived from the rows already stored, never from an in-process
counter, so concurrent writers can pick the same candidate. The unique
constraint is the arbiter: `allocate` inserts inside a savepoint and, when the
sequence's own constraint fires, reads again and retries.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Optional, TypeVar

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ... import config
from ...errors import SequenceExhausted
from ...models import EntryType, LedgerEntry, Purchase, Quotation, Sale

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Sequence:
    prefix: str
    model: Any
    column_name: str
    constraint: str
    per_doctor: bool = True

    @property
    def column(self):
        return getattr(self.model, self.column_name)

    @property
    def qualified_column(self) -> str:
        return f"{self.model.__tablename__}.{self.column_name}"


# Sale numbers are unique across every doctor; the rest are per doctor
SALE = Sequence("VTA", Sale, "sale_number", "uq_sales_sale_number", per_doctor=False)
PURCHASE = Sequence("CMP", Purchase, "purchase_number", "uq_purchases_doctor_number")
QUOTATION = Sequence("COT", Quotation, "quotation_number", "uq_quotations_doctor_number")
LEDGER_INCOME = Sequence("ING", LedgerEntry, "internal_id", "uq_ledger_doctor_internal_id")
LEDGER_EXPENSE = Sequence("EGR", LedgerEntry, "internal_id", "uq_ledger_doctor_internal_id")


def ledger_sequence(entry_type: str) -> Sequence:
    return LEDGER_INCOME if entry_type == EntryType.INCOME.value else LEDGER_EXPENSE


def format_number(prefix: str, year: int, number: int) -> str:
    return f"{prefix}-{year}-{number:03d}"


def parse_number(value: Optional[str]) -> Optional[int]:
    """Trailing integer of a document number, None when it has none"""
    if not value:
        return None
    try:
        return int(value.rsplit("-", 1)[-1])
    except ValueError:
        return None


def _last_number(db: Session, sequence: Sequence, doctor_id: Optional[str], year: int) -> Optional[int]:
    column = sequence.column
    query = db.query(column).filter(column.like(f"{sequence.prefix}-{year}-%"))
    if sequence.per_doctor:
        query = query.filter(sequence.model.doctor_id == doctor_id)

    # Order by length first so 1000 sorts after 999
    rows = query.order_by(func.length(column).desc(), column.desc()).limit(10).all()
    for (value,) in rows:
        number = parse_number(value)
        if number is not None:
            return number
    return None


def next_number(
    db: Session, sequence: Sequence, doctor_id: Optional[str] = None, year: Optional[int] = None
) -> str:
    """Next candidate number for the sequence; not reserved until inserted"""
    year = year or datetime.now().year
    last = _last_number(db, sequence, doctor_id, year)
    return format_number(sequence.prefix, year, (last or 0) + 1)


def _is_collision(error: IntegrityError, sequence: Sequence) -> bool:
    message = str(error.orig)
    return sequence.constraint in message or sequence.qualified_column in message


def allocate(
    db: Session,
    sequence: Sequence,
    doctor_id: Optional[str],
    build: Callable[[str], T],
    year: Optional[int] = None,
) -> T:
    """
    Insert the row produced by `build(number)` under the next free number.

    `build` is called once per attempt and must return a fresh, unsaved
    object. Collisions on the sequence's constraint are retried up to
    SEQUENCE_MAX_ATTEMPTS times; any other integrity error propagates.

    Raises:
        SequenceExhausted: every attempt collided
    """
    attempts = config.SEQUENCE_MAX_ATTEMPTS
    for attempt in range(1, attempts + 1):
        number = next_number(db, sequence, doctor_id, year)
        instance = build(number)
        try:
            with db.begin_nested():
                db.add(instance)
                db.flush()
        except IntegrityError as e:
            if not _is_collision(e, sequence):
                raise
            logger.warning(
                f"⚠️ {sequence.prefix} number {number} already taken, retrying ({attempt}/{attempts})"
            )
            continue

        if attempt > 1:
            logger.info(f"✅ Allocated {number} after {attempt} attempts")
        return instance

    logger.error(f"❌ Gave up allocating a {sequence.prefix} number after {attempts} attempts")
    raise SequenceExhausted(sequence.prefix, attempts)
