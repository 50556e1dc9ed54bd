"""Slot service - Business logic for the doctor's appointment slots"""

import logging
from datetime import date
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...database import atomic
from ...errors import NotFoundError, StateConflictError, UniquenessConflictError, ValidationError
from ...hooks import PostCommitHooks
from ...models import AppointmentSlot, Doctor, SlotStatus
from ...services.activity_logger import ActionType, EntityType, audit
from ...shared.validators import minutes_to_time, time_to_minutes
from .capacity import recompute_status, resize
from .generator import calculate_final_price, generate_time_windows, iter_dates
from .repository import SlotRepository
from .schemas import SlotBulkAction, SlotCreate, SlotUpdate

logger = logging.getLogger(__name__)


class SlotService:
    """Service layer for slot business logic"""

    def __init__(self, db: Session, hooks: Optional[PostCommitHooks] = None):
        self.db = db
        self.hooks = hooks if hooks is not None else PostCommitHooks()
        self.repo = SlotRepository()

    def list_slots(
        self,
        doctor_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        status: Optional[str] = None,
    ) -> list[AppointmentSlot]:
        return self.repo.list_slots(self.db, doctor_id, start_date, end_date, status)

    def get_slot(self, slot_id: str, doctor: Doctor) -> AppointmentSlot:
        slot = self.repo.get_slot(self.db, slot_id, doctor.id)
        if not slot:
            raise NotFoundError("Slot")
        return slot

    def create_slots(self, data: SlotCreate, doctor: Doctor) -> dict:
        """Generate slots for one date or a recurring pattern, skipping starts that already exist"""
        windows = generate_time_windows(
            data.startTime, data.endTime, data.duration, data.breakStart, data.breakEnd
        )
        if not windows:
            raise ValidationError("No valid time slots generated", field="startTime")

        if data.mode == "single":
            dates = [data.date]
        else:
            dates = list(iter_dates(data.startDate, data.endDate, data.daysOfWeek))
        if not dates:
            raise ValidationError("No dates match the requested days of week", field="daysOfWeek")

        discount_type = data.discountType.value if data.discountType else None
        final_price = calculate_final_price(data.basePrice, data.discount, discount_type)
        existing = self.repo.existing_starts(self.db, doctor.id, dates)

        created = 0
        skipped = 0
        with atomic(self.db):
            for slot_date in dates:
                for start, end in windows:
                    if (slot_date, start) in existing:
                        skipped += 1
                        continue
                    self.db.add(
                        AppointmentSlot(
                            doctor_id=doctor.id,
                            date=slot_date,
                            start_time=start,
                            end_time=end,
                            duration=data.duration,
                            base_price=data.basePrice,
                            discount=data.discount,
                            discount_type=discount_type,
                            final_price=final_price,
                            max_bookings=data.maxBookings,
                            current_bookings=0,
                            status=SlotStatus.AVAILABLE.value,
                        )
                    )
                    created += 1
            if created:
                audit(
                    self.hooks,
                    self.db,
                    doctor.id,
                    ActionType.SLOTS_CREATED,
                    EntityType.APPOINTMENT,
                    dates[0].isoformat(),
                    f"{created} horarios creados ({dates[0].isoformat()} - {dates[-1].isoformat()})",
                    {"count": created, "mode": data.mode, "duration": data.duration},
                )

        logger.info(f"✅ Created {created} slots for doctor {doctor.id} ({skipped} already existed)")
        return {"count": created, "skipped": skipped, "message": f"Created {created} slots"}

    def update_slot(self, slot_id: str, data: SlotUpdate, doctor: Doctor) -> AppointmentSlot:
        """
        Edit price, capacity or time. Price changes never touch existing bookings,
        which keep the price they were booked at.
        """
        slot = self.get_slot(slot_id, doctor)
        provided = {name for name in data.model_fields_set if getattr(data, name) is not None}
        active = self.repo.booking_counts(self.db, [slot.id]).get(slot.id, 0)

        time_fields = provided & {"date", "startTime", "endTime", "duration"}
        if time_fields and active:
            raise StateConflictError(
                "Cannot change the time of a slot with active bookings",
                activeBookings=active,
                fields=sorted(time_fields),
            )

        with atomic(self.db):
            if "date" in provided:
                slot.date = data.date
            if "duration" in provided:
                slot.duration = data.duration
            if "startTime" in provided:
                slot.start_time = data.startTime
            if "endTime" in provided:
                slot.end_time = data.endTime
            elif time_fields & {"startTime", "duration"}:
                slot.end_time = minutes_to_time(time_to_minutes(slot.start_time) + slot.duration)
            if time_to_minutes(slot.end_time) <= time_to_minutes(slot.start_time):
                raise ValidationError("endTime must be after startTime", field="endTime")

            if provided & {"basePrice", "discount", "discountType"}:
                if "basePrice" in provided:
                    slot.base_price = data.basePrice
                if "discount" in provided:
                    slot.discount = data.discount
                if "discountType" in provided:
                    slot.discount_type = data.discountType.value
                slot.final_price = calculate_final_price(
                    slot.base_price, slot.discount, slot.discount_type
                )

            if "maxBookings" in provided:
                resize(self.db, slot.id, data.maxBookings)

            try:
                self.db.flush()
            except IntegrityError as e:
                raise UniquenessConflictError(
                    "Another slot already starts at that date and time"
                ) from e

            audit(
                self.hooks,
                self.db,
                doctor.id,
                ActionType.SLOT_UPDATED,
                EntityType.APPOINTMENT,
                slot.id,
                f"Horario {slot.date.isoformat()} {slot.start_time} actualizado",
                {"fields": sorted(provided)},
            )

        self.db.refresh(slot)
        return slot

    def ensure_blockable(self, slots: list[AppointmentSlot]) -> None:
        counts = self.repo.booking_counts(self.db, [s.id for s in slots])
        busy = [s for s in slots if counts.get(s.id, 0)]
        if busy:
            raise StateConflictError(
                "Cannot close slots that hold active bookings; cancel the bookings first",
                slotIds=[s.id for s in busy],
            )

    @staticmethod
    def apply_blocked(slot: AppointmentSlot, blocked: bool) -> None:
        if blocked:
            slot.status = SlotStatus.BLOCKED.value
        else:
            slot.status = SlotStatus.AVAILABLE.value
            recompute_status(slot)

    def set_blocked(self, slot_id: str, blocked: bool, doctor: Doctor) -> AppointmentSlot:
        """Close a slot to new bookings, or open it again"""
        slot = self.get_slot(slot_id, doctor)
        if blocked:
            self.ensure_blockable([slot])

        with atomic(self.db):
            self.apply_blocked(slot, blocked)
            action = ActionType.SLOT_CLOSED if blocked else ActionType.SLOT_OPENED
            verb = "cerrado" if blocked else "abierto"
            audit(
                self.hooks,
                self.db,
                doctor.id,
                action,
                EntityType.APPOINTMENT,
                slot.id,
                f"Horario {slot.date.isoformat()} {slot.start_time} {verb}",
            )

        self.db.refresh(slot)
        logger.info(f"🔒 Slot {slot.id} {'blocked' if blocked else 'opened'}")
        return slot

    def _ensure_deletable(self, slots: list[AppointmentSlot]) -> None:
        counts = self.repo.booking_counts(
            self.db, [s.id for s in slots], statuses=("PENDING", "CONFIRMED", "COMPLETED", "NO_SHOW")
        )
        busy = [s for s in slots if counts.get(s.id, 0)]
        if busy:
            raise StateConflictError(
                "Cannot delete slots that have bookings; cancel them first",
                slotIds=[s.id for s in busy],
            )

    def delete_slot(self, slot_id: str, doctor: Doctor) -> dict:
        slot = self.get_slot(slot_id, doctor)
        self._ensure_deletable([slot])
        label = f"{slot.date.isoformat()} {slot.start_time}"
        with atomic(self.db):
            self.db.delete(slot)
            audit(
                self.hooks,
                self.db,
                doctor.id,
                ActionType.SLOT_DELETED,
                EntityType.APPOINTMENT,
                slot_id,
                f"Horario {label} eliminado",
            )
        logger.info(f"🗑️ Slot {slot_id} deleted")
        return {"message": "Slot deleted"}

    def bulk(self, data: SlotBulkAction, doctor: Doctor) -> dict:
        """Delete, block or unblock several slots at once; all or nothing"""
        slot_ids = list(dict.fromkeys(data.slotIds))
        slots = self.repo.get_slots(self.db, slot_ids, doctor.id)
        if len(slots) != len(slot_ids):
            raise NotFoundError("Slot")

        if data.action == "delete":
            self._ensure_deletable(slots)
        elif data.action == "block":
            self.ensure_blockable(slots)

        with atomic(self.db):
            for slot in slots:
                if data.action == "delete":
                    self.db.delete(slot)
                else:
                    self.apply_blocked(slot, data.action == "block")

            action, verb = {
                "delete": (ActionType.SLOTS_BULK_DELETED, "eliminados"),
                "block": (ActionType.SLOTS_BULK_CLOSED, "cerrados"),
                "unblock": (ActionType.SLOTS_BULK_OPENED, "abiertos"),
            }[data.action]
            audit(
                self.hooks,
                self.db,
                doctor.id,
                action,
                EntityType.APPOINTMENT,
                slot_ids[0],
                f"{len(slots)} horarios {verb}",
                {"slotIds": slot_ids},
            )

        logger.info(f"📦 Bulk {data.action} applied to {len(slots)} slots")
        return {"action": data.action, "count": len(slots)}
