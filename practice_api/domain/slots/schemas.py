"""Appointment slot schemas - Pydantic models for validation"""

import datetime as dt
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from ... import config
from ...models import DiscountType, SlotStatus
from ...shared.validators import validate_time, validate_time_range


class SlotCreate(BaseModel):
    """Schema for generating slots on one date or on a recurring pattern"""

    mode: Literal["single", "recurring"] = "single"
    date: Optional[dt.date] = None
    startDate: Optional[dt.date] = None
    endDate: Optional[dt.date] = None
    daysOfWeek: Optional[list[int]] = None  # 0=Monday .. 6=Sunday
    startTime: str
    endTime: str
    duration: int
    breakStart: Optional[str] = None
    breakEnd: Optional[str] = None
    basePrice: Decimal = Field(..., gt=0)
    discount: Optional[Decimal] = Field(None, ge=0)
    discountType: Optional[DiscountType] = None
    maxBookings: int = Field(1, ge=1)

    @field_validator("startTime", "endTime", "breakStart", "breakEnd")
    @classmethod
    def check_time(cls, v):
        return validate_time(v)

    @field_validator("duration")
    @classmethod
    def check_duration(cls, v):
        if v not in config.SLOT_DURATIONS:
            allowed = " or ".join(str(d) for d in config.SLOT_DURATIONS)
            raise ValueError(f"Duration must be {allowed} minutes")
        return v

    @field_validator("daysOfWeek")
    @classmethod
    def check_days(cls, v):
        if v is not None and any(day < 0 or day > 6 for day in v):
            raise ValueError("daysOfWeek values must be between 0 (Monday) and 6 (Sunday)")
        return v

    @model_validator(mode="after")
    def check_mode(self):
        validate_time_range(self.startTime, self.endTime)
        validate_time_range(self.breakStart, self.breakEnd)
        if self.discountType == DiscountType.PERCENTAGE and self.discount and self.discount > 100:
            raise ValueError("Percentage discount cannot exceed 100")
        if self.mode == "single" and self.date is None:
            raise ValueError("date is required for single mode")
        if self.mode == "recurring":
            if not (self.startDate and self.endDate and self.daysOfWeek):
                raise ValueError("startDate, endDate and daysOfWeek are required for recurring mode")
            if self.endDate < self.startDate:
                raise ValueError("endDate cannot be before startDate")
        return self


class SlotUpdate(BaseModel):
    """Edit a slot; time changes are refused while it holds active bookings"""

    date: Optional[dt.date] = None
    startTime: Optional[str] = None
    endTime: Optional[str] = None
    duration: Optional[int] = None
    basePrice: Optional[Decimal] = Field(None, gt=0)
    discount: Optional[Decimal] = Field(None, ge=0)
    discountType: Optional[DiscountType] = None
    maxBookings: Optional[int] = Field(None, ge=1)

    @field_validator("startTime", "endTime")
    @classmethod
    def check_time(cls, v):
        return validate_time(v)

    @field_validator("duration")
    @classmethod
    def check_duration(cls, v):
        if v is not None and v not in config.SLOT_DURATIONS:
            raise ValueError("Unsupported slot duration")
        return v


class SlotAvailabilityUpdate(BaseModel):
    isOpen: bool


class SlotBulkAction(BaseModel):
    action: Literal["delete", "block", "unblock"]
    slotIds: list[str] = Field(..., min_length=1)


class SlotResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)

    id: str
    doctor_id: str
    date: dt.date
    start_time: str
    end_time: str
    duration: int
    base_price: Decimal
    discount: Optional[Decimal] = None
    discount_type: Optional[str] = None
    final_price: Decimal
    max_bookings: int
    current_bookings: int
    status: SlotStatus
    created_at: Optional[dt.datetime] = None


class SlotCreateResult(BaseModel):
    count: int
    skipped: int
    message: str


class SlotBulkResult(BaseModel):
    action: str
    count: int
