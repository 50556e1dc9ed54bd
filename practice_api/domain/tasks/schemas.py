"""Task domain schemas - Pydantic models for validation"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from ...models import TaskPriority, TaskStatus
from ...shared.validators import validate_time, validate_time_range
from ...utils.sanitization import clean_text


class TaskCreate(BaseModel):
    """Schema for creating a task"""

    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    dueDate: Optional[date] = None
    startTime: Optional[str] = None
    endTime: Optional[str] = None
    priority: TaskPriority = TaskPriority.MEDIUM
    category: str = Field("OTRO", max_length=50)

    @field_validator("title")
    @classmethod
    def check_title(cls, v):
        return clean_text(v, max_length=200)

    @field_validator("description")
    @classmethod
    def check_description(cls, v):
        return clean_text(v, max_length=2000)

    @field_validator("startTime", "endTime")
    @classmethod
    def check_time(cls, v):
        return validate_time(v)

    @model_validator(mode="after")
    def check_range(self):
        validate_time_range(self.startTime, self.endTime)
        if self.startTime and not self.dueDate:
            raise ValueError("dueDate is required when a time range is given")
        return self


class TaskUpdate(BaseModel):
    """Schema for updating a task; only the fields sent are applied"""

    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    dueDate: Optional[date] = None
    startTime: Optional[str] = None
    endTime: Optional[str] = None
    priority: Optional[TaskPriority] = None
    status: Optional[TaskStatus] = None
    category: Optional[str] = Field(None, max_length=50)

    @field_validator("title")
    @classmethod
    def check_title(cls, v):
        return clean_text(v, max_length=200)

    @field_validator("description")
    @classmethod
    def check_description(cls, v):
        return clean_text(v, max_length=2000)

    @field_validator("startTime", "endTime")
    @classmethod
    def check_time(cls, v):
        return validate_time(v)


class TaskBulkDelete(BaseModel):
    taskIds: list[str] = Field(..., min_length=1)


class ConflictOverride(BaseModel):
    """Cancel the listed tasks and close the listed slots in one go"""

    taskIdsToCancel: list[str] = Field(default_factory=list)
    slotIdsToBlock: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_not_empty(self):
        if not self.taskIdsToCancel and not self.slotIdsToBlock:
            raise ValueError("Nothing to override")
        return self


class TaskResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)

    id: str
    doctor_id: str
    title: str
    description: Optional[str] = None
    due_date: Optional[date] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    priority: TaskPriority
    status: TaskStatus
    category: str
    completed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class TaskConflict(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    title: str
    start_time: str
    end_time: str
    status: str


class BookingWarning(BaseModel):
    """A slot with live patient bookings that overlaps the task's time range"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    slot_id: str
    start_time: str
    end_time: str
    active_bookings: int
    patients: list[str] = []


class SlotOverlap(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    slot_id: str
    start_time: str
    end_time: str
    status: str
    current_bookings: int


class TaskWriteResult(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    task: TaskResponse
    booking_warnings: list[BookingWarning] = []


class ConflictReport(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    task_conflicts: list[TaskConflict] = []
    booking_warnings: list[BookingWarning] = []
    slots: list[SlotOverlap] = []


class OverrideResult(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    cancelled_tasks: int
    blocked_slots: int
