"""Task router - FastAPI endpoints for tasks and schedule conflicts"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_doctor
from ...database import get_db
from ...errors import ValidationError
from ...hooks import PostCommitHooks, get_post_commit_hooks
from ...models import Doctor, TaskPriority, TaskStatus
from ...shared.validators import validate_time, validate_time_range
from .schemas import (
    ConflictOverride,
    ConflictReport,
    OverrideResult,
    TaskBulkDelete,
    TaskCreate,
    TaskResponse,
    TaskUpdate,
    TaskWriteResult,
)
from .service import TaskService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tasks", tags=["Tasks"])


def get_task_service(
    db: Session = Depends(get_db),
    hooks: PostCommitHooks = Depends(get_post_commit_hooks),
) -> TaskService:
    """Dependency injection for TaskService"""
    return TaskService(db, hooks)


@router.get("", response_model=list[TaskResponse])
async def list_tasks(
    status: Optional[TaskStatus] = Query(None),
    priority: Optional[TaskPriority] = Query(None),
    category: Optional[str] = Query(None),
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    current_doctor: Doctor = Depends(get_current_doctor),
    service: TaskService = Depends(get_task_service),
):
    return service.list_tasks(
        current_doctor,
        status.value if status else None,
        priority.value if priority else None,
        category,
        start_date,
        end_date,
    )


@router.post("", response_model=TaskWriteResult, status_code=201)
async def create_task(
    data: TaskCreate,
    current_doctor: Doctor = Depends(get_current_doctor),
    service: TaskService = Depends(get_task_service),
):
    """Create a task; overlapping patient bookings are returned as warnings"""
    return service.create_task(data, current_doctor)


@router.delete("/bulk")
async def bulk_delete_tasks(
    data: TaskBulkDelete,
    current_doctor: Doctor = Depends(get_current_doctor),
    service: TaskService = Depends(get_task_service),
):
    return service.bulk_delete(data.taskIds, current_doctor)


@router.get("/conflicts", response_model=ConflictReport)
async def check_conflicts(
    on_date: date = Query(..., alias="date"),
    start_time: str = Query(..., alias="startTime"),
    end_time: str = Query(..., alias="endTime"),
    current_doctor: Doctor = Depends(get_current_doctor),
    service: TaskService = Depends(get_task_service),
):
    """What a task at this date and time would collide with"""
    try:
        start_time = validate_time(start_time)
        end_time = validate_time(end_time)
        validate_time_range(start_time, end_time)
    except ValueError as e:
        raise ValidationError(str(e), field="startTime") from e
    return service.check_conflicts(current_doctor, on_date, start_time, end_time)


@router.post("/conflicts/override", response_model=OverrideResult)
async def override_conflicts(
    data: ConflictOverride,
    current_doctor: Doctor = Depends(get_current_doctor),
    service: TaskService = Depends(get_task_service),
):
    """Cancel conflicting tasks and close conflicting slots, all or nothing"""
    return service.override_conflicts(data, current_doctor)


@router.get("/{task_id}", response_model=TaskResponse)
async def get_task(
    task_id: str,
    current_doctor: Doctor = Depends(get_current_doctor),
    service: TaskService = Depends(get_task_service),
):
    return service.get_task(task_id, current_doctor)


@router.put("/{task_id}", response_model=TaskWriteResult)
async def update_task(
    task_id: str,
    data: TaskUpdate,
    current_doctor: Doctor = Depends(get_current_doctor),
    service: TaskService = Depends(get_task_service),
):
    return service.update_task(task_id, data, current_doctor)


@router.delete("/{task_id}")
async def delete_task(
    task_id: str,
    current_doctor: Doctor = Depends(get_current_doctor),
    service: TaskService = Depends(get_task_service),
):
    return service.delete_task(task_id, current_doctor)
