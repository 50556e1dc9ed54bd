"""Task repository - Database operations for tasks"""

from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from ...models import Task


class TaskRepository:
    """Repository for task database operations"""

    @staticmethod
    def get_task(db: Session, task_id: str, doctor_id: str) -> Optional[Task]:
        return db.query(Task).filter(Task.id == task_id, Task.doctor_id == doctor_id).first()

    @staticmethod
    def get_tasks(db: Session, task_ids: list[str], doctor_id: str) -> list[Task]:
        return db.query(Task).filter(Task.id.in_(task_ids), Task.doctor_id == doctor_id).all()

    @staticmethod
    def list_tasks(
        db: Session,
        doctor_id: str,
        status: Optional[str] = None,
        priority: Optional[str] = None,
        category: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[Task]:
        query = db.query(Task).filter(Task.doctor_id == doctor_id)
        if status:
            query = query.filter(Task.status == status)
        if priority:
            query = query.filter(Task.priority == priority)
        if category:
            query = query.filter(Task.category == category)
        if start_date:
            query = query.filter(Task.due_date >= start_date)
        if end_date:
            query = query.filter(Task.due_date <= end_date)
        return query.order_by(
            Task.due_date.is_(None), Task.due_date, Task.start_time, Task.created_at.desc()
        ).all()

    @staticmethod
    def tasks_on(
        db: Session, doctor_id: str, on_date: date, statuses: tuple[str, ...]
    ) -> list[Task]:
        """Timed tasks of one day in the given statuses"""
        return (
            db.query(Task)
            .filter(
                Task.doctor_id == doctor_id,
                Task.due_date == on_date,
                Task.status.in_(statuses),
                Task.start_time.isnot(None),
                Task.end_time.isnot(None),
            )
            .order_by(Task.start_time)
            .all()
        )
