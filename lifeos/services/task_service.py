"""
Task management service.
Handles routine task definitions: CRUD, soft deletion, ordering and bulk creation.
"""
import json
from typing import List, Optional
from sqlalchemy.orm import Session

from lifeos.models import RoutineTask
from lifeos.schemas import TaskCreate, TaskUpdate, TaskOrderItem
from lifeos.repositories.task_repository import TaskRepository
from lifeos.services.recurrence import parse_recurrence_days
from lifeos.exceptions import ValidationException

NON_NULLABLE_FIELDS = (
    "title", "domain", "time_of_day", "base_points", "is_scheduled",
    "notifications_enabled", "recurrence_type"
)


class TaskService:
    """Service for routine task management"""

    def __init__(self, db: Session):
        self.db = db
        self.task_repo = TaskRepository()

    def get_task(self, task_id: int) -> Optional[RoutineTask]:
        """Get active task by ID"""
        return self.task_repo.get_active_by_id(self.db, task_id)

    def get_tasks(self) -> List[RoutineTask]:
        """Get all active tasks in display order"""
        return self.task_repo.get_active_tasks(self.db)

    def create_task(self, task_data: TaskCreate) -> RoutineTask:
        """Create a new task"""
        task = self._build_task(task_data)
        self.task_repo.create(self.db, task)
        self.db.commit()
        self.db.refresh(task)
        return task

    def bulk_create_tasks(self, tasks_data: List[TaskCreate]) -> List[RoutineTask]:
        """Create several tasks in one transaction; nothing is saved if any is invalid"""
        tasks = [self._build_task(task_data) for task_data in tasks_data]
        for task in tasks:
            self.task_repo.create(self.db, task)
        self.db.commit()
        for task in tasks:
            self.db.refresh(task)
        return tasks

    def update_task(self, task_id: int, task_update: TaskUpdate) -> Optional[RoutineTask]:
        """Update an existing task"""
        task = self.task_repo.get_active_by_id(self.db, task_id)
        if not task:
            return None

        update_data = task_update.model_dump(exclude_unset=True)
        for key in NON_NULLABLE_FIELDS:
            if key in update_data and update_data[key] is None:
                raise ValidationException(key, "may not be null")
        if "recurrence_days" in update_data:
            days = update_data.pop("recurrence_days") or []
            task.recurrence_days = json.dumps(parse_recurrence_days(days))
        for key, value in update_data.items():
            setattr(task, key, value)

        self._check_schedule(task.is_scheduled, task.start_time)
        self.db.commit()
        self.db.refresh(task)
        return task

    def delete_task(self, task_id: int) -> bool:
        """
        Deactivate a task.

        Logs stay in place so past days keep their history; the task just
        stops appearing in routines and notification sweeps.
        """
        task = self.task_repo.get_active_by_id(self.db, task_id)
        if not task:
            return False
        task.is_active = False
        self.db.commit()
        return True

    def reorder_tasks(self, items: List[TaskOrderItem]) -> List[RoutineTask]:
        """Apply new display positions; unknown IDs are ignored"""
        by_id = {task.id: task for task in self.task_repo.get_by_ids(self.db, [item.id for item in items])}
        for item in items:
            task = by_id.get(item.id)
            if task:
                task.order = item.order
        self.db.commit()
        return self.task_repo.get_active_tasks(self.db)

    def _build_task(self, task_data: TaskCreate) -> RoutineTask:
        values = task_data.model_dump()
        values["recurrence_days"] = json.dumps(parse_recurrence_days(values.get("recurrence_days") or []))
        self._check_schedule(values["is_scheduled"], values["start_time"])
        return RoutineTask(**values)

    @staticmethod
    def _check_schedule(is_scheduled: bool, start_time: Optional[str]) -> None:
        if is_scheduled and not start_time:
            raise ValidationException("start_time", "Scheduled tasks need a start time")
