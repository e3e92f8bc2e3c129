"""
Task repository - Data access layer for RoutineTask model.
Handles all database queries related to routine tasks.
"""
from typing import List, Optional
from sqlalchemy.orm import Session
from sqlalchemy import and_

from lifeos.models import RoutineTask


class TaskRepository:
    """Repository for RoutineTask data access"""

    @staticmethod
    def get_active_by_id(db: Session, task_id: int) -> Optional[RoutineTask]:
        """Get task by ID only if it has not been deactivated"""
        return db.query(RoutineTask).filter(
            and_(
                RoutineTask.id == task_id,
                RoutineTask.is_active == True
            )
        ).first()

    @staticmethod
    def get_active_tasks(db: Session) -> List[RoutineTask]:
        """Get all active tasks in display order"""
        return db.query(RoutineTask).filter(
            RoutineTask.is_active == True
        ).order_by(RoutineTask.order, RoutineTask.id).all()

    @staticmethod
    def get_scheduled_at(db: Session, start_time: str) -> List[RoutineTask]:
        """Get active scheduled tasks with notifications that start at HH:MM"""
        return db.query(RoutineTask).filter(
            and_(
                RoutineTask.is_active == True,
                RoutineTask.is_scheduled == True,
                RoutineTask.notifications_enabled == True,
                RoutineTask.start_time == start_time
            )
        ).order_by(RoutineTask.order, RoutineTask.id).all()

    @staticmethod
    def get_by_ids(db: Session, task_ids: List[int]) -> List[RoutineTask]:
        if not task_ids:
            return []
        return db.query(RoutineTask).filter(RoutineTask.id.in_(task_ids)).all()

    @staticmethod
    def create(db: Session, task: RoutineTask) -> RoutineTask:
        """Stage a new task (caller commits)"""
        db.add(task)
        db.flush()
        return task
