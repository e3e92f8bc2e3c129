"""
Daily log service.
Handles completion and skip state of routine tasks per calendar day,
keeping the points ledger and the day's streak record in step.

Every public write commits once, so the log transition, the ledger
adjustment and the streak refresh land together or not at all.
"""
import logging
from datetime import date
from typing import Optional
from sqlalchemy.orm import Session

from lifeos.models import DailyLog, RoutineTask, utcnow
from lifeos.repositories.daily_log_repository import DailyLogRepository
from lifeos.repositories.task_repository import TaskRepository
from lifeos.services.date_service import DateService
from lifeos.services.points_service import PointsService
from lifeos.services.streak_service import StreakService
from lifeos.constants import (
    DEFAULT_LEDGER_ID, LOG_STATUS_PENDING, LOG_STATUS_COMPLETED, LOG_STATUS_SKIPPED
)
from lifeos.exceptions import TaskNotFoundException, LogConflictException

logger = logging.getLogger("lifeos.daily_log")


class DailyLogService:
    """Service for per-day task log transitions"""

    def __init__(self, db: Session, ledger_id: int = DEFAULT_LEDGER_ID, date_service: Optional[DateService] = None):
        self.db = db
        self.ledger_id = ledger_id
        self.log_repo = DailyLogRepository()
        self.task_repo = TaskRepository()
        self.date_service = date_service or DateService()
        self.points_service = PointsService(db)
        self.streak_service = StreakService(db, ledger_id, self.date_service)

    def get_or_default(self, task_id: int, day: date) -> Optional[DailyLog]:
        """Get the stored log; None means the task is pending for that day"""
        return self.log_repo.get(self.db, task_id, day)

    def get_log_view(self, task_id: int, day: date) -> DailyLog:
        """
        Get the log for a day, or an unsaved pending log when no row exists.

        The placeholder is never added to the session, so reading a day
        leaves the table untouched.
        """
        log = self.get_or_default(task_id, day)
        if log is None:
            return DailyLog(task_id=task_id, date=day, status=LOG_STATUS_PENDING, points_earned=0)
        return log

    def complete(self, task_id: int, day: Optional[date] = None) -> DailyLog:
        """
        Mark a task completed for a day and award its base points.

        Completing an already completed task changes nothing.

        Raises:
            TaskNotFoundException: If the task is missing or inactive
        """
        task, day = self._resolve(task_id, day)

        def apply(log: DailyLog) -> bool:
            if log.status == LOG_STATUS_COMPLETED:
                return False
            moved = self.log_repo.transition(self.db, log.id, log.status, {
                "status": LOG_STATUS_COMPLETED,
                "completed_at": utcnow(),
                "skipped_at": None,
                "points_earned": task.base_points,
            })
            if moved:
                self.points_service.add_points(self.ledger_id, task.domain, task.base_points)
            return moved

        return self._run_transition(task, day, apply, refresh_streak=True)

    def uncomplete(self, task_id: int, day: Optional[date] = None) -> DailyLog:
        """
        Revert a completed task to pending and take back exactly the points
        it earned. The row is kept with status pending; a day with no row is
        already pending and nothing is written.
        """
        task, day = self._resolve(task_id, day)
        if self.log_repo.get(self.db, task.id, day) is None:
            return self.get_log_view(task.id, day)

        def apply(log: DailyLog) -> bool:
            if log.status != LOG_STATUS_COMPLETED:
                return False
            earned = log.points_earned or 0
            moved = self.log_repo.transition(self.db, log.id, LOG_STATUS_COMPLETED, {
                "status": LOG_STATUS_PENDING,
                "completed_at": None,
                "points_earned": 0,
            })
            if moved:
                self.points_service.subtract_points(self.ledger_id, task.domain, earned)
            return moved

        return self._run_transition(task, day, apply, refresh_streak=True)

    def skip(self, task_id: int, day: Optional[date] = None) -> DailyLog:
        """
        Mark a task skipped for a day.

        Skipping a completed task gives its points back to the ledger.
        """
        task, day = self._resolve(task_id, day)

        def apply(log: DailyLog) -> bool:
            if log.status == LOG_STATUS_SKIPPED:
                return False
            previous_status = log.status
            earned = log.points_earned or 0
            moved = self.log_repo.transition(self.db, log.id, previous_status, {
                "status": LOG_STATUS_SKIPPED,
                "skipped_at": utcnow(),
                "completed_at": None,
                "points_earned": 0,
            })
            if moved and previous_status == LOG_STATUS_COMPLETED:
                self.points_service.subtract_points(self.ledger_id, task.domain, earned)
            return moved

        return self._run_transition(task, day, apply, refresh_streak=True)

    def unskip(self, task_id: int, day: Optional[date] = None) -> DailyLog:
        """Revert a skipped task to pending (no points effect)"""
        task, day = self._resolve(task_id, day)
        if self.log_repo.get(self.db, task.id, day) is None:
            return self.get_log_view(task.id, day)

        def apply(log: DailyLog) -> bool:
            if log.status != LOG_STATUS_SKIPPED:
                return False
            return self.log_repo.transition(self.db, log.id, LOG_STATUS_SKIPPED, {
                "status": LOG_STATUS_PENDING,
                "skipped_at": None,
            })

        return self._run_transition(task, day, apply, refresh_streak=False)

    def _resolve(self, task_id: int, day: Optional[date]) -> tuple[RoutineTask, date]:
        task = self.task_repo.get_active_by_id(self.db, task_id)
        if not task:
            raise TaskNotFoundException(task_id)
        return task, day or self.date_service.today()

    def _run_transition(self, task: RoutineTask, day: date, apply, refresh_streak: bool) -> DailyLog:
        """
        Ensure the (task, day) row exists, apply a guarded transition and
        commit. When a concurrent writer wins the guarded update, the row
        is re-read and the transition is attempted once more against the
        fresh state.
        """
        try:
            log = self.log_repo.ensure_exists(self.db, task.id, day)
        except LogConflictException:
            self.db.rollback()
            logger.warning(f"Log insert for task {task.id} on {day} conflicted, retrying")
            log = self.log_repo.ensure_exists(self.db, task.id, day)

        changed = apply(log)
        if not changed:
            self.db.refresh(log)
            changed = apply(log)

        if changed and refresh_streak:
            self.streak_service.refresh_day(day, commit=False)

        self.db.commit()
        self.db.refresh(log)
        return log
