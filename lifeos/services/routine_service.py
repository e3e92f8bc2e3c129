"""
Routine assembly service.
Builds the ordered routine for a calendar day from task definitions,
their daily logs and activity-source logs.
"""
from datetime import date
from typing import List, Optional
from sqlalchemy.orm import Session

from lifeos.schemas import (
    TaskResponse, DailyLogResponse, RoutineItem, SpecialItem, RoutineSummary, RoutineDayResponse
)
from lifeos.repositories.task_repository import TaskRepository
from lifeos.repositories.daily_log_repository import DailyLogRepository
from lifeos.repositories.activity_repository import (
    ExerciseLogRepository, BookLogRepository, LearningLogRepository
)
from lifeos.services.date_service import DateService
from lifeos.services.recurrence import RecurrenceRule, is_due
from lifeos.constants import (
    LOG_STATUS_PENDING, LOG_STATUS_COMPLETED, LOG_STATUS_SKIPPED, LOG_STATUS_SORT_ORDER,
    DOMAIN_HEALTH, DOMAIN_LEARNING,
    EXERCISE_TASK_POINTS, BOOK_TASK_POINTS, LEARNING_TASK_POINTS,
    MIN_BOOK_READING_MINUTES, MIN_LEARNING_MINUTES, BOOK_TITLE_MAX_LENGTH
)


def shorten_title(title: str, limit: int = BOOK_TITLE_MAX_LENGTH) -> str:
    if len(title) <= limit:
        return title
    return f"{title[:limit]}..."


class RoutineService:
    """Service for assembling a day's routine"""

    def __init__(self, db: Session, date_service: Optional[DateService] = None):
        self.db = db
        self.task_repo = TaskRepository()
        self.log_repo = DailyLogRepository()
        self.exercise_repo = ExerciseLogRepository()
        self.book_repo = BookLogRepository()
        self.learning_repo = LearningLogRepository()
        self.date_service = date_service or DateService()

    def get_routine_for_day(self, day: Optional[date] = None) -> RoutineDayResponse:
        """
        Assemble the routine for a calendar day.

        Tasks are filtered with their current recurrence rule, also for
        past days. A task without a log for the day is pending. Items are
        ordered pending, skipped, completed, then by display order.

        Args:
            day: Calendar day (defaults to today in the reference timezone)

        Returns:
            RoutineDayResponse with task items, completed-elsewhere items and counts
        """
        day = day or self.date_service.today()
        day_of_week = self.date_service.day_of_week(day)

        due_tasks = [
            task for task in self.task_repo.get_active_tasks(self.db)
            if is_due(RecurrenceRule.from_task(task), day_of_week)
        ]
        logs = {
            log.task_id: log
            for log in self.log_repo.get_for_day(self.db, day, [task.id for task in due_tasks])
        }

        items: List[RoutineItem] = []
        for task in due_tasks:
            log = logs.get(task.id)
            items.append(RoutineItem(
                task=TaskResponse.model_validate(task),
                status=log.status if log else LOG_STATUS_PENDING,
                log=DailyLogResponse.model_validate(log) if log else None,
            ))

        items.sort(key=lambda item: (
            LOG_STATUS_SORT_ORDER.get(item.status, 0),
            item.task.order,
            item.task.id,
        ))

        special_items = self.get_special_items(day)

        summary = RoutineSummary(
            pending=sum(1 for item in items if item.status == LOG_STATUS_PENDING),
            skipped=sum(1 for item in items if item.status == LOG_STATUS_SKIPPED),
            completed=sum(1 for item in items if item.status == LOG_STATUS_COMPLETED),
            completed_elsewhere=len(special_items),
            points_earned=sum(item.log.points_earned for item in items if item.log),
        )

        return RoutineDayResponse(
            date=day,
            day_of_week=day_of_week,
            items=items,
            special_items=special_items,
            summary=summary,
        )

    def get_special_items(self, day: date) -> List[SpecialItem]:
        """
        Synthesize completed-elsewhere items from activity logs.

        These are display only: they have no daily log and no ledger effect.
        """
        day_key = self.date_service.format_day(day)
        special_items: List[SpecialItem] = []

        if self.exercise_repo.get_for_day(self.db, day):
            special_items.append(SpecialItem(
                id=f"exercise-{day_key}",
                title="Do Exercise",
                domain=DOMAIN_HEALTH,
                points=EXERCISE_TASK_POINTS,
                source="exercise",
            ))

        # Minutes per book, in first-seen order
        reading = {}
        for log in self.book_repo.get_for_day(self.db, day):
            reading[log.book_title] = reading.get(log.book_title, 0) + (log.duration_minutes or 0)
        for index, (title, minutes) in enumerate(reading.items()):
            if minutes >= MIN_BOOK_READING_MINUTES:
                special_items.append(SpecialItem(
                    id=f"book-{day_key}-{index}",
                    title=f"Read Book ({shorten_title(title)})",
                    domain=DOMAIN_LEARNING,
                    points=BOOK_TASK_POINTS,
                    source="reading",
                ))

        learning = {}
        for log in self.learning_repo.get_for_day(self.db, day):
            learning[log.skill_name] = learning.get(log.skill_name, 0) + (log.duration_minutes or 0)
        for index, (skill, minutes) in enumerate(learning.items()):
            if minutes >= MIN_LEARNING_MINUTES:
                special_items.append(SpecialItem(
                    id=f"learning-{day_key}-{index}",
                    title=f"Learnt {skill}",
                    domain=DOMAIN_LEARNING,
                    points=LEARNING_TASK_POINTS,
                    source="learning",
                ))

        return special_items
