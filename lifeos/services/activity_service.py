"""
Activity service.
Records exercise, reading and learning sessions and manages declared rest
days. Writes that can change a day's streak validity refresh that day.
"""
from datetime import date
from typing import List, Optional
from sqlalchemy.orm import Session

from lifeos.models import ExerciseLog, BookLog, LearningLog, RestDay
from lifeos.schemas import ExerciseLogCreate, BookLogCreate, LearningLogCreate, RestDayCreate
from lifeos.repositories.activity_repository import (
    ExerciseLogRepository, BookLogRepository, LearningLogRepository, RestDayRepository
)
from lifeos.services.date_service import DateService
from lifeos.services.streak_service import StreakService
from lifeos.constants import DEFAULT_LEDGER_ID
from lifeos.exceptions import ValidationException, RestDayNotFoundException


class ActivityService:
    """Service for activity-source logs and rest days"""

    def __init__(self, db: Session, ledger_id: int = DEFAULT_LEDGER_ID, date_service: Optional[DateService] = None):
        self.db = db
        self.exercise_repo = ExerciseLogRepository()
        self.book_repo = BookLogRepository()
        self.learning_repo = LearningLogRepository()
        self.rest_day_repo = RestDayRepository()
        self.date_service = date_service or DateService()
        self.streak_service = StreakService(db, ledger_id, self.date_service)

    def log_exercise(self, data: ExerciseLogCreate) -> dict:
        """Record an exercise session and re-evaluate every day it can affect"""
        day = self.date_service.parse_optional_day(data.date)
        log = self.exercise_repo.create(self.db, ExerciseLog(
            date=day,
            exercise_name=data.exercise_name,
            sets=data.sets,
            duration_minutes=data.duration_minutes,
        ))
        self.streak_service.refresh_day(day, commit=False)
        self.streak_service.refresh_following_days(day)
        self.db.commit()
        self.db.refresh(log)
        return self._view(log.id, day, "exercise", log.exercise_name, log.duration_minutes)

    def log_reading(self, data: BookLogCreate) -> dict:
        day = self.date_service.parse_optional_day(data.date)
        log = self.book_repo.create(self.db, BookLog(
            date=day,
            book_title=data.book_title,
            current_page=data.current_page,
            duration_minutes=data.duration_minutes,
        ))
        self.db.commit()
        self.db.refresh(log)
        return self._view(log.id, day, "reading", log.book_title, log.duration_minutes)

    def log_learning(self, data: LearningLogCreate) -> dict:
        day = self.date_service.parse_optional_day(data.date)
        log = self.learning_repo.create(self.db, LearningLog(
            date=day,
            skill_name=data.skill_name,
            duration_minutes=data.duration_minutes,
        ))
        self.db.commit()
        self.db.refresh(log)
        return self._view(log.id, day, "learning", log.skill_name, log.duration_minutes)

    def get_rest_days(self) -> List[RestDay]:
        return self.rest_day_repo.get_all(self.db)

    def create_rest_day(self, data: RestDayCreate) -> RestDay:
        """
        Declare a rest day and re-evaluate it.

        Raises:
            ValidationException: If the day is already a rest day
        """
        if self.rest_day_repo.get_by_date(self.db, data.date):
            raise ValidationException("date", f"{data.date} is already a rest day")
        rest_day = self.rest_day_repo.create(self.db, RestDay(date=data.date, description=data.description))
        self.streak_service.refresh_day(data.date, commit=False)
        self.db.commit()
        self.db.refresh(rest_day)
        return rest_day

    def delete_rest_day(self, rest_day_id: int) -> None:
        """
        Remove a declared rest day and re-evaluate it.

        Raises:
            RestDayNotFoundException: If no such rest day exists
        """
        rest_day = self.rest_day_repo.get_by_id(self.db, rest_day_id)
        if not rest_day:
            raise RestDayNotFoundException(rest_day_id)
        day = rest_day.date
        self.rest_day_repo.delete(self.db, rest_day)
        self.streak_service.refresh_day(day, commit=False)
        self.db.commit()

    @staticmethod
    def _view(log_id: int, day: date, kind: str, title: str, duration_minutes: Optional[int]) -> dict:
        return {
            "id": log_id,
            "date": day,
            "kind": kind,
            "title": title,
            "duration_minutes": duration_minutes or 0,
        }
