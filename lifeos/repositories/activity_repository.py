"""
Activity repository - Data access layer for activity-source logs.
Handles exercise, reading and learning entries plus declared rest days.
"""
from datetime import date
from typing import List, Optional
from sqlalchemy.orm import Session
from sqlalchemy import func

from lifeos.models import ExerciseLog, BookLog, LearningLog, RestDay


class ExerciseLogRepository:
    """Repository for ExerciseLog data access"""

    @staticmethod
    def get_for_day(db: Session, day: date) -> List[ExerciseLog]:
        return db.query(ExerciseLog).filter(ExerciseLog.date == day).all()

    @staticmethod
    def has_exercise(db: Session, day: date) -> bool:
        """Check if anything was logged as exercise on a day"""
        count = db.query(func.count(ExerciseLog.id)).filter(ExerciseLog.date == day).scalar()
        return bool(count)

    @staticmethod
    def create(db: Session, log: ExerciseLog) -> ExerciseLog:
        db.add(log)
        db.flush()
        return log


class BookLogRepository:
    """Repository for BookLog data access"""

    @staticmethod
    def get_for_day(db: Session, day: date) -> List[BookLog]:
        return db.query(BookLog).filter(BookLog.date == day).order_by(BookLog.id).all()

    @staticmethod
    def create(db: Session, log: BookLog) -> BookLog:
        db.add(log)
        db.flush()
        return log


class LearningLogRepository:
    """Repository for LearningLog data access"""

    @staticmethod
    def get_for_day(db: Session, day: date) -> List[LearningLog]:
        return db.query(LearningLog).filter(LearningLog.date == day).order_by(LearningLog.id).all()

    @staticmethod
    def create(db: Session, log: LearningLog) -> LearningLog:
        db.add(log)
        db.flush()
        return log


class RestDayRepository:
    """Repository for RestDay data access"""

    @staticmethod
    def get_all(db: Session) -> List[RestDay]:
        """Get all rest days ordered by date"""
        return db.query(RestDay).order_by(RestDay.date).all()

    @staticmethod
    def get_by_id(db: Session, rest_day_id: int) -> Optional[RestDay]:
        return db.query(RestDay).filter(RestDay.id == rest_day_id).first()

    @staticmethod
    def get_by_date(db: Session, day: date) -> Optional[RestDay]:
        return db.query(RestDay).filter(RestDay.date == day).first()

    @staticmethod
    def is_rest_day(db: Session, day: date) -> bool:
        """Check if a day was declared as a rest day"""
        return RestDayRepository.get_by_date(db, day) is not None

    @staticmethod
    def create(db: Session, rest_day: RestDay) -> RestDay:
        db.add(rest_day)
        db.flush()
        return rest_day

    @staticmethod
    def delete(db: Session, rest_day: RestDay) -> None:
        db.delete(rest_day)
        db.flush()
