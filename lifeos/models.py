from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, Date, ForeignKey, UniqueConstraint, Index
)
from datetime import datetime, timezone
import json

from lifeos.database import Base
from lifeos.constants import (
    LOG_STATUS_PENDING, RECURRENCE_DAILY, DEFAULT_BASE_POINTS,
    MIN_ROUTINE_TASKS, REST_DAY_MIN_WORKOUT_DAYS, REST_DAY_LOOKBACK_DAYS
)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RoutineTask(Base):
    __tablename__ = "routine_tasks"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    domain = Column(String, nullable=False)  # health, career, learning, startups, social
    order = Column(Integer, default=0)
    time_of_day = Column(String, default="none")  # none, morning, afternoon, evening, night, day
    base_points = Column(Integer, default=DEFAULT_BASE_POINTS)
    is_active = Column(Boolean, default=True, index=True)  # Soft delete

    # Fixed time window (HH:MM)
    is_scheduled = Column(Boolean, default=False)
    start_time = Column(String, nullable=True)
    end_time = Column(String, nullable=True)
    notifications_enabled = Column(Boolean, default=True)

    # Recurrence
    recurrence_type = Column(String, default=RECURRENCE_DAILY)  # daily, weekdays, weekends, custom
    recurrence_days = Column(String, default="[]")  # For custom: JSON array like "[1,3,5]" (Sunday = 0)

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)


class DailyLog(Base):
    __tablename__ = "daily_logs"
    __table_args__ = (
        UniqueConstraint("task_id", "date", name="uq_daily_log_task_date"),
        Index("ix_daily_logs_status_date", "status", "date"),
    )

    id = Column(Integer, primary_key=True, index=True)
    task_id = Column(Integer, ForeignKey("routine_tasks.id"), nullable=False)
    date = Column(Date, nullable=False, index=True)  # Calendar day in the reference timezone
    status = Column(String, default=LOG_STATUS_PENDING, nullable=False)  # pending, completed, skipped
    completed_at = Column(DateTime(timezone=True), nullable=True)
    skipped_at = Column(DateTime(timezone=True), nullable=True)
    points_earned = Column(Integer, default=0)

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)


class DailyStreakRecord(Base):
    __tablename__ = "daily_streak_records"

    id = Column(Integer, primary_key=True, index=True)
    date = Column(Date, nullable=False, unique=True, index=True)

    routine_tasks_completed = Column(Integer, default=0)
    has_exercise_log = Column(Boolean, default=False)
    is_rest_day = Column(Boolean, default=False)
    streak_valid = Column(Boolean, default=False)

    bonus_points_awarded = Column(Integer, default=0)
    milestones_reached = Column(String, default="[]")  # JSON array of milestone days credited on this day

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    @property
    def milestone_list(self) -> list:
        try:
            milestones = json.loads(self.milestones_reached) if self.milestones_reached else []
        except (json.JSONDecodeError, TypeError):
            return []
        return milestones if isinstance(milestones, list) else []


class PointsLedger(Base):
    __tablename__ = "points_ledgers"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, default="Admin")
    total_points = Column(Integer, default=0)

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)


class LedgerDomainTotal(Base):
    __tablename__ = "ledger_domain_totals"
    __table_args__ = (
        UniqueConstraint("ledger_id", "domain", name="uq_ledger_domain"),
    )

    id = Column(Integer, primary_key=True, index=True)
    ledger_id = Column(Integer, ForeignKey("points_ledgers.id"), nullable=False)
    domain = Column(String, nullable=False)
    points = Column(Integer, default=0)


class ExerciseLog(Base):
    __tablename__ = "exercise_logs"

    id = Column(Integer, primary_key=True, index=True)
    date = Column(Date, nullable=False, index=True)
    exercise_name = Column(String, nullable=False)
    sets = Column(Integer, default=0)
    duration_minutes = Column(Integer, default=0)
    created_at = Column(DateTime(timezone=True), default=utcnow)


class BookLog(Base):
    __tablename__ = "book_logs"

    id = Column(Integer, primary_key=True, index=True)
    date = Column(Date, nullable=False, index=True)
    book_title = Column(String, nullable=False)
    current_page = Column(Integer, default=0)
    duration_minutes = Column(Integer, default=0)  # Minutes spent reading
    created_at = Column(DateTime(timezone=True), default=utcnow)


class LearningLog(Base):
    __tablename__ = "learning_logs"

    id = Column(Integer, primary_key=True, index=True)
    date = Column(Date, nullable=False, index=True)
    skill_name = Column(String, nullable=False)
    duration_minutes = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)


class RestDay(Base):
    __tablename__ = "rest_days"

    id = Column(Integer, primary_key=True, index=True)
    date = Column(Date, nullable=False, unique=True, index=True)
    description = Column(String, nullable=True)  # Optional reason (e.g., "Travel", "Sick")
    created_at = Column(DateTime(timezone=True), default=utcnow)


class Settings(Base):
    __tablename__ = "settings"

    id = Column(Integer, primary_key=True, index=True)

    # Streak validity
    min_routine_tasks = Column(Integer, default=MIN_ROUTINE_TASKS)
    rest_day_rule_enabled = Column(Boolean, default=True)  # Allow automatic rest days after workouts
    rest_day_min_workout_days = Column(Integer, default=REST_DAY_MIN_WORKOUT_DAYS)
    rest_day_lookback_days = Column(Integer, default=REST_DAY_LOOKBACK_DAYS)

    # Notifications
    notifications_enabled = Column(Boolean, default=True)
    notification_email = Column(String, nullable=True)
    push_token = Column(String, nullable=True)

    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
