from pydantic import AfterValidator, BaseModel, Field, field_validator
from datetime import datetime, date
from typing import Annotated, List, Optional
import json

from lifeos.constants import DOMAINS, TIME_OF_DAY_BUCKETS, DEFAULT_BASE_POINTS

TIME_PATTERN = r"^([0-1][0-9]|2[0-3]):[0-5][0-9]$"
RECURRENCE_PATTERN = "^(daily|weekdays|weekends|custom)$"


def _check_domain(value: Optional[str]) -> Optional[str]:
    if value is not None and value not in DOMAINS:
        raise ValueError(f"domain must be one of {', '.join(DOMAINS)}")
    return value


def _check_time_of_day(value: Optional[str]) -> Optional[str]:
    if value is not None and value not in TIME_OF_DAY_BUCKETS:
        raise ValueError(f"time_of_day must be one of {', '.join(TIME_OF_DAY_BUCKETS)}")
    return value


def _check_recurrence_days(value: Optional[List[int]]) -> Optional[List[int]]:
    if value is None:
        return value
    for day in value:
        if day < 0 or day > 6:
            raise ValueError("recurrence_days must contain weekday numbers 0-6 (Sunday = 0)")
    return sorted(set(value))


Domain = Annotated[str, AfterValidator(_check_domain)]
TimeOfDay = Annotated[str, AfterValidator(_check_time_of_day)]
RecurrenceDays = Annotated[List[int], AfterValidator(_check_recurrence_days)]


# Task schemas
class TaskBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    domain: Domain
    time_of_day: TimeOfDay = Field(default="none")
    base_points: int = Field(default=DEFAULT_BASE_POINTS, ge=0, le=1000)
    order: int = Field(default=999, ge=0)

    # Fixed time window
    is_scheduled: bool = False
    start_time: Optional[str] = Field(None, pattern=TIME_PATTERN)
    end_time: Optional[str] = Field(None, pattern=TIME_PATTERN)
    notifications_enabled: bool = True

    # Recurrence settings
    recurrence_type: str = Field(default="daily", pattern=RECURRENCE_PATTERN)
    recurrence_days: RecurrenceDays = Field(default_factory=list)  # For custom: [1,3,5] (Sunday = 0)


class TaskCreate(TaskBase):
    pass


class TaskUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    domain: Optional[Domain] = None
    time_of_day: Optional[TimeOfDay] = None
    base_points: Optional[int] = Field(None, ge=0, le=1000)
    is_scheduled: Optional[bool] = None
    start_time: Optional[str] = Field(None, pattern=TIME_PATTERN)
    end_time: Optional[str] = Field(None, pattern=TIME_PATTERN)
    notifications_enabled: Optional[bool] = None
    recurrence_type: Optional[str] = Field(None, pattern=RECURRENCE_PATTERN)
    recurrence_days: Optional[RecurrenceDays] = None

    @field_validator(
        "title", "domain", "time_of_day", "base_points", "is_scheduled",
        "notifications_enabled", "recurrence_type", mode="before"
    )
    @classmethod
    def reject_null(cls, value, info):
        # Omit a field to leave it unchanged; null is only valid for the time window
        if value is None:
            raise ValueError(f"{info.field_name} may not be null")
        return value


class TaskResponse(BaseModel):
    id: int
    title: str
    domain: str
    order: int
    time_of_day: str
    base_points: int
    is_active: bool
    is_scheduled: bool
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    notifications_enabled: bool
    recurrence_type: str
    recurrence_days: List[int] = []
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @field_validator("recurrence_days", mode="before")
    @classmethod
    def decode_days(cls, value):
        # ORM rows carry the JSON-encoded column
        if isinstance(value, str):
            try:
                value = json.loads(value)
            except json.JSONDecodeError:
                return []
        return value or []


class TaskOrderItem(BaseModel):
    id: int
    order: int = Field(..., ge=0)


# Daily log schemas
class DailyLogResponse(BaseModel):
    task_id: int
    date: date
    status: str
    completed_at: Optional[datetime] = None
    skipped_at: Optional[datetime] = None
    points_earned: int = 0

    class Config:
        from_attributes = True


class RoutineItem(BaseModel):
    task: TaskResponse
    status: str
    log: Optional[DailyLogResponse] = None  # None means nothing recorded yet (pending)


class SpecialItem(BaseModel):
    id: str
    title: str
    domain: str
    points: int
    completed: bool = True
    source: str


class RoutineSummary(BaseModel):
    pending: int = 0
    skipped: int = 0
    completed: int = 0
    completed_elsewhere: int = 0
    points_earned: int = 0


class RoutineDayResponse(BaseModel):
    date: date
    day_of_week: int
    items: List[RoutineItem]
    special_items: List[SpecialItem]
    summary: RoutineSummary


# Streak schemas
class StreakDay(BaseModel):
    date: date
    valid: bool
    is_rest_day: bool = False


class StreakMilestone(BaseModel):
    days: int
    points: int
    label: str


class DailyStreakRecordResponse(BaseModel):
    date: date
    routine_tasks_completed: int
    has_exercise_log: bool
    is_rest_day: bool
    streak_valid: bool
    bonus_points_awarded: int
    milestones_reached: List[int] = []

    class Config:
        from_attributes = True

    @field_validator("milestones_reached", mode="before")
    @classmethod
    def decode_milestones(cls, value):
        if isinstance(value, str):
            try:
                value = json.loads(value)
            except json.JSONDecodeError:
                return []
        return value or []


class StreakSummaryResponse(BaseModel):
    current_streak: int
    longest_streak: int
    today_valid: bool
    today_routine_tasks: int
    today_has_exercise: bool
    today_is_rest_day: bool
    today_can_be_rest_day: bool
    last_7_days: List[StreakDay]
    next_target: Optional[StreakMilestone] = None
    total_streak_points: int
    reached_milestones: List[StreakMilestone]


class StreakRefreshResponse(BaseModel):
    record: DailyStreakRecordResponse
    streak_length: int
    bonus_points: int


# Points schemas
class LedgerResponse(BaseModel):
    ledger_id: int
    total_points: int
    breakdown: dict


# Activity schemas
class ExerciseLogCreate(BaseModel):
    date: Optional[str] = None  # YYYY-MM-DD, defaults to today
    exercise_name: str = Field(..., min_length=1, max_length=200)
    sets: int = Field(default=0, ge=0)
    duration_minutes: int = Field(default=0, ge=0)


class BookLogCreate(BaseModel):
    date: Optional[str] = None
    book_title: str = Field(..., min_length=1, max_length=300)
    current_page: int = Field(default=0, ge=0)
    duration_minutes: int = Field(default=0, ge=0)


class LearningLogCreate(BaseModel):
    date: Optional[str] = None
    skill_name: str = Field(..., min_length=1, max_length=200)
    duration_minutes: int = Field(..., ge=0)


class ActivityResponse(BaseModel):
    id: int
    date: date
    kind: str
    title: str
    duration_minutes: int = 0


# Rest day schemas
class RestDayCreate(BaseModel):
    date: date
    description: Optional[str] = Field(None, max_length=200)


class RestDayResponse(BaseModel):
    id: int
    date: date
    description: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


# Settings schemas
class SettingsBase(BaseModel):
    min_routine_tasks: int = Field(default=5, ge=0, le=100)
    rest_day_rule_enabled: bool = Field(default=True)
    rest_day_min_workout_days: int = Field(default=1, ge=1, le=30)
    rest_day_lookback_days: int = Field(default=10, ge=1, le=60)
    notifications_enabled: bool = Field(default=True)
    notification_email: Optional[str] = Field(None, max_length=320)
    push_token: Optional[str] = Field(None, max_length=4096)


class SettingsUpdate(SettingsBase):
    pass


class SettingsResponse(SettingsBase):
    id: int
    updated_at: Optional[datetime] = None
    today: Optional[date] = None  # Current calendar day in the reference timezone
    timezone: Optional[str] = None

    class Config:
        from_attributes = True


# Notification schemas
class NotificationSweepResponse(BaseModel):
    time_slot: str
    day_of_week: int
    tasks: List[str]
    sent: int
    failed: int
    message: str
