"""
Streak service.
Evaluates per-day streak validity, walks consecutive valid days and
credits one-time milestone bonuses to the points ledger.
"""
import json
import logging
from datetime import date, timedelta
from typing import List, Optional
from sqlalchemy.orm import Session

from lifeos.models import Settings, DailyStreakRecord
from lifeos.repositories.streak_repository import StreakRepository
from lifeos.repositories.daily_log_repository import DailyLogRepository
from lifeos.repositories.activity_repository import ExerciseLogRepository, RestDayRepository
from lifeos.repositories.settings_repository import SettingsRepository
from lifeos.services.date_service import DateService
from lifeos.services.points_service import PointsService
from lifeos.constants import DEFAULT_LEDGER_ID, STREAK_MILESTONES, STREAK_WALK_LIMIT

logger = logging.getLogger("lifeos.streak")


def milestone_view(days: int, points: int, label: str) -> dict:
    return {"days": days, "points": points, "label": label}


class StreakService:
    """Service for streak evaluation and milestone bonuses"""

    def __init__(self, db: Session, ledger_id: int = DEFAULT_LEDGER_ID, date_service: Optional[DateService] = None):
        self.db = db
        self.ledger_id = ledger_id
        self.streak_repo = StreakRepository()
        self.log_repo = DailyLogRepository()
        self.exercise_repo = ExerciseLogRepository()
        self.rest_day_repo = RestDayRepository()
        self.settings_repo = SettingsRepository()
        self.points_service = PointsService(db)
        self.date_service = date_service or DateService()

    def can_be_rest_day(self, day: date, settings: Settings) -> bool:
        """
        Check whether a day without exercise is excused by recent workouts.

        Counts consecutive days with an exercise log immediately before
        `day`, looking back at most `rest_day_lookback_days`.
        """
        if not settings.rest_day_rule_enabled:
            return False

        consecutive = 0
        for offset in range(1, settings.rest_day_lookback_days + 1):
            if not self.exercise_repo.has_exercise(self.db, day - timedelta(days=offset)):
                break
            consecutive += 1

        return consecutive >= settings.rest_day_min_workout_days

    def record_day_activity(
        self,
        day: date,
        completed_count: int,
        has_qualifying_activity: bool
    ) -> DailyStreakRecord:
        """
        Upsert the streak record for a day and recompute its validity.

        A day is valid when enough routine tasks were completed and there
        was exercise, or the day is a declared or automatic rest day.
        """
        settings = self.settings_repo.get(self.db)
        record = self.streak_repo.get_or_create(self.db, day)

        declared_rest = self.rest_day_repo.is_rest_day(self.db, day)
        auto_rest = not has_qualifying_activity and not declared_rest and self.can_be_rest_day(day, settings)
        is_rest_day = declared_rest or auto_rest

        record.routine_tasks_completed = completed_count
        record.has_exercise_log = has_qualifying_activity
        record.is_rest_day = is_rest_day
        record.streak_valid = (
            completed_count >= settings.min_routine_tasks
            and (has_qualifying_activity or is_rest_day)
        )
        self.db.flush()
        return record

    def refresh_day(self, day: date, commit: bool = True) -> dict:
        """
        Re-evaluate one day from its logs and credit any milestones reached.

        Args:
            day: Calendar day to evaluate
            commit: Commit when done; pass False to join the caller's transaction

        Returns:
            Dict with the record, the streak length ending on the day and
            bonus points credited by this call
        """
        completed = self.log_repo.count_completed(self.db, day)
        has_exercise = self.exercise_repo.has_exercise(self.db, day)

        record = self.record_day_activity(day, completed, has_exercise)
        bonus = self.credit_milestones(day)
        length = self.streak_length_ending(day)

        if commit:
            self.db.commit()
            self.db.refresh(record)

        return {
            "record": record,
            "streak_length": length,
            "bonus_points": bonus,
        }

    def refresh_following_days(self, day: date) -> None:
        """
        Re-evaluate recorded days whose automatic rest-day eligibility can
        depend on exercise logged on `day`, oldest first so that milestone
        crediting sees the corrected earlier days.
        """
        settings = self.settings_repo.get(self.db)
        for offset in range(1, settings.rest_day_lookback_days + 1):
            following = day + timedelta(days=offset)
            if self.streak_repo.get_by_date(self.db, following) is not None:
                self.refresh_day(following, commit=False)

    def streak_length_ending(self, day: date) -> int:
        """Count consecutive valid days ending at `day` (0 if `day` is invalid)"""
        start = day - timedelta(days=STREAK_WALK_LIMIT)
        valid_days = {
            record.date for record in self.streak_repo.get_range(self.db, start, day)
            if record.streak_valid
        }

        length = 0
        current = day
        while current in valid_days:
            length += 1
            current -= timedelta(days=1)
        return length

    def current_streak_length(self, today: Optional[date] = None) -> int:
        """
        Current streak: counted from today when today is already valid,
        otherwise from yesterday so an unfinished today does not break it.
        """
        today = today or self.date_service.today()
        record = self.streak_repo.get_by_date(self.db, today)
        if record is not None and record.streak_valid:
            return self.streak_length_ending(today)
        return self.streak_length_ending(today - timedelta(days=1))

    def longest_streak_length(self) -> int:
        longest = 0
        run = 0
        previous = None
        for day in self.streak_repo.get_valid_dates(self.db):
            if previous is not None and day - previous == timedelta(days=1):
                run += 1
            else:
                run = 1
            longest = max(longest, run)
            previous = day
        return longest

    def credit_milestones(self, day: date) -> int:
        """
        Credit every milestone reached by the streak ending at `day` that
        has never been credited before.

        Milestones already credited on any day are skipped, and credits are
        never revoked when a streak later breaks.

        Returns:
            Bonus points credited by this call
        """
        length = self.streak_length_ending(day)
        if length == 0:
            return 0

        credited = self.streak_repo.get_credited_milestones(self.db)
        new_milestones = [
            (days, points, label) for days, points, label in STREAK_MILESTONES
            if days <= length and days not in credited
        ]
        if not new_milestones:
            return 0

        record = self.streak_repo.get_or_create(self.db, day)
        expected_json = record.milestones_reached or "[]"
        new_json = json.dumps(record.milestone_list + [days for days, _, _ in new_milestones])
        bonus = sum(points for _, points, _ in new_milestones)

        if not self.streak_repo.append_milestones(self.db, record, expected_json, new_json, bonus):
            logger.info(f"Milestones for {day} were credited concurrently, skipping")
            return 0

        self.points_service.add_bonus(self.ledger_id, bonus)
        for days, points, label in new_milestones:
            logger.info(f"Streak milestone reached on {day}: {label} (+{points})")
        return bonus

    def get_streak_summary(self, today: Optional[date] = None) -> dict:
        """Get current and longest streak, today's status and milestone progress"""
        today = today or self.date_service.today()
        settings = self.settings_repo.get(self.db)

        current = self.current_streak_length(today)
        today_record = self.streak_repo.get_by_date(self.db, today)

        records = {
            record.date: record
            for record in self.streak_repo.get_range(self.db, today - timedelta(days=6), today)
        }
        last_7_days = []
        for day in self.date_service.last_n_days(7, today):
            record = records.get(day)
            last_7_days.append({
                "date": day,
                "valid": bool(record and record.streak_valid),
                "is_rest_day": bool(record and record.is_rest_day),
            })

        next_target = next(
            (milestone_view(*milestone) for milestone in STREAK_MILESTONES if milestone[0] > current),
            None
        )
        credited = self.streak_repo.get_credited_milestones(self.db)
        reached: List[dict] = [
            milestone_view(*milestone) for milestone in STREAK_MILESTONES if milestone[0] in credited
        ]

        return {
            "current_streak": current,
            "longest_streak": self.longest_streak_length(),
            "today_valid": bool(today_record and today_record.streak_valid),
            "today_routine_tasks": self.log_repo.count_completed(self.db, today),
            "today_has_exercise": self.exercise_repo.has_exercise(self.db, today),
            "today_is_rest_day": self.rest_day_repo.is_rest_day(self.db, today),
            "today_can_be_rest_day": self.can_be_rest_day(today, settings),
            "last_7_days": last_7_days,
            "next_target": next_target,
            "total_streak_points": self.streak_repo.total_bonus_points(self.db),
            "reached_milestones": reached,
        }
