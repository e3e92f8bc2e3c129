"""
Date calculation and manipulation service.
Resolves instants and client-supplied strings into calendar days of one
fixed reference timezone, and derives weekdays and day boundaries.
"""
from datetime import datetime, timedelta, date
from typing import List, Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
import re

from lifeos.constants import REFERENCE_TIMEZONE
from lifeos.exceptions import ValidationException

DAY_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class DateService:
    """Service for calendar-day operations in the reference timezone"""

    def __init__(self, tz_name: str = REFERENCE_TIMEZONE):
        try:
            self.tz = ZoneInfo(tz_name)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValidationException("timezone", f"Unknown timezone '{tz_name}'")
        self.tz_name = tz_name

    def today(self, now: Optional[datetime] = None) -> date:
        """
        Get the current calendar day in the reference timezone.

        Server-local time is never consulted, so the day boundary does not
        depend on the deployment region.

        Args:
            now: Instant to resolve (defaults to the current instant)

        Returns:
            Calendar day
        """
        now = now or datetime.now(self.tz)
        return self.to_calendar_day(now)

    def to_calendar_day(self, value: Union[str, datetime, date]) -> date:
        """
        Convert a client date string or an instant into a calendar day.

        Strings must be exactly YYYY-MM-DD. Aware datetimes are converted
        into the reference timezone first; naive datetimes are read as wall
        time in the reference timezone.

        Raises:
            ValidationException: If the value cannot be interpreted
        """
        if isinstance(value, datetime):
            if value.tzinfo is not None:
                value = value.astimezone(self.tz)
            return value.date()

        if isinstance(value, date):
            return value

        if not isinstance(value, str):
            raise ValidationException("date", f"Unsupported date value: {value!r}")

        value = value.strip()
        if not DAY_PATTERN.match(value):
            raise ValidationException("date", f"Invalid date format '{value}'. Use YYYY-MM-DD")
        try:
            return date.fromisoformat(value)
        except ValueError:
            raise ValidationException("date", f"Invalid calendar date '{value}'")

    def parse_optional_day(self, value: Optional[str], now: Optional[datetime] = None) -> date:
        """Resolve an optional client day, using today only when none was sent"""
        if value is None:
            return self.today(now)
        return self.to_calendar_day(value)

    @staticmethod
    def day_of_week(day: date) -> int:
        """Day of week with Sunday = 0 ... Saturday = 6"""
        return (day.weekday() + 1) % 7

    @staticmethod
    def add_days(day: date, days: int) -> date:
        return day + timedelta(days=days)

    @staticmethod
    def format_day(day: date) -> str:
        return day.isoformat()

    def day_range(self, day: date) -> tuple[datetime, datetime]:
        """
        Get the instant range for a full day in the reference timezone.

        Args:
            day: Calendar day

        Returns:
            Tuple of (day_start, day_end), end exclusive
        """
        day_start = datetime.combine(day, datetime.min.time(), tzinfo=self.tz)
        day_end = datetime.combine(day + timedelta(days=1), datetime.min.time(), tzinfo=self.tz)
        return day_start, day_end

    def last_n_days(self, n: int, end: Optional[date] = None) -> List[date]:
        """Calendar days from oldest to newest, ending at `end` (default today)"""
        end = end or self.today()
        return [end - timedelta(days=offset) for offset in range(n - 1, -1, -1)]
