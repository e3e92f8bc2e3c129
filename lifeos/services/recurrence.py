"""
Recurrence rules for routine tasks.

A rule is one of four kinds: daily, weekdays, weekends, or custom with an
explicit set of weekday numbers (Sunday = 0). The evaluator is pure.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, Iterable, List, Optional
import json

from lifeos.constants import (
    RECURRENCE_DAILY, RECURRENCE_WEEKDAYS, RECURRENCE_WEEKENDS, RECURRENCE_CUSTOM,
    WEEKDAY_NUMBERS, WEEKEND_NUMBERS, ALL_DAY_NUMBERS
)
from lifeos.exceptions import ValidationException


class RecurrenceKind(str, Enum):
    DAILY = RECURRENCE_DAILY
    WEEKDAYS = RECURRENCE_WEEKDAYS
    WEEKENDS = RECURRENCE_WEEKENDS
    CUSTOM = RECURRENCE_CUSTOM


@dataclass(frozen=True)
class RecurrenceRule:
    kind: RecurrenceKind = RecurrenceKind.DAILY
    days: FrozenSet[int] = field(default_factory=frozenset)

    @classmethod
    def daily(cls) -> "RecurrenceRule":
        return cls(RecurrenceKind.DAILY)

    @classmethod
    def weekdays(cls) -> "RecurrenceRule":
        return cls(RecurrenceKind.WEEKDAYS)

    @classmethod
    def weekends(cls) -> "RecurrenceRule":
        return cls(RecurrenceKind.WEEKENDS)

    @classmethod
    def custom(cls, days: Iterable[int]) -> "RecurrenceRule":
        return cls(RecurrenceKind.CUSTOM, frozenset(parse_recurrence_days(list(days))))

    @classmethod
    def from_fields(cls, recurrence_type: Optional[str], recurrence_days=None) -> "RecurrenceRule":
        """
        Build a rule from persisted task fields.

        An unset or unknown type falls back to daily so that a task never
        disappears from the routine because of a bad value.
        """
        try:
            kind = RecurrenceKind(recurrence_type) if recurrence_type else RecurrenceKind.DAILY
        except ValueError:
            return cls.daily()

        if kind != RecurrenceKind.CUSTOM:
            return cls(kind)

        if isinstance(recurrence_days, str):
            try:
                recurrence_days = json.loads(recurrence_days) if recurrence_days else []
            except json.JSONDecodeError:
                recurrence_days = []
        days = [d for d in (recurrence_days or []) if isinstance(d, int) and d in ALL_DAY_NUMBERS]
        return cls(kind, frozenset(days))

    @classmethod
    def from_task(cls, task) -> "RecurrenceRule":
        return cls.from_fields(task.recurrence_type, task.recurrence_days)

    def to_fields(self) -> tuple[str, str]:
        """Persisted (recurrence_type, recurrence_days JSON) pair"""
        return self.kind.value, json.dumps(sorted(self.days))


def parse_recurrence_days(days: List[int]) -> List[int]:
    """
    Validate custom recurrence weekday numbers.

    Raises:
        ValidationException: If any value is outside 0-6
    """
    for day in days:
        if not isinstance(day, int) or isinstance(day, bool) or day not in ALL_DAY_NUMBERS:
            raise ValidationException(
                "recurrence_days", f"Weekday {day!r} is not in 0-6 (Sunday = 0)"
            )
    return sorted(set(days))


def is_due(rule: Optional[RecurrenceRule], day_of_week: int) -> bool:
    """
    Decide whether a task with this rule is scheduled on a weekday.

    Args:
        rule: Recurrence rule (None is treated as daily)
        day_of_week: 0-6 with Sunday = 0

    Returns:
        True if the task is due
    """
    if rule is None:
        return True

    if rule.kind == RecurrenceKind.DAILY:
        return True
    if rule.kind == RecurrenceKind.WEEKDAYS:
        return day_of_week in WEEKDAY_NUMBERS
    if rule.kind == RecurrenceKind.WEEKENDS:
        return day_of_week in WEEKEND_NUMBERS
    if rule.kind == RecurrenceKind.CUSTOM:
        return day_of_week in rule.days

    return True
