"""
Tests for the recurrence evaluator.
"""
import pytest

from lifeos.services.recurrence import (
    RecurrenceRule, RecurrenceKind, is_due, parse_recurrence_days
)
from lifeos.exceptions import ValidationException

ALL_DAYS = range(7)


class TestIsDue:
    """Tests for is_due function"""

    def test_daily_due_every_day(self):
        """Daily tasks are due on all 7 weekdays"""
        assert all(is_due(RecurrenceRule.daily(), day) for day in ALL_DAYS)

    def test_custom_empty_never_due(self):
        """Custom rule with no days is never due"""
        assert not any(is_due(RecurrenceRule.custom([]), day) for day in ALL_DAYS)

    def test_weekdays_monday_to_friday(self):
        rule = RecurrenceRule.weekdays()
        assert [day for day in ALL_DAYS if is_due(rule, day)] == [1, 2, 3, 4, 5]

    def test_weekends_saturday_and_sunday(self):
        rule = RecurrenceRule.weekends()
        assert [day for day in ALL_DAYS if is_due(rule, day)] == [0, 6]

    def test_custom_days_only(self):
        rule = RecurrenceRule.custom([1, 3, 5])
        assert [day for day in ALL_DAYS if is_due(rule, day)] == [1, 3, 5]

    def test_missing_rule_treated_as_daily(self):
        assert all(is_due(None, day) for day in ALL_DAYS)


class TestFromFields:
    """Tests for building rules from stored task fields"""

    def test_unknown_type_falls_back_to_daily(self):
        assert RecurrenceRule.from_fields("fortnightly", "[]").kind == RecurrenceKind.DAILY

    def test_unset_type_is_daily(self):
        assert RecurrenceRule.from_fields(None).kind == RecurrenceKind.DAILY

    def test_custom_decodes_json_days(self):
        rule = RecurrenceRule.from_fields("custom", "[0, 6]")
        assert rule.days == frozenset({0, 6})

    def test_custom_with_corrupt_days_is_never_due(self):
        rule = RecurrenceRule.from_fields("custom", "not json")
        assert not any(is_due(rule, day) for day in ALL_DAYS)

    def test_to_fields_roundtrip_format(self):
        assert RecurrenceRule.custom([5, 1, 3]).to_fields() == ("custom", "[1, 3, 5]")


class TestParseRecurrenceDays:
    """Tests for parse_recurrence_days function"""

    def test_sorts_and_deduplicates(self):
        assert parse_recurrence_days([5, 1, 5]) == [1, 5]

    @pytest.mark.parametrize("days", [[7], [-1], [1, 8]])
    def test_rejects_out_of_range(self, days):
        with pytest.raises(ValidationException) as exc_info:
            parse_recurrence_days(days)
        assert exc_info.value.field == "recurrence_days"
