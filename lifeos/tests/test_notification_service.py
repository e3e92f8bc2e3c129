"""
Tests for NotificationService.

Tests cover:
1. Time slot quantization
2. Due-task selection for a slot
3. Sweep delivery and per-recipient failure isolation
"""
import pytest
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from lifeos.services.notification_service import (
    NotificationService, NotificationSender, Recipient, quantize_time_slot
)
from lifeos.exceptions import NotificationDeliveryException
from lifeos.tests.conftest import create_task

IST = ZoneInfo("Asia/Kolkata")
# Monday 2024-01-15 10:00 in IST
MONDAY_10AM = datetime(2024, 1, 15, 10, 0, tzinfo=IST)


class RecordingSender(NotificationSender):
    """Collects deliveries; fails for the configured channels"""

    def __init__(self, failing_channels=()):
        self.sent = []
        self.failing_channels = set(failing_channels)

    def send(self, task, recipient, time_slot):
        if recipient.channel in self.failing_channels:
            raise NotificationDeliveryException(recipient.channel, "transport down")
        self.sent.append((task.title, recipient.channel, time_slot))


class TestQuantizeTimeSlot:
    """Tests for quantize_time_slot function"""

    @pytest.mark.parametrize("hour,minute,expected", [
        (10, 0, "10:00"),
        (10, 14, "10:00"),
        (10, 15, "10:30"),
        (10, 29, "10:30"),
        (10, 44, "10:30"),
        (10, 50, "11:00"),
        (23, 44, "23:30"),
        (23, 50, "00:00"),
        (0, 10, "00:00"),
    ])
    def test_rounds_to_nearest_half_hour(self, hour, minute, expected):
        assert quantize_time_slot(datetime(2024, 1, 15, hour, minute)) == expected


class TestTasksDueNow:
    """Tests for tasks_due_now function"""

    def test_selects_scheduled_tasks_at_slot(self, db_session, date_service):
        create_task(db_session, title="Standup", is_scheduled=True, start_time="10:00")
        create_task(db_session, title="Later", is_scheduled=True, start_time="10:30")
        create_task(db_session, title="Unscheduled", is_scheduled=False, start_time="10:00")
        create_task(db_session, title="Muted", is_scheduled=True, start_time="10:00", notifications_enabled=False)
        create_task(db_session, title="Gone", is_scheduled=True, start_time="10:00", is_active=False)

        service = NotificationService(db_session, date_service=date_service)

        assert [task.title for task in service.tasks_due_now("10:00", 1)] == ["Standup"]

    def test_respects_recurrence(self, db_session, date_service):
        create_task(db_session, title="Weekend hike", is_scheduled=True, start_time="10:00",
                    recurrence_type="weekends")

        service = NotificationService(db_session, date_service=date_service)

        assert service.tasks_due_now("10:00", 1) == []
        assert [task.title for task in service.tasks_due_now("10:00", 6)] == ["Weekend hike"]


class TestRunSweep:
    """Tests for run_sweep function"""

    def test_sends_to_every_recipient(self, db_session, date_service, default_settings):
        create_task(db_session, title="Standup", is_scheduled=True, start_time="10:00")
        sender = RecordingSender()

        result = NotificationService(db_session, sender, date_service).run_sweep(MONDAY_10AM)

        assert result["time_slot"] == "10:00"
        assert result["day_of_week"] == 1
        assert result["sent"] == 2
        assert sorted(channel for _, channel, _ in sender.sent) == ["email", "push"]

    def test_utc_instant_resolved_in_reference_timezone(self, db_session, date_service, default_settings):
        create_task(db_session, title="Standup", is_scheduled=True, start_time="10:00")
        sender = RecordingSender()

        # 04:31 UTC is 10:01 IST
        result = NotificationService(db_session, sender, date_service).run_sweep(
            datetime(2024, 1, 15, 4, 31, tzinfo=timezone.utc)
        )

        assert result["time_slot"] == "10:00"
        assert result["tasks"] == ["Standup"]

    def test_failure_does_not_stop_other_deliveries(self, db_session, date_service, default_settings, caplog):
        """A failing channel is logged while the rest still go out"""
        create_task(db_session, title="Standup", is_scheduled=True, start_time="10:00", order=0)
        create_task(db_session, title="Water", is_scheduled=True, start_time="10:00", order=1)
        sender = RecordingSender(failing_channels={"email"})

        result = NotificationService(db_session, sender, date_service).run_sweep(MONDAY_10AM)

        assert result["sent"] == 2
        assert result["failed"] == 2
        assert [(title, channel) for title, channel, _ in sender.sent] == [("Standup", "push"), ("Water", "push")]
        assert "transport down" in caplog.text

    def test_globally_disabled_sends_nothing(self, db_session, date_service, default_settings):
        default_settings.notifications_enabled = False
        db_session.commit()
        create_task(db_session, title="Standup", is_scheduled=True, start_time="10:00")
        sender = RecordingSender()

        result = NotificationService(db_session, sender, date_service).run_sweep(MONDAY_10AM)

        assert result["sent"] == 0
        assert sender.sent == []

    def test_no_tasks_in_slot(self, db_session, date_service, default_settings):
        result = NotificationService(db_session, RecordingSender(), date_service).run_sweep(MONDAY_10AM)

        assert result["tasks"] == []
        assert result["sent"] == 0


class TestRecipients:
    """Tests for get_recipients function"""

    def test_only_configured_channels(self, default_settings):
        default_settings.push_token = None

        assert NotificationService.get_recipients(default_settings) == [
            Recipient("email", "me@example.com")
        ]
