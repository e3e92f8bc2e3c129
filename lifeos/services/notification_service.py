"""
Scheduled task reminders.

A sweep runs every half hour: it quantizes the current time in the
reference timezone to a slot, finds scheduled tasks starting in that slot
on today's weekday and hands one reminder per (task, recipient) to a
NotificationSender.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional
from sqlalchemy.orm import Session

from lifeos.models import RoutineTask, Settings
from lifeos.repositories.task_repository import TaskRepository
from lifeos.repositories.settings_repository import SettingsRepository
from lifeos.services.date_service import DateService
from lifeos.services.recurrence import RecurrenceRule, is_due
from lifeos.constants import (
    NOTIFICATION_SLOT_MINUTES, NOTIFICATION_CHANNEL_EMAIL, NOTIFICATION_CHANNEL_PUSH
)

logger = logging.getLogger("lifeos.notifications")

MINUTES_PER_DAY = 24 * 60


def quantize_time_slot(moment: datetime, slot_minutes: int = NOTIFICATION_SLOT_MINUTES) -> str:
    """
    Round a wall-clock time to the nearest slot boundary as HH:MM.

    Halfway values round up, and times near midnight wrap to 00:00.
    10:14 -> 10:00, 10:15 -> 10:30, 10:50 -> 11:00, 23:50 -> 00:00.
    """
    minutes = moment.hour * 60 + moment.minute
    slot = ((minutes + slot_minutes // 2) // slot_minutes) * slot_minutes
    slot %= MINUTES_PER_DAY
    return f"{slot // 60:02d}:{slot % 60:02d}"


@dataclass(frozen=True)
class Recipient:
    channel: str  # email or push
    address: str


class NotificationSender:
    """Delivery transport for reminders; subclasses implement send()"""

    def send(self, task: RoutineTask, recipient: Recipient, time_slot: str) -> None:
        raise NotImplementedError


class LoggingNotificationSender(NotificationSender):
    """Default transport that only writes the reminder to the log"""

    def send(self, task: RoutineTask, recipient: Recipient, time_slot: str) -> None:
        logger.info(
            f"[REMINDER] {recipient.channel} -> {recipient.address}: "
            f"'{task.title}' starts at {time_slot}"
        )


class NotificationService:
    """Service for scheduled-task reminder sweeps"""

    def __init__(
        self,
        db: Session,
        sender: Optional[NotificationSender] = None,
        date_service: Optional[DateService] = None
    ):
        self.db = db
        self.task_repo = TaskRepository()
        self.settings_repo = SettingsRepository()
        self.sender = sender or LoggingNotificationSender()
        self.date_service = date_service or DateService()

    def tasks_due_now(self, current_slot: str, day_of_week: int) -> List[RoutineTask]:
        """Active scheduled tasks with reminders on that start at the slot and are due on the weekday"""
        return [
            task for task in self.task_repo.get_scheduled_at(self.db, current_slot)
            if is_due(RecurrenceRule.from_task(task), day_of_week)
        ]

    @staticmethod
    def get_recipients(settings: Settings) -> List[Recipient]:
        """Recipients configured in settings; none when reminders are switched off"""
        if not settings.notifications_enabled:
            return []
        recipients = []
        if settings.notification_email:
            recipients.append(Recipient(NOTIFICATION_CHANNEL_EMAIL, settings.notification_email))
        if settings.push_token:
            recipients.append(Recipient(NOTIFICATION_CHANNEL_PUSH, settings.push_token))
        return recipients

    def run_sweep(self, now: Optional[datetime] = None) -> dict:
        """
        Send reminders for tasks starting in the current slot.

        A failed delivery is logged and counted; it does not stop delivery
        to other recipients or other tasks.

        Args:
            now: Instant to evaluate (defaults to the current instant)

        Returns:
            Dict with the slot, weekday, task titles and send counts
        """
        if now is None:
            now = datetime.now(self.date_service.tz)
        elif now.tzinfo is not None:
            now = now.astimezone(self.date_service.tz)
        time_slot = quantize_time_slot(now)
        day_of_week = self.date_service.day_of_week(now.date())

        tasks = self.tasks_due_now(time_slot, day_of_week)
        if not tasks:
            return self._result(time_slot, day_of_week, [], 0, 0, "No tasks scheduled for this slot")

        recipients = self.get_recipients(self.settings_repo.get(self.db))
        if not recipients:
            logger.info(f"{len(tasks)} task(s) due at {time_slot} but no recipients are configured")
            return self._result(time_slot, day_of_week, tasks, 0, 0, "No recipients configured")

        sent = 0
        failed = 0
        for task in tasks:
            for recipient in recipients:
                try:
                    self.sender.send(task, recipient, time_slot)
                    sent += 1
                except Exception as e:
                    failed += 1
                    logger.error(f"Reminder for task {task.id} via {recipient.channel} failed: {e}")

        logger.info(f"Reminder sweep at {time_slot}: {sent} sent, {failed} failed")
        return self._result(time_slot, day_of_week, tasks, sent, failed, f"Processed {len(tasks)} task(s)")

    @staticmethod
    def _result(time_slot: str, day_of_week: int, tasks: List[RoutineTask], sent: int, failed: int, message: str) -> dict:
        return {
            "time_slot": time_slot,
            "day_of_week": day_of_week,
            "tasks": [task.title for task in tasks],
            "sent": sent,
            "failed": failed,
            "message": message,
        }
