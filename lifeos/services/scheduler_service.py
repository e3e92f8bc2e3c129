"""
Background scheduler for routine automation
Handles:
- Task reminders every half hour
- Re-evaluating yesterday's streak shortly after midnight
"""

import logging
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from lifeos.database import SessionLocal
from lifeos.constants import REFERENCE_TIMEZONE
from lifeos.services.date_service import DateService
from lifeos.services.notification_service import NotificationService
from lifeos.services.streak_service import StreakService

logger = logging.getLogger("lifeos.scheduler")

# Create scheduler instance
scheduler = AsyncIOScheduler(timezone=REFERENCE_TIMEZONE)


async def run_notification_sweep():
    """Job: send reminders for tasks starting in the current slot"""
    db = SessionLocal()
    try:
        result = NotificationService(db).run_sweep()
        if result["tasks"]:
            logger.info(f"Reminder sweep {result['time_slot']}: {result['message']}")
    except Exception as e:
        logger.error(f"Scheduler Error (Reminders): {e}")
    finally:
        db.close()


async def run_streak_rollover():
    """Job: settle yesterday's streak record once the day is over"""
    db = SessionLocal()
    try:
        date_service = DateService()
        yesterday = date_service.add_days(date_service.today(), -1)
        result = StreakService(db, date_service=date_service).refresh_day(yesterday)
        logger.info(
            f"Streak for {yesterday}: valid={result['record'].streak_valid}, "
            f"length={result['streak_length']}"
        )
    except Exception as e:
        logger.error(f"Scheduler Error (Streak rollover): {e}")
    finally:
        db.close()


def start_scheduler():
    """Start the scheduler"""
    if not scheduler.running:
        scheduler.add_job(
            run_notification_sweep,
            CronTrigger(minute='0,30', timezone=REFERENCE_TIMEZONE),
            id='notification_sweep',
            replace_existing=True
        )

        scheduler.add_job(
            run_streak_rollover,
            CronTrigger(hour=0, minute=5, timezone=REFERENCE_TIMEZONE),
            id='streak_rollover',
            replace_existing=True
        )

        scheduler.start()
        logger.info("Scheduler started (reminders every 30 min, streak rollover at 00:05)")


def stop_scheduler():
    """Stop the scheduler"""
    if scheduler.running:
        scheduler.shutdown()
        logger.info("Scheduler stopped")
