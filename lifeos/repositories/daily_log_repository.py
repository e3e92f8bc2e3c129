"""
Daily log repository - Data access layer for DailyLog model.
Handles all database queries related to per-day task logs.

Writes are staged with flush only; the calling service owns the commit.
"""
from datetime import date
from typing import Iterable, List, Optional
from sqlalchemy.orm import Session
from sqlalchemy import and_, func, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

from lifeos.models import DailyLog, utcnow
from lifeos.constants import LOG_STATUS_PENDING, LOG_STATUS_COMPLETED
from lifeos.exceptions import LogConflictException

UPSERT_DIALECTS = {
    "sqlite": sqlite_insert,
    "postgresql": postgresql_insert,
}


class DailyLogRepository:
    """Repository for DailyLog data access"""

    @staticmethod
    def get(db: Session, task_id: int, day: date) -> Optional[DailyLog]:
        """Get the log for (task, day); None means nothing was recorded"""
        return db.query(DailyLog).filter(
            and_(
                DailyLog.task_id == task_id,
                DailyLog.date == day
            )
        ).populate_existing().first()

    @staticmethod
    def get_for_day(db: Session, day: date, task_ids: Optional[Iterable[int]] = None) -> List[DailyLog]:
        """Get all logs recorded on a day, optionally restricted to some tasks"""
        query = db.query(DailyLog).filter(DailyLog.date == day)
        if task_ids is not None:
            query = query.filter(DailyLog.task_id.in_(list(task_ids)))
        return query.all()

    @staticmethod
    def count_completed(db: Session, day: date) -> int:
        """Count completed logs on a day"""
        return db.query(func.count(DailyLog.id)).filter(
            and_(
                DailyLog.date == day,
                DailyLog.status == LOG_STATUS_COMPLETED
            )
        ).scalar() or 0

    @staticmethod
    def ensure_exists(db: Session, task_id: int, day: date) -> DailyLog:
        """
        Insert a pending log for (task, day) unless one already exists.

        Uses INSERT ... ON CONFLICT DO NOTHING where the dialect has it, so
        two concurrent writers never produce two rows. Other dialects insert
        inside a savepoint and fall back to reading the winner's row.

        Raises:
            LogConflictException: If the row could neither be inserted nor read
        """
        existing = DailyLogRepository.get(db, task_id, day)
        if existing is not None:
            return existing

        now = utcnow()
        insert_fn = UPSERT_DIALECTS.get(db.get_bind().dialect.name)
        if insert_fn is not None:
            stmt = insert_fn(DailyLog).values(
                task_id=task_id,
                date=day,
                status=LOG_STATUS_PENDING,
                points_earned=0,
                created_at=now,
                updated_at=now,
            ).on_conflict_do_nothing(index_elements=["task_id", "date"])
            db.execute(stmt)
        else:
            try:
                with db.begin_nested():
                    db.add(DailyLog(task_id=task_id, date=day, status=LOG_STATUS_PENDING, points_earned=0))
            except IntegrityError:
                pass

        log = DailyLogRepository.get(db, task_id, day)
        if log is None:
            raise LogConflictException(task_id, day)
        return log

    @staticmethod
    def transition(
        db: Session,
        log_id: int,
        from_status: str,
        values: dict
    ) -> bool:
        """
        Move a log out of `from_status` with a guarded UPDATE.

        Returns:
            True if this call performed the transition, False if another
            writer changed the row first
        """
        values = dict(values, updated_at=utcnow())
        result = db.execute(
            update(DailyLog)
            .where(and_(DailyLog.id == log_id, DailyLog.status == from_status))
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1
