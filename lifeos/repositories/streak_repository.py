"""
Streak repository - Data access layer for DailyStreakRecord model.
"""
from datetime import date
from typing import List, Optional, Set
from sqlalchemy.orm import Session
from sqlalchemy import and_, update

from lifeos.models import DailyStreakRecord


class StreakRepository:
    """Repository for DailyStreakRecord data access"""

    @staticmethod
    def get_by_date(db: Session, day: date) -> Optional[DailyStreakRecord]:
        return db.query(DailyStreakRecord).filter(DailyStreakRecord.date == day).first()

    @staticmethod
    def get_or_create(db: Session, day: date) -> DailyStreakRecord:
        """Get the record for a day, staging an empty one if none exists"""
        record = StreakRepository.get_by_date(db, day)
        if record is None:
            record = DailyStreakRecord(date=day, milestones_reached="[]")
            db.add(record)
            db.flush()
        return record

    @staticmethod
    def get_range(db: Session, start: date, end: date) -> List[DailyStreakRecord]:
        """Records with start <= date <= end, newest first"""
        return db.query(DailyStreakRecord).filter(
            and_(
                DailyStreakRecord.date >= start,
                DailyStreakRecord.date <= end
            )
        ).order_by(DailyStreakRecord.date.desc()).all()

    @staticmethod
    def get_valid_dates(db: Session) -> List[date]:
        """All days with a valid streak record, oldest first"""
        rows = db.query(DailyStreakRecord.date).filter(
            DailyStreakRecord.streak_valid == True
        ).order_by(DailyStreakRecord.date).all()
        return [row[0] for row in rows]

    @staticmethod
    def get_credited_milestones(db: Session) -> Set[int]:
        """Union of milestone day-counts credited on any record"""
        credited = set()
        records = db.query(DailyStreakRecord).filter(
            DailyStreakRecord.milestones_reached != "[]"
        ).all()
        for record in records:
            credited.update(record.milestone_list)
        return credited

    @staticmethod
    def total_bonus_points(db: Session) -> int:
        records = db.query(DailyStreakRecord).filter(
            DailyStreakRecord.bonus_points_awarded > 0
        ).all()
        return sum(record.bonus_points_awarded for record in records)

    @staticmethod
    def append_milestones(
        db: Session,
        record: DailyStreakRecord,
        expected_json: str,
        new_json: str,
        bonus: int
    ) -> bool:
        """
        Record newly credited milestones on a day with a guarded UPDATE.

        Returns:
            False if another writer changed the record's milestones first
        """
        result = db.execute(
            update(DailyStreakRecord)
            .where(and_(
                DailyStreakRecord.id == record.id,
                DailyStreakRecord.milestones_reached == expected_json
            ))
            .values(
                milestones_reached=new_json,
                bonus_points_awarded=DailyStreakRecord.bonus_points_awarded + bonus
            )
            .execution_options(synchronize_session=False)
        )
        db.refresh(record)
        return result.rowcount == 1
