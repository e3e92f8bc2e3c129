"""
Points repository - Data access layer for the points ledger.
Handles all database queries related to ledger totals.
"""
from typing import List
from sqlalchemy.orm import Session
from sqlalchemy import and_, case, update

from lifeos.models import PointsLedger, LedgerDomainTotal


class PointsLedgerRepository:
    """Repository for PointsLedger data access"""

    @staticmethod
    def get_or_create(db: Session, ledger_id: int) -> PointsLedger:
        """Get ledger by ID (creates an empty one if not exists)"""
        ledger = db.query(PointsLedger).filter(PointsLedger.id == ledger_id).first()
        if not ledger:
            ledger = PointsLedger(id=ledger_id, total_points=0)
            db.add(ledger)
            db.flush()
        return ledger

    @staticmethod
    def get_domain_total(db: Session, ledger_id: int, domain: str) -> LedgerDomainTotal:
        """Get one domain bucket (creates it at zero if not exists)"""
        total = db.query(LedgerDomainTotal).filter(
            and_(
                LedgerDomainTotal.ledger_id == ledger_id,
                LedgerDomainTotal.domain == domain
            )
        ).populate_existing().first()
        if not total:
            total = LedgerDomainTotal(ledger_id=ledger_id, domain=domain, points=0)
            db.add(total)
            db.flush()
        return total

    @staticmethod
    def get_domain_totals(db: Session, ledger_id: int) -> List[LedgerDomainTotal]:
        return db.query(LedgerDomainTotal).filter(
            LedgerDomainTotal.ledger_id == ledger_id
        ).populate_existing().all()

    @staticmethod
    def increment(db: Session, ledger_id: int, domain: str, amount: int) -> None:
        """Atomically add to a domain bucket and the ledger total"""
        db.execute(
            update(LedgerDomainTotal)
            .where(and_(LedgerDomainTotal.ledger_id == ledger_id, LedgerDomainTotal.domain == domain))
            .values(points=LedgerDomainTotal.points + amount)
            .execution_options(synchronize_session=False)
        )
        PointsLedgerRepository.increment_total(db, ledger_id, amount)

    @staticmethod
    def increment_total(db: Session, ledger_id: int, amount: int) -> None:
        db.execute(
            update(PointsLedger)
            .where(PointsLedger.id == ledger_id)
            .values(total_points=PointsLedger.total_points + amount)
            .execution_options(synchronize_session=False)
        )

    @staticmethod
    def decrement_clamped(db: Session, ledger_id: int, domain: str, amount: int) -> None:
        """Atomically subtract from a domain bucket and the total, flooring both at zero"""
        db.execute(
            update(LedgerDomainTotal)
            .where(and_(LedgerDomainTotal.ledger_id == ledger_id, LedgerDomainTotal.domain == domain))
            .values(points=case(
                (LedgerDomainTotal.points >= amount, LedgerDomainTotal.points - amount),
                else_=0
            ))
            .execution_options(synchronize_session=False)
        )
        db.execute(
            update(PointsLedger)
            .where(PointsLedger.id == ledger_id)
            .values(total_points=case(
                (PointsLedger.total_points >= amount, PointsLedger.total_points - amount),
                else_=0
            ))
            .execution_options(synchronize_session=False)
        )
