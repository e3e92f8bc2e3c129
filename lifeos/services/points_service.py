"""
Points ledger service.
Keeps per-domain and total point balances for a ledger. Every operation
stages its writes only; the calling service commits.
"""
import logging
from typing import Dict
from sqlalchemy.orm import Session

from lifeos.repositories.points_repository import PointsLedgerRepository
from lifeos.constants import DOMAINS
from lifeos.exceptions import ValidationException, LedgerUnderflowException

logger = logging.getLogger("lifeos.points")


class PointsService:
    """Service for points ledger management"""

    def __init__(self, db: Session):
        self.db = db
        self.ledger_repo = PointsLedgerRepository()

    def _validate(self, domain: str, amount: int) -> None:
        if domain not in DOMAINS:
            raise ValidationException("domain", f"Unknown domain '{domain}'")
        if amount < 0:
            raise ValidationException("points", "Point amounts must not be negative")

    @staticmethod
    def _check_balance(name: str, available: int, amount: int) -> None:
        if available < amount:
            raise LedgerUnderflowException(name, available, amount)

    def add_points(self, ledger_id: int, domain: str, amount: int) -> None:
        """Credit a domain bucket and the ledger total"""
        self._validate(domain, amount)
        if amount == 0:
            return
        self.ledger_repo.get_or_create(self.db, ledger_id)
        self.ledger_repo.get_domain_total(self.db, ledger_id, domain)
        self.ledger_repo.increment(self.db, ledger_id, domain, amount)

    def subtract_points(self, ledger_id: int, domain: str, amount: int) -> None:
        """
        Debit a domain bucket and the ledger total.

        Balances never go below zero. A debit larger than the balance means
        the ledger and the logs disagree; it is clamped and logged.
        """
        self._validate(domain, amount)
        if amount == 0:
            return
        ledger = self.ledger_repo.get_or_create(self.db, ledger_id)
        bucket = self.ledger_repo.get_domain_total(self.db, ledger_id, domain)
        self.db.refresh(ledger)
        try:
            self._check_balance(domain, bucket.points, amount)
            self._check_balance("total", ledger.total_points, amount)
        except LedgerUnderflowException as e:
            logger.warning(f"Ledger {ledger_id}: {e}; clamping at zero")
        self.ledger_repo.decrement_clamped(self.db, ledger_id, domain, amount)

    def add_bonus(self, ledger_id: int, amount: int) -> None:
        """Credit the ledger total only (streak milestone bonuses)"""
        if amount < 0:
            raise ValidationException("points", "Point amounts must not be negative")
        if amount == 0:
            return
        self.ledger_repo.get_or_create(self.db, ledger_id)
        self.ledger_repo.increment_total(self.db, ledger_id, amount)

    def get_ledger(self, ledger_id: int) -> dict:
        """
        Get current balances.

        Returns:
            Dict with ledger_id, total_points and a breakdown covering
            every domain
        """
        ledger = self.ledger_repo.get_or_create(self.db, ledger_id)
        self.db.refresh(ledger)
        breakdown: Dict[str, int] = {domain: 0 for domain in DOMAINS}
        for bucket in self.ledger_repo.get_domain_totals(self.db, ledger_id):
            breakdown[bucket.domain] = bucket.points
        return {
            "ledger_id": ledger.id,
            "total_points": ledger.total_points,
            "breakdown": breakdown,
        }
