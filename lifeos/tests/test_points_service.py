"""
Tests for PointsService.

Tests cover:
1. Domain credits and debits
2. Clamping at zero
3. Bonus credits to the total only
4. Input validation
"""
import pytest

from lifeos.services.points_service import PointsService
from lifeos.exceptions import ValidationException

LEDGER_ID = 1


def balances(db_session):
    return PointsService(db_session).get_ledger(LEDGER_ID)


class TestAddPoints:
    """Tests for add_points function"""

    def test_credits_domain_and_total(self, db_session):
        """Should add to the domain bucket and the ledger total"""
        service = PointsService(db_session)
        service.add_points(LEDGER_ID, "health", 10)
        service.add_points(LEDGER_ID, "career", 4)
        db_session.commit()

        ledger = balances(db_session)
        assert ledger["total_points"] == 14
        assert ledger["breakdown"]["health"] == 10
        assert ledger["breakdown"]["career"] == 4

    def test_breakdown_lists_every_domain(self, db_session):
        ledger = balances(db_session)
        assert set(ledger["breakdown"]) == {"health", "career", "learning", "startups", "social"}
        assert ledger["total_points"] == 0

    def test_unknown_domain_rejected(self, db_session):
        with pytest.raises(ValidationException):
            PointsService(db_session).add_points(LEDGER_ID, "hobbies", 5)

    def test_negative_amount_rejected(self, db_session):
        with pytest.raises(ValidationException):
            PointsService(db_session).add_points(LEDGER_ID, "health", -5)


class TestSubtractPoints:
    """Tests for subtract_points function"""

    def test_subtract_exact_amount(self, db_session):
        service = PointsService(db_session)
        service.add_points(LEDGER_ID, "learning", 20)
        service.subtract_points(LEDGER_ID, "learning", 15)
        db_session.commit()

        ledger = balances(db_session)
        assert ledger["breakdown"]["learning"] == 5
        assert ledger["total_points"] == 5

    def test_clamps_at_zero(self, db_session, caplog):
        """Should never drive a balance negative and should log the mismatch"""
        service = PointsService(db_session)
        service.add_points(LEDGER_ID, "social", 3)
        service.subtract_points(LEDGER_ID, "social", 10)
        db_session.commit()

        ledger = balances(db_session)
        assert ledger["breakdown"]["social"] == 0
        assert ledger["total_points"] == 0
        assert "clamping at zero" in caplog.text

    def test_subtract_from_empty_ledger(self, db_session):
        PointsService(db_session).subtract_points(LEDGER_ID, "career", 7)
        db_session.commit()

        assert balances(db_session)["breakdown"]["career"] == 0


class TestBonus:
    """Tests for add_bonus function"""

    def test_bonus_only_touches_total(self, db_session):
        service = PointsService(db_session)
        service.add_points(LEDGER_ID, "health", 10)
        service.add_bonus(LEDGER_ID, 25)
        db_session.commit()

        ledger = balances(db_session)
        assert ledger["total_points"] == 35
        assert sum(ledger["breakdown"].values()) == 10

    def test_ledgers_are_independent(self, db_session):
        service = PointsService(db_session)
        service.add_points(1, "health", 10)
        service.add_points(2, "health", 3)
        db_session.commit()

        assert service.get_ledger(1)["total_points"] == 10
        assert service.get_ledger(2)["total_points"] == 3
