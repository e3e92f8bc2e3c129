"""
Tests for DailyLogService.

Tests cover:
1. Completion idempotence and the complete/uncomplete round trip
2. Skip and unskip transitions and their points effect
3. Pending as absence of a row
4. Inactive tasks
"""
import pytest

from lifeos.models import DailyLog
from lifeos.services.daily_log_service import DailyLogService
from lifeos.services.points_service import PointsService
from lifeos.repositories.daily_log_repository import DailyLogRepository
from lifeos.exceptions import TaskNotFoundException
from lifeos.tests.conftest import create_task

LEDGER_ID = 1


def ledger(db_session):
    return PointsService(db_session).get_ledger(LEDGER_ID)


@pytest.fixture
def service(db_session, date_service, default_settings):
    return DailyLogService(db_session, LEDGER_ID, date_service)


class TestComplete:
    """Tests for complete function"""

    def test_complete_awards_base_points(self, db_session, service, today):
        """Completing awards base points to the task's domain"""
        task = create_task(db_session, domain="health", base_points=10)

        log = service.complete(task.id, today)

        assert log.status == "completed"
        assert log.points_earned == 10
        assert log.completed_at is not None
        assert ledger(db_session)["breakdown"]["health"] == 10

    def test_complete_twice_is_idempotent(self, db_session, service, today):
        """Second completion changes neither the log nor the ledger"""
        task = create_task(db_session, base_points=10)

        first = service.complete(task.id, today)
        first_state = (first.status, first.points_earned, first.completed_at)
        after_once = ledger(db_session)

        second = service.complete(task.id, today)

        assert (second.status, second.points_earned, second.completed_at) == first_state
        assert ledger(db_session) == after_once
        assert db_session.query(DailyLog).count() == 1

    def test_complete_then_uncomplete_restores_ledger(self, db_session, service, today):
        """Domain ledger returns to its exact pre-completion value"""
        task = create_task(db_session, domain="health", base_points=10)
        PointsService(db_session).add_points(LEDGER_ID, "health", 7)
        db_session.commit()
        before = ledger(db_session)

        service.complete(task.id, today)
        assert ledger(db_session)["breakdown"]["health"] == 17

        log = service.uncomplete(task.id, today)

        assert log.status == "pending"
        assert log.points_earned == 0
        assert ledger(db_session) == before

    def test_uncomplete_pending_is_noop(self, db_session, service, today):
        task = create_task(db_session)

        log = service.uncomplete(task.id, today)

        assert log.status == "pending"
        assert ledger(db_session)["total_points"] == 0
        assert db_session.query(DailyLog).count() == 0

    def test_days_are_independent(self, db_session, service, today, yesterday):
        task = create_task(db_session, base_points=10)

        service.complete(task.id, yesterday)

        assert service.get_log_view(task.id, today).status == "pending"
        assert ledger(db_session)["total_points"] == 10

    def test_inactive_task_rejected(self, db_session, service, today):
        task = create_task(db_session, is_active=False)

        with pytest.raises(TaskNotFoundException):
            service.complete(task.id, today)

    def test_missing_task_rejected(self, service, today):
        with pytest.raises(TaskNotFoundException):
            service.skip(999, today)


class TestSkip:
    """Tests for skip and unskip functions"""

    def test_skip_pending_has_no_points_effect(self, db_session, service, today):
        task = create_task(db_session, base_points=10)

        log = service.skip(task.id, today)

        assert log.status == "skipped"
        assert log.skipped_at is not None
        assert ledger(db_session)["total_points"] == 0

    def test_unskip_returns_to_pending(self, db_session, service, today):
        task = create_task(db_session)
        service.skip(task.id, today)

        log = service.unskip(task.id, today)

        assert log.status == "pending"
        assert log.skipped_at is None

    def test_unskip_untouched_day_writes_nothing(self, db_session, service, today):
        """Should report pending without inserting a row for the day"""
        task = create_task(db_session)

        log = service.unskip(task.id, today)

        assert log.status == "pending"
        assert log.date == today
        assert db_session.query(DailyLog).count() == 0

    def test_skip_completed_takes_points_back(self, db_session, service, today):
        """Leaving the completed state subtracts the points it earned"""
        task = create_task(db_session, domain="career", base_points=8)
        service.complete(task.id, today)

        log = service.skip(task.id, today)

        assert log.status == "skipped"
        assert log.points_earned == 0
        assert ledger(db_session)["breakdown"]["career"] == 0

    def test_complete_skipped_task(self, db_session, service, today):
        task = create_task(db_session, base_points=4)
        service.skip(task.id, today)

        log = service.complete(task.id, today)

        assert log.status == "completed"
        assert log.skipped_at is None
        assert ledger(db_session)["total_points"] == 4


class TestLogView:
    """Tests for get_or_default and get_log_view"""

    def test_missing_row_reads_as_pending(self, db_session, service, today):
        task = create_task(db_session)

        assert service.get_or_default(task.id, today) is None
        view = service.get_log_view(task.id, today)
        assert view.status == "pending"
        assert view.points_earned == 0

    def test_reads_do_not_create_rows(self, db_session, service, today):
        task = create_task(db_session)

        service.get_log_view(task.id, today)

        assert db_session.query(DailyLog).count() == 0


class TestEnsureExists:
    """Tests for the insert-if-missing path"""

    def test_second_insert_returns_same_row(self, db_session, today):
        task = create_task(db_session)

        first = DailyLogRepository.ensure_exists(db_session, task.id, today)
        second = DailyLogRepository.ensure_exists(db_session, task.id, today)
        db_session.commit()

        assert first.id == second.id
        assert db_session.query(DailyLog).count() == 1

    def test_guarded_transition_only_wins_once(self, db_session, today):
        """A second writer moving from the same status loses"""
        task = create_task(db_session)
        log = DailyLogRepository.ensure_exists(db_session, task.id, today)

        assert DailyLogRepository.transition(db_session, log.id, "pending", {"status": "completed"})
        assert not DailyLogRepository.transition(db_session, log.id, "pending", {"status": "completed"})
