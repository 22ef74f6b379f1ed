"""
Tests for the reminder poller.

Tests cover:
1. Dispatch inside the polling window, boundaries included
2. No double dispatch across consecutive ticks
3. Skipped tasks (completed, no reminder, bad data)
4. Failure isolation and retry on a later tick
5. Catch-up window and changed fire times
6. Starting and stopping the recurring job
7. Due dates read in the configured or user timezone
"""
import pytest
from datetime import datetime, timedelta
from unittest.mock import MagicMock, patch
from zoneinfo import ZoneInfo

from apscheduler.triggers.interval import IntervalTrigger

from studybuddy.config import Config
from studybuddy.repositories.task_repository import ReminderDeliveryRepository
from studybuddy.scheduler import ReminderPoller, JOB_ID, STATE_IDLE, STATE_STOPPED
from studybuddy.exceptions import NotificationDeliveryException
from studybuddy.tests.conftest import create_task

# 2h before 2025-06-10 14:00
FIRE_AT = datetime(2025, 6, 10, 12, 0)


@pytest.fixture
def dispatcher():
    return MagicMock()


@pytest.fixture
def poller(database, config, dispatcher):
    return ReminderPoller(database, config, dispatcher_factory=lambda db: dispatcher)


@pytest.fixture
def owner(make_user):
    return make_user(expo_push_token="ExponentPushToken[abc]")


def sent_task_ids(dispatcher):
    return [c.args[0].id for c in dispatcher.send_task_reminder.call_args_list]


class TestWindow:
    """Reminders fire when the fire time is in [now, now + interval]"""

    def test_dispatches_due_reminder(self, poller, dispatcher, db_session, owner):
        task = create_task(db_session)

        sent = poller.tick(datetime(2025, 6, 10, 11, 57))

        assert sent == 1
        assert sent_task_ids(dispatcher) == [task.id]

    @pytest.mark.parametrize("now", [
        datetime(2025, 6, 10, 11, 55),
        datetime(2025, 6, 10, 12, 0),
    ])
    def test_boundaries_included(self, poller, dispatcher, db_session, owner, now):
        create_task(db_session)
        assert poller.tick(now) == 1

    @pytest.mark.parametrize("now", [
        datetime(2025, 6, 10, 11, 54, 59),
        datetime(2025, 6, 10, 12, 0, 1),
    ])
    def test_outside_window(self, poller, dispatcher, db_session, owner, now):
        create_task(db_session)

        assert poller.tick(now) == 0
        dispatcher.send_task_reminder.assert_not_called()

    def test_consecutive_ticks_dispatch_once(self, poller, dispatcher, db_session, owner):
        """Overlapping windows never double fire"""
        create_task(db_session)

        poller.tick(datetime(2025, 6, 10, 11, 55))
        poller.tick(datetime(2025, 6, 10, 12, 0))

        assert dispatcher.send_task_reminder.call_count == 1

    def test_records_delivery(self, poller, db_session, owner):
        task = create_task(db_session)
        now = datetime(2025, 6, 10, 11, 58)

        poller.tick(now)

        deliveries = ReminderDeliveryRepository.get_for_task(db_session, task.id)
        assert len(deliveries) == 1
        assert deliveries[0].fire_at == FIRE_AT
        assert deliveries[0].sent_at == now


class TestSkippedTasks:
    """Tasks the poller must ignore"""

    def test_completed_task(self, poller, dispatcher, db_session, owner):
        create_task(db_session, completed=True)

        assert poller.tick(datetime(2025, 6, 10, 11, 57)) == 0
        dispatcher.send_task_reminder.assert_not_called()

    def test_task_without_reminder(self, poller, dispatcher, db_session, owner):
        create_task(db_session, reminder=None)

        assert poller.tick(datetime(2025, 6, 10, 11, 57)) == 0

    def test_custom_reminder_without_date(self, poller, dispatcher, db_session, owner):
        create_task(db_session, reminder="custom")

        assert poller.tick(datetime(2025, 6, 10, 11, 57)) == 0

    def test_invalid_due_time_does_not_stop_scan(self, poller, dispatcher, db_session, owner):
        create_task(db_session, due_time="99:99")
        good = create_task(db_session)

        assert poller.tick(datetime(2025, 6, 10, 11, 57)) == 1
        assert sent_task_ids(dispatcher) == [good.id]

    def test_custom_reminder(self, poller, dispatcher, db_session, owner):
        task = create_task(db_session, reminder="custom",
                           custom_reminder_date=datetime(2025, 6, 9, 20, 0))

        assert poller.tick(datetime(2025, 6, 9, 19, 58)) == 1
        assert sent_task_ids(dispatcher) == [task.id]


class TestFailures:
    """A failed send never blocks the rest of the scan"""

    def test_failure_isolated(self, poller, dispatcher, db_session, owner):
        failing = create_task(db_session)
        other = create_task(db_session)

        def send(task):
            if task.id == failing.id:
                raise NotificationDeliveryException(task.user_id, "DeviceNotRegistered")
            return {"status": "ok"}

        dispatcher.send_task_reminder.side_effect = send

        assert poller.tick(datetime(2025, 6, 10, 11, 57)) == 1
        assert ReminderDeliveryRepository.get_for_task(db_session, failing.id) == []
        assert len(ReminderDeliveryRepository.get_for_task(db_session, other.id)) == 1

    def test_unexpected_error_isolated(self, poller, dispatcher, db_session, owner):
        create_task(db_session)
        create_task(db_session)
        dispatcher.send_task_reminder.side_effect = [RuntimeError("boom"), {"status": "ok"}]

        assert poller.tick(datetime(2025, 6, 10, 11, 57)) == 1

    def test_failed_send_retried_on_next_tick(self, poller, dispatcher, db_session, owner):
        create_task(db_session)
        dispatcher.send_task_reminder.side_effect = [
            NotificationDeliveryException("user-1", "timeout"),
            {"status": "ok"},
        ]

        assert poller.tick(datetime(2025, 6, 10, 11, 55)) == 0
        assert poller.tick(datetime(2025, 6, 10, 12, 0)) == 1
        assert dispatcher.send_task_reminder.call_count == 2

    def test_undelivered_reminder_is_not_recorded(self, poller, dispatcher, db_session, owner):
        """No ticket (no push target) is not a send"""
        task = create_task(db_session)
        dispatcher.send_task_reminder.side_effect = [None, {"status": "ok"}]

        assert poller.tick(datetime(2025, 6, 10, 11, 55)) == 0
        assert ReminderDeliveryRepository.get_for_task(db_session, task.id) == []

        assert poller.tick(datetime(2025, 6, 10, 12, 0)) == 1
        assert len(ReminderDeliveryRepository.get_for_task(db_session, task.id)) == 1

    def test_user_without_push_token(self, database, config, db_session, make_user):
        make_user()
        task = create_task(db_session)
        poller = ReminderPoller(database, config)

        with patch("studybuddy.services.notification_service.requests.post") as post:
            assert poller.tick(datetime(2025, 6, 10, 11, 57)) == 0

        post.assert_not_called()
        assert ReminderDeliveryRepository.get_for_task(db_session, task.id) == []


class TestCatchup:
    """Optional look-back for reminders missed while down"""

    def test_missed_reminder_ignored_by_default(self, poller, dispatcher, db_session, owner):
        create_task(db_session)

        assert poller.tick(datetime(2025, 6, 10, 12, 20)) == 0

    def test_missed_reminder_sent_within_catchup(self, database, config, dispatcher, db_session, owner):
        config.reminder_catchup_minutes = 30
        poller = ReminderPoller(database, config, dispatcher_factory=lambda db: dispatcher)
        create_task(db_session)

        assert poller.tick(datetime(2025, 6, 10, 12, 20)) == 1
        assert poller.tick(datetime(2025, 6, 10, 12, 25)) == 0

    def test_changed_fire_time_fires_again(self, poller, dispatcher, db_session, owner):
        task = create_task(db_session)
        poller.tick(datetime(2025, 6, 10, 11, 57))

        task.due_time = "15:00"
        db_session.commit()
        poller.tick(datetime(2025, 6, 10, 12, 57))

        assert dispatcher.send_task_reminder.call_count == 2


class TestLifecycle:
    """Starting and stopping the recurring job"""

    def test_start_and_stop(self, database, dispatcher):
        poller = ReminderPoller(database, Config(reminder_poll_minutes=5),
                                dispatcher_factory=lambda db: dispatcher)

        poller.start()
        try:
            assert poller.running
            assert poller.state == STATE_IDLE
            job = poller.scheduler.get_job(JOB_ID)
            assert job is not None
            assert job.max_instances == 1
            assert job.coalesce is True
        finally:
            poller.stop()

        assert poller.state == STATE_STOPPED

    @pytest.mark.parametrize("minutes", [7, 90])
    def test_interval_job(self, database, dispatcher, minutes):
        """Any poll period is a fixed interval, not a cron step"""
        poller = ReminderPoller(database, Config(reminder_poll_minutes=minutes),
                                dispatcher_factory=lambda db: dispatcher)

        poller.start()
        try:
            trigger = poller.scheduler.get_job(JOB_ID).trigger
            assert isinstance(trigger, IntervalTrigger)
            assert trigger.interval == timedelta(minutes=minutes)
        finally:
            poller.stop()

    def test_tick_records_last_run(self, poller):
        now = datetime(2025, 6, 10, 8, 0)
        poller.tick(now)

        assert poller.last_tick_at == now
        assert poller.state == STATE_STOPPED

    def test_stop_without_start(self, poller):
        poller.stop()
        assert poller.state == STATE_STOPPED


class TestTimezones:
    """Due dates are read in the configured or user zone"""

    @staticmethod
    def local(moment, zone):
        return moment.replace(tzinfo=ZoneInfo(zone)).astimezone().replace(tzinfo=None)

    def test_server_zone(self, database, config, dispatcher, db_session, owner):
        config.timezone = "America/New_York"
        poller = ReminderPoller(database, config, dispatcher_factory=lambda db: dispatcher)
        task = create_task(db_session)
        fire_at = self.local(datetime(2025, 6, 10, 12, 0), "America/New_York")

        assert poller.tick(fire_at - timedelta(minutes=3)) == 1
        assert ReminderDeliveryRepository.get_for_task(db_session, task.id)[0].fire_at == fire_at

    def test_user_zone(self, database, config, dispatcher, db_session, make_user):
        config.day_anchor = "user"
        make_user(timezone="Asia/Tokyo")
        poller = ReminderPoller(database, config, dispatcher_factory=lambda db: dispatcher)
        create_task(db_session)
        fire_at = self.local(datetime(2025, 6, 10, 12, 0), "Asia/Tokyo")

        assert poller.tick(fire_at) == 1

    def test_unknown_user_zone_skips_task(self, database, config, dispatcher, db_session, make_user):
        config.day_anchor = "user"
        make_user(timezone="Nowhere/City")
        poller = ReminderPoller(database, config, dispatcher_factory=lambda db: dispatcher)
        create_task(db_session)

        assert poller.tick(datetime(2025, 6, 10, 11, 57)) == 0
        dispatcher.send_task_reminder.assert_not_called()
