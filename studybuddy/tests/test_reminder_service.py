"""
Tests for ReminderService.

Tests cover:
1. Offset reminders relative to the due date/time
2. Custom reminders
3. Tasks without an applicable reminder
4. Malformed due dates and times
5. Timezone of the due date/time
"""
import pytest
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from zoneinfo import ZoneInfo

from studybuddy.config import Config
from studybuddy.services.reminder_service import ReminderService
from studybuddy.exceptions import (
    InvalidDateFormatException, InvalidTimeFormatException, InvalidTimezoneException
)


def make_task(**fields):
    values = dict(
        due_date="2025-06-10",
        due_time="14:00",
        reminder="2h",
        custom_reminder_date=None,
    )
    values.update(fields)
    return SimpleNamespace(**values)


class TestOffsetReminders:
    """Reminders computed from the due date"""

    def test_two_hours_before(self):
        task = make_task()
        assert ReminderService.calculate_reminder_time(task) == datetime(2025, 6, 10, 12, 0)

    def test_one_hour_before(self):
        task = make_task(reminder="1h", due_time="00:30")
        assert ReminderService.calculate_reminder_time(task) == datetime(2025, 6, 9, 23, 30)

    def test_one_day_default_time(self):
        """No due time means 09:00 local"""
        task = make_task(reminder="1d", due_time=None)
        assert ReminderService.calculate_reminder_time(task) == datetime(2025, 6, 9, 9, 0)

    def test_two_days_across_month_boundary(self):
        task = make_task(reminder="2d", due_date="2025-07-01", due_time="08:15")
        assert ReminderService.calculate_reminder_time(task) == datetime(2025, 6, 29, 8, 15)

    def test_past_reminders_are_returned(self):
        task = make_task(due_date="2001-01-01")
        assert ReminderService.calculate_reminder_time(task) == datetime(2001, 1, 1, 12, 0)


class TestCustomReminders:
    """Reminders with an explicit fire time"""

    def test_custom_date_is_used_verbatim(self):
        custom = datetime(2025, 6, 8, 18, 45)
        task = make_task(reminder="custom", custom_reminder_date=custom)

        assert ReminderService.calculate_reminder_time(task) == custom

    def test_custom_without_date(self):
        task = make_task(reminder="custom", custom_reminder_date=None)
        assert ReminderService.calculate_reminder_time(task) is None

    def test_custom_ignores_due_time(self):
        custom = datetime(2025, 6, 8, 18, 45)
        task = make_task(reminder="custom", due_time="bogus", custom_reminder_date=custom)

        assert ReminderService.calculate_reminder_time(task) == custom

    def test_custom_iso_string(self):
        task = make_task(reminder="custom", custom_reminder_date="2025-06-08T18:45:00")
        assert ReminderService.calculate_reminder_time(task) == datetime(2025, 6, 8, 18, 45)

    def test_utc_string_becomes_local(self):
        task = make_task(reminder="custom", custom_reminder_date="2025-06-08T18:45:00Z")
        expected = datetime(2025, 6, 8, 18, 45, tzinfo=timezone.utc).astimezone().replace(tzinfo=None)

        assert ReminderService.calculate_reminder_time(task) == expected

    def test_malformed_custom_string(self):
        task = make_task(reminder="custom", custom_reminder_date="next tuesday")

        with pytest.raises(InvalidDateFormatException):
            ReminderService.calculate_reminder_time(task)


class TestNoReminder:
    """Tasks that never produce a fire time"""

    @pytest.mark.parametrize("fields", [
        {"reminder": None},
        {"reminder": ""},
        {"due_date": None},
        {"due_date": None, "reminder": "custom", "custom_reminder_date": datetime(2025, 6, 8, 9, 0)},
        {"reminder": "3w"},
    ])
    def test_returns_none(self, fields):
        assert ReminderService.calculate_reminder_time(make_task(**fields)) is None


class TestMalformedInput:
    """Bad stored values raise typed errors"""

    def test_invalid_due_time(self):
        with pytest.raises(InvalidTimeFormatException):
            ReminderService.calculate_reminder_time(make_task(due_time="25:00"))

    def test_invalid_due_date(self):
        with pytest.raises(InvalidDateFormatException):
            ReminderService.calculate_reminder_time(make_task(due_date="10.06.2025"))

    def test_get_due_datetime(self):
        assert ReminderService.get_due_datetime("2025-06-10", "7:05") == datetime(2025, 6, 10, 7, 5)


class TestTimezones:
    """Due date/time read in an explicit zone, returned as process local time"""

    @staticmethod
    def local(moment, zone):
        return moment.replace(tzinfo=ZoneInfo(zone)).astimezone().replace(tzinfo=None)

    def test_due_time_in_zone(self):
        result = ReminderService.calculate_reminder_time(make_task(), "America/New_York")
        assert result == self.local(datetime(2025, 6, 10, 12, 0), "America/New_York")

    def test_offset_is_elapsed_time_across_dst(self):
        """1d before 09:00 on the spring-forward day is 08:00 the day before"""
        task = make_task(reminder="1d", due_date="2025-03-09", due_time="09:00")

        result = ReminderService.calculate_reminder_time(task, "America/New_York")

        due = datetime(2025, 3, 9, 9, 0, tzinfo=ZoneInfo("America/New_York"))
        expected = (due.astimezone(timezone.utc) - timedelta(days=1)).astimezone().replace(tzinfo=None)
        assert result == expected
        assert result == self.local(datetime(2025, 3, 8, 8, 0), "America/New_York")

    def test_custom_reminder_ignores_zone(self):
        custom = datetime(2025, 6, 8, 18, 45)
        task = make_task(reminder="custom", custom_reminder_date=custom)

        assert ReminderService.calculate_reminder_time(task, "Asia/Tokyo") == custom

    def test_unknown_zone(self):
        with pytest.raises(InvalidTimezoneException):
            ReminderService.calculate_reminder_time(make_task(), "Nowhere/City")

    def test_timezone_for_server_anchor(self):
        config = Config(day_anchor="server", timezone="Europe/Berlin")
        assert ReminderService.timezone_for(config, "Asia/Tokyo") == "Europe/Berlin"

    def test_timezone_for_user_anchor(self):
        config = Config(day_anchor="user", timezone="Europe/Berlin")
        assert ReminderService.timezone_for(config, "Asia/Tokyo") == "Asia/Tokyo"
        assert ReminderService.timezone_for(config, None) == "Europe/Berlin"
