"""
Reminder time calculation.
Turns a task's due date, due time and reminder offset into the instant the
reminder should fire.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional, Union

from studybuddy.config import Config
from studybuddy.services.date_service import DateService
from studybuddy.exceptions import InvalidDateFormatException
from studybuddy.constants import (
    REMINDER_1H, REMINDER_2H, REMINDER_1D, REMINDER_2D, REMINDER_CUSTOM,
    DEFAULT_DUE_HOUR, DEFAULT_DUE_MINUTE
)

REMINDER_OFFSETS = {
    REMINDER_1H: timedelta(hours=1),
    REMINDER_2H: timedelta(hours=2),
    REMINDER_1D: timedelta(days=1),
    REMINDER_2D: timedelta(days=2),
}


class ReminderService:
    """Service for reminder scheduling math"""

    @staticmethod
    def to_local_naive(value: Union[datetime, str]) -> datetime:
        """
        Normalize an absolute datetime to naive local time.

        Accepts datetimes or ISO 8601 strings (a trailing "Z" means UTC).
        """
        if isinstance(value, str):
            raw = value.strip()
            if raw.endswith("Z"):
                raw = raw[:-1] + "+00:00"
            try:
                value = datetime.fromisoformat(raw)
            except ValueError:
                raise InvalidDateFormatException(value)

        if value.tzinfo is not None:
            value = value.astimezone().replace(tzinfo=None)
        return value

    @staticmethod
    def get_due_datetime(due_date: str, due_time: Optional[str] = None) -> datetime:
        """
        Combine due date and optional HH:MM time; defaults to 09:00 local.
        """
        day = DateService.parse_date(due_date)
        if due_time:
            hour, minute = DateService.parse_time(due_time)
        else:
            hour, minute = DEFAULT_DUE_HOUR, DEFAULT_DUE_MINUTE
        return datetime(day.year, day.month, day.day, hour, minute)

    @staticmethod
    def timezone_for(config: Config, user_timezone: Optional[str] = None) -> Optional[str]:
        """Zone in which a user's due dates and times are read"""
        return DateService.resolve_timezone(config.day_anchor, config.timezone, user_timezone)

    @staticmethod
    def calculate_reminder_time(task, tz_name: Optional[str] = None) -> Optional[datetime]:
        """
        Calculate reminder time based on task due date and reminder setting.

        Args:
            task: Object with due_date, due_time, reminder and custom_reminder_date
            tz_name: Zone the due date/time is written in, None for process local time

        Returns:
            Naive process-local datetime (may be in the past), or None if no reminder applies

        Raises:
            InvalidDateFormatException, InvalidTimeFormatException: Malformed due date/time
        """
        due_date = getattr(task, "due_date", None)
        reminder = getattr(task, "reminder", None)
        if not due_date or not reminder:
            return None

        # Custom reminders ignore the due date/time entirely
        if reminder == REMINDER_CUSTOM:
            custom = getattr(task, "custom_reminder_date", None)
            if not custom:
                return None
            return ReminderService.to_local_naive(custom)

        offset = REMINDER_OFFSETS.get(reminder)
        if offset is None:
            return None

        due = ReminderService.get_due_datetime(due_date, getattr(task, "due_time", None))
        zone = DateService.get_zone(tz_name)
        if zone is None:
            return due - offset

        # Offsets are real elapsed time, so subtract in UTC
        fire_at = due.replace(tzinfo=zone).astimezone(timezone.utc) - offset
        return fire_at.astimezone().replace(tzinfo=None)
