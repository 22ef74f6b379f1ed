"""
Date calculation service.
Produces canonical YYYY-MM-DD day strings for streaks and parses task due dates/times.
"""
import re
from datetime import datetime, timedelta, date
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from studybuddy.constants import DAY_ANCHOR_SERVER, DAY_ANCHOR_USER
from studybuddy.exceptions import (
    InvalidDateFormatException, InvalidTimeFormatException, InvalidTimezoneException,
    ConfigurationException
)

_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})$")


class DateService:
    """Service for date-related operations"""

    @staticmethod
    def get_zone(tz_name: Optional[str]) -> Optional[ZoneInfo]:
        """
        Resolve an IANA timezone name.

        Args:
            tz_name: Zone name like "Europe/Berlin", or None for process local time

        Returns:
            ZoneInfo, or None when tz_name is empty

        Raises:
            InvalidTimezoneException: If the zone is unknown
        """
        if not tz_name:
            return None
        try:
            return ZoneInfo(tz_name)
        except (ZoneInfoNotFoundError, ValueError):
            raise InvalidTimezoneException(tz_name)

    @staticmethod
    def today(tz_name: Optional[str] = None) -> str:
        """
        Get the current calendar date as YYYY-MM-DD.

        Without tz_name the evaluating process's local timezone is used.
        """
        zone = DateService.get_zone(tz_name)
        now = datetime.now(zone) if zone else datetime.now()
        return now.date().isoformat()

    @staticmethod
    def yesterday(reference: str) -> str:
        """
        Get the calendar day before reference.

        Args:
            reference: Date string in YYYY-MM-DD format

        Returns:
            Previous day in YYYY-MM-DD format
        """
        ref = DateService.parse_date(reference)
        return (ref - timedelta(days=1)).isoformat()

    @staticmethod
    def parse_date(date_str: str) -> date:
        """
        Parse a YYYY-MM-DD string.

        Raises:
            InvalidDateFormatException: If the string is not a valid date
        """
        if not isinstance(date_str, str) or len(date_str) != 10:
            raise InvalidDateFormatException(str(date_str))
        try:
            return date.fromisoformat(date_str)
        except ValueError:
            raise InvalidDateFormatException(date_str)

    @staticmethod
    def parse_time(time_str: str) -> tuple[int, int]:
        """
        Parse time string into hour and minute.

        Args:
            time_str: Time string in "HH:MM" format (24-hour)

        Returns:
            Tuple of (hour, minute)

        Raises:
            InvalidTimeFormatException: If time string is invalid
        """
        match = _TIME_RE.match(time_str.strip()) if isinstance(time_str, str) else None
        if not match:
            raise InvalidTimeFormatException(str(time_str))
        hour = int(match.group(1))
        minute = int(match.group(2))
        if hour > 23 or minute > 59:
            raise InvalidTimeFormatException(time_str)
        return hour, minute

    @staticmethod
    def resolve_timezone(
        day_anchor: str,
        server_timezone: Optional[str],
        user_timezone: Optional[str] = None
    ) -> Optional[str]:
        """
        Pick the timezone that defines "today" for a user.

        Args:
            day_anchor: "server" or "user"
            server_timezone: Configured zone, None for process local time
            user_timezone: The user's own zone, if known

        Returns:
            Zone name, or None for process local time
        """
        if day_anchor == DAY_ANCHOR_SERVER:
            return server_timezone
        if day_anchor == DAY_ANCHOR_USER:
            return user_timezone or server_timezone
        raise ConfigurationException(
            f"day anchor must be '{DAY_ANCHOR_SERVER}' or '{DAY_ANCHOR_USER}', got '{day_anchor}'"
        )
