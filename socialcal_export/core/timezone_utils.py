"""Local time helpers for socialcal_export.

The export works in naive local time: stored events carry no timezone
information that the calendar clients need, so every instant is converted to
the server's local wall-clock time and emitted as a floating iCalendar time.
"""

from __future__ import annotations

import datetime
import logging
import os

logger = logging.getLogger(__name__)

TEST_TIME_ENV_VAR = "SOCIALCAL_TEST_TIME"


def to_local_naive(dt: datetime.datetime) -> datetime.datetime:
    """Convert a datetime to naive local time.

    Aware datetimes are converted to the server's local timezone before the
    tzinfo is dropped. Naive datetimes are assumed to already be local.

    Args:
        dt: Datetime to convert

    Returns:
        Naive datetime in server local time
    """
    if dt.tzinfo is None:
        return dt
    return dt.astimezone().replace(tzinfo=None)


def local_naive_to_utc(dt: datetime.datetime) -> datetime.datetime:
    """Interpret a naive local datetime and return it as aware UTC."""
    # astimezone() treats naive datetimes as system local time
    return dt.astimezone(datetime.timezone.utc)


class TimeProvider:
    """Provides current local time with test time override support."""

    def __init__(self, env_var: str = TEST_TIME_ENV_VAR):
        """Initialize time provider.

        Args:
            env_var: Environment variable holding an ISO-8601 override
        """
        self.env_var = env_var

    def now_local(self) -> datetime.datetime:
        """Return current naive local time.

        Can be overridden for testing via the SOCIALCAL_TEST_TIME environment
        variable. Format: ISO 8601 datetime string (e.g. "2025-10-27T08:20:00"
        or "2025-10-27T08:20:00-07:00").

        Returns:
            Current time as a naive local datetime
        """
        test_time = os.environ.get(self.env_var)
        if test_time:
            try:
                from dateutil import parser as date_parser

                return to_local_naive(date_parser.isoparse(test_time))
            except (ValueError, OverflowError) as e:
                logger.warning("Failed to parse %s=%r: %s", self.env_var, test_time, e)
                # Fall through to real time

        return datetime.datetime.now()


_time_provider = TimeProvider()


def now_local() -> datetime.datetime:
    """Get current naive local time (convenience function).

    Returns:
        Current local time
    """
    return _time_provider.now_local()
