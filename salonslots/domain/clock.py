"""
Business timezone adapter.

Turns absolute instants into business-local minutes-of-day and date keys, and
calendar dates into weekday names. Conversion goes through pendulum's
timezone-aware arithmetic rather than raw UTC fields, so daylight-saving
transitions and non-UTC business locales land on the right wall-clock minute.
"""

from datetime import date, datetime
from typing import List, Tuple, Union

import pendulum
from pendulum import DateTime

from .intervals import MINUTES_PER_DAY, Interval

WEEKDAY_NAMES = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)

Instant = Union[datetime, str]


class BusinessClock:
    """
    Maps instants onto the business calendar of a single fixed timezone.

    ``BusinessClock("UTC")`` reproduces the raw-UTC behaviour used by the
    month-level calculator, through the same code path.
    """

    def __init__(self, timezone: str = "Asia/Jerusalem"):
        self.timezone = timezone
        self._tz = pendulum.timezone(timezone)

    def localize(self, instant: Instant) -> DateTime:
        """
        Convert an instant to a business-local pendulum DateTime.

        Naive datetimes and offset-less strings are taken to be UTC, which is
        how timestamps come out of the database.
        """
        if isinstance(instant, str):
            parsed = pendulum.parse(instant, tz="UTC")
            if not isinstance(parsed, DateTime):
                raise ValueError(f"Not an instant: {instant}")
            return parsed.in_timezone(self._tz)

        return pendulum.instance(instant, tz="UTC").in_timezone(self._tz)

    def minute_of_day(self, instant: Instant, round_up: bool = False) -> int:
        """
        Return wall-clock minutes since local midnight.

        Seconds are truncated unless ``round_up`` is set, in which case any
        partial minute counts as a whole one.
        """
        local = self.localize(instant)
        minute = local.hour * 60 + local.minute
        if round_up and (local.second or local.microsecond):
            minute += 1
        return minute

    def date_key(self, instant: Instant) -> str:
        """Return the business-local calendar date as ``YYYY-MM-DD``."""
        return self.localize(instant).format("YYYY-MM-DD")

    @staticmethod
    def weekday_name(day: date) -> str:
        """Return the lower-cased English weekday name of a calendar date."""
        return WEEKDAY_NAMES[day.weekday()]

    def today(self) -> pendulum.Date:
        """Return today's date in the business timezone."""
        return pendulum.now(self._tz).date()

    def split_by_day(self, start: Instant, end: Instant) -> List[Tuple[str, Interval]]:
        """
        Split an absolute range into one minute interval per local day it touches.

        Partial days are clipped to ``[00:00, 24:00)``; a range that reaches
        the next local midnight ends at minute 1440. Inverted ranges yield
        nothing.
        """
        local_start = self.localize(start)
        local_end = self.localize(end)
        if local_end <= local_start:
            return []

        pieces: List[Tuple[str, Interval]] = []
        day_start = local_start.start_of("day")

        while day_start < local_end:
            next_day = day_start.add(days=1).start_of("day")
            piece_start = max(local_start, day_start)
            piece_end = min(local_end, next_day)

            if piece_start < piece_end:
                start_minute = self.minute_of_day(piece_start)
                if piece_end >= next_day:
                    end_minute = MINUTES_PER_DAY
                else:
                    end_minute = min(MINUTES_PER_DAY, self.minute_of_day(piece_end, round_up=True))
                pieces.append((day_start.format("YYYY-MM-DD"), Interval(start_minute, end_minute)))

            day_start = next_day

        return pieces
