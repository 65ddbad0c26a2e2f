"""
Tests for the business timezone adapter.
"""

from datetime import date, datetime

import pendulum

from salonslots.domain.clock import BusinessClock
from salonslots.domain.intervals import Interval


class TestMinuteOfDay:
    """Tests for BusinessClock.minute_of_day."""

    def test_utc_clock_reads_raw_fields(self):
        """The UTC clock reproduces the raw UTC wall clock."""
        clock = BusinessClock("UTC")
        assert clock.minute_of_day("2025-08-21T10:15:00Z") == 615

    def test_jerusalem_summer_offset(self):
        """Summer time in Israel is UTC+3."""
        clock = BusinessClock("Asia/Jerusalem")
        assert clock.minute_of_day("2025-08-21T07:00:00Z") == 600

    def test_jerusalem_winter_offset(self):
        """Winter time in Israel is UTC+2."""
        clock = BusinessClock("Asia/Jerusalem")
        assert clock.minute_of_day("2025-01-15T07:00:00Z") == 540

    def test_dst_transition(self):
        """The same UTC hour lands an hour later once DST starts."""
        clock = BusinessClock("Europe/Berlin")
        assert clock.minute_of_day("2025-03-29T06:00:00Z") == 420
        assert clock.minute_of_day("2025-03-30T06:00:00Z") == 480

    def test_naive_datetime_is_utc(self):
        """Database timestamps without offset are read as UTC."""
        clock = BusinessClock("Asia/Jerusalem")
        assert clock.minute_of_day(datetime(2025, 8, 21, 7, 0)) == 600

    def test_aware_datetime_keeps_its_offset(self):
        """Aware instants are converted, not reinterpreted."""
        clock = BusinessClock("UTC")
        instant = pendulum.datetime(2025, 8, 21, 10, 0, tz="Asia/Jerusalem")
        assert clock.minute_of_day(instant) == 420

    def test_round_up_partial_minute(self):
        """Seconds truncate unless rounding up."""
        clock = BusinessClock("UTC")
        assert clock.minute_of_day("2025-08-21T10:00:30Z") == 600
        assert clock.minute_of_day("2025-08-21T10:00:30Z", round_up=True) == 601
        assert clock.minute_of_day("2025-08-21T10:00:00Z", round_up=True) == 600


class TestCalendar:
    """Tests for date keys and weekday names."""

    def test_date_key_crosses_local_midnight(self):
        """Late UTC evening is already tomorrow in Israel."""
        clock = BusinessClock("Asia/Jerusalem")
        assert clock.date_key("2025-08-21T22:30:00Z") == "2025-08-22"
        assert BusinessClock("UTC").date_key("2025-08-21T22:30:00Z") == "2025-08-21"

    def test_weekday_names(self):
        """Weekdays are lower-case English names."""
        assert BusinessClock.weekday_name(date(2025, 8, 21)) == "thursday"
        assert BusinessClock.weekday_name(date(2025, 8, 23)) == "saturday"
        assert BusinessClock.weekday_name(date(2025, 8, 24)) == "sunday"


class TestSplitByDay:
    """Tests for BusinessClock.split_by_day."""

    def test_single_day(self):
        """A same-day range becomes one interval."""
        clock = BusinessClock("UTC")
        pieces = clock.split_by_day("2025-08-21T10:00:00Z", "2025-08-21T11:30:00Z")
        assert pieces == [("2025-08-21", Interval(600, 690))]

    def test_range_crossing_midnight(self):
        """Each local day gets its own clipped piece."""
        clock = BusinessClock("UTC")
        pieces = clock.split_by_day("2025-08-21T22:00:00Z", "2025-08-22T02:00:00Z")
        assert pieces == [
            ("2025-08-21", Interval(1320, 1440)),
            ("2025-08-22", Interval(0, 120)),
        ]

    def test_multi_day_range(self):
        """Whole days in the middle are fully covered."""
        clock = BusinessClock("UTC")
        pieces = clock.split_by_day("2025-08-21T10:00:00Z", "2025-08-23T09:00:00Z")
        assert pieces == [
            ("2025-08-21", Interval(600, 1440)),
            ("2025-08-22", Interval(0, 1440)),
            ("2025-08-23", Interval(0, 540)),
        ]

    def test_ending_on_midnight(self):
        """A range ending exactly at midnight does not touch the next day."""
        clock = BusinessClock("UTC")
        pieces = clock.split_by_day("2025-08-21T22:00:00Z", "2025-08-22T00:00:00Z")
        assert pieces == [("2025-08-21", Interval(1320, 1440))]

    def test_last_day_rounds_up(self):
        """A trailing partial minute is still blocked."""
        clock = BusinessClock("UTC")
        pieces = clock.split_by_day("2025-08-21T23:00:00Z", "2025-08-22T01:00:30Z")
        assert pieces[-1] == ("2025-08-22", Interval(0, 61))

    def test_local_days(self):
        """Days are split on business-local midnight, not UTC midnight."""
        clock = BusinessClock("Asia/Jerusalem")
        pieces = clock.split_by_day("2025-08-21T19:00:00Z", "2025-08-21T23:00:00Z")
        assert pieces == [
            ("2025-08-21", Interval(1320, 1440)),
            ("2025-08-22", Interval(0, 120)),
        ]

    def test_inverted_range(self):
        """End before start yields nothing."""
        clock = BusinessClock("UTC")
        assert clock.split_by_day("2025-08-21T12:00:00Z", "2025-08-21T10:00:00Z") == []
