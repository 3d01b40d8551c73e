"""Tests for date, duration and id helpers."""

from datetime import UTC, date, datetime, timedelta

import pytest

from krocs.helpers import (
    add_days,
    format_date,
    format_duration,
    generate_id,
    hours_to_minutes,
    is_same_day,
    minutes_between,
    minutes_to_hours,
    month_end,
    month_start,
    parse_timestamp,
    round_half_up,
    to_date,
    week_end,
    week_start,
    weekday_name,
)


class TestIds:
    def test_prefix(self):
        assert generate_id("ntf").startswith("ntf_")

    def test_unique(self):
        assert len({generate_id() for _ in range(100)}) == 100


class TestParsing:
    def test_parse_returns_aware_local(self):
        parsed = parse_timestamp("2026-02-16T10:00:00+00:00")
        assert parsed.tzinfo is not None
        assert parsed == datetime(2026, 2, 16, 10, 0, tzinfo=UTC)

    def test_parse_date_only_is_local_midnight(self):
        parsed = parse_timestamp("2026-02-16")
        assert (parsed.hour, parsed.minute) == (0, 0)
        assert parsed.date() == date(2026, 2, 16)

    @pytest.mark.parametrize("value", [None, "", "   ", "tomorrow", "2026-02-30", 42])
    def test_parse_bad_input_returns_none(self, value):
        assert parse_timestamp(value) is None

    def test_to_date_keeps_plain_dates_as_written(self):
        assert to_date("2026-02-16") == date(2026, 2, 16)
        assert to_date(date(2026, 2, 16)) == date(2026, 2, 16)

    def test_to_date_of_timestamp_is_local_calendar_date(self):
        local = datetime(2026, 2, 16, 23, 30).astimezone()
        assert to_date(local.isoformat()) == date(2026, 2, 16)

    def test_format_date(self):
        assert format_date("2026-02-16T08:00:00") == "2026-02-16"
        assert format_date("garbage") is None


class TestDurations:
    def test_minutes_between(self):
        assert minutes_between("2026-02-16T09:00", "2026-02-16T10:30") == 90
        assert minutes_between("2026-02-16T10:30", "2026-02-16T09:00") == -90
        assert minutes_between("2026-02-16T09:00", "later") is None

    @pytest.mark.parametrize(
        "value,expected",
        [(0.5, 1), (1.5, 2), (2.5, 3), (79.4, 79), (79.5, 80), (99.95, 100), (-0.5, 0)],
    )
    def test_round_half_up(self, value, expected):
        assert round_half_up(value) == expected

    def test_hours_minutes_conversion(self):
        assert hours_to_minutes(1.5) == 90
        assert minutes_to_hours(90) == 1.5
        assert minutes_to_hours(100) == 1.7

    @pytest.mark.parametrize("minutes,expected", [(45, "45m"), (120, "2h"), (90, "1h 30m"), (0, "0m")])
    def test_format_duration(self, minutes, expected):
        assert format_duration(minutes) == expected


class TestCalendar:
    def test_weekday_name(self):
        assert weekday_name(date(2026, 2, 16)) == "Monday"
        assert weekday_name(datetime(2026, 2, 22, 12, 0)) == "Sunday"

    def test_add_days_crosses_month(self):
        assert add_days(date(2026, 2, 28), 1) == date(2026, 3, 1)

    def test_is_same_day(self):
        morning = datetime(2026, 2, 16, 8, 0).astimezone()
        assert is_same_day(morning, morning + timedelta(hours=10))
        assert not is_same_day(morning, morning + timedelta(days=1))

    def test_week_bounds_are_monday_to_sunday(self):
        wednesday = date(2026, 2, 18)
        assert week_start(wednesday) == date(2026, 2, 16)
        assert week_end(wednesday) == date(2026, 2, 22)
        assert week_start(date(2026, 2, 16)) == date(2026, 2, 16)

    def test_month_bounds(self):
        assert month_start(date(2026, 2, 18)) == date(2026, 2, 1)
        assert month_end(date(2026, 2, 18)) == date(2026, 2, 28)
        assert month_end(date(2026, 12, 5)) == date(2026, 12, 31)
