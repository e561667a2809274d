from datetime import date, datetime, timezone

import pytest
from freezegun import freeze_time

from boxstock.services.date_filter import DateRangeFilter


def test_custom_range_is_inclusive_on_both_ends():
    f = DateRangeFilter("custom", "2023-01-01", "2023-01-31", tz=timezone.utc)

    assert f.is_in_range("2023-01-01T00:00:00Z")
    assert f.is_in_range("2023-01-31T23:59:59Z")
    assert not f.is_in_range("2023-02-01T00:00:01Z")
    assert not f.is_in_range("2022-12-31T23:59:59Z")


def test_custom_bounds_take_precedence_over_named_range():
    f = DateRangeFilter("today", date(2020, 3, 1), date(2020, 3, 2))
    assert f.is_in_range(datetime(2020, 3, 2, 18, 30))
    assert not f.is_in_range(datetime(2020, 3, 3, 0, 0))


def test_all_without_bounds_accepts_everything():
    f = DateRangeFilter()
    assert f.is_in_range("1999-01-01T00:00:00")
    assert f(datetime(2100, 1, 1))


def test_custom_with_single_bound_filters_nothing():
    f = DateRangeFilter("custom", "2023-01-01", None)
    assert f.is_in_range("1990-06-01T12:00:00")


def test_unknown_range_name_filters_nothing():
    f = DateRangeFilter("fortnight")
    assert f.is_in_range("1990-06-01T12:00:00")


@pytest.mark.parametrize(
    "selected, inside, outside",
    [
        ("today", "2024-05-15T00:00:00", "2024-05-14T23:59:59"),
        ("yesterday", "2024-05-14T08:00:00", "2024-05-15T00:00:00"),
        ("week", "2024-05-12T00:00:00", "2024-05-11T23:59:59"),
        ("month", "2024-05-01T00:00:00", "2024-04-30T23:59:59"),
        ("quarter", "2024-04-01T00:00:00", "2024-03-31T23:59:59"),
    ],
)
@freeze_time("2024-05-15 10:00:00")
def test_named_ranges_start_at_local_midnight(selected, inside, outside):
    f = DateRangeFilter(selected)
    assert f.is_in_range(inside)
    assert not f.is_in_range(outside)


def test_yesterday_excludes_days_before():
    f = DateRangeFilter("yesterday", clock=lambda: datetime(2024, 1, 1, 15, 0))
    assert f.is_in_range("2023-12-31T00:00:00")
    assert not f.is_in_range("2023-12-30T23:59:59")


def test_week_starts_on_sunday_even_when_today_is_sunday():
    f = DateRangeFilter("week", clock=lambda: datetime(2024, 5, 12, 9, 0))
    assert f.is_in_range("2024-05-12T00:00:00")
    assert not f.is_in_range("2024-05-11T23:00:00")


def test_switching_away_from_custom_clears_bounds():
    f = DateRangeFilter(clock=lambda: datetime(2024, 5, 15, 10, 0))
    f.set_custom_range("2020-01-01", "2020-01-31")
    assert f.is_in_range("2020-01-15T12:00:00")

    f.change_range("month")

    assert f.start_date is None and f.end_date is None
    assert not f.is_in_range("2020-01-15T12:00:00")
    assert f.is_in_range("2024-05-02T12:00:00")


def test_staying_on_custom_keeps_bounds():
    f = DateRangeFilter("custom", "2020-01-01", "2020-01-31")
    f.change_range("custom")
    assert f.start_date == date(2020, 1, 1)
