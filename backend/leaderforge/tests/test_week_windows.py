from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from leaderforge.apps.dashboards.windows import (
    four_week_start,
    reported_weeks,
    start_of_week,
    week_window,
)


def test_week_starts_monday_midnight_utc(now):
    assert start_of_week(now) == datetime(2024, 3, 11, tzinfo=timezone.utc)


def test_monday_midnight_belongs_to_its_own_week():
    monday = datetime(2024, 3, 11, tzinfo=timezone.utc)
    assert week_window(monday, 0).start == monday


def test_sunday_late_still_in_same_week():
    sunday = datetime(2024, 3, 17, 23, 59, 59, tzinfo=timezone.utc)
    window = week_window(sunday, 0)
    assert window.start == datetime(2024, 3, 11, tzinfo=timezone.utc)
    assert window.contains(sunday)


def test_window_bounds_are_inclusive(now):
    window = week_window(now, 0)
    assert window.end == datetime(2024, 3, 17, 23, 59, 59, 999000, tzinfo=timezone.utc)
    assert window.contains(window.start)
    assert window.contains(window.end)
    assert not window.contains(window.end + timedelta(milliseconds=1))
    assert not window.contains(None)


def test_reported_weeks_are_contiguous_and_non_overlapping(now):
    weeks = reported_weeks(now)
    assert [w.index for w in weeks] == [0, 1, 2, 3]
    for window in weeks:
        assert window.end - window.start == timedelta(days=7) - timedelta(milliseconds=1)
    for newer, older in zip(weeks, weeks[1:]):
        assert older.end + timedelta(milliseconds=1) == newer.start


def test_four_week_start_is_three_weeks_before_current_week(now):
    assert four_week_start(now) == datetime(2024, 2, 19, tzinfo=timezone.utc)
    assert four_week_start(now) == reported_weeks(now)[-1].start


def test_naive_now_is_treated_as_utc():
    assert start_of_week(datetime(2024, 3, 14, 12, 0)) == datetime(2024, 3, 11, tzinfo=timezone.utc)


@pytest.mark.parametrize("index", [-1, 4, 10])
def test_week_index_out_of_range_is_rejected(now, index):
    with pytest.raises(ValueError):
        week_window(now, index)


def test_window_membership_has_no_gap_before_next_week(now):
    last_week, this_week = week_window(now, 1), week_window(now, 0)
    late_sunday = datetime(2024, 3, 10, 23, 59, 59, 999500, tzinfo=timezone.utc)

    assert last_week.end < late_sunday < this_week.start
    assert last_week.contains(late_sunday)
    assert not this_week.contains(late_sunday)
    assert last_week.next_start == this_week.start


def test_contains_reads_naive_moments_as_utc(now):
    assert week_window(now, 0).contains(datetime(2024, 3, 11, 0, 0))
