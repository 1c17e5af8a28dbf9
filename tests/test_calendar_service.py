"""
Tests for the calendar aggregator: visible range, navigation, bucketing,
range queries and the keep-previous-view-on-failure behaviour.
"""
import datetime as dt

import pytest

from core.models import Todo, ViewMode
from services.calendar_service import (
    CalendarAggregator,
    bucket_by_day,
    compute_range,
    days_in_range,
    navigate,
    status_color,
    visible_entries,
)

D = dt.date


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Range
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_week_range_is_sunday_to_saturday():
    assert compute_range(D(2024, 3, 15), ViewMode.WEEK) == (D(2024, 3, 10), D(2024, 3, 16))


def test_week_range_when_anchor_is_sunday_or_saturday():
    assert compute_range(D(2024, 3, 10), ViewMode.WEEK) == (D(2024, 3, 10), D(2024, 3, 16))
    assert compute_range(D(2024, 3, 16), ViewMode.WEEK) == (D(2024, 3, 10), D(2024, 3, 16))


def test_month_range_covers_full_weeks():
    # March 1 2024 is a Friday, March 31 2024 is a Sunday
    start, end = compute_range(D(2024, 3, 15), ViewMode.MONTH)
    assert start == D(2024, 2, 25)
    assert end == D(2024, 4, 6)
    assert start.weekday() == 6 and end.weekday() == 5


def test_month_range_when_month_fits_exactly():
    # February 2015 starts on Sunday and ends on Saturday
    assert compute_range(D(2015, 2, 10), ViewMode.MONTH) == (D(2015, 2, 1), D(2015, 2, 28))


def test_month_range_across_year_boundary():
    assert compute_range(D(2024, 12, 31), ViewMode.MONTH) == (D(2024, 12, 1), D(2025, 1, 4))


def test_mode_accepts_string_value():
    assert compute_range(D(2024, 3, 15), "week") == (D(2024, 3, 10), D(2024, 3, 16))


def test_days_in_range_inclusive():
    days = days_in_range(D(2024, 2, 25), D(2024, 4, 6))
    assert len(days) == 42
    assert days[0] == D(2024, 2, 25) and days[-1] == D(2024, 4, 6)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Navigation
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_navigate_month_clamps_day():
    assert navigate(1, ViewMode.MONTH, D(2024, 1, 31)) == D(2024, 2, 29)
    assert navigate(-1, ViewMode.MONTH, D(2024, 3, 31)) == D(2024, 2, 29)


def test_navigate_week():
    assert navigate(1, ViewMode.WEEK, D(2024, 3, 15)) == D(2024, 3, 22)
    assert navigate(-1, ViewMode.WEEK, D(2024, 3, 15)) == D(2024, 3, 8)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Bucketing
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_bucket_by_day_preserves_order():
    a = {"id": "a", "scheduled_date": "2024-03-10"}
    b = {"id": "b", "scheduled_date": "2024-03-10"}
    c = {"id": "c", "scheduled_date": "2024-03-12"}
    days = days_in_range(D(2024, 3, 10), D(2024, 3, 16))
    buckets = bucket_by_day([a, b, c], days)
    assert buckets[D(2024, 3, 10)] == [a, b]
    assert buckets[D(2024, 3, 12)] == [c]
    assert all(buckets[d] == [] for d in days if d not in (D(2024, 3, 10), D(2024, 3, 12)))
    assert list(buckets) == days


def test_bucket_by_day_ignores_out_of_range_and_unscheduled():
    tasks = [
        Todo(id="1", user_id="u", title="x", scheduled_date="2024-03-09"),
        Todo(id="2", user_id="u", title="y", scheduled_date=None),
        Todo(id="3", user_id="u", title="z", scheduled_date="2024-03-11"),
    ]
    buckets = bucket_by_day(tasks, days_in_range(D(2024, 3, 10), D(2024, 3, 16)))
    assert sum(len(v) for v in buckets.values()) == 1
    assert buckets[D(2024, 3, 11)][0].id == "3"


def test_bucket_by_day_accepts_pocketbase_datetime_strings():
    task = {"scheduled_date": "2024-03-10 00:00:00.000Z"}
    buckets = bucket_by_day([task], [D(2024, 3, 10)])
    assert buckets[D(2024, 3, 10)] == [task]


def test_visible_entries_reports_overflow():
    shown, hidden = visible_entries(list("abcde"))
    assert shown == ["a", "b", "c"] and hidden == 2
    assert visible_entries(["a"]) == (["a"], 0)


def test_status_colors():
    assert status_color("completed") == "#01eab9"
    assert status_color("in_progress") == "#01aaff"
    assert status_color("pending") == "#ff7800"
    assert status_color("weird") == "#9a86ff"
    assert status_color(None) == "#9a86ff"


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Aggregator
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


@pytest.fixture
def seeded(store):
    store.seed("todos", id="a", user_id="user1", title="A", status="pending", scheduled_date="2024-03-10")
    store.seed("todos", id="b", user_id="user1", title="B", status="completed", scheduled_date="2024-03-10")
    store.seed("todos", id="c", user_id="user1", title="C", status="in_progress", scheduled_date="2024-04-06")
    store.seed("todos", id="d", user_id="user1", title="D", scheduled_date="2024-04-07")
    store.seed("todos", id="e", user_id="other", title="E", scheduled_date="2024-03-10")
    store.seed("todos", id="f", user_id="user1", title="F", scheduled_date=None)
    return store


def test_fetch_filters_by_user_and_inclusive_range(seeded):
    agg = CalendarAggregator(seeded)
    tasks = agg.fetch("user1", D(2024, 2, 25), D(2024, 4, 6))
    assert sorted(t.id for t in tasks) == ["a", "b", "c"]


def test_refresh_buckets_current_window(seeded):
    agg = CalendarAggregator(seeded, anchor=D(2024, 3, 15))
    assert agg.refresh() is True
    buckets = agg.buckets
    assert [t.id for t in buckets[D(2024, 3, 10)]] == ["a", "b"]
    assert [t.id for t in buckets[D(2024, 4, 6)]] == ["c"]
    assert len(buckets) == 42
    assert agg.buckets_window == agg.window


def test_every_window_change_triggers_a_fresh_query(seeded):
    agg = CalendarAggregator(seeded, anchor=D(2024, 3, 15))
    agg.refresh()
    agg.toggle_mode()
    assert agg.window.mode == ViewMode.WEEK
    agg.refresh()
    agg.go(1)
    agg.refresh()
    assert seeded.calls.count("select_many") == 3
    assert agg.window.start == D(2024, 3, 17)


def test_fetch_failure_keeps_previous_buckets(seeded):
    agg = CalendarAggregator(seeded, anchor=D(2024, 3, 15))
    agg.refresh()
    before = agg.buckets
    seeded.fail_ops.add("select_many")
    assert agg.refresh() is False
    assert agg.buckets == before


def test_refresh_without_user_keeps_previous_buckets(seeded):
    agg = CalendarAggregator(seeded, anchor=D(2024, 3, 15))
    agg.refresh()
    before = agg.buckets
    seeded.user_id = None
    assert agg.refresh() is False
    assert agg.buckets == before


def test_stale_response_is_dropped(seeded):
    agg = CalendarAggregator(seeded, anchor=D(2024, 3, 15))
    old_token, old_window = agg.begin_fetch()
    old_tasks = agg.fetch_window(old_window)
    agg.go(1)
    new_token, new_window = agg.begin_fetch()
    new_tasks = agg.fetch_window(new_window)

    assert agg.apply(new_token, new_window, new_tasks) is True
    assert agg.apply(old_token, old_window, old_tasks) is False
    assert agg.buckets_window == new_window


def test_response_for_a_window_left_behind_is_dropped(seeded):
    agg = CalendarAggregator(seeded, anchor=D(2024, 3, 15))
    token, window = agg.begin_fetch()
    tasks = agg.fetch_window(window)
    agg.set_mode(ViewMode.WEEK)
    assert agg.apply(token, window, tasks) is False
    assert agg.buckets == {}


def test_today_resets_anchor():
    agg = CalendarAggregator(store=None, anchor=D(2020, 1, 1))
    assert agg.today(D(2024, 3, 15)).anchor == D(2024, 3, 15)
