"""Tests for the per-todo countdown timer."""
import pytest

from services.timer import PRESETS, CountdownTimer, TimerState, format_time


@pytest.mark.parametrize("seconds,expected", [
    (0, "00:00"),
    (59, "00:59"),
    (25 * 60, "25:00"),
    (3600, "01:00:00"),
    (3 * 3600 + 61, "03:01:01"),
    (-5, "00:00"),
])
def test_format_time(seconds, expected):
    assert format_time(seconds) == expected


def test_preset_sets_initial_value():
    assert CountdownTimer(preset_minutes=25).display == "25:00"
    assert CountdownTimer(initial_seconds=90).remaining == 90
    assert CountdownTimer().remaining == 0


def test_start_with_zero_is_noop():
    t = CountdownTimer()
    assert t.start() is False
    assert t.state == TimerState.IDLE


def test_tick_counts_down_only_while_running():
    t = CountdownTimer(initial_seconds=3)
    t.tick()
    assert t.remaining == 3
    t.start()
    t.tick()
    assert t.remaining == 2
    t.pause()
    t.tick()
    assert t.remaining == 2
    t.resume()
    t.tick()
    assert t.remaining == 1


def test_reaching_zero_finishes_and_fires_once():
    fired = []
    t = CountdownTimer(initial_seconds=2, on_complete=lambda: fired.append(1))
    t.start()
    t.tick()
    t.tick()
    t.tick()
    assert t.remaining == 0
    assert t.state == TimerState.FINISHED
    assert fired == [1]


def test_reset_prefers_preset_then_initial():
    t = CountdownTimer(preset_minutes=5, initial_seconds=30)
    t.start()
    t.tick()
    t.reset()
    assert t.remaining == 300 and t.state == TimerState.IDLE
    t = CountdownTimer(initial_seconds=30)
    t.set_custom(1, 15)
    t.reset()
    assert t.remaining == 30


def test_preset_and_custom_stop_the_timer():
    t = CountdownTimer(initial_seconds=10)
    t.start()
    t.set_preset(PRESETS[0])
    assert t.state == TimerState.IDLE and t.remaining == 300
    t.start()
    t.set_custom(2, 5)
    assert t.state == TimerState.IDLE and t.remaining == 125
