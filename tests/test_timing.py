"""
Kitchen timing utilities
"""
from datetime import datetime, timedelta, timezone

import pytest

from swingeats.core import timing

T0 = datetime(2026, 10, 19, 18, 0, 0, tzinfo=timezone.utc)


def test_expected_ready_uses_longest_item_plus_buffers():
    expected = timing.compute_expected_ready(T0, [300, 600], prep_buffer=60, expo_buffer=60)
    assert expected == T0 + timedelta(seconds=720)


def test_expected_ready_defaults_missing_cook_times():
    expected = timing.compute_expected_ready(T0, [None, 0], prep_buffer=60, expo_buffer=60, default_cook=300)
    assert expected == T0 + timedelta(seconds=420)
    assert timing.compute_expected_ready(T0, [], prep_buffer=0, expo_buffer=0, default_cook=300) == T0 + timedelta(
        seconds=300
    )


def test_expected_ready_reads_buffers_from_settings():
    # PREP_BUFFER_SEC = EXPO_BUFFER_SEC = 60
    assert timing.compute_expected_ready(T0, [300]) == T0 + timedelta(seconds=420)


def test_drop_at_staggers_short_items_later():
    expected = T0 + timedelta(seconds=720)
    assert timing.compute_drop_at(600, expected, expo_buffer=60) == T0 + timedelta(seconds=60)
    assert timing.compute_drop_at(300, expected, expo_buffer=60) == T0 + timedelta(seconds=360)


def test_naive_datetimes_are_treated_as_utc():
    naive = datetime(2026, 10, 19, 18, 0, 0)
    assert timing.compute_expected_ready(naive, [300], prep_buffer=0, expo_buffer=0) == T0 + timedelta(seconds=300)


@pytest.mark.parametrize(
    "offset, delayed",
    [(119, False), (120, False), (121, True)],
)
def test_is_delayed_boundary_is_strict(offset, delayed):
    now = T0 + timedelta(seconds=offset)
    assert timing.is_delayed(T0, now, grace=120) is delayed


def test_is_delayed_without_estimate():
    assert timing.is_delayed(None, T0) is False


def test_seconds_until_drop_clamps_at_zero():
    assert timing.seconds_until_drop(T0 + timedelta(seconds=90), T0) == 90
    assert timing.seconds_until_drop(T0 - timedelta(seconds=5), T0) == 0
    assert timing.seconds_until_drop(None, T0) == 0


def test_seconds_delayed_counts_past_grace_only():
    assert timing.seconds_delayed(T0, T0 + timedelta(seconds=100), grace=120) == 0
    assert timing.seconds_delayed(T0, T0 + timedelta(seconds=150), grace=120) == 30
    assert timing.seconds_delayed(None, T0) == 0


def test_elapsed_minutes_floors():
    assert timing.elapsed_minutes(T0, T0 + timedelta(seconds=179)) == 2
    assert timing.elapsed_minutes(T0, T0 - timedelta(seconds=30)) == 0


@pytest.mark.parametrize(
    "seconds, text",
    [(0, "00:00"), (-4, "00:00"), (5, "00:05"), (65, "01:05"), (3600, "60:00")],
)
def test_format_countdown(seconds, text):
    assert timing.format_countdown(seconds) == text
