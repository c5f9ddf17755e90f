"""
SwingEats — Kitchen timing utilities

Pure functions over UTC timestamps and second durations. Every function that
depends on the wall clock takes an optional ``now`` so callers (and tests) can
pin it. Buffer defaults come from settings:

    expected_ready = created_at + max(cook) + PREP_BUFFER_SEC + EXPO_BUFFER_SEC
    drop_at        = expected_ready - (item_cook + EXPO_BUFFER_SEC)
    delayed        ⇔ now > expected_ready + DELAY_GRACE_SEC
"""
from datetime import datetime, timedelta, timezone
from typing import Iterable

from swingeats.core.config import get_settings

settings = get_settings()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes, convert aware ones to UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _or_default(value: int | None, default: int) -> int:
    return default if value is None else value


def compute_expected_ready(
    created_at: datetime,
    cook_seconds: Iterable[int | None],
    *,
    prep_buffer: int | None = None,
    expo_buffer: int | None = None,
    default_cook: int | None = None,
) -> datetime:
    """When an order should be ready: its longest item plus both buffers."""
    prep = _or_default(prep_buffer, settings.PREP_BUFFER_SEC)
    expo = _or_default(expo_buffer, settings.EXPO_BUFFER_SEC)
    fallback = _or_default(default_cook, settings.DEFAULT_COOK_SECONDS)

    durations = [c or fallback for c in cook_seconds]
    longest = max(durations) if durations else fallback
    return ensure_utc(created_at) + timedelta(seconds=longest + prep + expo)


def compute_drop_at(
    item_cook_seconds: int,
    expected_ready: datetime,
    *,
    expo_buffer: int | None = None,
) -> datetime:
    """Latest moment an item can start cooking and still finish with its order."""
    expo = _or_default(expo_buffer, settings.EXPO_BUFFER_SEC)
    return ensure_utc(expected_ready) - timedelta(seconds=item_cook_seconds + expo)


def is_delayed(
    expected_ready_at: datetime | None,
    now: datetime | None = None,
    *,
    grace: int | None = None,
) -> bool:
    if expected_ready_at is None:
        return False
    grace_sec = _or_default(grace, settings.DELAY_GRACE_SEC)
    threshold = ensure_utc(expected_ready_at) + timedelta(seconds=grace_sec)
    return ensure_utc(now or utcnow()) > threshold


def seconds_until_drop(drop_at: datetime | None, now: datetime | None = None) -> int:
    if drop_at is None:
        return 0
    diff = (ensure_utc(drop_at) - ensure_utc(now or utcnow())).total_seconds()
    return max(0, int(diff))


def seconds_delayed(
    expected_ready_at: datetime | None,
    now: datetime | None = None,
    *,
    grace: int | None = None,
) -> int:
    if expected_ready_at is None:
        return 0
    grace_sec = _or_default(grace, settings.DELAY_GRACE_SEC)
    threshold = ensure_utc(expected_ready_at) + timedelta(seconds=grace_sec)
    diff = (ensure_utc(now or utcnow()) - threshold).total_seconds()
    return max(0, int(diff))


def elapsed_minutes(created_at: datetime, now: datetime | None = None) -> int:
    diff = (ensure_utc(now or utcnow()) - ensure_utc(created_at)).total_seconds()
    return max(0, int(diff // 60))


def format_countdown(seconds: int) -> str:
    """MM:SS, or 00:00 once the countdown has run out."""
    if seconds <= 0:
        return "00:00"
    mins, secs = divmod(int(seconds), 60)
    return f"{mins:02d}:{secs:02d}"
