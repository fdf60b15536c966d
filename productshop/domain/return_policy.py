# productshop/domain/return_policy.py
from datetime import datetime, timedelta, timezone


def _as_utc(value: datetime) -> datetime:
    # some backends (sqlite) hand back naive datetimes
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def return_deadline(changed_at: datetime, window: timedelta) -> datetime:
    return _as_utc(changed_at) + window


def is_return_window_open(changed_at: datetime, now: datetime, window: timedelta) -> bool:
    """True while ``now`` is at or before ``changed_at + window``."""
    return _as_utc(now) <= return_deadline(changed_at, window)
