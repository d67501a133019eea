"""constants/periods.py — Time windows used by gains leaderboards and records."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone


PERIODS: tuple[str, ...] = ("day", "week", "month", "year")

_PERIOD_LENGTHS: dict[str, timedelta] = {
    "day":   timedelta(days=1),
    "week":  timedelta(days=7),
    "month": timedelta(days=31),
    "year":  timedelta(days=365),
}


def get_period_start(period: str, now: datetime | None = None) -> datetime:
    """Returns the start of `period` counted back from `now` (UTC)."""
    if period not in _PERIOD_LENGTHS:
        raise ValueError(f"Unknown period: {period!r}")
    if now is None:
        now = datetime.now(timezone.utc)
    return now - _PERIOD_LENGTHS[period]
