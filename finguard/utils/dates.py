from __future__ import annotations

import datetime as dt


def utc_day(value: dt.datetime) -> dt.date:
    """Calendar day of a timestamp in UTC (naive timestamps are taken as UTC)."""
    if value.tzinfo is None:
        return value.date()
    return value.astimezone(dt.timezone.utc).date()


def same_day(a: dt.datetime, b: dt.datetime) -> bool:
    return utc_day(a) == utc_day(b)


def utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


__all__ = ["utc_day", "same_day", "utcnow"]
