"""Clock helpers for job timestamps and durations."""

from __future__ import annotations

import datetime as dt


def utcnow() -> dt.datetime:
    """Return an aware UTC timestamp; the default queue clock."""
    return dt.datetime.now(dt.UTC)


def seconds_between(start: dt.datetime | None, end: dt.datetime) -> float:
    """Return the seconds from *start* to *end*, or ``0.0`` without a start.

    Examples
    --------
    >>> t0 = dt.datetime(2024, 3, 16, tzinfo=dt.UTC)
    >>> seconds_between(t0, t0 + dt.timedelta(seconds=1.5))
    1.5
    >>> seconds_between(None, t0)
    0.0

    """
    if start is None:
        return 0.0
    return (end - start).total_seconds()
