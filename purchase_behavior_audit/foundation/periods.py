"""Calendar arithmetic shared by the cohort and interval engines.

All differences are computed on calendar dates, not on elapsed 24-hour
spans: an order placed at 23:50 and delivered at 00:10 the next day counts
as one day. Timezone-aware timestamps are converted to UTC before their date
is taken, so every timestamp in a run lands on the same calendar.

Notes
-----
**Timezone Assumptions**: mixing naive and timezone-aware timestamps is not
supported; naive values are taken as already being in UTC.
"""

from __future__ import annotations

from datetime import date, datetime, timezone


def calendar_date(ts: datetime) -> date:
    """Return the UTC calendar date of ``ts``."""
    if ts.tzinfo is not None:
        ts = ts.astimezone(timezone.utc)
    return ts.date()


def days_between(later: datetime, earlier: datetime) -> int:
    """Whole calendar days from ``earlier`` to ``later`` (may be negative).

    >>> days_between(datetime(2024, 1, 11, 8), datetime(2024, 1, 1, 22))
    10
    """
    return (calendar_date(later) - calendar_date(earlier)).days


def quarter_start(ts: datetime | date) -> date:
    """First day of the calendar quarter containing ``ts``.

    >>> quarter_start(datetime(2024, 5, 17))
    datetime.date(2024, 4, 1)
    """
    day = calendar_date(ts) if isinstance(ts, datetime) else ts
    start_month = ((day.month - 1) // 3) * 3 + 1
    return date(day.year, start_month, 1)


def quarter_label(ts: datetime | date) -> str:
    """Label of the quarter containing ``ts`` in ``YYYY-Qn`` form.

    >>> quarter_label(date(2023, 11, 2))
    '2023-Q4'
    """
    start = quarter_start(ts)
    return f"{start.year}-Q{(start.month - 1) // 3 + 1}"


def _quarter_index(day: date) -> int:
    return day.year * 4 + (day.month - 1) // 3


def quarters_between(later: datetime | date, earlier: datetime | date) -> int:
    """Number of quarter boundaries crossed from ``earlier`` to ``later``.

    Two dates in the same quarter are 0 apart; 31 March and 1 April are
    1 apart.

    >>> quarters_between(date(2024, 4, 1), date(2024, 3, 31))
    1
    >>> quarters_between(date(2025, 1, 15), date(2024, 2, 1))
    4
    """
    return _quarter_index(quarter_start(later)) - _quarter_index(quarter_start(earlier))
