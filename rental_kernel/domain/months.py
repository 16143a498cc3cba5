"""
Calendar-month arithmetic for rent schedules.

Responsibility:
    Month keys (``YYYY-MM``), month addition with day-of-month anchoring,
    the next-due-date rule, and day-count helpers used by countdowns.

Architecture position:
    Kernel > Domain -- pure functions, zero I/O.

Invariants enforced:
    - Month arithmetic is calendar based, never a fixed day count.
    - A due date keeps the lease's day-of-month anchor, clamped to the last
      day of shorter months (a lease starting on the 31st is due on
      30 April and 29 February in leap years).
"""

from __future__ import annotations

import calendar
import math
import re
from datetime import date, datetime, timedelta
from typing import TypeVar

from rental_kernel.exceptions import InvalidPaymentMonthError

_MONTH_KEY_RE = re.compile(r"^(\d{4})-(0[1-9]|1[0-2])$")

D = TypeVar("D", date, datetime)


def last_day_of_month(year: int, month: int) -> int:
    """Number of days in the given month."""
    return calendar.monthrange(year, month)[1]


def month_key(value: date) -> str:
    """``YYYY-MM`` key for the month containing ``value``."""
    return f"{value.year:04d}-{value.month:02d}"


def parse_month_key(key: str) -> tuple[int, int]:
    """
    Split a ``YYYY-MM`` key into (year, month).

    Raises:
        InvalidPaymentMonthError: If the key is malformed.
    """
    match = _MONTH_KEY_RE.match(key or "")
    if match is None:
        raise InvalidPaymentMonthError(key)
    return int(match.group(1)), int(match.group(2))


def first_day_of_month_key(key: str) -> date:
    """The first calendar day of a ``YYYY-MM`` key."""
    year, month = parse_month_key(key)
    return date(year, month, 1)


def add_months(value: D, months: int, anchor_day: int | None = None) -> D:
    """
    Move ``value`` by ``months`` calendar months.

    The resulting day is ``anchor_day`` (default: ``value.day``) clamped to
    the length of the target month.  Works for ``date`` and ``datetime``;
    the time of day and tzinfo of a datetime are preserved.
    """
    total = value.year * 12 + (value.month - 1) + months
    year, month_index = divmod(total, 12)
    month = month_index + 1
    day = min(anchor_day or value.day, last_day_of_month(year, month))
    return value.replace(year=year, month=month, day=day)


def next_due_date(lease_start: date, last_paid: date | None = None) -> date:
    """
    Next rent due date.

    One calendar month after ``last_paid`` (or after ``lease_start`` when
    nothing has been paid), on the lease's day-of-month anchor.
    """
    base = last_paid or lease_start
    return add_months(base, 1, anchor_day=lease_start.day)


def days_until(end: datetime, now: datetime) -> int:
    """Whole days from ``now`` to ``end``, rounded up (negative when past)."""
    return math.ceil((end - now) / timedelta(days=1))
