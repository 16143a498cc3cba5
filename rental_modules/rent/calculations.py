"""
Rent Pure Calculation Functions.

- Late fee: ``rate`` of the monthly rent per 30 days overdue, prorated by
  day and rounded to cents
- Overdue checks against an injected "now"
- Month-by-month due dates from move-in up to a date
"""

import math
import secrets
import string
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

from rental_kernel.db.types import ensure_utc, round_money
from rental_kernel.domain.months import add_months

DAYS_PER_LATE_FEE_PERIOD = 30

_RECEIPT_ALPHABET = string.ascii_uppercase + string.digits


def _start_of_day(value: date) -> datetime:
    return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)


def is_payment_overdue(due_date: date, now: datetime) -> bool:
    """Overdue once ``now`` is past the start (UTC midnight) of the due date."""
    return ensure_utc(now) > _start_of_day(due_date)


def days_overdue(due_date: date, now: datetime) -> int:
    """Whole days past the due date, rounded up; never negative."""
    elapsed = ensure_utc(now) - _start_of_day(due_date)
    return max(0, math.ceil(elapsed / timedelta(days=1)))


def calculate_late_fee(
    monthly_rent: Decimal,
    days_late: int,
    rate: Decimal = Decimal("0.05"),
) -> Decimal:
    """
    Late fee for ``days_late`` days overdue.

    fee = monthly_rent * rate * days_late / 30, rounded to 2 places.
    """
    if days_late <= 0:
        return Decimal("0.00")
    fee = monthly_rent * rate * Decimal(days_late) / Decimal(DAYS_PER_LATE_FEE_PERIOD)
    return round_money(fee)


def monthly_due_dates(start_date: date, until: date) -> list[date]:
    """
    Due dates from one month after ``start_date`` up to and including ``until``.

    Each date keeps the move-in day of month, clamped to shorter months.
    """
    due_dates: list[date] = []
    offset = 1
    while True:
        due = add_months(start_date, offset, anchor_day=start_date.day)
        if due > until:
            return due_dates
        due_dates.append(due)
        offset += 1


def generate_receipt_number(prefix: str, now: datetime, token: str | None = None) -> str:
    """``<prefix><epoch millis>-<9 char token>``, e.g. ``ADVANCE-1705312800000-K3J9X0QZ2``."""
    millis = int(now.timestamp() * 1000)
    if token is None:
        token = "".join(secrets.choice(_RECEIPT_ALPHABET) for _ in range(9))
    return f"{prefix}{millis}-{token}"
