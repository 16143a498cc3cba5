"""
Termination Pure Calculation Functions.

- Countdown end date and days remaining
- Oldest-first ordering of unpaid payments
- The coverage schedule: which future months the leftover advance months
  pay for
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date, datetime
from typing import Protocol, TypeVar

from rental_kernel.domain.dtos import UNPAID_STATUSES, RentPaymentStatus
from rental_kernel.domain.months import add_months, days_until, month_key


class _HasDueDate(Protocol):
    status: str
    due_date: date


P = TypeVar("P", bound=_HasDueDate)


def countdown_end_date(now: datetime, months: int) -> datetime:
    """``now`` plus ``months`` calendar months, day clamped to the target month."""
    return add_months(now, months)


def days_remaining(end_date: datetime, now: datetime) -> int:
    """Whole days left in a countdown, rounded up and floored at 0."""
    return max(0, days_until(end_date, now))


def order_unpaid(payments: Iterable[P]) -> list[P]:
    """
    Unpaid payments (pending, overdue, rejected), oldest due date first.

    The sort is stable, so payments sharing a due date keep their input order.
    """
    unpaid = [p for p in payments if _status_value(p.status) in UNPAID_STATUSES]
    return sorted(unpaid, key=lambda p: p.due_date)


def _status_value(status) -> str:
    return status.value if isinstance(status, RentPaymentStatus) else status


@dataclass(frozen=True)
class CoverageSlot:
    """One month the advance deposit will pay for."""
    payment_month: str
    due_date: date
    existing: bool


def generate_coverage_schedule(
    first_due: date,
    anchor_day: int,
    count: int,
    existing: Mapping[str, str],
) -> tuple[CoverageSlot, ...]:
    """
    The next ``count`` months, starting at ``first_due``, not yet paid.

    Args:
        first_due: Due date of the first candidate month.
        anchor_day: The lease's day-of-month; each due date uses it, clamped
            to the length of its month.
        count: Number of months to cover.
        existing: ``payment_month -> status`` of records already stored.

    Months stored as ``paid`` are skipped without counting.  Months stored
    with any other status are returned with ``existing=True`` (to be settled
    in place); the rest are new.  The walk visits at most
    ``count + (number of paid months)`` months, so it always terminates.
    """
    if count <= 0:
        return ()
    paid = {m for m, s in existing.items() if _status_value(s) == RentPaymentStatus.PAID.value}
    slots: list[CoverageSlot] = []
    offset = 0
    while len(slots) < count:
        due = add_months(first_due, offset, anchor_day=anchor_day)
        offset += 1
        key = month_key(due)
        if key in paid:
            continue
        slots.append(CoverageSlot(payment_month=key, due_date=due, existing=key in existing))
    return tuple(slots)
