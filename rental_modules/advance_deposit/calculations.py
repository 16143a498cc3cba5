"""
Advance Deposit Pure Calculation Functions.

- Counter arithmetic for spending advance months
- The auto-completion predicate
- Summary projection for display
"""

from rental_kernel.domain.dtos import Booking, BookingPaymentStatus, BookingStatus
from rental_kernel.exceptions import (
    InsufficientAdvanceMonthsError,
    InvalidMonthsRequestedError,
    NoAdvanceDepositError,
)


def remaining_after_use(
    booking_id: str,
    total: int | None,
    remaining: int | None,
    months_to_use: int,
) -> int:
    """
    Counter value after spending ``months_to_use`` months.

    ``remaining`` defaults to ``total`` when unset.

    Raises:
        InvalidMonthsRequestedError: ``months_to_use`` < 1.
        NoAdvanceDepositError: no months were granted.
        InsufficientAdvanceMonthsError: fewer than ``months_to_use`` remain.
    """
    if months_to_use < 1:
        raise InvalidMonthsRequestedError(months_to_use)
    if not total:
        raise NoAdvanceDepositError(booking_id)
    current = remaining if remaining is not None else total
    if current < months_to_use:
        raise InsufficientAdvanceMonthsError(booking_id, current, months_to_use)
    return current - months_to_use


def should_auto_complete(
    status: str,
    payment_status: str,
    remaining: int | None,
) -> bool:
    """True for an approved, paid booking whose counter is set and exactly 0."""
    return (
        status == BookingStatus.APPROVED.value
        and payment_status == BookingPaymentStatus.PAID.value
        and remaining is not None
        and remaining == 0
    )


def deposit_summary(booking: Booking) -> tuple[int | None, int | None]:
    """(total, remaining) with zero reported as ``None``."""
    total = booking.advance_deposit_months or 0
    remaining = booking.available_advance_months
    return (total if total > 0 else None, remaining if remaining > 0 else None)
