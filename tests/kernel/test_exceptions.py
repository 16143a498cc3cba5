"""Exception hierarchy: codes, categories and structured attributes."""

import pytest

from rental_kernel.exceptions import (
    AdvanceDepositError,
    AdvanceMonthsInvariantError,
    BookingError,
    BookingNotActiveError,
    BookingNotFoundError,
    ConcurrencyError,
    DuplicatePaymentMonthError,
    InsufficientAdvanceMonthsError,
    InvalidMonthsRequestedError,
    NoAdvanceDepositError,
    NoRemainingAdvanceMonthsError,
    OptimisticLockError,
    RentalKernelError,
    TaskNotRegisteredError,
    TerminationAlreadyActiveError,
    UnauthorizedTenantError,
)


ALL_ERRORS = [
    (BookingNotFoundError("b1"), "BOOKING_NOT_FOUND", BookingError),
    (UnauthorizedTenantError("b1", "t1"), "UNAUTHORIZED_TENANT", BookingError),
    (BookingNotActiveError("b1", "pending", "paid"), "BOOKING_NOT_ACTIVE", BookingError),
    (NoAdvanceDepositError("b1"), "NO_ADVANCE_DEPOSIT", AdvanceDepositError),
    (InsufficientAdvanceMonthsError("b1", 1, 2), "INSUFFICIENT_ADVANCE_MONTHS", AdvanceDepositError),
    (NoRemainingAdvanceMonthsError("b1"), "NO_REMAINING_ADVANCE_MONTHS", AdvanceDepositError),
    (InvalidMonthsRequestedError(0), "INVALID_MONTHS_REQUESTED", AdvanceDepositError),
    (AdvanceMonthsInvariantError("b1", -1, 3), "ADVANCE_MONTHS_INVARIANT", AdvanceDepositError),
    (DuplicatePaymentMonthError("b1", "2024-02"), "DUPLICATE_PAYMENT_MONTH", RentalKernelError),
    (OptimisticLockError("Booking", "b1"), "OPTIMISTIC_LOCK_CONFLICT", ConcurrencyError),
    (TaskNotRegisteredError("x", ("y",)), "TASK_NOT_REGISTERED", RentalKernelError),
]


@pytest.mark.parametrize("error,code,category", ALL_ERRORS)
def test_codes_and_categories(error, code, category):
    assert error.code == code
    assert isinstance(error, category)
    assert isinstance(error, RentalKernelError)


def test_codes_are_unique():
    codes = [code for _, code, _ in ALL_ERRORS]
    assert len(codes) == len(set(codes))


def test_insufficient_months_carries_counts():
    error = InsufficientAdvanceMonthsError("b1", available=1, requested=3)
    assert (error.available, error.requested) == (1, 3)
    assert "Available: 1" in str(error)


def test_termination_already_active_points_to_immediate_leave():
    assert "Leave Immediately" in str(TerminationAlreadyActiveError("b1"))


def test_no_advance_deposit_accepts_custom_message():
    error = NoAdvanceDepositError("b1", "This property does not have advance deposit.")
    assert str(error) == "This property does not have advance deposit."
