"""
Typed Exception Hierarchy for the Rental Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers of the advance-deposit and termination services must be able to tell
a business-rule rejection ("no advance deposit on this booking") from an I/O
failure without parsing message strings.  Every error therefore:
  1. Has a TYPED exception class (catch by type, not message)
  2. Has a CODE attribute (machine-readable, API-safe)
  3. Carries structured DATA (not just a message string)

Public service methods convert these exceptions into result objects at their
boundary (``success=False``, ``error``, ``error_code``), so UI handlers never
see a raised exception.  Inside the services they propagate normally.

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

All exceptions inherit from RentalKernelError:

    RentalKernelError (base)
    |
    +-- BookingError
    |   +-- BookingNotFoundError
    |   +-- UnauthorizedTenantError
    |   +-- BookingNotActiveError
    |
    +-- AdvanceDepositError
    |   +-- NoAdvanceDepositError
    |   +-- InsufficientAdvanceMonthsError
    |   +-- NoRemainingAdvanceMonthsError
    |   +-- InvalidMonthsRequestedError
    |   +-- AdvanceMonthsInvariantError
    |
    +-- TerminationError
    |   +-- TerminationAlreadyActiveError
    |
    +-- PaymentError
    |   +-- DuplicatePaymentMonthError
    |   +-- InvalidPaymentMonthError
    |
    +-- ConcurrencyError
    |   +-- OptimisticLockError
    |
    +-- BatchError
        +-- TaskNotRegisteredError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Booking         | BOOKING_NOT_FOUND           | Booking ID doesn't exist
                | UNAUTHORIZED_TENANT         | Caller is not the booking's tenant
                | BOOKING_NOT_ACTIVE          | Booking is not approved and paid
----------------|-----------------------------|-----------------------------------------
Advance deposit | NO_ADVANCE_DEPOSIT          | Booking was granted no advance months
                | INSUFFICIENT_ADVANCE_MONTHS | Requested more months than remain
                | NO_REMAINING_ADVANCE_MONTHS | Counter already at zero
                | INVALID_MONTHS_REQUESTED    | Requested fewer than one month
                | ADVANCE_MONTHS_INVARIANT    | 0 <= remaining <= total would break
----------------|-----------------------------|-----------------------------------------
Termination     | TERMINATION_ALREADY_ACTIVE  | Countdown requested while one runs
----------------|-----------------------------|-----------------------------------------
Payment         | DUPLICATE_PAYMENT_MONTH     | (booking, month) record already exists
                | INVALID_PAYMENT_MONTH       | Month key is not YYYY-MM
----------------|-----------------------------|-----------------------------------------
Concurrency     | OPTIMISTIC_LOCK_CONFLICT    | Booking row changed under us
----------------|-----------------------------|-----------------------------------------
Batch           | TASK_NOT_REGISTERED         | Unknown batch task type

===============================================================================
HANDLING PATTERNS
===============================================================================

1. CATCH SPECIFIC EXCEPTIONS (not base classes):

    try:
        ledger.deduct(booking, months)
    except InsufficientAdvanceMonthsError as e:
        show(f"Only {e.available} month(s) left")

2. CATEGORY HANDLING:

    except ConcurrencyError:
        retry()          # see BookingMutationGuard
    except RentalKernelError as e:
        return failure(e.code, str(e))
"""


class RentalKernelError(Exception):
    """
    Base exception for all rental kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "RENTAL_KERNEL_ERROR"


# Booking-related exceptions


class BookingError(RentalKernelError):
    """Base exception for booking-related errors."""

    code: str = "BOOKING_ERROR"


class BookingNotFoundError(BookingError):
    """Booking with given ID was not found."""

    code: str = "BOOKING_NOT_FOUND"

    def __init__(self, booking_id: str):
        self.booking_id = booking_id
        super().__init__("Booking not found")


class UnauthorizedTenantError(BookingError):
    """The acting tenant does not own the booking."""

    code: str = "UNAUTHORIZED_TENANT"

    def __init__(self, booking_id: str, tenant_id: str):
        self.booking_id = booking_id
        self.tenant_id = tenant_id
        super().__init__("Unauthorized: You can only end your own rental stay")


class BookingNotActiveError(BookingError):
    """Booking is not in the approved/paid state."""

    code: str = "BOOKING_NOT_ACTIVE"

    def __init__(self, booking_id: str, status: str, payment_status: str):
        self.booking_id = booking_id
        self.status = status
        self.payment_status = payment_status
        super().__init__(
            "Can only end rental stay for active approved bookings"
        )


# Advance-deposit exceptions


class AdvanceDepositError(RentalKernelError):
    """Base exception for advance-deposit ledger errors."""

    code: str = "ADVANCE_DEPOSIT_ERROR"


class NoAdvanceDepositError(AdvanceDepositError):
    """Booking was not granted any advance deposit months."""

    code: str = "NO_ADVANCE_DEPOSIT"

    def __init__(self, booking_id: str, message: str | None = None):
        self.booking_id = booking_id
        super().__init__(
            message or "No advance deposit months available for this booking"
        )


class InsufficientAdvanceMonthsError(AdvanceDepositError):
    """More months were requested than remain on the booking."""

    code: str = "INSUFFICIENT_ADVANCE_MONTHS"

    def __init__(self, booking_id: str, available: int, requested: int):
        self.booking_id = booking_id
        self.available = available
        self.requested = requested
        super().__init__(
            f"Insufficient advance months. Available: {available}, "
            f"Requested: {requested}"
        )


class NoRemainingAdvanceMonthsError(AdvanceDepositError):
    """The remaining advance month counter is already zero."""

    code: str = "NO_REMAINING_ADVANCE_MONTHS"

    def __init__(self, booking_id: str):
        self.booking_id = booking_id
        super().__init__("No remaining advance deposit months available")


class InvalidMonthsRequestedError(AdvanceDepositError):
    """A deduction of fewer than one month was requested."""

    code: str = "INVALID_MONTHS_REQUESTED"

    def __init__(self, requested: int):
        self.requested = requested
        super().__init__(f"Months to use must be at least 1, got {requested}")


class AdvanceMonthsInvariantError(AdvanceDepositError):
    """
    A write would break 0 <= remaining_advance_months <= advance_deposit_months.
    """

    code: str = "ADVANCE_MONTHS_INVARIANT"

    def __init__(self, booking_id: str, remaining: int, total: int | None):
        self.booking_id = booking_id
        self.remaining = remaining
        self.total = total
        super().__init__(
            f"Advance month counter out of range for booking {booking_id}: "
            f"remaining={remaining}, total={total}"
        )


# Termination exceptions


class TerminationError(RentalKernelError):
    """Base exception for early-termination errors."""

    code: str = "TERMINATION_ERROR"


class TerminationAlreadyActiveError(TerminationError):
    """A termination countdown is already running for the booking."""

    code: str = "TERMINATION_ALREADY_ACTIVE"

    def __init__(self, booking_id: str):
        self.booking_id = booking_id
        super().__init__(
            'Termination already initiated. Use "Leave Immediately" to end '
            "your stay now."
        )


# Payment exceptions


class PaymentError(RentalKernelError):
    """Base exception for rent payment errors."""

    code: str = "PAYMENT_ERROR"


class DuplicatePaymentMonthError(PaymentError):
    """A payment record already exists for (booking_id, payment_month)."""

    code: str = "DUPLICATE_PAYMENT_MONTH"

    def __init__(self, booking_id: str, payment_month: str):
        self.booking_id = booking_id
        self.payment_month = payment_month
        super().__init__(
            f"Payment for {payment_month} already exists on booking {booking_id}"
        )


class InvalidPaymentMonthError(PaymentError):
    """Payment month key is not in YYYY-MM form."""

    code: str = "INVALID_PAYMENT_MONTH"

    def __init__(self, payment_month: str):
        self.payment_month = payment_month
        super().__init__(f"Invalid payment month: {payment_month!r}")


# Concurrency exceptions


class ConcurrencyError(RentalKernelError):
    """Base exception for concurrency-related errors."""

    code: str = "CONCURRENCY_ERROR"


class OptimisticLockError(ConcurrencyError):
    """Optimistic locking conflict detected."""

    code: str = "OPTIMISTIC_LOCK_CONFLICT"

    def __init__(self, entity_type: str, entity_id: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(
            f"Optimistic lock conflict on {entity_type} {entity_id}: "
            "entity was modified by another transaction"
        )


# Batch exceptions


class BatchError(RentalKernelError):
    """Base exception for batch processing errors."""

    code: str = "BATCH_ERROR"


class TaskNotRegisteredError(BatchError):
    """No batch task is registered under the requested type."""

    code: str = "TASK_NOT_REGISTERED"

    def __init__(self, task_type: str, available: tuple[str, ...]):
        self.task_type = task_type
        self.available = available
        super().__init__(
            f"No task registered for type '{task_type}'. "
            f"Available: {list(available)}"
        )


# Reported in result objects when an unexpected (non-kernel) exception
# aborted the operation
INTERNAL_ERROR_CODE = "INTERNAL_ERROR"
