"""
Advance Deposit Result Objects (``rental_modules.advance_deposit.models``).

Responsibility
--------------
Frozen value objects returned by ``AdvanceDepositService``.  Business-rule
rejections come back as ``success=False`` with a human-readable ``error``
and the machine-readable ``error_code`` of the kernel exception that
caused them.

Architecture position
---------------------
**Modules layer** -- pure data definitions with ZERO I/O.
"""

from dataclasses import dataclass

from rental_kernel.domain.dtos import RentPayment


@dataclass(frozen=True)
class AdvanceUsageResult:
    """Outcome of spending advance months."""
    success: bool
    remaining_advance_months: int | None = None
    auto_completed: bool = False
    message: str | None = None
    error: str | None = None
    error_code: str | None = None


@dataclass(frozen=True)
class AdvanceMonthPaymentResult:
    """Outcome of covering one rent month from the advance deposit."""
    used_advance_month: bool
    remaining_advance_months: int | None = None
    payment: RentPayment | None = None
    auto_completed: bool = False
    error: str | None = None
    error_code: str | None = None


@dataclass(frozen=True)
class AdvanceDepositInfo:
    """Read-only advance deposit summary; zero counters are reported as None."""
    has_advance_deposit: bool
    advance_deposit_months: int | None = None
    remaining_advance_months: int | None = None
