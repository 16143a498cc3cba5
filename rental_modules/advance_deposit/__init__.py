"""
Advance Deposit Module (``rental_modules.advance_deposit``).

Responsibility
--------------
The advance-deposit ledger: a tenant pre-pays a number of rent months at
booking time; this module tracks how many remain, spends them against rent
months, and completes the booking when the last one is used.

Invariants enforced
-------------------
* 0 <= remaining_advance_months <= advance_deposit_months.
* Auto-completion fires only on the transition to exactly zero.
* A month already paid never consumes an advance month.
"""

from rental_modules.advance_deposit.models import (
    AdvanceDepositInfo,
    AdvanceMonthPaymentResult,
    AdvanceUsageResult,
)
from rental_modules.advance_deposit.service import AdvanceDepositService

__all__ = [
    "AdvanceDepositInfo",
    "AdvanceDepositService",
    "AdvanceMonthPaymentResult",
    "AdvanceUsageResult",
]
