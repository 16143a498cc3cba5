"""
Early Termination Module (``rental_modules.termination``).

Responsibility
--------------
Lets a tenant end a lease early by spending the advance months left on the
booking, either at once ("leave immediately") or after a countdown that the
scheduled sweep resolves when it runs out.

State machine over a booking's termination sub-state::

    Active --initiate countdown--> TerminationPending --sweep at end--> Completed
    Active --leave immediately-----------------------------------------> Completed
    TerminationPending --leave immediately (override)------------------> Completed
"""

from rental_modules.termination.calculations import (
    CoverageSlot,
    countdown_end_date,
    generate_coverage_schedule,
    order_unpaid,
)
from rental_modules.termination.models import (
    CountdownInfo,
    ReconciliationOutcome,
    SweepResult,
    TerminationResult,
)
from rental_modules.termination.service import TerminationService

__all__ = [
    "CountdownInfo",
    "CoverageSlot",
    "ReconciliationOutcome",
    "SweepResult",
    "TerminationResult",
    "TerminationService",
    "countdown_end_date",
    "generate_coverage_schedule",
    "order_unpaid",
]
