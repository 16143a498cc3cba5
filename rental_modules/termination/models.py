"""
Termination Result Objects (``rental_modules.termination.models``).

Pure data definitions with ZERO I/O, returned by ``TerminationService``.
"""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class TerminationResult:
    """Outcome of ``end_rental_stay``."""
    success: bool
    immediate: bool = False
    months_used: int | None = None
    remaining_advance_months: int | None = None
    payments_covered: int | None = None
    days_remaining: int | None = None
    termination_end_date: datetime | None = None
    message: str | None = None
    error: str | None = None
    error_code: str | None = None


@dataclass(frozen=True)
class ReconciliationOutcome:
    """What an immediate-leave reconciliation covered."""
    months_used: int
    existing_covered: int
    future_covered: int
    shortfall: int = 0

    @property
    def payments_covered(self) -> int:
        return self.existing_covered + self.future_covered


@dataclass(frozen=True)
class SweepResult:
    """Counters from one countdown sweep."""
    processed: int = 0
    removed: int = 0
    errors: int = 0


@dataclass(frozen=True)
class CountdownInfo:
    """Read-only countdown status for display."""
    has_countdown: bool
    days_remaining: int | None = None
    termination_end_date: datetime | None = None
    remaining_months: int | None = None
