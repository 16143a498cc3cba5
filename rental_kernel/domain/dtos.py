"""
Domain DTOs -- frozen value objects for bookings and rent payments.

Responsibility:
    The immutable shapes that selectors return and services hand back to
    callers.  ORM models convert to these via ``to_dto()``.

Architecture position:
    Kernel > Domain -- pure data definitions with ZERO I/O.

Invariants enforced:
    - All DTOs are ``frozen=True``.
    - All monetary fields use ``Decimal``.
    - A booking's termination sub-state is a tagged variant
      (``Active | TerminationPending | Completed``); the pending variant
      always carries both its timestamps, so the "three optional fields
      that move together" rule holds by construction.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID


# Actor recorded on rows written by scheduled jobs rather than a person
SYSTEM_ACTOR_ID = UUID("00000000-0000-0000-0000-000000000000")


class BookingStatus(str, Enum):
    """Booking lifecycle status."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class BookingPaymentStatus(str, Enum):
    """Settlement status of the booking's initial payment."""

    PENDING = "pending"
    PARTIAL = "partial"
    PAID = "paid"
    REFUNDED = "refunded"


class RentPaymentStatus(str, Enum):
    """Status of a single monthly rent payment."""

    PENDING = "pending"
    PAID = "paid"
    OVERDUE = "overdue"
    PARTIAL = "partial"
    PENDING_OWNER_CONFIRMATION = "pending_owner_confirmation"
    REJECTED = "rejected"


# Payments that advance months may be spent on during reconciliation
UNPAID_STATUSES: frozenset[str] = frozenset({
    RentPaymentStatus.PENDING.value,
    RentPaymentStatus.OVERDUE.value,
    RentPaymentStatus.REJECTED.value,
})


class TerminationMode(str, Enum):
    """How a pending termination resolves."""

    COUNTDOWN = "countdown"


# =============================================================================
# Termination sub-state
# =============================================================================


@dataclass(frozen=True)
class Active:
    """Lease is running with no termination scheduled."""


@dataclass(frozen=True)
class TerminationPending:
    """A countdown is running; the sweep completes the lease at ``end_date``."""

    initiated_at: datetime
    end_date: datetime
    mode: TerminationMode = TerminationMode.COUNTDOWN


@dataclass(frozen=True)
class Completed:
    """Lease has ended."""

    completed_at: datetime | None = None


TerminationState = Active | TerminationPending | Completed


# =============================================================================
# Records
# =============================================================================


@dataclass(frozen=True)
class Booking:
    """Immutable snapshot of a booking."""

    id: UUID
    tenant_id: UUID
    owner_id: UUID
    property_id: UUID
    monthly_rent: Decimal
    start_date: date
    status: BookingStatus
    payment_status: BookingPaymentStatus
    termination: TerminationState
    advance_deposit_months: int | None = None
    remaining_advance_months: int | None = None
    tenant_name: str = ""
    owner_name: str = ""
    property_title: str = ""
    completed_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_active(self) -> bool:
        """Approved and paid: eligible for advance-deposit use."""
        return (
            self.status == BookingStatus.APPROVED
            and self.payment_status == BookingPaymentStatus.PAID
        )

    @property
    def available_advance_months(self) -> int:
        """Remaining months, defaulting to the granted total when unset."""
        if self.remaining_advance_months is not None:
            return self.remaining_advance_months
        return self.advance_deposit_months or 0

    @property
    def has_countdown(self) -> bool:
        return isinstance(self.termination, TerminationPending)


@dataclass(frozen=True)
class RentPayment:
    """Immutable snapshot of a monthly rent payment."""

    id: UUID
    booking_id: UUID
    tenant_id: UUID
    owner_id: UUID
    property_id: UUID
    amount: Decimal
    late_fee: Decimal
    total_amount: Decimal
    payment_month: str
    due_date: date
    status: RentPaymentStatus
    receipt_number: str
    paid_date: datetime | None = None
    payment_method: str | None = None
    notes: str | None = None

    @property
    def is_paid(self) -> bool:
        return self.status == RentPaymentStatus.PAID
