"""
Rent Payment Value Objects (``rental_modules.rent.models``).

Pure data definitions with ZERO I/O.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID

from rental_kernel.domain.dtos import RentPaymentStatus


@dataclass(frozen=True)
class PaymentDraft:
    """
    An upcoming month a tenant may pay ahead.

    ``existing_id`` is set when an unpaid record for the month is already
    stored; otherwise the draft has not been persisted.
    """
    booking_id: UUID
    payment_month: str
    due_date: date
    amount: Decimal
    late_fee: Decimal = Decimal("0")
    status: RentPaymentStatus = RentPaymentStatus.PENDING
    existing_id: UUID | None = None

    @property
    def total_amount(self) -> Decimal:
        return self.amount + self.late_fee

    @property
    def is_persisted(self) -> bool:
        return self.existing_id is not None
