"""
Rent Payments Module (``rental_modules.rent``).

Responsibility
--------------
Monthly rent records for a booking: find-or-create by (booking, month),
late-fee assessment, initialization of months elapsed since move-in, and
drafts of upcoming months a tenant may pay ahead.
"""

from rental_modules.rent.calculations import (
    calculate_late_fee,
    days_overdue,
    is_payment_overdue,
)
from rental_modules.rent.models import PaymentDraft
from rental_modules.rent.service import RentPaymentService

__all__ = [
    "PaymentDraft",
    "RentPaymentService",
    "calculate_late_fee",
    "days_overdue",
    "is_payment_overdue",
]
