"""
Module: rental_kernel.selectors.payment_selector
Responsibility: Read access to a booking's rent payments (the payment ledger).

Invariants enforced:
    - ``payments_for_booking`` orders by ``due_date`` descending, most recent
      first; ties break on ``payment_month`` then id so ordering is total.
"""

from datetime import date
from uuid import UUID

from sqlalchemy import select

from rental_kernel.domain.dtos import RentPayment
from rental_kernel.domain.months import next_due_date
from rental_kernel.models.rent_payment import RentPaymentModel
from rental_kernel.selectors.base import BaseSelector


class PaymentSelector(BaseSelector[RentPaymentModel]):
    """Queries over the rent_payments table."""

    def _for_booking_stmt(self, booking_id: UUID):
        return (
            select(RentPaymentModel)
            .where(RentPaymentModel.booking_id == booking_id)
            .order_by(
                RentPaymentModel.due_date.desc(),
                RentPaymentModel.payment_month.desc(),
                RentPaymentModel.id,
            )
        )

    def payment_models_for_booking(self, booking_id: UUID) -> list[RentPaymentModel]:
        return list(self.session.scalars(self._for_booking_stmt(booking_id)))

    def payments_for_booking(self, booking_id: UUID) -> list[RentPayment]:
        """All payments for a booking, most recent due date first."""
        return [m.to_dto() for m in self.payment_models_for_booking(booking_id)]

    def find_model_by_month(
        self, booking_id: UUID, payment_month: str,
    ) -> RentPaymentModel | None:
        stmt = select(RentPaymentModel).where(
            RentPaymentModel.booking_id == booking_id,
            RentPaymentModel.payment_month == payment_month,
        )
        return self.session.scalars(stmt).first()

    def find_by_month(self, booking_id: UUID, payment_month: str) -> RentPayment | None:
        model = self.find_model_by_month(booking_id, payment_month)
        return model.to_dto() if model is not None else None

    def latest_paid_due_date(self, booking_id: UUID) -> date | None:
        stmt = (
            select(RentPaymentModel.due_date)
            .where(
                RentPaymentModel.booking_id == booking_id,
                RentPaymentModel.status == "paid",
            )
            .order_by(RentPaymentModel.due_date.desc())
            .limit(1)
        )
        return self.session.scalar(stmt)

    def next_due_date(self, booking_id: UUID, lease_start: date) -> date:
        """Next due date after the latest paid month (or after lease start)."""
        return next_due_date(lease_start, self.latest_paid_due_date(booking_id))
