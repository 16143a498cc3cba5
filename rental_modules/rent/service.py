"""
Rent Payment Service (``rental_modules.rent.service``).

Responsibility
--------------
Reads and writes monthly rent records for a booking:

* ``payments_for_booking`` / ``find_by_month`` -- the payment ledger accessor.
* ``next_due_date`` -- one calendar month after the latest paid month.
* ``create_rent_payment`` -- find-or-create by (booking, month).
* ``initialize_monthly_payments`` -- one record per elapsed month.
* ``future_payment_months`` -- drafts of upcoming unpaid months.

Invariants enforced
-------------------
* At most one record per (booking_id, payment_month).  A concurrent insert
  that loses the race on ``uq_rent_payment_booking_month`` re-reads and
  returns the winner's record.
* Each writing method owns the transaction boundary (commit on success,
  rollback on failure).
* All monetary calculations use ``Decimal``.

Failure modes
-------------
* BookingNotFoundError -- unknown booking id.
* InvalidPaymentMonthError -- malformed month key.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from rental_config import EngineConfig, get_active_config
from rental_kernel.domain.clock import Clock, SystemClock
from rental_kernel.domain.dtos import RentPayment, RentPaymentStatus
from rental_kernel.domain.months import add_months, month_key, parse_month_key
from rental_kernel.exceptions import BookingNotFoundError
from rental_kernel.logging_config import get_logger
from rental_kernel.models.booking import BookingModel
from rental_kernel.models.rent_payment import RentPaymentModel
from rental_kernel.selectors.booking_selector import BookingSelector
from rental_kernel.selectors.payment_selector import PaymentSelector
from rental_modules.rent.calculations import (
    calculate_late_fee,
    days_overdue,
    generate_receipt_number,
    is_payment_overdue,
    monthly_due_dates,
)
from rental_modules.rent.models import PaymentDraft

logger = get_logger("modules.rent.service")


class RentPaymentService:
    """
    Monthly rent bookkeeping for bookings.

    Guarantees
    ----------
    * Clock is injectable for deterministic testing.
    * Session is committed only after a successful write; otherwise rolled
      back and the exception re-raised.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        config: EngineConfig | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._config = config or get_active_config()
        self._bookings = BookingSelector(session)
        self._payments = PaymentSelector(session)

    # =========================================================================
    # Ledger reads
    # =========================================================================

    def payments_for_booking(self, booking_id: UUID) -> list[RentPayment]:
        """All payments for a booking, most recent due date first."""
        return self._payments.payments_for_booking(booking_id)

    def find_by_month(self, booking_id: UUID, payment_month: str) -> RentPayment | None:
        parse_month_key(payment_month)
        return self._payments.find_by_month(booking_id, payment_month)

    def next_due_date(self, booking_id: UUID) -> date:
        booking = self._require_booking(booking_id)
        return self._payments.next_due_date(booking_id, booking.start_date)

    # =========================================================================
    # Writes
    # =========================================================================

    def create_rent_payment(
        self,
        booking_id: UUID,
        payment_month: str,
        due_date: date,
    ) -> RentPayment:
        """
        Return the record for (booking, month), creating it if absent.

        A new record is ``overdue`` with a prorated late fee when the due
        date has passed, otherwise ``pending``.
        """
        try:
            payment = self._find_or_create(booking_id, payment_month, due_date)
            self._session.commit()
        except Exception:
            self._session.rollback()
            raise
        return payment.to_dto()

    def initialize_monthly_payments(self, booking_id: UUID) -> list[RentPayment]:
        """
        Ensure a record exists for every month from move-in up to today.

        Only approved, paid bookings are initialized; others return ``[]``.
        """
        booking = self._require_booking(booking_id)
        if not booking.is_active:
            logger.info(
                "monthly_payments_skipped_inactive",
                extra={"booking_id": str(booking_id), "status": booking.status},
            )
            return []

        today = self._clock.today()
        try:
            records = [
                self._find_or_create(booking_id, month_key(due), due)
                for due in monthly_due_dates(booking.start_date, today)
            ]
            self._session.commit()
        except Exception:
            self._session.rollback()
            raise

        logger.info(
            "monthly_payments_initialized",
            extra={"booking_id": str(booking_id), "months": len(records)},
        )
        return [r.to_dto() for r in records]

    # =========================================================================
    # Pay-ahead drafts
    # =========================================================================

    def future_payment_months(
        self,
        booking_id: UUID,
        max_months: int | None = None,
    ) -> list[PaymentDraft]:
        """
        Upcoming unpaid months a tenant may pay ahead.

        Starts one month after the next due date (the next due month itself
        is paid the regular way) and walks ``max_months`` months forward.
        Months already paid are left out; stored unpaid months are returned
        with their id.  Nothing is written.
        """
        if max_months is None:
            max_months = self._config.future_payment_months
        booking = self._require_booking(booking_id)
        anchor = booking.start_date.day
        first = add_months(
            self._payments.next_due_date(booking_id, booking.start_date),
            1,
            anchor_day=anchor,
        )
        existing = {
            p.payment_month: p
            for p in self._payments.payment_models_for_booking(booking_id)
        }

        drafts: list[PaymentDraft] = []
        for offset in range(max_months):
            due = add_months(first, offset, anchor_day=anchor)
            key = month_key(due)
            record = existing.get(key)
            if record is not None:
                if record.status != RentPaymentStatus.PAID.value:
                    drafts.append(PaymentDraft(
                        booking_id=booking_id,
                        payment_month=key,
                        due_date=record.due_date,
                        amount=record.amount,
                        late_fee=record.late_fee,
                        status=RentPaymentStatus(record.status),
                        existing_id=record.id,
                    ))
                continue
            drafts.append(PaymentDraft(
                booking_id=booking_id,
                payment_month=key,
                due_date=due,
                amount=booking.monthly_rent,
            ))
        return drafts

    # =========================================================================
    # Internals
    # =========================================================================

    def _require_booking(self, booking_id: UUID) -> BookingModel:
        booking = self._bookings.get_model(booking_id)
        if booking is None:
            raise BookingNotFoundError(str(booking_id))
        return booking

    def _find_or_create(
        self,
        booking_id: UUID,
        payment_month: str,
        due_date: date,
    ) -> RentPaymentModel:
        parse_month_key(payment_month)
        existing = self._payments.find_model_by_month(booking_id, payment_month)
        if existing is not None:
            return existing

        booking = self._require_booking(booking_id)
        now = self._clock.now()
        monthly_rent = booking.monthly_rent or Decimal("0")
        overdue = is_payment_overdue(due_date, now)
        late_fee = (
            calculate_late_fee(
                monthly_rent, days_overdue(due_date, now), self._config.late_fee_rate,
            )
            if overdue else Decimal("0.00")
        )
        record = RentPaymentModel(
            booking_id=booking_id,
            tenant_id=booking.tenant_id,
            owner_id=booking.owner_id,
            property_id=booking.property_id,
            amount=monthly_rent,
            late_fee=late_fee,
            total_amount=monthly_rent + late_fee,
            payment_month=payment_month,
            due_date=due_date,
            status=(
                RentPaymentStatus.OVERDUE.value if overdue
                else RentPaymentStatus.PENDING.value
            ),
            receipt_number=generate_receipt_number(
                self._config.rent_receipt_prefix, now,
            ),
            created_at=now,
            updated_at=now,
            created_by_id=booking.tenant_id,
        )
        try:
            with self._session.begin_nested():
                self._session.add(record)
        except IntegrityError:
            winner = self._payments.find_model_by_month(booking_id, payment_month)
            if winner is None:
                raise
            logger.info(
                "rent_payment_insert_lost_race",
                extra={"booking_id": str(booking_id), "payment_month": payment_month},
            )
            return winner

        logger.info(
            "rent_payment_created",
            extra={
                "booking_id": str(booking_id),
                "payment_month": payment_month,
                "status": record.status,
                "late_fee": str(late_fee),
            },
        )
        return record
