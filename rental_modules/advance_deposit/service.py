"""
Advance Deposit Service (``rental_modules.advance_deposit.service``).

Responsibility
--------------
Spends a booking's pre-paid advance months:

* ``use_advance_months`` -- decrement the counter; completes the booking when
  it reaches zero.
* ``auto_complete_when_exhausted`` -- the completion rule on its own.
* ``check_and_use_advance_month_for_payment`` -- cover one rent month from
  the deposit, writing a paid record for it.
* ``get_advance_deposit_info`` -- read-only summary.

Architecture position
---------------------
**Modules layer**.  Booking mutations run through ``BookingMutationGuard``
(per-booking lock, optimistic-version retry, commit/rollback).  Side
effects are returned from the unit of work and dispatched only after the
commit.

Invariants enforced
-------------------
* 0 <= remaining_advance_months <= advance_deposit_months.
* Completion happens only on the transition to exactly zero, and only for
  approved, paid bookings.
* At most one advance month is spent per (booking, payment month).

Failure modes
-------------
* Business-rule rejection -> result with ``success=False`` (or
  ``used_advance_month=False``), ``error`` and ``error_code``; nothing
  written.
* Unexpected exception -> logged, session rolled back, same result shape
  with ``error_code="INTERNAL_ERROR"``.
* Side-effect failure -> logged by the dispatcher; the completion stands.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from rental_config import EngineConfig, get_active_config
from rental_kernel.domain.clock import Clock, SystemClock
from rental_kernel.domain.dtos import RentPaymentStatus
from rental_kernel.domain.months import first_day_of_month_key, parse_month_key
from rental_kernel.exceptions import (
    INTERNAL_ERROR_CODE,
    DuplicatePaymentMonthError,
    RentalKernelError,
)
from rental_kernel.logging_config import LogContext, get_logger
from rental_kernel.models.booking import BookingModel
from rental_kernel.models.rent_payment import RentPaymentModel
from rental_kernel.selectors.booking_selector import BookingSelector
from rental_kernel.selectors.payment_selector import PaymentSelector
from rental_kernel.services.mutation_guard import BookingMutationGuard
from rental_modules.advance_deposit.calculations import (
    deposit_summary,
    remaining_after_use,
    should_auto_complete,
)
from rental_modules.advance_deposit.models import (
    AdvanceDepositInfo,
    AdvanceMonthPaymentResult,
    AdvanceUsageResult,
)
from rental_modules.rent.calculations import generate_receipt_number
from rental_services.availability import ListingAvailabilityService
from rental_services.dispatcher import EffectDispatcher
from rental_services.effects import (
    BOOKING_COMPLETED,
    Effect,
    EmitEvent,
    RecomputeAvailability,
)
from rental_services.events import EventBus
from rental_services.notifications import ConversationNotifier

logger = get_logger("modules.advance_deposit.service")

ADVANCE_DEPOSIT_EXHAUSTED = "advance_deposit_exhausted"
ADVANCE_PAYMENT_NOTE = "Paid using advance deposit month"


def default_dispatcher(
    session: Session,
    clock: Clock,
    events: EventBus | None = None,
) -> EffectDispatcher:
    """Dispatcher wired to the in-process collaborators on ``session``."""
    return EffectDispatcher(
        availability=ListingAvailabilityService(session, clock),
        notifier=ConversationNotifier(session, clock),
        events=events or EventBus(),
    )


class AdvanceDepositService:
    """
    The advance-deposit ledger.

    Contract
    --------
    * Public methods never raise business-rule errors; they return result
      objects.  ``auto_complete_when_exhausted`` is the exception and raises
      ``BookingNotFoundError`` for an unknown id.

    Guarantees
    ----------
    * Each mutation is committed by the mutation guard, or rolled back.
    * Clock is injectable for deterministic testing.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        config: EngineConfig | None = None,
        dispatcher: EffectDispatcher | None = None,
        events: EventBus | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._config = config or get_active_config()
        self._guard = BookingMutationGuard(session, self._config.optimistic_retry_limit)
        self._dispatcher = dispatcher or default_dispatcher(session, self._clock, events)
        self._bookings = BookingSelector(session)
        self._payments = PaymentSelector(session)

    # =========================================================================
    # Spending months
    # =========================================================================

    def use_advance_months(
        self,
        booking_id: UUID,
        months_to_use: int = 1,
    ) -> AdvanceUsageResult:
        """Spend ``months_to_use`` advance months on a booking."""
        with LogContext.bind(booking_id=str(booking_id)):
            try:
                remaining, effects = self._guard.run(
                    booking_id, lambda: self._use(booking_id, months_to_use),
                )
            except RentalKernelError as exc:
                logger.info(
                    "advance_months_rejected",
                    extra={"error_code": exc.code, "months_requested": months_to_use},
                )
                return AdvanceUsageResult(
                    success=False, error=str(exc), error_code=exc.code,
                )
            except Exception as exc:
                logger.exception("advance_months_failed")
                return AdvanceUsageResult(
                    success=False, error=str(exc), error_code=INTERNAL_ERROR_CODE,
                )

            logger.info(
                "advance_months_used",
                extra={"months_used": months_to_use, "remaining": remaining},
            )
            self._dispatcher.dispatch(effects)
            return AdvanceUsageResult(
                success=True,
                remaining_advance_months=remaining,
                auto_completed=bool(effects),
                message=(
                    f"Used {months_to_use} advance month(s). "
                    f"{remaining} month(s) remaining."
                ),
            )

    def _use(self, booking_id: UUID, months_to_use: int) -> tuple[int, list[Effect]]:
        booking = self._bookings.get_for_update(booking_id)
        now = self._clock.now()
        remaining = self._deduct(booking, months_to_use)
        booking.updated_at = now
        return remaining, self._complete_if_exhausted(booking, now)

    def _deduct(self, booking: BookingModel, months_to_use: int) -> int:
        remaining = remaining_after_use(
            str(booking.id),
            booking.advance_deposit_months,
            booking.remaining_advance_months,
            months_to_use,
        )
        booking.set_remaining_advance_months(remaining)
        return remaining

    # =========================================================================
    # Auto-completion
    # =========================================================================

    def auto_complete_when_exhausted(self, booking_id: UUID) -> bool:
        """
        Complete the booking if its advance months are used up.

        Returns True when the booking was completed by this call.
        """
        with LogContext.bind(booking_id=str(booking_id)):
            effects = self._guard.run(
                booking_id,
                lambda: self._complete_if_exhausted(
                    self._bookings.get_for_update(booking_id), self._clock.now(),
                ),
            )
            self._dispatcher.dispatch(effects)
            return bool(effects)

    def _complete_if_exhausted(self, booking: BookingModel, now) -> list[Effect]:
        if not should_auto_complete(
            booking.status, booking.payment_status, booking.remaining_advance_months,
        ):
            return []

        booking.mark_completed(now)
        booking.clear_termination()
        logger.info(
            "booking_auto_completed",
            extra={
                "booking_id": str(booking.id),
                "property_id": str(booking.property_id),
                "reason": ADVANCE_DEPOSIT_EXHAUSTED,
            },
        )
        return [
            RecomputeAvailability(property_id=booking.property_id),
            EmitEvent(
                name=BOOKING_COMPLETED,
                payload={
                    "booking_id": str(booking.id),
                    "property_id": str(booking.property_id),
                    "tenant_id": str(booking.tenant_id),
                    "owner_id": str(booking.owner_id),
                    "reason": ADVANCE_DEPOSIT_EXHAUSTED,
                    "timestamp": now.isoformat(),
                },
            ),
        ]

    # =========================================================================
    # Covering a rent month
    # =========================================================================

    def check_and_use_advance_month_for_payment(
        self,
        booking_id: UUID,
        payment_month: str,
        actor_id: UUID | None = None,
    ) -> AdvanceMonthPaymentResult:
        """
        Cover ``payment_month`` with one advance month, if any remain.

        No-op when the booking has no remaining months or the month is
        already paid.  An unpaid record for the month is settled in place;
        otherwise a paid record due on the first of the month is written.
        """
        with LogContext.bind(booking_id=str(booking_id)):
            try:
                parse_month_key(payment_month)
                outcome = self._guard.run(
                    booking_id,
                    lambda: self._cover_month(booking_id, payment_month, actor_id),
                )
            except RentalKernelError as exc:
                logger.info(
                    "advance_month_payment_rejected",
                    extra={"error_code": exc.code, "payment_month": payment_month},
                )
                return AdvanceMonthPaymentResult(
                    used_advance_month=False, error=str(exc), error_code=exc.code,
                )
            except Exception as exc:
                logger.exception(
                    "advance_month_payment_failed",
                    extra={"payment_month": payment_month},
                )
                return AdvanceMonthPaymentResult(
                    used_advance_month=False,
                    error=str(exc),
                    error_code=INTERNAL_ERROR_CODE,
                )

            remaining, record, effects = outcome
            if record is None:
                return AdvanceMonthPaymentResult(
                    used_advance_month=False, remaining_advance_months=remaining,
                )

            logger.info(
                "advance_month_applied",
                extra={"payment_month": payment_month, "remaining": remaining},
            )
            self._dispatcher.dispatch(effects)
            return AdvanceMonthPaymentResult(
                used_advance_month=True,
                remaining_advance_months=remaining,
                payment=record.to_dto(),
                auto_completed=bool(effects),
            )

    def _cover_month(
        self,
        booking_id: UUID,
        payment_month: str,
        actor_id: UUID | None,
    ) -> tuple[int, RentPaymentModel | None, list[Effect]]:
        booking = self._bookings.get_for_update(booking_id)
        available = booking.effective_remaining_months
        if available <= 0:
            return available, None, []

        record = self._payments.find_model_by_month(booking_id, payment_month)
        if record is not None and record.is_paid:
            logger.info(
                "advance_month_skipped_already_paid",
                extra={"payment_month": payment_month},
            )
            return available, None, []

        now = self._clock.now()
        actor = actor_id or booking.tenant_id
        remaining = self._deduct(booking, 1)
        booking.updated_at = now
        receipt = generate_receipt_number(self._config.advance_receipt_prefix, now)

        if record is None:
            record = RentPaymentModel(
                booking_id=booking.id,
                tenant_id=booking.tenant_id,
                owner_id=booking.owner_id,
                property_id=booking.property_id,
                amount=booking.monthly_rent,
                total_amount=booking.monthly_rent,
                payment_month=payment_month,
                due_date=first_day_of_month_key(payment_month),
                status=RentPaymentStatus.PAID.value,
                paid_date=now,
                payment_method=self._config.advance_payment_method,
                receipt_number=receipt,
                notes=ADVANCE_PAYMENT_NOTE,
                created_at=now,
                updated_at=now,
                created_by_id=actor,
            )
            self._session.add(record)
            try:
                self._session.flush()
            except IntegrityError as exc:
                raise DuplicatePaymentMonthError(str(booking_id), payment_month) from exc
        else:
            record.settle(
                paid_at=now,
                payment_method=self._config.advance_payment_method,
                receipt_number=receipt,
                notes=ADVANCE_PAYMENT_NOTE,
                actor_id=actor,
            )

        return remaining, record, self._complete_if_exhausted(booking, now)

    # =========================================================================
    # Read
    # =========================================================================

    def get_advance_deposit_info(self, booking_id: UUID) -> AdvanceDepositInfo:
        try:
            booking = self._bookings.get(booking_id)
        except Exception:
            self._session.rollback()
            logger.exception(
                "advance_deposit_info_failed", extra={"booking_id": str(booking_id)},
            )
            return AdvanceDepositInfo(has_advance_deposit=False)
        if booking is None:
            return AdvanceDepositInfo(has_advance_deposit=False)
        total, remaining = deposit_summary(booking)
        return AdvanceDepositInfo(
            has_advance_deposit=total is not None,
            advance_deposit_months=total,
            remaining_advance_months=remaining,
        )
