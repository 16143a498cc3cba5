"""
Termination Service (``rental_modules.termination.service``).

Responsibility
--------------
Orchestrates early lease termination:

* ``end_rental_stay`` -- tenant-initiated; either starts a countdown or
  leaves immediately.
* ``reconcile_immediate_leave`` -- spend every remaining advance month on
  the booking's unpaid and future rent, then complete it.
* ``process_termination_countdown`` -- the scheduled sweep that resolves
  countdowns whose end date has passed.
* ``resolve_countdown`` -- the sweep step for a single booking (also used
  by the batch task).
* ``get_termination_countdown_info`` -- read-only status.

Architecture position
---------------------
**Modules layer**.  Booking mutations run through ``BookingMutationGuard``;
coverage decisions come from the pure functions in ``calculations.py``;
side effects are returned as effect values and dispatched after commit.

Invariants enforced
-------------------
* The termination group (mode, initiated_at, end_date) is set and cleared
  together.
* Reconciliation covers unpaid months oldest first, never pays a month
  twice, and leaves ``remaining_advance_months == 0`` and
  ``status == completed``.
* The sweep isolates each booking in a SAVEPOINT; one failure increments
  ``errors`` and the sweep continues.  Re-running it is a no-op for
  bookings already resolved.

Failure modes
-------------
* Business-rule rejection -> ``TerminationResult(success=False, ...)``;
  nothing written.
* Unexpected exception -> logged, rolled back, same result shape.
* Side-effect failure -> logged by the dispatcher only.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy.orm import Session

from rental_config import EngineConfig, get_active_config
from rental_kernel.domain.clock import Clock, SystemClock
from rental_kernel.domain.dtos import SYSTEM_ACTOR_ID, RentPaymentStatus
from rental_kernel.domain.months import next_due_date
from rental_kernel.exceptions import (
    INTERNAL_ERROR_CODE,
    BookingNotActiveError,
    NoAdvanceDepositError,
    NoRemainingAdvanceMonthsError,
    RentalKernelError,
    TerminationAlreadyActiveError,
    UnauthorizedTenantError,
)
from rental_kernel.logging_config import LogContext, get_logger
from rental_kernel.models.booking import BookingModel
from rental_kernel.models.rent_payment import RentPaymentModel
from rental_kernel.selectors.booking_selector import BookingSelector
from rental_kernel.selectors.payment_selector import PaymentSelector
from rental_kernel.services.mutation_guard import BookingMutationGuard
from rental_modules.advance_deposit.service import default_dispatcher
from rental_modules.rent.calculations import generate_receipt_number
from rental_modules.termination.calculations import (
    countdown_end_date,
    days_remaining,
    generate_coverage_schedule,
    order_unpaid,
)
from rental_modules.termination.models import (
    CountdownInfo,
    ReconciliationOutcome,
    SweepResult,
    TerminationResult,
)
from rental_services.dispatcher import EffectDispatcher
from rental_services.effects import (
    BOOKING_COMPLETED,
    Effect,
    EmitEvent,
    NotifyOwner,
    RecomputeAvailability,
)
from rental_services.events import EventBus

logger = get_logger("modules.termination.service")

TENANT_ENDED_RENTAL_IMMEDIATE = "tenant_ended_rental_immediate"
TERMINATION_PAYMENT_NOTE = "Paid using advance deposit month (rental stay ended)"
NO_ADVANCE_DEPOSIT_MESSAGE = (
    "This property does not have advance deposit. "
    "You cannot end your rental stay using this feature."
)


def _long_date(value: datetime) -> str:
    return f"{value:%B} {value.day}, {value.year}"


def countdown_notice(booking: BookingModel, months: int, days: int, end: datetime) -> str:
    return (
        "🏠 Rental Stay Termination Initiated\n\n"
        f"{booking.tenant_name} has initiated ending their rental stay at "
        f"{booking.property_title}.\n\n"
        f"{months} advance deposit month(s) will be used over the next "
        f"{days} days.\n\n"
        f"The tenant will be automatically removed on {_long_date(end)}."
    )


def immediate_leave_notice(booking: BookingModel, months: int) -> str:
    return (
        "🏠 Rental Stay Ended Immediately\n\n"
        f"{booking.tenant_name} has ended their rental stay at "
        f"{booking.property_title}.\n\n"
        f"{months} advance deposit month(s) were used to cover remaining "
        "payments.\n\n"
        "The property is now available for new tenants."
    )


class TerminationService:
    """
    Early-termination orchestrator.

    Contract
    --------
    * ``end_rental_stay`` and ``reconcile_immediate_leave`` never raise
      business-rule errors; they return ``TerminationResult``.
    * ``process_termination_countdown`` always returns a ``SweepResult``.

    Guarantees
    ----------
    * Each tenant action is one committed unit of work, or nothing.
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
    # Tenant action
    # =========================================================================

    def end_rental_stay(
        self,
        booking_id: UUID,
        tenant_id: UUID,
        immediate_leave: bool = False,
    ) -> TerminationResult:
        """
        End a rental stay early using the remaining advance months.

        With ``immediate_leave`` the months are spent now and the booking is
        completed; otherwise a countdown of that many calendar months starts.
        An immediate leave overrides a running countdown.
        """
        with LogContext.bind(booking_id=str(booking_id), tenant_id=str(tenant_id)):
            return self._run_tenant_action(
                booking_id,
                lambda: self._end(booking_id, tenant_id, immediate_leave),
                action="end_rental_stay",
            )

    def reconcile_immediate_leave(self, booking_id: UUID) -> TerminationResult:
        """
        Spend all remaining advance months and complete an active booking.

        Same outcome as a tenant's immediate leave, without the ownership
        check; for owner or operator use.
        """
        with LogContext.bind(booking_id=str(booking_id)):
            return self._run_tenant_action(
                booking_id,
                lambda: self._reconcile_active(booking_id),
                action="reconcile_immediate_leave",
            )

    def _run_tenant_action(self, booking_id, work, action: str) -> TerminationResult:
        try:
            result, effects = self._guard.run(booking_id, work)
        except RentalKernelError as exc:
            logger.info(
                "termination_rejected",
                extra={"action": action, "error_code": exc.code},
            )
            return TerminationResult(success=False, error=str(exc), error_code=exc.code)
        except Exception as exc:
            logger.exception("termination_failed", extra={"action": action})
            return TerminationResult(
                success=False, error=str(exc), error_code=INTERNAL_ERROR_CODE,
            )
        self._dispatcher.dispatch(effects)
        return result

    def _end(
        self,
        booking_id: UUID,
        tenant_id: UUID,
        immediate_leave: bool,
    ) -> tuple[TerminationResult, list[Effect]]:
        booking = self._bookings.get_for_update(booking_id)
        if booking.tenant_id != tenant_id:
            raise UnauthorizedTenantError(str(booking_id), str(tenant_id))
        if not booking.is_active:
            raise BookingNotActiveError(
                str(booking_id), booking.status, booking.payment_status,
            )
        if not booking.advance_deposit_months:
            raise NoAdvanceDepositError(str(booking_id), NO_ADVANCE_DEPOSIT_MESSAGE)
        remaining = booking.effective_remaining_months
        if remaining <= 0:
            raise NoRemainingAdvanceMonthsError(str(booking_id))

        now = self._clock.now()
        if immediate_leave:
            return self._leave_immediately(booking, remaining, now, actor_id=tenant_id)
        if booking.has_countdown:
            raise TerminationAlreadyActiveError(str(booking_id))
        return self._start_countdown(booking, remaining, now)

    def _reconcile_active(self, booking_id: UUID) -> tuple[TerminationResult, list[Effect]]:
        booking = self._bookings.get_for_update(booking_id)
        if not booking.is_active:
            raise BookingNotActiveError(
                str(booking_id), booking.status, booking.payment_status,
            )
        remaining = booking.effective_remaining_months
        if remaining <= 0:
            raise NoRemainingAdvanceMonthsError(str(booking_id))
        return self._leave_immediately(
            booking, remaining, self._clock.now(), actor_id=SYSTEM_ACTOR_ID,
        )

    # =========================================================================
    # Countdown
    # =========================================================================

    def _start_countdown(
        self,
        booking: BookingModel,
        months: int,
        now: datetime,
    ) -> tuple[TerminationResult, list[Effect]]:
        end = countdown_end_date(now, months)
        booking.begin_countdown(now, end)
        booking.updated_at = now
        days = days_remaining(end, now)

        logger.info(
            "termination_countdown_started",
            extra={
                "months": months,
                "days_remaining": days,
                "termination_end_date": end.isoformat(),
            },
        )
        effects: list[Effect] = [
            NotifyOwner(
                owner_id=booking.owner_id,
                tenant_id=booking.tenant_id,
                property_id=booking.property_id,
                owner_name=booking.owner_name,
                tenant_name=booking.tenant_name,
                property_title=booking.property_title,
                text=countdown_notice(booking, months, days, end),
            ),
        ]
        result = TerminationResult(
            success=True,
            immediate=False,
            remaining_advance_months=months,
            days_remaining=days,
            termination_end_date=end,
            message=(
                f"Termination countdown started. You have {days} days "
                f"({months} months) remaining. You can leave immediately anytime."
            ),
        )
        return result, effects

    # =========================================================================
    # Immediate leave
    # =========================================================================

    def _leave_immediately(
        self,
        booking: BookingModel,
        months: int,
        now: datetime,
        actor_id: UUID,
    ) -> tuple[TerminationResult, list[Effect]]:
        outcome = self._reconcile(booking, months, now, actor_id)
        effects: list[Effect] = [
            RecomputeAvailability(property_id=booking.property_id),
            NotifyOwner(
                owner_id=booking.owner_id,
                tenant_id=booking.tenant_id,
                property_id=booking.property_id,
                owner_name=booking.owner_name,
                tenant_name=booking.tenant_name,
                property_title=booking.property_title,
                text=immediate_leave_notice(booking, months),
            ),
            EmitEvent(
                name=BOOKING_COMPLETED,
                payload={
                    "booking_id": str(booking.id),
                    "property_id": str(booking.property_id),
                    "tenant_id": str(booking.tenant_id),
                    "owner_id": str(booking.owner_id),
                    "reason": TENANT_ENDED_RENTAL_IMMEDIATE,
                    "months_used": months,
                    "timestamp": now.isoformat(),
                },
            ),
        ]
        result = TerminationResult(
            success=True,
            immediate=True,
            months_used=months,
            remaining_advance_months=0,
            payments_covered=outcome.payments_covered,
            message=(
                "Successfully ended rental stay immediately. "
                f"{months} advance deposit month(s) were used to cover "
                f"{outcome.payments_covered} payment(s)."
            ),
        )
        return result, effects

    def _reconcile(
        self,
        booking: BookingModel,
        months: int,
        now: datetime,
        actor_id: UUID,
    ) -> ReconciliationOutcome:
        """
        Apply ``months`` advance months to the booking's rent and complete it.

        Unpaid records are settled oldest first; any months left over pay
        for the months after the latest paid one.
        """
        payments = self._payments.payment_models_for_booking(booking.id)

        existing_covered = 0
        for payment in order_unpaid(payments)[:months]:
            self._settle(payment, now, actor_id)
            existing_covered += 1

        leftover = months - existing_covered
        future_covered = 0
        shortfall = 0
        if leftover > 0:
            paid_due_dates = [
                p.due_date for p in payments if p.status == RentPaymentStatus.PAID.value
            ]
            first_due = next_due_date(
                booking.start_date, max(paid_due_dates, default=None),
            )
            by_month = {p.payment_month: p for p in payments}
            schedule = generate_coverage_schedule(
                first_due,
                booking.start_date.day,
                leftover,
                {month: p.status for month, p in by_month.items()},
            )
            for slot in schedule:
                if slot.existing:
                    self._settle(by_month[slot.payment_month], now, actor_id)
                else:
                    self._session.add(self._advance_record(
                        booking, slot.payment_month, slot.due_date, now, actor_id,
                    ))
                future_covered += 1
            shortfall = leftover - future_covered
            if shortfall:
                logger.warning(
                    "coverage_schedule_shortfall",
                    extra={"requested": leftover, "covered": future_covered},
                )

        booking.set_remaining_advance_months(0)
        booking.mark_completed(now)
        booking.clear_termination()
        booking.updated_by_id = actor_id
        self._session.flush()

        logger.info(
            "immediate_leave_reconciled",
            extra={
                "months_used": months,
                "existing_covered": existing_covered,
                "future_covered": future_covered,
            },
        )
        return ReconciliationOutcome(
            months_used=months,
            existing_covered=existing_covered,
            future_covered=future_covered,
            shortfall=shortfall,
        )

    def _settle(self, payment: RentPaymentModel, now: datetime, actor_id: UUID) -> None:
        prefix = self._config.advance_receipt_prefix
        receipt = payment.receipt_number
        if not (receipt and receipt.startswith(prefix)):
            receipt = generate_receipt_number(prefix, now)
        payment.settle(
            paid_at=now,
            payment_method=self._config.advance_payment_method,
            receipt_number=receipt,
            notes=TERMINATION_PAYMENT_NOTE,
            actor_id=actor_id,
        )

    def _advance_record(
        self,
        booking: BookingModel,
        payment_month: str,
        due_date,
        now: datetime,
        actor_id: UUID,
    ) -> RentPaymentModel:
        return RentPaymentModel(
            booking_id=booking.id,
            tenant_id=booking.tenant_id,
            owner_id=booking.owner_id,
            property_id=booking.property_id,
            amount=booking.monthly_rent,
            total_amount=booking.monthly_rent,
            payment_month=payment_month,
            due_date=due_date,
            status=RentPaymentStatus.PAID.value,
            paid_date=now,
            payment_method=self._config.advance_payment_method,
            receipt_number=generate_receipt_number(
                self._config.advance_receipt_prefix, now,
            ),
            notes=TERMINATION_PAYMENT_NOTE,
            created_at=now,
            updated_at=now,
            created_by_id=actor_id,
        )

    # =========================================================================
    # Countdown sweep
    # =========================================================================

    def resolve_countdown(self, booking_id: UUID, as_of: datetime) -> list[Effect] | None:
        """
        Resolve one booking's countdown if it has run out.

        Runs in a SAVEPOINT; the caller commits.  Returns the post-commit
        effects when the booking was completed, ``None`` when there was
        nothing to do (countdown still running, or already resolved).
        """
        return self._guard.run(
            booking_id,
            lambda: self._resolve_if_due(booking_id, as_of),
            savepoint=True,
        )

    def _resolve_if_due(self, booking_id: UUID, as_of: datetime) -> list[Effect] | None:
        booking = self._bookings.get_for_update(booking_id)
        if not (booking.has_countdown and booking.is_active):
            return None
        end = booking.termination_end_date
        if end is None or as_of < end:
            logger.debug(
                "termination_countdown_pending",
                extra={"days_remaining": days_remaining(end, as_of) if end else None},
            )
            return None

        remaining = booking.effective_remaining_months
        if remaining > 0:
            _, effects = self._leave_immediately(
                booking, remaining, as_of, actor_id=SYSTEM_ACTOR_ID,
            )
            return effects

        booking.mark_completed(as_of)
        booking.clear_termination()
        booking.updated_by_id = SYSTEM_ACTOR_ID
        logger.info("termination_completed_without_months")
        return [RecomputeAvailability(property_id=booking.property_id)]

    def process_termination_countdown(self) -> SweepResult:
        """
        Complete every booking whose termination countdown has run out.

        Safe to run at any cadence; bookings already resolved are not
        touched again.
        """
        now = self._clock.now()
        processed = removed = errors = 0
        effects: list[Effect] = []
        try:
            booking_ids = self._bookings.active_countdown_ids()
            logger.info(
                "termination_sweep_started", extra={"countdowns": len(booking_ids)},
            )
            for booking_id in booking_ids:
                processed += 1
                with LogContext.bind(booking_id=str(booking_id)):
                    try:
                        resolved = self.resolve_countdown(booking_id, now)
                    except Exception:
                        errors += 1
                        logger.exception("termination_countdown_failed")
                        continue
                if resolved is not None:
                    removed += 1
                    effects.extend(resolved)
            self._session.commit()
        except Exception:
            self._session.rollback()
            logger.exception("termination_sweep_failed")
            return SweepResult(processed=0, removed=0, errors=1)

        self._dispatcher.dispatch(effects)
        logger.info(
            "termination_sweep_completed",
            extra={"processed": processed, "removed": removed, "errors": errors},
        )
        return SweepResult(processed=processed, removed=removed, errors=errors)

    # =========================================================================
    # Read
    # =========================================================================

    def get_termination_countdown_info(self, booking_id: UUID) -> CountdownInfo:
        try:
            booking = self._bookings.get_model(booking_id)
        except Exception:
            self._session.rollback()
            logger.exception(
                "termination_countdown_info_failed", extra={"booking_id": str(booking_id)},
            )
            return CountdownInfo(has_countdown=False)
        if (
            booking is None
            or booking.termination_initiated_at is None
            or booking.termination_end_date is None
        ):
            return CountdownInfo(has_countdown=False)
        return CountdownInfo(
            has_countdown=True,
            days_remaining=days_remaining(booking.termination_end_date, self._clock.now()),
            termination_end_date=booking.termination_end_date,
            remaining_months=booking.effective_remaining_months,
        )
