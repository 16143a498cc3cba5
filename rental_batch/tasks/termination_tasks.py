"""
Termination batch tasks.

``TerminationCountdownTask`` ("termination.countdown_sweep") prepares every
approved, paid booking with a running countdown and resolves the ones whose
end date has passed through ``TerminationService.resolve_countdown``.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from rental_batch.domain.types import BatchItemStatus
from rental_batch.tasks.base import BatchItemInput, BatchTaskResult, TaskRegistry
from rental_config import EngineConfig, get_active_config
from rental_kernel.domain.clock import Clock, DeterministicClock
from rental_kernel.exceptions import RentalKernelError
from rental_kernel.selectors.booking_selector import BookingSelector
from rental_modules.termination.service import TerminationService
from rental_services.dispatcher import EffectDispatcher

TERMINATION_COUNTDOWN_SWEEP = "termination.countdown_sweep"


class TerminationCountdownTask:
    """Resolve expired termination countdowns, one booking per item."""

    def __init__(self, config: EngineConfig | None = None):
        self._config = config

    @property
    def task_type(self) -> str:
        return TERMINATION_COUNTDOWN_SWEEP

    @property
    def description(self) -> str:
        return "Complete bookings whose termination countdown has ended"

    def prepare_items(
        self,
        parameters: dict[str, Any],
        session: Session,
        as_of: datetime,
    ) -> tuple[BatchItemInput, ...]:
        booking_ids = BookingSelector(session).active_countdown_ids()
        return tuple(
            BatchItemInput(item_index=i, item_key=str(booking_id))
            for i, booking_id in enumerate(booking_ids)
        )

    def execute_item(
        self,
        item: BatchItemInput,
        parameters: dict[str, Any],
        session: Session,
        as_of: datetime,
    ) -> BatchTaskResult:
        service = self._service(session, as_of)
        try:
            effects = service.resolve_countdown(UUID(item.item_key), as_of)
        except RentalKernelError as exc:
            return BatchTaskResult(
                status=BatchItemStatus.FAILED,
                error_code=exc.code,
                error_message=str(exc),
            )
        if effects is None:
            return BatchTaskResult(status=BatchItemStatus.SKIPPED)
        return BatchTaskResult(
            status=BatchItemStatus.SUCCEEDED,
            result_data={"booking_id": item.item_key, "completed": True},
            effects=tuple(effects),
        )

    def _service(self, session: Session, as_of: datetime) -> TerminationService:
        clock: Clock = DeterministicClock(as_of)
        # Effects are handed back to the executor's caller, never run here.
        return TerminationService(
            session,
            clock=clock,
            config=self._config or get_active_config(),
            dispatcher=EffectDispatcher(),
        )


def default_task_registry(config: EngineConfig | None = None) -> TaskRegistry:
    """Registry with every rental batch task registered."""
    registry = TaskRegistry()
    registry.register(TerminationCountdownTask(config))
    return registry


def schedule_termination_sweep(scheduler, config: EngineConfig | None = None):
    """Register the countdown sweep on ``scheduler`` at the configured frequency."""
    config = config or get_active_config()
    return scheduler.add_schedule(
        job_name="termination_countdown_sweep",
        task_type=TERMINATION_COUNTDOWN_SWEEP,
        frequency=config.sweep_frequency,
    )
