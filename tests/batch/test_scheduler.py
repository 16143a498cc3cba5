"""
BatchScheduler: tick fires due schedules, commits, dispatches effects after
the commit, and records the next run.  Failures are recorded, not raised.
"""

from datetime import datetime, timedelta, timezone

import pytest

from rental_batch.domain.types import BatchJobStatus, ScheduleFrequency
from rental_batch.services.executor import BatchExecutor
from rental_batch.services.scheduler import BatchScheduler
from rental_batch.tasks.termination_tasks import (
    TERMINATION_COUNTDOWN_SWEEP,
    default_task_registry,
    schedule_termination_sweep,
)
from rental_config import EngineConfig
from rental_kernel.db.engine import get_session_factory
from rental_kernel.domain.clock import DeterministicClock
from rental_kernel.models.booking import BookingModel
from rental_modules.termination.service import TerminationService
from rental_services.dispatcher import EffectDispatcher

AFTER_COUNTDOWN = datetime(2024, 5, 1, tzinfo=timezone.utc)


@pytest.fixture
def scheduler_clock() -> DeterministicClock:
    return DeterministicClock(AFTER_COUNTDOWN)


@pytest.fixture
def scheduler(engine, config, event_bus, scheduler_clock):
    return BatchScheduler(
        session_factory=get_session_factory(),
        executor_factory=lambda s: BatchExecutor(
            s, default_task_registry(config), scheduler_clock,
        ),
        dispatcher_factory=lambda s: EffectDispatcher(events=event_bus),
        clock=scheduler_clock,
        tick_interval_seconds=3600,
    )


@pytest.fixture
def expired_countdown(session, clock, config, null_dispatcher, create_booking):
    booking = create_booking(advance_deposit_months=2)
    service = TerminationService(session, clock=clock, config=config, dispatcher=null_dispatcher)
    assert service.end_rental_stay(booking.id, booking.tenant_id).success
    # release the shared in-memory connection before the scheduler's session uses it
    session.close()
    return booking


class TestTick:
    def test_fires_due_schedule(
        self, session, scheduler, scheduler_clock, expired_countdown, recorded_events,
    ):
        schedule = scheduler.add_schedule(
            "termination_countdown_sweep", TERMINATION_COUNTDOWN_SWEEP, ScheduleFrequency.DAILY,
        )

        assert scheduler.tick() == 1

        session.expire_all()
        assert session.get(BookingModel, expired_countdown.id).status == "completed"
        assert [e["booking_id"] for e in recorded_events] == [str(expired_countdown.id)]
        updated = scheduler.get_schedule(schedule.schedule_id)
        assert updated.last_run_at == scheduler_clock.now()
        assert updated.last_run_status == BatchJobStatus.COMPLETED
        assert updated.next_run_at == AFTER_COUNTDOWN + timedelta(days=1)

    def test_not_due_until_next_run(self, scheduler, scheduler_clock):
        scheduler.add_schedule("sweep", TERMINATION_COUNTDOWN_SWEEP, "daily")
        assert scheduler.tick() == 1
        assert scheduler.tick() == 0

        scheduler_clock.advance_days(1)
        assert scheduler.tick() == 1

    def test_future_first_run(self, scheduler, scheduler_clock):
        scheduler.add_schedule(
            "sweep", TERMINATION_COUNTDOWN_SWEEP, "hourly",
            next_run_at=scheduler_clock.now() + timedelta(minutes=30),
        )
        assert scheduler.tick() == 0

    def test_on_demand_never_fires(self, scheduler):
        scheduler.add_schedule("manual", TERMINATION_COUNTDOWN_SWEEP, ScheduleFrequency.ON_DEMAND)
        assert scheduler.tick() == 0

    def test_failure_recorded(self, engine, scheduler_clock, captured_logs):
        def broken_executor(session):
            raise RuntimeError("executor unavailable")

        scheduler = BatchScheduler(
            session_factory=get_session_factory(),
            executor_factory=broken_executor,
            clock=scheduler_clock,
        )
        schedule = scheduler.add_schedule("sweep", TERMINATION_COUNTDOWN_SWEEP, "daily")

        assert scheduler.tick() == 0

        updated = scheduler.get_schedule(schedule.schedule_id)
        assert updated.last_run_status == BatchJobStatus.FAILED
        assert updated.next_run_at == AFTER_COUNTDOWN + timedelta(days=1)
        assert any(r["message"] == "schedule_fire_failed" for r in captured_logs())


class TestRegistration:
    def test_sweep_uses_configured_frequency(self, scheduler):
        schedule = schedule_termination_sweep(scheduler, EngineConfig(sweep_frequency="hourly"))
        assert schedule.frequency == ScheduleFrequency.HOURLY
        assert schedule.task_type == TERMINATION_COUNTDOWN_SWEEP
        assert scheduler.schedules() == (schedule,)

    def test_unknown_frequency_rejected(self, scheduler):
        with pytest.raises(ValueError):
            scheduler.add_schedule("sweep", TERMINATION_COUNTDOWN_SWEEP, "fortnightly")


def test_start_and_stop(scheduler):
    scheduler.start()
    assert scheduler.is_running
    scheduler.stop(timeout=5)
    assert not scheduler.is_running
