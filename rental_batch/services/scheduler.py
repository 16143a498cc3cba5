"""
BatchScheduler -- In-process polling scheduler.

Contract:
    Polls registered schedules on a configurable interval, evaluates
    ``should_fire()`` (pure), runs due ones via ``BatchExecutor``, commits,
    then dispatches the collected effects.

Invariants enforced:
    - All timestamps from injected Clock.
    - Schedule evaluation is pure (should_fire).
    - Effects are dispatched only after the run's transaction committed.
    - Graceful shutdown (respects stop signal between schedules).
"""

from __future__ import annotations

import dataclasses
import threading
from typing import Callable
from uuid import UUID, uuid4

from sqlalchemy.orm import Session

from rental_batch.domain.schedule import compute_next_run, should_fire
from rental_batch.domain.types import BatchJobStatus, JobSchedule, ScheduleFrequency
from rental_batch.services.executor import BatchExecutor
from rental_kernel.domain.clock import Clock, SystemClock
from rental_kernel.logging_config import get_logger
from rental_services.dispatcher import EffectDispatcher

logger = get_logger("batch.scheduler")


class BatchScheduler:
    """In-process polling scheduler for batch job schedules.

    Contract:
        - ``add_schedule()`` registers a recurring job.
        - ``tick()`` evaluates all active schedules, fires due ones.
        - ``start()`` / ``stop()`` for background thread operation.

    Non-goals:
        - NOT a distributed scheduler (no leader election).
        - Does NOT persist schedules; they live for the process lifetime.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        executor_factory: Callable[[Session], BatchExecutor],
        dispatcher_factory: Callable[[Session], EffectDispatcher] | None = None,
        clock: Clock | None = None,
        tick_interval_seconds: int = 60,
    ):
        self._session_factory = session_factory
        self._executor_factory = executor_factory
        self._dispatcher_factory = dispatcher_factory
        self._clock = clock or SystemClock()
        self._tick_interval = tick_interval_seconds
        self._schedules: dict[UUID, JobSchedule] = {}
        self._schedules_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    # -------------------------------------------------------------------------
    # Schedules
    # -------------------------------------------------------------------------

    def add_schedule(
        self,
        job_name: str,
        task_type: str,
        frequency: ScheduleFrequency | str,
        parameters: dict | None = None,
        next_run_at=None,
    ) -> JobSchedule:
        """Register a recurring job; it first fires on the next tick unless ``next_run_at`` is given."""
        schedule = JobSchedule(
            schedule_id=uuid4(),
            job_name=job_name,
            task_type=task_type,
            frequency=ScheduleFrequency(frequency),
            parameters=dict(parameters or {}),
            next_run_at=next_run_at,
        )
        with self._schedules_lock:
            self._schedules[schedule.schedule_id] = schedule
        logger.info(
            "schedule_added",
            extra={
                "schedule_id": str(schedule.schedule_id),
                "job_name": job_name,
                "frequency": schedule.frequency.value,
            },
        )
        return schedule

    def schedules(self) -> tuple[JobSchedule, ...]:
        with self._schedules_lock:
            return tuple(self._schedules.values())

    def get_schedule(self, schedule_id: UUID) -> JobSchedule | None:
        with self._schedules_lock:
            return self._schedules.get(schedule_id)

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def tick(self) -> int:
        """Evaluate and fire due schedules (public for testing).

        Returns the number of schedules that were fired.
        """
        now = self._clock.now()
        fired = 0
        for schedule in self.schedules():
            if self._stop_event.is_set():
                break
            if not should_fire(schedule, now):
                continue
            if self._fire(schedule, now):
                fired += 1
        return fired

    def start(self) -> None:
        """Start the scheduler in a background thread."""
        if self._thread is not None and self._thread.is_alive():
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run_loop,
            name="batch-scheduler",
            daemon=True,
        )
        self._thread.start()
        logger.info("scheduler_started", extra={"tick_interval": self._tick_interval})

    def stop(self, timeout: float = 30.0) -> None:
        """Signal stop and wait for the scheduler to finish.

        Args:
            timeout: Max seconds to wait for the thread to finish.
        """
        self._stop_event.set()
        if self._thread is not None and self._thread.is_alive():
            self._thread.join(timeout=timeout)
        logger.info("scheduler_stopped")

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    # -------------------------------------------------------------------------
    # Internal
    # -------------------------------------------------------------------------

    def _run_loop(self) -> None:
        """Background polling loop. Exits when stop_event is set."""
        while not self._stop_event.is_set():
            try:
                self.tick()
            except Exception:
                logger.exception("scheduler_tick_exception")
            self._stop_event.wait(timeout=self._tick_interval)

    def _fire(self, schedule: JobSchedule, now) -> bool:
        session = self._session_factory()
        try:
            executor = self._executor_factory(session)
            result = executor.run(schedule.task_type, schedule.parameters)
            session.commit()
        except Exception:
            session.rollback()
            logger.exception(
                "schedule_fire_failed",
                extra={
                    "schedule_id": str(schedule.schedule_id),
                    "job_name": schedule.job_name,
                },
            )
            self._record_run(schedule, now, BatchJobStatus.FAILED)
            session.close()
            return False

        try:
            if self._dispatcher_factory is not None and result.effects:
                self._dispatcher_factory(session).dispatch(result.effects)
        finally:
            session.close()

        next_run = self._record_run(schedule, now, result.status)
        logger.info(
            "schedule_fired",
            extra={
                "schedule_id": str(schedule.schedule_id),
                "job_name": schedule.job_name,
                "run_id": str(result.run_id),
                "status": result.status.value,
                "next_run_at": str(next_run) if next_run else None,
            },
        )
        return True

    def _record_run(self, schedule: JobSchedule, now, status: BatchJobStatus):
        next_run = compute_next_run(schedule.frequency, now)
        with self._schedules_lock:
            self._schedules[schedule.schedule_id] = dataclasses.replace(
                schedule,
                last_run_at=now,
                last_run_status=status,
                next_run_at=next_run,
            )
        return next_run
