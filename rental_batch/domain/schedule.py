"""
Pure schedule evaluation functions.

Contract:
    ``should_fire(schedule, as_of)`` and ``compute_next_run()`` are PURE --
    no I/O, no side effects.  All timestamps come from the caller.
"""

from __future__ import annotations

from datetime import datetime, timedelta

from rental_batch.domain.types import JobSchedule, ScheduleFrequency

_DELTAS = {
    ScheduleFrequency.HOURLY: timedelta(hours=1),
    ScheduleFrequency.DAILY: timedelta(days=1),
    ScheduleFrequency.WEEKLY: timedelta(weeks=1),
}


def should_fire(schedule: JobSchedule, as_of: datetime) -> bool:
    """Determine if a schedule should fire at the given time.

    Rules:
        - Inactive schedules never fire.
        - ON_DEMAND never fires automatically.
        - Otherwise fires when ``next_run_at`` is unset or ``as_of >= next_run_at``.
    """
    if not schedule.is_active:
        return False
    if schedule.frequency == ScheduleFrequency.ON_DEMAND:
        return False
    if schedule.next_run_at is not None and as_of < schedule.next_run_at:
        return False
    return True


def compute_next_run(
    frequency: ScheduleFrequency,
    last_run_at: datetime | None,
) -> datetime | None:
    """Next run time after ``last_run_at``; None for ON_DEMAND or a schedule that never ran."""
    delta = _DELTAS.get(frequency)
    if delta is None or last_run_at is None:
        return None
    return last_run_at + delta
