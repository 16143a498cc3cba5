"""Pure schedule evaluation: should_fire and compute_next_run."""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from rental_batch.domain.schedule import compute_next_run, should_fire
from rental_batch.domain.types import JobSchedule, ScheduleFrequency

NOW = datetime(2024, 4, 21, 0, 0, tzinfo=timezone.utc)


def _schedule(**overrides) -> JobSchedule:
    fields = dict(
        schedule_id=uuid4(),
        job_name="termination_countdown_sweep",
        task_type="termination.countdown_sweep",
        frequency=ScheduleFrequency.DAILY,
    )
    fields.update(overrides)
    return JobSchedule(**fields)


class TestShouldFire:
    def test_never_run_fires(self):
        assert should_fire(_schedule(), NOW)

    def test_due_fires(self):
        assert should_fire(_schedule(next_run_at=NOW), NOW)
        assert should_fire(_schedule(next_run_at=NOW - timedelta(minutes=1)), NOW)

    def test_not_yet_due(self):
        assert not should_fire(_schedule(next_run_at=NOW + timedelta(seconds=1)), NOW)

    def test_inactive(self):
        assert not should_fire(_schedule(is_active=False), NOW)

    def test_on_demand(self):
        assert not should_fire(_schedule(frequency=ScheduleFrequency.ON_DEMAND), NOW)


class TestComputeNextRun:
    @pytest.mark.parametrize("frequency,delta", [
        (ScheduleFrequency.HOURLY, timedelta(hours=1)),
        (ScheduleFrequency.DAILY, timedelta(days=1)),
        (ScheduleFrequency.WEEKLY, timedelta(days=7)),
    ])
    def test_recurring(self, frequency, delta):
        assert compute_next_run(frequency, NOW) == NOW + delta

    def test_on_demand_has_no_next_run(self):
        assert compute_next_run(ScheduleFrequency.ON_DEMAND, NOW) is None

    def test_never_run(self):
        assert compute_next_run(ScheduleFrequency.DAILY, None) is None
