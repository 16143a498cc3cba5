"""
rental_batch -- recurring jobs for the rental engine.

- domain: frozen DTOs and pure schedule evaluation
- tasks: the ``BatchTask`` protocol, registry, and concrete tasks
- services: SAVEPOINT-per-item executor and in-process polling scheduler
"""

from rental_batch.domain.schedule import compute_next_run, should_fire
from rental_batch.domain.types import (
    BatchItemResult,
    BatchItemStatus,
    BatchJobStatus,
    BatchRunResult,
    JobSchedule,
    ScheduleFrequency,
)
from rental_batch.services.executor import BatchExecutor
from rental_batch.services.scheduler import BatchScheduler
from rental_batch.tasks.base import BatchItemInput, BatchTask, BatchTaskResult, TaskRegistry
from rental_batch.tasks.termination_tasks import (
    TerminationCountdownTask,
    default_task_registry,
    schedule_termination_sweep,
)

__all__ = [
    "BatchExecutor",
    "BatchItemInput",
    "BatchItemResult",
    "BatchItemStatus",
    "BatchJobStatus",
    "BatchRunResult",
    "BatchScheduler",
    "BatchTask",
    "BatchTaskResult",
    "JobSchedule",
    "ScheduleFrequency",
    "TaskRegistry",
    "TerminationCountdownTask",
    "compute_next_run",
    "default_task_registry",
    "schedule_termination_sweep",
    "should_fire",
]
