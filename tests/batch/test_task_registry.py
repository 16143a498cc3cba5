"""TaskRegistry registration and lookup."""

import pytest

from rental_batch.tasks.base import BatchTask, TaskRegistry
from rental_batch.tasks.termination_tasks import (
    TERMINATION_COUNTDOWN_SWEEP,
    TerminationCountdownTask,
    default_task_registry,
)
from rental_kernel.exceptions import TaskNotRegisteredError


def test_termination_task_satisfies_protocol():
    assert isinstance(TerminationCountdownTask(), BatchTask)


def test_register_and_get():
    registry = TaskRegistry()
    task = TerminationCountdownTask()
    registry.register(task)
    assert registry.get(TERMINATION_COUNTDOWN_SWEEP) is task
    assert TERMINATION_COUNTDOWN_SWEEP in registry
    assert len(registry) == 1


def test_duplicate_rejected():
    registry = TaskRegistry()
    registry.register(TerminationCountdownTask())
    with pytest.raises(ValueError, match="already registered"):
        registry.register(TerminationCountdownTask())


def test_missing_task():
    registry = default_task_registry()
    with pytest.raises(TaskNotRegisteredError) as exc_info:
        registry.get("nope")
    assert exc_info.value.available == (TERMINATION_COUNTDOWN_SWEEP,)
    assert exc_info.value.code == "TASK_NOT_REGISTERED"


def test_default_registry_lists_sweep():
    assert default_task_registry().list_tasks() == (TERMINATION_COUNTDOWN_SWEEP,)
