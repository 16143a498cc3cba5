"""
BatchExecutor -- SAVEPOINT-per-item batch execution engine.

Contract:
    Resolves a registered task, prepares its items, and runs each item in
    its own SAVEPOINT.  Item failures are recorded, not raised.

Architecture: rental_batch/services.  Imports from rental_batch.domain,
    rental_batch.tasks, and the kernel.

Invariants enforced:
    - SAVEPOINT isolation per item (one failure doesn't abort the run).
    - All timestamps from injected Clock.
    - Effects of succeeded items only are returned to the caller.
"""

from __future__ import annotations

import time
from typing import Any
from uuid import uuid4

from sqlalchemy.orm import Session

from rental_batch.domain.types import (
    BatchItemResult,
    BatchItemStatus,
    BatchJobStatus,
    BatchRunResult,
)
from rental_batch.tasks.base import BatchItemInput, BatchTask, TaskRegistry
from rental_kernel.domain.clock import Clock, SystemClock
from rental_kernel.logging_config import LogContext, get_logger

logger = get_logger("batch.executor")

UNHANDLED_EXCEPTION = "UNHANDLED_EXCEPTION"


def _run_status(succeeded: int, failed: int, skipped: int) -> BatchJobStatus:
    if failed == 0:
        return BatchJobStatus.COMPLETED
    if succeeded == 0 and skipped == 0:
        return BatchJobStatus.FAILED
    return BatchJobStatus.PARTIALLY_COMPLETED


class BatchExecutor:
    """Batch execution engine with SAVEPOINT-per-item isolation.

    Non-goals:
        - Does NOT call ``session.commit()`` -- caller controls boundaries.
        - Does NOT dispatch effects -- they are returned on the run result.
        - Does NOT manage background threads -- that is the scheduler's job.
    """

    def __init__(
        self,
        session: Session,
        task_registry: TaskRegistry,
        clock: Clock | None = None,
    ):
        self._session = session
        self._task_registry = task_registry
        self._clock = clock or SystemClock()

    def run(
        self,
        task_type: str,
        parameters: dict[str, Any] | None = None,
    ) -> BatchRunResult:
        """Run every item of ``task_type`` once.

        Raises:
            TaskNotRegisteredError: If task_type is not in the registry.
        """
        task = self._task_registry.get(task_type)
        parameters = parameters or {}
        run_id = uuid4()
        start_time = time.monotonic()
        started_at = self._clock.now()

        with LogContext.bind(job_id=str(run_id)):
            items = task.prepare_items(
                parameters=parameters,
                session=self._session,
                as_of=started_at,
            )
            logger.info(
                "batch_run_started",
                extra={"task_type": task_type, "total_items": len(items)},
            )

            item_results: list[BatchItemResult] = []
            effects: list[Any] = []
            for batch_item in items:
                item_result, item_effects = self._execute_item(
                    task, batch_item, parameters, started_at,
                )
                item_results.append(item_result)
                effects.extend(item_effects)

            succeeded = sum(
                1 for r in item_results if r.status == BatchItemStatus.SUCCEEDED
            )
            failed = sum(1 for r in item_results if r.status == BatchItemStatus.FAILED)
            skipped = len(item_results) - succeeded - failed
            status = _run_status(succeeded, failed, skipped)
            completed_at = self._clock.now()
            duration = int((time.monotonic() - start_time) * 1000)

            logger.info(
                "batch_run_completed",
                extra={
                    "task_type": task_type,
                    "status": status.value,
                    "succeeded": succeeded,
                    "failed": failed,
                    "skipped": skipped,
                    "duration_ms": duration,
                },
            )

        return BatchRunResult(
            run_id=run_id,
            task_type=task_type,
            status=status,
            total_items=len(items),
            succeeded=succeeded,
            failed=failed,
            skipped=skipped,
            item_results=tuple(item_results),
            effects=tuple(effects),
            started_at=started_at,
            completed_at=completed_at,
            duration_ms=duration,
        )

    def _execute_item(
        self,
        task: BatchTask,
        batch_item: BatchItemInput,
        parameters: dict[str, Any],
        as_of,
    ) -> tuple[BatchItemResult, tuple[Any, ...]]:
        item_start = time.monotonic()
        item_started_at = self._clock.now()

        savepoint = self._session.begin_nested()
        try:
            result = task.execute_item(
                item=batch_item,
                parameters=parameters,
                session=self._session,
                as_of=as_of,
            )
        except Exception as exc:
            savepoint.rollback()
            logger.exception(
                "batch_item_failed",
                extra={"item_key": batch_item.item_key},
            )
            return BatchItemResult(
                item_index=batch_item.item_index,
                item_key=batch_item.item_key,
                status=BatchItemStatus.FAILED,
                error_code=UNHANDLED_EXCEPTION,
                error_message=str(exc),
                duration_ms=int((time.monotonic() - item_start) * 1000),
                started_at=item_started_at,
                completed_at=self._clock.now(),
            ), ()

        if result.status == BatchItemStatus.SUCCEEDED:
            savepoint.commit()
            effects = result.effects
        else:
            savepoint.rollback()
            effects = ()
            if result.status == BatchItemStatus.FAILED:
                logger.warning(
                    "batch_item_failed",
                    extra={
                        "item_key": batch_item.item_key,
                        "error_code": result.error_code,
                    },
                )

        return BatchItemResult(
            item_index=batch_item.item_index,
            item_key=batch_item.item_key,
            status=result.status,
            error_code=result.error_code,
            error_message=result.error_message,
            result_data=result.result_data,
            duration_ms=int((time.monotonic() - item_start) * 1000),
            started_at=item_started_at,
            completed_at=self._clock.now(),
        ), effects
