"""
BookingMutationGuard -- serialized, retried read-modify-write on a booking.

Responsibility:
    Every ledger and termination mutation reads a booking row, decides, and
    writes it back.  The guard runs such a unit of work so that concurrent
    callers cannot lose updates.

Architecture position:
    Kernel > Services.  Used by the advance-deposit, termination and rent
    module services; owns the commit/rollback boundary of the work it runs.

Invariants enforced:
    - At most one unit of work per booking id runs at a time inside the
      process (keyed ``threading.Lock``, shared by every guard instance).
    - Across processes, ``bookings.version`` is the optimistic version
      column; a stale write raises ``StaleDataError``.  The guard rolls back,
      and re-runs the work (which must re-read the row) up to
      ``retry_limit`` times before raising ``OptimisticLockError``.
    - In savepoint mode the work runs inside ``session.begin_nested()``; a
      failure rolls back only that savepoint and the outer transaction is
      left for the caller to commit.

Failure modes:
    - OptimisticLockError after ``retry_limit`` conflicting attempts.
    - Any other exception from the work: rolled back, re-raised.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import TypeVar
from uuid import UUID

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from rental_kernel.exceptions import OptimisticLockError
from rental_kernel.logging_config import get_logger

logger = get_logger("services.mutation_guard")

T = TypeVar("T")

DEFAULT_RETRY_LIMIT = 3


class _KeyedLocks:
    """
    One ``threading.Lock`` per key, held only while some thread uses it.

    Each entry counts the threads holding or waiting on its lock; the last
    one out removes the entry, so the map stays as small as the set of
    bookings being mutated right now.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, list] = {}  # key -> [lock, users]

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = [threading.Lock(), 0]
                self._locks[key] = entry
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[key]

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)


_BOOKING_LOCKS = _KeyedLocks()


class BookingMutationGuard:
    """
    Runs a unit of work against one booking with locking and retry.

    Contract:
        ``work`` is a zero-argument callable that re-reads the booking (via
        ``BookingSelector.get_for_update``), mutates it, and returns a value.
        It must not commit.
    """

    def __init__(self, session: Session, retry_limit: int = DEFAULT_RETRY_LIMIT):
        if retry_limit < 1:
            raise ValueError(f"retry_limit must be >= 1, got {retry_limit}")
        self._session = session
        self._retry_limit = retry_limit

    @property
    def retry_limit(self) -> int:
        return self._retry_limit

    def run(
        self,
        booking_id: UUID,
        work: Callable[[], T],
        *,
        savepoint: bool = False,
    ) -> T:
        """
        Execute ``work`` for ``booking_id`` and persist it.

        Without ``savepoint`` the session is committed on success and rolled
        back on failure.  With ``savepoint`` the work is flushed inside a
        nested transaction and the caller commits.
        """
        with _BOOKING_LOCKS.hold(str(booking_id)):
            attempt = 0
            while True:
                attempt += 1
                try:
                    return self._attempt(work, savepoint)
                except StaleDataError as exc:
                    if not savepoint:
                        self._session.rollback()
                    if attempt >= self._retry_limit:
                        logger.warning(
                            "booking_version_conflict_exhausted",
                            extra={
                                "booking_id": str(booking_id),
                                "attempts": attempt,
                            },
                        )
                        raise OptimisticLockError("Booking", str(booking_id)) from exc
                    logger.info(
                        "booking_version_conflict_retry",
                        extra={"booking_id": str(booking_id), "attempt": attempt},
                    )
                except Exception:
                    if not savepoint:
                        self._session.rollback()
                    raise

    def _attempt(self, work: Callable[[], T], savepoint: bool) -> T:
        if savepoint:
            with self._session.begin_nested():
                return work()
        result = work()
        self._session.commit()
        return result
