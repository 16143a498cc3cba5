"""
BookingMutationGuard: commit on success, rollback on failure, retry on a
stale version, savepoint mode.
"""

import threading

import pytest
from sqlalchemy import update
from sqlalchemy.orm.exc import StaleDataError

from rental_kernel.exceptions import BookingNotFoundError, OptimisticLockError
from rental_kernel.models.booking import BookingModel
from rental_kernel.selectors.booking_selector import BookingSelector
from rental_kernel.services.mutation_guard import _BOOKING_LOCKS, BookingMutationGuard, _KeyedLocks


def test_retry_limit_must_be_positive(session):
    with pytest.raises(ValueError):
        BookingMutationGuard(session, retry_limit=0)


def test_commits_on_success(session, create_booking):
    booking = create_booking(advance_deposit_months=3)
    guard = BookingMutationGuard(session)

    def work():
        row = BookingSelector(session).get_for_update(booking.id)
        row.set_remaining_advance_months(1)
        return row.remaining_advance_months

    assert guard.run(booking.id, work) == 1
    session.expire_all()
    assert session.get(BookingModel, booking.id).remaining_advance_months == 1


def test_rolls_back_and_reraises(session, create_booking):
    booking = create_booking(advance_deposit_months=3)
    guard = BookingMutationGuard(session)

    def work():
        row = BookingSelector(session).get_for_update(booking.id)
        row.set_remaining_advance_months(0)
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        guard.run(booking.id, work)
    session.expire_all()
    assert session.get(BookingModel, booking.id).remaining_advance_months is None


def test_missing_booking_propagates(session):
    from uuid import uuid4

    guard = BookingMutationGuard(session)
    with pytest.raises(BookingNotFoundError):
        guard.run(uuid4(), lambda: BookingSelector(session).get_for_update(uuid4()))


def test_retries_real_version_conflict(session, create_booking, captured_logs):
    booking = create_booking(advance_deposit_months=3)
    guard = BookingMutationGuard(session, retry_limit=3)
    attempts = []

    def work():
        attempts.append(1)
        row = BookingSelector(session).get_for_update(booking.id)
        if len(attempts) == 1:
            # Another writer bumps the version behind the ORM's back
            session.execute(
                update(BookingModel.__table__)
                .where(BookingModel.__table__.c.id == booking.id)
                .values(version=row.version + 1)
            )
        row.set_remaining_advance_months(2)
        return "ok"

    assert guard.run(booking.id, work) == "ok"
    assert len(attempts) == 2
    session.expire_all()
    assert session.get(BookingModel, booking.id).remaining_advance_months == 2
    assert any(r["message"] == "booking_version_conflict_retry" for r in captured_logs())


def test_exhausted_retries_raise_optimistic_lock(session, create_booking, captured_logs):
    booking = create_booking()
    guard = BookingMutationGuard(session, retry_limit=2)
    attempts = []

    def work():
        attempts.append(1)
        raise StaleDataError("stale")

    with pytest.raises(OptimisticLockError) as exc_info:
        guard.run(booking.id, work)
    assert len(attempts) == 2
    assert exc_info.value.entity_id == str(booking.id)
    assert any(r["message"] == "booking_version_conflict_exhausted" for r in captured_logs())


def test_savepoint_mode_leaves_commit_to_caller(session, create_booking):
    keep = create_booking(advance_deposit_months=3)
    broken = create_booking(advance_deposit_months=3)
    guard = BookingMutationGuard(session)

    def spend(booking_id, fail):
        def work():
            row = BookingSelector(session).get_for_update(booking_id)
            row.set_remaining_advance_months(0)
            if fail:
                raise RuntimeError("item failed")
        return work

    guard.run(keep.id, spend(keep.id, False), savepoint=True)
    with pytest.raises(RuntimeError):
        guard.run(broken.id, spend(broken.id, True), savepoint=True)
    session.commit()

    session.expire_all()
    assert session.get(BookingModel, keep.id).remaining_advance_months == 0
    assert session.get(BookingModel, broken.id).remaining_advance_months is None


def test_lock_entry_released_after_run(session, create_booking):
    booking = create_booking(advance_deposit_months=3)
    guard = BookingMutationGuard(session)
    seen_during_work = []

    def work():
        seen_during_work.append(len(_BOOKING_LOCKS))
        return BookingSelector(session).get_for_update(booking.id).id

    guard.run(booking.id, work)

    assert seen_during_work == [1]
    assert len(_BOOKING_LOCKS) == 0


def test_lock_entry_released_after_failure(session, create_booking):
    booking = create_booking(advance_deposit_months=3)

    def work():
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        BookingMutationGuard(session).run(booking.id, work)
    assert len(_BOOKING_LOCKS) == 0


class TestKeyedLocks:
    def test_waiting_thread_keeps_entry_alive(self):
        locks = _KeyedLocks()
        entered = threading.Event()
        release = threading.Event()
        order = []

        def first():
            with locks.hold("b-1"):
                entered.set()
                release.wait(timeout=5)
                order.append("first")

        def second():
            entered.wait(timeout=5)
            with locks.hold("b-1"):
                order.append("second")

        t1 = threading.Thread(target=first)
        t2 = threading.Thread(target=second)
        t1.start()
        t2.start()
        entered.wait(timeout=5)
        assert len(locks) == 1
        release.set()
        t1.join(timeout=5)
        t2.join(timeout=5)

        assert order == ["first", "second"]
        assert len(locks) == 0

    def test_many_keys_do_not_accumulate(self):
        locks = _KeyedLocks()
        for i in range(100):
            with locks.hold(f"booking-{i}"):
                pass
        assert len(locks) == 0
