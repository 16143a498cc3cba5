"""
Pytest fixtures for the rental engine test suite.

Provides:
- A fresh SQLite in-memory database per test (tables created from the ORM)
- A deterministic clock and the packaged engine config
- Booking / listing / payment factories
- Captured structured logs

Concurrency tests build their own file-backed database (see
``tests/concurrency``) because in-memory SQLite shares one connection.
"""

import json
import logging
from datetime import date, datetime, timezone
from decimal import Decimal
from io import StringIO
from typing import Generator
from uuid import UUID, uuid4

import pytest
from sqlalchemy import text
from sqlalchemy.orm import Session

from rental_config import EngineConfig
from rental_kernel.db.engine import (
    create_tables,
    get_session,
    init_engine_from_url,
    reset_engine,
)
from rental_kernel.domain.clock import DeterministicClock
from rental_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from rental_kernel.models.booking import BookingModel
from rental_kernel.models.listing import ListingModel
from rental_kernel.models.rent_payment import RentPaymentModel
from rental_services.dispatcher import EffectDispatcher
from rental_services.events import EventBus


# Test actor ID for all test operations
TEST_ACTOR_ID = uuid4()

# 2024-01-20 12:00 UTC: five days after the default lease start
DEFAULT_NOW = datetime(2024, 1, 20, 12, 0, 0, tzinfo=timezone.utc)
DEFAULT_START = date(2024, 1, 15)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG, stream=StringIO())
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture rental_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, ledger):
            ledger.use_advance_months(booking.id)
            logs = captured_logs()
            assert any(r["message"] == "advance_months_used" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("rental_kernel")
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)


# =============================================================================
# Database
# =============================================================================


@pytest.fixture
def engine():
    """Fresh in-memory database with every table created."""
    eng = init_engine_from_url("sqlite://")
    create_tables()
    yield eng
    reset_engine()


@pytest.fixture
def session(engine) -> Generator[Session, None, None]:
    sess = get_session()
    yield sess
    sess.close()


# =============================================================================
# Time, config, collaborators
# =============================================================================


@pytest.fixture
def clock() -> DeterministicClock:
    return DeterministicClock(DEFAULT_NOW)


@pytest.fixture
def config() -> EngineConfig:
    return EngineConfig()


@pytest.fixture
def event_bus() -> EventBus:
    return EventBus()


@pytest.fixture
def recorded_events(event_bus):
    """Every ``bookingCompleted`` payload emitted during the test."""
    events: list[dict] = []
    event_bus.subscribe("bookingCompleted", lambda name, payload: events.append(payload))
    return events


@pytest.fixture
def null_dispatcher() -> EffectDispatcher:
    """Dispatcher with no collaborators: effects are accepted and dropped."""
    return EffectDispatcher()


# =============================================================================
# Factories
# =============================================================================


@pytest.fixture
def create_listing(session):
    def _create(property_id: UUID | None = None, capacity: int = 1,
                availability_status: str = "full") -> ListingModel:
        listing = ListingModel(
            id=property_id or uuid4(),
            title="Sunny Loft",
            capacity=capacity,
            availability_status=availability_status,
            created_by_id=TEST_ACTOR_ID,
        )
        session.add(listing)
        session.commit()
        return listing

    return _create


@pytest.fixture
def create_booking(session):
    """
    Factory for bookings.  Defaults: approved, paid, 15000/month starting
    2024-01-15, three advance months.
    """

    def _create(
        advance_deposit_months: int | None = 3,
        remaining_advance_months: int | None = None,
        status: str = "approved",
        payment_status: str = "paid",
        start_date: date = DEFAULT_START,
        monthly_rent: Decimal = Decimal("15000.00"),
        property_id: UUID | None = None,
        tenant_id: UUID | None = None,
    ) -> BookingModel:
        booking = BookingModel(
            tenant_id=tenant_id or uuid4(),
            owner_id=uuid4(),
            property_id=property_id or uuid4(),
            tenant_name="Tina Tenant",
            owner_name="Olly Owner",
            property_title="Sunny Loft",
            monthly_rent=monthly_rent,
            start_date=start_date,
            status=status,
            payment_status=payment_status,
            advance_deposit_months=advance_deposit_months,
            remaining_advance_months=remaining_advance_months,
            created_by_id=TEST_ACTOR_ID,
        )
        session.add(booking)
        session.commit()
        return booking

    return _create


@pytest.fixture
def create_payment(session):
    """Factory for rent payment rows on an existing booking."""

    def _create(
        booking: BookingModel,
        payment_month: str,
        due_date: date,
        status: str = "pending",
        receipt_number: str = "RENT-1-TEST",
    ) -> RentPaymentModel:
        payment = RentPaymentModel(
            booking_id=booking.id,
            tenant_id=booking.tenant_id,
            owner_id=booking.owner_id,
            property_id=booking.property_id,
            amount=booking.monthly_rent,
            late_fee=Decimal("0"),
            total_amount=booking.monthly_rent,
            payment_month=payment_month,
            due_date=due_date,
            status=status,
            receipt_number=receipt_number,
            created_by_id=booking.tenant_id,
        )
        session.add(payment)
        session.commit()
        return payment

    return _create


@pytest.fixture
def break_bookings_table(session):
    """Rename the bookings table away so every booking query fails."""

    def _break() -> None:
        session.execute(text("ALTER TABLE bookings RENAME TO bookings_archived"))
        session.commit()

    return _break
