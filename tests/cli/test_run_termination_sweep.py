"""Command-line sweep: exit codes and JSON counters."""

import json
from datetime import date, timedelta
from decimal import Decimal
from uuid import uuid4

import pytest

from rental_config import CONFIG_ENV_VAR
from rental_kernel.db.engine import (
    create_tables,
    get_session,
    init_engine_from_url,
    reset_engine,
)
from rental_kernel.domain.clock import SystemClock
from rental_kernel.models.booking import BookingModel
from scripts.run_termination_sweep import DATABASE_URL_ENV_VAR, main


@pytest.fixture
def database_url(tmp_path, monkeypatch):
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
    monkeypatch.delenv(DATABASE_URL_ENV_VAR, raising=False)
    url = f"sqlite:///{tmp_path / 'sweep.db'}"
    init_engine_from_url(url)
    create_tables()
    yield url
    reset_engine()


def _seed_expired_countdown() -> None:
    now = SystemClock().now()
    session = get_session()
    booking = BookingModel(
        tenant_id=uuid4(),
        owner_id=uuid4(),
        property_id=uuid4(),
        monthly_rent=Decimal("12000.00"),
        start_date=date(2024, 1, 15),
        status="approved",
        payment_status="paid",
        advance_deposit_months=1,
        remaining_advance_months=0,
        created_by_id=uuid4(),
    )
    booking.begin_countdown(now - timedelta(days=40), now - timedelta(days=1))
    session.add(booking)
    session.commit()
    session.close()


def test_sweep_prints_counters(database_url, capsys):
    _seed_expired_countdown()

    assert main(["--database-url", database_url]) == 0

    counters = json.loads(capsys.readouterr().out)
    assert counters == {"processed": 1, "removed": 1, "errors": 0}


def test_database_url_from_environment(database_url, monkeypatch, capsys):
    monkeypatch.setenv(DATABASE_URL_ENV_VAR, database_url)

    assert main([]) == 0
    assert json.loads(capsys.readouterr().out)["processed"] == 0


def test_invalid_config_file(database_url, tmp_path, capsys):
    bad = tmp_path / "bad.yaml"
    bad.write_text("engine:\n  sweep_frequency: fortnightly\n")

    assert main(["--database-url", database_url, "--config", str(bad)]) == 2
    assert "Invalid config" in capsys.readouterr().err


def test_missing_database_url(monkeypatch):
    monkeypatch.delenv(DATABASE_URL_ENV_VAR, raising=False)
    with pytest.raises(SystemExit):
        main([])
