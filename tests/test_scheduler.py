from contextlib import contextmanager
from datetime import date
from decimal import Decimal

from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy import create_engine, select
from sqlalchemy.orm import Session

import scheduler
from config import Settings
from database import Base
from models import (
    Budget,
    BudgetAllocation,
    Category,
    CategorySection,
    Transaction,
    TransactionType,
)
from schemas import DashboardThresholds


def _settings() -> Settings:
    return Settings(
        database_url="sqlite:///:memory:",
        timezone="UTC",
        loader_workers=1,
        sync_interval_minutes=15,
        thresholds=DashboardThresholds(),
    )


def test_job_specs_follow_settings() -> None:
    manager = scheduler.SchedulerManager(_settings())

    specs = {
        job_id: (trigger, source)
        for job_id, trigger, source, _ in manager.job_specs()
    }

    assert isinstance(specs["spent_sync_daily"][0], CronTrigger)
    interval, source = specs["spent_sync_interval"]
    assert isinstance(interval, IntervalTrigger)
    assert interval.interval.total_seconds() == 15 * 60
    assert source == "every_15m"


def test_run_job_syncs_current_month(monkeypatch) -> None:
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)

    with Session(engine) as session:
        session.add(Category(id="fuel", name="Fuel", section=CategorySection.expenses))
        session.flush()
        session.add_all(
            [
                Budget(
                    month=date(2026, 10, 1),
                    allocations=[
                        BudgetAllocation(
                            category_id="fuel", section=CategorySection.expenses
                        )
                    ],
                ),
                Transaction(
                    occurred_on=date(2026, 10, 6),
                    amount=Decimal("48.20"),
                    type=TransactionType.expense,
                    category_id="fuel",
                ),
            ]
        )
        session.commit()

    @contextmanager
    def fake_scope():
        with Session(engine) as session:
            yield session
            session.commit()

    monkeypatch.setattr(scheduler, "session_scope", fake_scope)
    manager = scheduler.SchedulerManager(_settings())
    monkeypatch.setattr(manager, "today", lambda: date(2026, 10, 18))

    assert manager._run_job("test") == 1

    with Session(engine) as session:
        allocation = session.scalars(select(BudgetAllocation)).one()
        assert float(allocation.spent_amount) == 48.2
