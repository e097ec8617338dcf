import logging
from datetime import date, datetime
from typing import Optional
from zoneinfo import ZoneInfo

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.base import BaseTrigger
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from budget_sync import sync_budget_spent_for_month
from config import Settings, get_settings
from database import session_scope


logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class SchedulerManager:
    """Keeps the current month's allocation spend in step with the ledger."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self.settings = settings or get_settings()
        self.scheduler = BackgroundScheduler(timezone=self.settings.timezone)

    def today(self) -> date:
        return datetime.now(ZoneInfo(self.settings.timezone)).date()

    def _run_job(self, source: str = "manual") -> int:
        month = self.today()
        with session_scope() as session:
            count = sync_budget_spent_for_month(session, month)
        logger.info(
            f"spent_sync_run: source={source} month={month:%Y-%m} "
            f"allocations_updated={count}"
        )
        return count

    def job_specs(self) -> list[tuple[str, BaseTrigger, str, int]]:
        """(job id, trigger, source label, misfire grace seconds)."""
        minutes = self.settings.sync_interval_minutes
        return [
            ("spent_sync_daily", CronTrigger(hour=3, minute=15), "daily_03:15", 3600),
            (
                "spent_sync_interval",
                IntervalTrigger(minutes=minutes),
                f"every_{minutes}m",
                300,
            ),
        ]

    def start(self) -> None:
        self._run_job("startup")
        for job_id, trigger, source, grace in self.job_specs():
            self.scheduler.add_job(
                self._run_job,
                trigger,
                args=[source],
                id=job_id,
                replace_existing=True,
                misfire_grace_time=grace,
            )
        self.scheduler.start()
        logger.info(
            f"spent_sync_scheduler_started: jobs={len(self.scheduler.get_jobs())} "
            f"interval_minutes={self.settings.sync_interval_minutes}"
        )

    def stop(self) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("spent_sync_scheduler_stopped")
