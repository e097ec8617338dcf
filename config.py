import os
from functools import lru_cache
from pathlib import Path

from schemas import DashboardThresholds


class Settings:
    def __init__(
        self,
        database_url: str,
        timezone: str,
        loader_workers: int,
        sync_interval_minutes: int,
        thresholds: DashboardThresholds,
    ) -> None:
        self.database_url = database_url
        self.timezone = timezone
        self.loader_workers = loader_workers
        self.sync_interval_minutes = sync_interval_minutes
        self.thresholds = thresholds


_THRESHOLD_ENV = {
    "category_variance_threshold": "BUDGET_CATEGORY_VARIANCE_THRESHOLD",
    "trend_std_threshold": "BUDGET_TREND_STD_THRESHOLD",
    "trend_percent_threshold": "BUDGET_TREND_PERCENT_THRESHOLD",
    "forecast_lookahead_months": "BUDGET_FORECAST_LOOKAHEAD_MONTHS",
    "top_vendor_limit": "BUDGET_TOP_VENDOR_LIMIT",
    "top_transaction_limit": "BUDGET_TOP_TRANSACTION_LIMIT",
    "trend_window_months": "BUDGET_TREND_WINDOW_MONTHS",
    "max_month_guard": "BUDGET_MAX_MONTH_GUARD",
}


def _ensure_data_dir() -> Path:
    root = Path(os.getenv("BUDGET_DATA_DIR", "./data")).resolve()
    root.mkdir(parents=True, exist_ok=True)
    return root


def thresholds_from_env() -> DashboardThresholds:
    overrides = {
        field: os.environ[env_name]
        for field, env_name in _THRESHOLD_ENV.items()
        if os.getenv(env_name)
    }
    return DashboardThresholds(**overrides)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    data_dir = _ensure_data_dir()
    default_db = data_dir / "budget.db"
    database_url = os.getenv("BUDGET_DATABASE_URL", f"sqlite:///{default_db}")
    timezone = os.getenv("BUDGET_TIMEZONE", "America/New_York")
    loader_workers = int(os.getenv("BUDGET_LOADER_WORKERS", "4"))
    sync_interval_minutes = int(os.getenv("BUDGET_SYNC_INTERVAL_MINUTES", "60"))
    return Settings(
        database_url=database_url,
        timezone=timezone,
        loader_workers=loader_workers,
        sync_interval_minutes=sync_interval_minutes,
        thresholds=thresholds_from_env(),
    )
