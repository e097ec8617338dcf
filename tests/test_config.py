import pytest
from pydantic import ValidationError

from config import thresholds_from_env
from schemas import DashboardThresholds


def test_threshold_defaults() -> None:
    thresholds = DashboardThresholds()

    assert thresholds.category_variance_threshold == 0.12
    assert thresholds.trend_std_threshold == 2
    assert thresholds.trend_percent_threshold == 0.25
    assert thresholds.forecast_lookahead_months == 3
    assert thresholds.top_vendor_limit == 8
    assert thresholds.top_transaction_limit == 8
    assert thresholds.trend_window_months == 6
    assert thresholds.max_month_guard == 48


def test_thresholds_read_environment_overrides(monkeypatch) -> None:
    monkeypatch.setenv("BUDGET_CATEGORY_VARIANCE_THRESHOLD", "0.2")
    monkeypatch.setenv("BUDGET_TOP_VENDOR_LIMIT", "5")
    monkeypatch.delenv("BUDGET_MAX_MONTH_GUARD", raising=False)

    thresholds = thresholds_from_env()

    assert thresholds.category_variance_threshold == 0.2
    assert thresholds.top_vendor_limit == 5
    assert thresholds.max_month_guard == 48


def test_invalid_threshold_is_rejected(monkeypatch) -> None:
    monkeypatch.setenv("BUDGET_TREND_WINDOW_MONTHS", "0")

    with pytest.raises(ValidationError):
        thresholds_from_env()


def test_unknown_threshold_field_is_rejected() -> None:
    with pytest.raises(ValidationError):
        DashboardThresholds(category_threshold=0.1)
