from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable, Optional
from zoneinfo import ZoneInfo

from sqlalchemy.orm import Session, sessionmaker

from anomalies import AnomalyInsight, detect_anomalies
from category_analytics import (
    CategoryHistoryEntry,
    CategoryPlanActualEntry,
    CategoryTrends,
    GoalProgressEntry,
    category_history,
    category_trends,
    goal_progress,
    placeholder_entry,
    plan_actual_for_month,
)
from config import get_settings
from enums import CategorySection
from forecast import BurnDown, Forecast, build_burn_down, build_forecast
from loader import DashboardLoader
from months import add_months, month_key, month_label, month_start, resolve_month_range
from rollups import UNCATEGORIZED, CategoryMeta, build_rollups
from schemas import BudgetRow, CategoryRow, DashboardThresholds, TransactionRow
from series import MonthDescriptor, MonthSeries, assemble_monthly_series, describe_months
from summary import SummaryData, compose_summary
from vendors import TopVendors, summarize_vendors

logger = logging.getLogger(__name__)


@dataclass
class CategoryPlanActual:
    month_key: str
    categories: list[CategoryPlanActualEntry]
    total_planned: Optional[float]
    total_actual: float
    variance_threshold: float


@dataclass
class CategoryShare:
    month_key: str
    total: float
    items: list[CategoryPlanActualEntry]


@dataclass
class DashboardData:
    months: list[MonthDescriptor]
    monthly_series: list[MonthSeries]
    category_plan_actual: CategoryPlanActual
    category_share: CategoryShare
    category_history: list[CategoryHistoryEntry]
    category_trends: CategoryTrends
    forecast: Forecast
    burn_down: BurnDown
    top_vendors: TopVendors
    savings_progress: list[GoalProgressEntry]
    debt_progress: list[GoalProgressEntry]
    anomalies: list[AnomalyInsight]
    summary: SummaryData
    thresholds: DashboardThresholds


def dashboard_month_range(
    current_month: date,
    budgets: Iterable[BudgetRow],
    earliest_transaction: Optional[date],
    latest_transaction: Optional[date],
    thresholds: DashboardThresholds,
) -> list[date]:
    return resolve_month_range(
        current_month,
        budget_months=[budget.month for budget in budgets],
        earliest_transaction=earliest_transaction,
        latest_transaction=latest_transaction,
        lookahead=thresholds.forecast_lookahead_months,
        max_months=thresholds.max_month_guard,
    )


def build_dashboard(
    *,
    budgets: list[BudgetRow],
    categories: list[CategoryRow],
    transactions: list[TransactionRow],
    today: date,
    current_month: Optional[date] = None,
    earliest_transaction: Optional[date] = None,
    latest_transaction: Optional[date] = None,
    thresholds: Optional[DashboardThresholds] = None,
    uncategorized: CategoryMeta = UNCATEGORIZED,
) -> DashboardData:
    """Turn fetched budget and ledger rows into the dashboard data model.

    ``current_month`` defaults to the month containing ``today``; passing another
    month gives an as-of view. Transaction bounds default to the dates found in
    ``transactions``.
    """
    thresholds = thresholds or DashboardThresholds()
    current = month_start(current_month or today)
    current_key = month_key(current)
    if transactions:
        dates = [txn.occurred_on for txn in transactions]
        earliest_transaction = earliest_transaction or min(dates)
        latest_transaction = latest_transaction or max(dates)

    anchors = dashboard_month_range(
        current, budgets, earliest_transaction, latest_transaction, thresholds
    )
    rollups = build_rollups(
        budgets=budgets,
        categories=categories,
        transactions=transactions,
        month_keys=[month_key(anchor) for anchor in anchors],
        current_key=current_key,
        uncategorized=uncategorized,
    )
    ordered_rollups = rollups.sorted_rollups()

    series = assemble_monthly_series(anchors, current, rollups)
    series_by_key = {row.month_key: row for row in series}
    current_series = series_by_key.get(current_key)
    months = describe_months(series, current_key)

    threshold = thresholds.category_variance_threshold
    current_snapshot = plan_actual_for_month(
        ordered_rollups, current_key, rollups.budgets, threshold
    )
    plan_entries = current_snapshot.entries or [placeholder_entry()]
    history = category_history(series, ordered_rollups, rollups.budgets, threshold)
    trends = category_trends(ordered_rollups, series, current_key, thresholds)

    forecast = build_forecast(series, current_key, thresholds.forecast_lookahead_months)
    current_budget = rollups.budgets.get(current_key)
    burn_down = build_burn_down(
        current,
        today,
        current_budget.planned_expense if current_budget is not None else None,
        rollups.daily_expense,
    )
    top_vendors = summarize_vendors(
        current_key,
        rollups.current_month_expenses,
        vendor_limit=thresholds.top_vendor_limit,
        transaction_limit=thresholds.top_transaction_limit,
    )

    anomalies = detect_anomalies(
        series=series,
        current=current_series,
        current_key=current_key,
        plan_entries=plan_entries,
        trends=trends,
        forecast=forecast,
        thresholds=thresholds,
    )
    summary = compose_summary(
        series,
        current_series,
        current_key,
        month_label(current),
        plan_entries,
        forecast,
    )

    logger.info(
        f"dashboard_build: month={current_key} months={len(series)} "
        f"categories={len(ordered_rollups)} transactions={len(transactions)} "
        f"anomalies={len(anomalies)}"
    )
    return DashboardData(
        months=months,
        monthly_series=series,
        category_plan_actual=CategoryPlanActual(
            month_key=current_key,
            categories=plan_entries,
            total_planned=current_snapshot.total_planned,
            total_actual=current_snapshot.total_actual,
            variance_threshold=threshold,
        ),
        category_share=CategoryShare(
            month_key=current_key,
            total=current_snapshot.total_actual,
            items=plan_entries,
        ),
        category_history=history,
        category_trends=trends,
        forecast=forecast,
        burn_down=burn_down,
        top_vendors=top_vendors,
        savings_progress=goal_progress(plan_entries, CategorySection.savings),
        debt_progress=goal_progress(plan_entries, CategorySection.debt),
        anomalies=anomalies,
        summary=summary,
        thresholds=thresholds,
    )


class DashboardService:
    def __init__(
        self,
        session_factory: sessionmaker[Session],
        *,
        thresholds: Optional[DashboardThresholds] = None,
        max_workers: Optional[int] = None,
        timezone: Optional[str] = None,
    ) -> None:
        settings = get_settings()
        self.thresholds = thresholds or settings.thresholds
        self.timezone = timezone or settings.timezone
        self.loader = DashboardLoader(
            session_factory,
            max_workers=settings.loader_workers if max_workers is None else max_workers,
        )

    def today(self) -> date:
        return datetime.now(ZoneInfo(self.timezone)).date()

    def build(
        self, *, as_of: Optional[date] = None, today: Optional[date] = None
    ) -> DashboardData:
        today = today or self.today()
        current = month_start(as_of or today)
        bounds = self.loader.load_bounds()
        anchors = dashboard_month_range(
            current,
            bounds.budgets,
            bounds.earliest_transaction,
            bounds.latest_transaction,
            self.thresholds,
        )
        transactions = self.loader.load_transactions(
            anchors[0], add_months(anchors[-1], 1)
        )
        return build_dashboard(
            budgets=bounds.budgets,
            categories=bounds.categories,
            transactions=transactions,
            today=today,
            current_month=current,
            earliest_transaction=bounds.earliest_transaction,
            latest_transaction=bounds.latest_transaction,
            thresholds=self.thresholds,
        )
