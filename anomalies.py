"""Rule scan over computed dashboard structures.

Rules run in a fixed order (plan variance, month-over-month shifts, category
variance, category trends, at-risk forecast months) and every insight id is
derived from its rule and month/category so the list is stable across calls.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Optional

from category_analytics import CategoryPlanActualEntry, CategoryTrends, is_trend_flagged
from forecast import Forecast
from money import format_currency, format_percent, money, safe_percent
from schemas import DashboardThresholds
from series import MonthSeries

AnomalyType = Literal["spending", "income", "plan", "category", "forecast"]
AnomalySeverity = Literal["info", "warning", "critical"]

CRITICAL_VARIANCE_RATIO = 0.30
SHIFT_MIN_DELTA = 100
EXPENSE_SHIFT_RATIO = 0.20
INCOME_SHIFT_RATIO = 0.25
SHIFT_ESCALATION_RATIO = 0.40


@dataclass
class AnomalyInsight:
    id: str
    type: AnomalyType
    severity: AnomalySeverity
    month_key: str
    label: str
    delta: float
    percent: Optional[float]
    message: str
    detail: Optional[str] = None
    category_id: Optional[str] = None


def plan_variance_anomaly(
    current: Optional[MonthSeries], threshold: float
) -> Optional[AnomalyInsight]:
    if current is None or current.planned_expense is None:
        return None
    if current.variance_expense is None or current.planned_expense <= 0:
        return None
    variance = current.variance_expense
    if abs(variance) / current.planned_expense < threshold:
        return None

    percent = safe_percent(variance, current.planned_expense) or 0.0
    if variance > 0:
        message = f"{current.label} spending is tracking {format_percent(percent)} over plan."
    else:
        message = f"{current.label} spending is pacing {format_percent(percent)} under plan."
    return AnomalyInsight(
        id=f"plan-variance-{current.month_key}",
        type="plan",
        severity="critical" if abs(percent) >= CRITICAL_VARIANCE_RATIO else "warning",
        month_key=current.month_key,
        label=current.label,
        delta=money(variance),
        percent=percent,
        message=message,
        detail=(
            f"Spent {format_currency(current.actual_expense)} vs budgeted "
            f"{format_currency(current.planned_expense)}."
        ),
    )


def shift_anomalies(series: list[MonthSeries]) -> list[AnomalyInsight]:
    insights: list[AnomalyInsight] = []
    for previous, current in zip(series, series[1:]):
        if previous.is_future or current.is_future:
            continue

        if previous.actual_expense > 0:
            delta = money(current.actual_expense - previous.actual_expense)
            percent = safe_percent(delta, previous.actual_expense)
            if (
                abs(delta) >= SHIFT_MIN_DELTA
                and percent is not None
                and abs(percent) >= EXPENSE_SHIFT_RATIO
            ):
                verb = "jumped" if delta > 0 else "fell"
                insights.append(
                    AnomalyInsight(
                        id=f"spending-shift-{current.month_key}",
                        type="spending",
                        severity=(
                            "critical"
                            if abs(percent) >= SHIFT_ESCALATION_RATIO
                            else "warning"
                        ),
                        month_key=current.month_key,
                        label=current.label,
                        delta=delta,
                        percent=percent,
                        message=(
                            f"{current.label} spending {verb} "
                            f"{format_percent(percent)} vs {previous.label}."
                        ),
                        detail=(
                            f"Moved from {format_currency(previous.actual_expense)} "
                            f"to {format_currency(current.actual_expense)}."
                        ),
                    )
                )

        if previous.actual_income > 0:
            delta = money(current.actual_income - previous.actual_income)
            percent = safe_percent(delta, previous.actual_income)
            if (
                abs(delta) >= SHIFT_MIN_DELTA
                and percent is not None
                and abs(percent) >= INCOME_SHIFT_RATIO
            ):
                if delta > 0:
                    message = (
                        f"{current.label} income outpaced {previous.label} "
                        f"by {format_percent(percent)}."
                    )
                else:
                    message = (
                        f"{current.label} income declined {format_percent(percent)} "
                        f"from {previous.label}."
                    )
                insights.append(
                    AnomalyInsight(
                        id=f"income-shift-{current.month_key}",
                        type="income",
                        severity=(
                            "warning" if abs(percent) >= SHIFT_ESCALATION_RATIO else "info"
                        ),
                        month_key=current.month_key,
                        label=current.label,
                        delta=delta,
                        percent=percent,
                        message=message,
                        detail=(
                            f"Shifted from {format_currency(previous.actual_income)} "
                            f"to {format_currency(current.actual_income)}."
                        ),
                    )
                )
    return insights


def category_variance_anomalies(
    entries: list[CategoryPlanActualEntry], month_key: str, threshold: float
) -> list[AnomalyInsight]:
    insights: list[AnomalyInsight] = []
    for entry in entries:
        percent = entry.variance_percent
        if percent is None or abs(percent) < threshold:
            continue
        over = entry.variance is not None and entry.variance > 0
        if entry.planned is not None:
            detail = (
                f"Planned {format_currency(entry.planned)} vs actual "
                f"{format_currency(entry.actual)}"
            )
        else:
            detail = f"Actual {format_currency(entry.actual)}."
        insights.append(
            AnomalyInsight(
                id=f"category-{entry.category_id}",
                type="category",
                severity="critical" if abs(percent) >= CRITICAL_VARIANCE_RATIO else "warning",
                month_key=month_key,
                label=entry.name,
                delta=entry.variance or 0.0,
                percent=percent,
                message=(
                    f"{entry.name} is {'over' if over else 'under'} plan by "
                    f"{format_percent(percent)}."
                ),
                detail=detail,
                category_id=entry.category_id,
            )
        )
    return insights


def trend_anomalies(
    trends: CategoryTrends, thresholds: DashboardThresholds
) -> list[AnomalyInsight]:
    insights: list[AnomalyInsight] = []
    for trend in trends.categories:
        latest = trend.latest
        if latest is None or latest.change is None:
            continue
        std_flag, percent_flag = is_trend_flagged(latest, thresholds)
        if not std_flag and not percent_flag:
            continue
        if latest.change > 0:
            message = f"{trend.name} jumped {format_currency(latest.change)} vs prior month."
        else:
            message = (
                f"{trend.name} dropped {format_currency(abs(latest.change))} vs prior month."
            )
        insights.append(
            AnomalyInsight(
                id=f"trend-{trend.category_id}-{latest.month_key}",
                type="category",
                severity="warning" if std_flag else "info",
                month_key=latest.month_key,
                label=trend.name,
                delta=latest.change,
                percent=latest.percent_change,
                message=message,
                detail=(
                    f"Shift of {format_percent(latest.percent_change)} month over month."
                    if latest.percent_change is not None
                    else None
                ),
                category_id=trend.category_id,
            )
        )
    return insights


def forecast_anomalies(forecast: Forecast) -> list[AnomalyInsight]:
    insights: list[AnomalyInsight] = []
    for point in forecast.months:
        if not point.at_risk:
            continue
        net = point.projected_net
        insights.append(
            AnomalyInsight(
                id=f"forecast-{point.month_key}",
                type="forecast",
                severity="warning",
                month_key=point.month_key,
                label=point.label,
                delta=net,
                percent=None,
                message=f"{point.label} is projected to run negative cash flow.",
                detail=(
                    f"Planned net {format_currency(net)} vs baseline "
                    f"{format_currency(point.baseline_net)}."
                ),
            )
        )
    return insights


def detect_anomalies(
    *,
    series: list[MonthSeries],
    current: Optional[MonthSeries],
    current_key: str,
    plan_entries: list[CategoryPlanActualEntry],
    trends: CategoryTrends,
    forecast: Forecast,
    thresholds: DashboardThresholds,
) -> list[AnomalyInsight]:
    insights: list[AnomalyInsight] = []
    plan = plan_variance_anomaly(current, thresholds.category_variance_threshold)
    if plan is not None:
        insights.append(plan)
    insights.extend(shift_anomalies(series))
    insights.extend(
        category_variance_anomalies(
            plan_entries, current_key, thresholds.category_variance_threshold
        )
    )
    insights.extend(trend_anomalies(trends, thresholds))
    insights.extend(forecast_anomalies(forecast))
    return insights
