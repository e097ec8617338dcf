from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Optional

from category_analytics import CategoryPlanActualEntry
from forecast import Forecast
from money import money, safe_percent
from series import MonthSeries

HIGHLIGHT_LIMIT = 3


@dataclass
class CurrentMonthSummary:
    label: str
    planned_expense: Optional[float]
    actual_expense: float
    planned_income: Optional[float]
    actual_income: float
    variance_expense: Optional[float]
    variance_income: Optional[float]


@dataclass
class PreviousComparison:
    label: str
    actual_expense: float
    change: float
    percent_change: Optional[float]
    direction: Literal["up", "down", "flat"]


@dataclass
class HighlightedCategory:
    category_id: str
    name: str
    variance: float
    variance_percent: Optional[float]
    direction: Literal["over", "under"]


@dataclass
class AtRiskMonth:
    month_key: str
    label: str
    net: float


@dataclass
class SummaryData:
    current_month: CurrentMonthSummary
    previous_comparison: Optional[PreviousComparison] = None
    highlighted_categories: list[HighlightedCategory] = field(default_factory=list)
    at_risk_months: list[AtRiskMonth] = field(default_factory=list)


def compose_summary(
    series: list[MonthSeries],
    current: Optional[MonthSeries],
    current_key: str,
    current_label: str,
    plan_entries: list[CategoryPlanActualEntry],
    forecast: Forecast,
) -> SummaryData:
    summary = SummaryData(
        current_month=CurrentMonthSummary(
            label=current.label if current is not None else current_label,
            planned_expense=current.planned_expense if current is not None else None,
            actual_expense=current.actual_expense if current is not None else 0.0,
            planned_income=current.planned_income if current is not None else None,
            actual_income=current.actual_income if current is not None else 0.0,
            variance_expense=current.variance_expense if current is not None else None,
            variance_income=current.variance_income if current is not None else None,
        ),
        highlighted_categories=[
            HighlightedCategory(
                category_id=entry.category_id,
                name=entry.name,
                variance=entry.variance or 0.0,
                variance_percent=entry.variance_percent,
                direction=(
                    "over" if entry.variance is not None and entry.variance > 0 else "under"
                ),
            )
            for entry in plan_entries
            if entry.over_threshold or entry.under_threshold
        ][:HIGHLIGHT_LIMIT],
        at_risk_months=[
            AtRiskMonth(
                month_key=point.month_key,
                label=point.label,
                net=money(point.projected_net),
            )
            for point in forecast.months
            if point.at_risk
        ],
    )

    previous_months = [
        row for row in series if not row.is_future and row.month_key < current_key
    ]
    if current is not None and previous_months:
        previous = previous_months[-1]
        change = money(current.actual_expense - previous.actual_expense)
        if change > 0:
            direction = "up"
        elif change < 0:
            direction = "down"
        else:
            direction = "flat"
        summary.previous_comparison = PreviousComparison(
            label=previous.label,
            actual_expense=previous.actual_expense,
            change=change,
            percent_change=(
                safe_percent(change, previous.actual_expense)
                if previous.actual_expense > 0
                else None
            ),
            direction=direction,
        )
    return summary
