from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from money import money, safe_percent
from months import days_in_month, month_key, month_label, month_start
from series import MonthSeries, realized

BASELINE_TRAILING_MONTHS = 4


@dataclass
class ForecastPoint:
    month_key: str
    label: str
    actual_income: float
    actual_expense: float
    planned_income: Optional[float]
    planned_expense: Optional[float]
    net_actual: float
    net_planned: Optional[float]
    baseline_net: float
    is_future: bool
    at_risk: bool

    @property
    def projected_net(self) -> float:
        return self.net_planned if self.net_planned is not None else self.net_actual


@dataclass
class Forecast:
    months: list[ForecastPoint]
    baseline_net: float


@dataclass
class BurnDownPoint:
    day: int
    date: date
    daily_actual: float
    cumulative_actual: float
    cumulative_target: Optional[float]
    variance: Optional[float]
    variance_percent: Optional[float]
    is_today: bool
    is_over_target: bool


@dataclass
class BurnDown:
    month_key: str
    label: str
    planned_total: Optional[float]
    actual_total: float
    remaining_budget: Optional[float]
    daily_allowance: Optional[float]
    days_remaining: int
    has_overrun: bool
    points: list[BurnDownPoint]


def baseline_net(series: list[MonthSeries], current_key: str) -> float:
    """Average realized net over the trailing months, a reference line only."""
    trailing = realized(series, current_key)[-BASELINE_TRAILING_MONTHS:]
    if not trailing:
        return 0.0
    return money(sum(row.actual_net for row in trailing) / len(trailing))


def build_forecast(
    series: list[MonthSeries], current_key: str, lookahead: int
) -> Forecast:
    baseline = baseline_net(series, current_key)
    upcoming = [row for row in series if row.month_key >= current_key]
    points: list[ForecastPoint] = []
    for row in upcoming[: lookahead + 1]:
        point = ForecastPoint(
            month_key=row.month_key,
            label=row.label,
            actual_income=row.actual_income,
            actual_expense=row.actual_expense,
            planned_income=row.planned_income,
            planned_expense=row.planned_expense,
            net_actual=row.actual_net,
            net_planned=row.planned_net,
            baseline_net=baseline,
            is_future=row.is_future,
            at_risk=False,
        )
        point.at_risk = point.projected_net < 0
        points.append(point)
    return Forecast(months=points, baseline_net=baseline)


def build_burn_down(
    current_month: date,
    today: date,
    planned_total: Optional[float],
    daily_expense: dict[int, float],
) -> BurnDown:
    current_month = month_start(current_month)
    days_total = days_in_month(current_month)
    is_active = month_start(today) == current_month
    today_day = today.day if is_active else days_total
    planned_daily = planned_total / days_total if planned_total is not None else None

    points: list[BurnDownPoint] = []
    running = 0.0
    for day in range(1, days_total + 1):
        daily_actual = money(daily_expense.get(day, 0.0))
        running = money(running + daily_actual)
        target = money(planned_daily * day) if planned_daily is not None else None
        variance = money(running - target) if target is not None else None
        points.append(
            BurnDownPoint(
                day=day,
                date=current_month.replace(day=day),
                daily_actual=daily_actual,
                cumulative_actual=running,
                cumulative_target=target,
                variance=variance,
                variance_percent=(
                    safe_percent(variance, target) if variance is not None else None
                ),
                is_today=is_active and day == today_day,
                is_over_target=variance is not None and variance > 0,
            )
        )

    actual_total = points[-1].cumulative_actual if points else 0.0
    remaining = money(planned_total - actual_total) if planned_total is not None else None
    days_remaining = (
        max(days_total - today_day, 0) if planned_total is not None else 0
    )
    daily_allowance = None
    if remaining is not None and days_remaining > 0:
        daily_allowance = money(remaining / days_remaining)

    return BurnDown(
        month_key=month_key(current_month),
        label=month_label(current_month),
        planned_total=planned_total,
        actual_total=actual_total,
        remaining_budget=remaining,
        daily_allowance=daily_allowance,
        days_remaining=days_remaining,
        has_overrun=planned_total is not None and actual_total > planned_total,
        points=points,
    )
