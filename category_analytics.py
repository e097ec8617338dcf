from __future__ import annotations

import statistics
from dataclasses import dataclass, replace
from typing import Literal, Optional

from enums import CategorySection
from money import money, quantize, safe_percent
from rollups import BudgetSnapshot, CategoryRollup, DEFAULT_EMOJI
from schemas import DashboardThresholds
from series import MonthSeries, realized

PLACEHOLDER_ID = "placeholder"
MAX_TREND_CATEGORIES = 12
MIN_PLANNED_FOR_PERCENT = 0.01
GOAL_TOLERANCE = 0.01


@dataclass
class CategoryPlanActualEntry:
    category_id: str
    name: str
    emoji: str
    section: CategorySection
    planned: Optional[float]
    actual: float
    variance: Optional[float]
    variance_percent: Optional[float]
    share: float
    over_threshold: bool
    under_threshold: bool


@dataclass
class CategoryMonthPlanActual:
    month_key: str
    entries: list[CategoryPlanActualEntry]
    total_actual: float
    total_planned: Optional[float]


@dataclass
class CategoryHistoryEntry:
    month_key: str
    label: str
    total_actual: float
    total_planned: Optional[float]
    categories: list[CategoryPlanActualEntry]


@dataclass
class CategoryTrendPoint:
    month_key: str
    label: str
    actual: float
    change: Optional[float]
    percent_change: Optional[float]
    z_score: Optional[float]


@dataclass
class CategoryTrendEntry:
    category_id: str
    name: str
    emoji: str
    section: CategorySection
    points: list[CategoryTrendPoint]
    flagged: bool

    @property
    def latest(self) -> Optional[CategoryTrendPoint]:
        return self.points[-1] if self.points else None


@dataclass
class CategoryTrends:
    month_keys: list[str]
    categories: list[CategoryTrendEntry]
    std_dev_threshold: float
    percent_threshold: float


@dataclass
class GoalProgressEntry:
    category_id: str
    name: str
    emoji: str
    section: CategorySection
    target: Optional[float]
    actual: float
    variance: Optional[float]
    progress: Optional[float]
    direction: Literal["ahead", "behind", "on_track"]


def placeholder_entry() -> CategoryPlanActualEntry:
    return CategoryPlanActualEntry(
        category_id=PLACEHOLDER_ID,
        name="Ready for your first category",
        emoji=DEFAULT_EMOJI,
        section=CategorySection.expenses,
        planned=0.0,
        actual=0.0,
        variance=0.0,
        variance_percent=0.0,
        share=1.0,
        over_threshold=False,
        under_threshold=False,
    )


def plan_actual_for_month(
    rollups: list[CategoryRollup],
    key: str,
    budgets: dict[str, BudgetSnapshot],
    threshold: float,
) -> CategoryMonthPlanActual:
    entries: list[CategoryPlanActualEntry] = []
    for rollup in rollups:
        snapshot = rollup.months.get(key)
        if snapshot is None:
            continue
        planned = snapshot.planned
        actual = snapshot.actual
        if (planned is None or planned == 0) and actual == 0:
            continue

        variance = money(actual - planned) if planned is not None else None
        variance_percent = None
        if planned is not None and abs(planned) >= MIN_PLANNED_FOR_PERCENT:
            variance_percent = safe_percent(variance or 0.0, planned)

        entries.append(
            CategoryPlanActualEntry(
                category_id=rollup.category_id,
                name=rollup.meta.name,
                emoji=rollup.meta.emoji,
                section=rollup.meta.section,
                planned=planned,
                actual=actual,
                variance=variance,
                variance_percent=variance_percent,
                share=0.0,
                over_threshold=(
                    variance_percent is not None and abs(variance_percent) >= threshold
                ),
                under_threshold=(
                    variance_percent is not None and variance_percent <= -threshold
                ),
            )
        )

    entries.sort(key=lambda e: (-e.actual, e.category_id))
    total_actual = money(sum(e.actual for e in entries))
    for entry in entries:
        entry.share = quantize(entry.actual / total_actual, 4) if total_actual > 0 else 0.0

    budget = budgets.get(key)
    return CategoryMonthPlanActual(
        month_key=key,
        entries=entries,
        total_actual=total_actual,
        total_planned=budget.planned_expense if budget is not None else None,
    )


def category_history(
    series: list[MonthSeries],
    rollups: list[CategoryRollup],
    budgets: dict[str, BudgetSnapshot],
    threshold: float,
) -> list[CategoryHistoryEntry]:
    history: list[CategoryHistoryEntry] = []
    for row in series:
        snapshot = plan_actual_for_month(rollups, row.month_key, budgets, threshold)
        if not snapshot.entries:
            continue
        history.append(
            CategoryHistoryEntry(
                month_key=row.month_key,
                label=row.label,
                total_actual=snapshot.total_actual,
                total_planned=snapshot.total_planned,
                categories=snapshot.entries,
            )
        )
    return history


def _trend_points(
    rollup: CategoryRollup, window: list[MonthSeries]
) -> list[CategoryTrendPoint]:
    points: list[CategoryTrendPoint] = []
    previous: Optional[float] = None
    for row in window:
        snapshot = rollup.months.get(row.month_key)
        actual = snapshot.actual if snapshot is not None else 0.0
        change = None
        percent_change = None
        if previous is not None:
            change = money(actual - previous)
            if abs(previous) >= MIN_PLANNED_FOR_PERCENT:
                percent_change = safe_percent(change, previous)
        previous = actual
        points.append(
            CategoryTrendPoint(
                month_key=row.month_key,
                label=row.label,
                actual=actual,
                change=change,
                percent_change=percent_change,
                z_score=None,
            )
        )
    return points


def is_trend_flagged(
    point: CategoryTrendPoint, thresholds: DashboardThresholds
) -> tuple[bool, bool]:
    """(z-score breach, percent-change breach) for one trend point."""
    std_flag = (
        point.z_score is not None
        and abs(point.z_score) >= thresholds.trend_std_threshold
    )
    percent_flag = (
        point.percent_change is not None
        and abs(point.percent_change) >= thresholds.trend_percent_threshold
    )
    return std_flag, percent_flag


def category_trends(
    rollups: list[CategoryRollup],
    series: list[MonthSeries],
    current_key: str,
    thresholds: DashboardThresholds,
) -> CategoryTrends:
    window = realized(series, current_key)[-thresholds.trend_window_months :]

    trends: list[CategoryTrendEntry] = []
    for rollup in rollups:
        points = _trend_points(rollup, window)
        if not any(point.actual > 0 for point in points):
            continue

        deltas = [p.change for p in points if p.change is not None]
        mean = statistics.mean(deltas) if deltas else 0.0
        std_dev = statistics.pstdev(deltas) if deltas else 0.0

        flagged = False
        scored: list[CategoryTrendPoint] = []
        for point in points:
            if point.change is not None and std_dev > 0:
                point = replace(
                    point, z_score=quantize((point.change - mean) / std_dev, 3)
                )
            if any(is_trend_flagged(point, thresholds)):
                flagged = True
            scored.append(point)

        trends.append(
            CategoryTrendEntry(
                category_id=rollup.category_id,
                name=rollup.meta.name,
                emoji=rollup.meta.emoji,
                section=rollup.meta.section,
                points=scored,
                flagged=flagged,
            )
        )

    trends.sort(
        key=lambda t: (
            not t.flagged,
            -(t.latest.actual if t.latest else 0.0),
            t.category_id,
        )
    )
    return CategoryTrends(
        month_keys=[row.month_key for row in window],
        categories=trends[:MAX_TREND_CATEGORIES],
        std_dev_threshold=thresholds.trend_std_threshold,
        percent_threshold=thresholds.trend_percent_threshold,
    )


def _goal_direction(variance: Optional[float]) -> Literal["ahead", "behind", "on_track"]:
    if variance is None or abs(variance) < GOAL_TOLERANCE:
        return "on_track"
    return "ahead" if variance > 0 else "behind"


def goal_progress(
    entries: list[CategoryPlanActualEntry], section: CategorySection
) -> list[GoalProgressEntry]:
    return [
        GoalProgressEntry(
            category_id=entry.category_id,
            name=entry.name,
            emoji=entry.emoji,
            section=entry.section,
            target=entry.planned,
            actual=entry.actual,
            variance=entry.variance,
            progress=(
                safe_percent(entry.actual, entry.planned)
                if entry.planned is not None and entry.planned > 0
                else None
            ),
            direction=_goal_direction(entry.variance),
        )
        for entry in entries
        if entry.section == section
    ]
