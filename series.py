from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from enums import CategorySection
from money import money
from months import month_end, month_key, month_label, month_long_label, parse_month_key
from rollups import SECTION_LABELS, MonthlyActuals, RollupResult, section_actuals


@dataclass
class SectionTotal:
    section: CategorySection
    label: str
    planned: Optional[float]
    actual: float


@dataclass
class MonthSeries:
    month_key: str
    month_start: date
    month_end: date
    label: str
    planned_income: Optional[float]
    planned_expense: Optional[float]
    planned_net: Optional[float]
    actual_income: float
    actual_expense: float
    actual_net: float
    variance_expense: Optional[float]
    variance_income: Optional[float]
    is_future: bool
    sections: list[SectionTotal]

    @property
    def has_plan(self) -> bool:
        return self.planned_expense is not None or self.planned_income is not None

    @property
    def has_actuals(self) -> bool:
        return self.actual_expense > 0 or self.actual_income > 0


@dataclass
class MonthDescriptor:
    month_key: str
    label: str
    long_label: str
    month_start: date
    month_end: date
    is_current: bool
    is_future: bool
    has_plan: bool
    has_actuals: bool


def assemble_monthly_series(
    anchors: list[date], current_month: date, rollups: RollupResult
) -> list[MonthSeries]:
    sections_by_month = section_actuals(rollups.categories.values())
    out: list[MonthSeries] = []
    for anchor in anchors:
        key = month_key(anchor)
        budget = rollups.budgets.get(key)
        actuals = rollups.monthly_actuals.get(key, MonthlyActuals())

        ledger_expense = money(actuals.expense)
        if budget is not None:
            actual_expense = money(max(budget.actual_expense, ledger_expense))
        else:
            actual_expense = ledger_expense
        actual_income = money(actuals.income)

        planned_income = budget.planned_income if budget is not None else None
        planned_expense = budget.planned_expense if budget is not None else None
        planned_net = (
            money(planned_income - planned_expense)
            if planned_income is not None and planned_expense is not None
            else None
        )

        section_actual = sections_by_month.get(key, {})
        sections = [
            SectionTotal(
                section=section,
                label=label,
                planned=budget.section_planned[section] if budget is not None else None,
                actual=money(section_actual.get(section, 0.0)),
            )
            for section, label in SECTION_LABELS.items()
        ]

        out.append(
            MonthSeries(
                month_key=key,
                month_start=anchor,
                month_end=month_end(anchor),
                label=month_label(anchor),
                planned_income=planned_income,
                planned_expense=planned_expense,
                planned_net=planned_net,
                actual_income=actual_income,
                actual_expense=actual_expense,
                actual_net=money(actual_income - actual_expense),
                variance_expense=(
                    money(actual_expense - planned_expense)
                    if planned_expense is not None
                    else None
                ),
                variance_income=(
                    money(actual_income - planned_income)
                    if planned_income is not None
                    else None
                ),
                is_future=anchor > current_month,
                sections=sections,
            )
        )
    return out


def describe_months(series: list[MonthSeries], current_key: str) -> list[MonthDescriptor]:
    return [
        MonthDescriptor(
            month_key=row.month_key,
            label=row.label,
            long_label=month_long_label(parse_month_key(row.month_key)),
            month_start=row.month_start,
            month_end=row.month_end,
            is_current=row.month_key == current_key,
            is_future=row.is_future,
            has_plan=row.has_plan,
            has_actuals=row.has_actuals,
        )
        for row in series
    ]


def realized(series: list[MonthSeries], current_key: str) -> list[MonthSeries]:
    """Months that are not in the future; the current month always counts."""
    return [row for row in series if not row.is_future or row.month_key == current_key]
