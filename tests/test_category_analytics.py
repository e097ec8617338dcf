from datetime import date

from category_analytics import (
    PLACEHOLDER_ID,
    category_trends,
    goal_progress,
    plan_actual_for_month,
)
from dashboard import build_dashboard
from models import CategorySection, TransactionType
from months import add_months
from rollups import build_rollups
from schemas import (
    AllocationRow,
    BudgetRow,
    CategoryRow,
    DashboardThresholds,
    TransactionRow,
)

TODAY = date(2026, 10, 18)
CATEGORIES = [
    CategoryRow(id="dining", name="Dining"),
    CategoryRow(id="groceries", name="Groceries"),
    CategoryRow(id="travel", name="Travel"),
    CategoryRow(id="emergency", name="Emergency Fund", section=CategorySection.savings),
    CategoryRow(id="card", name="Credit Card", section=CategorySection.debt),
]


def _expense(txn_id, day, amount, category_id):
    return TransactionRow(
        id=txn_id,
        occurred_on=day,
        amount=amount,
        type=TransactionType.expense,
        category_id=category_id,
    )


def _plan_actual(allocations, transactions=(), threshold=0.12):
    budget = BudgetRow(month=date(2026, 10, 1), allocations=allocations)
    rollups = build_rollups(
        budgets=[budget],
        categories=CATEGORIES,
        transactions=list(transactions),
        month_keys=["2026-10"],
        current_key="2026-10",
    )
    return plan_actual_for_month(
        rollups.sorted_rollups(), "2026-10", rollups.budgets, threshold
    )


def _monthly_spend(category_id, amounts, start=date(2026, 5, 1)):
    return [
        _expense(
            f"{category_id}-{i}",
            add_months(start, i).replace(day=10),
            amount,
            category_id,
        )
        for i, amount in enumerate(amounts)
    ]


def test_small_variance_is_not_flagged() -> None:
    result = _plan_actual(
        [AllocationRow(category_id="groceries", planned_amount=500, spent_amount=450)],
        [_expense("t1", date(2026, 10, 2), 480, "groceries")],
    )

    (entry,) = result.entries
    assert entry.actual == 480
    assert entry.variance == -20
    assert entry.variance_percent == -0.04
    assert entry.over_threshold is False
    assert entry.under_threshold is False
    assert entry.share == 1.0
    assert result.total_planned == 500


def test_over_flag_uses_magnitude_and_under_flag_is_signed() -> None:
    result = _plan_actual(
        [
            AllocationRow(category_id="dining", planned_amount=100),
            AllocationRow(category_id="groceries", planned_amount=200),
        ],
        [
            _expense("t1", date(2026, 10, 2), 150, "dining"),
            _expense("t2", date(2026, 10, 2), 100, "groceries"),
        ],
    )

    by_id = {entry.category_id: entry for entry in result.entries}
    assert by_id["dining"].variance_percent == 0.5
    assert by_id["dining"].over_threshold is True
    assert by_id["dining"].under_threshold is False
    assert by_id["groceries"].variance_percent == -0.5
    assert by_id["groceries"].under_threshold is True
    assert by_id["groceries"].over_threshold is True


def test_variance_percent_is_null_without_meaningful_plan() -> None:
    result = _plan_actual(
        [AllocationRow(category_id="dining", planned_amount=0.004)],
        [
            _expense("t1", date(2026, 10, 2), 50, "dining"),
            _expense("t2", date(2026, 10, 2), 30, "travel"),
        ],
    )

    by_id = {entry.category_id: entry for entry in result.entries}
    assert by_id["dining"].planned == 0
    assert by_id["dining"].variance == 50
    assert by_id["dining"].variance_percent is None
    assert by_id["dining"].over_threshold is False
    assert by_id["travel"].planned is None
    assert by_id["travel"].variance is None
    assert by_id["travel"].variance_percent is None


def test_entries_sorted_by_actual_and_shares_sum_to_one() -> None:
    result = _plan_actual(
        [AllocationRow(category_id="emergency", section=CategorySection.savings)],
        [
            _expense("t1", date(2026, 10, 2), 100, "dining"),
            _expense("t2", date(2026, 10, 3), 200, "groceries"),
            _expense("t3", date(2026, 10, 4), 33.33, "travel"),
        ],
    )

    assert [e.category_id for e in result.entries] == ["groceries", "dining", "travel"]
    assert result.total_actual == 333.33
    assert abs(sum(e.share for e in result.entries) - 1.0) <= 0.01


def test_empty_month_has_no_entries() -> None:
    result = _plan_actual([AllocationRow(category_id="dining", planned_amount=0)])

    assert result.entries == []
    assert result.total_actual == 0


def test_dashboard_uses_placeholder_when_nothing_to_show() -> None:
    data = build_dashboard(budgets=[], categories=[], transactions=[], today=TODAY)

    (entry,) = data.category_plan_actual.categories
    assert entry.category_id == PLACEHOLDER_ID
    assert entry.share == 1.0


def test_constant_spending_has_no_z_scores() -> None:
    data = build_dashboard(
        budgets=[],
        categories=CATEGORIES,
        transactions=_monthly_spend("groceries", [100] * 6),
        today=TODAY,
    )

    (trend,) = data.category_trends.categories
    assert [p.month_key for p in trend.points] == [
        "2026-05",
        "2026-06",
        "2026-07",
        "2026-08",
        "2026-09",
        "2026-10",
    ]
    assert all(p.z_score is None for p in trend.points)
    assert trend.points[0].change is None
    assert trend.points[-1].percent_change == 0
    assert trend.flagged is False


def test_spike_is_flagged_and_sorted_first() -> None:
    data = build_dashboard(
        budgets=[],
        categories=CATEGORIES,
        transactions=_monthly_spend("groceries", [100, 100, 100, 100, 100, 300])
        + _monthly_spend("dining", [500] * 6),
        today=TODAY,
    )

    first, second = data.category_trends.categories
    assert first.category_id == "groceries"
    assert first.flagged is True
    assert first.latest.change == 200
    assert first.latest.percent_change == 2.0
    assert first.latest.z_score == 2.0
    assert first.points[1].z_score == -0.5
    assert second.category_id == "dining"
    assert second.flagged is False


def test_trend_window_only_covers_realized_months() -> None:
    thresholds = DashboardThresholds(trend_window_months=3)
    rows = _monthly_spend("dining", [10, 20, 30, 40, 50, 60])
    rollups = build_rollups(
        budgets=[],
        categories=CATEGORIES,
        transactions=rows,
        month_keys=["2026-05", "2026-06", "2026-07", "2026-08", "2026-09", "2026-10"],
        current_key="2026-10",
    )
    data = build_dashboard(
        budgets=[], categories=CATEGORIES, transactions=rows, today=TODAY
    )

    trends = category_trends(
        rollups.sorted_rollups(), data.monthly_series, "2026-10", thresholds
    )
    assert trends.month_keys == ["2026-08", "2026-09", "2026-10"]
    assert trends.std_dev_threshold == 2
    assert trends.percent_threshold == 0.25


def test_goal_progress_for_savings_and_debt() -> None:
    result = _plan_actual(
        [
            AllocationRow(
                category_id="emergency",
                section=CategorySection.savings,
                planned_amount=400,
                spent_amount=500,
            ),
            AllocationRow(
                category_id="card",
                section=CategorySection.debt,
                planned_amount=300,
                spent_amount=150,
            ),
        ]
    )

    (savings,) = goal_progress(result.entries, CategorySection.savings)
    assert savings.target == 400
    assert savings.progress == 1.25
    assert savings.direction == "ahead"

    (debt,) = goal_progress(result.entries, CategorySection.debt)
    assert debt.progress == 0.5
    assert debt.direction == "behind"
