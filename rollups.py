from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Optional

from enums import CategorySection, TransactionType
from money import money
from months import month_key, month_start
from schemas import BudgetRow, CategoryRow, TransactionRow

UNCATEGORIZED_ID = "__uncategorized__"
DEFAULT_EMOJI = "✨"

SECTION_LABELS: dict[CategorySection, str] = {
    CategorySection.expenses: "Living & Flexible",
    CategorySection.recurring: "Recurring Bills",
    CategorySection.savings: "Savings Goals",
    CategorySection.debt: "Debt Payments",
}


@dataclass(frozen=True)
class CategoryMeta:
    name: str
    emoji: str
    section: CategorySection


UNCATEGORIZED = CategoryMeta(
    name="Uncategorized", emoji="📂", section=CategorySection.expenses
)


@dataclass
class CategoryMonthSnapshot:
    planned: Optional[float] = None
    budget_actual: Optional[float] = None
    transaction_actual: float = 0.0

    @property
    def actual(self) -> float:
        # The stored allocation spend and the live ledger sum can disagree;
        # whichever shows more spending wins.
        return money(max(self.budget_actual or 0.0, self.transaction_actual))


@dataclass
class CategoryRollup:
    category_id: str
    meta: CategoryMeta
    months: dict[str, CategoryMonthSnapshot] = field(default_factory=dict)

    def snapshot(self, key: str) -> CategoryMonthSnapshot:
        if key not in self.months:
            self.months[key] = CategoryMonthSnapshot()
        return self.months[key]


@dataclass
class BudgetSnapshot:
    planned_expense: float
    actual_expense: float
    planned_income: float
    section_planned: dict[CategorySection, float]
    section_spent: dict[CategorySection, float]


@dataclass
class MonthlyActuals:
    income: float = 0.0
    expense: float = 0.0


@dataclass
class RollupResult:
    categories: dict[str, CategoryRollup]
    budgets: dict[str, BudgetSnapshot]
    monthly_actuals: dict[str, MonthlyActuals]
    daily_expense: dict[int, float]
    current_month_expenses: list[TransactionRow]

    def sorted_rollups(self) -> list[CategoryRollup]:
        return [self.categories[key] for key in sorted(self.categories)]


def _empty_sections() -> dict[CategorySection, float]:
    return {section: 0.0 for section in SECTION_LABELS}


def build_category_metadata(
    categories: Iterable[CategoryRow], uncategorized: CategoryMeta = UNCATEGORIZED
) -> dict[str, CategoryMeta]:
    metadata: dict[str, CategoryMeta] = {}
    for category in categories:
        metadata[category.id] = CategoryMeta(
            name=category.name,
            emoji=category.emoji or DEFAULT_EMOJI,
            section=category.section or CategorySection.expenses,
        )
    metadata.setdefault(UNCATEGORIZED_ID, uncategorized)
    return metadata


class RollupBuilder:
    """Folds budget allocations and ledger rows into per-category month maps."""

    def __init__(
        self,
        metadata: dict[str, CategoryMeta],
        *,
        uncategorized: CategoryMeta = UNCATEGORIZED,
    ) -> None:
        self.metadata = metadata
        self.uncategorized = uncategorized
        self.categories: dict[str, CategoryRollup] = {}

    def _rollup(self, category_id: Optional[str]) -> CategoryRollup:
        key = category_id or UNCATEGORIZED_ID
        if key not in self.categories:
            meta = self.metadata.get(key, self.uncategorized)
            self.categories[key] = CategoryRollup(category_id=key, meta=meta)
        return self.categories[key]

    def fold_budgets(self, budgets: Iterable[BudgetRow]) -> dict[str, BudgetSnapshot]:
        by_month: dict[str, BudgetSnapshot] = {}
        for budget in budgets:
            key = month_key(month_start(budget.month))
            planned_by_section = _empty_sections()
            spent_by_section = _empty_sections()
            for allocation in budget.allocations:
                section = allocation.section or CategorySection.expenses
                planned = money(allocation.planned_amount)
                spent = money(allocation.spent_amount)
                planned_by_section[section] = money(
                    planned_by_section[section] + planned
                )
                spent_by_section[section] = money(spent_by_section[section] + spent)

                snapshot = self._rollup(allocation.category_id).snapshot(key)
                snapshot.planned = planned
                snapshot.budget_actual = spent

            planned_income = money(sum(income.amount for income in budget.incomes))
            by_month[key] = BudgetSnapshot(
                planned_expense=money(sum(planned_by_section.values())),
                actual_expense=money(sum(spent_by_section.values())),
                planned_income=planned_income,
                section_planned=planned_by_section,
                section_spent=spent_by_section,
            )
        return by_month

    def _assign(self, category_id: Optional[str], key: str, amount: float) -> None:
        snapshot = self._rollup(category_id).snapshot(key)
        snapshot.transaction_actual = money(snapshot.transaction_actual + amount)

    def fold_transactions(
        self,
        transactions: Iterable[TransactionRow],
        month_keys: Iterable[str],
        current_key: str,
    ) -> tuple[dict[str, MonthlyActuals], dict[int, float], list[TransactionRow]]:
        monthly = {key: MonthlyActuals() for key in month_keys}
        daily: dict[int, float] = {}
        current_expenses: list[TransactionRow] = []

        for txn in transactions:
            key = month_key(month_start(txn.occurred_on))
            bucket = monthly.get(key)
            if bucket is None:
                continue
            amount = money(txn.amount)

            if txn.type == TransactionType.income:
                bucket.income = money(bucket.income + amount)
                continue
            if txn.type != TransactionType.expense:
                continue

            bucket.expense = money(bucket.expense + amount)
            if txn.splits:
                for split in txn.splits:
                    self._assign(split.category_id, key, money(split.amount))
            else:
                self._assign(txn.category_id, key, amount)

            if key == current_key:
                day = txn.occurred_on.day
                daily[day] = money(daily.get(day, 0.0) + amount)
                current_expenses.append(txn)

        return monthly, daily, current_expenses


def section_actuals(
    rollups: Iterable[CategoryRollup],
) -> dict[str, dict[CategorySection, float]]:
    by_month: dict[str, dict[CategorySection, float]] = {}
    for rollup in rollups:
        section = rollup.meta.section
        for key, snapshot in rollup.months.items():
            totals = by_month.setdefault(key, _empty_sections())
            totals[section] = money(totals[section] + snapshot.actual)
    return by_month


def build_rollups(
    *,
    budgets: Iterable[BudgetRow],
    categories: Iterable[CategoryRow],
    transactions: Iterable[TransactionRow],
    month_keys: list[str],
    current_key: str,
    uncategorized: CategoryMeta = UNCATEGORIZED,
) -> RollupResult:
    metadata = build_category_metadata(categories, uncategorized)
    builder = RollupBuilder(metadata, uncategorized=uncategorized)
    budgets_by_month = builder.fold_budgets(budgets)
    monthly, daily, current_expenses = builder.fold_transactions(
        transactions, month_keys, current_key
    )
    return RollupResult(
        categories=builder.categories,
        budgets=budgets_by_month,
        monthly_actuals=monthly,
        daily_expense=daily,
        current_month_expenses=current_expenses,
    )
