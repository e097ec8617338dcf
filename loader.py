from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import date
from typing import Callable, Optional, TypeVar

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload, sessionmaker

from models import Budget, Category, Transaction, TransactionType
from schemas import (
    AllocationRow,
    BudgetRow,
    CategoryRow,
    IncomeRow,
    SplitRow,
    TransactionRow,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

DASHBOARD_TRANSACTION_TYPES = (TransactionType.expense, TransactionType.income)


@dataclass
class DashboardBounds:
    budgets: list[BudgetRow]
    categories: list[CategoryRow]
    earliest_transaction: Optional[date]
    latest_transaction: Optional[date]


def budget_row(budget: Budget) -> BudgetRow:
    return BudgetRow(
        month=budget.month,
        allocations=[
            AllocationRow(
                category_id=allocation.category_id,
                section=allocation.section,
                planned_amount=float(allocation.planned_amount or 0),
                spent_amount=float(allocation.spent_amount or 0),
                carry_forward=allocation.carry_forward,
                repeat_cadence=allocation.repeat_cadence,
            )
            for allocation in budget.allocations
        ],
        incomes=[
            IncomeRow(source=income.source, amount=float(income.amount or 0))
            for income in budget.incomes
        ],
    )


def transaction_row(txn: Transaction) -> TransactionRow:
    return TransactionRow(
        id=txn.id,
        occurred_on=txn.occurred_on,
        amount=float(txn.amount),
        type=txn.type,
        merchant=txn.merchant,
        description=txn.description,
        category_id=txn.category_id,
        splits=[
            SplitRow(category_id=split.category_id, amount=float(split.amount))
            for split in txn.splits
        ],
    )


class DashboardLoader:
    """Read side of the dashboard: every query runs in its own session."""

    def __init__(
        self, session_factory: sessionmaker[Session], *, max_workers: int = 4
    ) -> None:
        self.session_factory = session_factory
        self.max_workers = max_workers

    def _run(self, query: Callable[[Session], T]) -> T:
        with self.session_factory() as session:
            return query(session)

    @staticmethod
    def _budgets(session: Session) -> list[BudgetRow]:
        budgets = session.scalars(
            select(Budget)
            .options(selectinload(Budget.allocations), selectinload(Budget.incomes))
            .order_by(Budget.month.asc())
        ).all()
        return [budget_row(b) for b in budgets]

    @staticmethod
    def _categories(session: Session) -> list[CategoryRow]:
        categories = session.scalars(
            select(Category).order_by(Category.sort_order.asc(), Category.id.asc())
        ).all()
        return [
            CategoryRow(id=c.id, name=c.name, emoji=c.emoji, section=c.section)
            for c in categories
        ]

    @staticmethod
    def _earliest_transaction(session: Session) -> Optional[date]:
        return session.scalar(select(func.min(Transaction.occurred_on)))

    @staticmethod
    def _latest_transaction(session: Session) -> Optional[date]:
        return session.scalar(select(func.max(Transaction.occurred_on)))

    def load_bounds(self) -> DashboardBounds:
        queries = (
            self._budgets,
            self._categories,
            self._earliest_transaction,
            self._latest_transaction,
        )
        if self.max_workers <= 1:
            results = [self._run(query) for query in queries]
        else:
            with ThreadPoolExecutor(
                max_workers=min(self.max_workers, len(queries)),
                thread_name_prefix="dashboard-loader",
            ) as pool:
                results = list(pool.map(self._run, queries))
        budgets, categories, earliest, latest = results
        logger.info(
            f"dashboard_load_bounds: budgets={len(budgets)} categories={len(categories)} "
            f"earliest={earliest} latest={latest}"
        )
        return DashboardBounds(
            budgets=budgets,
            categories=categories,
            earliest_transaction=earliest,
            latest_transaction=latest,
        )

    def load_transactions(self, start: date, end: date) -> list[TransactionRow]:
        """Expense and income rows with splits, ``start <= occurred_on < end``."""

        def query(session: Session) -> list[TransactionRow]:
            txns = session.scalars(
                select(Transaction)
                .options(selectinload(Transaction.splits))
                .where(
                    Transaction.occurred_on >= start,
                    Transaction.occurred_on < end,
                    Transaction.type.in_(DASHBOARD_TRANSACTION_TYPES),
                )
                .order_by(Transaction.occurred_on.asc(), Transaction.id.asc())
            ).all()
            return [transaction_row(t) for t in txns]

        rows = self._run(query)
        logger.info(
            f"dashboard_load_transactions: start={start} end={end} rows={len(rows)}"
        )
        return rows
