import logging
from datetime import date
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from models import Budget, BudgetAllocation, Transaction, TransactionSplit, TransactionType
from money import money
from months import add_months, month_start

logger = logging.getLogger(__name__)


def spent_by_category_for_month(session: Session, month: date) -> dict[str, float]:
    start = month_start(month)
    end = add_months(start, 1)

    split_stmt = (
        select(
            TransactionSplit.category_id,
            func.coalesce(func.sum(TransactionSplit.amount), 0).label("total"),
        )
        .join(Transaction, TransactionSplit.transaction_id == Transaction.id)
        .where(
            TransactionSplit.category_id.is_not(None),
            Transaction.type == TransactionType.expense,
            Transaction.occurred_on >= start,
            Transaction.occurred_on < end,
        )
        .group_by(TransactionSplit.category_id)
    )
    unsplit_stmt = (
        select(
            Transaction.category_id,
            func.coalesce(func.sum(Transaction.amount), 0).label("total"),
        )
        .where(
            Transaction.category_id.is_not(None),
            Transaction.type == TransactionType.expense,
            Transaction.occurred_on >= start,
            Transaction.occurred_on < end,
            ~Transaction.splits.any(),
        )
        .group_by(Transaction.category_id)
    )

    totals: dict[str, float] = {}
    for stmt in (split_stmt, unsplit_stmt):
        for row in session.execute(stmt):
            totals[row.category_id] = money(
                totals.get(row.category_id, 0.0) + float(row.total or 0)
            )
    return totals


def sync_budget_spent_for_month(session: Session, month: date) -> int:
    """Rewrite each allocation's spent amount from the ledger.

    Returns the number of allocations touched; 0 when the month has no budget.
    """
    budget = session.scalar(select(Budget).where(Budget.month == month_start(month)))
    if budget is None:
        return 0

    totals = spent_by_category_for_month(session, budget.month)
    allocations = session.scalars(
        select(BudgetAllocation).where(BudgetAllocation.budget_id == budget.id)
    ).all()
    for allocation in allocations:
        allocation.spent_amount = Decimal(
            f"{totals.get(allocation.category_id, 0.0):.2f}"
        )
    session.flush()
    logger.info(
        f"budget_spent_sync: month={budget.month.isoformat()} "
        f"allocations={len(allocations)}"
    )
    return len(allocations)


def sync_all_budgets(session: Session) -> int:
    months = session.scalars(select(Budget.month).order_by(Budget.month.asc())).all()
    updated = 0
    for month in months:
        updated += sync_budget_spent_for_month(session, month)
    session.commit()
    return updated
