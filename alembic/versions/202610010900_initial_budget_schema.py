"""initial budget schema

Revision ID: 202610010900
Revises:
Create Date: 2026-10-01 09:00:00.000000

"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


revision = "202610010900"
down_revision = None
branch_labels = None
depends_on = None

SECTION = sa.Enum("expenses", "recurring", "savings", "debt", name="categorysection")
CADENCE = sa.Enum("monthly", "once", name="repeatcadence")
TXN_TYPE = sa.Enum("expense", "income", "transfer", name="transactiontype")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "categories",
        sa.Column("id", sa.String(32), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("emoji", sa.String(16), nullable=True),
        sa.Column("section", SECTION, nullable=False),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("archived_at", sa.DateTime(), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "budgets",
        sa.Column("id", sa.String(32), primary_key=True),
        sa.Column("month", sa.Date(), nullable=False, unique=True),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "budget_incomes",
        sa.Column("id", sa.String(32), primary_key=True),
        sa.Column("budget_id", sa.String(32), sa.ForeignKey("budgets.id"), nullable=False),
        sa.Column("source", sa.String(120), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False, server_default="0"),
        *_timestamps(),
    )

    op.create_table(
        "budget_allocations",
        sa.Column("id", sa.String(32), primary_key=True),
        sa.Column("budget_id", sa.String(32), sa.ForeignKey("budgets.id"), nullable=False),
        sa.Column(
            "category_id", sa.String(32), sa.ForeignKey("categories.id"), nullable=False
        ),
        sa.Column("section", SECTION, nullable=False),
        sa.Column("planned_amount", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("spent_amount", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("carry_forward", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("repeat_cadence", CADENCE, nullable=False, server_default="monthly"),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint(
            "budget_id", "category_id", name="uq_allocation_budget_category"
        ),
    )
    op.create_index("ix_allocation_category", "budget_allocations", ["category_id"])

    op.create_table(
        "transactions",
        sa.Column("id", sa.String(32), primary_key=True),
        sa.Column("occurred_on", sa.Date(), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("type", TXN_TYPE, nullable=False),
        sa.Column("merchant", sa.String(200), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column(
            "category_id", sa.String(32), sa.ForeignKey("categories.id"), nullable=True
        ),
        *_timestamps(),
        sa.CheckConstraint("amount >= 0", name="ck_transactions_amount_positive"),
    )
    op.create_index("ix_transactions_occurred_on", "transactions", ["occurred_on"])
    op.create_index(
        "ix_transactions_type_occurred_on", "transactions", ["type", "occurred_on"]
    )

    op.create_table(
        "transaction_splits",
        sa.Column("id", sa.String(32), primary_key=True),
        sa.Column(
            "transaction_id",
            sa.String(32),
            sa.ForeignKey("transactions.id"),
            nullable=False,
        ),
        sa.Column(
            "category_id", sa.String(32), sa.ForeignKey("categories.id"), nullable=True
        ),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_split_transaction", "transaction_splits", ["transaction_id"])


def downgrade() -> None:
    op.drop_index("ix_split_transaction", table_name="transaction_splits")
    op.drop_table("transaction_splits")
    op.drop_index("ix_transactions_type_occurred_on", table_name="transactions")
    op.drop_index("ix_transactions_occurred_on", table_name="transactions")
    op.drop_table("transactions")
    op.drop_index("ix_allocation_category", table_name="budget_allocations")
    op.drop_table("budget_allocations")
    op.drop_table("budget_incomes")
    op.drop_table("budgets")
    op.drop_table("categories")
