import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from database import Base
from enums import CategorySection, RepeatCadence, TransactionType


MONEY = Numeric(12, 2)


def _new_id() -> str:
    return uuid.uuid4().hex


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )


class Category(Base, TimestampMixin):
    __tablename__ = "categories"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    emoji: Mapped[Optional[str]] = mapped_column(String(16), default="✨")
    section: Mapped[CategorySection] = mapped_column(
        SAEnum(CategorySection), nullable=False
    )
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    archived_at: Mapped[Optional[datetime]] = mapped_column(DateTime)

    allocations: Mapped[list["BudgetAllocation"]] = relationship(
        "BudgetAllocation", back_populates="category"
    )


class Budget(Base, TimestampMixin):
    __tablename__ = "budgets"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=_new_id)
    month: Mapped[date] = mapped_column(Date, nullable=False, unique=True)
    notes: Mapped[Optional[str]] = mapped_column(Text)

    allocations: Mapped[list["BudgetAllocation"]] = relationship(
        "BudgetAllocation", back_populates="budget", cascade="all, delete-orphan"
    )
    incomes: Mapped[list["BudgetIncome"]] = relationship(
        "BudgetIncome", back_populates="budget", cascade="all, delete-orphan"
    )


class BudgetIncome(Base, TimestampMixin):
    __tablename__ = "budget_incomes"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=_new_id)
    budget_id: Mapped[str] = mapped_column(ForeignKey("budgets.id"), nullable=False)
    source: Mapped[str] = mapped_column(String(120), nullable=False)
    amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=0)

    budget: Mapped["Budget"] = relationship("Budget", back_populates="incomes")


class BudgetAllocation(Base, TimestampMixin):
    __tablename__ = "budget_allocations"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=_new_id)
    budget_id: Mapped[str] = mapped_column(ForeignKey("budgets.id"), nullable=False)
    category_id: Mapped[str] = mapped_column(
        ForeignKey("categories.id"), nullable=False
    )
    section: Mapped[CategorySection] = mapped_column(
        SAEnum(CategorySection), nullable=False
    )
    planned_amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=0)
    spent_amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=0)
    carry_forward: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    repeat_cadence: Mapped[RepeatCadence] = mapped_column(
        SAEnum(RepeatCadence), default=RepeatCadence.monthly, nullable=False
    )
    notes: Mapped[Optional[str]] = mapped_column(Text)

    budget: Mapped["Budget"] = relationship("Budget", back_populates="allocations")
    category: Mapped["Category"] = relationship(
        "Category", back_populates="allocations"
    )

    __table_args__ = (
        UniqueConstraint("budget_id", "category_id", name="uq_allocation_budget_category"),
        Index("ix_allocation_category", "category_id"),
    )


class Transaction(Base, TimestampMixin):
    __tablename__ = "transactions"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=_new_id)
    occurred_on: Mapped[date] = mapped_column(Date, nullable=False)
    amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    type: Mapped[TransactionType] = mapped_column(
        SAEnum(TransactionType), nullable=False
    )
    merchant: Mapped[Optional[str]] = mapped_column(String(200))
    description: Mapped[Optional[str]] = mapped_column(Text)
    category_id: Mapped[Optional[str]] = mapped_column(ForeignKey("categories.id"))

    category: Mapped[Optional["Category"]] = relationship("Category")
    splits: Mapped[list["TransactionSplit"]] = relationship(
        "TransactionSplit",
        back_populates="transaction",
        cascade="all, delete-orphan",
        order_by="TransactionSplit.id",
    )

    __table_args__ = (
        Index("ix_transactions_occurred_on", "occurred_on"),
        Index("ix_transactions_type_occurred_on", "type", "occurred_on"),
        CheckConstraint("amount >= 0", name="ck_transactions_amount_positive"),
    )


class TransactionSplit(Base, TimestampMixin):
    __tablename__ = "transaction_splits"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=_new_id)
    transaction_id: Mapped[str] = mapped_column(
        ForeignKey("transactions.id"), nullable=False
    )
    category_id: Mapped[Optional[str]] = mapped_column(ForeignKey("categories.id"))
    amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False)

    transaction: Mapped["Transaction"] = relationship(
        "Transaction", back_populates="splits"
    )

    __table_args__ = (Index("ix_split_transaction", "transaction_id"),)
