from datetime import date
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from enums import CategorySection, RepeatCadence, TransactionType


class DashboardThresholds(BaseModel):
    """Tunables applied by every stage of the dashboard pipeline.

    The instance used for a build is echoed back in the result so the UI can
    explain flags with the numbers that produced them.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    category_variance_threshold: float = Field(default=0.12, gt=0)
    trend_std_threshold: float = Field(default=2, gt=0)
    trend_percent_threshold: float = Field(default=0.25, gt=0)
    forecast_lookahead_months: int = Field(default=3, ge=1)
    top_vendor_limit: int = Field(default=8, ge=1)
    top_transaction_limit: int = Field(default=8, ge=1)
    trend_window_months: int = Field(default=6, ge=1)
    max_month_guard: int = Field(default=48, ge=1)


class CategoryRow(BaseModel):
    id: str
    name: str
    emoji: Optional[str] = None
    section: CategorySection = CategorySection.expenses


class AllocationRow(BaseModel):
    category_id: str
    section: CategorySection = CategorySection.expenses
    planned_amount: float = 0
    spent_amount: float = 0
    carry_forward: bool = False
    repeat_cadence: RepeatCadence = RepeatCadence.monthly


class IncomeRow(BaseModel):
    source: str
    amount: float = 0


class BudgetRow(BaseModel):
    month: date
    allocations: list[AllocationRow] = Field(default_factory=list)
    incomes: list[IncomeRow] = Field(default_factory=list)


class SplitRow(BaseModel):
    category_id: Optional[str] = None
    amount: float


class TransactionRow(BaseModel):
    id: str
    occurred_on: date
    amount: float
    type: TransactionType
    merchant: Optional[str] = None
    description: Optional[str] = None
    category_id: Optional[str] = None
    splits: list[SplitRow] = Field(default_factory=list)
