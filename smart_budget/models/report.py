"""
Report Models

Results of deterministic aggregation over transactions. Amounts here are
floats: they are display values, never written back to storage.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from smart_budget.models.transaction import ExtractedTransaction


class TimeRange(str, Enum):
    """Rolling windows used by dashboards and account analytics."""
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"
    ALL = "all"

    @property
    def days(self) -> Optional[int]:
        return {"week": 7, "month": 30, "year": 365}.get(self.value)


class PeriodSummary(BaseModel):
    income: float = 0.0
    expenses: float = 0.0
    net: float = 0.0
    savings_rate: float = Field(
        default=0.0,
        description="Net as a percentage of income (0 when there is no income)"
    )
    transaction_count: int = 0


class CategoryShare(BaseModel):
    category: str
    amount: float
    count: int
    percent: float = Field(..., description="Share of total expenses")


class MonthlyPoint(BaseModel):
    month: str = Field(..., pattern=r"^\d{4}-\d{2}$")
    income: float = 0.0
    expenses: float = 0.0
    net: float = 0.0


class DailyPoint(BaseModel):
    day: date
    income: float = 0.0
    expenses: float = 0.0
    transaction_count: int = 0


class AccountMonthReport(BaseModel):
    account_id: Optional[UUID] = None
    account_name: str
    income: float = 0.0
    expenses: float = 0.0
    net: float = 0.0
    transaction_count: int = 0


class MonthlyReport(BaseModel):
    """Everything shown on the Reports page for one calendar month."""

    year: int
    month: int = Field(..., ge=1, le=12)
    summary: PeriodSummary
    daily: list[DailyPoint] = Field(default_factory=list)
    categories: list[CategoryShare] = Field(default_factory=list)
    accounts: list[AccountMonthReport] = Field(default_factory=list)


# =============================================================================
# WHAT-IF SIMULATION
# =============================================================================

class ChangeType(str, Enum):
    REDUCTION = "reduction"
    INCREASE = "increase"
    NEW_EXPENSE = "new_expense"
    NEW_INCOME = "new_income"


class ChangeFrequency(str, Enum):
    ONE_TIME = "one_time"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class ScenarioChange(BaseModel):
    """One hypothetical change to the user's cash flow."""

    change_type: ChangeType
    amount: Decimal = Field(..., gt=0)
    frequency: ChangeFrequency = ChangeFrequency.MONTHLY
    category: Optional[str] = None
    description: str = ""


class ProjectionPoint(BaseModel):
    month_index: int = Field(..., ge=1)
    label: str
    income: float
    expenses: float
    balance: float


class SimulationResult(BaseModel):
    starting_balance: float
    baseline_monthly_income: float
    baseline_monthly_expenses: float
    projected_monthly_income: float
    projected_monthly_expenses: float
    monthly_impact: float = Field(
        ...,
        description="Change in monthly net cash flow caused by the scenario"
    )
    projections: list[ProjectionPoint] = Field(default_factory=list)

    @property
    def final_balance(self) -> float:
        return self.projections[-1].balance if self.projections else self.starting_balance


# =============================================================================
# FAMILY AND ASSISTANT
# =============================================================================

class MemberSpending(BaseModel):
    name: str
    email: Optional[str] = None
    income: float = 0.0
    expenses: float = 0.0
    transaction_count: int = 0


class FamilyOverview(BaseModel):
    total_income: float = 0.0
    total_expenses: float = 0.0
    net: float = 0.0
    member_count: int = Field(..., ge=1, description="Shared members plus the owner")
    members: list[MemberSpending] = Field(default_factory=list)
    categories: list[CategoryShare] = Field(default_factory=list)


class AssistantReply(BaseModel):
    """What the chat assistant says back, plus any data it used."""

    intent: str
    message: str
    proposal: Optional[ExtractedTransaction] = None
    data: dict[str, Any] = Field(default_factory=dict)
