"""
Planning Models: accounts, goals, reminders, family sharing, budgets, alerts.

DESIGN DECISION: Account balances are never stored. They are derived
from linked transactions every time they are needed, so the two can
never drift apart.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator

from smart_budget.models.transaction import Category


# =============================================================================
# BANK ACCOUNTS
# =============================================================================

class BankAccount(BaseModel):
    """A bank account identified by a nickname and its last four digits."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Nickname, e.g. 'HDFC Salary'"
    )
    last_four_digits: str = Field(
        ...,
        pattern=r"^\d{4}$",
        description="Last four digits of the account or card number"
    )
    created_at: datetime = Field(default_factory=datetime.utcnow)


class AccountSummary(BaseModel):
    """An account together with totals derived from its transactions."""

    account: BankAccount
    income: float = 0.0
    expenses: float = 0.0
    balance: float = 0.0
    transaction_count: int = 0


# =============================================================================
# SAVING GOALS
# =============================================================================

class GoalPriority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class GoalStatus(str, Enum):
    ACTIVE = "active"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class SavingSuggestion(BaseModel):
    """Suggested contributions needed to reach a goal on time."""

    monthly_amount: int = Field(..., ge=0)
    weekly_amount: int = Field(..., ge=0)
    feasibility: str
    income_percentage: Optional[float] = None


class SavingGoal(BaseModel):
    """A target amount the user wants to have saved by a deadline."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    name: str = Field(..., min_length=1, max_length=100)
    target_amount: Decimal = Field(..., gt=0, decimal_places=2)
    current_amount: Decimal = Field(default=Decimal("0"), ge=0, decimal_places=2)
    deadline: date
    priority: GoalPriority = GoalPriority.MEDIUM
    category: str = Field(default="General", max_length=50)
    description: str = Field(default="", max_length=500)
    status: GoalStatus = GoalStatus.ACTIVE
    suggestion: Optional[SavingSuggestion] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)

    @model_validator(mode="after")
    def validate_amounts(self) -> "SavingGoal":
        if self.current_amount > self.target_amount:
            raise ValueError("Current amount cannot exceed target amount")
        return self

    @property
    def remaining_amount(self) -> Decimal:
        return self.target_amount - self.current_amount

    @property
    def progress_percent(self) -> float:
        return min(100.0, float(self.current_amount / self.target_amount * 100))


# =============================================================================
# PAYMENT REMINDERS
# =============================================================================

class ReminderType(str, Enum):
    CREDIT_CARD = "credit_card"
    RENT = "rent"
    UTILITIES = "utilities"
    LOAN = "loan"
    SUBSCRIPTION = "subscription"
    OTHER = "other"


class ReminderFrequency(str, Enum):
    MONTHLY = "monthly"
    WEEKLY = "weekly"
    YEARLY = "yearly"
    ONE_TIME = "one_time"


class PaymentReminder(BaseModel):
    """
    A recurring bill the user wants to be reminded about.

    `due_day` is a day of the month. Months shorter than `due_day`
    fall due on their last day.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    title: str = Field(..., min_length=1, max_length=100)
    amount: Decimal = Field(..., gt=0, decimal_places=2)
    due_day: int = Field(..., ge=1, le=31)
    reminder_type: ReminderType = ReminderType.OTHER
    frequency: ReminderFrequency = ReminderFrequency.MONTHLY
    account: str = Field(
        default="cash",
        description="'cash' or the id of the paying bank account"
    )
    completed: bool = False
    created_at: datetime = Field(default_factory=datetime.utcnow)


# =============================================================================
# FAMILY SHARING
# =============================================================================

class MemberStatus(str, Enum):
    PENDING = "pending"
    VERIFIED = "verified"


class FamilyMember(BaseModel):
    """Someone whose transactions may be included in the family overview."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    email: str = Field(..., max_length=254)
    name: str = Field(..., min_length=1, max_length=100)
    status: MemberStatus = MemberStatus.PENDING
    verification_code: Optional[str] = Field(default=None, pattern=r"^\d{6}$")
    invited_at: datetime = Field(default_factory=datetime.utcnow)
    joined_date: Optional[date] = None
    shared_data: bool = True


# =============================================================================
# BUDGETS
# =============================================================================

class BudgetPeriod(str, Enum):
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class Budget(BaseModel):
    """A spending limit for one category over a period."""

    id: UUID = Field(default_factory=uuid4)
    category: Category
    amount: Decimal = Field(..., gt=0, decimal_places=2)
    period: BudgetPeriod = BudgetPeriod.MONTHLY


# =============================================================================
# ALERTS AND NOTIFICATIONS
# =============================================================================

class AlertKind(str, Enum):
    WEEKLY_OVERSPEND = "weekly_overspend"
    MONTHLY_OVERSPEND = "monthly_overspend"
    LARGE_PURCHASE = "large_purchase"
    BUDGET_EXCEEDED = "budget_exceeded"
    ANOMALY = "anomaly"
    PAYMENT_DUE = "payment_due"
    PAYMENT_DUE_SOON = "payment_due_soon"
    DAILY_SUMMARY = "daily_summary"
    WEEKLY_REPORT = "weekly_report"


class AlertLevel(str, Enum):
    INFO = "info"
    WARNING = "warning"
    HIGH = "high"


class Alert(BaseModel):
    """A message surfaced to the user by the alerting and reminder services."""

    id: UUID = Field(default_factory=uuid4)
    kind: AlertKind
    title: str
    message: str
    level: AlertLevel = AlertLevel.INFO
    category: Optional[str] = None
    amount: Optional[float] = None
    timestamp: datetime = Field(default_factory=datetime.utcnow)
