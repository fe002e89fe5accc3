"""
Data Models Package

This package contains all Pydantic models used in Smart Budget.
All data flowing through the system must conform to these schemas.
"""

from smart_budget.models.transaction import (
    Category,
    ExtractedTransaction,
    Transaction,
    TransactionSource,
    TransactionType,
    ValidationIssue,
    ValidationResult,
)
from smart_budget.models.finance import (
    AccountSummary,
    Alert,
    AlertKind,
    AlertLevel,
    BankAccount,
    Budget,
    BudgetPeriod,
    FamilyMember,
    GoalPriority,
    GoalStatus,
    MemberStatus,
    PaymentReminder,
    ReminderFrequency,
    ReminderType,
    SavingGoal,
    SavingSuggestion,
)
from smart_budget.models.report import (
    AccountMonthReport,
    AssistantReply,
    CategoryShare,
    ChangeFrequency,
    ChangeType,
    DailyPoint,
    FamilyOverview,
    MemberSpending,
    MonthlyPoint,
    MonthlyReport,
    PeriodSummary,
    ProjectionPoint,
    ScenarioChange,
    SimulationResult,
    TimeRange,
)
from smart_budget.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Transaction models
    "Category",
    "ExtractedTransaction",
    "Transaction",
    "TransactionSource",
    "TransactionType",
    "ValidationIssue",
    "ValidationResult",
    # Planning models
    "AccountSummary",
    "Alert",
    "AlertKind",
    "AlertLevel",
    "BankAccount",
    "Budget",
    "BudgetPeriod",
    "FamilyMember",
    "GoalPriority",
    "GoalStatus",
    "MemberStatus",
    "PaymentReminder",
    "ReminderFrequency",
    "ReminderType",
    "SavingGoal",
    "SavingSuggestion",
    # Report models
    "AccountMonthReport",
    "AssistantReply",
    "CategoryShare",
    "ChangeFrequency",
    "ChangeType",
    "DailyPoint",
    "FamilyOverview",
    "MemberSpending",
    "MonthlyPoint",
    "MonthlyReport",
    "PeriodSummary",
    "ProjectionPoint",
    "ScenarioChange",
    "SimulationResult",
    "TimeRange",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
