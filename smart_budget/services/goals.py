"""
Saving Goal Service

Suggests how much to put aside each month and week to reach a target by
its deadline, and tracks contributions towards it.

Feasibility is judged by the monthly contribution as a share of the
user's average monthly income:
    > 30%  Challenging - consider extending deadline
    > 20%  Moderate challenge
    > 10%  Reasonable
    else   Easily achievable
"""

import math
from datetime import date
from decimal import Decimal
from typing import Optional
from uuid import UUID

from smart_budget.analytics import average_monthly_income
from smart_budget.audit import AuditLogger
from smart_budget.models.audit import AuditEventType
from smart_budget.models.finance import (
    GoalPriority,
    GoalStatus,
    SavingGoal,
    SavingSuggestion,
)
from smart_budget.services.storage import (
    NotFoundError,
    RecordStorageInterface,
    SAVING_GOALS,
    TransactionStorageInterface,
)


NO_INCOME_FEASIBILITY = "Unable to calculate without income data"

_PRIORITY_ORDER = {GoalPriority.HIGH: 0, GoalPriority.MEDIUM: 1, GoalPriority.LOW: 2}


class GoalError(ValueError):
    """Invalid saving goal or contribution."""
    pass


def feasibility_label(income_percentage: float) -> str:
    if income_percentage > 30:
        return "Challenging - consider extending deadline"
    if income_percentage > 20:
        return "Moderate challenge"
    if income_percentage > 10:
        return "Reasonable"
    return "Easily achievable"


def suggest_contributions(
    target_amount: Decimal,
    current_amount: Decimal,
    deadline: date,
    monthly_income: Optional[float],
    today: Optional[date] = None,
) -> SavingSuggestion:
    """
    Monthly and weekly amounts (rounded up to whole rupees) to hit the target.

    Months left is ceil(days / 30), weeks left ceil(days / 7), each at
    least one, so an overdue goal asks for the remainder immediately.
    Without income data the remainder is spread over a year instead.
    """
    today = today or date.today()
    needed = max(float(target_amount - current_amount), 0.0)
    days_left = (deadline - today).days
    months_left = max(math.ceil(days_left / 30), 1)
    weeks_left = max(math.ceil(days_left / 7), 1)

    if not monthly_income or monthly_income <= 0:
        return SavingSuggestion(
            monthly_amount=math.ceil(needed / 12),
            weekly_amount=math.ceil(needed / 52),
            feasibility=NO_INCOME_FEASIBILITY,
        )

    monthly = math.ceil(needed / months_left)
    weekly = math.ceil(needed / weeks_left)
    percentage = round(monthly / monthly_income * 100, 1)
    return SavingSuggestion(
        monthly_amount=monthly,
        weekly_amount=weekly,
        feasibility=feasibility_label(percentage),
        income_percentage=percentage,
    )


def days_left(goal: SavingGoal, today: Optional[date] = None) -> int:
    """Days until the deadline; negative when overdue."""
    return (goal.deadline - (today or date.today())).days


class SavingGoalService:
    """Creates goals, records contributions and keeps suggestions current."""

    def __init__(
        self,
        record_storage: RecordStorageInterface,
        transaction_storage: Optional[TransactionStorageInterface] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._records = record_storage
        self._transactions = transaction_storage
        self._audit = audit_logger

    async def _monthly_income(self) -> float:
        if self._transactions is None:
            return 0.0
        return average_monthly_income(await self._transactions.list_transactions())

    async def suggest(
        self,
        target_amount: Decimal,
        deadline: date,
        current_amount: Decimal = Decimal("0"),
        today: Optional[date] = None,
    ) -> SavingSuggestion:
        return suggest_contributions(
            target_amount=Decimal(str(target_amount)),
            current_amount=Decimal(str(current_amount)),
            deadline=deadline,
            monthly_income=await self._monthly_income(),
            today=today,
        )

    async def create_goal(
        self,
        name: str,
        target_amount: Decimal,
        deadline: date,
        priority: GoalPriority = GoalPriority.MEDIUM,
        category: str = "General",
        description: str = "",
        current_amount: Decimal = Decimal("0"),
        today: Optional[date] = None,
    ) -> SavingGoal:
        """
        Raises:
            GoalError: Missing name, non-positive target, a deadline that
                is not in the future, or a starting amount above target.
        """
        today = today or date.today()
        if not name or not name.strip():
            raise GoalError("Goal name is required")
        target = Decimal(str(target_amount)).quantize(Decimal("0.01"))
        current = Decimal(str(current_amount)).quantize(Decimal("0.01"))
        if target <= 0:
            raise GoalError("Target amount must be greater than zero")
        if current < 0 or current > target:
            raise GoalError("Starting amount must be between zero and the target")
        if deadline <= today:
            raise GoalError("Deadline must be in the future")

        goal = SavingGoal(
            name=name,
            target_amount=target,
            current_amount=current,
            deadline=deadline,
            priority=priority,
            category=category,
            description=description,
            status=GoalStatus.COMPLETED if current == target else GoalStatus.ACTIVE,
            suggestion=await self.suggest(target, deadline, current, today=today),
        )
        await self._records.save_record(SAVING_GOALS, goal)

        if self._audit:
            await self._audit.log_entity_changed(
                event_type=AuditEventType.GOAL_CREATED,
                entity_type="goal",
                entity_id=goal.id,
                description=f"Saving goal created: {goal.name} (₹{goal.target_amount})",
            )
        return goal

    async def contribute(
        self,
        goal_id: UUID,
        amount: Decimal,
        today: Optional[date] = None,
    ) -> SavingGoal:
        """
        Add money to a goal. The saved amount never exceeds the target.

        Raises:
            GoalError: Non-positive amount
            NotFoundError: If the goal doesn't exist
        """
        amount = Decimal(str(amount)).quantize(Decimal("0.01"))
        if amount <= 0:
            raise GoalError("Contribution must be greater than zero")

        goal = await self._records.get_record(SAVING_GOALS, goal_id, SavingGoal)
        if goal is None:
            raise NotFoundError(f"Goal not found: {goal_id}")

        new_amount = min(goal.current_amount + amount, goal.target_amount)
        status = GoalStatus.COMPLETED if new_amount >= goal.target_amount else GoalStatus.IN_PROGRESS
        updated = goal.model_copy(update={
            "current_amount": new_amount,
            "status": status,
            "suggestion": await self.suggest(
                goal.target_amount, goal.deadline, new_amount, today=today
            ),
        })
        await self._records.save_record(SAVING_GOALS, updated)

        if self._audit:
            await self._audit.log_entity_changed(
                event_type=AuditEventType.GOAL_CONTRIBUTION,
                entity_type="goal",
                entity_id=goal_id,
                description=f"₹{amount} added to {goal.name}",
                details={"new_amount": str(new_amount), "status": status.value},
            )
        return updated

    async def list_goals(self) -> list[SavingGoal]:
        """Goals by priority, then nearest deadline."""
        goals = await self._records.list_records(SAVING_GOALS, SavingGoal)
        goals.sort(key=lambda g: (_PRIORITY_ORDER[g.priority], g.deadline))
        return goals

    async def delete_goal(self, goal_id: UUID) -> bool:
        deleted = await self._records.delete_record(SAVING_GOALS, goal_id)
        if deleted and self._audit:
            await self._audit.log_entity_changed(
                event_type=AuditEventType.GOAL_DELETED,
                entity_type="goal",
                entity_id=goal_id,
                description="Saving goal deleted",
            )
        return deleted
