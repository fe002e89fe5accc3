"""
Category Budgets

One spending limit per category and period. Setting a budget for a
category and period that already has one replaces its amount.
"""

from decimal import Decimal
from typing import Optional
from uuid import UUID

from smart_budget.audit import AuditLogger
from smart_budget.models.audit import AuditEventType
from smart_budget.models.finance import Budget, BudgetPeriod
from smart_budget.models.transaction import Category
from smart_budget.services.storage import BUDGETS, RecordStorageInterface


class BudgetError(ValueError):
    """Invalid budget amount."""
    pass


class BudgetService:

    def __init__(
        self,
        record_storage: RecordStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._records = record_storage
        self._audit = audit_logger

    async def list_budgets(self) -> list[Budget]:
        budgets = await self._records.list_records(BUDGETS, Budget)
        budgets.sort(key=lambda b: (b.period.value, b.category.value))
        return budgets

    async def set_budget(
        self,
        category: Category,
        amount: Decimal,
        period: BudgetPeriod = BudgetPeriod.MONTHLY,
    ) -> Budget:
        amount = Decimal(str(amount)).quantize(Decimal("0.01"))
        if amount <= 0:
            raise BudgetError("Budget amount must be greater than zero")

        existing = next(
            (b for b in await self.list_budgets() if b.category == category and b.period == period),
            None,
        )
        if existing:
            budget = existing.model_copy(update={"amount": amount})
        else:
            budget = Budget(category=category, amount=amount, period=period)
        await self._records.save_record(BUDGETS, budget)

        if self._audit:
            await self._audit.log_entity_changed(
                event_type=AuditEventType.BUDGET_SET,
                entity_type="budget",
                entity_id=budget.id,
                description=f"{period.value.title()} {category.value} budget set to ₹{amount}",
            )
        return budget

    async def delete_budget(self, budget_id: UUID) -> bool:
        deleted = await self._records.delete_record(BUDGETS, budget_id)
        if deleted and self._audit:
            await self._audit.log_entity_changed(
                event_type=AuditEventType.BUDGET_DELETED,
                entity_type="budget",
                entity_id=budget_id,
                description="Budget deleted",
            )
        return deleted
