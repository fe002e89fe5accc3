"""
What-If Simulator

Projects the balance month by month under a set of hypothetical changes
("cut dining out by ₹2,000 a month", "new ₹15,000 yearly insurance").

Every change is converted to a monthly equivalent:
    weekly   x 4
    monthly  x 1
    yearly   / 12
    one_time / projection length

The baseline is the user's average monthly income and expenses over the
most recent `baseline_months` calendar months that have any data.
"""

from datetime import date
from typing import Optional, Sequence

import structlog

from smart_budget.analytics import monthly_series
from smart_budget.models.report import (
    ChangeFrequency,
    ChangeType,
    ProjectionPoint,
    ScenarioChange,
    SimulationResult,
)
from smart_budget.models.transaction import Transaction


logger = structlog.get_logger(__name__)

MAX_PROJECTION_MONTHS = 60


class SimulationError(ValueError):
    """Invalid projection length or baseline window."""
    pass


def monthly_equivalent(change: ScenarioChange, months: int) -> float:
    amount = float(change.amount)
    if change.frequency == ChangeFrequency.WEEKLY:
        return amount * 4
    if change.frequency == ChangeFrequency.YEARLY:
        return amount / 12
    if change.frequency == ChangeFrequency.ONE_TIME:
        return amount / months
    return amount


def _month_label(start: date, offset: int) -> str:
    index = start.month - 1 + offset
    return date(start.year + index // 12, index % 12 + 1, 1).strftime("%b %Y")


class WhatIfSimulator:
    """Runs cash-flow projections; holds no state between runs."""

    def baseline(
        self,
        transactions: Sequence[Transaction],
        baseline_months: int = 3,
    ) -> tuple[float, float]:
        """Average (income, expenses) per month over recent months with data."""
        if baseline_months < 1:
            raise SimulationError("baseline_months must be at least 1")
        series = monthly_series(transactions, months=baseline_months)
        if not series:
            return 0.0, 0.0
        income = sum(p.income for p in series) / len(series)
        expenses = sum(p.expenses for p in series) / len(series)
        return round(income, 2), round(expenses, 2)

    def simulate(
        self,
        transactions: Sequence[Transaction],
        changes: Sequence[ScenarioChange],
        starting_balance: float = 0.0,
        months: int = 12,
        baseline_months: int = 3,
        today: Optional[date] = None,
    ) -> SimulationResult:
        """
        Project the balance for `months` months starting next month.

        Raises:
            SimulationError: months outside 1..MAX_PROJECTION_MONTHS
        """
        if not 1 <= months <= MAX_PROJECTION_MONTHS:
            raise SimulationError(
                f"months must be between 1 and {MAX_PROJECTION_MONTHS}, got {months}"
            )
        today = today or date.today()
        base_income, base_expenses = self.baseline(transactions, baseline_months)

        income = base_income
        expenses = base_expenses
        for change in changes:
            monthly = monthly_equivalent(change, months)
            if change.change_type == ChangeType.REDUCTION:
                expenses -= monthly
            elif change.change_type == ChangeType.NEW_INCOME:
                income += monthly
            else:
                expenses += monthly
        # A reduction can't take spending below zero
        expenses = max(expenses, 0.0)

        net = income - expenses
        balance = float(starting_balance)
        first_month = date(today.year, today.month, 1)
        projections = []
        for i in range(1, months + 1):
            balance += net
            projections.append(ProjectionPoint(
                month_index=i,
                label=_month_label(first_month, i),
                income=round(income, 2),
                expenses=round(expenses, 2),
                balance=round(balance, 2),
            ))

        result = SimulationResult(
            starting_balance=round(float(starting_balance), 2),
            baseline_monthly_income=base_income,
            baseline_monthly_expenses=base_expenses,
            projected_monthly_income=round(income, 2),
            projected_monthly_expenses=round(expenses, 2),
            monthly_impact=round(net - (base_income - base_expenses), 2),
            projections=projections,
        )
        logger.debug(
            "simulation_completed",
            changes=len(changes),
            months=months,
            monthly_impact=result.monthly_impact,
        )
        return result
