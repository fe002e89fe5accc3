"""Tests for the what-if simulator."""

from datetime import date
from decimal import Decimal

import pytest

from conftest import make_transaction
from smart_budget.models.report import ChangeFrequency, ChangeType, ScenarioChange
from smart_budget.models.transaction import Category, TransactionType
from smart_budget.services.simulator import (
    MAX_PROJECTION_MONTHS,
    SimulationError,
    WhatIfSimulator,
    monthly_equivalent,
)


TODAY = date(2024, 6, 10)


@pytest.fixture
def history():
    transactions = []
    for month in (4, 5):
        transactions.append(make_transaction(
            60000, date(2024, month, 1), TransactionType.CREDIT, Category.SALARY
        ))
        transactions.append(make_transaction(40000, date(2024, month, 15), category=Category.RENT))
    return transactions


def change(change_type, amount, frequency=ChangeFrequency.MONTHLY) -> ScenarioChange:
    return ScenarioChange(change_type=change_type, amount=Decimal(str(amount)), frequency=frequency)


class TestMonthlyEquivalent:

    @pytest.mark.parametrize("frequency,amount,expected", [
        (ChangeFrequency.WEEKLY, 500, 2000.0),
        (ChangeFrequency.MONTHLY, 500, 500.0),
        (ChangeFrequency.YEARLY, 12000, 1000.0),
        (ChangeFrequency.ONE_TIME, 6000, 500.0),
    ])
    def test_conversions(self, frequency, amount, expected):
        """Test every frequency over a 12 month projection."""
        assert monthly_equivalent(change(ChangeType.NEW_EXPENSE, amount, frequency), 12) == expected


class TestWhatIfSimulator:
    """Tests for baselines and projections."""

    def test_baseline(self, history):
        """Test average monthly income and expenses."""
        assert WhatIfSimulator().baseline(history) == (60000.0, 40000.0)
        assert WhatIfSimulator().baseline([]) == (0.0, 0.0)

    def test_reduction_projection(self, history):
        """Test a spending cut raises the balance every month."""
        result = WhatIfSimulator().simulate(
            history,
            [change(ChangeType.REDUCTION, 2000)],
            starting_balance=10000,
            months=3,
            today=TODAY,
        )
        assert result.projected_monthly_expenses == 38000.0
        assert result.monthly_impact == 2000.0
        assert [p.balance for p in result.projections] == [32000.0, 54000.0, 76000.0]
        assert [p.label for p in result.projections] == ["Jul 2024", "Aug 2024", "Sep 2024"]
        assert result.final_balance == 76000.0

    def test_income_and_expense_changes(self, history):
        """Test new income and new expenses move opposite sides."""
        result = WhatIfSimulator().simulate(
            history,
            [
                change(ChangeType.NEW_INCOME, 5000),
                change(ChangeType.NEW_EXPENSE, 12000, ChangeFrequency.YEARLY),
                change(ChangeType.INCREASE, 500, ChangeFrequency.WEEKLY),
            ],
            today=TODAY,
        )
        assert result.projected_monthly_income == 65000.0
        assert result.projected_monthly_expenses == 43000.0
        assert result.monthly_impact == 2000.0
        assert len(result.projections) == 12
        assert result.projections[-1].label == "Jun 2025"

    def test_expenses_never_negative(self, history):
        """Test large reductions clamp spending at zero."""
        result = WhatIfSimulator().simulate(
            history, [change(ChangeType.REDUCTION, 100000)], months=1, today=TODAY
        )
        assert result.projected_monthly_expenses == 0.0
        assert result.monthly_impact == 40000.0

    def test_no_changes_no_impact(self, history):
        """Test an empty scenario follows the baseline."""
        result = WhatIfSimulator().simulate(history, [], months=2, today=TODAY)
        assert result.monthly_impact == 0.0
        assert result.final_balance == 40000.0

    @pytest.mark.parametrize("months", [0, MAX_PROJECTION_MONTHS + 1])
    def test_invalid_length(self, history, months):
        """Test projection length bounds."""
        with pytest.raises(SimulationError):
            WhatIfSimulator().simulate(history, [], months=months)

    def test_invalid_baseline_window(self, history):
        """Test the baseline window must be positive."""
        with pytest.raises(SimulationError):
            WhatIfSimulator().baseline(history, baseline_months=0)
