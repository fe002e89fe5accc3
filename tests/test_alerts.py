"""Tests for overspending alerts, budget overruns and insights."""

from datetime import date
from decimal import Decimal

import pytest

from conftest import make_transaction
from smart_budget.config import AppSettings
from smart_budget.models.finance import AlertKind, AlertLevel, Budget, BudgetPeriod
from smart_budget.models.transaction import Category, TransactionType
from smart_budget.services.alerts import (
    BALANCED_INSIGHT,
    FOOD_INSIGHT,
    TRANSPORT_INSIGHT,
    OverspendingDetector,
)


TODAY = date(2024, 6, 10)


@pytest.fixture
def detector():
    return OverspendingDetector(AppSettings())


@pytest.fixture
def food_history():
    """₹1,000 of food in each of the four weeks before this one."""
    return [
        make_transaction(1000, date(2024, 5, day), category=Category.FOOD, merchant="Swiggy")
        for day in (10, 17, 24, 31)
    ]


def kinds(alerts) -> list[AlertKind]:
    return [a.kind for a in alerts]


class TestBaselines:

    def test_weekly_baseline(self, detector, food_history):
        """Test the four-week average excludes the current week."""
        extra = make_transaction(5000, date(2024, 6, 5), category=Category.FOOD)
        baselines = detector.weekly_baselines(food_history + [extra], TODAY)
        assert baselines == {"Food & Dining": 1000.0}

    def test_monthly_baseline(self, detector, food_history):
        """Test the three previous calendar months are averaged."""
        march = make_transaction(2000, date(2024, 3, 15), category=Category.FOOD)
        baselines = detector.monthly_baselines(food_history + [march], TODAY)
        assert baselines["Food & Dining"] == pytest.approx(2000.0)


class TestOverspendingDetector:
    """Tests for the combined alert check."""

    def test_weekly_overspend(self, detector, food_history):
        """Test spending above 1.5x the weekly baseline."""
        this_week = make_transaction(2000, date(2024, 6, 5), category=Category.FOOD)
        alerts = detector.check(food_history + [this_week], today=TODAY)
        weekly = [a for a in alerts if a.kind == AlertKind.WEEKLY_OVERSPEND]
        assert len(weekly) == 1
        assert weekly[0].category == "Food & Dining"
        assert weekly[0].level == AlertLevel.WARNING
        assert "2.0x" in weekly[0].message

    def test_monthly_overspend(self, detector, food_history):
        """Test month-to-date spending above 1.3x the monthly baseline."""
        this_month = make_transaction(2000, date(2024, 6, 2), category=Category.FOOD)
        alerts = detector.check(food_history + [this_month], today=TODAY)
        assert AlertKind.MONTHLY_OVERSPEND in kinds(alerts)

    def test_new_category_never_alerts(self, detector):
        """Test a zero baseline produces no alert."""
        first = make_transaction(50000, TODAY, category=Category.TRAVEL)
        assert detector.check([first], today=TODAY) == []

    def test_large_purchase(self, detector, food_history):
        """Test a single purchase above half the usual weekly spend."""
        purchase = make_transaction(600, TODAY, category=Category.FOOD, merchant="Barbeque Nation")
        alerts = detector.check(food_history + [purchase], today=TODAY)
        assert kinds(alerts) == [AlertKind.LARGE_PURCHASE]
        assert alerts[0].title == "Large purchase at Barbeque Nation"

    def test_credits_ignored(self, detector, food_history):
        """Test income never counts as spending."""
        refund = make_transaction(9000, TODAY, TransactionType.CREDIT, Category.FOOD)
        assert detector.check(food_history + [refund], today=TODAY) == []

    def test_budget_exceeded_sorted_first(self, detector, food_history):
        """Test budget alerts are HIGH and come before INFO alerts."""
        purchase = make_transaction(600, TODAY, category=Category.FOOD)
        budget = Budget(category=Category.FOOD, amount=Decimal("500"))
        alerts = detector.check(food_history + [purchase], budgets=[budget], today=TODAY)
        assert kinds(alerts) == [AlertKind.BUDGET_EXCEEDED, AlertKind.LARGE_PURCHASE]
        assert alerts[0].level == AlertLevel.HIGH

    def test_max_active_alerts(self, food_history):
        """Test the alert list is capped."""
        detector = OverspendingDetector(AppSettings(max_active_alerts=1))
        purchase = make_transaction(600, TODAY, category=Category.FOOD)
        budget = Budget(category=Category.FOOD, amount=Decimal("500"))
        alerts = detector.check(food_history + [purchase], budgets=[budget], today=TODAY)
        assert kinds(alerts) == [AlertKind.BUDGET_EXCEEDED]


class TestBudgetOverruns:

    @pytest.mark.parametrize("period,expected", [
        (BudgetPeriod.WEEKLY, 1),
        (BudgetPeriod.MONTHLY, 1),
        (BudgetPeriod.YEARLY, 1),
    ])
    def test_periods(self, detector, period, expected):
        """Test each period's window."""
        transactions = [make_transaction(600, date(2024, 6, 8), category=Category.SHOPPING)]
        budget = Budget(category=Category.SHOPPING, amount=Decimal("500"), period=period)
        assert len(detector.budget_overruns(transactions, [budget], TODAY)) == expected

    def test_weekly_window_excludes_older(self, detector):
        """Test spending before the last seven days does not count weekly."""
        transactions = [make_transaction(600, date(2024, 6, 3), category=Category.SHOPPING)]
        weekly = Budget(category=Category.SHOPPING, amount=Decimal("500"), period=BudgetPeriod.WEEKLY)
        monthly = Budget(category=Category.SHOPPING, amount=Decimal("500"))
        assert detector.budget_overruns(transactions, [weekly], TODAY) == []
        assert len(detector.budget_overruns(transactions, [monthly], TODAY)) == 1

    def test_at_limit_is_fine(self, detector):
        """Test spending exactly the budget is not an overrun."""
        transactions = [make_transaction(500, TODAY, category=Category.SHOPPING)]
        budget = Budget(category=Category.SHOPPING, amount=Decimal("500"))
        assert detector.budget_overruns(transactions, [budget], TODAY) == []


class TestAnomaliesAndInsights:
    """Tests for anomaly detection and plain-language tips."""

    def test_detect_anomalies(self, detector):
        """Test expenses above twice the average expense."""
        transactions = [make_transaction(a, TODAY) for a in (100, 100, 100, 1000)]
        anomalies = detector.detect_anomalies(transactions)
        assert [float(t.amount) for t in anomalies] == [1000.0]
        assert detector.detect_anomalies([]) == []

    def test_balanced(self, detector):
        """Test the default insight."""
        assert detector.generate_insights([], today=TODAY) == [BALANCED_INSIGHT]

    def test_category_insights(self, detector):
        """Test food and transport thresholds."""
        transactions = [
            make_transaction(3500, date(2024, 6, 2), category=Category.FOOD),
            make_transaction(2500, date(2024, 6, 3), category=Category.TRANSPORTATION),
            make_transaction(9000, date(2024, 5, 3), category=Category.FOOD),
        ]
        assert detector.generate_insights(transactions, today=TODAY) == [
            FOOD_INSIGHT,
            TRANSPORT_INSIGHT,
        ]

    def test_overspent_month(self, detector):
        """Test spending more than income is called out."""
        transactions = [
            make_transaction(1000, date(2024, 6, 1), TransactionType.CREDIT, Category.SALARY),
            make_transaction(1500, date(2024, 6, 2), category=Category.SHOPPING),
        ]
        insights = detector.generate_insights(transactions, today=TODAY)
        assert insights == ["You've spent ₹500 more than you earned this month."]
