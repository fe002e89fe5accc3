"""
Overspending Alerts and Spending Insights

DESIGN DECISION: Alerts compare recent spending in a category with that
category's own history (its baseline), not with fixed limits. A baseline
of zero never produces an alert: a first purchase in a new category is
not "overspending".

Baselines:
- Weekly:  average of the four full weeks before the current week
- Monthly: average of the three calendar months before the current one

The current week is the last seven days including today.
"""

from collections import defaultdict
from datetime import date, timedelta
from typing import Iterable, Optional, Sequence

from smart_budget.analytics import filter_by_dates, month_bounds, summarize
from smart_budget.config import AppSettings, get_settings
from smart_budget.models.finance import (
    Alert,
    AlertKind,
    AlertLevel,
    Budget,
    BudgetPeriod,
)
from smart_budget.models.transaction import Category, Transaction, TransactionType


BALANCED_INSIGHT = "Your spending is well balanced this month."
FOOD_INSIGHT = "Your food spending is high this month. Consider reducing dining out."
TRANSPORT_INSIGHT = "Transport costs are rising. Try carpooling or public transport."

_LEVEL_ORDER = {AlertLevel.HIGH: 0, AlertLevel.WARNING: 1, AlertLevel.INFO: 2}


def _debits(transactions: Iterable[Transaction]) -> list[Transaction]:
    return [t for t in transactions if t.type == TransactionType.DEBIT]


def _by_category(transactions: Iterable[Transaction]) -> dict[str, float]:
    totals: dict[str, float] = defaultdict(float)
    for t in transactions:
        totals[t.category.value] += float(t.amount)
    return totals


def _previous_months(today: date, count: int) -> list[tuple[int, int]]:
    months = []
    year, month = today.year, today.month
    for _ in range(count):
        month -= 1
        if month == 0:
            year, month = year - 1, 12
        months.append((year, month))
    return months


class OverspendingDetector:
    """Compares recent category spending with its history."""

    def __init__(self, settings: Optional[AppSettings] = None):
        self._settings = settings or get_settings().app

    def weekly_baselines(
        self,
        transactions: Sequence[Transaction],
        today: date,
    ) -> dict[str, float]:
        """Average weekly spend per category over the 4 weeks before this one."""
        week_start = today - timedelta(days=6)
        history = filter_by_dates(
            _debits(transactions),
            date_from=week_start - timedelta(days=28),
            date_to=week_start - timedelta(days=1),
        )
        return {category: total / 4 for category, total in _by_category(history).items()}

    def monthly_baselines(
        self,
        transactions: Sequence[Transaction],
        today: date,
    ) -> dict[str, float]:
        """Average monthly spend per category over the 3 previous calendar months."""
        debits = _debits(transactions)
        totals: dict[str, float] = defaultdict(float)
        for year, month in _previous_months(today, 3):
            start, end = month_bounds(year, month)
            for category, amount in _by_category(filter_by_dates(debits, start, end)).items():
                totals[category] += amount
        return {category: total / 3 for category, total in totals.items()}

    def check(
        self,
        transactions: Sequence[Transaction],
        budgets: Sequence[Budget] = (),
        today: Optional[date] = None,
    ) -> list[Alert]:
        """
        All current overspending alerts, most severe first, capped at
        `max_active_alerts`.
        """
        today = today or date.today()
        debits = _debits(transactions)
        alerts: list[Alert] = []

        weekly_baseline = self.weekly_baselines(debits, today)
        this_week = _by_category(filter_by_dates(debits, today - timedelta(days=6), today))
        for category, spent in this_week.items():
            baseline = weekly_baseline.get(category, 0.0)
            if baseline > 0 and spent > baseline * self._settings.weekly_anomaly_multiplier:
                alerts.append(Alert(
                    kind=AlertKind.WEEKLY_OVERSPEND,
                    title=f"High {category} spending this week",
                    message=(
                        f"You've spent ₹{spent:,.0f} on {category} this week, "
                        f"{spent / baseline:.1f}x your usual ₹{baseline:,.0f}."
                    ),
                    level=AlertLevel.WARNING,
                    category=category,
                    amount=round(spent, 2),
                ))

        monthly_baseline = self.monthly_baselines(debits, today)
        month_start, _ = month_bounds(today.year, today.month)
        this_month = _by_category(filter_by_dates(debits, month_start, today))
        for category, spent in this_month.items():
            baseline = monthly_baseline.get(category, 0.0)
            if baseline > 0 and spent > baseline * self._settings.monthly_anomaly_multiplier:
                alerts.append(Alert(
                    kind=AlertKind.MONTHLY_OVERSPEND,
                    title=f"{category} budget running high",
                    message=(
                        f"{category} spending this month is ₹{spent:,.0f}, "
                        f"above your monthly average of ₹{baseline:,.0f}."
                    ),
                    level=AlertLevel.HIGH,
                    category=category,
                    amount=round(spent, 2),
                ))

        for t in filter_by_dates(debits, today - timedelta(days=1), today):
            baseline = weekly_baseline.get(t.category.value, 0.0)
            threshold = baseline * self._settings.large_purchase_weekly_fraction
            if baseline > 0 and float(t.amount) > threshold:
                alerts.append(Alert(
                    kind=AlertKind.LARGE_PURCHASE,
                    title=f"Large purchase at {t.merchant}",
                    message=(
                        f"₹{t.amount:,.2f} at {t.merchant} is more than half of "
                        f"your usual weekly {t.category.value} spending."
                    ),
                    level=AlertLevel.INFO,
                    category=t.category.value,
                    amount=float(t.amount),
                ))

        alerts.extend(self.budget_overruns(debits, budgets, today))

        alerts.sort(key=lambda a: (_LEVEL_ORDER[a.level], -(a.amount or 0)))
        return alerts[:self._settings.max_active_alerts]

    def budget_overruns(
        self,
        transactions: Sequence[Transaction],
        budgets: Sequence[Budget],
        today: Optional[date] = None,
    ) -> list[Alert]:
        """Budgets whose current period's spending exceeds the limit."""
        today = today or date.today()
        debits = _debits(transactions)
        alerts = []
        for budget in budgets:
            if budget.period == BudgetPeriod.WEEKLY:
                start = today - timedelta(days=6)
            elif budget.period == BudgetPeriod.YEARLY:
                start = date(today.year, 1, 1)
            else:
                start = date(today.year, today.month, 1)

            spent = sum(
                float(t.amount) for t in filter_by_dates(debits, start, today)
                if t.category == budget.category
            )
            limit = float(budget.amount)
            if spent > limit:
                alerts.append(Alert(
                    kind=AlertKind.BUDGET_EXCEEDED,
                    title=f"{budget.category.value} budget exceeded",
                    message=(
                        f"You've spent ₹{spent:,.0f} of your {budget.period.value} "
                        f"₹{limit:,.0f} {budget.category.value} budget."
                    ),
                    level=AlertLevel.HIGH,
                    category=budget.category.value,
                    amount=round(spent, 2),
                ))
        return alerts

    def detect_anomalies(self, transactions: Sequence[Transaction]) -> list[Transaction]:
        """Expenses larger than `anomaly_average_multiplier` times the average expense."""
        debits = _debits(transactions)
        if not debits:
            return []
        average = sum(float(t.amount) for t in debits) / len(debits)
        limit = average * self._settings.anomaly_average_multiplier
        return [t for t in debits if float(t.amount) > limit]

    def generate_insights(
        self,
        transactions: Sequence[Transaction],
        today: Optional[date] = None,
    ) -> list[str]:
        """Plain-language tips based on this month's category totals."""
        today = today or date.today()
        month_start, _ = month_bounds(today.year, today.month)
        totals = _by_category(filter_by_dates(_debits(transactions), month_start, today))

        insights = []
        if totals.get(Category.FOOD.value, 0.0) > self._settings.food_insight_threshold:
            insights.append(FOOD_INSIGHT)
        if totals.get(Category.TRANSPORTATION.value, 0.0) > self._settings.transport_insight_threshold:
            insights.append(TRANSPORT_INSIGHT)

        summary = summarize(filter_by_dates(transactions, month_start, today))
        if summary.income > 0 and summary.savings_rate < 0:
            insights.append(
                f"You've spent ₹{-summary.net:,.0f} more than you earned this month."
            )
        return insights or [BALANCED_INSIGHT]
