"""Tests for aggregations and the report builder."""

from datetime import date, timedelta

import pytest

from conftest import make_transaction, run
from smart_budget.analytics import (
    AggregationError,
    ReportBuilder,
    account_report,
    available_months,
    available_years,
    average_daily_spending,
    average_monthly_income,
    category_breakdown,
    daily_breakdown,
    daily_series,
    filter_by_range,
    monthly_series,
    summarize,
    top_category,
)
from smart_budget.models.finance import BankAccount
from smart_budget.models.report import TimeRange
from smart_budget.models.transaction import Category, TransactionType


CREDIT = TransactionType.CREDIT
DEBIT = TransactionType.DEBIT


@pytest.fixture
def sample():
    return [
        make_transaction(50000, date(2024, 5, 1), CREDIT, Category.SALARY, "Acme"),
        make_transaction(3000, date(2024, 5, 10), DEBIT, Category.FOOD, "Swiggy"),
        make_transaction(1000, date(2024, 5, 20), DEBIT, Category.TRANSPORTATION, "Uber"),
        make_transaction(60000, date(2024, 6, 1), CREDIT, Category.SALARY, "Acme"),
        make_transaction(2000, date(2024, 6, 5), DEBIT, Category.FOOD, "Zomato"),
    ]


class TestSummaries:
    """Tests for totals and category splits."""

    def test_summarize(self, sample):
        """Test income, expenses, net and savings rate."""
        summary = summarize(sample)
        assert summary.income == 110000.0
        assert summary.expenses == 6000.0
        assert summary.net == 104000.0
        assert summary.savings_rate == 94.55
        assert summary.transaction_count == 5

    def test_empty_is_zero(self):
        """Test an empty list yields zeros, not errors."""
        summary = summarize([])
        assert summary.income == summary.expenses == summary.savings_rate == 0.0
        assert category_breakdown([]) == []
        assert top_category([]) is None

    def test_category_breakdown(self, sample):
        """Test shares are of expenses only and sorted largest first."""
        shares = category_breakdown(sample)
        assert [s.category for s in shares] == ["Food & Dining", "Transportation"]
        assert shares[0].amount == 5000.0
        assert shares[0].count == 2
        assert shares[0].percent == 83.33
        assert top_category(sample).category == "Food & Dining"

    def test_filter_by_range(self, sample):
        """Test rolling windows end today."""
        today = date(2024, 6, 10)
        week = filter_by_range(sample, TimeRange.WEEK, today=today)
        assert {t.merchant for t in week} == {"Zomato"}
        assert len(filter_by_range(sample, TimeRange.ALL, today=today)) == 5

    def test_filter_by_account(self, sample):
        """Test the account filter."""
        account = BankAccount(name="HDFC", last_four_digits="1234")
        linked = make_transaction(10, date(2024, 6, 9), bank_account_id=account.id)
        selected = filter_by_range(sample + [linked], TimeRange.ALL, account_id=account.id)
        assert selected == [linked]

    @pytest.mark.parametrize("time_range,inside,outside", [
        (TimeRange.WEEK, 6, 7),
        (TimeRange.MONTH, 29, 30),
        (TimeRange.YEAR, 364, 365),
    ])
    def test_range_boundaries(self, time_range, inside, outside):
        """Test each window holds exactly its number of days, today included."""
        today = date(2024, 6, 10)
        transactions = [
            make_transaction(1, today - timedelta(days=inside), merchant="inside"),
            make_transaction(1, today - timedelta(days=outside), merchant="outside"),
            make_transaction(1, today, merchant="today"),
        ]
        selected = filter_by_range(transactions, time_range, today=today)
        assert {t.merchant for t in selected} == {"inside", "today"}

    def test_future_dates_excluded(self):
        """Test future-dated transactions fall outside rolling windows."""
        today = date(2024, 6, 10)
        transactions = [
            make_transaction(1, today - timedelta(days=7)),
            make_transaction(1, today + timedelta(days=5)),
        ]
        assert filter_by_range(transactions, TimeRange.WEEK, today=today) == []
        assert len(filter_by_range(transactions, TimeRange.ALL, today=today)) == 2


class TestSeries:
    """Tests for monthly and daily series."""

    def test_monthly_series_newest_first(self, sample):
        """Test month keys and totals."""
        series = monthly_series(sample)
        assert [p.month for p in series] == ["2024-06", "2024-05"]
        assert series[1].expenses == 4000.0
        assert series[1].net == 46000.0
        assert len(monthly_series(sample, months=1)) == 1

    def test_daily_breakdown_zero_filled(self, sample):
        """Test every day of the month is present."""
        points = daily_breakdown(sample, 2024, 5)
        assert len(points) == 31
        assert points[9].expenses == 3000.0
        assert points[9].transaction_count == 1
        assert points[1].expenses == 0.0

    def test_daily_series(self, sample):
        """Test the rolling daily window ends today."""
        points = daily_series(sample, days=10, today=date(2024, 6, 10))
        assert points[0].day == date(2024, 6, 1)
        assert points[-1].day == date(2024, 6, 10)
        assert points[0].income == 60000.0
        assert points[4].expenses == 2000.0

    def test_daily_series_rejects_bad_window(self):
        """Test a non-positive window."""
        with pytest.raises(AggregationError):
            daily_series([], days=0)

    def test_available_periods(self, sample):
        """Test years and months with data."""
        assert available_years(sample) == [2024]
        assert available_months(sample, 2024) == [5, 6]


class TestAverages:

    def test_average_daily_spending(self, sample):
        """Test expenses over the window divided by its length."""
        assert average_daily_spending(sample, days=30, today=date(2024, 6, 10)) == pytest.approx(
            round(3000 / 30, 2)
        )

    def test_average_daily_spending_window(self):
        """Test the averaging window matches its divisor."""
        today = date(2024, 6, 10)
        transactions = [
            make_transaction(300, today - timedelta(days=29)),
            make_transaction(900, today - timedelta(days=30)),
            make_transaction(600, today + timedelta(days=1)),
        ]
        assert average_daily_spending(transactions, days=30, today=today) == 10.0

    def test_average_monthly_income(self, sample):
        """Test mean of recent months with income."""
        assert average_monthly_income(sample, months=3) == 55000.0
        assert average_monthly_income([]) == 0.0


class TestReports:
    """Tests for per-account and monthly reports."""

    def test_account_report_groups_unlinked(self, sample):
        """Test unlinked transactions get their own row."""
        account = BankAccount(name="HDFC", last_four_digits="1234")
        linked = make_transaction(500, date(2024, 5, 15), bank_account_id=account.id)
        rows = account_report(sample + [linked], [account], 2024, 5)
        assert [r.account_name for r in rows] == ["HDFC (••1234)", "Cash / Unlinked"]
        assert rows[0].expenses == 500.0
        assert rows[1].transaction_count == 3

    def test_monthly_report(self, sample, transaction_storage, record_storage):
        """Test the storage-backed monthly report."""
        for t in sample:
            run(transaction_storage.save_transaction(t))
        builder = ReportBuilder(transaction_storage, record_storage)

        report = run(builder.monthly_report(2024, 6))
        assert report.summary.income == 60000.0
        assert len(report.daily) == 30
        assert report.categories[0].category == "Food & Dining"

    def test_dashboard(self, sample, transaction_storage):
        """Test rolling summary and six-month series."""
        for t in sample:
            run(transaction_storage.save_transaction(t))
        summary, categories, series = run(
            ReportBuilder(transaction_storage).dashboard(TimeRange.WEEK, today=date(2024, 6, 10))
        )
        assert summary.expenses == 2000.0
        assert summary.income == 0.0
        assert [c.category for c in categories] == ["Food & Dining"]
        assert len(series) == 2
