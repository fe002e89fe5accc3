"""
Deterministic Aggregations

DESIGN DECISION: Every number the user sees (dashboards, reports, the
assistant's answers) is computed here from stored transactions.
Nothing is estimated or invented; an empty list yields zeros.

All functions are pure: they take a list of transactions and return
report models, which makes them trivial to test.
"""

import calendar
from collections import defaultdict
from datetime import date, timedelta
from typing import Iterable, Optional, Sequence
from uuid import UUID

from smart_budget.models.finance import BankAccount
from smart_budget.models.report import (
    AccountMonthReport,
    CategoryShare,
    DailyPoint,
    MonthlyPoint,
    PeriodSummary,
    TimeRange,
)
from smart_budget.models.transaction import Transaction, TransactionType


class AggregationError(ValueError):
    """Invalid arguments to an aggregation."""
    pass


def _round(value: float) -> float:
    return round(value, 2)


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """First and last day of a calendar month."""
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def filter_by_dates(
    transactions: Iterable[Transaction],
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
) -> list[Transaction]:
    return [
        t for t in transactions
        if (date_from is None or t.transaction_date >= date_from)
        and (date_to is None or t.transaction_date <= date_to)
    ]


def filter_by_range(
    transactions: Iterable[Transaction],
    time_range: TimeRange,
    account_id: Optional[UUID] = None,
    today: Optional[date] = None,
) -> list[Transaction]:
    """
    Keep transactions inside a rolling window ending today.

    week = the last 7 days including today, month = 30, year = 365,
    all = no date filter. Future-dated transactions fall outside every
    window except all.
    """
    today = today or date.today()
    selected = [
        t for t in transactions
        if account_id is None or t.bank_account_id == account_id
    ]
    if time_range.days is None:
        return selected
    return filter_by_dates(
        selected,
        date_from=today - timedelta(days=time_range.days - 1),
        date_to=today,
    )


def summarize(transactions: Iterable[Transaction]) -> PeriodSummary:
    """Income, expenses, net and savings rate."""
    income = 0.0
    expenses = 0.0
    count = 0
    for t in transactions:
        count += 1
        if t.type == TransactionType.CREDIT:
            income += float(t.amount)
        else:
            expenses += float(t.amount)

    net = income - expenses
    savings_rate = (net / income * 100) if income > 0 else 0.0
    return PeriodSummary(
        income=_round(income),
        expenses=_round(expenses),
        net=_round(net),
        savings_rate=_round(savings_rate),
        transaction_count=count,
    )


def category_breakdown(transactions: Iterable[Transaction]) -> list[CategoryShare]:
    """Expenses per category with their share of total expenses, largest first."""
    totals: dict[str, float] = defaultdict(float)
    counts: dict[str, int] = defaultdict(int)
    for t in transactions:
        if t.type != TransactionType.DEBIT:
            continue
        totals[t.category.value] += float(t.amount)
        counts[t.category.value] += 1

    grand_total = sum(totals.values())
    shares = [
        CategoryShare(
            category=category,
            amount=_round(amount),
            count=counts[category],
            percent=_round(amount / grand_total * 100) if grand_total else 0.0,
        )
        for category, amount in totals.items()
    ]
    shares.sort(key=lambda s: s.amount, reverse=True)
    return shares


def top_category(transactions: Iterable[Transaction]) -> Optional[CategoryShare]:
    shares = category_breakdown(transactions)
    return shares[0] if shares else None


def monthly_series(
    transactions: Iterable[Transaction],
    months: Optional[int] = None,
) -> list[MonthlyPoint]:
    """Per-month income and expenses (YYYY-MM), newest month first."""
    income: dict[str, float] = defaultdict(float)
    expenses: dict[str, float] = defaultdict(float)
    for t in transactions:
        key = t.transaction_date.strftime("%Y-%m")
        if t.type == TransactionType.CREDIT:
            income[key] += float(t.amount)
        else:
            expenses[key] += float(t.amount)

    keys = sorted(set(income) | set(expenses), reverse=True)
    if months is not None:
        keys = keys[:months]
    return [
        MonthlyPoint(
            month=key,
            income=_round(income[key]),
            expenses=_round(expenses[key]),
            net=_round(income[key] - expenses[key]),
        )
        for key in keys
    ]


def daily_breakdown(
    transactions: Iterable[Transaction],
    year: int,
    month: int,
) -> list[DailyPoint]:
    """One point per day of the month, zero-filled, in date order."""
    start, end = month_bounds(year, month)
    days = {
        start + timedelta(days=offset): DailyPoint(day=start + timedelta(days=offset))
        for offset in range((end - start).days + 1)
    }
    for t in filter_by_dates(transactions, start, end):
        point = days[t.transaction_date]
        if t.type == TransactionType.CREDIT:
            point.income = _round(point.income + float(t.amount))
        else:
            point.expenses = _round(point.expenses + float(t.amount))
        point.transaction_count += 1
    return [days[d] for d in sorted(days)]


def daily_series(
    transactions: Iterable[Transaction],
    days: int = 30,
    today: Optional[date] = None,
) -> list[DailyPoint]:
    """The last `days` days ending today, zero-filled, oldest first."""
    if days <= 0:
        raise AggregationError("days must be positive")
    today = today or date.today()
    start = today - timedelta(days=days - 1)
    points = {
        start + timedelta(days=offset): DailyPoint(day=start + timedelta(days=offset))
        for offset in range(days)
    }
    for t in filter_by_dates(transactions, start, today):
        point = points[t.transaction_date]
        if t.type == TransactionType.CREDIT:
            point.income = _round(point.income + float(t.amount))
        else:
            point.expenses = _round(point.expenses + float(t.amount))
        point.transaction_count += 1
    return [points[d] for d in sorted(points)]


def account_report(
    transactions: Iterable[Transaction],
    accounts: Sequence[BankAccount],
    year: int,
    month: int,
) -> list[AccountMonthReport]:
    """
    Per-account totals for one month.

    Transactions not linked to a known account are grouped under
    "Cash / Unlinked".
    """
    start, end = month_bounds(year, month)
    by_account: dict[Optional[UUID], list[Transaction]] = defaultdict(list)
    known_ids = {a.id for a in accounts}
    for t in filter_by_dates(transactions, start, end):
        key = t.bank_account_id if t.bank_account_id in known_ids else None
        by_account[key].append(t)

    reports = []
    for account in accounts:
        summary = summarize(by_account.get(account.id, []))
        reports.append(AccountMonthReport(
            account_id=account.id,
            account_name=f"{account.name} (••{account.last_four_digits})",
            income=summary.income,
            expenses=summary.expenses,
            net=summary.net,
            transaction_count=summary.transaction_count,
        ))
    if by_account.get(None):
        summary = summarize(by_account[None])
        reports.append(AccountMonthReport(
            account_name="Cash / Unlinked",
            income=summary.income,
            expenses=summary.expenses,
            net=summary.net,
            transaction_count=summary.transaction_count,
        ))
    return reports


def available_years(transactions: Iterable[Transaction]) -> list[int]:
    """Years that have data, newest first."""
    return sorted({t.transaction_date.year for t in transactions}, reverse=True)


def available_months(transactions: Iterable[Transaction], year: int) -> list[int]:
    """Months of `year` that have data, in calendar order."""
    return sorted({t.transaction_date.month for t in transactions if t.transaction_date.year == year})


def average_daily_spending(
    transactions: Iterable[Transaction],
    days: int = 30,
    today: Optional[date] = None,
) -> float:
    """Expenses over the last `days` days, today included, divided by `days`."""
    if days <= 0:
        raise AggregationError("days must be positive")
    today = today or date.today()
    recent = filter_by_dates(
        transactions, date_from=today - timedelta(days=days - 1), date_to=today
    )
    return _round(summarize(recent).expenses / days)


def average_monthly_income(
    transactions: Iterable[Transaction],
    months: int = 3,
) -> float:
    """Mean income of the most recent `months` months that have data."""
    series = [p for p in monthly_series(transactions) if p.income > 0][:months]
    if not series:
        return 0.0
    return _round(sum(p.income for p in series) / len(series))
