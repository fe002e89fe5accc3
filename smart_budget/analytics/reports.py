"""
Report Builder

Loads transactions and accounts from storage and assembles the report
models the UI renders.
"""

from datetime import date
from typing import Optional
from uuid import UUID

from smart_budget.analytics.aggregations import (
    account_report,
    category_breakdown,
    daily_breakdown,
    filter_by_range,
    month_bounds,
    monthly_series,
    summarize,
)
from smart_budget.models.finance import BankAccount
from smart_budget.models.report import (
    CategoryShare,
    MonthlyPoint,
    MonthlyReport,
    PeriodSummary,
    TimeRange,
)
from smart_budget.models.transaction import Transaction
from smart_budget.services.storage import (
    BANK_ACCOUNTS,
    RecordStorageInterface,
    TransactionStorageInterface,
)


class ReportBuilder:
    """Storage-backed entry point to the aggregation functions."""

    def __init__(
        self,
        transaction_storage: TransactionStorageInterface,
        record_storage: Optional[RecordStorageInterface] = None,
    ):
        self._transactions = transaction_storage
        self._records = record_storage

    async def _accounts(self) -> list[BankAccount]:
        if self._records is None:
            return []
        return await self._records.list_records(BANK_ACCOUNTS, BankAccount)

    async def all_transactions(self) -> list[Transaction]:
        return await self._transactions.list_transactions()

    async def monthly_report(self, year: int, month: int) -> MonthlyReport:
        start, end = month_bounds(year, month)
        transactions = await self._transactions.list_transactions(date_from=start, date_to=end)
        return MonthlyReport(
            year=year,
            month=month,
            summary=summarize(transactions),
            daily=daily_breakdown(transactions, year, month),
            categories=category_breakdown(transactions),
            accounts=account_report(transactions, await self._accounts(), year, month),
        )

    async def dashboard(
        self,
        time_range: TimeRange = TimeRange.MONTH,
        account_id: Optional[UUID] = None,
        today: Optional[date] = None,
    ) -> tuple[PeriodSummary, list[CategoryShare], list[MonthlyPoint]]:
        """
        Summary and category split for a rolling window, plus the
        last six months of income and expenses.
        """
        transactions = await self.all_transactions()
        selected = filter_by_range(transactions, time_range, account_id=account_id, today=today)
        if account_id is not None:
            transactions = [t for t in transactions if t.bank_account_id == account_id]
        return (
            summarize(selected),
            category_breakdown(selected),
            monthly_series(transactions, months=6),
        )
