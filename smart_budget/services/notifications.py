"""
Scheduled Summaries

The daily expense reminder and the weekly report. Both are plain
functions of the transaction list; the UI decides when to show them.
"""

from datetime import date, timedelta
from typing import Optional

from smart_budget.analytics import filter_by_dates, summarize, top_category
from smart_budget.config import AppSettings, get_settings
from smart_budget.models.finance import Alert, AlertKind, AlertLevel
from smart_budget.models.transaction import Transaction


NO_EXPENSES_TODAY = (
    "You haven't added any expenses today. "
    "Don't forget to track your spending!"
)


class ScheduledSummaries:
    """Builds the daily and weekly summary notifications."""

    def __init__(self, settings: Optional[AppSettings] = None):
        self._settings = settings or get_settings().app

    def daily_summary(
        self,
        transactions: list[Transaction],
        today: Optional[date] = None,
    ) -> Optional[Alert]:
        """Today's spending, or a nudge when nothing was recorded. None if disabled."""
        if not self._settings.daily_reminder_enabled:
            return None

        today = today or date.today()
        todays = filter_by_dates(transactions, today, today)
        summary = summarize(todays)
        if summary.expenses == 0:
            return Alert(
                kind=AlertKind.DAILY_SUMMARY,
                title="Daily expense reminder",
                message=NO_EXPENSES_TODAY,
            )

        expense_count = sum(1 for t in todays if t.is_expense)
        message = (
            f"Today you spent ₹{summary.expenses:,.2f} across "
            f"{expense_count} transaction{'s' if expense_count != 1 else ''}."
        )
        top = top_category(todays)
        if top:
            message += f" Most went on {top.category} (₹{top.amount:,.2f})."
        return Alert(
            kind=AlertKind.DAILY_SUMMARY,
            title="Today's spending",
            message=message,
            amount=summary.expenses,
        )

    def weekly_report(
        self,
        transactions: list[Transaction],
        today: Optional[date] = None,
    ) -> Optional[Alert]:
        """Income, expenses and net for the last 7 days. None if disabled."""
        if not self._settings.weekly_report_enabled:
            return None

        today = today or date.today()
        week = filter_by_dates(transactions, today - timedelta(days=6), today)
        summary = summarize(week)
        direction = "saved" if summary.net >= 0 else "overspent"
        return Alert(
            kind=AlertKind.WEEKLY_REPORT,
            title="Your weekly report",
            message=(
                f"Last 7 days: income ₹{summary.income:,.2f}, "
                f"expenses ₹{summary.expenses:,.2f}. "
                f"You {direction} ₹{abs(summary.net):,.2f}."
            ),
            level=AlertLevel.INFO if summary.net >= 0 else AlertLevel.WARNING,
            amount=summary.net,
        )
