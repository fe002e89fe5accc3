"""Analytics package: deterministic aggregation over stored transactions."""

from smart_budget.analytics.aggregations import (
    AggregationError,
    account_report,
    available_months,
    available_years,
    average_daily_spending,
    average_monthly_income,
    category_breakdown,
    daily_breakdown,
    daily_series,
    filter_by_dates,
    filter_by_range,
    month_bounds,
    monthly_series,
    summarize,
    top_category,
)
from smart_budget.analytics.reports import ReportBuilder

__all__ = [
    "AggregationError",
    "ReportBuilder",
    "account_report",
    "available_months",
    "available_years",
    "average_daily_spending",
    "average_monthly_income",
    "category_breakdown",
    "daily_breakdown",
    "daily_series",
    "filter_by_dates",
    "filter_by_range",
    "month_bounds",
    "monthly_series",
    "summarize",
    "top_category",
]
