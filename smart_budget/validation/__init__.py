"""Validation package."""

from smart_budget.validation.validator import TransactionValidator

__all__ = ["TransactionValidator"]
