"""
Services package.

Domain services live in their own modules (accounts, transactions, goals,
reminders, notifications, alerts, family, simulator) and are imported
from there; only the storage layer is re-exported here so that low-level
packages can depend on it without pulling in the services themselves.
"""

from smart_budget.services.storage import (
    AuditStorageInterface,
    ConnectionError,
    DuplicateError,
    NotFoundError,
    RecordStorageInterface,
    StorageError,
    TransactionStorageInterface,
)

__all__ = [
    "AuditStorageInterface",
    "ConnectionError",
    "DuplicateError",
    "NotFoundError",
    "RecordStorageInterface",
    "StorageError",
    "TransactionStorageInterface",
]
