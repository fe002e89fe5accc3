"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
A per-user local JSON store is the default; Google Sheets is optional.
"""

from smart_budget.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    DuplicateError,
    NotFoundError,
    RecordStorageInterface,
    StorageError,
    TransactionStorageInterface,
    filter_transactions,
)
from smart_budget.services.storage.local_json import (
    AUDIT_LOG,
    BANK_ACCOUNTS,
    BUDGETS,
    FAMILY_MEMBERS,
    PAYMENT_REMINDERS,
    SAVING_GOALS,
    TRANSACTIONS,
    LocalAuditStorage,
    LocalJSONClient,
    LocalRecordStorage,
    LocalTransactionStorage,
)
from smart_budget.services.storage.google_sheets import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsTransactionStorage,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "RecordStorageInterface",
    "TransactionStorageInterface",
    "filter_transactions",
    # Exceptions
    "ConnectionError",
    "DuplicateError",
    "NotFoundError",
    "StorageError",
    # Local JSON implementation
    "AUDIT_LOG",
    "BANK_ACCOUNTS",
    "BUDGETS",
    "FAMILY_MEMBERS",
    "PAYMENT_REMINDERS",
    "SAVING_GOALS",
    "TRANSACTIONS",
    "LocalAuditStorage",
    "LocalJSONClient",
    "LocalRecordStorage",
    "LocalTransactionStorage",
    # Google Sheets implementation
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsTransactionStorage",
]
