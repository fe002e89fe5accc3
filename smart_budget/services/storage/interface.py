"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Keep data in a local JSON file by default
2. Swap in Google Sheets (or a real database) without touching business logic
3. Use throwaway storage in tests

The interface is intentionally simple - we're not building a full ORM.
Transactions get rich filtering because every report is built on them;
accounts, goals, reminders, family members and budgets are small
collections handled by one generic record interface.
"""

from abc import ABC, abstractmethod
from datetime import date
from decimal import Decimal
from typing import Optional, TypeVar
from uuid import UUID

from pydantic import BaseModel

from smart_budget.models.audit import AuditEvent
from smart_budget.models.transaction import (
    Category,
    Transaction,
    TransactionSource,
    TransactionType,
)


RecordT = TypeVar("RecordT", bound=BaseModel)


class TransactionStorageInterface(ABC):
    """
    Abstract interface for transaction storage operations.

    Any storage implementation must implement these methods.
    """

    @abstractmethod
    async def save_transaction(self, transaction: Transaction) -> bool:
        """
        Save a confirmed transaction.

        Raises:
            DuplicateError: If a transaction with the same id exists
            StorageError: If save fails
        """
        pass

    @abstractmethod
    async def get_transaction(self, transaction_id: UUID) -> Optional[Transaction]:
        """Retrieve a transaction by id, or None."""
        pass

    @abstractmethod
    async def update_transaction(self, transaction: Transaction) -> bool:
        """
        Replace a stored transaction.

        Raises:
            NotFoundError: If the transaction doesn't exist
        """
        pass

    @abstractmethod
    async def delete_transaction(self, transaction_id: UUID) -> bool:
        """Delete a transaction. Returns False if it did not exist."""
        pass

    @abstractmethod
    async def list_transactions(
        self,
        transaction_type: Optional[TransactionType] = None,
        category: Optional[Category] = None,
        bank_account_id: Optional[UUID] = None,
        merchant: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        source: Optional[TransactionSource] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> list[Transaction]:
        """
        List transactions with optional filters, newest first.

        Args:
            merchant: Partial, case-insensitive match on merchant name
            date_from / date_to: Inclusive date bounds
            limit: Maximum number of results (None for all)
            offset: Number of results to skip
        """
        pass

    async def transaction_exists(
        self,
        amount: Decimal,
        transaction_type: TransactionType,
        transaction_date: date,
        merchant: Optional[str] = None,
    ) -> bool:
        """
        Check if a matching transaction already exists (duplicate detection).

        Same amount, direction and date; merchant too when one is given.
        """
        candidates = await self.list_transactions(
            transaction_type=transaction_type,
            date_from=transaction_date,
            date_to=transaction_date,
        )
        for existing in candidates:
            if existing.amount != amount:
                continue
            if merchant and existing.merchant.lower() != merchant.lower():
                continue
            return True
        return False

    async def get_total_by_category(
        self,
        category: Category,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> float:
        """Total spent (debits only) in a category over a date range."""
        transactions = await self.list_transactions(
            transaction_type=TransactionType.DEBIT,
            category=category,
            date_from=date_from,
            date_to=date_to,
        )
        return sum(float(t.amount) for t in transactions)


def filter_transactions(
    transactions: list[Transaction],
    transaction_type: Optional[TransactionType] = None,
    category: Optional[Category] = None,
    bank_account_id: Optional[UUID] = None,
    merchant: Optional[str] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    source: Optional[TransactionSource] = None,
    limit: Optional[int] = None,
    offset: int = 0,
) -> list[Transaction]:
    """Apply list_transactions filters in Python. Backends share this."""
    results = []
    for t in transactions:
        if transaction_type and t.type != transaction_type:
            continue
        if category and t.category != category:
            continue
        if bank_account_id and t.bank_account_id != bank_account_id:
            continue
        if merchant and merchant.lower() not in t.merchant.lower():
            continue
        if date_from and t.transaction_date < date_from:
            continue
        if date_to and t.transaction_date > date_to:
            continue
        if source and t.source != source:
            continue
        results.append(t)

    # Newest first
    results.sort(key=lambda t: (t.transaction_date, t.created_at), reverse=True)

    if limit is None:
        return results[offset:]
    return results[offset:offset + limit]


class RecordStorageInterface(ABC):
    """
    Abstract interface for small keyed collections.

    Records are pydantic models with an `id` field. Collections used:
    bank_accounts, saving_goals, payment_reminders, family_members, budgets.
    """

    @abstractmethod
    async def save_record(self, collection: str, record: BaseModel) -> bool:
        """Insert or replace a record (matched on `id`)."""
        pass

    @abstractmethod
    async def get_record(
        self,
        collection: str,
        record_id: UUID,
        model: type[RecordT],
    ) -> Optional[RecordT]:
        pass

    @abstractmethod
    async def list_records(
        self,
        collection: str,
        model: type[RecordT],
    ) -> list[RecordT]:
        """All records in insertion order."""
        pass

    @abstractmethod
    async def delete_record(self, collection: str, record_id: UUID) -> bool:
        """Delete a record. Returns False if it did not exist."""
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event. Returns True if logged successfully."""
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """Events of one user action, in chronological order."""
        pass

    @abstractmethod
    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: UUID,
    ) -> list[AuditEvent]:
        """Events for a specific entity, in chronological order."""
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Most recent audit events, newest first."""
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
