"""
Local JSON Storage Implementation

DESIGN DECISION: The default backend is one JSON document per user on
local disk. This plays the role browser localStorage plays for a
client-side budgeting app:
1. Zero setup - works offline, nothing to configure
2. Data is namespaced per user id
3. The file is human-readable and easy to back up

TRADEOFFS:
- Whole-document rewrite on every change (fine for personal volumes)
- Single process only; a lock guards concurrent Streamlit sessions

Writes go to a temporary file that is then renamed over the original, so
a crash mid-write never leaves a truncated document behind.
"""

import json
import os
import re
import tempfile
import threading
from datetime import date
from pathlib import Path
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, ValidationError

from smart_budget.config import get_settings
from smart_budget.models.audit import AuditEvent
from smart_budget.models.transaction import (
    Category,
    Transaction,
    TransactionSource,
    TransactionType,
)
from smart_budget.services.storage.interface import (
    AuditStorageInterface,
    DuplicateError,
    NotFoundError,
    RecordStorageInterface,
    RecordT,
    StorageError,
    TransactionStorageInterface,
    filter_transactions,
)


TRANSACTIONS = "transactions"
BANK_ACCOUNTS = "bank_accounts"
SAVING_GOALS = "saving_goals"
PAYMENT_REMINDERS = "payment_reminders"
FAMILY_MEMBERS = "family_members"
BUDGETS = "budgets"
AUDIT_LOG = "audit_log"

_USER_ID = re.compile(r"^[\w.@\-]{1,100}$")


class LocalJSONClient:
    """
    Reads and writes one user's JSON document.

    The document maps collection names to lists of serialized records.
    """

    _locks: dict[Path, threading.Lock] = {}
    _locks_guard = threading.Lock()

    def __init__(self, user_id: str, data_dir: Optional[Path] = None):
        if not _USER_ID.match(user_id):
            raise StorageError(f"Invalid user id: {user_id!r}")
        self.user_id = user_id
        self._data_dir = Path(data_dir or get_settings().app.data_dir)
        self._path = self._data_dir / f"{user_id}.json"
        with LocalJSONClient._locks_guard:
            self._lock = LocalJSONClient._locks.setdefault(self._path, threading.Lock())

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> dict[str, list]:
        if not self._path.exists():
            return {}
        try:
            with self._path.open("r", encoding="utf-8") as fh:
                document = json.load(fh)
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(f"Failed to read {self._path}: {e}")
        if not isinstance(document, dict):
            raise StorageError(f"Corrupt data file: {self._path}")
        return document

    def _write(self, document: dict[str, list]) -> None:
        try:
            self._data_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self._data_dir, suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(document, fh, ensure_ascii=False, indent=2)
            os.replace(tmp_path, self._path)
        except OSError as e:
            raise StorageError(f"Failed to write {self._path}: {e}")

    def load_collection(self, collection: str) -> list[dict[str, Any]]:
        with self._lock:
            return list(self._read().get(collection, []))

    def update_collection(self, collection: str, mutate) -> Any:
        """
        Read-modify-write one collection under the lock.

        `mutate` receives the list of records, changes it in place and
        returns a result that is passed back to the caller.
        """
        with self._lock:
            document = self._read()
            items = document.setdefault(collection, [])
            result = mutate(items)
            self._write(document)
            return result


def _dump(record: BaseModel) -> dict[str, Any]:
    return record.model_dump(mode="json")


class LocalTransactionStorage(TransactionStorageInterface):
    """Transactions kept in the user's local JSON document."""

    def __init__(self, client: LocalJSONClient):
        self._client = client

    def _load_all(self) -> list[Transaction]:
        transactions = []
        for raw in self._client.load_collection(TRANSACTIONS):
            try:
                transactions.append(Transaction.model_validate(raw))
            except ValidationError:
                continue  # Skip malformed records
        return transactions

    async def save_transaction(self, transaction: Transaction) -> bool:
        def mutate(items: list) -> bool:
            if any(item.get("id") == str(transaction.id) for item in items):
                raise DuplicateError(f"Transaction already exists: {transaction.id}")
            items.append(_dump(transaction))
            return True

        return self._client.update_collection(TRANSACTIONS, mutate)

    async def get_transaction(self, transaction_id: UUID) -> Optional[Transaction]:
        for transaction in self._load_all():
            if transaction.id == transaction_id:
                return transaction
        return None

    async def update_transaction(self, transaction: Transaction) -> bool:
        def mutate(items: list) -> bool:
            for idx, item in enumerate(items):
                if item.get("id") == str(transaction.id):
                    items[idx] = _dump(transaction)
                    return True
            raise NotFoundError(f"Transaction not found: {transaction.id}")

        return self._client.update_collection(TRANSACTIONS, mutate)

    async def delete_transaction(self, transaction_id: UUID) -> bool:
        def mutate(items: list) -> bool:
            before = len(items)
            items[:] = [item for item in items if item.get("id") != str(transaction_id)]
            return len(items) < before

        return self._client.update_collection(TRANSACTIONS, mutate)

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
        return filter_transactions(
            self._load_all(),
            transaction_type=transaction_type,
            category=category,
            bank_account_id=bank_account_id,
            merchant=merchant,
            date_from=date_from,
            date_to=date_to,
            source=source,
            limit=limit,
            offset=offset,
        )


class LocalRecordStorage(RecordStorageInterface):
    """Accounts, goals, reminders, family members and budgets."""

    def __init__(self, client: LocalJSONClient):
        self._client = client

    async def save_record(self, collection: str, record: BaseModel) -> bool:
        data = _dump(record)

        def mutate(items: list) -> bool:
            for idx, item in enumerate(items):
                if item.get("id") == data["id"]:
                    items[idx] = data
                    return True
            items.append(data)
            return True

        return self._client.update_collection(collection, mutate)

    async def get_record(
        self,
        collection: str,
        record_id: UUID,
        model: type[RecordT],
    ) -> Optional[RecordT]:
        for raw in self._client.load_collection(collection):
            if raw.get("id") == str(record_id):
                return model.model_validate(raw)
        return None

    async def list_records(
        self,
        collection: str,
        model: type[RecordT],
    ) -> list[RecordT]:
        records = []
        for raw in self._client.load_collection(collection):
            try:
                records.append(model.model_validate(raw))
            except ValidationError:
                continue
        return records

    async def delete_record(self, collection: str, record_id: UUID) -> bool:
        def mutate(items: list) -> bool:
            before = len(items)
            items[:] = [item for item in items if item.get("id") != str(record_id)]
            return len(items) < before

        return self._client.update_collection(collection, mutate)


class LocalAuditStorage(AuditStorageInterface):
    """
    Audit events appended to the user's local JSON document.

    Audit events are append-only.
    """

    def __init__(self, client: LocalJSONClient):
        self._client = client

    def _load_events(self) -> list[AuditEvent]:
        events = []
        for raw in self._client.load_collection(AUDIT_LOG):
            try:
                events.append(AuditEvent.model_validate(raw))
            except ValidationError:
                continue
        return events

    async def append_event(self, event: AuditEvent) -> bool:
        def mutate(items: list) -> bool:
            items.append(_dump(event))
            return True

        return self._client.update_collection(AUDIT_LOG, mutate)

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        events = [e for e in self._load_events() if e.correlation_id == correlation_id]
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: UUID,
    ) -> list[AuditEvent]:
        events = [
            e for e in self._load_events()
            if e.entity_type == entity_type and e.entity_id == entity_id
        ]
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        events = self._load_events()
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
