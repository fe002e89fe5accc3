"""Shared fixtures: temporary per-user stores and a transaction factory."""

import asyncio
from datetime import date
from decimal import Decimal

import pytest

from smart_budget.audit import AuditLogger
from smart_budget.models.transaction import Category, Transaction, TransactionType
from smart_budget.services.storage import (
    LocalAuditStorage,
    LocalJSONClient,
    LocalRecordStorage,
    LocalTransactionStorage,
)


def run(coro):
    """Drive a coroutine to completion from a synchronous test."""
    return asyncio.run(coro)


def make_transaction(
    amount,
    on: date,
    transaction_type: TransactionType = TransactionType.DEBIT,
    category: Category = Category.OTHER,
    merchant: str = "Test Merchant",
    **extra,
) -> Transaction:
    return Transaction(
        amount=Decimal(str(amount)),
        type=transaction_type,
        category=category,
        merchant=merchant,
        transaction_date=on,
        **extra,
    )


@pytest.fixture
def local_client(tmp_path):
    return LocalJSONClient("tester", data_dir=tmp_path)


@pytest.fixture
def transaction_storage(local_client):
    return LocalTransactionStorage(local_client)


@pytest.fixture
def record_storage(local_client):
    return LocalRecordStorage(local_client)


@pytest.fixture
def audit_storage(local_client):
    return LocalAuditStorage(local_client)


@pytest.fixture
def audit_logger(audit_storage):
    return AuditLogger(audit_storage)
