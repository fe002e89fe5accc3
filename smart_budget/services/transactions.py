"""
Transaction Service

Manual entry, editing and deletion of transactions. Extracted
transactions go through the confirmation flow in the orchestrator
instead; both end up in the same storage.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional
from uuid import UUID

from smart_budget.audit import AuditLogger
from smart_budget.extraction import categorize
from smart_budget.models.audit import AuditEventType
from smart_budget.models.transaction import (
    Category,
    Transaction,
    TransactionSource,
    TransactionType,
)
from smart_budget.services.storage import NotFoundError, TransactionStorageInterface


# Fields a user may change after saving
EDITABLE_FIELDS = {
    "amount", "type", "merchant", "description", "category", "subcategory",
    "transaction_date", "bank_account_id", "payment_method",
}


class TransactionService:
    """Create, edit and remove transactions."""

    def __init__(
        self,
        transaction_storage: TransactionStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = transaction_storage
        self._audit = audit_logger

    async def add_transaction(
        self,
        amount: Decimal,
        transaction_type: TransactionType = TransactionType.DEBIT,
        merchant: str = "Unknown",
        description: str = "",
        category: Optional[Category] = None,
        transaction_date: Optional[date] = None,
        bank_account_id: Optional[UUID] = None,
        source: TransactionSource = TransactionSource.MANUAL,
        payment_method: Optional[str] = None,
    ) -> Transaction:
        """
        Save a manually entered transaction.

        When no category is given it is suggested from the merchant and
        description, and the suggestion's confidence is recorded.
        """
        subcategory = None
        confidence = 1.0
        if category is None:
            match = categorize(f"{merchant} {description}", transaction_type=transaction_type)
            category, subcategory, confidence = match

        transaction = Transaction(
            amount=Decimal(str(amount)).quantize(Decimal("0.01")),
            type=transaction_type,
            merchant=merchant or "Unknown",
            description=description,
            category=category,
            subcategory=subcategory,
            confidence=confidence,
            transaction_date=transaction_date or date.today(),
            bank_account_id=bank_account_id,
            source=source,
            payment_method=payment_method or source.value,
        )
        await self._storage.save_transaction(transaction)

        if self._audit:
            await self._audit.log_transaction_saved(
                transaction_id=transaction.id,
                merchant=transaction.merchant,
                amount=str(transaction.amount),
                transaction_type=transaction.type.value,
            )
        return transaction

    async def update_transaction(self, transaction_id: UUID, **changes: Any) -> Transaction:
        """
        Apply user edits to a saved transaction.

        Raises:
            NotFoundError: If the transaction doesn't exist
            ValueError: For unknown fields or values the model rejects
        """
        unknown = set(changes) - EDITABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot edit fields: {', '.join(sorted(unknown))}")

        existing = await self._storage.get_transaction(transaction_id)
        if existing is None:
            raise NotFoundError(f"Transaction not found: {transaction_id}")

        data = existing.model_dump()
        data.update(changes)
        data["updated_at"] = datetime.utcnow()
        updated = Transaction.model_validate(data)
        await self._storage.update_transaction(updated)

        if self._audit:
            await self._audit.log_entity_changed(
                event_type=AuditEventType.TRANSACTION_UPDATED,
                entity_type="transaction",
                entity_id=transaction_id,
                description=f"Transaction updated: {updated.merchant}",
                details={"fields": sorted(changes)},
            )
        return updated

    async def delete_transaction(self, transaction_id: UUID) -> bool:
        deleted = await self._storage.delete_transaction(transaction_id)
        if deleted and self._audit:
            await self._audit.log_entity_changed(
                event_type=AuditEventType.TRANSACTION_DELETED,
                entity_type="transaction",
                entity_id=transaction_id,
                description="Transaction deleted",
            )
        return deleted

    async def list_transactions(self, **filters: Any) -> list[Transaction]:
        return await self._storage.list_transactions(**filters)

    async def recent(self, limit: int = 10) -> list[Transaction]:
        return await self._storage.list_transactions(limit=limit)
