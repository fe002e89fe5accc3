"""
Bank Account Service

DESIGN DECISION: An account is only a nickname plus the last four digits
of the account or card number. That is enough to link SMS alerts to it
(banks always mask everything else) while never storing a full number.
Balances are derived from linked transactions on every read.
"""

import re
from datetime import datetime
from typing import Optional
from uuid import UUID

from smart_budget.analytics import summarize
from smart_budget.audit import AuditLogger
from smart_budget.models.audit import AuditEventType
from smart_budget.models.finance import AccountSummary, BankAccount
from smart_budget.services.storage import (
    BANK_ACCOUNTS,
    NotFoundError,
    RecordStorageInterface,
    TransactionStorageInterface,
)


_LAST_FOUR = re.compile(r"^\d{4}$")


class AccountError(ValueError):
    """Invalid or conflicting bank account data."""
    pass


class BankAccountService:
    """Adds, removes and summarises the user's bank accounts."""

    def __init__(
        self,
        record_storage: RecordStorageInterface,
        transaction_storage: TransactionStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._records = record_storage
        self._transactions = transaction_storage
        self._audit = audit_logger

    async def list_accounts(self) -> list[BankAccount]:
        return await self._records.list_records(BANK_ACCOUNTS, BankAccount)

    async def add_account(self, name: str, last_four_digits: str) -> BankAccount:
        """
        Add an account.

        Raises:
            AccountError: Empty name, digits that are not exactly four,
                or a name/digits pair already in use.
        """
        name = (name or "").strip()
        last_four_digits = (last_four_digits or "").strip()
        if not name:
            raise AccountError("Account name is required")
        if not _LAST_FOUR.match(last_four_digits):
            raise AccountError("Last four digits must be exactly 4 numbers")

        for existing in await self.list_accounts():
            if existing.name.lower() == name.lower():
                raise AccountError(f"An account named '{existing.name}' already exists")
            if existing.last_four_digits == last_four_digits:
                raise AccountError(
                    f"An account ending in {last_four_digits} already exists ({existing.name})"
                )

        account = BankAccount(name=name, last_four_digits=last_four_digits)
        await self._records.save_record(BANK_ACCOUNTS, account)

        if self._audit:
            await self._audit.log_entity_changed(
                event_type=AuditEventType.ACCOUNT_ADDED,
                entity_type="account",
                entity_id=account.id,
                description=f"Account added: {name} (••{last_four_digits})",
            )
        return account

    async def delete_account(self, account_id: UUID) -> int:
        """
        Delete an account.

        Linked transactions are kept but unlinked, so income and expense
        history survives. Returns the number of transactions unlinked.

        Raises:
            NotFoundError: If the account doesn't exist
        """
        account = await self._records.get_record(BANK_ACCOUNTS, account_id, BankAccount)
        if account is None:
            raise NotFoundError(f"Account not found: {account_id}")

        linked = await self._transactions.list_transactions(bank_account_id=account_id)
        for transaction in linked:
            await self._transactions.update_transaction(transaction.model_copy(update={
                "bank_account_id": None,
                "updated_at": datetime.utcnow(),
            }))
        await self._records.delete_record(BANK_ACCOUNTS, account_id)

        if self._audit:
            await self._audit.log_entity_changed(
                event_type=AuditEventType.ACCOUNT_DELETED,
                entity_type="account",
                entity_id=account_id,
                description=f"Account deleted: {account.name}",
                details={"transactions_unlinked": len(linked)},
            )
        return len(linked)

    async def find_by_last_four(self, last_four_digits: str) -> Optional[BankAccount]:
        for account in await self.list_accounts():
            if account.last_four_digits == last_four_digits:
                return account
        return None

    async def find_by_name(self, fragment: str) -> Optional[BankAccount]:
        """First account whose name contains `fragment` (case-insensitive)."""
        fragment = fragment.strip().lower()
        if not fragment:
            return None
        for account in await self.list_accounts():
            if fragment in account.name.lower():
                return account
        return None

    async def summarize_account(self, account: BankAccount) -> AccountSummary:
        transactions = await self._transactions.list_transactions(bank_account_id=account.id)
        summary = summarize(transactions)
        return AccountSummary(
            account=account,
            income=summary.income,
            expenses=summary.expenses,
            balance=summary.net,
            transaction_count=summary.transaction_count,
        )

    async def balance(self, account_id: UUID) -> float:
        """Credits minus debits of the account's linked transactions."""
        account = await self._records.get_record(BANK_ACCOUNTS, account_id, BankAccount)
        if account is None:
            raise NotFoundError(f"Account not found: {account_id}")
        return (await self.summarize_account(account)).balance

    async def summaries(self) -> list[AccountSummary]:
        return [await self.summarize_account(a) for a in await self.list_accounts()]

    async def total_balance(self) -> float:
        return round(sum(s.balance for s in await self.summaries()), 2)
