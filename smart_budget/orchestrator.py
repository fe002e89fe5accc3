"""
Main Orchestrator for Smart Budget

This module ties together all the components and defines the
end-to-end flows for:
1. Transaction capture (SMS / email / voice / chat text → extract →
   validate → confirm → save)
2. Assistant (question → keyword intent → answer from stored data)
3. Alerts (overspending, budgets, due payments, scheduled summaries)

DESIGN DECISION: The orchestrator enforces the boundaries:
- No extracted data persists without human confirmation
- The assistant only answers from stored transactions
- Every step is audited

This is the "glue" that ensures the system works correctly
even when individual components might behave unexpectedly.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Optional
from uuid import UUID

import structlog

from smart_budget.analytics import ReportBuilder
from smart_budget.assistant import ChatAssistant
from smart_budget.audit import AuditLogger, create_correlation_id
from smart_budget.config import get_settings
from smart_budget.extraction import (
    ExtractionFailedError,
    TransactionTextExtractor,
    match_account,
)
from smart_budget.models.finance import Alert
from smart_budget.models.report import AssistantReply
from smart_budget.models.transaction import (
    Category,
    ExtractedTransaction,
    Transaction,
    TransactionSource,
    TransactionType,
    ValidationResult,
)
from smart_budget.services.accounts import BankAccountService
from smart_budget.services.alerts import OverspendingDetector
from smart_budget.services.budgets import BudgetService
from smart_budget.services.family import FamilyBudgetService
from smart_budget.services.goals import SavingGoalService
from smart_budget.services.notifications import ScheduledSummaries
from smart_budget.services.reminders import PaymentReminderService
from smart_budget.services.simulator import WhatIfSimulator
from smart_budget.services.storage import (
    AuditStorageInterface,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsTransactionStorage,
    LocalAuditStorage,
    LocalJSONClient,
    LocalRecordStorage,
    LocalTransactionStorage,
    RecordStorageInterface,
    StorageError,
    TransactionStorageInterface,
)
from smart_budget.services.transactions import TransactionService
from smart_budget.validation import TransactionValidator


logger = structlog.get_logger(__name__)


class TransactionFlow:
    """
    Orchestrates transaction capture from free text.

    Flow:
    1. Extract → Parse SMS / email / voice / chat text
    2. Validate → Two-stage validation, link to a known account
    3. Review → Present to user (PAUSE - require confirmation)
    4. Confirm → User explicitly approves, possibly after editing
    5. Save → Persist to storage

    Human confirmation (step 4) is MANDATORY.
    The system NEVER auto-saves.
    """

    def __init__(
        self,
        extractor: Optional[TransactionTextExtractor] = None,
        validator: Optional[TransactionValidator] = None,
        transaction_storage: Optional[TransactionStorageInterface] = None,
        account_service: Optional[BankAccountService] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._extractor = extractor or TransactionTextExtractor()
        self._transaction_storage = transaction_storage
        self._validator = validator or TransactionValidator(transaction_storage)
        self._accounts = account_service
        self._audit_logger = audit_logger

    async def extract(
        self,
        source: TransactionSource,
        text: str,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[Optional[ExtractedTransaction], str]:
        """
        Extract a proposed transaction from text.

        Returns:
            (extracted, message). `extracted` is None when the text holds
            no recognisable transaction; `message` then says why.
        """
        correlation_id = correlation_id or create_correlation_id()

        try:
            extracted = self._extractor.extract(source, text)
        except ExtractionFailedError as e:
            if self._audit_logger:
                await self._audit_logger.log_extraction_failed(
                    source=source.value,
                    reason=str(e),
                    correlation_id=correlation_id,
                )
            return None, str(e)

        if self._accounts is not None and extracted.last_four_digits:
            extracted = match_account(extracted, await self._accounts.list_accounts())

        if self._audit_logger:
            await self._audit_logger.log_transaction_extracted(
                extraction_id=extracted.extraction_id,
                source=source.value,
                confidence=extracted.confidence_score,
                correlation_id=correlation_id,
            )

        return extracted, f"Found a ₹{extracted.amount} transaction"

    async def extract_sms_batch(
        self,
        messages: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> list[ExtractedTransaction]:
        """Extract every message that looks like a transaction; skip the rest."""
        correlation_id = correlation_id or create_correlation_id()
        results = []
        for message in messages:
            extracted, _ = await self.extract(TransactionSource.SMS, message, correlation_id)
            if extracted is not None:
                results.append(extracted)
        return results

    async def validate_extraction(
        self,
        extracted: ExtractedTransaction,
        correlation_id: Optional[UUID] = None,
        today: Optional[date] = None,
    ) -> tuple[ValidationResult, str]:
        """
        Validate an extracted transaction.

        Returns:
            (validation_result, user_message)
        """
        correlation_id = correlation_id or create_correlation_id()

        result = await self._validator.validate(extracted, today=today)
        message = self._validator.get_user_friendly_summary(result)

        # Audit validation failures
        if self._audit_logger and not result.is_valid:
            issues = [
                {"field": i.field, "type": i.issue_type, "message": i.message}
                for i in result.issues
            ]
            stage = "schema" if not result.schema_valid else "semantic"
            await self._audit_logger.log_validation_failed(
                extraction_id=extracted.extraction_id,
                stage=stage,
                issues=issues,
                correlation_id=correlation_id,
            )

        return result, message

    async def confirm_and_save(
        self,
        extracted: ExtractedTransaction,
        amount: Optional[Decimal] = None,
        transaction_type: Optional[TransactionType] = None,
        merchant: Optional[str] = None,
        category: Optional[Category] = None,
        transaction_date: Optional[date] = None,
        bank_account_id: Optional[UUID] = None,
        description: str = "",
        correlation_id: Optional[UUID] = None,
    ) -> Transaction:
        """
        Confirm and save the transaction.

        CRITICAL: This is called ONLY after explicit user confirmation.

        Every keyword argument is an optional user edit; anything left as
        None keeps the extracted value.

        Raises:
            ValueError: No amount was extracted and none was entered.
        """
        correlation_id = correlation_id or create_correlation_id()

        final_amount = amount if amount is not None else extracted.amount
        if final_amount is None or final_amount <= 0:
            raise ValueError("A positive amount is required to save a transaction")

        final_category = category or extracted.category or Category.OTHER
        transaction = Transaction(
            amount=Decimal(str(final_amount)).quantize(Decimal("0.01")),
            type=transaction_type or extracted.transaction_type,
            merchant=merchant or extracted.merchant or "Unknown",
            description=description,
            category=final_category,
            # A user-chosen category invalidates the extracted subcategory
            subcategory=extracted.subcategory if final_category == extracted.category else None,
            confidence=1.0 if category else extracted.confidence_score,
            transaction_date=transaction_date or extracted.transaction_date or date.today(),
            bank_account_id=bank_account_id or extracted.matched_account_id,
            payment_method=extracted.source.value,
            source=extracted.source,
            original_text=extracted.raw_text,
            extraction_id=extracted.extraction_id,
        )

        # Audit: user confirmed
        if self._audit_logger:
            await self._audit_logger.log_user_confirmed(
                transaction_id=transaction.id,
                extraction_id=extracted.extraction_id,
                correlation_id=correlation_id,
            )

        # Save to storage
        if self._transaction_storage:
            await self._transaction_storage.save_transaction(transaction)

            # Audit: transaction saved
            if self._audit_logger:
                await self._audit_logger.log_transaction_saved(
                    transaction_id=transaction.id,
                    merchant=transaction.merchant,
                    amount=str(transaction.amount),
                    transaction_type=transaction.type.value,
                    correlation_id=correlation_id,
                )

        return transaction

    async def reject_extraction(
        self,
        extracted: ExtractedTransaction,
        reason: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """
        Record that user rejected the extraction.

        This is called when user chooses not to save after reviewing.
        """
        correlation_id = correlation_id or create_correlation_id()

        if self._audit_logger:
            await self._audit_logger.log_user_rejected(
                extraction_id=extracted.extraction_id,
                reason=reason,
                correlation_id=correlation_id,
            )


class AssistantFlow:
    """
    Orchestrates the chat assistant.

    The assistant only sees what storage returns. A transaction statement
    comes back as a proposal; saving it goes through
    `TransactionFlow.confirm_and_save` like any other extraction.
    """

    def __init__(
        self,
        assistant: Optional[ChatAssistant] = None,
        transaction_storage: Optional[TransactionStorageInterface] = None,
        account_service: Optional[BankAccountService] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._assistant = assistant or ChatAssistant()
        self._transaction_storage = transaction_storage
        self._accounts = account_service
        self._audit_logger = audit_logger

    async def answer(
        self,
        message: str,
        today: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AssistantReply:
        correlation_id = correlation_id or create_correlation_id()

        transactions = []
        if self._transaction_storage:
            transactions = await self._transaction_storage.list_transactions()
        accounts = await self._accounts.list_accounts() if self._accounts else []

        reply = self._assistant.respond(message, transactions, accounts, today=today)

        if self._audit_logger:
            await self._audit_logger.log_assistant_answered(
                intent=reply.intent,
                correlation_id=correlation_id,
            )
        return reply


class AlertFlow:
    """
    Collects every notification the user should currently see.

    Newly raised alerts are audited once per kind and title per session.
    """

    def __init__(
        self,
        transaction_storage: TransactionStorageInterface,
        detector: Optional[OverspendingDetector] = None,
        summaries: Optional[ScheduledSummaries] = None,
        reminder_service: Optional[PaymentReminderService] = None,
        budget_service: Optional[BudgetService] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._transaction_storage = transaction_storage
        self._detector = detector or OverspendingDetector()
        self._summaries = summaries or ScheduledSummaries()
        self._reminders = reminder_service
        self._budgets = budget_service
        self._audit_logger = audit_logger
        self._announced: set[tuple[str, str]] = set()

    async def collect(self, today: Optional[date] = None) -> list[Alert]:
        today = today or date.today()
        transactions = await self._transaction_storage.list_transactions()
        budgets = await self._budgets.list_budgets() if self._budgets else []

        alerts = []
        if self._reminders:
            alerts.extend(await self._reminders.due_notifications(today))
        alerts.extend(self._detector.check(transactions, budgets, today=today))
        for summary in (
            self._summaries.daily_summary(transactions, today),
            self._summaries.weekly_report(transactions, today) if today.weekday() == 6 else None,
        ):
            if summary is not None:
                alerts.append(summary)

        if self._audit_logger:
            for alert in alerts:
                key = (alert.kind.value, alert.title)
                if key in self._announced:
                    continue
                self._announced.add(key)
                await self._audit_logger.log_alert_raised(
                    kind=alert.kind.value,
                    title=alert.title,
                    category=alert.category,
                )
        return alerts

    async def insights(self, today: Optional[date] = None) -> list[str]:
        transactions = await self._transaction_storage.list_transactions()
        return self._detector.generate_insights(transactions, today=today)


@dataclass
class AppComponents:
    """Everything the UI needs, wired to one user's storage."""

    user_id: str
    transaction_storage: TransactionStorageInterface
    record_storage: RecordStorageInterface
    audit_storage: Optional[AuditStorageInterface]
    audit_logger: AuditLogger
    transaction_flow: TransactionFlow
    assistant_flow: AssistantFlow
    alert_flow: AlertFlow
    transactions: TransactionService
    accounts: BankAccountService
    goals: SavingGoalService
    reminders: PaymentReminderService
    budgets: BudgetService
    family: FamilyBudgetService
    reports: ReportBuilder
    simulator: WhatIfSimulator


def _local_member_loader(data_dir: Optional[Path]):
    """Read another user's transactions from their own local store."""
    async def load(email: str) -> list[Transaction]:
        storage = LocalTransactionStorage(LocalJSONClient(email, data_dir=data_dir))
        return await storage.list_transactions()
    return load


def create_app_components(
    user_id: Optional[str] = None,
    use_storage: bool = True,
    data_dir: Optional[Path] = None,
) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        user_id: Whose data to open. Defaults to the configured user.
        use_storage: Whether to persist the audit trail. Set to False
                    for local-only audit logging.
        data_dir: Override the configured local data directory.

    The `google_sheets` backend stores transactions and the audit log in
    Sheets; if it can't be reached the local JSON store is used instead.
    """
    settings = get_settings()
    user_id = user_id or settings.app.default_user_id
    local_client = LocalJSONClient(user_id, data_dir=data_dir)
    record_storage = LocalRecordStorage(local_client)

    transaction_storage: TransactionStorageInterface = LocalTransactionStorage(local_client)
    audit_storage: Optional[AuditStorageInterface] = LocalAuditStorage(local_client)

    if settings.app.storage_backend == "google_sheets":
        try:
            sheets_client = GoogleSheetsClient()
            sheets_client.connect()
            transaction_storage = GoogleSheetsTransactionStorage(sheets_client)
            audit_storage = GoogleSheetsAuditStorage(sheets_client)
        except StorageError as e:
            # Storage not configured - continue with the local store
            logger.warning("google_sheets_unavailable", error=str(e))

    if not use_storage:
        audit_storage = None
    audit_logger = AuditLogger(audit_storage)

    accounts = BankAccountService(record_storage, transaction_storage, audit_logger)
    reminders = PaymentReminderService(record_storage, audit_logger)
    budgets = BudgetService(record_storage, audit_logger)
    validator = TransactionValidator(transaction_storage, record_storage)

    return AppComponents(
        user_id=user_id,
        transaction_storage=transaction_storage,
        record_storage=record_storage,
        audit_storage=audit_storage,
        audit_logger=audit_logger,
        transaction_flow=TransactionFlow(
            validator=validator,
            transaction_storage=transaction_storage,
            account_service=accounts,
            audit_logger=audit_logger,
        ),
        assistant_flow=AssistantFlow(
            transaction_storage=transaction_storage,
            account_service=accounts,
            audit_logger=audit_logger,
        ),
        alert_flow=AlertFlow(
            transaction_storage,
            reminder_service=reminders,
            budget_service=budgets,
            audit_logger=audit_logger,
        ),
        transactions=TransactionService(transaction_storage, audit_logger),
        accounts=accounts,
        goals=SavingGoalService(record_storage, transaction_storage, audit_logger),
        reminders=reminders,
        budgets=budgets,
        family=FamilyBudgetService(
            record_storage,
            audit_logger,
            member_loader=_local_member_loader(data_dir),
        ),
        reports=ReportBuilder(transaction_storage, record_storage),
        simulator=WhatIfSimulator(),
    )
