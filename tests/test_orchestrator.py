"""
Integration tests for the capture, assistant and alert flows.

Everything runs against a temporary local JSON store.
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from conftest import make_transaction, run
from smart_budget.audit import create_correlation_id
from smart_budget.extraction import TransactionTextExtractor
from smart_budget.models.audit import AuditEventType
from smart_budget.models.finance import AlertKind
from smart_budget.models.transaction import (
    Category,
    ExtractedTransaction,
    TransactionSource,
    TransactionType,
)
from smart_budget.orchestrator import (
    AlertFlow,
    AssistantFlow,
    TransactionFlow,
    create_app_components,
)
from smart_budget.assistant import ChatAssistant
from smart_budget.services.accounts import BankAccountService
from smart_budget.services.budgets import BudgetService
from smart_budget.services.reminders import PaymentReminderService
from smart_budget.services.storage import LocalJSONClient, LocalTransactionStorage
from smart_budget.validation import TransactionValidator


TODAY = date(2024, 6, 10)  # a Monday

DEMO_SMS = (
    "INR 1,234.56 debited from A/C XXXX1234 on 15/02/2024 at AMAZON.IN "
    "for online shopping. Available bal: INR 45,678.90"
)


@pytest.fixture
def extractor():
    return TransactionTextExtractor(today_provider=lambda: TODAY)


@pytest.fixture
def accounts(record_storage, transaction_storage, audit_logger):
    return BankAccountService(record_storage, transaction_storage, audit_logger)


@pytest.fixture
def flow(extractor, transaction_storage, record_storage, accounts, audit_logger):
    return TransactionFlow(
        extractor=extractor,
        validator=TransactionValidator(transaction_storage, record_storage),
        transaction_storage=transaction_storage,
        account_service=accounts,
        audit_logger=audit_logger,
    )


def event_types(audit_storage, correlation_id) -> list[AuditEventType]:
    return [e.event_type for e in run(audit_storage.get_events_by_correlation_id(correlation_id))]


class TestTransactionFlow:
    """Tests for extract → validate → confirm → save."""

    def test_full_capture(self, flow, accounts, transaction_storage, audit_storage):
        """Test the happy path links the account and audits every step."""
        account = run(accounts.add_account("HDFC Savings", "1234"))
        correlation_id = create_correlation_id()

        extracted, message = run(flow.extract(TransactionSource.SMS, DEMO_SMS, correlation_id))
        assert message == "Found a ₹1234.56 transaction"
        assert extracted.matched_account_id == account.id

        result, summary = run(flow.validate_extraction(extracted, correlation_id, today=TODAY))
        assert result.is_valid
        assert summary.startswith("✅ All checks passed")

        saved = run(flow.confirm_and_save(extracted, correlation_id=correlation_id))
        assert saved.bank_account_id == account.id
        assert saved.subcategory == "Online"
        assert saved.payment_method == "sms"
        assert saved.original_text == DEMO_SMS
        assert saved.extraction_id == extracted.extraction_id
        assert run(transaction_storage.get_transaction(saved.id)) == saved

        assert event_types(audit_storage, correlation_id) == [
            AuditEventType.TRANSACTION_EXTRACTED,
            AuditEventType.USER_CONFIRMED,
            AuditEventType.TRANSACTION_SAVED,
        ]

    def test_nothing_is_saved_before_confirmation(self, flow, transaction_storage):
        """Test extraction and validation never persist a transaction."""
        extracted, _ = run(flow.extract(TransactionSource.SMS, DEMO_SMS))
        run(flow.validate_extraction(extracted, today=TODAY))
        assert run(transaction_storage.list_transactions()) == []

    def test_user_edits_win(self, flow):
        """Test edited fields replace extracted ones."""
        extracted, _ = run(flow.extract(TransactionSource.SMS, DEMO_SMS))
        saved = run(flow.confirm_and_save(
            extracted,
            amount=Decimal("1200"),
            merchant="Amazon",
            category=Category.OTHER,
            transaction_date=date(2024, 2, 16),
        ))
        assert saved.amount == Decimal("1200.00")
        assert saved.merchant == "Amazon"
        assert saved.subcategory is None
        assert saved.confidence == 1.0
        assert saved.transaction_date == date(2024, 2, 16)

    def test_extraction_failure(self, flow, audit_storage):
        """Test unreadable text returns a reason and is audited."""
        correlation_id = create_correlation_id()
        extracted, message = run(flow.extract(
            TransactionSource.SMS, "Your OTP is 123456", correlation_id
        ))
        assert extracted is None
        assert message
        assert event_types(audit_storage, correlation_id) == [AuditEventType.EXTRACTION_FAILED]

    def test_schema_failure_audited(self, flow, audit_storage):
        """Test a proposal without amount is reported and cannot be saved."""
        correlation_id = create_correlation_id()
        extracted = ExtractedTransaction(source=TransactionSource.CHAT, confidence_score=0.2)
        result, _ = run(flow.validate_extraction(extracted, correlation_id, today=TODAY))
        assert not result.can_proceed_with_review
        assert event_types(audit_storage, correlation_id) == [
            AuditEventType.SCHEMA_VALIDATION_FAILED,
        ]
        with pytest.raises(ValueError, match="positive amount"):
            run(flow.confirm_and_save(extracted))

    def test_reject(self, flow, audit_storage):
        """Test rejection is audited and nothing is saved."""
        correlation_id = create_correlation_id()
        extracted, _ = run(flow.extract(TransactionSource.SMS, DEMO_SMS, correlation_id))
        run(flow.reject_extraction(extracted, "Not mine", correlation_id))
        assert event_types(audit_storage, correlation_id)[-1] == AuditEventType.USER_REJECTED

    def test_sms_batch(self, flow):
        """Test batch capture skips non-transactions."""
        results = run(flow.extract_sms_batch([DEMO_SMS, "Hi, call me back", DEMO_SMS]))
        assert len(results) == 2
        assert results[0].extraction_id != results[1].extraction_id

    def test_sms_batch_save_selected(self, flow, transaction_storage, audit_storage):
        """Test ticked batch proposals are saved and the rest rejected."""
        correlation_id = create_correlation_id()
        keep, drop = run(flow.extract_sms_batch(
            [DEMO_SMS, "Rs.1,00,000 credited to A/c XX1111"], correlation_id
        ))
        run(flow.confirm_and_save(keep, correlation_id=correlation_id))
        run(flow.reject_extraction(drop, "Not selected", correlation_id))

        saved = run(transaction_storage.list_transactions())
        assert [t.extraction_id for t in saved] == [keep.extraction_id]
        assert event_types(audit_storage, correlation_id).count(AuditEventType.USER_REJECTED) == 1


class TestAssistantFlow:

    def test_answers_from_storage(self, extractor, transaction_storage, accounts, audit_storage,
                                  audit_logger):
        """Test answers are built from saved transactions and audited."""
        run(transaction_storage.save_transaction(
            make_transaction(800, date(2024, 6, 8), category=Category.FOOD)
        ))
        assistant_flow = AssistantFlow(
            assistant=ChatAssistant(extractor=extractor),
            transaction_storage=transaction_storage,
            account_service=accounts,
            audit_logger=audit_logger,
        )
        correlation_id = uuid4()
        reply = run(assistant_flow.answer("how much did I spend", today=TODAY,
                                          correlation_id=correlation_id))
        assert reply.data["expenses"] == 800.0
        assert event_types(audit_storage, correlation_id) == [AuditEventType.ASSISTANT_ANSWERED]

    def test_proposal_not_saved(self, extractor, transaction_storage):
        """Test a transaction statement is only proposed."""
        assistant_flow = AssistantFlow(
            assistant=ChatAssistant(extractor=extractor),
            transaction_storage=transaction_storage,
        )
        reply = run(assistant_flow.answer("Paid 300 for auto", today=TODAY))
        assert reply.proposal is not None
        assert run(transaction_storage.list_transactions()) == []


class TestAlertFlow:
    """Tests for collecting notifications."""

    @pytest.fixture
    def alert_flow(self, transaction_storage, record_storage, audit_logger):
        reminders = PaymentReminderService(record_storage, audit_logger)
        budgets = BudgetService(record_storage, audit_logger)
        run(reminders.add_reminder("Rent", Decimal("15000"), 10))
        run(budgets.set_budget(Category.FOOD, Decimal("500")))
        run(transaction_storage.save_transaction(
            make_transaction(900, date(2024, 6, 9), category=Category.FOOD)
        ))
        return AlertFlow(
            transaction_storage,
            reminder_service=reminders,
            budget_service=budgets,
            audit_logger=audit_logger,
        )

    def test_collects_every_source(self, alert_flow):
        """Test reminders, budgets and the daily summary are combined."""
        kinds = [a.kind for a in run(alert_flow.collect(today=TODAY))]
        assert AlertKind.PAYMENT_DUE in kinds
        assert AlertKind.BUDGET_EXCEEDED in kinds
        assert AlertKind.DAILY_SUMMARY in kinds
        assert AlertKind.WEEKLY_REPORT not in kinds

    def test_weekly_report_on_sunday(self, alert_flow):
        """Test the weekly report appears on Sundays."""
        kinds = [a.kind for a in run(alert_flow.collect(today=date(2024, 6, 16)))]
        assert AlertKind.WEEKLY_REPORT in kinds

    def test_alerts_audited_once(self, alert_flow, audit_storage):
        """Test repeated collection does not repeat audit events."""
        first = run(alert_flow.collect(today=TODAY))
        run(alert_flow.collect(today=TODAY))
        raised = [
            e for e in run(audit_storage.get_recent_events(limit=500))
            if e.event_type == AuditEventType.ALERT_RAISED
        ]
        assert len(raised) == len(first)

    def test_insights(self, alert_flow):
        """Test insights are generated from storage."""
        assert run(alert_flow.insights(today=TODAY))


class TestAppComponents:
    """Tests for the component factory."""

    def test_local_wiring(self, tmp_path):
        """Test components share one user's local store."""
        components = create_app_components(user_id="tester", data_dir=tmp_path)
        assert components.user_id == "tester"
        assert isinstance(components.transaction_storage, LocalTransactionStorage)

        run(components.transactions.add_transaction(Decimal("50"), merchant="Tea",
                                                    transaction_date=TODAY))
        assert (tmp_path / "tester.json").exists()
        assert len(run(components.audit_storage.get_recent_events())) == 1

    def test_without_audit_storage(self, tmp_path):
        """Test use_storage=False keeps audit events out of the store."""
        components = create_app_components(user_id="tester", use_storage=False, data_dir=tmp_path)
        assert components.audit_storage is None
        run(components.transactions.add_transaction(Decimal("50"), merchant="Tea"))

    def test_family_reads_member_store(self, tmp_path):
        """Test the family overview reads members' own local stores."""
        member_store = LocalTransactionStorage(LocalJSONClient("priya@example.com", data_dir=tmp_path))
        run(member_store.save_transaction(make_transaction(
            700, date(2024, 6, 5), TransactionType.DEBIT, Category.GROCERIES
        )))

        components = create_app_components(user_id="tester", data_dir=tmp_path)
        member = run(components.family.invite_member("priya@example.com"))
        run(components.family.verify_member(member.id, member.verification_code, today=TODAY))

        overview = run(components.family.overview([], today=TODAY))
        assert overview.member_count == 2
        assert overview.total_expenses == 700.0
