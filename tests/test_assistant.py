"""Tests for the keyword chat assistant."""

import random
from datetime import date
from decimal import Decimal

import pytest

from conftest import make_transaction
from smart_budget.assistant import DEFAULT_REPLIES, ChatAssistant
from smart_budget.extraction import TransactionTextExtractor
from smart_budget.models.finance import BankAccount
from smart_budget.models.transaction import Category, TransactionType


TODAY = date(2024, 6, 10)


@pytest.fixture
def assistant():
    return ChatAssistant(
        extractor=TransactionTextExtractor(today_provider=lambda: TODAY),
        rng=random.Random(7),
    )


@pytest.fixture
def month():
    return [
        make_transaction(50000, date(2024, 6, 1), TransactionType.CREDIT, Category.SALARY),
        make_transaction(6000, date(2024, 6, 2), category=Category.FOOD),
        make_transaction(3000, date(2024, 6, 3), category=Category.TRANSPORTATION),
    ]


class TestIntents:
    """Tests for intent routing."""

    def test_transaction_proposal(self, assistant):
        """Test transaction sentences come back as unsaved proposals."""
        reply = assistant.respond("Spent ₹250 on Swiggy", today=TODAY)
        assert reply.intent == "transaction"
        assert reply.proposal.amount == Decimal("250.00")
        assert reply.proposal.category == Category.FOOD
        assert "Confirm to save it" in reply.message

    @pytest.mark.parametrize("question", [
        "How much have I spent in the last 30 days?",
        "What did I spend 2 weeks ago",
        "spent 500 on food?",
    ])
    def test_spending_questions_are_not_transactions(self, assistant, month, question):
        """Test questions with numbers are answered, not logged."""
        reply = assistant.respond(question, month, today=TODAY)
        assert reply.intent == "spending"
        assert reply.proposal is None
        assert reply.data["expenses"] == 9000.0

    def test_spending(self, assistant, month):
        """Test the 30-day spending summary."""
        reply = assistant.respond("How much did I spend this month?", month, today=TODAY)
        assert reply.intent == "spending"
        assert reply.data["expenses"] == 9000.0
        assert reply.data["top_category"] == "Food & Dining"
        assert "₹9,000.00" in reply.message

    def test_spending_without_data(self, assistant):
        """Test the empty spending answer."""
        reply = assistant.respond("show my expenses", today=TODAY)
        assert reply.message == "You haven't recorded any expenses in the last 30 days."

    def test_savings_bands(self, assistant, month):
        """Test advice follows the savings rate."""
        reply = assistant.respond("How are my savings?", month, today=TODAY)
        assert reply.intent == "savings"
        assert reply.data["savings_rate"] == 82.0
        assert reply.message.startswith("Excellent!")

        poor = month + [make_transaction(40000, date(2024, 6, 4), category=Category.SHOPPING)]
        assert "at least 10-20%" in assistant.respond("savings?", poor, today=TODAY).message

    def test_savings_without_income(self, assistant):
        """Test the no-income answer."""
        reply = assistant.respond("can I save more", today=TODAY)
        assert reply.message.startswith("I don't see any income")

    def test_budget_rule(self, assistant, month):
        """Test the 50/30/20 split uses recent income."""
        reply = assistant.respond("help me plan a budget", month, today=TODAY)
        assert reply.intent == "budget"
        assert reply.data == pytest.approx({"needs": 25000.0, "wants": 15000.0, "savings": 10000.0})

    def test_invest(self, assistant, month):
        """Test the emergency fund is six months of expenses."""
        reply = assistant.respond("where should I invest", month, today=TODAY)
        assert reply.intent == "invest"
        assert reply.data["emergency_fund"] == 54000.0

    def test_default_is_repeatable(self):
        """Test default replies come from the injected generator."""
        first = ChatAssistant(rng=random.Random(3)).respond("hello")
        second = ChatAssistant(rng=random.Random(3)).respond("hello")
        assert first.intent == "default"
        assert first.message in DEFAULT_REPLIES
        assert first.message == second.message

    def test_empty_message(self, assistant):
        """Test blank input gets a default reply."""
        assert assistant.respond("   ").intent == "default"


class TestAccountQuestions:
    """Tests for account lookups."""

    @pytest.fixture
    def accounts(self):
        return [
            BankAccount(name="HDFC Savings", last_four_digits="1234"),
            BankAccount(name="SBI Salary", last_four_digits="5678"),
        ]

    def test_no_accounts(self, assistant):
        """Test the prompt to add an account."""
        reply = assistant.respond("what's my balance", today=TODAY)
        assert reply.message.startswith("You haven't added any bank accounts yet")

    def test_by_digits(self, assistant, accounts):
        """Test the account is found by its last four digits."""
        linked = [make_transaction(
            1000, date(2024, 6, 1), TransactionType.CREDIT, bank_account_id=accounts[1].id
        )]
        reply = assistant.respond("balance of account 5678", linked, accounts, today=TODAY)
        assert reply.data["account_id"] == str(accounts[1].id)
        assert reply.data["balance"] == 1000.0

    def test_by_name_fragment(self, assistant, accounts):
        """Test a word from the account name is enough."""
        reply = assistant.respond("show hdfc balance", accounts=accounts, today=TODAY)
        assert reply.data["account_id"] == str(accounts[0].id)

    def test_lists_all_when_unmatched(self, assistant, accounts):
        """Test every account is listed when none is named."""
        reply = assistant.respond("account balance", accounts=accounts, today=TODAY)
        assert reply.message.startswith("Your accounts:")
        assert "HDFC Savings (••1234)" in reply.message
        assert "SBI Salary (••5678)" in reply.message
