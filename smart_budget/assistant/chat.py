"""
Chat Assistant

Answers finance questions by keyword. Messages that read like a
transaction ("Spent ₹250 on Swiggy") are handed to the extractor and come
back as a proposal the user still has to confirm; nothing is saved here.

Intents are checked in this order:
    transaction  spent / paid / bought / received ... with an amount,
                 stated rather than asked
    spending     spend, spending, expense
    savings      save, savings
    account      account, balance
    budget       budget, plan
    invest       invest
    default      anything else
"""

import random
import re
from datetime import date
from typing import Optional, Sequence

import structlog

from smart_budget.analytics import (
    average_daily_spending,
    filter_by_range,
    summarize,
    top_category,
)
from smart_budget.extraction import ExtractionFailedError, TransactionTextExtractor
from smart_budget.models.finance import BankAccount
from smart_budget.models.report import AssistantReply, TimeRange
from smart_budget.models.transaction import Transaction


logger = structlog.get_logger(__name__)

DEFAULT_REPLIES = (
    "I can help you track spending, plan a budget or check an account. "
    "Try \"How much did I spend this month?\"",
    "Tell me about a purchase, like \"Spent ₹250 on Swiggy\", and I'll log it for you.",
    "Ask me about your savings, your budget or an account balance.",
    "Want investment tips? Ask \"Where should I invest?\"",
)

_TRANSACTION_VERBS = re.compile(
    r"\b(spent|paid|bought|purchased|received|got|earned|credited|debited)\b",
    re.IGNORECASE,
)
_HAS_NUMBER = re.compile(r"\d")
# Questions about past spending ("How much have I spent in the last 30 days?")
_QUESTION = re.compile(
    r"\?|\b(?:how|what|when|where|which|why|did|does|show|tell)\b",
    re.IGNORECASE,
)


def _has_word(message: str, *words: str) -> bool:
    return re.search(r"\b(?:" + "|".join(words) + r")\b", message, re.IGNORECASE) is not None


class ChatAssistant:
    """
    Keyword assistant over the user's transactions and accounts.

    `rng` picks among the default replies; pass a seeded `random.Random`
    for repeatable output.
    """

    def __init__(
        self,
        extractor: Optional[TransactionTextExtractor] = None,
        rng: Optional[random.Random] = None,
    ):
        self._extractor = extractor or TransactionTextExtractor()
        self._rng = rng or random.Random()

    def respond(
        self,
        message: str,
        transactions: Sequence[Transaction] = (),
        accounts: Sequence[BankAccount] = (),
        today: Optional[date] = None,
    ) -> AssistantReply:
        today = today or date.today()
        message = (message or "").strip()
        if not message:
            return self._default()

        if (
            _TRANSACTION_VERBS.search(message)
            and _HAS_NUMBER.search(message)
            and not _QUESTION.search(message)
        ):
            reply = self._transaction(message)
            if reply is not None:
                return reply

        if _has_word(message, "spend", "spending", "spent", "expense", "expenses"):
            return self._spending(transactions, today)
        if _has_word(message, "save", "saving", "savings"):
            return self._savings(transactions, today)
        if _has_word(message, "account", "accounts", "balance"):
            return self._account(message, transactions, accounts)
        if _has_word(message, "budget", "plan", "planning"):
            return self._budget(transactions, today)
        if _has_word(message, "invest", "investment", "investing"):
            return self._invest(transactions, today)
        return self._default()

    def _transaction(self, message: str) -> Optional[AssistantReply]:
        try:
            proposal = self._extractor.from_text(message)
        except ExtractionFailedError as e:
            logger.debug("assistant_extraction_skipped", reason=str(e))
            return None

        kind = "income" if proposal.transaction_type.value == "credit" else "expense"
        merchant = f" at {proposal.merchant}" if proposal.merchant else ""
        return AssistantReply(
            intent="transaction",
            message=(
                f"Got it: ₹{proposal.amount:,.2f} {kind}{merchant} "
                f"({proposal.category.value if proposal.category else 'Other'}). "
                "Confirm to save it."
            ),
            proposal=proposal,
        )

    def _spending(self, transactions: Sequence[Transaction], today: date) -> AssistantReply:
        recent = filter_by_range(transactions, TimeRange.MONTH, today=today)
        summary = summarize(recent)
        if summary.expenses == 0:
            return AssistantReply(
                intent="spending",
                message="You haven't recorded any expenses in the last 30 days.",
            )

        daily = average_daily_spending(transactions, days=30, today=today)
        top = top_category(recent)
        message = (
            f"In the last 30 days you spent ₹{summary.expenses:,.2f}, "
            f"about ₹{daily:,.2f} a day."
        )
        if top:
            message += (
                f" Your biggest category was {top.category} at ₹{top.amount:,.2f} "
                f"({top.percent:.0f}% of spending)."
            )
        return AssistantReply(
            intent="spending",
            message=message,
            data={
                "expenses": summary.expenses,
                "average_daily": daily,
                "top_category": top.category if top else None,
            },
        )

    def _savings(self, transactions: Sequence[Transaction], today: date) -> AssistantReply:
        summary = summarize(filter_by_range(transactions, TimeRange.MONTH, today=today))
        rate = summary.savings_rate
        if summary.income == 0:
            message = (
                "I don't see any income in the last 30 days. "
                "Add your salary so I can work out your savings rate."
            )
        elif rate < 10:
            message = (
                f"Your savings rate is {rate:.1f}%. Try to save at least 10-20% "
                "of your income. Start by trimming your biggest expense category."
            )
        elif rate < 20:
            message = (
                f"Your savings rate is {rate:.1f}%. Good start! "
                "Aim for 20% by automating a transfer on payday."
            )
        else:
            message = (
                f"Excellent! You're saving {rate:.1f}% of your income. "
                "Consider putting the surplus to work in investments."
            )
        return AssistantReply(
            intent="savings",
            message=message,
            data={"savings_rate": rate, "income": summary.income, "expenses": summary.expenses},
        )

    def _account(
        self,
        message: str,
        transactions: Sequence[Transaction],
        accounts: Sequence[BankAccount],
    ) -> AssistantReply:
        if not accounts:
            return AssistantReply(
                intent="account",
                message="You haven't added any bank accounts yet. Add one on the Accounts page.",
            )

        account = self._find_account(message, accounts)
        if account is None:
            lines = []
            for a in accounts:
                summary = summarize(t for t in transactions if t.bank_account_id == a.id)
                lines.append(f"{a.name} (••{a.last_four_digits}): ₹{summary.net:,.2f}")
            return AssistantReply(
                intent="account",
                message="Your accounts:\n" + "\n".join(lines),
            )

        linked = [t for t in transactions if t.bank_account_id == account.id]
        summary = summarize(linked)
        top = top_category(linked)
        message = (
            f"{account.name} (••{account.last_four_digits}): balance ₹{summary.net:,.2f} "
            f"from {summary.transaction_count} transactions "
            f"(income ₹{summary.income:,.2f}, expenses ₹{summary.expenses:,.2f})."
        )
        if top:
            message += f" Most spending goes to {top.category}."
        return AssistantReply(
            intent="account",
            message=message,
            data={"account_id": str(account.id), "balance": summary.net},
        )

    @staticmethod
    def _find_account(message: str, accounts: Sequence[BankAccount]) -> Optional[BankAccount]:
        for digits in re.findall(r"\b\d{4}\b", message):
            for account in accounts:
                if account.last_four_digits == digits:
                    return account
        lowered = message.lower()
        for account in accounts:
            if account.name.lower() in lowered:
                return account
        for word in re.findall(r"[a-z]{3,}", lowered):
            if word in ("account", "accounts", "balance", "what", "show", "the", "how", "much", "my"):
                continue
            for account in accounts:
                if word in account.name.lower():
                    return account
        return None

    def _monthly_income(self, transactions: Sequence[Transaction], today: date) -> float:
        return summarize(filter_by_range(transactions, TimeRange.MONTH, today=today)).income

    def _budget(self, transactions: Sequence[Transaction], today: date) -> AssistantReply:
        income = self._monthly_income(transactions, today)
        if income == 0:
            return AssistantReply(
                intent="budget",
                message=(
                    "Try the 50/30/20 rule: 50% of income for needs, 30% for wants "
                    "and 20% for savings. Add your income and I'll work out the amounts."
                ),
            )
        needs, wants, savings = income * 0.5, income * 0.3, income * 0.2
        return AssistantReply(
            intent="budget",
            message=(
                f"With ₹{income:,.0f} monthly income, the 50/30/20 rule gives: "
                f"₹{needs:,.0f} for needs, ₹{wants:,.0f} for wants and "
                f"₹{savings:,.0f} for savings."
            ),
            data={"needs": needs, "wants": wants, "savings": savings},
        )

    def _invest(self, transactions: Sequence[Transaction], today: date) -> AssistantReply:
        expenses = summarize(filter_by_range(transactions, TimeRange.MONTH, today=today)).expenses
        emergency_fund = expenses * 6
        message = "Before investing, build an emergency fund of 6 months of expenses"
        message += f" (about ₹{emergency_fund:,.0f})." if emergency_fund else "."
        message += (
            " After that, consider SIPs in index funds for long-term growth "
            "and PPF or ELSS for tax savings."
        )
        return AssistantReply(
            intent="invest",
            message=message,
            data={"emergency_fund": emergency_fund},
        )

    def _default(self) -> AssistantReply:
        return AssistantReply(intent="default", message=self._rng.choice(DEFAULT_REPLIES))
