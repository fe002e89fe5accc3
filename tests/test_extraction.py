"""Tests for the keyword categoriser and the text extractor."""

import pytest
from datetime import date
from decimal import Decimal

from smart_budget.extraction import (
    ExtractionFailedError,
    TransactionTextExtractor,
    categorize,
    detect_type,
    match_account,
    parse_account_digits,
    parse_amount,
    parse_date,
)
from smart_budget.models.finance import BankAccount
from smart_budget.models.transaction import Category, TransactionSource, TransactionType


TODAY = date(2024, 6, 10)

DEMO_SMS = (
    "INR 1,234.56 debited from A/C XXXX1234 on 15/02/2024 at AMAZON.IN "
    "for online shopping. Available bal: INR 45,678.90"
)


@pytest.fixture
def extractor():
    return TransactionTextExtractor(today_provider=lambda: TODAY)


class TestCategorize:
    """Tests for keyword categorisation."""

    def test_food_delivery(self):
        """Test merchant keyword with subcategory."""
        match = categorize("Swiggy order", TransactionType.DEBIT)
        assert match.category == Category.FOOD
        assert match.subcategory == "Food Delivery"
        assert match.confidence == 0.9

    def test_whole_words_only(self):
        """Test 'ola' does not fire inside 'Motorola'."""
        assert categorize("Motorola service centre").category == Category.OTHER

    def test_salary_ignored_for_debits(self):
        """Test salary keywords only count for credits."""
        assert categorize("salary advance repayment", TransactionType.DEBIT).category != Category.SALARY
        assert categorize("salary for May", TransactionType.CREDIT).category == Category.SALARY

    def test_unmatched_credit_is_income(self):
        """Test fallback category depends on direction."""
        assert categorize("from Ramesh", TransactionType.CREDIT).category == Category.INCOME
        debit = categorize("misc", TransactionType.DEBIT)
        assert debit.category == Category.OTHER
        assert debit.confidence == 0.4

    def test_empty_text(self):
        """Test empty text falls back."""
        assert categorize("").category == Category.OTHER

    def test_multi_word_keyword(self):
        """Test 'uber eats' is food while 'uber' alone is transport."""
        assert categorize("Uber Eats dinner").category == Category.FOOD
        uber = categorize("Uber trip to airport")
        assert uber.category == Category.TRANSPORTATION
        assert uber.subcategory == "Cab"


class TestFieldParsers:
    """Tests for amount, date, type and account helpers."""

    def test_currency_amount_formats(self):
        """Test prefix and suffix currency markers."""
        assert parse_amount("Paid ₹1,250.50 at store") == Decimal("1250.50")
        assert parse_amount("Rs.500 debited") == Decimal("500.00")
        assert parse_amount("spent 450 rupees") == Decimal("450.00")
        assert parse_amount("bill of 799/-") == Decimal("799.00")

    def test_bare_amount_needs_opt_in(self):
        """Test bare numbers are only read when allowed."""
        assert parse_amount("spent 250 on lunch") is None
        assert parse_amount("spent 250 on lunch", allow_bare=True) == Decimal("250.00")

    def test_currency_amount_beats_account_number(self):
        """Test the tagged amount wins over masked account digits."""
        assert parse_amount("A/C XX1234 debited INR 99.99", allow_bare=True) == Decimal("99.99")

    def test_amount_multipliers(self):
        """Test k, lakh and crore suffixes scale the amount."""
        assert parse_amount("₹1.5k on groceries") == Decimal("1500.00")
        assert parse_amount("Rs 2 lakh transferred") == Decimal("200000.00")
        assert parse_amount("paid 3k rupees") == Decimal("3000.00")
        assert parse_amount("spent 1.5k at DMart", allow_bare=True) == Decimal("1500.00")

    def test_unit_words_are_not_multipliers(self):
        """Test 'km' and similar words leave the number alone."""
        assert parse_amount("drove 12 km for 300", allow_bare=True) == Decimal("12.00")
        assert parse_amount("Rs 500 kept aside") == Decimal("500.00")

    def test_account_digits(self):
        """Test last four digits after account markers."""
        assert parse_account_digits("debited from A/C XXXX1234 on") == "1234"
        assert parse_account_digits("Card ending with 9876 used") == "9876"
        assert parse_account_digits("no account info") is None

    def test_dates_are_day_first(self):
        """Test Indian numeric date format."""
        assert parse_date("on 05/03/2024", TODAY) == date(2024, 3, 5)
        assert parse_date("on 2024-03-05", TODAY) == date(2024, 3, 5)
        assert parse_date("on 05-Mar-24", TODAY) == date(2024, 3, 5)

    def test_invalid_date_skipped(self):
        """Test impossible dates are ignored."""
        assert parse_date("on 31/02/2024", TODAY) is None

    def test_relative_dates(self):
        """Test yesterday and today."""
        assert parse_date("paid yesterday", TODAY) == date(2024, 6, 9)
        assert parse_date("paid today", TODAY) == TODAY

    def test_detect_type(self):
        """Test earliest keyword wins and credit card is not a credit."""
        assert detect_type("Refund credited to your account") == TransactionType.CREDIT
        assert detect_type("Paid using credit card") == TransactionType.DEBIT
        assert detect_type("lunch 200") == TransactionType.DEBIT


class TestSMSExtraction:
    """Tests for bank SMS alerts."""

    def test_demo_sms(self, extractor):
        """Test the reference SMS extracts every field."""
        extracted = extractor.from_sms(DEMO_SMS)
        assert extracted.amount == Decimal("1234.56")
        assert extracted.transaction_type == TransactionType.DEBIT
        assert extracted.merchant == "AMAZON.IN"
        assert extracted.last_four_digits == "1234"
        assert extracted.transaction_date == date(2024, 2, 15)
        assert extracted.category == Category.SHOPPING
        assert extracted.subcategory == "Online"
        assert extracted.confidence_score == 1.0
        assert extracted.source == TransactionSource.SMS

    def test_sbi_format(self, extractor):
        """Test SBI layout is recognised."""
        extracted = extractor.from_sms(
            "Dear SBI user, INR 500.00 debited from A/C XX5678 on 01/03/2024 "
            "at SWIGGY for food order."
        )
        assert extracted.bank_name == "SBI"
        assert extracted.merchant == "SWIGGY"
        assert extracted.amount == Decimal("500.00")
        assert extracted.category == Category.FOOD

    def test_hdfc_upi_handle(self, extractor):
        """Test UPI VPA handles are reduced to the merchant name."""
        extracted = extractor.from_sms(
            "HDFC Bank: Rs.500.00 debited from a/c **1234 on 12-03-24 to VPA swiggy@icici."
        )
        assert extracted.bank_name == "HDFC"
        assert extracted.amount == Decimal("500.00")
        assert extracted.merchant == "swiggy"
        assert extracted.transaction_date == date(2024, 3, 12)

    def test_icici_format(self, extractor):
        """Test ICICI 'debited by Rs' layout."""
        extracted = extractor.from_sms(
            "ICICI Bank: Your a/c XX1234 is debited by Rs. 2,500.00 for FLIPKART on 05-Mar-24."
        )
        assert extracted.bank_name == "ICICI"
        assert extracted.amount == Decimal("2500.00")
        assert extracted.merchant == "FLIPKART"
        assert extracted.transaction_date == date(2024, 3, 5)

    def test_salary_credit(self, extractor):
        """Test credits are detected and categorised."""
        extracted = extractor.from_sms(
            "Rs 50,000 credited to your A/C XX9876 on 01/04/2024 towards SALARY from ACME CORP."
        )
        assert extracted.transaction_type == TransactionType.CREDIT
        assert extracted.amount == Decimal("50000.00")
        assert extracted.category == Category.SALARY

    def test_merchant_after_at_wins_over_on(self, extractor):
        """Test an 'on ...' phrase before the merchant is not the merchant."""
        extracted = extractor.from_sms(
            "Rs 250 spent on HDFC Bank Card 4321 at ZOMATO on 2024-03-10"
        )
        assert extracted.merchant == "ZOMATO"
        assert extracted.last_four_digits == "4321"
        assert extracted.transaction_date == date(2024, 3, 10)

    def test_own_account_after_to_is_not_a_merchant(self, extractor):
        """Test 'credited to A/c XX1111' names no merchant."""
        extracted = extractor.from_sms("Rs.1,00,000 credited to A/c XX1111")
        assert extracted.amount == Decimal("100000.00")
        assert extracted.transaction_type == TransactionType.CREDIT
        assert extracted.last_four_digits == "1111"
        assert extracted.merchant is None

    def test_non_transaction_sms_rejected(self, extractor):
        """Test OTP messages are not transactions."""
        with pytest.raises(ExtractionFailedError):
            extractor.from_sms("Your OTP for login is 123456. Do not share.")

    def test_sms_without_amount_rejected(self, extractor):
        """Test a transaction keyword alone is not enough."""
        with pytest.raises(ExtractionFailedError, match="No amount"):
            extractor.from_sms("Your account has been debited.")

    def test_batch_skips_failures(self, extractor):
        """Test batch extraction keeps only readable messages."""
        results = extractor.from_sms_batch([DEMO_SMS, "Hello there", ""])
        assert len(results) == 1
        assert results[0].amount == Decimal("1234.56")


class TestOtherSources:
    """Tests for email, voice and chat text."""

    def test_email_receipt(self, extractor):
        """Test merchant and date from an email receipt."""
        extracted = extractor.from_email(
            "Payment receipt from Netflix",
            "Your payment of Rs. 649 to Netflix was successful on 2024-05-03.",
        )
        assert extracted.source == TransactionSource.EMAIL
        assert extracted.amount == Decimal("649.00")
        assert extracted.merchant == "Netflix"
        assert extracted.transaction_date == date(2024, 5, 3)
        assert extracted.category == Category.ENTERTAINMENT

    def test_voice_known_merchant(self, extractor):
        """Test known merchants are recognised in transcripts."""
        extracted = extractor.from_voice("Spent 450 rupees at Starbucks India")
        assert extracted.source == TransactionSource.VOICE
        assert extracted.amount == Decimal("450.00")
        assert extracted.merchant == "Starbucks India"
        assert extracted.transaction_date == TODAY
        assert extracted.subcategory == "Beverages"

    def test_voice_without_number_rejected(self, extractor):
        """Test spoken numbers without digits are not guessed."""
        with pytest.raises(ExtractionFailedError):
            extractor.from_voice("spent some money")

    def test_chat_smart_add(self, extractor):
        """Test the chat quick-add sentence."""
        extracted = extractor.from_text("Spent ₹250 on Swiggy")
        assert extracted.amount == Decimal("250.00")
        assert extracted.merchant == "Swiggy"
        assert extracted.category == Category.FOOD
        assert extracted.transaction_date == TODAY
        assert extracted.source == TransactionSource.CHAT

    def test_chat_income(self, extractor):
        """Test income statements become credits."""
        extracted = extractor.from_text("Received 50000 salary from Acme")
        assert extracted.transaction_type == TransactionType.CREDIT
        assert extracted.amount == Decimal("50000.00")
        assert extracted.merchant == "Acme"
        assert extracted.category == Category.SALARY

    @pytest.mark.parametrize("message,merchant", [
        ("Spent ₹500 at The Bombay Store", "The Bombay Store"),
        ("Paid ₹900 to Accenture Cafe", "Accenture Cafe"),
        ("Spent ₹300 at Cardinal Books", "Cardinal Books"),
        ("Paid ₹120 at Xerox Point", "Xerox Point"),
        ("Spent ₹80 at Myra Bakery", "Myra Bakery"),
    ])
    def test_merchants_resembling_account_words(self, extractor, message, merchant):
        """Test names starting like 'ac', 'card', 'the', 'my' or 'x' are kept."""
        assert extractor.from_text(message).merchant == merchant

    def test_own_account_is_not_a_merchant(self, extractor):
        """Test 'to my account' is skipped as a merchant."""
        assert extractor.from_text("Transferred ₹5000 to my account").merchant is None

    def test_voice_with_digits(self, extractor):
        """Test the documented voice example."""
        extracted = extractor.from_voice("250 rupees at Swiggy")
        assert extracted.amount == Decimal("250.00")
        assert extracted.merchant == "Swiggy"

    def test_chat_yesterday(self, extractor):
        """Test relative dates in chat."""
        extracted = extractor.from_text("Paid 1200 for electricity bill yesterday")
        assert extracted.transaction_date == date(2024, 6, 9)
        assert extracted.merchant == "electricity bill"
        assert extracted.category == Category.UTILITIES

    def test_empty_text_rejected(self, extractor):
        """Test empty input fails loudly."""
        with pytest.raises(ExtractionFailedError, match="Empty"):
            extractor.from_text("   ")

    def test_extract_dispatch(self, extractor):
        """Test dispatch by source."""
        assert extractor.extract(TransactionSource.SMS, DEMO_SMS).source == TransactionSource.SMS
        assert extractor.extract(TransactionSource.CHAT, "paid 10 for tea").source == TransactionSource.CHAT


class TestMatchAccount:

    def test_links_by_last_four(self, extractor):
        """Test proposals are linked to the account with matching digits."""
        account = BankAccount(name="HDFC Savings", last_four_digits="1234")
        other = BankAccount(name="SBI", last_four_digits="5678")
        matched = match_account(extractor.from_sms(DEMO_SMS), [other, account])
        assert matched.matched_account_id == account.id

    def test_no_match_leaves_proposal_unchanged(self, extractor):
        """Test unknown digits are left unmatched."""
        extracted = extractor.from_sms(DEMO_SMS)
        matched = match_account(extracted, [BankAccount(name="SBI", last_four_digits="5678")])
        assert matched.matched_account_id is None
