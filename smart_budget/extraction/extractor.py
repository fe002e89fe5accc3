"""
Transaction Text Extractor

Turns bank SMS, email receipts, voice transcripts and chat messages into
ExtractedTransaction proposals.

IMPORTANT BOUNDARIES:
1. This module ONLY extracts data - it does NOT validate semantically
2. Text without an amount is REJECTED loudly (ExtractionFailedError)
3. Confidence scores are preserved for downstream validation

DESIGN DECISION: Extraction is a fixed sequence of regular-expression
attempts. Every source shares the same amount, date, type and merchant
helpers; sources differ only in which prepositions introduce a merchant
and what they fall back to.
"""

import re
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Callable, Iterable, Optional, Sequence

import structlog

from smart_budget.extraction.categorizer import categorize
from smart_budget.models.finance import BankAccount
from smart_budget.models.transaction import (
    ExtractedTransaction,
    TransactionSource,
    TransactionType,
)


logger = structlog.get_logger(__name__)


class ExtractionError(Exception):
    """Base exception for extraction errors."""
    pass


class ExtractionFailedError(ExtractionError):
    """The text does not describe a transaction we can read."""
    pass


# =============================================================================
# PATTERNS
# =============================================================================

_NUMBER = r"(\d[\d,]*(?:\.\d+)?)"
# "1.5k", "2 lakh", "1 crore"
_SCALE = r"(?:\s*(k|thousand|lakhs?|lacs?|crores?)(?![a-z]))?"
_SCALES = {
    "k": 1000, "thousand": 1000,
    "lakh": 100000, "lakhs": 100000, "lac": 100000, "lacs": 100000,
    "crore": 10000000, "crores": 10000000,
}

# "₹1,234.56", "Rs.500", "INR 1234", "rupees 250"
_PREFIX_AMOUNT = re.compile(
    r"(?:₹|(?<![a-z])(?:rs|inr|rupees)(?![a-z])\.?)\s*" + _NUMBER + _SCALE,
    re.IGNORECASE,
)
# "500 rupees", "1200 Rs", "450/-", "2k rupees"
_SUFFIX_AMOUNT = re.compile(
    _NUMBER + _SCALE + r"\s*(?:(?:rupees|rs|inr)(?![a-z])|/-)",
    re.IGNORECASE,
)
# A number that is not part of a date or a masked account number
_BARE_AMOUNT = re.compile(
    r"(?<![\d/.\-x*])(\d[\d,]*(?:\.\d+)?)(?![\d/\-])" + _SCALE,
    re.IGNORECASE,
)

_ACCOUNT_DIGITS = re.compile(
    r"(?<![a-z])(?:a/c|acct|account|card|ac|ending(?:\s+with)?)(?![a-z])"
    r"[^\d]{0,20}?\d*?(\d{4})(?!\d)",
    re.IGNORECASE,
)

_MONTHS = {
    "jan": 1, "feb": 2, "mar": 3, "apr": 4, "may": 5, "jun": 6,
    "jul": 7, "aug": 8, "sep": 9, "oct": 10, "nov": 11, "dec": 12,
}
_ISO_DATE = re.compile(r"\b(\d{4})-(\d{2})-(\d{2})\b")
_NUMERIC_DATE = re.compile(r"\b(\d{1,2})[/-](\d{1,2})[/-](\d{2,4})\b")
_NAMED_MONTH_DATE = re.compile(
    r"\b(\d{1,2})[-\s]?(jan|feb|mar|apr|may|jun|jul|aug|sep|oct|nov|dec)[a-z]*[-\s,]*(\d{2,4})\b",
    re.IGNORECASE,
)

_DEBIT_WORDS = re.compile(
    r"\b(?:debited|debit(?!\s*card)|spent|paid|withdrawn|withdrawal|purchase[d]?|"
    r"sent|bought|payment|transferred)\b",
    re.IGNORECASE,
)
_CREDIT_WORDS = re.compile(
    r"\b(?:credited|credit(?!\s*card)|received|refund(?:ed)?|deposited|returned|"
    r"cashback|salary|earned|got)\b",
    re.IGNORECASE,
)

# Words that end a merchant name
_MERCHANT_STOP_WORDS = {
    "on", "for", "at", "via", "to", "from", "ref", "upi", "using", "with",
    "dated", "avl", "avail", "available", "info", "txn", "and", "is", "was",
    "by", "in", "today", "yesterday", "bal", "balance", "rs", "inr",
}
# Candidates that name the user's own account rather than a merchant
_NOT_A_MERCHANT = re.compile(
    r"^(?:a/c|ac|acct|account|card|your|my|x+\d*|\*+\d*)(?![a-z0-9/])",
    re.IGNORECASE,
)
_MERCHANT_WORD = r"[a-z][\w&'.@*/\-]*"

KNOWN_MERCHANTS = [
    "Swiggy", "Zomato", "Ola", "Uber", "Amazon India", "Amazon", "Flipkart",
    "BigBasket", "DMart", "Reliance Fresh", "McDonalds India", "Starbucks India",
    "Dominos Pizza", "Airtel", "Jio", "Vodafone", "Apollo Hospitals",
    "Fortis Hospitals", "Myntra", "Netflix", "Rapido", "Blinkit", "Zepto",
]


# =============================================================================
# FIELD HELPERS
# =============================================================================

def _to_amount(raw: str, scale: Optional[str] = None) -> Optional[Decimal]:
    try:
        value = Decimal(raw.replace(",", ""))
    except InvalidOperation:
        return None
    if scale:
        value *= _SCALES[scale.lower()]
    return value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def parse_amount(text: str, allow_bare: bool = False) -> Optional[Decimal]:
    """
    Find the transaction amount in a piece of text.

    A currency-tagged amount always wins over a bare number, so account
    numbers and dates are never mistaken for the amount. Bare numbers are
    only accepted when `allow_bare` is set (chat and voice input).
    """
    for pattern in (_PREFIX_AMOUNT, _SUFFIX_AMOUNT):
        match = pattern.search(text)
        if match:
            return _to_amount(match.group(1), match.group(2))

    if allow_bare:
        for match in _BARE_AMOUNT.finditer(text):
            amount = _to_amount(match.group(1), match.group(2))
            if amount is not None:
                return amount
    return None


def parse_account_digits(text: str) -> Optional[str]:
    """Last four digits of the account or card referenced in the text."""
    match = _ACCOUNT_DIGITS.search(text)
    return match.group(1) if match else None


def _make_date(year: int, month: int, day: int) -> Optional[date]:
    if year < 100:
        year += 2000
    try:
        return date(year, month, day)
    except ValueError:
        return None


def parse_date(text: str, today: Optional[date] = None) -> Optional[date]:
    """
    Find a transaction date. Numeric dates are day first (Indian format).

    Also understands "today" and "yesterday" relative to `today`.
    Dates that do not exist (31/02/2024) are skipped.
    """
    for match in _ISO_DATE.finditer(text):
        found = _make_date(int(match.group(1)), int(match.group(2)), int(match.group(3)))
        if found:
            return found

    for match in _NUMERIC_DATE.finditer(text):
        found = _make_date(int(match.group(3)), int(match.group(2)), int(match.group(1)))
        if found:
            return found

    for match in _NAMED_MONTH_DATE.finditer(text):
        month = _MONTHS[match.group(2).lower()[:3]]
        found = _make_date(int(match.group(3)), month, int(match.group(1)))
        if found:
            return found

    lowered = text.lower()
    today = today or date.today()
    if re.search(r"\byesterday\b", lowered):
        return today - timedelta(days=1)
    if re.search(r"\btoday\b", lowered):
        return today
    return None


def detect_type(text: str) -> TransactionType:
    """
    Credit or debit, decided by whichever keyword appears first.

    "credit card" never counts as a credit. Text with no keyword is a debit.
    """
    debit = _DEBIT_WORDS.search(text)
    credit = _CREDIT_WORDS.search(text)
    if credit and (not debit or credit.start() < debit.start()):
        return TransactionType.CREDIT
    return TransactionType.DEBIT


def _has_type_keyword(text: str) -> bool:
    return bool(_DEBIT_WORDS.search(text) or _CREDIT_WORDS.search(text))


def _clean_merchant(candidate: str) -> Optional[str]:
    words = []
    for word in candidate.split():
        if word.lower().strip(".,:;") in _MERCHANT_STOP_WORDS:
            break
        words.append(word)
    if words and words[0].lower() == "vpa":
        words = words[1:]
    if not words:
        return None

    name = " ".join(words).strip(" .,:;-*")
    # UPI handles: "swiggy@icici" -> "swiggy"
    if "@" in name:
        name = name.split("@", 1)[0]
    if not name or _NOT_A_MERCHANT.match(name):
        return None
    return name


def parse_merchant(text: str, prepositions: Sequence[str]) -> Optional[str]:
    """
    Merchant name introduced by one of `prepositions`.

    Candidates are scanned in text order; references to the user's own
    account ("from A/C XX1234") are skipped.
    """
    preps = "|".join(re.escape(p) for p in prepositions)
    pattern = re.compile(
        rf"\b(?:{preps})\s+({_MERCHANT_WORD}(?:[ \t]+{_MERCHANT_WORD}){{0,3}})",
        re.IGNORECASE,
    )
    for match in pattern.finditer(text):
        name = _clean_merchant(match.group(1))
        if name:
            return name
    return None


def find_known_merchant(text: str) -> Optional[str]:
    lowered = text.lower()
    for merchant in KNOWN_MERCHANTS:
        if re.search(rf"(?<!\w){re.escape(merchant.lower())}(?!\w)", lowered):
            return merchant
    return None


def _confidence(
    has_merchant: bool,
    has_date: bool,
    has_account: bool,
    category_confidence: float,
    bank_format: bool = False,
) -> float:
    score = 0.5
    if has_merchant:
        score += 0.2
    if has_date:
        score += 0.1
    if has_account:
        score += 0.1
    if category_confidence >= 0.9:
        score += 0.1
    if bank_format:
        score += 0.05
    return round(min(score, 1.0), 2)


# =============================================================================
# BANK-SPECIFIC SMS FORMATS
# =============================================================================

@dataclass(frozen=True)
class BankSMSFormat:
    """Known layout of one bank's transaction alerts."""

    bank_name: str
    detect: re.Pattern
    amount: re.Pattern
    merchant: Optional[re.Pattern] = None


BANK_FORMATS: list[BankSMSFormat] = [
    # "INR 1,234.56 debited from A/C XXXX1234 on 15/02/2024 at AMAZON.IN"
    BankSMSFormat(
        bank_name="SBI",
        detect=re.compile(r"\b(?:SBI|State Bank)\b", re.IGNORECASE),
        amount=re.compile(r"\bINR\s*" + _NUMBER, re.IGNORECASE),
        merchant=re.compile(r"\bat\s+([A-Z0-9][A-Z0-9 .&'\-]*?)(?=\s+for\b|\.\s|\.?$|\s+on\b)", re.IGNORECASE),
    ),
    # "Rs.500.00 debited from a/c **1234 on 12-03-24 to VPA swiggy@icici"
    BankSMSFormat(
        bank_name="HDFC",
        detect=re.compile(r"\bHDFC\b", re.IGNORECASE),
        amount=re.compile(r"\bRs\.?\s*" + _NUMBER, re.IGNORECASE),
    ),
    # "Your a/c XX1234 is debited by Rs. 2,500.00 for FLIPKART on 05-Mar-24"
    BankSMSFormat(
        bank_name="ICICI",
        detect=re.compile(r"\bICICI\b", re.IGNORECASE),
        amount=re.compile(r"\bby\s+Rs\.?\s*" + _NUMBER, re.IGNORECASE),
        merchant=re.compile(r"\bfor\s+([A-Z0-9][A-Z0-9 .&'\-]*?)(?=\s+on\b|\.\s|\.?$)", re.IGNORECASE),
    ),
]


# =============================================================================
# EXTRACTOR
# =============================================================================

class TransactionTextExtractor:
    """
    Extracts transaction proposals from free text.

    `today` anchors relative dates ("yesterday") and defaults voice/chat
    entries to the day they were spoken or typed.
    """

    SMS_PREPOSITIONS = ("at", "to", "towards", "for", "via")
    EMAIL_PREPOSITIONS = ("from", "via", "at", "to")
    CHAT_PREPOSITIONS = ("on", "at", "to", "for", "from")

    def __init__(self, today_provider: Optional[Callable[[], date]] = None):
        self._today = today_provider or date.today

    def from_sms(self, text: str) -> ExtractedTransaction:
        """
        Parse a bank SMS alert.

        Bank-specific layouts are tried first; any field they miss falls
        back to the generic parser.
        """
        text = self._require_text(text, "sms")
        if not _has_type_keyword(text) and parse_account_digits(text) is None:
            raise ExtractionFailedError("Message does not look like a bank transaction alert")

        bank_name = None
        amount = None
        merchant = None
        for bank in BANK_FORMATS:
            if not bank.detect.search(text):
                continue
            match = bank.amount.search(text)
            if not match:
                continue
            bank_name = bank.bank_name
            amount = _to_amount(match.group(1))
            if bank.merchant:
                merchant_match = bank.merchant.search(text)
                if merchant_match:
                    merchant = _clean_merchant(merchant_match.group(1))
            break

        if amount is None:
            amount = parse_amount(text)
        if amount is None:
            raise ExtractionFailedError("No amount found in message")

        merchant = merchant or parse_merchant(text, self.SMS_PREPOSITIONS)
        return self._build(
            text=text,
            source=TransactionSource.SMS,
            amount=amount,
            merchant=merchant,
            transaction_date=parse_date(text, self._today()),
            last_four=parse_account_digits(text),
            bank_name=bank_name,
        )

    def from_sms_batch(self, messages: Iterable[str]) -> list[ExtractedTransaction]:
        """Parse many messages, skipping those that are not transactions."""
        results = []
        for message in messages:
            try:
                results.append(self.from_sms(message))
            except ExtractionFailedError as e:
                logger.debug("sms_skipped", reason=str(e))
        return results

    def from_email(self, subject: str, body: str = "") -> ExtractedTransaction:
        """Parse a payment receipt or bank notification email."""
        text = self._require_text(f"{subject}\n{body}".strip(), "email")
        amount = parse_amount(text)
        if amount is None:
            raise ExtractionFailedError("No amount found in email")

        merchant = (
            parse_merchant(text, self.EMAIL_PREPOSITIONS)
            or find_known_merchant(text)
        )
        return self._build(
            text=text,
            source=TransactionSource.EMAIL,
            amount=amount,
            merchant=merchant,
            transaction_date=parse_date(text, self._today()),
            last_four=parse_account_digits(text),
        )

    def from_voice(self, transcript: str) -> ExtractedTransaction:
        """
        Parse a spoken expense such as "250 rupees at Swiggy".

        Known merchants are recognised by name; otherwise the first three
        words (letters only) become the merchant.
        """
        text = self._require_text(transcript, "voice")
        amount = parse_amount(text, allow_bare=True)
        if amount is None:
            raise ExtractionFailedError("No amount heard in voice input")

        merchant = find_known_merchant(text) or parse_merchant(text, self.CHAT_PREPOSITIONS)
        if merchant is None:
            words = re.findall(r"[A-Za-z]+", text)[:3]
            merchant = " ".join(words) or None

        return self._build(
            text=text,
            source=TransactionSource.VOICE,
            amount=amount,
            merchant=merchant,
            transaction_date=parse_date(text, self._today()) or self._today(),
            last_four=None,
        )

    def from_text(self, message: str) -> ExtractedTransaction:
        """
        Parse a chat "smart add" message.

        Examples:
            "Spent ₹250 on Swiggy"
            "Received 50000 salary from Acme"
            "Paid 1200 for electricity bill yesterday"
        """
        text = self._require_text(message, "chat")
        amount = parse_amount(text, allow_bare=True)
        if amount is None:
            raise ExtractionFailedError("No amount found in message")

        merchant = parse_merchant(text, self.CHAT_PREPOSITIONS) or find_known_merchant(text)
        return self._build(
            text=text,
            source=TransactionSource.CHAT,
            amount=amount,
            merchant=merchant,
            transaction_date=parse_date(text, self._today()) or self._today(),
            last_four=None,
        )

    def extract(self, source: TransactionSource, text: str) -> ExtractedTransaction:
        """Dispatch to the parser for `source`."""
        if source == TransactionSource.SMS:
            return self.from_sms(text)
        if source == TransactionSource.EMAIL:
            subject, _, body = text.partition("\n")
            return self.from_email(subject, body)
        if source == TransactionSource.VOICE:
            return self.from_voice(text)
        return self.from_text(text)

    @staticmethod
    def _require_text(text: Optional[str], source: str) -> str:
        if text is None or not text.strip():
            raise ExtractionFailedError(f"Empty {source} text")
        return text.strip()

    def _build(
        self,
        text: str,
        source: TransactionSource,
        amount: Decimal,
        merchant: Optional[str],
        transaction_date: Optional[date],
        last_four: Optional[str],
        bank_name: Optional[str] = None,
    ) -> ExtractedTransaction:
        transaction_type = detect_type(text)
        match = categorize(
            f"{merchant or ''} {text}",
            transaction_type=transaction_type,
        )
        extracted = ExtractedTransaction(
            source=source,
            confidence_score=_confidence(
                has_merchant=merchant is not None,
                has_date=transaction_date is not None,
                has_account=last_four is not None,
                category_confidence=match.confidence,
                bank_format=bank_name is not None,
            ),
            amount=amount,
            transaction_type=transaction_type,
            merchant=merchant[:200] if merchant else None,
            transaction_date=transaction_date,
            category=match.category,
            subcategory=match.subcategory,
            last_four_digits=last_four,
            bank_name=bank_name,
            raw_text=text,
        )
        logger.debug(
            "transaction_extracted",
            source=source.value,
            extraction_id=str(extracted.extraction_id),
            confidence=extracted.confidence_score,
        )
        return extracted


def match_account(
    extracted: ExtractedTransaction,
    accounts: Sequence[BankAccount],
) -> ExtractedTransaction:
    """Link a proposal to the bank account whose last four digits it mentions."""
    if not extracted.last_four_digits:
        return extracted
    for account in accounts:
        if account.last_four_digits == extracted.last_four_digits:
            return extracted.model_copy(update={"matched_account_id": account.id})
    return extracted
