"""
Core Transaction Models for Smart Budget

These models define the strict schemas for money moving in and out of
the user's accounts. They are designed to:
1. Enforce type safety at runtime
2. Provide clear validation error messages
3. Be serializable for storage and logging
4. Support the audit trail

DESIGN DECISION: Text extraction produces an ExtractedTransaction (a
proposal). Only a Transaction (confirmed) is ever persisted.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# ENUMS
# =============================================================================

class TransactionType(str, Enum):
    """Direction of money movement."""
    CREDIT = "credit"  # Income
    DEBIT = "debit"    # Expense


class TransactionSource(str, Enum):
    """Where a transaction came from."""
    MANUAL = "manual"
    CASH = "cash"
    CREDIT_CARD = "credit_card"
    SMS = "sms"
    EMAIL = "email"
    VOICE = "voice"
    CHAT = "chat"


class Category(str, Enum):
    """
    Spending and income categories.

    DESIGN DECISION: Values are the display names shown to the user so
    that stored data stays readable in a spreadsheet.
    """
    FOOD = "Food & Dining"
    GROCERIES = "Groceries"
    TRANSPORTATION = "Transportation"
    SHOPPING = "Shopping"
    ENTERTAINMENT = "Entertainment"
    UTILITIES = "Utilities"
    HEALTHCARE = "Healthcare"
    EDUCATION = "Education"
    TRAVEL = "Travel"
    INVESTMENT = "Investment"
    INSURANCE = "Insurance"
    TAX_LEGAL = "Tax & Legal"
    GIFTS_CHARITY = "Gifts & Charity"
    RENT = "Rent"
    SALARY = "Salary"
    INCOME = "Income"
    OTHER = "Other"


# =============================================================================
# CONFIRMED TRANSACTION
# =============================================================================

class Transaction(BaseModel):
    """
    A confirmed income or expense record.

    CRITICAL: Only Transaction objects are persisted to storage.
    Amounts are always positive; the direction lives in `type`.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique transaction ID"
    )
    amount: Decimal = Field(
        ...,
        gt=0,
        decimal_places=2,
        description="Amount in INR (always positive)"
    )
    type: TransactionType = Field(
        default=TransactionType.DEBIT,
        description="credit (income) or debit (expense)"
    )
    merchant: str = Field(
        default="Unknown",
        min_length=1,
        max_length=200,
        description="Merchant, payee or payer"
    )
    description: str = Field(
        default="",
        max_length=1000,
    )
    category: Category = Field(default=Category.OTHER)
    subcategory: Optional[str] = Field(default=None, max_length=100)
    confidence: float = Field(
        default=1.0,
        ge=0.0,
        le=1.0,
        description="How sure the categorisation is (1.0 for manual entries)"
    )
    transaction_date: date = Field(
        default_factory=date.today,
        description="Date the money moved"
    )
    bank_account_id: Optional[UUID] = Field(
        default=None,
        description="Linked bank account, if any"
    )
    payment_method: Optional[str] = Field(default=None, max_length=50)
    source: TransactionSource = Field(default=TransactionSource.MANUAL)
    original_text: Optional[str] = Field(
        default=None,
        description="Raw SMS/email/voice text this came from"
    )

    # Traceability back to extraction
    extraction_id: Optional[UUID] = None

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def is_expense(self) -> bool:
        return self.type == TransactionType.DEBIT

    @property
    def signed_amount(self) -> Decimal:
        """Negative for debits, positive for credits."""
        return -self.amount if self.is_expense else self.amount


# =============================================================================
# EXTRACTION (PROPOSED DATA)
# =============================================================================

class ExtractedTransaction(BaseModel):
    """
    Data extracted from an SMS, email, voice transcript or chat message.

    CRITICAL: This is PROPOSED data, NOT verified.
    It MUST go through user confirmation before being trusted.
    All fields are optional because the text might not contain them.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    extraction_id: UUID = Field(default_factory=uuid4)
    extracted_at: datetime = Field(default_factory=datetime.utcnow)
    source: TransactionSource = Field(
        ...,
        description="Kind of text this was extracted from"
    )
    confidence_score: float = Field(
        ...,
        ge=0.0,
        le=1.0,
        description="Overall confidence in extraction (0-1)"
    )

    amount: Optional[Decimal] = Field(default=None, ge=0, decimal_places=2)
    transaction_type: TransactionType = TransactionType.DEBIT
    merchant: Optional[str] = Field(default=None, max_length=200)
    transaction_date: Optional[date] = None
    category: Optional[Category] = None
    subcategory: Optional[str] = None

    # Bank metadata from SMS
    last_four_digits: Optional[str] = Field(default=None, pattern=r"^\d{4}$")
    bank_name: Optional[str] = None
    matched_account_id: Optional[UUID] = None

    raw_text: Optional[str] = None


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'future_date', 'potential_duplicate')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
    )
    suggested_fix: Optional[str] = None


class ValidationResult(BaseModel):
    """
    Result of the two-stage validation.

    Stage 1: Schema validation (required fields)
    Stage 2: Semantic validation (logic checks)
    """

    extraction_id: UUID
    validated_at: datetime = Field(default_factory=datetime.utcnow)

    schema_valid: bool
    semantic_valid: bool
    is_valid: bool
    can_proceed_with_review: bool = Field(
        ...,
        description="Can we show this to the user for confirmation?"
    )

    issues: list[ValidationIssue] = Field(default_factory=list)
    warnings: list[str] = Field(
        default_factory=list,
        description="Non-blocking warnings"
    )

    @property
    def has_errors(self) -> bool:
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        return sum(1 for issue in self.issues if issue.severity == "error")
