"""
Two-Stage Validation Pipeline

DESIGN DECISION: Validation happens in two distinct stages:

STAGE 1 - SCHEMA VALIDATION:
- Required field presence (amount)
- Missing-but-fillable fields (merchant, date)
- Extraction confidence
- This catches text the extractor could barely read

STAGE 2 - SEMANTIC VALIDATION:
- Future and very old dates
- Absurd amounts
- Account digits that match no known account
- Duplicate detection
- This catches logically impossible or suspicious data

WHY TWO STAGES:
1. Separation of concerns (structural vs logical)
2. Better error messages (know exactly what kind of issue)
3. Can skip stage 2 if stage 1 fails
4. Stage 2 needs access to storage for duplicate checks

IMPORTANT: Validation NEVER silently fixes issues.
It reports them for human review.
"""

from datetime import date, timedelta
from decimal import Decimal
from typing import Optional

import structlog

from smart_budget.config import get_settings
from smart_budget.models.finance import BankAccount
from smart_budget.models.transaction import (
    ExtractedTransaction,
    ValidationIssue,
    ValidationResult,
)
from smart_budget.services.storage import (
    BANK_ACCOUNTS,
    RecordStorageInterface,
    StorageError,
    TransactionStorageInterface,
)


logger = structlog.get_logger(__name__)


class TransactionValidator:
    """
    Validates extracted transactions through a two-stage pipeline.

    Stage 1: Schema validation (can run without storage)
    Stage 2: Semantic validation (uses storage for duplicates and accounts)
    """

    def __init__(
        self,
        transaction_storage: Optional[TransactionStorageInterface] = None,
        record_storage: Optional[RecordStorageInterface] = None,
    ):
        """
        Args:
            transaction_storage: For duplicate checking. If None, skipped.
            record_storage: For matching account digits. If None, skipped.
        """
        self._storage = transaction_storage
        self._records = record_storage
        self._settings = get_settings().app

    def _validate_schema(
        self,
        extracted: ExtractedTransaction,
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 1: Schema validation.

        Returns: (is_valid, list_of_issues)
        """
        issues = []

        if extracted.amount is None:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="missing",
                message="Amount is required but was not found",
                severity="error",
                suggested_fix="Include the amount, e.g. '₹250'",
            ))
        elif extracted.amount <= 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="Amount must be greater than zero",
                severity="error",
                suggested_fix="Check if the amount was read correctly",
            ))

        if not extracted.merchant:
            issues.append(ValidationIssue(
                field="merchant",
                issue_type="missing",
                message="Merchant name was not found",
                severity="warning",  # Warning because user can enter it
                suggested_fix="You'll need to enter the merchant manually",
            ))

        if extracted.transaction_date is None:
            issues.append(ValidationIssue(
                field="transaction_date",
                issue_type="missing",
                message="No date found; today's date will be used",
                severity="info",
                suggested_fix="Change the date if the transaction happened earlier",
            ))

        if extracted.confidence_score < 0.5:
            issues.append(ValidationIssue(
                field="confidence_score",
                issue_type="low_confidence",
                message=f"Extraction confidence is low ({extracted.confidence_score:.0%})",
                severity="warning",
                suggested_fix="Please review all fields carefully",
            ))

        # Schema is valid if no errors (warnings are okay)
        is_valid = not any(issue.severity == "error" for issue in issues)

        return is_valid, issues

    def _validate_semantic(
        self,
        extracted: ExtractedTransaction,
        today: date,
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 2: Semantic validation.

        Returns: (is_valid, list_of_issues)
        """
        issues = []

        max_future_date = today + timedelta(days=self._settings.future_date_tolerance_days)
        if extracted.transaction_date and extracted.transaction_date > max_future_date:
            issues.append(ValidationIssue(
                field="transaction_date",
                issue_type="future_date",
                message=f"Transaction date ({extracted.transaction_date}) is in the future",
                severity="warning",
                suggested_fix="Please verify the date is correct",
            ))

        min_reasonable_date = today - timedelta(days=365 * self._settings.stale_date_years)
        if extracted.transaction_date and extracted.transaction_date < min_reasonable_date:
            issues.append(ValidationIssue(
                field="transaction_date",
                issue_type="suspicious_date",
                message=f"Transaction date ({extracted.transaction_date}) seems unusually old",
                severity="warning",
                suggested_fix="Please verify the date was read correctly",
            ))

        max_amount = Decimal(str(self._settings.max_transaction_amount_inr))
        if extracted.amount and extracted.amount > max_amount:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="suspicious_value",
                message=f"Amount (₹{extracted.amount:,.2f}) seems unusually high",
                severity="warning",
                suggested_fix="Please verify this amount is correct",
            ))

        if extracted.amount and extracted.amount < Decimal("1"):
            issues.append(ValidationIssue(
                field="amount",
                issue_type="suspicious_value",
                message=f"Amount (₹{extracted.amount}) seems unusually low",
                severity="warning",
                suggested_fix="Please verify this amount is correct",
            ))

        is_valid = not any(issue.severity == "error" for issue in issues)

        return is_valid, issues

    async def _check_account(
        self,
        extracted: ExtractedTransaction,
    ) -> list[ValidationIssue]:
        """Warn when the message names an account the user hasn't added."""
        if self._records is None or not extracted.last_four_digits:
            return []
        if extracted.matched_account_id is not None:
            return []

        try:
            accounts = await self._records.list_records(BANK_ACCOUNTS, BankAccount)
        except StorageError as e:
            logger.warning("account_check_failed", error=str(e))
            return []

        if any(a.last_four_digits == extracted.last_four_digits for a in accounts):
            return []
        return [ValidationIssue(
            field="last_four_digits",
            issue_type="unknown_account",
            message=f"No saved account ends in {extracted.last_four_digits}",
            severity="warning",
            suggested_fix="Add this account on the Accounts page to track its balance",
        )]

    async def _check_duplicates(
        self,
        extracted: ExtractedTransaction,
        today: date,
    ) -> list[ValidationIssue]:
        """Check for a matching saved transaction. Requires storage access."""
        if self._storage is None or extracted.amount is None:
            return []

        transaction_date = extracted.transaction_date or today
        try:
            is_duplicate = await self._storage.transaction_exists(
                amount=extracted.amount,
                transaction_type=extracted.transaction_type,
                transaction_date=transaction_date,
                merchant=extracted.merchant,
            )
        except StorageError as e:
            # Don't fail validation due to storage errors
            logger.warning("duplicate_check_failed", error=str(e))
            return []

        if not is_duplicate:
            return []
        return [ValidationIssue(
            field="duplicate",
            issue_type="potential_duplicate",
            message=(
                f"A ₹{extracted.amount} transaction"
                f"{' at ' + extracted.merchant if extracted.merchant else ''} "
                f"on {transaction_date} may already exist"
            ),
            severity="warning",
            suggested_fix="Please verify this isn't a duplicate entry",
        )]

    async def validate(
        self,
        extracted: ExtractedTransaction,
        check_duplicates: bool = True,
        today: Optional[date] = None,
    ) -> ValidationResult:
        """
        Run full two-stage validation pipeline.

        Args:
            extracted: The extracted transaction to validate
            check_duplicates: Whether to check for duplicates (requires storage)
            today: Reference date for date checks (defaults to date.today())
        """
        today = today or date.today()
        all_issues = []

        # Stage 1: Schema validation
        schema_valid, schema_issues = self._validate_schema(extracted)
        all_issues.extend(schema_issues)

        # Only run stage 2 if stage 1 passes
        semantic_valid = False
        if schema_valid:
            semantic_valid, semantic_issues = self._validate_semantic(extracted, today)
            all_issues.extend(semantic_issues)
            all_issues.extend(await self._check_account(extracted))

            if check_duplicates:
                all_issues.extend(await self._check_duplicates(extracted, today))

        warnings = [issue.message for issue in all_issues if issue.severity == "warning"]

        is_valid = schema_valid and semantic_valid

        return ValidationResult(
            extraction_id=extracted.extraction_id,
            schema_valid=schema_valid,
            semantic_valid=semantic_valid,
            is_valid=is_valid,
            can_proceed_with_review=(
                extracted.amount is not None
                and not any(issue.severity == "error" for issue in all_issues)
            ),
            issues=all_issues,
            warnings=warnings,
        )

    def get_user_friendly_summary(
        self,
        result: ValidationResult,
    ) -> str:
        """
        Generate a user-friendly summary of validation results.

        This is what we show to users before they confirm.
        """
        if result.is_valid and not result.warnings:
            return "✅ All checks passed! Please review the details below."

        lines = []

        if not result.schema_valid:
            lines.append("❌ Some required information could not be found:")
            for issue in result.issues:
                if issue.severity == "error":
                    lines.append(f"   • {issue.message}")
                    if issue.suggested_fix:
                        lines.append(f"     💡 {issue.suggested_fix}")

        if result.warnings:
            lines.append("")
            lines.append("⚠️ Please verify the following:")
            for warning in result.warnings:
                lines.append(f"   • {warning}")

        if result.can_proceed_with_review:
            lines.append("")
            lines.append("You can still proceed, but please review carefully.")
        else:
            lines.append("")
            lines.append("Please fix the issues above before continuing.")

        return "\n".join(lines).strip()
