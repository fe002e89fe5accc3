"""
Text Extraction Package

Reads transactions out of bank SMS, emails, voice transcripts and chat
messages. Output is always a proposal that the user must confirm.
"""

from smart_budget.extraction.categorizer import CategoryMatch, categorize
from smart_budget.extraction.extractor import (
    ExtractionError,
    ExtractionFailedError,
    TransactionTextExtractor,
    detect_type,
    match_account,
    parse_account_digits,
    parse_amount,
    parse_date,
    parse_merchant,
)

__all__ = [
    "CategoryMatch",
    "categorize",
    "ExtractionError",
    "ExtractionFailedError",
    "TransactionTextExtractor",
    "detect_type",
    "match_account",
    "parse_account_digits",
    "parse_amount",
    "parse_date",
    "parse_merchant",
]
