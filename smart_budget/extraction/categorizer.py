"""
Keyword Categoriser

Maps free text (merchant, description, SMS body) to a Category and an
optional subcategory.

DESIGN DECISION: We use simple keyword matching rather than ML because:
1. More transparent to the user
2. Easier to debug
3. User confirms anyway

Keywords match on whole words only, so "ola" does not fire on "Motorola"
and "rent" does not fire on "current". Categories are checked in table
order; the first hit wins.
"""

import re
from typing import NamedTuple, Optional

from smart_budget.models.transaction import Category, TransactionType


CATEGORY_KEYWORDS: list[tuple[Category, tuple[str, ...]]] = [
    (Category.SALARY, (
        "salary", "payroll", "stipend", "bonus", "wages",
    )),
    (Category.FOOD, (
        "swiggy", "zomato", "uber eats", "restaurant", "cafe", "coffee",
        "starbucks", "mcdonalds", "mcdonald's", "dominos", "domino's", "pizza",
        "burger", "kfc", "subway", "food", "dining", "lunch", "dinner",
        "breakfast", "snacks", "biryani", "dosa", "idli", "tea", "juice",
        "bakery",
    )),
    (Category.GROCERIES, (
        "bigbasket", "blinkit", "grofers", "zepto", "instamart", "dmart",
        "reliance fresh", "more supermarket", "grocery", "groceries",
        "supermarket", "vegetables", "fruits", "milk", "kirana",
    )),
    (Category.TRANSPORTATION, (
        "uber", "ola", "rapido", "metro", "bus", "taxi", "cab",
        "rickshaw", "petrol", "diesel", "fuel", "parking", "toll", "fastag",
    )),
    (Category.SHOPPING, (
        "amazon", "flipkart", "myntra", "ajio", "meesho", "nykaa", "mall",
        "shopping", "clothes", "shoes", "electronics", "croma",
    )),
    (Category.ENTERTAINMENT, (
        "netflix", "hotstar", "prime video", "spotify", "bookmyshow",
        "movie", "movies", "cinema", "pvr", "inox", "concert", "gaming",
    )),
    (Category.UTILITIES, (
        "electricity", "bescom", "water bill", "gas", "broadband", "wifi",
        "internet", "airtel", "jio", "vodafone", "bsnl", "recharge",
        "mobile bill", "dth",
    )),
    (Category.HEALTHCARE, (
        "hospital", "apollo", "fortis", "pharmacy", "medical", "medicine",
        "medicines", "doctor", "clinic", "pharmeasy", "netmeds", "dental",
        "diagnostic",
    )),
    (Category.EDUCATION, (
        "school", "college", "tuition", "course", "udemy", "coursera",
        "byjus", "books", "exam", "university",
    )),
    (Category.TRAVEL, (
        "makemytrip", "goibibo", "irctc", "indigo", "air india", "flight",
        "hotel", "oyo", "airbnb", "train", "trip", "vacation",
    )),
    (Category.INVESTMENT, (
        "mutual fund", "sip", "zerodha", "groww", "stocks", "shares",
        "fixed deposit", "ppf", "nps", "investment",
    )),
    (Category.INSURANCE, (
        "insurance", "lic", "premium", "policy",
    )),
    (Category.TAX_LEGAL, (
        "tax", "gst", "tds", "lawyer", "legal", "notary", "stamp duty",
    )),
    (Category.GIFTS_CHARITY, (
        "gift", "gifts", "donation", "charity", "temple", "ngo",
    )),
    (Category.RENT, (
        "rent", "landlord", "lease",
    )),
]

SUBCATEGORY_KEYWORDS: dict[Category, list[tuple[str, tuple[str, ...]]]] = {
    Category.FOOD: [
        ("Food Delivery", ("swiggy", "zomato", "uber eats")),
        ("Pizza", ("pizza", "dominos", "domino's")),
        ("Fast Food", ("mcdonalds", "mcdonald's", "burger", "kfc", "subway")),
        ("South Indian", ("dosa", "idli")),
        ("Beverages", ("coffee", "tea", "juice", "starbucks", "cafe")),
    ],
    Category.TRANSPORTATION: [
        ("Cab", ("uber", "ola", "rapido", "taxi", "cab", "rickshaw")),
        ("Fuel", ("petrol", "diesel", "fuel")),
        ("Public Transport", ("metro", "bus")),
    ],
    Category.SHOPPING: [
        ("Online", ("amazon", "flipkart", "myntra", "ajio", "meesho", "nykaa")),
    ],
    Category.ENTERTAINMENT: [
        ("Streaming", ("netflix", "hotstar", "prime video", "spotify")),
        ("Movies", ("movie", "movies", "cinema", "pvr", "inox", "bookmyshow")),
    ],
    Category.UTILITIES: [
        ("Electricity", ("electricity", "bescom")),
        ("Mobile", ("recharge", "mobile bill", "airtel", "jio", "vodafone")),
        ("Internet", ("broadband", "wifi", "internet")),
    ],
    Category.HEALTHCARE: [
        ("Pharmacy", ("pharmacy", "medicine", "medicines", "pharmeasy", "netmeds")),
    ],
    Category.TRAVEL: [
        ("Flights", ("flight", "indigo", "air india")),
        ("Hotels", ("hotel", "oyo", "airbnb")),
        ("Trains", ("irctc", "train")),
    ],
}

MATCH_CONFIDENCE = 0.9
FALLBACK_CONFIDENCE = 0.4


def _keyword_pattern(keywords: tuple[str, ...]) -> re.Pattern:
    alternatives = "|".join(re.escape(kw) for kw in sorted(keywords, key=len, reverse=True))
    return re.compile(rf"(?<![\w])(?:{alternatives})(?![\w])", re.IGNORECASE)


_CATEGORY_PATTERNS = [
    (category, _keyword_pattern(keywords)) for category, keywords in CATEGORY_KEYWORDS
]
_SUBCATEGORY_PATTERNS = {
    category: [(name, _keyword_pattern(keywords)) for name, keywords in entries]
    for category, entries in SUBCATEGORY_KEYWORDS.items()
}


class CategoryMatch(NamedTuple):
    category: Category
    subcategory: Optional[str]
    confidence: float


def categorize(
    text: Optional[str],
    transaction_type: Optional[TransactionType] = None,
) -> CategoryMatch:
    """
    Suggest a category for a piece of text.

    This is a SUGGESTION only - the user can always override it.
    Salary keywords only count for credits; an unmatched credit falls back
    to Income rather than Other.
    """
    fallback = (
        Category.INCOME
        if transaction_type == TransactionType.CREDIT
        else Category.OTHER
    )
    if not text or not text.strip():
        return CategoryMatch(fallback, None, FALLBACK_CONFIDENCE)

    for category, pattern in _CATEGORY_PATTERNS:
        if category == Category.SALARY and transaction_type == TransactionType.DEBIT:
            continue
        if pattern.search(text):
            return CategoryMatch(category, _subcategory(category, text), MATCH_CONFIDENCE)

    return CategoryMatch(fallback, None, FALLBACK_CONFIDENCE)


def _subcategory(category: Category, text: str) -> Optional[str]:
    for name, pattern in _SUBCATEGORY_PATTERNS.get(category, []):
        if pattern.search(text):
            return name
    return None
