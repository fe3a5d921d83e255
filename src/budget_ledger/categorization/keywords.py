"""Static keyword fallback, the last-resort classifier.

The table maps default category names to keyword tuples. It is built once at
import time and exposed read-only; table order is match order.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Iterable, Mapping
from uuid import UUID

INCOME_CATEGORY = "Income"

KEYWORD_TABLE: Mapping[str, tuple[str, ...]] = MappingProxyType(
    {
        "Food & Dining": (
            "restaurant", "cafe", "coffee", "pizza", "burger", "doordash", "ubereats",
            "grubhub", "starbucks", "mcdonald", "chipotle", "subway", "dunkin", "taco",
            "wendys", "chick-fil-a", "panera", "dominos", "instacart", "postmates",
        ),
        "Transportation": (
            "uber", "lyft", "gas", "fuel", "parking", "transit", "metro", "shell",
            "chevron", "exxon", "bp", "mobil", "speedway", "wawa", "sunoco",
            "car wash", "toll", "dmv", "parking meter",
        ),
        "Shopping": (
            "amazon", "target", "walmart", "costco", "ebay", "etsy", "bestbuy",
            "home depot", "lowes", "ikea", "macys", "nordstrom", "kohls", "tj maxx",
            "marshalls", "ross", "old navy", "gap", "zara", "h&m",
        ),
        "Entertainment": (
            "netflix", "spotify", "hulu", "disney", "hbo", "movie", "theater",
            "concert", "ticketmaster", "amc", "regal", "apple music", "youtube",
            "playstation", "xbox", "nintendo", "steam", "twitch",
        ),
        "Utilities": (
            "electric", "water", "internet", "phone", "verizon", "att", "comcast",
            "xfinity", "spectrum", "t-mobile", "sprint", "pge", "edison", "gas bill",
        ),
        "Healthcare": (
            "pharmacy", "cvs", "walgreens", "doctor", "hospital", "medical", "dental",
            "optometrist", "urgent care", "clinic", "rite aid", "prescription",
            "health insurance", "copay",
        ),
        "Subscriptions": (
            "subscription", "membership", "annual", "monthly fee", "patreon",
            "substack", "medium", "linkedin premium", "dropbox", "icloud",
            "google storage", "adobe",
        ),
        "Housing": (
            "rent", "mortgage", "hoa", "property tax", "home insurance",
            "renters insurance", "apartment", "landlord",
        ),
        "Personal Care": (
            "salon", "barber", "spa", "nail", "haircut", "massage", "gym",
            "fitness", "planet fitness", "equinox", "sephora", "ulta",
        ),
        "Education": (
            "tuition", "school", "university", "college", "textbook", "udemy",
            "coursera", "skillshare", "masterclass", "student loan",
        ),
        INCOME_CATEGORY: (
            "payroll", "direct deposit", "salary", "paycheck", "wages",
            "dividend", "interest", "refund", "reimbursement", "venmo", "zelle",
        ),
    }
)


def _income_category(categories: Iterable) -> UUID | None:
    income = [c for c in categories if c.is_income]
    for category in income:
        if category.name == INCOME_CATEGORY:
            return category.id
    return income[0].id if income else None


def match_keywords(
    merchant_name: str | None,
    description: str | None,
    amount: int,
    categories: Iterable,
    table: Mapping[str, tuple[str, ...]] = KEYWORD_TABLE,
) -> UUID | None:
    """Return the owner's category id whose keywords appear in merchant/description.

    Money in (amount > 0) is first checked against the income keywords and
    resolved to the owner's income-flagged category. Then every non-income
    entry is checked in table order; a keyword hit only counts when the owner
    has a category with that name.
    """
    categories = list(categories)
    search_text = f"{(merchant_name or '').lower()} {(description or '').lower()}"

    if amount > 0:
        income_id = _income_category(categories)
        if income_id is not None and any(kw in search_text for kw in table.get(INCOME_CATEGORY, ())):
            return income_id

    by_name = {c.name: c.id for c in categories}
    for category_name, keywords in table.items():
        if category_name == INCOME_CATEGORY:
            continue
        if any(kw in search_text for kw in keywords):
            category_id = by_name.get(category_name)
            if category_id is not None:
                return category_id

    return None
