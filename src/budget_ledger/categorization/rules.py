"""Rule predicates and merchant normalization.

A categorization rule is one of a closed set of variants (merchant,
description, amount range, combined). Each variant carries only the fields it
needs and evaluates itself; ``predicate_for`` turns a stored ``Rule`` row into
its variant so the resolver never branches on the ``match_type`` string.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Union

from budget_ledger.models.enums import RuleMatchType

_STORE_NUMBER = re.compile(r"\s*#\d+.*$", re.DOTALL)
_LONG_DIGIT_RUN = re.compile(r"\s*\d{5,}.*$", re.DOTALL)
_NON_ALNUM = re.compile(r"[^\w\s]|_")
_WHITESPACE = re.compile(r"\s+")


def normalize_merchant(merchant: str | None) -> str:
    """Normalize a merchant name into the key used for learned patterns.

    "STARBUCKS #4521 NYC" -> "starbucks", "SHELL OIL 57442 AUSTIN" -> "shell oil".
    Returns "" when nothing meaningful is left; callers treat that as no merchant.
    """
    text = (merchant or "").lower()
    text = _STORE_NUMBER.sub("", text)
    text = _LONG_DIGIT_RUN.sub("", text)
    text = _NON_ALNUM.sub("", text)
    # Removing punctuation can join digit groups ("12-34567"); strip the new run
    # too so normalizing twice gives the same key.
    text = _LONG_DIGIT_RUN.sub("", text)
    return _WHITESPACE.sub(" ", text).strip()


def split_keywords(pattern: str | None) -> tuple[str, ...]:
    """Split a comma-separated description pattern into lower-cased keywords."""
    if not pattern:
        return ()
    keywords = (part.strip().lower() for part in pattern.split(","))
    return tuple(keyword for keyword in keywords if keyword)


@dataclass(frozen=True)
class TransactionFacts:
    """The parts of a transaction a rule can look at."""

    merchant_name: str | None
    description: str | None
    amount: int

    @property
    def merchant_lower(self) -> str:
        return (self.merchant_name or "").lower()

    @property
    def description_lower(self) -> str:
        return (self.description or "").lower()


@dataclass(frozen=True)
class MerchantMatch:
    pattern: str
    exact: bool = False

    def matches(self, txn: TransactionFacts) -> bool:
        needle = self.pattern.lower()
        if not needle:
            return False
        merchant = txn.merchant_lower
        return merchant == needle if self.exact else needle in merchant


@dataclass(frozen=True)
class DescriptionMatch:
    keywords: tuple[str, ...]

    def matches(self, txn: TransactionFacts) -> bool:
        description = txn.description_lower
        merchant = txn.merchant_lower
        return any(kw in description or kw in merchant for kw in self.keywords)


@dataclass(frozen=True)
class AmountRangeMatch:
    """Bounds are inclusive and compared against ``abs(amount)``."""

    minimum: int | None = None
    maximum: int | None = None

    def matches(self, txn: TransactionFacts) -> bool:
        amount = abs(txn.amount)
        if self.minimum is not None and amount < self.minimum:
            return False
        if self.maximum is not None and amount > self.maximum:
            return False
        return True


@dataclass(frozen=True)
class CombinedMatch:
    """AND of whichever sub-conditions are present; absent ones always hold."""

    merchant: MerchantMatch | None = None
    description: DescriptionMatch | None = None
    amount: AmountRangeMatch | None = None

    def matches(self, txn: TransactionFacts) -> bool:
        conditions = (self.merchant, self.description, self.amount)
        return all(cond.matches(txn) for cond in conditions if cond is not None)


RulePredicate = Union[MerchantMatch, DescriptionMatch, AmountRangeMatch, CombinedMatch]


class NeverMatch:
    """Stand-in for a stored rule whose required pattern is missing."""

    def matches(self, txn: TransactionFacts) -> bool:
        return False


def predicate_for(rule) -> RulePredicate | NeverMatch:
    """Build the predicate variant for a stored rule.

    Rules are validated before persistence, but rows edited outside the service
    may still lack their pattern; those never match instead of matching everything.
    """
    match_type = RuleMatchType(rule.match_type)

    if match_type is RuleMatchType.merchant:
        if not rule.merchant_pattern:
            return NeverMatch()
        return MerchantMatch(rule.merchant_pattern, bool(rule.is_exact_match))

    if match_type is RuleMatchType.description:
        keywords = split_keywords(rule.description_pattern)
        if not keywords:
            return NeverMatch()
        return DescriptionMatch(keywords)

    if match_type is RuleMatchType.amount_range:
        if rule.amount_min is None and rule.amount_max is None:
            return NeverMatch()
        return AmountRangeMatch(rule.amount_min, rule.amount_max)

    if match_type is RuleMatchType.combined:
        keywords = split_keywords(rule.description_pattern)
        has_amount = rule.amount_min is not None or rule.amount_max is not None
        return CombinedMatch(
            merchant=(
                MerchantMatch(rule.merchant_pattern, bool(rule.is_exact_match))
                if rule.merchant_pattern
                else None
            ),
            description=DescriptionMatch(keywords) if keywords else None,
            amount=AmountRangeMatch(rule.amount_min, rule.amount_max) if has_amount else None,
        )

    raise ValueError(f"Unsupported match type: {rule.match_type}")
