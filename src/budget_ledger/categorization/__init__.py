"""Transaction categorization building blocks.

Rule predicates, merchant normalization and the static keyword table are pure
and side-effect free; the resolver in ``budget_ledger.services.categorization``
combines them with the owner's rules and learned patterns.
"""

from .keywords import KEYWORD_TABLE, match_keywords
from .rules import TransactionFacts, normalize_merchant, predicate_for

__all__ = [
    "KEYWORD_TABLE",
    "TransactionFacts",
    "match_keywords",
    "normalize_merchant",
    "predicate_for",
]
