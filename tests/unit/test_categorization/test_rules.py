from types import SimpleNamespace

import pytest

from budget_ledger.categorization.rules import (
    AmountRangeMatch,
    CombinedMatch,
    DescriptionMatch,
    MerchantMatch,
    NeverMatch,
    TransactionFacts,
    predicate_for,
    split_keywords,
)
from budget_ledger.models.enums import RuleMatchType


def make_rule(**overrides):
    fields = {
        "match_type": RuleMatchType.merchant,
        "merchant_pattern": None,
        "description_pattern": None,
        "amount_min": None,
        "amount_max": None,
        "is_exact_match": False,
    }
    fields.update(overrides)
    return SimpleNamespace(**fields)


def facts(merchant="UBER *TRIP", description="Ride downtown", amount=-1532):
    return TransactionFacts(merchant, description, amount)


class TestMerchantMatch:
    def test_substring_is_case_insensitive(self):
        assert MerchantMatch("uber").matches(facts())

    def test_exact_requires_full_equality(self):
        assert not MerchantMatch("uber", exact=True).matches(facts())
        assert MerchantMatch("uber *trip", exact=True).matches(facts())

    def test_missing_merchant_never_matches(self):
        assert not MerchantMatch("uber").matches(facts(merchant=None))


class TestDescriptionMatch:
    def test_any_keyword_in_description(self):
        assert DescriptionMatch(("rent", "ride")).matches(facts())

    def test_keyword_may_hit_merchant(self):
        assert DescriptionMatch(("trip",)).matches(facts(description=None))

    def test_no_keyword_present(self):
        assert not DescriptionMatch(("grocery", "pharmacy")).matches(facts())


class TestAmountRangeMatch:
    def test_uses_absolute_amount(self):
        assert AmountRangeMatch(1000, 2000).matches(facts(amount=-1532))
        assert AmountRangeMatch(1000, 2000).matches(facts(amount=1532))

    def test_bounds_are_inclusive(self):
        assert AmountRangeMatch(1532, 1532).matches(facts())

    def test_missing_bound_is_unbounded(self):
        assert AmountRangeMatch(minimum=1000).matches(facts(amount=-10**9))
        assert AmountRangeMatch(maximum=2000).matches(facts(amount=0))
        assert not AmountRangeMatch(minimum=2000).matches(facts())


class TestCombinedMatch:
    def test_all_present_conditions_must_hold(self):
        combined = CombinedMatch(
            merchant=MerchantMatch("uber"), amount=AmountRangeMatch(maximum=1000)
        )
        assert not combined.matches(facts())
        assert combined.matches(facts(amount=-900))

    def test_omitted_conditions_are_vacuous(self):
        assert CombinedMatch(description=DescriptionMatch(("ride",))).matches(facts())


def test_split_keywords_trims_lowercases_and_drops_empty():
    assert split_keywords(" Rent , ,MORTGAGE,") == ("rent", "mortgage")
    assert split_keywords(None) == ()


def test_predicate_for_builds_each_variant():
    assert isinstance(
        predicate_for(make_rule(merchant_pattern="uber")), MerchantMatch
    )
    assert isinstance(
        predicate_for(
            make_rule(match_type=RuleMatchType.description, description_pattern="rent")
        ),
        DescriptionMatch,
    )
    assert isinstance(
        predicate_for(make_rule(match_type=RuleMatchType.amount_range, amount_max=500)),
        AmountRangeMatch,
    )
    combined = predicate_for(
        make_rule(match_type="combined", merchant_pattern="uber", amount_min=100)
    )
    assert isinstance(combined, CombinedMatch)
    assert combined.description is None


@pytest.mark.parametrize(
    "rule",
    [
        make_rule(match_type=RuleMatchType.merchant, merchant_pattern=None),
        make_rule(match_type=RuleMatchType.description, description_pattern=" , "),
        make_rule(match_type=RuleMatchType.amount_range),
    ],
)
def test_predicate_for_rule_missing_its_pattern_never_matches(rule):
    predicate = predicate_for(rule)
    assert isinstance(predicate, NeverMatch)
    assert not predicate.matches(facts())


def test_predicate_for_unknown_match_type():
    with pytest.raises(ValueError):
        predicate_for(make_rule(match_type="regex"))
