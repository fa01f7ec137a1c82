"""
Unit tests for the Normalizer
=============================
One class per rule family, plus missing-data handling and rounding.
"""

import math

import pytest
from pydantic import ValidationError

from scoring_engine.modules.errors import InvalidAttributeValue, UnknownCategoryValue
from scoring_engine.modules.factor_registry import lead_registry, property_registry
from scoring_engine.modules.models import BuyerContext, FactorDefinition, NormalizationRule, RuleKind
from scoring_engine.modules.normalizer import MISSING_SCORE, Normalizer, round_half_up


@pytest.fixture
def registry():
    return property_registry()


@pytest.fixture
def normalizer():
    return Normalizer()


@pytest.fixture
def score(registry, normalizer):
    def _score(factor_id, raw, **context):
        return normalizer.normalize(registry.lookup(factor_id), raw, BuyerContext(**context))
    return _score


class TestMissingData:

    def test_none_scores_midpoint_and_is_flagged(self, score):
        result = score("walk_score", None)
        assert result.score == MISSING_SCORE
        assert result.missing is True

    def test_every_rule_family_treats_none_the_same(self, registry, normalizer):
        for definition in registry:
            assert normalizer.normalize(definition, None) == (MISSING_SCORE, True)

    def test_budget_without_budget_max_is_missing(self, score):
        assert score("price_vs_budget", 450000) == (MISSING_SCORE, True)


class TestBoolean:

    def test_true_and_false(self, score):
        assert score("pool", True) == (10.0, False)
        assert score("pool", False) == (0.0, False)

    def test_non_boolean_rejected(self, score):
        with pytest.raises(InvalidAttributeValue):
            score("garage", "yes")
        with pytest.raises(InvalidAttributeValue):
            score("garage", 1)


class TestBoundedScale:

    def test_index_scaled_to_ten(self, score):
        assert score("walk_score", 73).score == 7.3
        assert score("walk_score", 0).score == 0.0
        assert score("walk_score", 100).score == 10.0

    def test_out_of_range_rejected(self, score):
        with pytest.raises(InvalidAttributeValue):
            score("walk_score", 101)
        with pytest.raises(InvalidAttributeValue):
            score("walk_score", -1)

    def test_bool_is_not_a_number(self, score):
        with pytest.raises(InvalidAttributeValue):
            score("walk_score", True)

    def test_non_finite_rejected(self, score):
        with pytest.raises(InvalidAttributeValue):
            score("crime_score", math.nan)
        with pytest.raises(InvalidAttributeValue):
            score("crime_score", math.inf)

    def test_huge_integer_rejected(self, score):
        with pytest.raises(InvalidAttributeValue):
            score("walk_score", 10 ** 400)

    def test_engagement_points_out_of_25(self, normalizer):
        engagement = lead_registry().lookup("engagement")
        assert normalizer.normalize(engagement, 24).score == 9.6


class TestRatingScale:

    def test_stars_doubled(self, score):
        assert score("school_rating", 4).score == 8.0
        assert score("school_rating", 4.5).score == 9.0

    def test_outside_one_to_five_rejected(self, score):
        with pytest.raises(InvalidAttributeValue):
            score("school_rating", 0)
        with pytest.raises(InvalidAttributeValue):
            score("school_rating", 6)


class TestBudgetRelative:

    def test_at_or_below_budget_min(self, score):
        assert score("price_vs_budget", 400000, budget_min=400000, budget_max=500000).score == 10.0
        assert score("price_vs_budget", 100000, budget_max=500000).score == 10.0

    def test_at_or_above_ceiling(self, score):
        assert score("price_vs_budget", 550000, budget_max=500000).score == 0.0
        assert score("price_vs_budget", 900000, budget_max=500000).score == 0.0

    def test_linear_between_floor_and_ceiling(self, score):
        # floor defaults to 80% of budget_max: 400k..550k
        assert score("price_vs_budget", 475000, budget_max=500000).score == 5.0

    def test_explicit_budget_min_moves_floor(self, score):
        # 300k..550k
        assert score("price_vs_budget", 425000, budget_min=300000, budget_max=500000).score == 5.0


class TestCategorical:

    def test_flood_zones(self, score):
        assert score("flood_risk", "X").score == 10.0
        assert score("flood_risk", "ae").score == 4.0
        assert score("flood_risk", " VE ").score == 0.0

    def test_unmapped_code_rejected(self, score):
        with pytest.raises(UnknownCategoryValue):
            score("flood_risk", "ZZ")

    def test_non_string_rejected(self, score):
        with pytest.raises(InvalidAttributeValue):
            score("flood_risk", 5)


class TestTiered:

    def test_higher_is_better(self, score):
        assert score("sqft", 2600).score == 10.0
        assert score("sqft", 2000).score == 8.0
        assert score("sqft", 900).score == 2.0

    def test_lower_is_better(self, score):
        assert score("commute_time", 10).score == 10.0
        assert score("commute_time", 20).score == 8.0
        assert score("commute_time", 90).score == 2.0

    def test_negative_values_only_where_allowed(self, score):
        assert score("appreciation", -2).score == 0.0
        with pytest.raises(InvalidAttributeValue):
            score("sqft", -5)


class TestMinimumRelative:

    def test_against_buyer_minimum(self, score):
        assert score("bedrooms", 4, min_beds=3).score == 10.0
        assert score("bedrooms", 3, min_beds=3).score == 8.0
        assert score("bedrooms", 2, min_beds=3).score == 4.0
        assert score("bedrooms", 1, min_beds=3).score == 1.0

    def test_half_bath_steps(self, score):
        assert score("bathrooms", 2.5, min_baths=2).score == 10.0
        assert score("bathrooms", 1.5, min_baths=2).score == 5.0

    def test_without_minimum_uses_multiplier(self, score):
        assert score("bedrooms", 3).score == 6.0

    def test_clamped_to_ten(self, score):
        assert score("bathrooms", 4).score == 10.0


class TestRounding:

    def test_half_up(self):
        assert round_half_up(0.25, 1) == 0.3
        assert round_half_up(2.675, 2) == 2.68
        assert round_half_up(0.35, 1) == 0.4

    def test_scores_have_one_decimal(self, score):
        # 1/3 of the way: 425k in 400k..550k -> 8.333...
        assert score("price_vs_budget", 425000, budget_max=500000).score == 8.3


class TestRuleDefinitions:
    """Rules are checked when they are built, not when a value is scored."""

    @pytest.mark.parametrize("rule", [
        {"kind": "bounded_scale"},
        {"kind": "bounded_scale", "scale_max": 0},
        {"kind": "categorical"},
        {"kind": "categorical", "categories": {}},
        {"kind": "tiered"},
        {"kind": "tiered", "tiers": []},
        {"kind": "minimum_relative", "context_key": "min_garages", "step": 1,
         "relative_scores": [10, 8, 4, 1], "multiplier": 2},
        {"kind": "minimum_relative", "context_key": "min_beds"},
    ])
    def test_incomplete_rule_rejected(self, rule):
        with pytest.raises(ValidationError):
            NormalizationRule.model_validate(rule)

    def test_parameterless_kinds(self):
        assert NormalizationRule.model_validate({"kind": "boolean"}).kind == RuleKind.BOOLEAN
        assert NormalizationRule.model_validate({"kind": "rating_scale"}).kind == RuleKind.RATING_SCALE

    def test_category_codes_normalized_when_loaded(self, normalizer):
        definition = FactorDefinition.model_validate({
            "id": "view", "name": "View", "category": "amenities",
            "rule": {"kind": "categorical", "categories": {"ocean": 10, " city ": 6}},
        })
        assert definition.rule.categories == {"OCEAN": 10, "CITY": 6}
        assert normalizer.normalize(definition, "ocean").score == 10.0
        assert normalizer.normalize(definition, "City").score == 6.0
