"""
Normalizer - maps one raw attribute value onto the common 0-10 scale.

Each rule family is a separate method, looked up from the factor's
``NormalizationRule.kind``. Scores are rounded to one decimal (half up) so
breakdowns come out identical on every platform.

Missing values (absent key or None) always score the scale midpoint and are
flagged, whatever the rule family.
"""

import math
from decimal import ROUND_HALF_UP, Decimal
from typing import NamedTuple, Optional

from .errors import InvalidAttributeValue, UnknownCategoryValue
from .models import BuyerContext, FactorDefinition, RawValue, RuleKind

MAX_SCORE = 10.0
MISSING_SCORE = 5.0

# Price at or above budget_max * this factor scores 0
BUDGET_CEILING_FACTOR = 1.1
# Lower budget bound used when the buyer only gave a maximum
DEFAULT_BUDGET_MIN_RATIO = 0.8


def round_half_up(value: float, places: int) -> float:
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP))


class NormalizedValue(NamedTuple):
    score: float
    missing: bool


class Normalizer:
    """Stateless rule-table normalizer. Safe to share between threads."""

    def __init__(self):
        self._rules = {
            RuleKind.BOOLEAN: self._boolean,
            RuleKind.BOUNDED_SCALE: self._bounded_scale,
            RuleKind.RATING_SCALE: self._rating_scale,
            RuleKind.BUDGET_RELATIVE: self._budget_relative,
            RuleKind.CATEGORICAL: self._categorical,
            RuleKind.TIERED: self._tiered,
            RuleKind.MINIMUM_RELATIVE: self._minimum_relative,
        }

    def normalize(self, definition: FactorDefinition, raw: RawValue,
                  context: Optional[BuyerContext] = None) -> NormalizedValue:
        if raw is None:
            return NormalizedValue(MISSING_SCORE, True)

        score = self._rules[definition.rule.kind](definition, raw, context or BuyerContext())
        if score is None:
            # The rule needs buyer context the profile does not carry
            return NormalizedValue(MISSING_SCORE, True)

        score = min(MAX_SCORE, max(0.0, score))
        return NormalizedValue(round_half_up(score, 1), False)

    # ----- Value checks -----

    @staticmethod
    def _number(definition: FactorDefinition, raw: RawValue) -> float:
        if isinstance(raw, bool) or not isinstance(raw, (int, float)):
            raise InvalidAttributeValue(definition.id, raw, "expected a number")
        try:
            value = float(raw)
        except OverflowError:
            raise InvalidAttributeValue(definition.id, raw, "number out of range") from None
        if math.isnan(value) or math.isinf(value):
            raise InvalidAttributeValue(definition.id, raw, "expected a finite number")
        min_value = definition.rule.min_value
        if min_value is not None and value < min_value:
            raise InvalidAttributeValue(definition.id, raw, f"must be >= {min_value:g}")
        return value

    # ----- Rule families -----

    def _boolean(self, definition, raw, context):
        if not isinstance(raw, bool):
            raise InvalidAttributeValue(definition.id, raw, "expected true or false")
        return MAX_SCORE if raw else 0.0

    def _bounded_scale(self, definition, raw, context):
        """0..scale_max linearly onto 0..10 (a 0-100 index becomes raw / 10)."""
        value = self._number(definition, raw)
        scale_max = definition.rule.scale_max
        if value > scale_max:
            raise InvalidAttributeValue(definition.id, raw, f"must be <= {scale_max:g}")
        return value / scale_max * MAX_SCORE

    def _rating_scale(self, definition, raw, context):
        """1-5 star rating, doubled."""
        value = self._number(definition, raw)
        if not 1 <= value <= 5:
            raise InvalidAttributeValue(definition.id, raw, "rating must be between 1 and 5")
        return value * 2

    def _budget_relative(self, definition, raw, context):
        """
        Price against the buyer's budget.

        10 at or below budget_min, 0 at or above budget_max * 1.1, linear in
        between. Without budget_max the factor cannot be judged and is
        treated as missing.
        """
        price = self._number(definition, raw)
        if context.budget_max is None:
            return None

        ceiling = context.budget_max * BUDGET_CEILING_FACTOR
        floor = context.budget_min
        if floor is None:
            floor = context.budget_max * DEFAULT_BUDGET_MIN_RATIO

        if price <= floor:
            return MAX_SCORE
        if price >= ceiling:
            return 0.0
        return MAX_SCORE * (ceiling - price) / (ceiling - floor)

    def _categorical(self, definition, raw, context):
        if not isinstance(raw, str):
            raise InvalidAttributeValue(definition.id, raw, "expected a category code")
        key = raw.strip().upper()
        try:
            return float(definition.rule.categories[key])
        except KeyError:
            raise UnknownCategoryValue(definition.id, raw) from None

    def _tiered(self, definition, raw, context):
        value = self._number(definition, raw)
        rule = definition.rule
        for threshold, score in rule.tiers:
            if rule.higher_is_better and value >= threshold:
                return score
            if not rule.higher_is_better and value <= threshold:
                return score
        return rule.floor_score

    def _minimum_relative(self, definition, raw, context):
        """
        Counts (bedrooms, bathrooms) against the buyer's minimum.

        With a minimum: one step above it scores best, meeting it next, one
        step short next, anything less scores lowest. Without a minimum the
        count is scaled by the rule's multiplier.
        """
        value = self._number(definition, raw)
        rule = definition.rule
        minimum = getattr(context, rule.context_key)
        if minimum is None:
            return value * rule.multiplier

        above, meets, near, below = rule.relative_scores
        if value >= minimum + rule.step:
            return above
        if value >= minimum:
            return meets
        if value >= minimum - rule.step:
            return near
        return below
