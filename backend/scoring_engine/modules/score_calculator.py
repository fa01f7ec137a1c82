"""
Weighted Factor Engine - combines normalized factor scores into one total.

Total is 100 * sum(weighted) / sum(max possible) over enabled factors only,
graded on fixed cut points and classified on the profile's own tiers. The
same engine grades leads and ranks properties; only the registry and the
profile differ.

IMPORTANT: If you change the grade cut points here, also update:
  - recommendation.py -> top tier wording
  - tests/test_score_calculator.py
"""

from typing import List, Optional

from .errors import InvalidProfile, UnknownFactor
from .factor_registry import FactorRegistry
from .logger import get_logger
from .models import (
    AggregateScore,
    AttributeMap,
    FactorScore,
    PreferenceProfile,
    check_weight,
)
from .normalizer import Normalizer, round_half_up
from .recommendation import recommend

GRADE_CUTOFFS = [(80, 'A'), (60, 'B'), (40, 'C'), (20, 'D')]


def grade_for(total_score: float) -> str:
    for cutoff, grade in GRADE_CUTOFFS:
        if total_score >= cutoff:
            return grade
    return 'F'


def classify(total_score: float, profile: PreferenceProfile) -> str:
    for tier in profile.classification_tiers:
        if total_score >= tier.min_percentage:
            return tier.label
    return profile.classification_tiers[-1].label


class WeightedFactorEngine:
    """Scores one attribute map against one profile. Holds no per-call state."""

    def __init__(self, registry: FactorRegistry, normalizer: Optional[Normalizer] = None):
        self.registry = registry
        self.normalizer = normalizer or Normalizer()
        self.logger = get_logger()

    def validate_profile(self, profile: PreferenceProfile) -> None:
        """Reject a profile before any scoring work is done."""
        if profile.domain != self.registry.domain:
            raise InvalidProfile(
                f"Profile {profile.id!r} is a {profile.domain.value} profile, "
                f"engine scores {self.registry.domain.value}"
            )

        enabled = profile.enabled_factors()
        if not enabled:
            raise InvalidProfile(f"Profile {profile.id!r} has no enabled factors")

        for setting in enabled:
            check_weight(setting.weight, setting.factor_id)

    def compute_score(self, attributes: AttributeMap, profile: PreferenceProfile,
                      entity_id: str = "") -> AggregateScore:
        """
        Score one entity.

        Raises:
            InvalidProfile: no enabled factors, or a weight outside 1-10
            UnknownFactor: attribute map or profile names an unregistered factor
            UnknownCategoryValue / InvalidAttributeValue: a raw value the
                factor's rule cannot map
        """
        self.validate_profile(profile)

        for factor_id in attributes:
            if factor_id not in self.registry:
                raise UnknownFactor(factor_id)

        breakdown: List[FactorScore] = []
        total_weighted = 0.0
        total_possible = 0

        for setting in profile.enabled_factors():
            definition = self.registry.lookup(setting.factor_id)
            raw = attributes.get(setting.factor_id)

            normalized = self.normalizer.normalize(definition, raw, profile.buyer_context)
            self.logger.factor_scored(entity_id, definition.id, raw, normalized.score, normalized.missing)

            weighted = round_half_up(normalized.score * setting.weight, 1)
            max_possible = 10 * setting.weight
            breakdown.append(FactorScore(
                factor_id=definition.id,
                factor_name=definition.name,
                raw_value=raw,
                normalized_score=normalized.score,
                weight=setting.weight,
                weighted_score=weighted,
                max_possible=max_possible,
                missing_data=normalized.missing,
            ))
            total_weighted += weighted
            total_possible += max_possible

        # Clamp against floating-point drift
        total_score = round_half_up(min(100.0, max(0.0, 100 * total_weighted / total_possible)), 2)

        classification = classify(total_score, profile)
        return AggregateScore(
            entity_id=entity_id,
            total_score=total_score,
            grade=grade_for(total_score),
            classification=classification,
            breakdown=breakdown,
            recommendation=recommend(breakdown, classification, profile),
        )
