"""
Scoring Suite - the public operations for one factor catalog.

Bundles a registry with its engine, batch ranker and preset library. The
property suite is user-editable; the lead suite scores every lead against the
fixed lead-qualification profile.
"""

from datetime import datetime, timezone
from typing import Iterable, Optional, Sequence, Tuple

from .attributes import LeadRecord, build_lead_attributes
from .batch_ranker import DEFAULT_PARALLEL_THRESHOLD, BatchRanker
from .factor_registry import FactorRegistry, lead_registry, property_registry
from .models import (
    AggregateScore,
    AttributeMap,
    BatchReport,
    BuyerContext,
    FactorDefinition,
    PreferenceProfile,
)
from .presets import LEAD_QUALIFICATION, PresetLibrary, lead_presets, property_presets, update_factor
from .score_calculator import WeightedFactorEngine

LEAD_PROFILE_ID = "lead-qualification"
# Fixed timestamp so the lead profile is identical on every process
LEAD_PROFILE_CREATED = datetime(2024, 1, 1, tzinfo=timezone.utc)


class ScoringSuite:

    def __init__(self, registry: FactorRegistry, presets: PresetLibrary,
                 max_workers: Optional[int] = None,
                 parallel_threshold: int = DEFAULT_PARALLEL_THRESHOLD):
        self.registry = registry
        self.presets = presets
        self.engine = WeightedFactorEngine(registry)
        self.ranker = BatchRanker(self.engine, max_workers=max_workers,
                                  parallel_threshold=parallel_threshold)

    @property
    def domain(self):
        return self.registry.domain

    def register_factor(self, definition: FactorDefinition) -> None:
        self.registry.register(definition)

    def compute_score(self, attributes: AttributeMap, profile: PreferenceProfile,
                      entity_id: str = "") -> AggregateScore:
        return self.engine.compute_score(attributes, profile, entity_id=entity_id)

    def rank_batch(self, entities: Sequence[Tuple[str, AttributeMap]],
                   profile: PreferenceProfile) -> BatchReport:
        return self.ranker.rank_batch(entities, profile)

    def apply_preset(self, profile: PreferenceProfile, preset_name: str,
                     now: Optional[datetime] = None) -> PreferenceProfile:
        return self.presets.apply_preset(profile, preset_name, now=now)

    def update_factor(self, profile: PreferenceProfile, factor_id: str, weight: Optional[int] = None,
                      enabled: Optional[bool] = None, now: Optional[datetime] = None) -> PreferenceProfile:
        return update_factor(self.registry, profile, factor_id, weight=weight, enabled=enabled, now=now)

    def default_profile(self, owner: str, profile_id: Optional[str] = None,
                        buyer_context: Optional[BuyerContext] = None,
                        preset_name: Optional[str] = None,
                        now: Optional[datetime] = None) -> PreferenceProfile:
        profile = self.registry.default_profile(owner, profile_id=profile_id,
                                                buyer_context=buyer_context, now=now)
        if preset_name:
            profile = self.apply_preset(profile, preset_name, now=now)
        return profile


class LeadScoringSuite(ScoringSuite):
    """Lead grading: one fixed, locked profile for every lead."""

    def lead_profile(self) -> PreferenceProfile:
        return self.default_profile(
            owner="system",
            profile_id=LEAD_PROFILE_ID,
            preset_name=LEAD_QUALIFICATION,
            now=LEAD_PROFILE_CREATED,
        )

    def grade_lead(self, lead: LeadRecord, as_of: datetime) -> AggregateScore:
        return self.compute_score(build_lead_attributes(lead, as_of), self.lead_profile(), entity_id=lead.id)

    def grade_leads(self, leads: Iterable[LeadRecord], as_of: datetime) -> BatchReport:
        entities = [(lead.id, build_lead_attributes(lead, as_of)) for lead in leads]
        return self.rank_batch(entities, self.lead_profile())


def property_suite(max_workers: Optional[int] = None,
                   parallel_threshold: int = DEFAULT_PARALLEL_THRESHOLD) -> ScoringSuite:
    registry = property_registry()
    return ScoringSuite(registry, property_presets(registry), max_workers=max_workers,
                        parallel_threshold=parallel_threshold)


def lead_suite(max_workers: Optional[int] = None,
               parallel_threshold: int = DEFAULT_PARALLEL_THRESHOLD) -> LeadScoringSuite:
    registry = lead_registry()
    return LeadScoringSuite(registry, lead_presets(registry), max_workers=max_workers,
                            parallel_threshold=parallel_threshold)
