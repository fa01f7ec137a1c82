"""
Factor Registry - the catalog of scoring factors.

The registry is the single source of truth for which factors exist, their
category, default weight, data source and normalization rule. Two catalogs
ship with the engine: the user-editable property catalog and the fixed lead
qualification catalog.

IMPORTANT: If you change a factor id here, also update:
  - presets.py -> preset override tables
  - attributes.py -> the attribute builders that emit this id
"""

import threading
import uuid
from collections import OrderedDict
from datetime import datetime
from typing import Iterable, Iterator, List, Optional

from .errors import DuplicateFactorId, UnknownFactor
from .models import (
    BuyerContext,
    DataSourceKind,
    FactorCategory,
    FactorDefinition,
    FactorSetting,
    NormalizationRule,
    PreferenceProfile,
    ScoringDomain,
    utc_now,
)


class FactorRegistry:
    """Ordered, id-unique collection of factor definitions."""

    def __init__(self, domain: ScoringDomain, definitions: Iterable[FactorDefinition] = ()):
        self.domain = domain
        self._factors: "OrderedDict[str, FactorDefinition]" = OrderedDict()
        self._lock = threading.Lock()
        for definition in definitions:
            self.register(definition)

    def register(self, definition: FactorDefinition) -> None:
        """
        Add a definition. The mapping is replaced, never mutated, so readers
        iterating the previous catalog on other threads are unaffected.
        """
        with self._lock:
            if definition.id in self._factors:
                raise DuplicateFactorId(definition.id)
            factors = OrderedDict(self._factors)
            factors[definition.id] = definition
            self._factors = factors

    def lookup(self, factor_id: str) -> FactorDefinition:
        try:
            return self._factors[factor_id]
        except KeyError:
            raise UnknownFactor(factor_id) from None

    def list_by_category(self, category: FactorCategory) -> List[FactorDefinition]:
        category = FactorCategory(category)
        return [f for f in self._factors.values() if f.category == category]

    def definitions(self) -> List[FactorDefinition]:
        return list(self._factors.values())

    def default_profile(
        self,
        owner: str,
        profile_id: Optional[str] = None,
        buyer_context: Optional[BuyerContext] = None,
        now: Optional[datetime] = None,
    ) -> PreferenceProfile:
        """Build a profile holding every registered factor at its defaults."""
        now = now or utc_now()
        return PreferenceProfile(
            id=profile_id or f"pref_{uuid.uuid4().hex[:12]}",
            owner=owner,
            domain=self.domain,
            factors=[
                FactorSetting(factor_id=f.id, weight=f.default_weight, enabled=f.default_enabled)
                for f in self._factors.values()
            ],
            buyer_context=buyer_context or BuyerContext(),
            created_at=now,
            updated_at=now,
        )

    def __contains__(self, factor_id: object) -> bool:
        return factor_id in self._factors

    def __iter__(self) -> Iterator[FactorDefinition]:
        return iter(self._factors.values())

    def __len__(self) -> int:
        return len(self._factors)


# Flood zone scores, declared once. FEMA codes plus the descriptive labels
# some providers return instead of a zone code.
FLOOD_ZONE_SCORES = {
    "X": 10, "MINIMAL": 10,
    "C": 9,
    "B": 7.5, "X500": 7.5, "SHADED X": 7.5, "LOW": 7.5,
    "D": 6, "MODERATE": 6,
    "A": 5, "A99": 5,
    "AE": 4, "AH": 4, "AO": 4, "AR": 4, "HIGH": 4,
    "V": 0, "VE": 0, "COASTAL": 0,
}

FIRE_RISK_SCORES = {"MINIMAL": 10, "LOW": 10, "MODERATE": 6, "HIGH": 3, "EXTREME": 1}

NOISE_LEVEL_SCORES = {
    "VERY QUIET": 10, "QUIET": 10,
    "AVERAGE": 7, "NORMAL": 7,
    "BUSY": 4, "NOISY": 4,
    "VERY NOISY": 1, "LOUD": 1,
}

TIMELINE_SCORES = {
    "asap": 10,
    "1_month": 9,
    "3_months": 7.5,
    "6_months": 5,
    "year": 2.5,
    "unspecified": 4,
}


def _factor(factor_id, name, category, description, source, weight, enabled, rule):
    return FactorDefinition(
        id=factor_id,
        name=name,
        category=category,
        description=description,
        data_source_kind=source,
        default_weight=weight,
        default_enabled=enabled,
        rule=rule,
    )


RAW = DataSourceKind.RAW_ATTRIBUTE
API = DataSourceKind.ENRICHMENT_PROVIDED
DERIVED = DataSourceKind.DERIVED


def property_factors() -> List[FactorDefinition]:
    C = FactorCategory
    return [
        # Location
        _factor("commute_time", "Commute Time", C.LOCATION, "Minutes to work address", DERIVED, 5, True,
                NormalizationRule.tiered([(15, 10), (30, 8), (45, 6), (60, 4)], higher_is_better=False,
                                         floor_score=2)),
        _factor("walk_score", "Walk Score", C.LOCATION, "Walkability rating (0-100)", API, 5, True,
                NormalizationRule.bounded(100)),
        _factor("transit_score", "Transit Score", C.LOCATION, "Public transit access (0-100)", API, 3, True,
                NormalizationRule.bounded(100)),
        _factor("bike_score", "Bike Score", C.LOCATION, "Bikeability rating (0-100)", API, 3, False,
                NormalizationRule.bounded(100)),

        # Property
        _factor("price_vs_budget", "Price vs Budget", C.FINANCIAL, "How price compares to your budget",
                DERIVED, 10, True, NormalizationRule.budget()),
        _factor("sqft", "Square Footage", C.PROPERTY, "Total living space", RAW, 6, True,
                NormalizationRule.tiered([(2500, 10), (2000, 8), (1500, 6), (1000, 4)], floor_score=2)),
        _factor("bedrooms", "Bedrooms", C.PROPERTY, "Number of bedrooms", RAW, 8, True,
                NormalizationRule.minimum_relative("min_beds", step=1, relative_scores=(10, 8, 4, 1),
                                                   multiplier=2)),
        _factor("bathrooms", "Bathrooms", C.PROPERTY, "Number of bathrooms", RAW, 6, True,
                NormalizationRule.minimum_relative("min_baths", step=0.5, relative_scores=(10, 8, 5, 2),
                                                   multiplier=3)),
        _factor("lot_size", "Lot Size", C.PROPERTY, "Property land area in sqft", RAW, 4, False,
                NormalizationRule.tiered([(43560, 10), (21780, 8), (10890, 6), (5000, 4)], floor_score=2)),
        _factor("year_built", "Year Built", C.PROPERTY, "Age of property in years", DERIVED, 4, True,
                NormalizationRule.tiered([(5, 10), (15, 8), (30, 6), (50, 4)], higher_is_better=False,
                                         floor_score=2)),
        _factor("garage", "Garage", C.PROPERTY, "Has garage", RAW, 5, True, NormalizationRule.boolean()),

        # Amenities
        _factor("pool", "Pool", C.AMENITIES, "Has swimming pool", RAW, 6, True, NormalizationRule.boolean()),
        _factor("hoa_fee", "HOA Fee", C.FINANCIAL, "Monthly HOA cost", RAW, 5, True,
                NormalizationRule.tiered([(0, 10), (100, 9), (250, 7), (500, 5), (750, 3)],
                                         higher_is_better=False, floor_score=1)),

        # Safety
        _factor("crime_score", "Crime Safety", C.SAFETY, "Area safety index, higher is safer (0-100)",
                API, 8, True, NormalizationRule.bounded(100)),
        _factor("flood_risk", "Flood Risk", C.SAFETY, "FEMA flood zone", API, 7, True,
                NormalizationRule.categorical(FLOOD_ZONE_SCORES)),
        _factor("fire_risk", "Fire Risk", C.SAFETY, "Wildfire risk level", API, 5, False,
                NormalizationRule.categorical(FIRE_RISK_SCORES)),

        # Schools
        _factor("school_rating", "School Rating", C.SCHOOLS, "Nearby school quality (1-5)", API, 8, True,
                NormalizationRule.rating()),
        _factor("school_distance", "School Distance", C.SCHOOLS, "Miles to nearest school", DERIVED, 4, False,
                NormalizationRule.tiered([(0.5, 10), (1, 8), (2, 6), (5, 4)], higher_is_better=False,
                                         floor_score=2)),

        # Environment
        _factor("air_quality", "Air Quality", C.ENVIRONMENT, "EPA air quality index, lower is better",
                API, 4, False,
                NormalizationRule.tiered([(25, 10), (50, 8), (100, 5)], higher_is_better=False,
                                         floor_score=2)),
        _factor("noise_level", "Noise Level", C.ENVIRONMENT, "Ambient noise estimate", API, 5, False,
                NormalizationRule.categorical(NOISE_LEVEL_SCORES)),
        _factor("internet_speed", "Internet Speed", C.LIFESTYLE, "Available broadband in Mbps", API, 6, True,
                NormalizationRule.tiered([(1000, 10), (500, 9), (200, 7), (100, 5), (50, 3)], floor_score=1)),

        # Investment
        _factor("rental_estimate", "Rental Potential", C.FINANCIAL, "Gross cap rate from estimated rent (%)",
                DERIVED, 3, False,
                NormalizationRule.tiered([(10, 10), (8, 8), (6, 6), (4, 4)], floor_score=2)),
        _factor("appreciation", "Appreciation Trend", C.FINANCIAL, "5-year price trend (%)", API, 4, False,
                NormalizationRule.tiered([(10, 10), (7, 8), (5, 6), (3, 4), (0, 2)], floor_score=0,
                                         min_value=None)),
    ]


def lead_factors() -> List[FactorDefinition]:
    C = FactorCategory
    return [
        _factor("budget", "Budget", C.QUALIFICATION, "Maximum stated budget", RAW, 5, True,
                NormalizationRule.tiered([(500000, 10), (300000, 8), (200000, 6), (100000, 4)], floor_score=2)),
        _factor("timeline", "Timeline", C.QUALIFICATION, "Purchase urgency from stated timeline", DERIVED, 4,
                True, NormalizationRule.categorical(TIMELINE_SCORES)),
        _factor("engagement", "Engagement", C.ENGAGEMENT, "Views, email opens and showings (0-25 points)",
                DERIVED, 5, True, NormalizationRule.bounded(25)),
        _factor("contact_completeness", "Contact Info", C.QUALIFICATION,
                "Email, phone and full name on file (0-3)", DERIVED, 3, True, NormalizationRule.bounded(3)),
        _factor("recency", "Recency", C.ENGAGEMENT, "Days since last contact", DERIVED, 3, True,
                NormalizationRule.tiered([(1, 10), (3, 8), (7, 6.5), (14, 4.5), (30, 2.5)],
                                         higher_is_better=False, floor_score=0.5)),
    ]


def property_registry() -> FactorRegistry:
    return FactorRegistry(ScoringDomain.PROPERTY, property_factors())


def lead_registry() -> FactorRegistry:
    return FactorRegistry(ScoringDomain.LEAD, lead_factors())
