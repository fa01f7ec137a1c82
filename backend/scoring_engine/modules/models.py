"""
Scoring data model - factor definitions, preference profiles and score results.

All types are pydantic models so they serialize to and from JSON without
loss. Profiles are frozen: preset application and factor edits return new
profile instances instead of mutating the one they were given.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .errors import InvalidProfile


RawValue = Optional[Union[bool, int, float, str]]
AttributeMap = Dict[str, RawValue]

MIN_WEIGHT = 1
MAX_WEIGHT = 10


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class FactorCategory(str, Enum):
    LOCATION = "location"
    PROPERTY = "property"
    FINANCIAL = "financial"
    LIFESTYLE = "lifestyle"
    SAFETY = "safety"
    SCHOOLS = "schools"
    ENVIRONMENT = "environment"
    AMENITIES = "amenities"
    # Lead factor set
    QUALIFICATION = "qualification"
    ENGAGEMENT = "engagement"


class DataSourceKind(str, Enum):
    RAW_ATTRIBUTE = "raw_attribute"
    ENRICHMENT_PROVIDED = "enrichment_provided"
    DERIVED = "derived"


class ScoringDomain(str, Enum):
    PROPERTY = "property"
    LEAD = "lead"


class RuleKind(str, Enum):
    BOOLEAN = "boolean"
    BOUNDED_SCALE = "bounded_scale"
    RATING_SCALE = "rating_scale"
    BUDGET_RELATIVE = "budget_relative"
    CATEGORICAL = "categorical"
    TIERED = "tiered"
    MINIMUM_RELATIVE = "minimum_relative"


class NormalizationRule(BaseModel):
    """
    How a factor's raw value maps onto the 0-10 scale.

    Only the parameters relevant to ``kind`` are set, and the ones it needs
    are required. The constructors below are the usual way to build one.
    """

    model_config = ConfigDict(frozen=True)

    kind: RuleKind
    scale_max: Optional[float] = None
    categories: Optional[Dict[str, float]] = None
    # TIERED: (threshold, score) pairs, checked in order
    tiers: Optional[List[Tuple[float, float]]] = None
    higher_is_better: bool = True
    floor_score: float = 0.0
    # Smallest accepted raw value for numeric rules; None accepts negatives
    min_value: Optional[float] = 0.0
    # MINIMUM_RELATIVE
    context_key: Optional[str] = None
    step: Optional[float] = None
    relative_scores: Optional[Tuple[float, float, float, float]] = None
    multiplier: Optional[float] = None

    @field_validator("categories")
    @classmethod
    def _normalize_codes(cls, categories: Optional[Dict[str, float]]) -> Optional[Dict[str, float]]:
        # Raw codes are matched stripped and upper-cased
        if categories is None:
            return None
        return {code.strip().upper(): score for code, score in categories.items()}

    @model_validator(mode="after")
    def _required_parameters(self) -> "NormalizationRule":
        kind = self.kind
        if kind == RuleKind.BOUNDED_SCALE and (self.scale_max is None or self.scale_max <= 0):
            raise ValueError("bounded_scale needs scale_max > 0")
        if kind == RuleKind.CATEGORICAL and not self.categories:
            raise ValueError("categorical needs a non-empty categories table")
        if kind == RuleKind.TIERED and not self.tiers:
            raise ValueError("tiered needs at least one tier")
        if kind == RuleKind.MINIMUM_RELATIVE:
            if self.context_key not in BuyerContext.model_fields:
                raise ValueError(f"context_key must be one of {sorted(BuyerContext.model_fields)}")
            if self.step is None or self.relative_scores is None or self.multiplier is None:
                raise ValueError("minimum_relative needs step, relative_scores and multiplier")
        return self

    @classmethod
    def boolean(cls) -> "NormalizationRule":
        return cls(kind=RuleKind.BOOLEAN)

    @classmethod
    def bounded(cls, scale_max: float = 100) -> "NormalizationRule":
        return cls(kind=RuleKind.BOUNDED_SCALE, scale_max=scale_max)

    @classmethod
    def rating(cls) -> "NormalizationRule":
        return cls(kind=RuleKind.RATING_SCALE)

    @classmethod
    def budget(cls) -> "NormalizationRule":
        return cls(kind=RuleKind.BUDGET_RELATIVE)

    @classmethod
    def categorical(cls, table: Dict[str, float]) -> "NormalizationRule":
        return cls(kind=RuleKind.CATEGORICAL, categories=table)

    @classmethod
    def tiered(cls, tiers: List[Tuple[float, float]], higher_is_better: bool = True,
               floor_score: float = 0.0, min_value: Optional[float] = 0.0) -> "NormalizationRule":
        """
        Step table. Higher-is-better tiers match the first ``raw >= threshold``;
        lower-is-better tiers match the first ``raw <= threshold``. Values
        matching no tier get ``floor_score``.
        """
        return cls(kind=RuleKind.TIERED, tiers=tiers, higher_is_better=higher_is_better,
                   floor_score=floor_score, min_value=min_value)

    @classmethod
    def minimum_relative(cls, context_key: str, step: float,
                         relative_scores: Tuple[float, float, float, float],
                         multiplier: float) -> "NormalizationRule":
        return cls(kind=RuleKind.MINIMUM_RELATIVE, context_key=context_key, step=step,
                   relative_scores=relative_scores, multiplier=multiplier)


class FactorDefinition(BaseModel):
    """A measurable dimension the engine can score. Immutable."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    category: FactorCategory
    description: str = ""
    data_source_kind: DataSourceKind = DataSourceKind.RAW_ATTRIBUTE
    default_weight: int = Field(default=5, ge=MIN_WEIGHT, le=MAX_WEIGHT)
    default_enabled: bool = True
    rule: NormalizationRule


def check_weight(value: Any, factor_id: Any = None) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidProfile(f"Weight for {factor_id!r} must be an integer, got {value!r}")
    if not MIN_WEIGHT <= value <= MAX_WEIGHT:
        raise InvalidProfile(
            f"Weight for {factor_id!r} must be between {MIN_WEIGHT} and {MAX_WEIGHT}, got {value}"
        )
    return value


class FactorSetting(BaseModel):
    """One (factor_id, weight, enabled) triple of a profile."""

    model_config = ConfigDict(frozen=True)

    factor_id: str
    weight: int
    enabled: bool = True

    @model_validator(mode="before")
    @classmethod
    def _validate_weight(cls, data: Any) -> Any:
        if isinstance(data, dict) and "weight" in data:
            check_weight(data["weight"], data.get("factor_id"))
        return data


class ClassificationTier(BaseModel):
    model_config = ConfigDict(frozen=True)

    min_percentage: float
    label: str


PROPERTY_TIERS = [
    ClassificationTier(min_percentage=80, label="excellent"),
    ClassificationTier(min_percentage=60, label="good"),
    ClassificationTier(min_percentage=40, label="fair"),
    ClassificationTier(min_percentage=0, label="poor"),
]

LEAD_TIERS = [
    ClassificationTier(min_percentage=70, label="hot"),
    ClassificationTier(min_percentage=40, label="warm"),
    ClassificationTier(min_percentage=0, label="cold"),
]

DEFAULT_TIERS = {
    ScoringDomain.PROPERTY: PROPERTY_TIERS,
    ScoringDomain.LEAD: LEAD_TIERS,
}


class BuyerContext(BaseModel):
    """Buyer-declared limits used by budget- and minimum-relative factors."""

    model_config = ConfigDict(frozen=True)

    budget_min: Optional[float] = Field(default=None, ge=0)
    budget_max: Optional[float] = Field(default=None, gt=0)
    min_beds: Optional[float] = Field(default=None, ge=0)
    min_baths: Optional[float] = Field(default=None, ge=0)

    @model_validator(mode="after")
    def _budget_order(self) -> "BuyerContext":
        if (self.budget_min is not None and self.budget_max is not None
                and self.budget_min > self.budget_max):
            raise InvalidProfile("budget_min cannot exceed budget_max")
        return self


class PreferenceProfile(BaseModel):
    """
    A user's (or the system's) chosen set of enabled factors and weights.

    Weights are checked when the profile is built; a profile whose factors are
    all disabled can be built but fails when it is scored.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    owner: str
    domain: ScoringDomain = ScoringDomain.PROPERTY
    factors: List[FactorSetting]
    preset_name: Optional[str] = None
    editable: bool = True
    classification_tiers: List[ClassificationTier] = Field(default_factory=list)
    buyer_context: BuyerContext = Field(default_factory=BuyerContext)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @model_validator(mode="before")
    @classmethod
    def _fill_tiers(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("classification_tiers"):
            domain = ScoringDomain(data.get("domain") or ScoringDomain.PROPERTY)
            data = dict(data, classification_tiers=list(DEFAULT_TIERS[domain]))
        return data

    @field_validator("factors")
    @classmethod
    def _unique_factors(cls, factors: List[FactorSetting]) -> List[FactorSetting]:
        seen = set()
        for setting in factors:
            if setting.factor_id in seen:
                raise InvalidProfile(f"Factor listed twice in profile: {setting.factor_id!r}")
            seen.add(setting.factor_id)
        return factors

    @field_validator("classification_tiers")
    @classmethod
    def _ordered_tiers(cls, tiers: List[ClassificationTier]) -> List[ClassificationTier]:
        cut_points = [tier.min_percentage for tier in tiers]
        if cut_points != sorted(cut_points, reverse=True) or len(set(cut_points)) != len(cut_points):
            raise InvalidProfile("Classification tiers must be in strictly descending order")
        return tiers

    def enabled_factors(self) -> List[FactorSetting]:
        return [f for f in self.factors if f.enabled]

    def setting(self, factor_id: str) -> Optional[FactorSetting]:
        for factor in self.factors:
            if factor.factor_id == factor_id:
                return factor
        return None

    def to_persisted(self) -> Dict[str, Any]:
        """The storage shape owned by the persistence layer."""
        return {
            "id": self.id,
            "owner": self.owner,
            "factors": [f.model_dump() for f in self.factors],
            "preset_name": self.preset_name,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }


Grade = Literal["A", "B", "C", "D", "F"]


class FactorScore(BaseModel):
    factor_id: str
    factor_name: str
    raw_value: RawValue = None
    normalized_score: float
    weight: int
    weighted_score: float
    max_possible: int
    missing_data: bool = False

    @property
    def ratio(self) -> float:
        return self.weighted_score / self.max_possible


class AggregateScore(BaseModel):
    entity_id: str
    total_score: float = Field(ge=0, le=100)
    grade: Grade
    classification: str
    breakdown: List[FactorScore]
    recommendation: str
    rank: Optional[int] = None


class EntityFailure(BaseModel):
    entity_id: str
    error: str
    message: str


class BatchReport(BaseModel):
    """Ranked successes kept apart from per-entity failures."""

    results: List[AggregateScore] = Field(default_factory=list)
    failures: List[EntityFailure] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures
