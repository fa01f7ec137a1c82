"""Weighted multi-factor scoring for property listings and sales leads."""

from .modules.errors import (
    DuplicateEntityId,
    DuplicateFactorId,
    InvalidAttributeValue,
    InvalidProfile,
    ScoringError,
    UnknownCategoryValue,
    UnknownFactor,
    UnknownPreset,
)
from .modules.models import (
    AggregateScore,
    BatchReport,
    BuyerContext,
    FactorDefinition,
    FactorScore,
    PreferenceProfile,
)
from .modules.scoring_suite import LeadScoringSuite, ScoringSuite, lead_suite, property_suite

__all__ = [
    "AggregateScore",
    "BatchReport",
    "BuyerContext",
    "DuplicateEntityId",
    "DuplicateFactorId",
    "FactorDefinition",
    "FactorScore",
    "InvalidAttributeValue",
    "InvalidProfile",
    "LeadScoringSuite",
    "PreferenceProfile",
    "ScoringError",
    "ScoringSuite",
    "UnknownCategoryValue",
    "UnknownFactor",
    "UnknownPreset",
    "lead_suite",
    "property_suite",
]
