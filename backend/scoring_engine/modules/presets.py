"""
Preset Library - named weight/enable overlays for preference profiles.

Applying a preset merges only the factors it lists and leaves the rest of the
profile untouched. Applying the same preset again returns the profile
unchanged (same object, same ``updated_at``), so repeated application is
idempotent. Fixed presets lock the profile against further edits.
"""

from datetime import datetime
from typing import Iterable, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .errors import InvalidProfile, UnknownPreset
from .factor_registry import FactorRegistry
from .models import FactorSetting, PreferenceProfile, ScoringDomain, check_weight, utc_now


class PresetOverride(BaseModel):
    model_config = ConfigDict(frozen=True)

    factor_id: str
    weight: Optional[int] = None
    enabled: Optional[bool] = None

    @model_validator(mode="after")
    def _validate_weight(self) -> "PresetOverride":
        if self.weight is not None:
            check_weight(self.weight, self.factor_id)
        return self


class Preset(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    domain: ScoringDomain
    description: str = ""
    overrides: List[PresetOverride] = Field(default_factory=list)
    fixed: bool = False


def _overrides(*entries) -> List[PresetOverride]:
    return [PresetOverride(factor_id=f, weight=w, enabled=e) for f, w, e in entries]


PROPERTY_PRESETS = [
    Preset(name="family", domain=ScoringDomain.PROPERTY,
           description="Schools, safety and space for a growing household",
           overrides=_overrides(
               ("school_rating", 10, True),
               ("crime_score", 10, True),
               ("bedrooms", 9, True),
               ("pool", 7, True),
               ("lot_size", 6, True),
           )),
    Preset(name="investor", domain=ScoringDomain.PROPERTY,
           description="Price, yield and appreciation over lifestyle",
           overrides=_overrides(
               ("price_vs_budget", 10, True),
               ("rental_estimate", 10, True),
               ("appreciation", 9, True),
               ("hoa_fee", 8, True),
               ("school_rating", 3, False),
           )),
    Preset(name="retiree", domain=ScoringDomain.PROPERTY,
           description="Walkable, safe and right-sized",
           overrides=_overrides(
               ("walk_score", 9, True),
               ("transit_score", 8, True),
               ("crime_score", 10, True),
               ("bedrooms", 4, True),
               ("school_rating", 1, False),
           )),
    Preset(name="first-time", domain=ScoringDomain.PROPERTY,
           description="Affordability and commute first",
           overrides=_overrides(
               ("price_vs_budget", 10, True),
               ("commute_time", 8, True),
               ("hoa_fee", 7, True),
               ("year_built", 6, True),
           )),
    Preset(name="luxury", domain=ScoringDomain.PROPERTY,
           description="Space and amenities over price",
           overrides=_overrides(
               ("sqft", 9, True),
               ("lot_size", 8, True),
               ("pool", 9, True),
               ("price_vs_budget", 3, True),
           )),
]

LEAD_QUALIFICATION = "lead-qualification"

LEAD_PRESETS = [
    Preset(name=LEAD_QUALIFICATION, domain=ScoringDomain.LEAD, fixed=True,
           description="Fixed lead grading weights (budget 25, timeline 20, engagement 25, "
                       "contact 15, recency 15 points)",
           overrides=_overrides(
               ("budget", 5, True),
               ("timeline", 4, True),
               ("engagement", 5, True),
               ("contact_completeness", 3, True),
               ("recency", 3, True),
           )),
]


class PresetLibrary:
    """Presets for one factor registry."""

    def __init__(self, registry: FactorRegistry, presets: Iterable[Preset] = ()):
        self.registry = registry
        self._presets = {}
        for preset in presets:
            if preset.domain != registry.domain:
                raise ValueError(f"Preset {preset.name!r} does not belong to the {registry.domain.value} registry")
            self._presets[preset.name] = preset

    def names(self) -> List[str]:
        return list(self._presets)

    def presets(self) -> List[Preset]:
        return list(self._presets.values())

    def get(self, preset_name: str) -> Preset:
        try:
            return self._presets[preset_name]
        except KeyError:
            raise UnknownPreset(preset_name) from None

    def apply_preset(self, profile: PreferenceProfile, preset_name: str,
                     now: Optional[datetime] = None) -> PreferenceProfile:
        """
        Merge a preset's overrides onto a profile.

        Listed factors missing from the profile are appended with the preset's
        values (registry defaults for anything the preset leaves unset).

        Raises:
            UnknownPreset: no preset with that name
            UnknownFactor: the preset names a factor the registry lacks
            InvalidProfile: the profile is locked or belongs to another domain
        """
        preset = self.get(preset_name)
        if profile.domain != self.registry.domain:
            raise InvalidProfile(f"Cannot apply {preset_name!r} to a {profile.domain.value} profile")

        factors = list(profile.factors)
        positions = {setting.factor_id: i for i, setting in enumerate(factors)}

        for override in preset.overrides:
            definition = self.registry.lookup(override.factor_id)
            if override.factor_id in positions:
                current = factors[positions[override.factor_id]]
                weight, enabled = current.weight, current.enabled
            else:
                weight, enabled = definition.default_weight, definition.default_enabled

            merged = FactorSetting(
                factor_id=override.factor_id,
                weight=override.weight if override.weight is not None else weight,
                enabled=override.enabled if override.enabled is not None else enabled,
            )
            if override.factor_id in positions:
                factors[positions[override.factor_id]] = merged
            else:
                positions[override.factor_id] = len(factors)
                factors.append(merged)

        editable = profile.editable and not preset.fixed
        if factors == profile.factors and profile.preset_name == preset.name and profile.editable == editable:
            return profile

        if not profile.editable:
            raise InvalidProfile(f"Profile {profile.id!r} is locked and cannot take preset {preset_name!r}")

        return profile.model_copy(update={
            'factors': factors,
            'preset_name': preset.name,
            'editable': editable,
            'updated_at': now or utc_now(),
        })


def update_factor(registry: FactorRegistry, profile: PreferenceProfile, factor_id: str,
                  weight: Optional[int] = None, enabled: Optional[bool] = None,
                  now: Optional[datetime] = None) -> PreferenceProfile:
    """
    Explicit user edit of one factor. Marks the profile as custom.

    Raises InvalidProfile for locked profiles or a weight outside 1-10 and
    UnknownFactor for ids the registry lacks.
    """
    if not profile.editable:
        raise InvalidProfile(f"Profile {profile.id!r} is locked")

    definition = registry.lookup(factor_id)
    current = profile.setting(factor_id)
    base_weight = current.weight if current else definition.default_weight
    base_enabled = current.enabled if current else definition.default_enabled

    edited = FactorSetting(
        factor_id=factor_id,
        weight=weight if weight is not None else base_weight,
        enabled=enabled if enabled is not None else base_enabled,
    )
    if current == edited:
        return profile

    if current:
        factors = [edited if f.factor_id == factor_id else f for f in profile.factors]
    else:
        factors = list(profile.factors) + [edited]

    return profile.model_copy(update={
        'factors': factors,
        'preset_name': 'custom',
        'updated_at': now or utc_now(),
    })


def property_presets(registry: FactorRegistry) -> PresetLibrary:
    return PresetLibrary(registry, PROPERTY_PRESETS)


def lead_presets(registry: FactorRegistry) -> PresetLibrary:
    return PresetLibrary(registry, LEAD_PRESETS)
