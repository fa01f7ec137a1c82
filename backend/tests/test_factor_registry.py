"""
Unit tests for the FactorRegistry
"""

import pytest

from scoring_engine.modules.errors import DuplicateFactorId, UnknownFactor
from scoring_engine.modules.factor_registry import lead_registry, property_registry
from scoring_engine.modules.models import (
    FactorCategory,
    FactorDefinition,
    NormalizationRule,
    ScoringDomain,
)



@pytest.fixture
def registry():
    return property_registry()


class TestCatalog:

    def test_property_catalog_size(self, registry):
        assert len(registry) == 23
        assert registry.domain == ScoringDomain.PROPERTY

    def test_lead_catalog(self):
        registry = lead_registry()
        assert [f.id for f in registry] == [
            "budget", "timeline", "engagement", "contact_completeness", "recency",
        ]
        assert [f.default_weight for f in registry] == [5, 4, 5, 3, 3]

    def test_lookup(self, registry):
        definition = registry.lookup("walk_score")
        assert definition.name == "Walk Score"
        assert definition.category == FactorCategory.LOCATION

    def test_lookup_unknown(self, registry):
        with pytest.raises(UnknownFactor) as exc:
            registry.lookup("moat")
        assert exc.value.factor_id == "moat"
        assert exc.value.code == "unknown_factor"

    def test_list_by_category_keeps_registration_order(self, registry):
        safety = registry.list_by_category(FactorCategory.SAFETY)
        assert [f.id for f in safety] == ["crime_score", "flood_risk", "fire_risk"]

    def test_contains(self, registry):
        assert "pool" in registry
        assert "moat" not in registry


class TestRegister:

    def test_register_new_factor(self, registry):
        registry.register(FactorDefinition(
            id="solar", name="Solar Panels", category=FactorCategory.AMENITIES,
            rule=NormalizationRule.boolean(),
        ))
        assert "solar" in registry
        assert registry.definitions()[-1].id == "solar"

    def test_duplicate_id_rejected(self, registry):
        with pytest.raises(DuplicateFactorId):
            registry.register(registry.lookup("pool"))

    def test_register_leaves_running_iteration_intact(self, registry):
        catalog = iter(registry)
        first = next(catalog)
        registry.register(FactorDefinition(
            id="solar", name="Solar Panels", category=FactorCategory.AMENITIES,
            rule=NormalizationRule.boolean(),
        ))
        seen = [first] + list(catalog)
        assert len(seen) == 23
        assert len(registry) == 24

    def test_registries_are_independent(self):
        first, second = property_registry(), property_registry()
        first.register(FactorDefinition(
            id="solar", name="Solar Panels", category=FactorCategory.AMENITIES,
            rule=NormalizationRule.boolean(),
        ))
        assert "solar" not in second


class TestDefaultProfile:

    def test_holds_every_factor_at_defaults(self, registry, now):
        profile = registry.default_profile("alice", now=now)
        assert [s.factor_id for s in profile.factors] == [f.id for f in registry]
        for setting, definition in zip(profile.factors, registry):
            assert setting.weight == definition.default_weight
            assert setting.enabled == definition.default_enabled

    def test_metadata(self, registry, now):
        profile = registry.default_profile("alice", profile_id="pref-1", now=now)
        assert profile.id == "pref-1"
        assert profile.owner == "alice"
        assert profile.preset_name is None
        assert profile.created_at == profile.updated_at == now

    def test_generated_ids_are_unique(self, registry):
        assert registry.default_profile("a").id != registry.default_profile("a").id
