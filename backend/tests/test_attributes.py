"""
Unit tests for the lead and listing attribute builders
"""

from datetime import date, timedelta

import pytest

from scoring_engine.modules.attributes import (
    build_lead_attributes,
    build_listing_attributes,
    cap_rate,
    contact_completeness,
    days_since,
    engagement_points,
    timeline_category,
)


class TestTimeline:

    @pytest.mark.parametrize("text,category", [
        ("ASAP", "asap"),
        ("Immediately please", "asap"),
        ("within 1 month", "1_month"),
        ("next 90 days", "3_months"),
        ("6 months or so", "6_months"),
        ("about a year", "year"),
        ("just browsing", "unspecified"),
    ])
    def test_keywords(self, text, category):
        assert timeline_category(text) == category

    def test_blank_is_missing(self):
        assert timeline_category(None) is None
        assert timeline_category("   ") is None


class TestEngagement:

    def test_points_capped_per_channel(self):
        assert engagement_points(5, 10, 2) == 24
        assert engagement_points(100, 100, 100) == 25
        assert engagement_points(0, 0, 0) == 0

    def test_partial(self):
        assert engagement_points(1, 2, 1) == 2 + 3 + 3


class TestContactCompleteness:

    def test_full(self, hot_lead):
        assert contact_completeness(hot_lead) == 3

    def test_missing_phone(self, cold_lead):
        assert contact_completeness(cold_lead) == 2

    def test_single_word_name_does_not_count(self, cold_lead):
        assert contact_completeness(cold_lead.model_copy(update={"name": "Bob"})) == 1


class TestDaysSince:

    def test_whole_days(self, now):
        assert days_since(now - timedelta(days=3, hours=5), now) == 3

    def test_future_is_zero(self, now):
        assert days_since(now + timedelta(days=1), now) == 0

    def test_naive_treated_as_utc(self, now):
        assert days_since((now - timedelta(days=2)).replace(tzinfo=None), now) == 2


class TestLeadAttributes:

    def test_hot_lead_map(self, hot_lead, now):
        assert build_lead_attributes(hot_lead, now) == {
            "budget": 600000,
            "timeline": "asap",
            "engagement": 24,
            "contact_completeness": 3,
            "recency": 0,
        }

    def test_unstated_budget_is_zero(self, cold_lead, now):
        attributes = build_lead_attributes(cold_lead, now)
        assert attributes["budget"] == 0
        assert attributes["timeline"] == "unspecified"
        assert attributes["recency"] == 60


class TestListingAttributes:

    def test_fields_mapped_to_factor_ids(self, listing, now):
        attributes = build_listing_attributes(listing, now)

        assert attributes["price_vs_budget"] == 450000
        assert attributes["bedrooms"] == 4
        assert attributes["year_built"] == 10
        assert attributes["flood_risk"] == "X"
        assert attributes["commute_time"] == 25
        assert "school_distance" not in attributes

    def test_age_uses_as_of(self, listing):
        assert build_listing_attributes(listing, date(2035, 1, 1))["year_built"] == 20

    def test_enrichment_overrides_fields(self, listing, now):
        attributes = build_listing_attributes(listing, now, {"walk_score": 90, "school_distance": 0.4})
        assert attributes["walk_score"] == 90
        assert attributes["school_distance"] == 0.4

    def test_cap_rate(self):
        assert cap_rate(2500, 300000) == 10.0
        assert cap_rate(None, 300000) is None
        assert cap_rate(2500, 0) is None
