"""
Tests for enrichment collection and the async scoring service
"""

import asyncio

from homescore.config import Settings
from homescore.services.enrichment import collect_enrichment
from homescore.services.scoring_service import ScoringService
from scoring_engine.modules.attributes import ListingRecord
from scoring_engine.modules.logger import get_logger


class StaticProvider:

    def __init__(self, name, values):
        self.name = name
        self.values = values

    def fetch(self, listing):
        return dict(self.values)


class BrokenProvider:
    name = "broken"

    def fetch(self, listing):
        raise TimeoutError("provider timed out")


LISTING = ListingRecord(id="mls-1", sqft=2100, walk_score=40)


class TestCollectEnrichment:

    def test_later_providers_win(self):
        providers = [StaticProvider("a", {"walk_score": 70, "crime_score": 60}),
                     StaticProvider("b", {"walk_score": 85})]
        assert collect_enrichment(LISTING, providers) == {"walk_score": 85, "crime_score": 60}

    def test_none_values_dropped(self):
        providers = [StaticProvider("a", {"walk_score": 70}), StaticProvider("b", {"walk_score": None})]
        assert collect_enrichment(LISTING, providers) == {"walk_score": 70}

    def test_failing_provider_skipped(self):
        providers = [BrokenProvider(), StaticProvider("b", {"school_rating": 4})]
        assert collect_enrichment(LISTING, providers) == {"school_rating": 4}


class TestScoringService:

    def test_listing_attributes_layering(self, now):
        service = ScoringService(providers=[StaticProvider("walk", {"walk_score": 70})])
        attributes = service.listing_attributes(LISTING, now, {"crime_score": 90})

        assert attributes["walk_score"] == 70
        assert attributes["crime_score"] == 90
        assert attributes["sqft"] == 2100

    def test_request_enrichment_beats_providers(self, now):
        service = ScoringService(providers=[StaticProvider("walk", {"walk_score": 70})])
        assert service.listing_attributes(LISTING, now, {"walk_score": 10})["walk_score"] == 10

    def test_rank_listings(self, now):
        service = ScoringService()
        profile = service.default_profile("tester")
        listings = [ListingRecord(id="small", sqft=800), ListingRecord(id="big", sqft=3000)]

        report = asyncio.run(service.rank_listings(listings, profile, as_of=now))
        assert [r.entity_id for r in report.results] == ["big", "small"]

    def test_grade_leads(self, now, hot_lead, cold_lead):
        report = asyncio.run(ScoringService().grade_leads([cold_lead, hot_lead], as_of=now))
        assert [r.classification for r in report.results] == ["hot", "cold"]


def test_run_log_file(tmp_path):
    logger = get_logger()
    logger.setup_for_run(str(tmp_path), "unit test")
    try:
        logger.entity_failed("x", "unknown_factor", "Unknown factor: 'moat'")
        path = logger.get_log_path()
        assert "scoring_unit_test_" in path
    finally:
        logger.close_run()

    with open(path, encoding="utf-8") as f:
        assert "FAILED [x] unknown_factor" in f.read()


class TestSettings:

    def test_sqlite_url_gets_async_driver(self):
        assert Settings(database_url="sqlite:///./x.db").async_database_url == "sqlite+aiosqlite:///./x.db"

    def test_other_urls_passed_through(self):
        url = "postgresql://user@db/homescore"
        assert Settings(database_url=url).async_database_url == url
