"""
Scoring Service - app-level access to the property and lead scoring suites.

Batch work is pushed onto a thread pool so request handlers never block the
event loop; enrichment runs first, then the engine.
"""

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from functools import partial
from typing import Dict, List, Optional, Sequence, Tuple

from homescore.config import settings
from homescore.services.enrichment import EnrichmentProvider, collect_enrichment
from scoring_engine.modules.attributes import LeadRecord, ListingRecord, build_listing_attributes
from scoring_engine.modules.models import AttributeMap, BatchReport, PreferenceProfile
from scoring_engine.modules.scoring_suite import LeadScoringSuite, ScoringSuite, lead_suite, property_suite

logger = logging.getLogger(__name__)


class ScoringService:
    """
    Holds one property suite and one lead suite for the process.
    """

    def __init__(self, providers: Optional[List[EnrichmentProvider]] = None):
        self._executor = ThreadPoolExecutor(max_workers=2)
        self.properties: ScoringSuite = property_suite(
            max_workers=settings.batch_max_workers,
            parallel_threshold=settings.parallel_batch_threshold,
        )
        self.leads: LeadScoringSuite = lead_suite(
            max_workers=settings.batch_max_workers,
            parallel_threshold=settings.parallel_batch_threshold,
        )
        self.providers: List[EnrichmentProvider] = list(providers or [])

    def register_provider(self, provider: EnrichmentProvider) -> None:
        self.providers.append(provider)

    def default_profile(self, owner: str) -> PreferenceProfile:
        return self.properties.default_profile(owner, preset_name=settings.default_preset)

    def listing_attributes(self, listing: ListingRecord, as_of: datetime,
                           enrichment: Optional[Dict] = None) -> AttributeMap:
        """Provider values first, then caller-supplied enrichment on top."""
        values = collect_enrichment(listing, self.providers)
        values.update(enrichment or {})
        return build_listing_attributes(listing, as_of, values)

    def _listing_entities(self, listings: Sequence[ListingRecord], as_of: datetime,
                          enrichment: Dict[str, Dict]) -> List[Tuple[str, AttributeMap]]:
        return [
            (listing.id, self.listing_attributes(listing, as_of, enrichment.get(listing.id)))
            for listing in listings
        ]

    async def rank_listings(self, listings: Sequence[ListingRecord], profile: PreferenceProfile,
                            as_of: Optional[datetime] = None,
                            enrichment: Optional[Dict[str, Dict]] = None) -> BatchReport:
        as_of = as_of or datetime.now(timezone.utc)
        loop = asyncio.get_running_loop()
        entities = await loop.run_in_executor(
            self._executor,
            partial(self._listing_entities, listings, as_of, enrichment or {}),
        )
        logger.info(f"Ranking {len(entities)} listings for profile {profile.id}")
        return await loop.run_in_executor(
            self._executor,
            partial(self.properties.rank_batch, entities, profile),
        )

    async def rank_attribute_maps(self, entities: Sequence[Tuple[str, AttributeMap]],
                                  profile: PreferenceProfile) -> BatchReport:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            self._executor,
            partial(self.properties.rank_batch, list(entities), profile),
        )

    async def grade_leads(self, leads: Sequence[LeadRecord],
                          as_of: Optional[datetime] = None) -> BatchReport:
        as_of = as_of or datetime.now(timezone.utc)
        loop = asyncio.get_running_loop()
        logger.info(f"Grading {len(leads)} leads")
        return await loop.run_in_executor(
            self._executor,
            partial(self.leads.grade_leads, list(leads), as_of),
        )


# Singleton instance
_scoring_service: Optional[ScoringService] = None


def get_scoring_service() -> ScoringService:
    """Get or create scoring service instance."""
    global _scoring_service
    if _scoring_service is None:
        _scoring_service = ScoringService()
    return _scoring_service


def reset_scoring_service() -> ScoringService:
    """Drop registered factors/providers and start from the shipped catalogs."""
    global _scoring_service
    _scoring_service = ScoringService()
    return _scoring_service
