"""
Enrichment collaborators - third-party data gathered before scoring.

Providers (walkability, school ratings, flood zones, crime indices, market
trends) return raw values keyed by factor id. All fetching happens here,
ahead of the engine; the engine only ever sees the merged values.
"""

import logging
from typing import Any, Dict, Iterable, Protocol

from scoring_engine.modules.attributes import ListingRecord

logger = logging.getLogger(__name__)


class EnrichmentProvider(Protocol):
    """Anything with a name and a fetch(listing) -> {factor_id: value}."""

    name: str

    def fetch(self, listing: ListingRecord) -> Dict[str, Any]:
        ...


def collect_enrichment(listing: ListingRecord, providers: Iterable[EnrichmentProvider]) -> Dict[str, Any]:
    """
    Merge provider output for one listing, later providers winning.

    A provider that raises is logged and skipped; the factors it would have
    filled simply score as missing.
    """
    merged: Dict[str, Any] = {}
    for provider in providers:
        try:
            values = provider.fetch(listing)
        except Exception as e:
            logger.warning(f"Enrichment provider {provider.name} failed for {listing.id}: {e}")
            continue
        merged.update({factor_id: value for factor_id, value in values.items() if value is not None})
    return merged
