"""
Property scoring API endpoints.

Scores a single listing or ranks a batch against an owner's stored profile.
A preset given on the request is applied for that request only and is not
saved.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from homescore.api.errors import to_http
from homescore.api.preferences import get_or_create_profile
from homescore.database import get_db
from homescore.services.scoring_service import ScoringService, get_scoring_service
from scoring_engine.modules.attributes import ListingRecord
from scoring_engine.modules.errors import ScoringError
from scoring_engine.modules.models import AggregateScore, BatchReport, PreferenceProfile

logger = logging.getLogger(__name__)

router = APIRouter()

ANONYMOUS_OWNER = "anonymous"


# ----- Pydantic Schemas -----


class ScoreRequest(BaseModel):
    """Either a listing record or a ready-made attribute map."""

    owner: Optional[str] = None
    preset: Optional[str] = None
    listing: Optional[ListingRecord] = None
    attributes: Optional[Dict[str, Any]] = None
    enrichment: Optional[Dict[str, Any]] = None
    as_of: Optional[datetime] = None


class EntityAttributes(BaseModel):
    id: str
    attributes: Dict[str, Any]


class BatchRequest(BaseModel):
    owner: Optional[str] = None
    preset: Optional[str] = None
    listings: List[ListingRecord] = []
    entities: List[EntityAttributes] = []
    # listing id -> {factor_id: value}
    enrichment: Dict[str, Dict[str, Any]] = {}
    as_of: Optional[datetime] = None


# ----- Helpers -----


async def resolve_profile(db: AsyncSession, service: ScoringService,
                          owner: Optional[str], preset: Optional[str]) -> PreferenceProfile:
    if owner:
        _, profile = await get_or_create_profile(db, owner, service)
    else:
        profile = service.default_profile(ANONYMOUS_OWNER)
    if preset:
        profile = service.properties.apply_preset(profile, preset)
    return profile


# ----- Endpoints -----


@router.post("/calculate", response_model=AggregateScore)
async def calculate_score(
    request: ScoreRequest,
    db: AsyncSession = Depends(get_db),
    service: ScoringService = Depends(get_scoring_service),
):
    if (request.listing is None) == (request.attributes is None):
        raise HTTPException(status_code=400, detail="Provide exactly one of 'listing' or 'attributes'")

    try:
        profile = await resolve_profile(db, service, request.owner, request.preset)
        if request.listing is not None:
            as_of = request.as_of or datetime.now(timezone.utc)
            attributes = service.listing_attributes(request.listing, as_of, request.enrichment)
            entity_id = request.listing.id
        else:
            attributes = request.attributes
            entity_id = ""
        return service.properties.compute_score(attributes, profile, entity_id=entity_id)
    except ScoringError as e:
        raise to_http(e) from e


@router.post("/batch", response_model=BatchReport)
async def rank_batch(
    request: BatchRequest,
    db: AsyncSession = Depends(get_db),
    service: ScoringService = Depends(get_scoring_service),
):
    """
    Rank listings (or raw attribute maps) best first.

    Per-entity problems come back in ``failures``; only a profile that cannot
    score anything fails the whole request.
    """
    if request.listings and request.entities:
        raise HTTPException(status_code=400, detail="Send either 'listings' or 'entities', not both")

    try:
        profile = await resolve_profile(db, service, request.owner, request.preset)
        if request.entities:
            entities = [(e.id, e.attributes) for e in request.entities]
            report = await service.rank_attribute_maps(entities, profile)
        else:
            report = await service.rank_listings(request.listings, profile, request.as_of, request.enrichment)
    except ScoringError as e:
        raise to_http(e) from e

    if report.failures:
        logger.warning(f"Batch for {profile.owner}: {len(report.failures)} of "
                       f"{len(report.failures) + len(report.results)} entities failed")
    return report
