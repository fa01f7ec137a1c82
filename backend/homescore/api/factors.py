"""
Factor catalog API endpoints.

Lists the registered factors and presets of each domain and lets callers
register extra factors at runtime.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, Query

from homescore.api.errors import to_http
from homescore.services.scoring_service import ScoringService, get_scoring_service
from scoring_engine.modules.errors import ScoringError
from scoring_engine.modules.models import FactorDefinition, ScoringDomain
from scoring_engine.modules.presets import Preset
from scoring_engine.modules.scoring_suite import ScoringSuite

logger = logging.getLogger(__name__)

router = APIRouter()


def suite_for(service: ScoringService, domain: ScoringDomain) -> ScoringSuite:
    return service.leads if domain == ScoringDomain.LEAD else service.properties


@router.get("/factors", response_model=List[FactorDefinition])
async def list_factors(
    domain: ScoringDomain = Query(ScoringDomain.PROPERTY),
    service: ScoringService = Depends(get_scoring_service),
):
    """List registered factors in registration order."""
    return suite_for(service, domain).registry.definitions()


@router.post("/factors", response_model=FactorDefinition, status_code=201)
async def register_factor(
    definition: FactorDefinition,
    domain: ScoringDomain = Query(ScoringDomain.PROPERTY),
    service: ScoringService = Depends(get_scoring_service),
):
    """Register a new factor. Existing profiles pick it up on their next preset or edit."""
    try:
        suite_for(service, domain).register_factor(definition)
    except ScoringError as e:
        raise to_http(e) from e
    logger.info(f"Registered {domain.value} factor {definition.id}")
    return definition


@router.get("/presets", response_model=List[Preset])
async def list_presets(
    domain: ScoringDomain = Query(ScoringDomain.PROPERTY),
    service: ScoringService = Depends(get_scoring_service),
):
    return suite_for(service, domain).presets.presets()
