"""
Lead grading API endpoints.

Every lead is scored against the fixed lead-qualification profile and
classified hot, warm or cold.
"""

from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from homescore.api.errors import to_http
from homescore.services.scoring_service import ScoringService, get_scoring_service
from scoring_engine.modules.attributes import LeadRecord
from scoring_engine.modules.errors import ScoringError
from scoring_engine.modules.models import AggregateScore, BatchReport, PreferenceProfile

router = APIRouter()


class LeadScoreRequest(BaseModel):
    lead: LeadRecord
    as_of: Optional[datetime] = None


class LeadBatchRequest(BaseModel):
    leads: List[LeadRecord]
    as_of: Optional[datetime] = None


@router.get("/profile", response_model=PreferenceProfile)
async def lead_profile(service: ScoringService = Depends(get_scoring_service)):
    return service.leads.lead_profile()


@router.post("/score", response_model=AggregateScore)
async def score_lead(
    request: LeadScoreRequest,
    service: ScoringService = Depends(get_scoring_service),
):
    as_of = request.as_of or datetime.now(timezone.utc)
    try:
        return service.leads.grade_lead(request.lead, as_of)
    except ScoringError as e:
        raise to_http(e) from e


@router.post("/batch", response_model=BatchReport)
async def score_leads(
    request: LeadBatchRequest,
    service: ScoringService = Depends(get_scoring_service),
):
    """Grade and rank leads, hottest first."""
    try:
        return await service.grade_leads(request.leads, request.as_of)
    except ScoringError as e:
        raise to_http(e) from e
