"""
Preference profile API endpoints.

One stored property profile per owner. Reading an owner with no profile yet
creates one from the registry defaults (plus the configured default preset).
"""

import logging
from typing import List, Optional, Tuple

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from homescore.api.errors import to_http
from homescore.database import get_db
from homescore.models.preference import ScoringPreference
from homescore.services.scoring_service import ScoringService, get_scoring_service
from scoring_engine.modules.errors import ScoringError
from scoring_engine.modules.models import BuyerContext, PreferenceProfile

logger = logging.getLogger(__name__)

router = APIRouter()


# ----- Pydantic Schemas -----


class FactorEdit(BaseModel):
    """Weight and/or enabled flag for one factor; unset fields keep their value."""

    factor_id: str
    weight: Optional[int] = None
    enabled: Optional[bool] = None


class PreferenceUpdate(BaseModel):
    factors: List[FactorEdit] = []
    buyer_context: Optional[dict] = None


# ----- Helpers -----


async def get_or_create_profile(
    db: AsyncSession, owner: str, service: ScoringService
) -> Tuple[ScoringPreference, PreferenceProfile]:
    result = await db.execute(select(ScoringPreference).where(ScoringPreference.owner == owner))
    row = result.scalar_one_or_none()
    if row is not None:
        return row, row.to_profile()

    profile = service.default_profile(owner)
    row = ScoringPreference.from_profile(profile)
    db.add(row)
    await db.flush()
    logger.info(f"Created default preference profile for {owner}")
    return row, profile


# ----- Endpoints -----


@router.get("/{owner}", response_model=PreferenceProfile)
async def get_preferences(
    owner: str,
    db: AsyncSession = Depends(get_db),
    service: ScoringService = Depends(get_scoring_service),
):
    _, profile = await get_or_create_profile(db, owner, service)
    return profile


@router.put("/{owner}", response_model=PreferenceProfile)
async def update_preferences(
    owner: str,
    update: PreferenceUpdate,
    db: AsyncSession = Depends(get_db),
    service: ScoringService = Depends(get_scoring_service),
):
    """
    Apply factor edits in order, then replace the buyer context if given.

    Any edit marks the profile as custom. The whole update is rejected if one
    edit fails.
    """
    row, profile = await get_or_create_profile(db, owner, service)
    try:
        for edit in update.factors:
            profile = service.properties.update_factor(
                profile, edit.factor_id, weight=edit.weight, enabled=edit.enabled
            )
        if update.buyer_context is not None:
            profile = profile.model_copy(
                update={"buyer_context": BuyerContext(**update.buyer_context)}
            )
    except ScoringError as e:
        raise to_http(e) from e

    row.update_from(profile)
    await db.flush()
    return profile


@router.post("/{owner}/preset/{preset_name}", response_model=PreferenceProfile)
async def apply_preset(
    owner: str,
    preset_name: str,
    db: AsyncSession = Depends(get_db),
    service: ScoringService = Depends(get_scoring_service),
):
    row, profile = await get_or_create_profile(db, owner, service)
    try:
        updated = service.properties.apply_preset(profile, preset_name)
    except ScoringError as e:
        raise to_http(e) from e

    if updated is not profile:
        row.update_from(updated)
        await db.flush()
        logger.info(f"Applied preset {preset_name} for {owner}")
    return updated
