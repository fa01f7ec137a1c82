"""
SQLAlchemy model for persisted preference profiles.

Stores the profile shape {id, owner, factors, preset_name, created_at,
updated_at} plus the buyer context and lock flag the engine needs to rebuild
the profile.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import JSON, Boolean, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from homescore.database import Base
from scoring_engine.modules.models import BuyerContext, PreferenceProfile, ScoringDomain


def _utc(value: datetime) -> datetime:
    # SQLite drops tzinfo on the way back
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


class ScoringPreference(Base):
    """One owner's property preference profile."""

    __tablename__ = "scoring_preferences"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    owner: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    factors: Mapped[list] = mapped_column(JSON)  # [{factor_id, weight, enabled}]
    preset_name: Mapped[Optional[str]] = mapped_column(String(50))
    editable: Mapped[bool] = mapped_column(Boolean, default=True)
    buyer_context: Mapped[Optional[dict]] = mapped_column(JSON)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    def to_profile(self) -> PreferenceProfile:
        return PreferenceProfile(
            id=self.id,
            owner=self.owner,
            domain=ScoringDomain.PROPERTY,
            factors=self.factors,
            preset_name=self.preset_name,
            editable=self.editable,
            buyer_context=BuyerContext(**(self.buyer_context or {})),
            created_at=_utc(self.created_at),
            updated_at=_utc(self.updated_at),
        )

    def update_from(self, profile: PreferenceProfile) -> None:
        persisted = profile.to_persisted()
        self.factors = persisted["factors"]
        self.preset_name = profile.preset_name
        self.editable = profile.editable
        self.buyer_context = profile.buyer_context.model_dump(exclude_none=True)
        self.updated_at = profile.updated_at

    @classmethod
    def from_profile(cls, profile: PreferenceProfile) -> "ScoringPreference":
        row = cls(id=profile.id, owner=profile.owner, created_at=profile.created_at)
        row.update_from(profile)
        return row

    def __repr__(self) -> str:
        return f"<ScoringPreference(owner='{self.owner}', preset='{self.preset_name}')>"
