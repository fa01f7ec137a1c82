# SQLAlchemy Models Package

from .preference import ScoringPreference

__all__ = [
    "ScoringPreference",
]
