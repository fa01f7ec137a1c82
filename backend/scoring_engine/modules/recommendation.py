"""
Recommendation policy - one actionable sentence derived from a breakdown.

Top tier gets an urgency directive. Otherwise the weakest link (lowest share
of its possible points, earliest in the breakdown on ties) is named for
follow-up, unless every factor is already near its maximum.
"""

from typing import List, Optional

from .models import FactorScore, PreferenceProfile, ScoringDomain

NEAR_MAX_RATIO = 0.9

MESSAGES = {
    ScoringDomain.LEAD: {
        'urgent': "High priority! Schedule a showing or call within 24 hours.",
        'weakest': "Follow up on {name} to increase conversion chance.",
        'steady': "Add to nurture campaign. Check back in 30 days.",
    },
    ScoringDomain.PROPERTY: {
        'urgent': "Top match. Schedule a showing within 24 hours.",
        'weakest': "Weakest fit is {name}. Check it before scheduling a showing.",
        'steady': "Strong fit on every factor. Monitor for price changes.",
    },
}


def weakest_link(breakdown: List[FactorScore]) -> Optional[FactorScore]:
    if not breakdown:
        return None
    return min(breakdown, key=lambda factor: factor.ratio)


def recommend(breakdown: List[FactorScore], classification: str, profile: PreferenceProfile) -> str:
    messages = MESSAGES[profile.domain]

    if classification == profile.classification_tiers[0].label:
        return messages['urgent']

    weakest = weakest_link(breakdown)
    if weakest is None or weakest.ratio >= NEAR_MAX_RATIO:
        return messages['steady']

    return messages['weakest'].format(name=weakest.factor_name.lower())
