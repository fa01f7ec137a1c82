"""
Attribute builders - turn stored lead and listing records into attribute maps.

Everything time-dependent (days since contact, home age) is measured against
an explicit ``as_of`` so the same record always yields the same map.
"""

from datetime import date, datetime, timezone
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, Field

from .models import AttributeMap

# Keyword groups checked in order; first hit wins
TIMELINE_KEYWORDS = [
    ('asap', ('asap', 'immediate')),
    ('1_month', ('1 month', '30 day')),
    ('3_months', ('3 month', '90 day')),
    ('6_months', ('6 month',)),
    ('year', ('year',)),
]
UNSPECIFIED_TIMELINE = 'unspecified'

# (points per event, cap) - engagement totals 25 points
VIEW_POINTS = (2, 10)
EMAIL_OPEN_POINTS = (1.5, 8)
SHOWING_POINTS = (3, 7)

SECONDS_PER_DAY = 86400


class LeadRecord(BaseModel):
    id: str
    name: str = ""
    email: Optional[str] = None
    phone: Optional[str] = None
    budget_min: Optional[float] = Field(default=None, ge=0)
    budget_max: Optional[float] = Field(default=None, ge=0)
    property_type: Optional[str] = None
    timeline: Optional[str] = None
    source: Optional[str] = None
    created_at: datetime
    last_contact: Optional[datetime] = None
    email_opens: int = Field(default=0, ge=0)
    property_views: int = Field(default=0, ge=0)
    showings_attended: int = Field(default=0, ge=0)
    notes: Optional[str] = None


class ListingRecord(BaseModel):
    id: str
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip: Optional[str] = None
    price: Optional[float] = None
    beds: Optional[float] = None
    baths: Optional[float] = None
    sqft: Optional[float] = None
    lot_size: Optional[float] = None
    year_built: Optional[int] = None
    property_type: Optional[str] = None
    has_pool: Optional[bool] = None
    has_garage: Optional[bool] = None
    hoa_fee: Optional[float] = None
    flood_zone: Optional[str] = None
    # Usually filled by enrichment providers
    school_rating: Optional[float] = None
    school_distance: Optional[float] = None
    walk_score: Optional[float] = None
    transit_score: Optional[float] = None
    bike_score: Optional[float] = None
    crime_score: Optional[float] = None
    internet_speed: Optional[float] = None
    noise_level: Optional[str] = None
    air_quality: Optional[float] = None
    fire_risk: Optional[str] = None
    rental_estimate: Optional[float] = None  # monthly rent
    appreciation_rate: Optional[float] = None
    commute_minutes: Optional[float] = None


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def timeline_category(timeline: Optional[str]) -> Optional[str]:
    """Map free-text timeline to a category code; None when nothing was stated."""
    if timeline is None or not timeline.strip():
        return None
    text = timeline.lower()
    for category, keywords in TIMELINE_KEYWORDS:
        if any(keyword in text for keyword in keywords):
            return category
    return UNSPECIFIED_TIMELINE


def engagement_points(property_views: int, email_opens: int, showings_attended: int) -> float:
    points = 0.0
    for count, (per_event, cap) in ((property_views, VIEW_POINTS),
                                    (email_opens, EMAIL_OPEN_POINTS),
                                    (showings_attended, SHOWING_POINTS)):
        points += min(count * per_event, cap)
    return points


def contact_completeness(lead: LeadRecord) -> int:
    """One point each for email, phone and a full (two-part) name."""
    score = 0
    if lead.email:
        score += 1
    if lead.phone:
        score += 1
    if lead.name and ' ' in lead.name.strip():
        score += 1
    return score


def days_since(moment: datetime, as_of: datetime) -> int:
    elapsed = (_as_utc(as_of) - _as_utc(moment)).total_seconds()
    return max(0, int(elapsed // SECONDS_PER_DAY))


def build_lead_attributes(lead: LeadRecord, as_of: datetime) -> AttributeMap:
    last_touch = lead.last_contact or lead.created_at
    return {
        # No stated budget scores the tier floor
        'budget': lead.budget_max if lead.budget_max is not None else 0,
        'timeline': timeline_category(lead.timeline),
        'engagement': engagement_points(lead.property_views, lead.email_opens, lead.showings_attended),
        'contact_completeness': contact_completeness(lead),
        'recency': days_since(last_touch, as_of),
    }


def cap_rate(monthly_rent: Optional[float], price: Optional[float]) -> Optional[float]:
    """Gross cap rate in percent: annual rent over price."""
    if not monthly_rent or not price:
        return None
    return round(monthly_rent * 12 / price * 100, 2)


def build_listing_attributes(listing: ListingRecord, as_of: Union[date, datetime],
                             enrichment: Optional[Dict[str, Any]] = None) -> AttributeMap:
    """
    Map a listing onto property factor ids.

    ``enrichment`` is keyed by factor id and overrides listing fields; ids the
    registry does not know are passed through so the engine can reject them.
    Fields with no value are left out and score as missing.
    """
    age = None
    if listing.year_built is not None:
        age = max(0, as_of.year - listing.year_built)

    attributes = {
        'price_vs_budget': listing.price,
        'sqft': listing.sqft,
        'bedrooms': listing.beds,
        'bathrooms': listing.baths,
        'lot_size': listing.lot_size,
        'year_built': age,
        'garage': listing.has_garage,
        'pool': listing.has_pool,
        'hoa_fee': listing.hoa_fee,
        'crime_score': listing.crime_score,
        'flood_risk': listing.flood_zone,
        'fire_risk': listing.fire_risk,
        'school_rating': listing.school_rating,
        'school_distance': listing.school_distance,
        'walk_score': listing.walk_score,
        'transit_score': listing.transit_score,
        'bike_score': listing.bike_score,
        'air_quality': listing.air_quality,
        'noise_level': listing.noise_level,
        'internet_speed': listing.internet_speed,
        'rental_estimate': cap_rate(listing.rental_estimate, listing.price),
        'appreciation': listing.appreciation_rate,
        'commute_time': listing.commute_minutes,
    }
    if enrichment:
        attributes.update(enrichment)

    return {factor_id: value for factor_id, value in attributes.items() if value is not None}
