"""
Shared fixtures for the scoring engine and API tests.
"""

import os
import tempfile
from datetime import datetime, timedelta, timezone

import pytest

# Point the app at a throwaway database before homescore.config is imported
_DB_DIR = tempfile.mkdtemp(prefix="homescore-tests-")
os.environ.setdefault("DATABASE_URL", f"sqlite+aiosqlite:///{os.path.join(_DB_DIR, 'test.db')}")

from scoring_engine.modules.attributes import LeadRecord, ListingRecord  # noqa: E402
from scoring_engine.modules.models import FactorSetting, PreferenceProfile, ScoringDomain  # noqa: E402
from scoring_engine.modules.scoring_suite import lead_suite, property_suite  # noqa: E402

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


# =============================================================================
# Suites
# =============================================================================

@pytest.fixture
def props():
    return property_suite()


@pytest.fixture
def leads():
    return lead_suite()


@pytest.fixture
def now():
    return NOW


# =============================================================================
# Profiles
# =============================================================================

def make_profile(*settings, domain=ScoringDomain.PROPERTY, **kwargs) -> PreferenceProfile:
    """Build a profile from (factor_id, weight[, enabled]) tuples."""
    factors = [FactorSetting(factor_id=s[0], weight=s[1], enabled=s[2] if len(s) > 2 else True)
               for s in settings]
    return PreferenceProfile(id=kwargs.pop("id", "p1"), owner=kwargs.pop("owner", "tester"),
                             domain=domain, factors=factors, created_at=NOW, updated_at=NOW, **kwargs)


@pytest.fixture
def default_profile(props):
    return props.default_profile("tester", profile_id="p-default", now=NOW)


# =============================================================================
# Records
# =============================================================================

@pytest.fixture
def hot_lead():
    return LeadRecord(
        id="lead-hot",
        name="Jane Doe",
        email="jane@example.com",
        phone="555-0100",
        budget_max=600000,
        timeline="ASAP",
        created_at=NOW - timedelta(days=10),
        last_contact=NOW,
        property_views=5,
        email_opens=10,
        showings_attended=2,
    )


@pytest.fixture
def cold_lead():
    return LeadRecord(
        id="lead-cold",
        name="Bob Smith",
        email="bob@example.com",
        timeline="just browsing",
        created_at=NOW - timedelta(days=60),
    )


@pytest.fixture
def warm_lead():
    return LeadRecord(
        id="lead-warm",
        name="Ann Lee",
        email="ann@example.com",
        phone="555-0199",
        budget_max=350000,
        timeline="3 months",
        created_at=NOW - timedelta(days=20),
        last_contact=NOW - timedelta(days=5),
        property_views=2,
    )


@pytest.fixture
def listing():
    return ListingRecord(
        id="mls-1",
        address="12 Elm St",
        price=450000,
        beds=4,
        baths=2.5,
        sqft=2100,
        year_built=2015,
        has_pool=False,
        has_garage=True,
        hoa_fee=0,
        flood_zone="X",
        walk_score=72,
        transit_score=40,
        crime_score=85,
        school_rating=4.5,
        internet_speed=500,
        commute_minutes=25,
    )


@pytest.fixture
def profile_factory():
    return make_profile
