"""
Tests for the command-line launcher
"""

import json

import pytest

from scoring_engine.launcher import main

AS_OF = "2025-06-01T12:00:00+00:00"


@pytest.fixture
def listings_file(tmp_path):
    path = tmp_path / "listings.json"
    path.write_text(json.dumps({"listings": [
        {"id": "mls-1", "price": 450000, "beds": 4, "baths": 2, "sqft": 2100, "flood_zone": "X"},
        {"id": "mls-2", "price": 610000, "beds": 2, "baths": 1, "sqft": 900, "flood_zone": "AE"},
        {"id": "raw-1", "attributes": {"walk_score": 88, "pool": True}},
    ]}))
    return path


@pytest.fixture
def leads_file(tmp_path):
    path = tmp_path / "leads.json"
    path.write_text(json.dumps([
        {"id": "l1", "name": "Jane Doe", "email": "j@example.com", "phone": "555",
         "budget_max": 600000, "timeline": "asap", "created_at": AS_OF, "property_views": 5},
        {"id": "l2", "name": "Bob", "created_at": "2025-03-01T00:00:00+00:00"},
    ]))
    return path


class TestRank:

    def test_rank_with_preset_and_export(self, listings_file, tmp_path):
        export = tmp_path / "ranked.xlsx"
        code = main(["rank", str(listings_file), "--preset", "family", "--budget-max", "500000",
                     "--min-beds", "3", "--as-of", AS_OF, "--export", str(export)])
        assert code == 0
        assert export.exists()

    def test_all_entities_failing(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps([{"id": "x", "attributes": {"moat": True}}]))
        assert main(["rank", str(path)]) == 1

    def test_unknown_preset(self, listings_file):
        assert main(["rank", str(listings_file), "--preset", "castle"]) == 2

    def test_missing_file(self, tmp_path):
        assert main(["rank", str(tmp_path / "nope.json")]) == 2

    def test_not_a_list(self, tmp_path):
        path = tmp_path / "odd.json"
        path.write_text(json.dumps({"listings": {"id": "x"}}))
        assert main(["rank", str(path)]) == 2


class TestLeads:

    def test_grade_leads(self, leads_file, tmp_path):
        code = main(["--log-dir", str(tmp_path / "logs"), "leads", str(leads_file), "--as-of", AS_OF])
        assert code == 0
        assert any((tmp_path / "logs").iterdir())


def test_factors_listing(capsys):
    assert main(["factors"]) == 0
    assert "walk_score" in capsys.readouterr().out
