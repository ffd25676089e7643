"""
Tests for the portfolio HTTP surface.

Requests go through FastAPI's TestClient; engine validation errors must
come back as 422 with the engine's message.
"""
import pytest
from fastapi.testclient import TestClient

from drawfolio import __version__
from drawfolio.main import app


@pytest.fixture
def client():
    return TestClient(app)


ROADMAP = [
    {"year": 2026, "actions": [{"type": "buy_points", "region": "CO", "species_id": "elk", "cost": 50.0}]},
    {
        "year": 2027,
        "phase": "burn",
        "actions": [
            {"type": "hunt", "region": "CO", "species_id": "elk", "cost": 1000.0},
            {"type": "hunt", "region": "MT", "species_id": "elk", "cost": 1000.0},
            {"type": "hunt", "region": "NM", "species_id": "elk", "cost": 1000.0},
        ],
    },
]


class TestAppEndpoints:

    def test_health_check(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "version": __version__}

    def test_root(self, client):
        assert client.get("/").json()["name"] == "Drawfolio"


class TestPortfolioEndpoints:

    def test_analyze(self, client):
        response = client.post("/portfolio/analyze", json={
            "as_of": "2026-04-01",
            "point_year_budget": 500.0,
            "hunt_year_budget": 3000.0,
            "roadmap": ROADMAP,
            "ledger": [{"region": "WY", "species_id": "elk", "points": 5}],
            "milestones": [{
                "id": "m1", "type": "apply", "region": "WY", "species_id": "elk",
                "year": 2026, "due_date": "2026-03-01",
            }],
            "references": [{"region": "WY", "species_id": "elk", "required_points": 5, "annual_cost": 52.0}],
            "mandate": {"annual_budget_ceiling": 4000.0, "time_horizon_years": 10, "current_age": 40},
            "last_visit": "2026-03-25",
        })
        assert response.status_code == 200
        body = response.json()
        assert body["errors"] == []
        assert "overdraw-2027" in {c["id"] for c in body["conflicts"]}
        assert body["purge_alerts"][0]["sunk_value"] == 260.0
        assert body["missed_deadlines"][0]["milestone_id"] == "m1"
        assert body["insights"][0]["urgency"] == "immediate"
        assert 0 <= body["health"]["composite"] <= 100

    def test_draw_odds_infers_system_from_region(self, client):
        response = client.post("/portfolio/draw-odds", json={
            "region": "co", "current_points": 8, "required_points": 6,
        })
        assert response.status_code == 200
        body = response.json()
        assert body["system"] == "preference"
        assert body["current_odds"] == 1.0
        assert body["years_to_likely_draw"] == 0

    def test_draw_odds_lottery(self, client):
        response = client.post("/portfolio/draw-odds", json={
            "system": "random_lottery", "current_points": 0, "single_year_odds": 0.1,
        })
        assert response.status_code == 200
        assert response.json()["years_to_likely_draw"] is None

    def test_draw_odds_requires_system_or_region(self, client):
        response = client.post("/portfolio/draw-odds", json={"current_points": 3})
        assert response.status_code == 422
        assert "system or region" in response.json()["detail"]

    def test_conflicts(self, client):
        response = client.post("/portfolio/conflicts", json={
            "as_of_year": 2026,
            "point_year_budget": 500.0,
            "hunt_year_budget": 3000.0,
            "roadmap": ROADMAP,
        })
        assert response.status_code == 200
        body = response.json()
        assert body["count"] == len(body["conflicts"])
        assert {"overdraw", "time_off_conflict"} <= {c["type"] for c in body["conflicts"]}

    def test_health(self, client):
        response = client.post("/portfolio/health", json={
            "roadmap": ROADMAP,
            "mandate": {"annual_budget_ceiling": 4000.0, "time_horizon_years": 10},
            "as_of_year": 2026,
        })
        assert response.status_code == 200
        assert set(response.json()) == {"budget", "frequency", "exposure", "horizon", "discipline", "composite"}

    def test_missed_deadlines(self, client):
        response = client.post("/portfolio/deadlines/missed", json={
            "as_of": "2026-04-10",
            "milestones": [
                {"id": "a", "type": "apply", "region": "WY", "species_id": "elk",
                 "year": 2026, "due_date": "2026-04-07"},
                {"id": "b", "type": "apply", "region": "CO", "species_id": "elk",
                 "year": 2026, "due_date": "2026-04-07", "completed": True},
                {"id": "c", "type": "hunt", "region": "MT", "species_id": "elk",
                 "year": 2026, "due_date": "2026-04-07"},
            ],
        })
        assert response.status_code == 200
        assert response.json() == {
            "missed": [{
                "milestone_id": "a", "region": "WY", "species_id": "elk",
                "deadline": "2026-04-07", "year": 2026,
            }],
            "count": 1,
        }

    def test_unknown_region_is_422(self, client):
        response = client.post("/portfolio/conflicts", json={
            "as_of_year": 2026,
            "point_year_budget": 500.0,
            "hunt_year_budget": 3000.0,
            "roadmap": [{"year": 2026, "actions": [{"type": "apply", "region": "ZZ", "species_id": "elk"}]}],
        })
        assert response.status_code == 422
        assert "Unknown region 'ZZ'" in response.json()["detail"]

    @pytest.mark.parametrize("year_payload", [
        {"year": 2026, "actions": [{"type": "bogus", "region": "WY", "species_id": "elk"}]},
        {"year": 2026, "phase": "harvest"},
        {"year": 2026, "actions": [{
            "type": "hunt", "region": "WY", "species_id": "elk",
            "cost_line_items": [{"label": "Tag", "amount": 692.0, "category": "souvenir"}],
        }]},
    ])
    def test_unknown_enum_value_is_422(self, client, year_payload):
        response = client.post("/portfolio/conflicts", json={
            "as_of_year": 2026,
            "point_year_budget": 500.0,
            "hunt_year_budget": 3000.0,
            "roadmap": [year_payload],
        })
        assert response.status_code == 422
        assert response.json()["detail"].startswith("Unknown ")

    def test_unknown_milestone_type_is_422(self, client):
        response = client.post("/portfolio/deadlines/missed", json={
            "as_of": "2026-04-10",
            "milestones": [{"id": "a", "type": "bogus", "region": "WY", "species_id": "elk", "year": 2026}],
        })
        assert response.status_code == 422
        assert "milestone type" in response.json()["detail"]

    def test_negative_budget_is_422(self, client):
        response = client.post("/portfolio/analyze", json={
            "as_of": "2026-04-01", "point_year_budget": -5.0, "hunt_year_budget": 0.0,
        })
        assert response.status_code == 422
