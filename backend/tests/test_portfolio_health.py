"""
Tests for the Portfolio Health Scorer.

Weighted 0-100 composite over budget (25%), frequency (20%), exposure (20%),
horizon (20%) and discipline (15%).
"""
from types import SimpleNamespace

import pytest

from conftest import action, year
from drawfolio.models import Mandate, Roadmap, Severity
from drawfolio.services.health import (
    PortfolioHealthScorer,
    age_from_mandate,
    calculate_portfolio_health,
    composite_score,
)


@pytest.fixture
def scorer():
    return PortfolioHealthScorer()


class TestCompositeScore:

    def test_weighted_sum_without_clamping(self):
        assert composite_score(80, 100, 90, 75, 100) == 88

    @pytest.mark.parametrize("scores", [
        (-50, 0, 0, 0, 0),
        (200, 200, 200, 200, 200),
        (0, 0, 0, 0, 0),
        (100, -10, 150, 75, 60),
    ])
    def test_always_within_bounds(self, scores):
        assert 0 <= composite_score(*scores) <= 100

    def test_all_max_is_hundred(self):
        assert composite_score(100, 100, 100, 100, 100) == 100


class TestSubScores:

    def test_budget_equal_allocation_is_perfect(self, scorer):
        roadmap = Roadmap.from_years([
            year(2026, action("apply", "CO", "elk", 200.0), action("apply", "WY", "elk", 200.0)),
        ])
        assert scorer._score_budget(roadmap, None) == 100.0

    def test_budget_uneven_allocation(self, scorer):
        roadmap = Roadmap.from_years([
            year(2026, action("apply", "CO", "elk", 300.0), action("apply", "WY", "elk", 100.0)),
        ])
        assert scorer._score_budget(roadmap, None) == 50.0

    def test_budget_over_ceiling_penalty(self, scorer):
        roadmap = Roadmap.from_years([
            year(2026, action("apply", "CO", "elk", 200.0), action("apply", "WY", "elk", 200.0)),
        ])
        mandate = Mandate(annual_budget_ceiling=200.0, time_horizon_years=10)
        assert scorer._score_budget(roadmap, mandate) == 50.0

    def test_frequency_counts_years_to_first_hunt(self, scorer):
        roadmap = Roadmap.from_years(
            [year(2026), year(2027), year(2028), year(2029, action("hunt", "WY", "elk", 700.0))]
        )
        assert scorer._score_frequency(roadmap) == 76

    def test_frequency_without_hunt(self, scorer, build_roadmap):
        roadmap = build_roadmap(2026, 5, [("WY", "elk")])
        assert scorer._score_frequency(roadmap) == 60
        assert scorer._score_frequency(Roadmap()) == 0

    def test_exposure_share_below_five_percent(self, scorer):
        roadmap = Roadmap.from_years([
            year(
                2026,
                action("apply", "AZ", "elk", 100.0, estimated_draw_odds=0.01),
                action("apply", "CO", "elk", 300.0, estimated_draw_odds=0.5),
            ),
        ])
        assert scorer._score_exposure(roadmap) == 75.0

    def test_horizon_inside_window(self, scorer):
        roadmap = Roadmap.from_years([year(2026), year(2027), year(2028, action("hunt", "CO", "elk"))])
        mandate = Mandate(annual_budget_ceiling=0, time_horizon_years=10, current_age=40)
        assert scorer._score_horizon(roadmap, mandate, 2026) == 100.0

    def test_horizon_outside_demanding_species_window(self, scorer):
        roadmap = Roadmap.from_years(
            [year(y) for y in range(2026, 2030)] + [year(2030, action("hunt", "WY", "bighorn_sheep"))]
        )
        mandate = Mandate(annual_budget_ceiling=0, time_horizon_years=10, current_age=58)
        assert scorer._score_horizon(roadmap, mandate, 2026) == 30

    def test_horizon_defaults(self, scorer):
        roadmap = Roadmap.from_years([year(2026)])
        mandate = Mandate(annual_budget_ceiling=0, time_horizon_years=10, current_age=40)
        assert scorer._score_horizon(roadmap, None, 2026) == 75.0
        assert scorer._score_horizon(roadmap, mandate, 2026) == 50.0

    def test_discipline_penalties(self, scorer):
        violations = [SimpleNamespace(severity=Severity.CRITICAL), SimpleNamespace(severity="warning")]
        assert scorer._score_discipline(violations) == 60

    def test_age_inferred_from_mandate(self):
        assert age_from_mandate(Mandate(0, 10, youth_toggle=True, youth_age=12)) == 40
        assert age_from_mandate(Mandate(0, 20)) == 35
        assert age_from_mandate(Mandate(0, 7)) is None


class TestCalculatePortfolioHealth:

    def test_full_breakdown_in_bounds(self, build_roadmap):
        roadmap = build_roadmap(2026, 3, [("WY", "elk"), ("CO", "elk")])
        breakdown = calculate_portfolio_health(
            roadmap,
            Mandate(annual_budget_ceiling=1000.0, time_horizon_years=10, current_age=35),
            violations=[SimpleNamespace(severity=Severity.INFO)],
            as_of_year=2026,
        )
        assert breakdown.budget == 100.0
        assert breakdown.frequency == 76
        assert breakdown.horizon == 50.0
        assert breakdown.discipline == 95
        assert 0 <= breakdown.composite <= 100
        assert breakdown.to_dict()["composite"] == breakdown.composite
